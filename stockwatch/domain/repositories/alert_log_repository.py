"""
StockWatch – Domain Repository Interface: AlertLog
====================================================
Historial append-only de disparos. Las filas se crean dentro de
IAlertRepository.record_fire; aquí solo se completa el resultado de la
entrega, se consulta y se purga por retención.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional

from stockwatch.domain.entities.alert_log import AlertLog, NotificationOutcome


class IAlertLogRepository(ABC):

    @abstractmethod
    async def update_outcome(
        self,
        log_id: int,
        outcome: NotificationOutcome,
        channel: Optional[str] = None,
        error: Optional[str] = None,
        sent_at: Optional[datetime] = None,
    ) -> None:
        """Solo toca los campos de entrega; el resto de la fila es inmutable."""
        pass

    @abstractmethod
    async def find_by_alert(self, alert_id: int, limit: int = 50) -> List[AlertLog]:
        """Más recientes primero."""
        pass

    @abstractmethod
    async def find_by_user(self, user_id: int, limit: int = 50) -> List[AlertLog]:
        """Disparos de todas las alertas de un usuario, más recientes primero."""
        pass

    @abstractmethod
    async def find_recent(self, limit: int = 50) -> List[AlertLog]:
        pass

    @abstractmethod
    async def purge_older_than(self, cutoff: datetime) -> int:
        """Borra filas con fired_at < cutoff. Retorna cuántas borró."""
        pass
