"""
StockWatch – Domain Repository Interface: Alert
=================================================
Contrato del Alert Registry.

REGLA DE CLEAN ARCHITECTURE:
- Esta interfaz vive en domain/ (capa interna)
- Las implementaciones (SQLAlchemy, memoria) viven en infrastructure/

ESCRITURAS PERMITIDAS AL PIPELINE:
- record_fire: incremento de contador + last_triggered_at + fila de
  AlertLog, en UNA transacción.
- set_active: toggle del usuario (enable/disable).
- set_condition_error: marcar/desmarcar una condición mal formada.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional, Tuple

from stockwatch.domain.entities.alert import Alert
from stockwatch.domain.entities.alert_log import AlertLog


class IAlertRepository(ABC):
    """
    Interfaz abstracta del registro de alertas.

    Todas las operaciones son async para no bloquear el event loop.
    Cada operación es atómica por sí misma.
    """

    @abstractmethod
    async def list_active_alerts(self) -> List[Alert]:
        """
        Todas las alertas con active=True (incluye las que están en cooldown).

        Raises:
            RegistryUnavailableError: si el almacén no responde.
        """
        pass

    @abstractmethod
    async def get(self, alert_id: int) -> Optional[Alert]:
        pass

    @abstractmethod
    async def list_by_user(self, user_id: int) -> List[Alert]:
        pass

    @abstractmethod
    async def set_active(self, alert_id: int, active: bool) -> Alert:
        """Raises AlertNotFoundError."""
        pass

    @abstractmethod
    async def record_fire(
        self,
        alert_id: int,
        fired_at: datetime,
        log: AlertLog,
    ) -> Tuple[Alert, AlertLog]:
        """
        Aplica un disparo de forma atómica.

        trigger_count += 1, last_triggered_at = fired_at y append del
        AlertLog. Devuelve la alerta actualizada y el log con su id.
        """
        pass

    @abstractmethod
    async def set_condition_error(self, alert_id: int, error: Optional[str]) -> None:
        pass
