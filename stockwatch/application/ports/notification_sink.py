"""
StockWatch – Application Port: Notification Sink
==================================================
Destino de los eventos de disparo. El pipeline NO conoce el transporte
(SMS, email, push); solo entrega un evento y registra si fue aceptado.

Los reintentos son responsabilidad del sink. Un fallo aquí nunca
revierte el disparo.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from stockwatch.domain.entities.alert import Alert
from stockwatch.domain.events.domain_events import AlertFired


@dataclass(frozen=True)
class DeliveryReceipt:
    """Confirmación de que el sink aceptó el evento."""

    channel: str
    accepted_at: datetime
    reference: Optional[str] = None


class INotificationSink(ABC):

    @abstractmethod
    async def on_alert_fired(self, alert: Alert, event: AlertFired) -> DeliveryReceipt:
        """
        Entrega un evento de disparo.

        Raises:
            DeliveryFailureError: el sink no pudo aceptar el evento.
        """
        pass
