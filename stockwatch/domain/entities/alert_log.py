"""
StockWatch – Domain Entity: AlertLog
======================================
Registro append-only de cada decisión de disparo.

Se escribe una fila por disparo, también cuando la entrega falla.
Después de escrita solo se completan los campos de entrega
(outcome, canal, error, sent_at). Las filas solo desaparecen por la
purga de retención.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional


class NotificationOutcome(str, Enum):
    PENDING = "PENDING"
    SENT = "SENT"
    FAILED = "FAILED"


@dataclass(frozen=True, slots=True)
class AlertLog:
    alert_id: int
    symbol_id: int
    fired_at: datetime
    snapshot_ref: str
    # {"price", "volume", "indicators", "conditions_met"}
    snapshot: Dict[str, Any] = field(default_factory=dict)
    notification_outcome: NotificationOutcome = NotificationOutcome.PENDING
    notification_channel: Optional[str] = None
    notification_error: Optional[str] = None
    sent_at: Optional[datetime] = None
    id: Optional[int] = None

    @property
    def notification_sent(self) -> bool:
        return self.notification_outcome == NotificationOutcome.SENT

    def with_id(self, log_id: int) -> "AlertLog":
        return replace(self, id=log_id)

    def with_outcome(
        self,
        outcome: NotificationOutcome,
        channel: Optional[str] = None,
        error: Optional[str] = None,
        sent_at: Optional[datetime] = None,
    ) -> "AlertLog":
        return replace(
            self,
            notification_outcome=outcome,
            notification_channel=channel,
            notification_error=error,
            sent_at=sent_at,
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "alert_id": self.alert_id,
            "symbol_id": self.symbol_id,
            "fired_at": self.fired_at.isoformat(),
            "snapshot_ref": self.snapshot_ref,
            "snapshot": self.snapshot,
            "notification_outcome": self.notification_outcome.value,
            "notification_sent": self.notification_sent,
            "notification_channel": self.notification_channel,
            "notification_error": self.notification_error,
            "sent_at": self.sent_at.isoformat() if self.sent_at else None,
        }
