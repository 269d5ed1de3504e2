"""
StockWatch – Domain Events
============================
Eventos de dominio: HECHOS inmutables con timestamp.

AlertFired es el contrato hacia el Notification Sink y el generador de
reportes: un evento por disparo, publicado en el tópico `alert_fired`.
"""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple


@dataclass(frozen=True)
class DomainEvent:
    """Evento base de dominio."""

    event_id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])
    timestamp: float = field(default_factory=time.time)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event_id": self.event_id,
            "event_type": self.__class__.__name__,
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True)
class AlertFired(DomainEvent):
    """Evento: una alerta pasó de ACTIVE a COOLDOWN."""

    alert_id: int = 0
    user_id: int = 0
    alert_name: str = ""
    symbol_id: int = 0
    symbol_name: str = ""
    timeframe: str = ""
    fired_at: str = ""                 # ISO-8601 UTC
    snapshot_ref: str = ""
    price: Optional[float] = None
    values: Dict[str, Optional[float]] = field(default_factory=dict)
    conditions_met: Tuple[str, ...] = ()
    channels: Tuple[str, ...] = ()
    log_id: Optional[int] = None

    @property
    def message(self) -> str:
        return f"[Stock alert] {self.symbol_name}\n{self.alert_name}\nCondition met."

    def to_dict(self) -> Dict[str, Any]:
        base = super().to_dict()
        base.update({
            "alert_id": self.alert_id,
            "user_id": self.user_id,
            "alert_name": self.alert_name,
            "symbol_id": self.symbol_id,
            "symbol_name": self.symbol_name,
            "timeframe": self.timeframe,
            "fired_at": self.fired_at,
            "snapshot_ref": self.snapshot_ref,
            "price": self.price,
            "values": dict(self.values),
            "conditions_met": list(self.conditions_met),
            "channels": list(self.channels),
            "log_id": self.log_id,
            "message": self.message,
        })
        return base
