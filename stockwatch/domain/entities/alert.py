"""
StockWatch – Domain Entity: Alert
===================================
Alerta definida por un usuario sobre un símbolo y timeframe.

═══════════════════════════════════════════════════════════════
            MÁQUINA DE ESTADOS DE LA ALERTA
═══════════════════════════════════════════════════════════════

  INACTIVE ──enable()──▸ ACTIVE ──condición true (fire)──▸ COOLDOWN
      ▲                    │  ▲                               │
      │                    │  └──── now - last >= cooldown ───┘
      └────disable()───────┴──────────disable()───────────────┘

El estado NO se persiste: se deriva de los campos durables
(`active`, `last_triggered_at`, `cooldown_minutes`) con `state_at(now)`.
Así la salida de COOLDOWN es automática y no requiere un job extra.

INVARIANTES:
- trigger_count >= 0 y nunca decrece.
- last_triggered_at nunca retrocede.
- Solo el usuario (active) y la máquina de estados (fire) mutan la alerta.
  Cada transición devuelve una NUEVA instancia (frozen).
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Optional, Tuple

from stockwatch.domain.value_objects.timeframe import ensure_utc


class AlertState(str, Enum):
    """Estados posibles de una alerta."""
    INACTIVE = "INACTIVE"  # Deshabilitada por el usuario
    ACTIVE = "ACTIVE"      # Se evalúa cada ciclo
    COOLDOWN = "COOLDOWN"  # Disparada recientemente, no se evalúa


@dataclass(frozen=True, slots=True)
class Alert:
    id: int
    user_id: int
    symbol_id: int
    name: str
    condition: Any                      # JSON almacenado (árbol o lista heredada)
    condition_logic: str = "all"        # solo para la forma heredada en lista
    timeframe: str = "5m"
    active: bool = True
    cooldown_minutes: int = 60
    trigger_count: int = 0
    last_triggered_at: Optional[datetime] = None
    notification_channels: Tuple[str, ...] = ("sms",)
    description: Optional[str] = None
    condition_error: Optional[str] = None
    created_at: Optional[datetime] = field(default=None, compare=False)

    # ════════════════════════════════════════════════════════════════
    #  ESTADO DERIVADO
    # ════════════════════════════════════════════════════════════════

    @property
    def cooldown(self) -> timedelta:
        return timedelta(minutes=self.cooldown_minutes)

    def cooldown_ends_at(self) -> Optional[datetime]:
        if self.last_triggered_at is None:
            return None
        return ensure_utc(self.last_triggered_at) + self.cooldown

    def state_at(self, now: datetime) -> AlertState:
        if not self.active:
            return AlertState.INACTIVE
        ends = self.cooldown_ends_at()
        if ends is not None and ensure_utc(now) < ends:
            return AlertState.COOLDOWN
        return AlertState.ACTIVE

    # ════════════════════════════════════════════════════════════════
    #  TRANSICIONES
    # ════════════════════════════════════════════════════════════════

    def fired(self, fired_at: datetime) -> "Alert":
        """ACTIVE → COOLDOWN. El llamador valida el estado previo."""
        last = self.last_triggered_at
        if last is not None and ensure_utc(fired_at) < ensure_utc(last):
            fired_at = last
        return replace(
            self,
            trigger_count=self.trigger_count + 1,
            last_triggered_at=fired_at,
        )

    def with_active(self, active: bool) -> "Alert":
        return replace(self, active=active)

    def with_condition_error(self, error: Optional[str]) -> "Alert":
        return replace(self, condition_error=error)

    def to_dict(self, now: Optional[datetime] = None) -> dict:
        data = {
            "id": self.id,
            "user_id": self.user_id,
            "symbol_id": self.symbol_id,
            "name": self.name,
            "description": self.description,
            "condition": self.condition,
            "condition_logic": self.condition_logic,
            "timeframe": self.timeframe,
            "active": self.active,
            "cooldown_minutes": self.cooldown_minutes,
            "trigger_count": self.trigger_count,
            "last_triggered_at": (
                self.last_triggered_at.isoformat() if self.last_triggered_at else None
            ),
            "notification_channels": list(self.notification_channels),
            "condition_error": self.condition_error,
        }
        if now is not None:
            data["state"] = self.state_at(now).value
        return data
