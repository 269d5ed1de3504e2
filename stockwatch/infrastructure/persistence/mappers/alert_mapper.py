"""
StockWatch – Alert / AlertLog Mappers
=======================================
Traducen entre entidades de dominio y modelos ORM.

- El domain NO conoce SQLAlchemy
- El ORM Model NO tiene lógica de negocio
- El mapper traduce entre ambos mundos

MySQL/SQLite devuelven DateTime sin zona; aquí se normaliza a UTC aware.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from stockwatch.domain.entities.alert import Alert
from stockwatch.domain.entities.alert_log import AlertLog, NotificationOutcome
from stockwatch.domain.value_objects.timeframe import ensure_utc


def _utc(value):
    return ensure_utc(value) if value is not None else None


class AlertMapper:

    @staticmethod
    def to_entity(model) -> Alert:
        return Alert(
            id=model.id,
            user_id=model.user_id,
            symbol_id=model.symbol_id,
            name=model.name,
            description=model.description,
            condition=model.condition,
            condition_logic=model.condition_logic or "all",
            timeframe=model.timeframe,
            active=bool(model.active),
            cooldown_minutes=model.cooldown_minutes,
            trigger_count=model.trigger_count or 0,
            last_triggered_at=_utc(model.last_triggered_at),
            notification_channels=tuple(model.notification_channels or ()),
            condition_error=model.condition_error,
            created_at=_utc(model.created_at),
        )

    @staticmethod
    def to_model(alert: Alert) -> Dict[str, Any]:
        """Dict para construir AlertModel (sin importar el modelo aquí)."""
        data: Dict[str, Any] = {
            "user_id": alert.user_id,
            "symbol_id": alert.symbol_id,
            "name": alert.name,
            "description": alert.description,
            "condition": alert.condition,
            "condition_logic": alert.condition_logic,
            "timeframe": alert.timeframe,
            "active": alert.active,
            "cooldown_minutes": alert.cooldown_minutes,
            "trigger_count": alert.trigger_count,
            "last_triggered_at": alert.last_triggered_at,
            "notification_channels": list(alert.notification_channels),
            "condition_error": alert.condition_error,
        }
        if alert.id:
            data["id"] = alert.id
        return data


class AlertLogMapper:

    @staticmethod
    def to_entity(model) -> AlertLog:
        return AlertLog(
            id=model.id,
            alert_id=model.alert_id,
            symbol_id=model.symbol_id,
            fired_at=ensure_utc(model.fired_at),
            snapshot_ref=model.snapshot_ref,
            snapshot=dict(model.snapshot or {}),
            notification_outcome=NotificationOutcome(model.notification_outcome),
            notification_channel=model.notification_channel,
            notification_error=model.notification_error,
            sent_at=_utc(model.sent_at),
        )

    @staticmethod
    def to_model(log: AlertLog, log_id: Optional[int] = None) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "alert_id": log.alert_id,
            "symbol_id": log.symbol_id,
            "fired_at": log.fired_at,
            "snapshot_ref": log.snapshot_ref,
            "snapshot": dict(log.snapshot),
            "notification_outcome": log.notification_outcome.value,
            "notification_channel": log.notification_channel,
            "notification_error": log.notification_error,
            "sent_at": log.sent_at,
        }
        if log_id is not None:
            data["id"] = log_id
        return data
