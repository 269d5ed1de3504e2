"""Adaptadores externos: Event Bus, Notification Sinks y consumidores."""
from stockwatch.infrastructure.external.alert_listener import AlertListener
from stockwatch.infrastructure.external.event_bus import EventBus
from stockwatch.infrastructure.external.notification_sinks import (
    ALERT_FIRED_TOPIC,
    EventBusNotificationSink,
    LoggingNotificationSink,
)

__all__ = [
    "ALERT_FIRED_TOPIC",
    "AlertListener",
    "EventBus",
    "EventBusNotificationSink",
    "LoggingNotificationSink",
]
