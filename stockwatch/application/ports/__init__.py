"""Application ports - Interfaces to infrastructure."""
from stockwatch.application.ports.candle_source import ICandleSource
from stockwatch.application.ports.event_publisher import IEventPublisher
from stockwatch.application.ports.notification_sink import DeliveryReceipt, INotificationSink

__all__ = [
    "ICandleSource",
    "IEventPublisher",
    "INotificationSink",
    "DeliveryReceipt",
]
