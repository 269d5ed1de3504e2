"""
StockWatch – Notification Sinks
=================================
Implementaciones de INotificationSink.

EventBusNotificationSink:
  Publica el AlertFired en el tópico `alert_fired` del EventBus. La
  entrega real (SMS, push, email) la hacen consumidores externos que
  leen su cola y reintentan por su cuenta. Sin consumidores suscritos
  el evento no tiene destino → DeliveryFailureError.

LoggingNotificationSink:
  Solo registra el mensaje en el log. Útil en desarrollo.
"""

from __future__ import annotations

from stockwatch.application.ports.event_publisher import IEventPublisher
from stockwatch.application.ports.notification_sink import DeliveryReceipt, INotificationSink
from stockwatch.domain.entities.alert import Alert
from stockwatch.domain.events.domain_events import AlertFired
from stockwatch.domain.exceptions.domain_errors import DeliveryFailureError
from stockwatch.domain.value_objects.timeframe import utc_now
from stockwatch.shared.logging.logger import get_logger

logger = get_logger("notification_sink")

ALERT_FIRED_TOPIC = "alert_fired"


class EventBusNotificationSink(INotificationSink):

    def __init__(self, publisher: IEventPublisher, topic: str = ALERT_FIRED_TOPIC) -> None:
        self._publisher = publisher
        self._topic = topic

    async def on_alert_fired(self, alert: Alert, event: AlertFired) -> DeliveryReceipt:
        channel = event.channels[0] if event.channels else "event_bus"
        delivered = await self._publisher.publish(self._topic, event)
        if delivered == 0:
            raise DeliveryFailureError(
                f"Sin consumidores en el tópico '{self._topic}'", channel=channel,
            )
        logger.debug(
            "AlertFired %s publicado a %d consumidores (alerta %d)",
            event.event_id, delivered, alert.id,
        )
        return DeliveryReceipt(channel=channel, accepted_at=utc_now(), reference=event.event_id)


class LoggingNotificationSink(INotificationSink):

    async def on_alert_fired(self, alert: Alert, event: AlertFired) -> DeliveryReceipt:
        logger.info(
            "Notificación (%s) para usuario %d: %s",
            ",".join(event.channels) or "-", alert.user_id, event.message.replace("\n", " | "),
        )
        return DeliveryReceipt(channel="log", accepted_at=utc_now(), reference=event.event_id)
