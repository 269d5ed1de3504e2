import asyncio

import pytest

from factories import make_alert
from stockwatch.domain.events.domain_events import AlertFired
from stockwatch.domain.exceptions.domain_errors import DeliveryFailureError
from stockwatch.infrastructure.external import (
    ALERT_FIRED_TOPIC,
    AlertListener,
    EventBus,
    EventBusNotificationSink,
    LoggingNotificationSink,
)

ALERT = make_alert(1, {"kind": "threshold", "field": "close", "op": ">", "value": 1})


def fired(alert_id: int = 1, **kwargs) -> AlertFired:
    values = {
        "alert_id": alert_id,
        "user_id": 7,
        "alert_name": f"alert-{alert_id}",
        "symbol_id": 1,
        "symbol_name": "Samsung Electronics (005930)",
        "timeframe": "5m",
        "channels": ("sms",),
    }
    values.update(kwargs)
    return AlertFired(**values)


def test_publish_fans_out_to_every_subscriber() -> None:
    bus = EventBus()

    async def scenario():
        first = await bus.subscribe(ALERT_FIRED_TOPIC, "delivery")
        second = await bus.subscribe(ALERT_FIRED_TOPIC, "reports")
        delivered = await bus.publish(ALERT_FIRED_TOPIC, fired())
        return delivered, first.get_nowait(), second.get_nowait()

    delivered, a, b = asyncio.run(scenario())
    assert delivered == 2
    assert a == b
    assert a["event_type"] == "AlertFired"
    assert a["alert_id"] == 1
    assert bus.subscriber_count == 2


def test_full_queue_drops_oldest() -> None:
    bus = EventBus(max_queue_size=2)

    async def scenario():
        queue = await bus.subscribe(ALERT_FIRED_TOPIC, "slow")
        for alert_id in (1, 2, 3):
            await bus.publish(ALERT_FIRED_TOPIC, fired(alert_id))
        return [queue.get_nowait()["alert_id"] for _ in range(queue.qsize())]

    assert asyncio.run(scenario()) == [2, 3]
    assert bus.dropped == 1
    assert bus.published == 3


def test_unsubscribe_all() -> None:
    bus = EventBus()

    async def scenario():
        await bus.subscribe(ALERT_FIRED_TOPIC, "delivery")
        await bus.subscribe("other", "x")
        await bus.unsubscribe_all(ALERT_FIRED_TOPIC)
        remaining = bus.subscriber_count
        await bus.unsubscribe_all()
        return remaining

    assert asyncio.run(scenario()) == 1
    assert bus.subscriber_count == 0


def test_sink_without_consumers_fails() -> None:
    sink = EventBusNotificationSink(EventBus())

    with pytest.raises(DeliveryFailureError) as exc:
        asyncio.run(sink.on_alert_fired(ALERT, fired()))
    assert exc.value.channel == "sms"


def test_sink_receipt_references_event() -> None:
    bus = EventBus()
    sink = EventBusNotificationSink(bus)
    event = fired()

    async def scenario():
        await bus.subscribe(ALERT_FIRED_TOPIC, "delivery")
        return await sink.on_alert_fired(ALERT, event)

    receipt = asyncio.run(scenario())
    assert receipt.channel == "sms"
    assert receipt.reference == event.event_id


def test_logging_sink_always_accepts() -> None:
    receipt = asyncio.run(LoggingNotificationSink().on_alert_fired(ALERT, fired(channels=())))
    assert receipt.channel == "log"


def test_listener_consumes_and_survives_handler_errors() -> None:
    bus = EventBus()
    handled = []

    async def handler(data: dict) -> None:
        if data["alert_id"] == 1:
            raise RuntimeError("boom")
        handled.append(data["alert_id"])

    listener = AlertListener(bus, handler=handler)

    async def scenario():
        await listener.start()
        await bus.publish(ALERT_FIRED_TOPIC, fired(1))
        await bus.publish(ALERT_FIRED_TOPIC, fired(2))
        for _ in range(100):
            if listener.consumed == 2:
                break
            await asyncio.sleep(0.01)
        await listener.stop()

    asyncio.run(scenario())
    assert listener.consumed == 2
    assert [d["alert_id"] for d in listener.recent] == [1, 2]
    assert handled == [2]
    assert not listener.is_running


def test_listener_keeps_only_recent_events() -> None:
    bus = EventBus()
    listener = AlertListener(bus, handler=lambda data: asyncio.sleep(0), recent_size=10)

    async def scenario():
        await listener.start()
        for alert_id in range(1, 251):
            await bus.publish(ALERT_FIRED_TOPIC, fired(alert_id))
        for _ in range(200):
            if listener.consumed == 250:
                break
            await asyncio.sleep(0.01)
        await listener.stop()

    asyncio.run(scenario())
    assert listener.consumed == 250
    assert len(listener.recent) == 10
    assert [d["alert_id"] for d in listener.recent] == list(range(241, 251))
