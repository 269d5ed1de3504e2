import asyncio
from datetime import timedelta

import pytest

from factories import T0
from stockwatch.domain.entities.alert import AlertState
from stockwatch.domain.entities.alert_log import NotificationOutcome
from stockwatch.domain.entities.indicator_snapshot import IndicatorSnapshot
from stockwatch.domain.exceptions.domain_errors import AlertNotFoundError, InvalidTransitionError
from stockwatch.domain.services.condition_evaluator import EvaluationResult

CONDITION = {"kind": "threshold", "field": "close", "op": ">", "value": 10000}


def snapshot(close: float = 10500.0, as_of=T0) -> IndicatorSnapshot:
    return IndicatorSnapshot.create(
        symbol_id=1,
        timeframe="5m",
        as_of=as_of,
        candle_timestamp=as_of - timedelta(minutes=5),
        candle_count=30,
        values={"close": close, "volume": 1200.0, "rsi": 61.5, "ma120": None},
    )


MET = EvaluationResult(triggered=True, conditions_met=("close > 10000",))


def test_fire_records_log_and_counts(pipeline) -> None:
    pipeline.add_alert(1, CONDITION)
    machine = pipeline.container.state_machine

    log = asyncio.run(machine.fire(1, snapshot(), MET, T0))

    alert = asyncio.run(pipeline.alerts.get(1))
    assert alert.trigger_count == 1
    assert alert.last_triggered_at == T0
    assert alert.state_at(T0) == AlertState.COOLDOWN

    assert log.id is not None
    assert log.snapshot_ref == f"1:5m:{T0.isoformat()}"
    assert log.notification_outcome == NotificationOutcome.SENT
    assert log.notification_channel == "sms"
    assert log.snapshot["indicators"] == {"rsi": 61.5}
    assert log.snapshot["volume"] == 1200.0

    (event,) = pipeline.sink.events
    assert event.alert_id == 1
    assert event.log_id == log.id
    assert event.channels == ("sms",)
    assert event.price == 10500.0


def test_fire_rejected_during_cooldown(pipeline) -> None:
    pipeline.add_alert(1, CONDITION, trigger_count=3, last_triggered_at=T0 - timedelta(minutes=10))
    machine = pipeline.container.state_machine

    with pytest.raises(InvalidTransitionError) as exc:
        asyncio.run(machine.fire(1, snapshot(), MET, T0))
    assert exc.value.state == "COOLDOWN"
    assert asyncio.run(pipeline.alerts.get(1)).trigger_count == 3
    assert pipeline.sink.events == []


def test_fire_rejected_when_inactive(pipeline) -> None:
    pipeline.add_alert(1, CONDITION, active=False)
    machine = pipeline.container.state_machine

    with pytest.raises(InvalidTransitionError):
        asyncio.run(machine.fire(1, snapshot(), MET, T0))


def test_fire_unknown_alert(pipeline) -> None:
    with pytest.raises(AlertNotFoundError):
        asyncio.run(pipeline.container.state_machine.fire(99, snapshot(), MET, T0))


def test_disable_keeps_counters(pipeline) -> None:
    pipeline.add_alert(1, CONDITION, trigger_count=4, last_triggered_at=T0)
    machine = pipeline.container.state_machine
    history = pipeline.container.snapshot_history
    history.record(1, snapshot())

    disabled = asyncio.run(machine.disable(1))

    assert disabled.state_at(T0) == AlertState.INACTIVE
    assert disabled.trigger_count == 4
    assert disabled.last_triggered_at == T0
    assert history.previous(1) is None

    enabled = asyncio.run(machine.enable(1))
    assert enabled.active
    assert enabled.state_at(T0 + timedelta(hours=2)) == AlertState.ACTIVE


def test_toggle_unknown_alert(pipeline) -> None:
    with pytest.raises(AlertNotFoundError):
        asyncio.run(pipeline.container.state_machine.enable(42))


def test_last_triggered_never_goes_backwards(pipeline) -> None:
    pipeline.add_alert(1, CONDITION, cooldown_minutes=0, last_triggered_at=T0)

    asyncio.run(pipeline.container.state_machine.fire(1, snapshot(), MET, T0 + timedelta(seconds=1)))
    alert = asyncio.run(pipeline.alerts.get(1))
    assert alert.last_triggered_at == T0 + timedelta(seconds=1)
    assert alert.fired(T0).last_triggered_at == T0 + timedelta(seconds=1)
