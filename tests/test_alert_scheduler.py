import asyncio
from datetime import timedelta

from factories import T0, build_candles
from stockwatch.application.dto.cycle_dto import UnitStatus
from stockwatch.domain.entities.alert import AlertState
from stockwatch.domain.entities.alert_log import NotificationOutcome
from stockwatch.domain.exceptions.domain_errors import RegistryUnavailableError

PRICE_ABOVE_10000 = {"kind": "threshold", "field": "close", "op": ">", "value": 10000}
FIVE = timedelta(minutes=5)


def test_cooldown_lifecycle(pipeline) -> None:
    pipeline.add_candles(1, [9000.0] * 30, T0 - FIVE)
    pipeline.add_alert(1, PRICE_ABOVE_10000, cooldown_minutes=60)
    t1 = T0 + timedelta(minutes=1)

    async def scenario():
        scheduler = pipeline.scheduler
        counts = []

        report = await scheduler.run_cycle(T0)
        assert report.fired == []
        counts.append((await pipeline.alerts.get(1)).trigger_count)

        pipeline.source.extend(build_candles(1, [10500.0], T0))
        report = await scheduler.run_cycle(t1)
        assert report.fired == [1]
        counts.append((await pipeline.alerts.get(1)).trigger_count)

        pipeline.source.extend(build_candles(1, [11000.0], t1 + timedelta(minutes=25)))
        report = await scheduler.run_cycle(t1 + timedelta(minutes=30))
        assert report.fired == []
        assert 1 in report.unit(1).skipped
        counts.append((await pipeline.alerts.get(1)).trigger_count)

        pipeline.source.extend(build_candles(1, [11000.0], t1 + timedelta(minutes=60)))
        report = await scheduler.run_cycle(t1 + timedelta(minutes=61))
        assert report.fired == [1]
        counts.append((await pipeline.alerts.get(1)).trigger_count)
        return counts

    assert asyncio.run(scenario()) == [0, 1, 1, 2]

    alert = asyncio.run(pipeline.alerts.get(1))
    assert alert.last_triggered_at == t1 + timedelta(minutes=61)
    assert alert.state_at(t1 + timedelta(minutes=62)) == AlertState.COOLDOWN

    logs = asyncio.run(pipeline.logs.find_by_alert(1))
    assert len(logs) == 2
    assert all(log.notification_outcome == NotificationOutcome.SENT for log in logs)
    assert logs[0].snapshot["price"] == 11000.0
    assert logs[0].snapshot["conditions_met"] == ["close > 10000"]
    assert len(pipeline.sink.events) == 2
    assert pipeline.sink.events[0].message == (
        "[Stock alert] Samsung Electronics (005930)\nalert-1\nCondition met."
    )


def test_shared_snapshot_per_symbol(pipeline) -> None:
    pipeline.add_symbol(2, name="SK hynix", code="000660")
    pipeline.add_candles(1, [10500.0] * 30, T0 - FIVE)
    pipeline.add_candles(2, [500.0] * 30, T0 - FIVE)
    pipeline.add_alert(1, PRICE_ABOVE_10000)
    pipeline.add_alert(2, {"kind": "threshold", "field": "rsi", "op": "==", "value": 50})
    pipeline.add_alert(3, PRICE_ABOVE_10000, symbol_id=2)

    report = asyncio.run(pipeline.scheduler.run_cycle(T0))

    assert report.snapshots_computed == 2
    assert pipeline.source.calls == 2
    assert sorted(report.fired) == [1, 2]
    assert report.unit(1).evaluated == [1, 2]
    assert report.unit(1).snapshot_ref == f"1:5m:{T0.isoformat()}"
    assert report.unit(2).evaluated == [3]


def test_insufficient_data_skips_only_that_symbol(pipeline) -> None:
    pipeline.add_symbol(2, name="SK hynix", code="000660")
    pipeline.add_candles(1, [10500.0] * 3, T0 - FIVE)
    pipeline.add_candles(2, [10500.0] * 30, T0 - FIVE)
    pipeline.add_alert(1, PRICE_ABOVE_10000)
    pipeline.add_alert(2, PRICE_ABOVE_10000)
    pipeline.add_alert(3, PRICE_ABOVE_10000, symbol_id=2)

    report = asyncio.run(pipeline.scheduler.run_cycle(T0))

    assert not report.aborted
    assert report.unit(1).status == UnitStatus.INSUFFICIENT_DATA
    assert report.unit(1).skipped == [1, 2]
    assert report.unit(2).ok
    assert report.fired == [3]


def test_alert_needing_longer_history_is_skipped(pipeline) -> None:
    pipeline.add_candles(1, [10500.0] * 30, T0 - FIVE)
    pipeline.add_alert(1, {"kind": "compare", "field": "close", "op": ">", "other": "ma120"})
    pipeline.add_alert(2, PRICE_ABOVE_10000)

    report = asyncio.run(pipeline.scheduler.run_cycle(T0))

    unit = report.unit(1)
    assert unit.ok
    assert unit.skipped == [1]
    assert report.fired == [2]


def test_malformed_condition_is_flagged_not_deleted(pipeline) -> None:
    pipeline.add_candles(1, [10500.0] * 30, T0 - FIVE)
    pipeline.add_alert(1, {"kind": "threshold", "field": "nonsense", "op": ">", "value": 1})
    pipeline.add_alert(2, PRICE_ABOVE_10000)

    async def scenario():
        report = await pipeline.scheduler.run_cycle(T0)
        alert = await pipeline.alerts.get(1)
        return report, alert

    report, alert = asyncio.run(scenario())
    assert report.unit(1).malformed == [1]
    assert report.fired == [2]
    assert alert is not None
    assert alert.active
    assert alert.condition_error


def test_fixed_condition_clears_flag(pipeline) -> None:
    pipeline.add_candles(1, [10500.0] * 30, T0 - FIVE)
    pipeline.add_alert(1, PRICE_ABOVE_10000, condition_error="old error")

    asyncio.run(pipeline.scheduler.run_cycle(T0))

    assert asyncio.run(pipeline.alerts.get(1)).condition_error is None


def test_delivery_failure_keeps_cooldown(pipeline) -> None:
    pipeline.sink.fail = True
    pipeline.add_candles(1, [10500.0] * 30, T0 - FIVE)
    pipeline.add_alert(1, PRICE_ABOVE_10000)

    async def scenario():
        first = await pipeline.scheduler.run_cycle(T0)
        second = await pipeline.scheduler.run_cycle(T0 + timedelta(minutes=1))
        return first, second

    first, second = asyncio.run(scenario())
    assert first.fired == [1]
    assert second.fired == []

    alert = asyncio.run(pipeline.alerts.get(1))
    assert alert.trigger_count == 1
    assert alert.state_at(T0 + timedelta(minutes=1)) == AlertState.COOLDOWN

    (log,) = asyncio.run(pipeline.logs.find_by_alert(1))
    assert log.notification_outcome == NotificationOutcome.FAILED
    assert log.notification_channel == "sms"
    assert log.notification_error == "gateway down"
    assert not log.notification_sent


def test_delivery_timeout_is_recorded(pipeline) -> None:
    pipeline.sink.delay = 0.5
    pipeline.container.state_machine._notification_timeout = 0.05
    pipeline.add_candles(1, [10500.0] * 30, T0 - FIVE)
    pipeline.add_alert(1, PRICE_ABOVE_10000)

    report = asyncio.run(pipeline.scheduler.run_cycle(T0))

    assert report.fired == [1]
    (log,) = asyncio.run(pipeline.logs.find_by_alert(1))
    assert log.notification_outcome == NotificationOutcome.FAILED
    assert "timeout" in log.notification_error


def test_registry_failure_aborts_cycle(pipeline, monkeypatch) -> None:
    pipeline.add_candles(1, [10500.0] * 30, T0 - FIVE)
    pipeline.add_alert(1, PRICE_ABOVE_10000)

    async def unavailable():
        raise RegistryUnavailableError("registry down")

    monkeypatch.setattr(pipeline.alerts, "list_active_alerts", unavailable)

    scheduler = pipeline.scheduler
    report = asyncio.run(scheduler.run_cycle(T0))

    assert report.aborted
    assert report.error == "registry down"
    assert report.units == []
    assert scheduler.cycles_aborted == 1

    monkeypatch.undo()
    report = asyncio.run(scheduler.run_cycle(T0 + timedelta(minutes=1)))
    assert not report.aborted
    assert report.fired == [1]


def test_disable_enable_never_fires_stale_cross(pipeline) -> None:
    cross = {"kind": "cross", "field": "close", "direction": "above", "value": 10000}
    pipeline.add_candles(1, [9000.0] * 30, T0 - FIVE)
    pipeline.add_alert(1, cross, cooldown_minutes=0)
    state_machine = pipeline.container.state_machine

    async def scenario():
        scheduler = pipeline.scheduler
        await scheduler.run_cycle(T0)
        await state_machine.disable(1)

        # El cruce ocurre mientras la alerta está deshabilitada
        pipeline.source.extend(build_candles(1, [10500.0], T0))
        disabled = await scheduler.run_cycle(T0 + timedelta(minutes=1))

        await state_machine.enable(1)
        first = await scheduler.run_cycle(T0 + timedelta(minutes=2))

        pipeline.source.extend(build_candles(1, [9500.0], T0 + FIVE))
        pipeline.source.extend(build_candles(1, [10200.0], T0 + 2 * FIVE))
        await scheduler.run_cycle(T0 + timedelta(minutes=6))
        crossed = await scheduler.run_cycle(T0 + timedelta(minutes=11))
        return disabled, first, crossed

    disabled, first, crossed = asyncio.run(scenario())
    assert disabled.fired == []
    assert first.fired == []
    assert crossed.fired == [1]
    assert asyncio.run(pipeline.alerts.get(1)).trigger_count == 1


def test_cross_waits_for_second_observation(pipeline) -> None:
    cross = {"kind": "cross", "field": "close", "direction": "above", "value": 10000}
    pipeline.add_candles(1, [10500.0] * 30, T0 - FIVE)
    pipeline.add_alert(1, cross)

    report = asyncio.run(pipeline.scheduler.run_cycle(T0))

    assert report.unit(1).evaluated == [1]
    assert report.fired == []


def test_negated_cross_does_not_fire_on_first_cycle(pipeline) -> None:
    not_cross = {
        "kind": "not",
        "child": {"kind": "cross", "field": "close", "direction": "above", "value": 10000},
    }
    pipeline.add_candles(1, [10500.0] * 30, T0 - FIVE)
    pipeline.add_alert(1, not_cross, cooldown_minutes=0)

    async def scenario():
        first = await pipeline.scheduler.run_cycle(T0)
        pipeline.source.extend(build_candles(1, [10600.0], T0))
        second = await pipeline.scheduler.run_cycle(T0 + timedelta(minutes=1))
        return first, second

    first, second = asyncio.run(scenario())
    assert first.unit(1).evaluated == [1]
    assert first.fired == []
    # Con snapshot anterior no hay cruce y la negación se cumple
    assert second.fired == [1]


def test_negated_ratio_with_zero_base_does_not_fire(pipeline) -> None:
    not_spike = {
        "kind": "not",
        "child": {"kind": "ratio", "field": "volume", "base": "volume_ma", "multiple": 2, "op": ">="},
    }
    pipeline.add_candles(1, [10500.0] * 30, T0 - FIVE, volumes=[0.0] * 30)
    pipeline.add_alert(1, not_spike)

    report = asyncio.run(pipeline.scheduler.run_cycle(T0))

    assert report.unit(1).evaluated == [1]
    assert report.fired == []
    assert pipeline.sink.events == []


def test_watched_symbol_without_alerts_refreshes_snapshot(pipeline) -> None:
    pipeline.add_candles(1, [100.0] * 30, T0 - FIVE)

    report = asyncio.run(pipeline.scheduler.run_cycle(T0))

    assert report.unit(1, "5m").ok
    latest = pipeline.container.snapshot_store.latest(1, "5m")
    assert latest is not None
    assert latest.price == 100.0


def test_watch_with_alerts_disabled_gets_no_unit(pipeline) -> None:
    pipeline.add_symbol(2, name="SK hynix", code="000660")
    pipeline.add_symbol(3, name="Ecopro BM", code="247540")
    watchlist = pipeline.container.watchlist_repository
    watchlist.watch(7, 3, alert_enabled=False)
    watchlist.watch(8, 2, alert_enabled=False)
    for symbol_id in (1, 2, 3):
        pipeline.add_candles(symbol_id, [100.0] * 30, T0 - FIVE)

    report = asyncio.run(pipeline.scheduler.run_cycle(T0))

    # 2 sigue vigilado por el usuario 7 con alertas habilitadas
    assert sorted(unit.symbol_id for unit in report.units) == [1, 2]
    assert report.unit(3) is None


def test_busy_alert_is_skipped(pipeline) -> None:
    pipeline.add_candles(1, [10500.0] * 30, T0 - FIVE)
    pipeline.add_alert(1, PRICE_ABOVE_10000)
    locks = pipeline.container.state_machine.locks

    async def scenario():
        async with locks.get(1):
            return await pipeline.scheduler.run_cycle(T0)

    report = asyncio.run(scenario())
    assert report.fired == []
    assert report.unit(1).skipped == [1]


def test_locks_of_inactive_alerts_are_released(pipeline) -> None:
    pipeline.add_candles(1, [9000.0] * 30, T0 - FIVE)
    for alert_id in (1, 2, 3):
        pipeline.add_alert(alert_id, PRICE_ABOVE_10000)
    locks = pipeline.container.state_machine.locks

    async def scenario():
        scheduler = pipeline.scheduler
        await scheduler.run_cycle(T0)
        after_first = sorted(a for a in (1, 2, 3) if a in locks)

        await pipeline.alerts.set_active(2, False)
        await pipeline.alerts.set_active(3, False)
        async with locks.get(3):
            await scheduler.run_cycle(T0 + timedelta(minutes=1))
            held = (1 in locks, 2 in locks, 3 in locks)

        await scheduler.run_cycle(T0 + timedelta(minutes=2))
        return after_first, held, len(locks)

    after_first, held, remaining = asyncio.run(scenario())
    assert after_first == [1, 2, 3]
    # Un lock tomado no se descarta aunque la alerta ya no esté activa
    assert held == (True, False, True)
    assert remaining == 1


def test_unit_error_is_isolated(pipeline, monkeypatch) -> None:
    pipeline.add_symbol(2, name="SK hynix", code="000660")
    pipeline.add_candles(1, [10500.0] * 30, T0 - FIVE)
    pipeline.add_candles(2, [10500.0] * 30, T0 - FIVE)
    pipeline.add_alert(1, PRICE_ABOVE_10000)
    pipeline.add_alert(2, PRICE_ABOVE_10000, symbol_id=2)

    source = pipeline.source
    original = source.get_candles

    async def flaky(symbol_id, timeframe, start, end):
        if symbol_id == 1:
            raise ConnectionError("candle store reset")
        return await original(symbol_id, timeframe, start, end)

    monkeypatch.setattr(source, "get_candles", flaky)
    report = asyncio.run(pipeline.scheduler.run_cycle(T0))

    assert report.unit(1).status == UnitStatus.ERROR
    assert "candle store reset" in report.unit(1).error
    assert report.fired == [2]


def test_shutdown_stops_new_cycles(pipeline) -> None:
    pipeline.add_candles(1, [10500.0] * 30, T0 - FIVE)
    pipeline.add_alert(1, PRICE_ABOVE_10000)

    async def scenario():
        scheduler = pipeline.scheduler
        await scheduler.start()
        assert scheduler.is_running
        await scheduler.stop(timeout=5)
        return await scheduler.run_cycle(T0), scheduler

    report, scheduler = asyncio.run(scenario())
    assert report.aborted
    assert not scheduler.is_running


def test_retention_purge(pipeline) -> None:
    pipeline.add_candles(1, [10500.0] * 30, T0 - FIVE)
    pipeline.add_alert(1, PRICE_ABOVE_10000)

    async def scenario():
        await pipeline.scheduler.run_cycle(T0)
        kept = await pipeline.container.purge_usecase.execute(T0 + timedelta(days=30))
        purged = await pipeline.container.purge_usecase.execute(T0 + timedelta(days=91))
        return kept, purged, await pipeline.logs.find_by_alert(1)

    kept, purged, remaining = asyncio.run(scenario())
    assert kept == 0
    assert purged == 1
    assert remaining == []
    assert asyncio.run(pipeline.alerts.get(1)).trigger_count == 1


def test_status_reports_last_cycle(pipeline) -> None:
    pipeline.add_candles(1, [10500.0] * 30, T0 - FIVE)
    pipeline.add_alert(1, PRICE_ABOVE_10000)

    scheduler = pipeline.scheduler
    asyncio.run(scheduler.run_cycle(T0))
    status = scheduler.status()

    assert status["cycles_completed"] == 1
    assert status["last_cycle"]["fired"] == [1]
    assert status["running"] is False
