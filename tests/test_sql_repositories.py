import asyncio
from datetime import timedelta

import pytest

from factories import T0, build_candles, make_alert
from stockwatch.container import Container
from stockwatch.domain.entities.alert_log import AlertLog, NotificationOutcome
from stockwatch.domain.exceptions.domain_errors import AlertNotFoundError
from stockwatch.infrastructure.persistence.database import DatabaseManager
from stockwatch.infrastructure.persistence.models import SymbolModel, UserSymbolModel
from stockwatch.infrastructure.persistence.repositories import (
    AlertLogRepositoryImpl,
    AlertRepositoryImpl,
    CandleRepositoryImpl,
    SymbolRepositoryImpl,
    WatchlistRepositoryImpl,
)
from stockwatch.shared.config.settings import Settings


def sqlite_settings(**overrides) -> Settings:
    values = {
        "db_enabled": True,
        "db_url": "sqlite+aiosqlite://",
        "scheduler_enabled": False,
    }
    values.update(overrides)
    return Settings(**values)


async def open_db() -> DatabaseManager:
    db = DatabaseManager(sqlite_settings())
    await db.initialize()
    await db.create_all()
    async with db.session() as session:
        session.add_all([
            SymbolModel(id=1, market="KOSPI", code="005930", name="Samsung Electronics"),
            SymbolModel(id=2, market="KOSDAQ", code="247540", name="Ecopro BM"),
            SymbolModel(id=3, market="KOSPI", code="000000", name="Delisted", is_active=False),
            SymbolModel(id=4, market="KOSDAQ", code="091990", name="Celltrion Healthcare"),
        ])
        await session.flush()
        session.add_all([
            UserSymbolModel(user_id=7, symbol_id=1),
            UserSymbolModel(user_id=8, symbol_id=1),
            UserSymbolModel(user_id=8, symbol_id=2),
            UserSymbolModel(user_id=8, symbol_id=3),
            UserSymbolModel(user_id=9, symbol_id=1, alert_enabled=False),
            UserSymbolModel(user_id=9, symbol_id=4, alert_enabled=False),
        ])
        await session.commit()
    return db


def fired_log(alert_id: int, fired_at=T0) -> AlertLog:
    return AlertLog(
        alert_id=alert_id,
        symbol_id=1,
        fired_at=fired_at,
        snapshot_ref=f"1:5m:{fired_at.isoformat()}",
        snapshot={"price": 10500.0, "conditions_met": ["close > 10000"]},
    )


def test_database_url_defaults_to_mysql() -> None:
    db = DatabaseManager(Settings(db_url=None, db_user="u", db_password="p", db_host="h", db_name="n"))
    assert db.database_url == "mysql+aiomysql://u:p@h:3306/n?charset=utf8mb4"


def test_session_requires_initialize() -> None:
    db = DatabaseManager(sqlite_settings())

    async def scenario():
        async with db.session():
            pass

    with pytest.raises(RuntimeError):
        asyncio.run(scenario())


def test_alert_repository_roundtrip() -> None:
    async def scenario():
        db = await open_db()
        repo = AlertRepositoryImpl(db)
        try:
            condition = [{"type": "price", "operator": ">", "value": 10000}]
            await repo.add(make_alert(1, condition, notification_channels=("sms", "push")))
            await repo.add(make_alert(2, condition, active=False))
            await repo.add(make_alert(3, condition, user_id=8))

            active = await repo.list_active_alerts()
            stored = await repo.get(1)
            by_user = await repo.list_by_user(7)
            missing = await repo.get(99)
        finally:
            await db.close()
        return active, stored, by_user, missing

    active, stored, by_user, missing = asyncio.run(scenario())
    assert [a.id for a in active] == [1, 3]
    assert stored.condition == [{"type": "price", "operator": ">", "value": 10000}]
    assert stored.notification_channels == ("sms", "push")
    assert stored.trigger_count == 0
    assert [a.id for a in by_user] == [1, 2]
    assert missing is None


def test_record_fire_is_atomic_and_logged() -> None:
    async def scenario():
        db = await open_db()
        alerts = AlertRepositoryImpl(db)
        logs = AlertLogRepositoryImpl(db)
        try:
            await alerts.add(make_alert(1, {"kind": "threshold", "field": "close", "op": ">", "value": 1}))
            updated, log = await alerts.record_fire(1, T0, fired_log(1))
            await logs.update_outcome(log.id, NotificationOutcome.SENT, channel="sms", sent_at=T0)
            reloaded = await alerts.get(1)
            history = await logs.find_by_alert(1)
            by_user = await logs.find_by_user(7)
            other_user = await logs.find_by_user(8)
        finally:
            await db.close()
        return updated, log, reloaded, history, by_user, other_user

    updated, log, reloaded, history, by_user, other_user = asyncio.run(scenario())
    assert updated.trigger_count == 1
    assert log.id is not None
    assert reloaded.trigger_count == 1
    assert reloaded.last_triggered_at == T0
    assert reloaded.last_triggered_at.tzinfo is not None

    (row,) = history
    assert row.id == log.id
    assert row.fired_at == T0
    assert row.notification_outcome == NotificationOutcome.SENT
    assert row.notification_channel == "sms"
    assert row.snapshot["conditions_met"] == ["close > 10000"]
    assert [l.id for l in by_user] == [log.id]
    assert other_user == []


def test_record_fire_unknown_alert() -> None:
    async def scenario():
        db = await open_db()
        try:
            await AlertRepositoryImpl(db).record_fire(99, T0, fired_log(99))
        finally:
            await db.close()

    with pytest.raises(AlertNotFoundError):
        asyncio.run(scenario())


def test_toggle_and_condition_error() -> None:
    async def scenario():
        db = await open_db()
        repo = AlertRepositoryImpl(db)
        try:
            await repo.add(make_alert(1, {"kind": "bogus"}, trigger_count=5))
            disabled = await repo.set_active(1, False)
            await repo.set_condition_error(1, "condición inválida")
            flagged = await repo.get(1)
        finally:
            await db.close()
        return disabled, flagged

    disabled, flagged = asyncio.run(scenario())
    assert not disabled.active
    assert disabled.trigger_count == 5
    assert flagged.condition_error == "condición inválida"


def test_log_history_order_and_purge() -> None:
    async def scenario():
        db = await open_db()
        alerts = AlertRepositoryImpl(db)
        logs = AlertLogRepositoryImpl(db)
        try:
            await alerts.add(make_alert(1, {"kind": "threshold", "field": "close", "op": ">", "value": 1}, cooldown_minutes=0))
            for days in (100, 50, 1):
                fired_at = T0 - timedelta(days=days)
                await alerts.record_fire(1, fired_at, fired_log(1, fired_at))
            newest_first = await logs.find_by_alert(1)
            limited = await logs.find_recent(limit=1)
            purged = await logs.purge_older_than(T0 - timedelta(days=90))
            remaining = await logs.find_by_alert(1)
            alert = await alerts.get(1)
        finally:
            await db.close()
        return newest_first, limited, purged, remaining, alert

    newest_first, limited, purged, remaining, alert = asyncio.run(scenario())
    assert [l.fired_at for l in newest_first] == [
        T0 - timedelta(days=1), T0 - timedelta(days=50), T0 - timedelta(days=100),
    ]
    assert len(limited) == 1
    assert purged == 1
    assert len(remaining) == 2
    assert alert.trigger_count == 3


def test_candles_range_query() -> None:
    async def scenario():
        db = await open_db()
        candles = CandleRepositoryImpl(db)
        try:
            await candles.save_many(build_candles(1, [100.0 + i for i in range(10)], T0))
            await candles.save_many(build_candles(2, [5.0] * 10, T0))
            window = await candles.get_candles(1, "5m", T0 - timedelta(minutes=20), T0 - timedelta(minutes=5))
            other_tf = await candles.get_candles(1, "1h", T0 - timedelta(days=1), T0)
        finally:
            await db.close()
        return window, other_tf

    window, other_tf = asyncio.run(scenario())
    assert [c.close for c in window] == [105.0, 106.0, 107.0, 108.0]
    assert window[-1].timestamp == T0 - timedelta(minutes=5)
    assert window[-1].timestamp.tzinfo is not None
    assert other_tf == []


def test_watchlist_and_symbols() -> None:
    async def scenario():
        db = await open_db()
        try:
            watched = await WatchlistRepositoryImpl(db).list_watched_symbols()
            symbol = await SymbolRepositoryImpl(db).get(1)
        finally:
            await db.close()
        return watched, symbol

    watched, symbol = asyncio.run(scenario())
    # 3 está inactivo; 4 solo lo vigila un usuario con alertas deshabilitadas
    assert watched == [1, 2]
    assert symbol.display_name == "Samsung Electronics (005930)"


def test_pipeline_on_sql_backend() -> None:
    container = Container(settings=sqlite_settings())

    async def scenario():
        db = container.db_manager
        await db.initialize()
        await db.create_all()
        async with db.session() as session:
            session.add(SymbolModel(id=1, market="KOSPI", code="005930", name="Samsung Electronics"))
            await session.commit()
        await container.candle_source.save_many(
            build_candles(1, [10500.0] * 30, T0 - timedelta(minutes=5))
        )
        await container.alert_repository.add(
            make_alert(1, {"kind": "threshold", "field": "close", "op": ">", "value": 10000})
        )
        # Sin consumidores del tópico alert_fired la entrega falla, el disparo queda
        report = await container.scheduler.run_cycle(T0)
        logs = await container.alert_log_repository.find_by_alert(1)
        alert = await container.alert_repository.get(1)
        await db.close()
        return report, logs, alert

    report, logs, alert = asyncio.run(scenario())
    assert report.fired == [1]
    assert alert.trigger_count == 1
    (log,) = logs
    assert log.notification_outcome == NotificationOutcome.FAILED
    assert "alert_fired" in log.notification_error
