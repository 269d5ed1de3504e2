from datetime import timedelta

import pytest
from fastapi.testclient import TestClient

from factories import build_candles, make_alert
from stockwatch.container import create_test_container
from stockwatch.domain.entities.symbol import Symbol
from stockwatch.domain.value_objects.timeframe import utc_now
from stockwatch.main import create_app


@pytest.fixture
def container():
    c = create_test_container()
    c.symbol_repository.add(Symbol(id=1, market="KOSPI", code="005930", name="Samsung Electronics"))
    c.watchlist_repository.watch(7, 1)
    return c


@pytest.fixture
def client(container):
    app = create_app(container)
    with TestClient(app) as test_client:
        yield test_client


def seed_firing_alert(container) -> None:
    end = utc_now() - timedelta(minutes=1)
    container.candle_source.extend(build_candles(1, [10500.0] * 30, end))
    container.alert_repository.add(
        make_alert(1, [{"type": "price", "operator": ">", "value": 10000}])
    )


def test_health(client) -> None:
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "service": "stockwatch", "scheduler_running": False}


def test_status_before_any_cycle(client) -> None:
    data = client.get("/api/scheduler/status").json()
    assert data["running"] is False
    assert data["cycles_completed"] == 0


def test_manual_cycle_fires_and_logs(client, container) -> None:
    seed_firing_alert(container)

    report = client.post("/api/scheduler/run").json()
    assert report["fired"] == [1]
    assert report["aborted"] is False

    alerts = client.get("/api/users/7/alerts").json()
    assert alerts["count"] == 1
    alert = alerts["alerts"][0]
    assert alert["trigger_count"] == 1
    assert alert["state"] == "COOLDOWN"

    logs = client.get("/api/alerts/1/logs").json()
    assert logs["count"] == 1
    entry = logs["logs"][0]
    # El AlertListener del lifespan consume alert_fired
    assert entry["notification_outcome"] == "SENT"
    assert entry["snapshot"]["conditions_met"] == ["close > 10000"]

    by_user = client.get("/api/users/7/alert-logs").json()
    assert [l["id"] for l in by_user["logs"]] == [entry["id"]]

    # Segundo ciclo dentro del cooldown: no vuelve a disparar
    again = client.post("/api/scheduler/run").json()
    assert again["fired"] == []


def test_indicators_after_cycle(client, container) -> None:
    seed_firing_alert(container)
    client.post("/api/scheduler/run")

    data = client.get("/api/indicators/1", params={"timeframe": "5m"}).json()
    assert data["symbol_id"] == 1
    assert data["candle_count"] == 30
    assert data["values"]["close"] == 10500.0


def test_indicators_without_data(client) -> None:
    data = client.get("/api/indicators/1").json()
    assert data == {"symbol_id": 1, "timeframe": "5m", "status": "no_data"}


def test_indicators_invalid_timeframe(client) -> None:
    data = client.get("/api/indicators/1", params={"timeframe": "7m"}).json()
    assert "error" in data
    assert "5m" in data["available"]


def test_logs_limit_validation(client) -> None:
    assert client.get("/api/alerts/1/logs", params={"limit": 0}).status_code == 422
