"""
StockWatch – API Routes (FastAPI)
===================================
Endpoints REST de solo lectura sobre el pipeline de alertas.

Endpoints disponibles:
  GET  /api/health                          → health check
  GET  /api/scheduler/status                → estado del scheduler y último ciclo
  POST /api/scheduler/run                   → "check now": ejecuta un ciclo manual
  GET  /api/users/{user_id}/alerts          → alertas del usuario con su estado
  GET  /api/alerts/{alert_id}/logs          → historial de disparos de una alerta
  GET  /api/users/{user_id}/alert-logs      → historial de disparos del usuario
  GET  /api/indicators/{symbol_id}          → último snapshot de un símbolo
"""

from __future__ import annotations

from fastapi import APIRouter, Query

from stockwatch.domain.value_objects.timeframe import utc_now
from stockwatch.presentation.api.schemas import AlertLogsResponse, AlertsResponse, HealthResponse
from stockwatch.shared.config.settings import settings
from stockwatch.shared.logging.logger import get_logger

logger = get_logger("api.routes")

router = APIRouter()

# Referencias a componentes inyectados desde main.py
_scheduler = None
_alert_repository = None
_alert_log_repository = None
_snapshot_store = None


def init_routes(
    scheduler,
    alert_repository,
    alert_log_repository,
    snapshot_store=None,
) -> None:
    """Inyectar dependencias desde main.py al arrancar."""
    global _scheduler, _alert_repository, _alert_log_repository, _snapshot_store
    _scheduler = scheduler
    _alert_repository = alert_repository
    _alert_log_repository = alert_log_repository
    _snapshot_store = snapshot_store


# ─── Estado ────────────────────────────────────────────────────────────

@router.get("/api/health", response_model=HealthResponse)
async def health_check() -> dict:
    """Health check para monitoreo."""
    return {
        "status": "ok",
        "service": "stockwatch",
        "scheduler_running": bool(_scheduler and _scheduler.is_running),
    }


@router.get("/api/scheduler/status")
async def scheduler_status() -> dict:
    if _scheduler is None:
        return {"error": "Scheduler not ready"}
    return _scheduler.status()


@router.post("/api/scheduler/run")
async def run_cycle_now() -> dict:
    """Ejecuta un ciclo completo fuera del timer."""
    if _scheduler is None:
        return {"error": "Scheduler not ready"}
    report = await _scheduler.run_cycle()
    logger.info("Ciclo manual %d ejecutado (%d disparos)", report.cycle_id, len(report.fired))
    return report.to_dict()


# ─── Alertas ───────────────────────────────────────────────────────────

@router.get("/api/users/{user_id}/alerts", response_model=AlertsResponse)
async def user_alerts(user_id: int) -> dict:
    if _alert_repository is None:
        return {"user_id": user_id, "count": 0, "alerts": []}
    now = utc_now()
    alerts = await _alert_repository.list_by_user(user_id)
    return {
        "user_id": user_id,
        "count": len(alerts),
        "alerts": [a.to_dict(now=now) for a in alerts],
    }


@router.get("/api/alerts/{alert_id}/logs", response_model=AlertLogsResponse)
async def alert_logs(
    alert_id: int,
    limit: int = Query(default=50, ge=1, le=500, description="Número de disparos"),
) -> dict:
    if _alert_log_repository is None:
        return {"alert_id": alert_id, "count": 0, "logs": []}
    logs = await _alert_log_repository.find_by_alert(alert_id, limit=limit)
    return {"alert_id": alert_id, "count": len(logs), "logs": [l.to_dict() for l in logs]}


@router.get("/api/users/{user_id}/alert-logs", response_model=AlertLogsResponse)
async def user_alert_logs(
    user_id: int,
    limit: int = Query(default=50, ge=1, le=500, description="Número de disparos"),
) -> dict:
    if _alert_log_repository is None:
        return {"user_id": user_id, "count": 0, "logs": []}
    logs = await _alert_log_repository.find_by_user(user_id, limit=limit)
    return {"user_id": user_id, "count": len(logs), "logs": [l.to_dict() for l in logs]}


# ─── Indicadores ───────────────────────────────────────────────────────

@router.get("/api/indicators/{symbol_id}")
async def get_indicators(
    symbol_id: int,
    timeframe: str | None = Query(default=None, description="Timeframe (1m, 5m, 1h, 1d...)"),
) -> dict:
    """Último snapshot calculado por el scheduler para un símbolo."""
    if _snapshot_store is None:
        return {"error": "Snapshot store not ready"}
    tf = timeframe or settings.default_timeframe
    if tf not in settings.available_timeframes:
        return {
            "error": f"Timeframe '{tf}' no válido",
            "available": settings.available_timeframes,
        }
    snapshot = _snapshot_store.latest(symbol_id, tf)
    if snapshot is None:
        return {"symbol_id": symbol_id, "timeframe": tf, "status": "no_data"}
    return snapshot.to_dict()
