"""
StockWatch – Value Object: Timeframe
======================================
Marcos temporales soportados por el Candle Store y utilidades de tiempo.

Todos los instantes del pipeline son datetime aware en UTC. Los valores
naive que llegan de la base de datos se interpretan como UTC.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Dict

# Duración en segundos de cada timeframe
TIMEFRAME_SECONDS: Dict[str, int] = {
    "1m": 60,
    "5m": 300,
    "15m": 900,
    "30m": 1800,
    "1h": 3600,
    "4h": 14_400,
    "1d": 86_400,
    "1w": 604_800,
}


def timeframe_seconds(timeframe: str) -> int:
    """Segundos de un timeframe. ValueError si no es reconocido."""
    try:
        return TIMEFRAME_SECONDS[timeframe]
    except KeyError:
        raise ValueError(f"Timeframe '{timeframe}' no reconocido") from None


def timeframe_delta(timeframe: str) -> timedelta:
    return timedelta(seconds=timeframe_seconds(timeframe))


def ensure_utc(value: datetime) -> datetime:
    """Normaliza un datetime a aware UTC (naive → se asume UTC)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)
