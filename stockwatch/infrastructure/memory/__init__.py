"""Implementaciones en memoria (modo sin base de datos y tests)."""
from stockwatch.infrastructure.memory.candle_source import InMemoryCandleSource
from stockwatch.infrastructure.memory.repositories import (
    InMemoryAlertLogRepository,
    InMemoryAlertRepository,
    InMemorySymbolRepository,
    InMemoryWatchlistRepository,
)

__all__ = [
    "InMemoryCandleSource",
    "InMemoryAlertLogRepository",
    "InMemoryAlertRepository",
    "InMemorySymbolRepository",
    "InMemoryWatchlistRepository",
]
