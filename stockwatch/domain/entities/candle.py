"""
StockWatch – Domain Entity: Candle
====================================
Vela OHLCV inmutable leída del Candle Store.

Decisiones de diseño:
- frozen=True → inmutable, el pipeline solo lee ventanas históricas.
- Se usa dataclass por rendimiento (más ligera que Pydantic para hot-path).
- Única por (symbol_id, timeframe, timestamp); timestamps estrictamente
  crecientes dentro de una serie.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True, slots=True)
class Candle:
    """Vela OHLCV con timestamp de apertura (UTC)."""

    symbol_id: int
    timeframe: str       # "1m" | "5m" | ... | "1w"
    timestamp: datetime  # aware UTC
    open: float
    high: float
    low: float
    close: float
    volume: float

    def to_dict(self) -> dict:
        """Serialización para API."""
        return {
            "symbol_id": self.symbol_id,
            "timeframe": self.timeframe,
            "timestamp": self.timestamp.isoformat(),
            "open": self.open,
            "high": self.high,
            "low": self.low,
            "close": self.close,
            "volume": self.volume,
        }
