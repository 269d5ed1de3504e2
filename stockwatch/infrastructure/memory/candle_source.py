"""
StockWatch – In-Memory Candle Source
======================================
Candle Store en memoria: una serie ordenada por (símbolo, timeframe).
Rechaza duplicados y timestamps no crecientes, igual que el store real.
"""

from __future__ import annotations

import bisect
from datetime import datetime
from typing import Dict, Iterable, List, Tuple

from stockwatch.application.ports.candle_source import ICandleSource
from stockwatch.domain.entities.candle import Candle
from stockwatch.domain.value_objects.timeframe import ensure_utc


class InMemoryCandleSource(ICandleSource):

    def __init__(self) -> None:
        self._series: Dict[Tuple[int, str], List[Candle]] = {}
        self.calls = 0

    def add(self, candle: Candle) -> None:
        series = self._series.setdefault((candle.symbol_id, candle.timeframe), [])
        if series and ensure_utc(candle.timestamp) <= ensure_utc(series[-1].timestamp):
            raise ValueError(
                f"Vela fuera de orden o duplicada: {candle.symbol_id}/{candle.timeframe} "
                f"@ {candle.timestamp.isoformat()}"
            )
        series.append(candle)

    def extend(self, candles: Iterable[Candle]) -> None:
        for candle in candles:
            self.add(candle)

    async def get_candles(
        self,
        symbol_id: int,
        timeframe: str,
        start: datetime,
        end: datetime,
    ) -> List[Candle]:
        self.calls += 1
        series = self._series.get((symbol_id, timeframe), [])
        timestamps = [ensure_utc(c.timestamp) for c in series]
        lo = bisect.bisect_left(timestamps, ensure_utc(start))
        hi = bisect.bisect_right(timestamps, ensure_utc(end))
        return list(series[lo:hi])
