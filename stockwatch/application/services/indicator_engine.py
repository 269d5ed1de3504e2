"""
StockWatch – Indicator Engine
===============================
Deriva un IndicatorSnapshot a partir de la ventana de velas que termina
en `as_of`.

FLUJO:
  ICandleSource.get_candles(symbol, tf, from, as_of)   (con timeout)
       → filtrar timestamp <= as_of, ordenar
       → últimas `window_size` velas
       → validar mínimo de velas (InsufficientDataError)
       → IndicatorCalculator.compute_all(window)
       → IndicatorSnapshot inmutable

RANGO PEDIDO AL CANDLE STORE:
  from = as_of − window_size × duración(tf) × lookback_factor
  El factor cubre noches, fines de semana y feriados, en los que no
  hay velas.

DETERMINISMO:
  El snapshot depende solo de la ventana de velas y de `as_of`; la misma
  ventana produce los mismos valores. Por eso se puede cachear por
  (symbol_id, timeframe, as_of) dentro de un ciclo (SnapshotCache).
"""

from __future__ import annotations

import asyncio
from datetime import datetime
from typing import Dict, Iterable, Optional, Tuple

from stockwatch.application.ports.candle_source import ICandleSource
from stockwatch.domain.entities.indicator_snapshot import IndicatorSnapshot
from stockwatch.domain.exceptions.domain_errors import (
    CandleFetchTimeoutError,
    InsufficientDataError,
)
from stockwatch.domain.services.indicator_calculator import IndicatorCalculator
from stockwatch.domain.value_objects.indicator_fields import required_candles
from stockwatch.domain.value_objects.timeframe import ensure_utc, timeframe_delta
from stockwatch.shared.logging.logger import get_logger

logger = get_logger("indicator_engine")

SnapshotKey = Tuple[int, str, datetime]


class IndicatorEngine:
    """Cálculo de snapshots bajo demanda, sin estado entre llamadas."""

    def __init__(
        self,
        candle_source: ICandleSource,
        calculator: Optional[IndicatorCalculator] = None,
        window_size: int = 200,
        min_candles: int = 20,
        lookback_factor: float = 3.0,
        fetch_timeout: float = 10.0,
    ) -> None:
        self._candle_source = candle_source
        self._calculator = calculator or IndicatorCalculator()
        self._window_size = window_size
        self._min_candles = min_candles
        self._lookback_factor = lookback_factor
        self._fetch_timeout = fetch_timeout

    @property
    def min_candles(self) -> int:
        return self._min_candles

    def required_candles(self, fields: Optional[Iterable[str]] = None) -> int:
        """Velas necesarias para los campos pedidos."""
        return required_candles(list(fields) if fields else None, self._min_candles)

    async def compute_snapshot(
        self,
        symbol_id: int,
        timeframe: str,
        as_of: datetime,
        required_fields: Optional[Iterable[str]] = None,
    ) -> IndicatorSnapshot:
        """
        Calcula el snapshot de (symbol_id, timeframe) a la fecha `as_of`.

        Raises:
            InsufficientDataError: menos velas que las requeridas.
            CandleFetchTimeoutError: el Candle Store no respondió a tiempo.
        """
        as_of = ensure_utc(as_of)
        required = self.required_candles(required_fields)
        start = as_of - timeframe_delta(timeframe) * self._window_size * self._lookback_factor

        try:
            candles = await asyncio.wait_for(
                self._candle_source.get_candles(symbol_id, timeframe, start, as_of),
                timeout=self._fetch_timeout,
            )
        except asyncio.TimeoutError:
            raise CandleFetchTimeoutError(
                f"Timeout ({self._fetch_timeout:.1f}s) leyendo velas de {symbol_id}/{timeframe}",
                symbol_id=symbol_id,
                timeout=self._fetch_timeout,
            ) from None

        window = sorted(
            (c for c in candles if ensure_utc(c.timestamp) <= as_of),
            key=lambda c: ensure_utc(c.timestamp),
        )[-self._window_size:]

        if len(window) < required:
            raise InsufficientDataError(
                f"{symbol_id}/{timeframe}: {len(window)} velas, se requieren {required}",
                required=required,
                available=len(window),
            )

        values = self._calculator.compute_all(window)
        snapshot = IndicatorSnapshot.create(
            symbol_id=symbol_id,
            timeframe=timeframe,
            as_of=as_of,
            candle_timestamp=ensure_utc(window[-1].timestamp),
            candle_count=len(window),
            values=values,
        )
        logger.debug(
            "Snapshot %s calculado con %d velas (close=%s)",
            snapshot.ref, len(window), values.get("close"),
        )
        return snapshot


class SnapshotCache:
    """
    Caché de snapshots válida durante UN ciclo.

    Varias alertas sobre el mismo (símbolo, timeframe) comparten un único
    cálculo. Un lock por clave evita cálculos duplicados si dos
    consumidores piden la misma clave a la vez. Los fallos no se cachean.
    """

    def __init__(self, engine: IndicatorEngine) -> None:
        self._engine = engine
        self._snapshots: Dict[SnapshotKey, IndicatorSnapshot] = {}
        self._locks: Dict[SnapshotKey, asyncio.Lock] = {}
        self.computed = 0

    async def get(self, symbol_id: int, timeframe: str, as_of: datetime) -> IndicatorSnapshot:
        key = (symbol_id, timeframe, ensure_utc(as_of))
        cached = self._snapshots.get(key)
        if cached is not None:
            return cached

        lock = self._locks.setdefault(key, asyncio.Lock())
        async with lock:
            cached = self._snapshots.get(key)
            if cached is not None:
                return cached
            snapshot = await self._engine.compute_snapshot(symbol_id, timeframe, key[2])
            self._snapshots[key] = snapshot
            self.computed += 1
            return snapshot

    def __len__(self) -> int:
        return len(self._snapshots)
