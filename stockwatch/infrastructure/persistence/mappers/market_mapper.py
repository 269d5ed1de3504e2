"""Mappers de datos de mercado: Candle y Symbol."""

from __future__ import annotations

from typing import Any, Dict

from stockwatch.domain.entities.candle import Candle
from stockwatch.domain.entities.symbol import Symbol
from stockwatch.domain.value_objects.timeframe import ensure_utc


class CandleMapper:

    @staticmethod
    def to_entity(model) -> Candle:
        return Candle(
            symbol_id=model.symbol_id,
            timeframe=model.timeframe,
            timestamp=ensure_utc(model.timestamp),
            open=float(model.open),
            high=float(model.high),
            low=float(model.low),
            close=float(model.close),
            volume=float(model.volume),
        )

    @staticmethod
    def to_model(candle: Candle) -> Dict[str, Any]:
        return {
            "symbol_id": candle.symbol_id,
            "timeframe": candle.timeframe,
            "timestamp": ensure_utc(candle.timestamp),
            "open": candle.open,
            "high": candle.high,
            "low": candle.low,
            "close": candle.close,
            "volume": candle.volume,
        }


class SymbolMapper:

    @staticmethod
    def to_entity(model) -> Symbol:
        return Symbol(
            id=model.id,
            market=model.market,
            code=model.code,
            name=model.name,
            provider_ticker=model.provider_ticker,
            is_active=bool(model.is_active),
        )
