"""Mappers entidad ↔ modelo ORM."""
from stockwatch.infrastructure.persistence.mappers.alert_mapper import AlertLogMapper, AlertMapper
from stockwatch.infrastructure.persistence.mappers.market_mapper import CandleMapper, SymbolMapper

__all__ = ["AlertMapper", "AlertLogMapper", "CandleMapper", "SymbolMapper"]
