"""
StockWatch – Domain Entity: IndicatorSnapshot
===============================================
Fotografía inmutable de los indicadores de un símbolo/timeframe.

DECISIONES DE DISEÑO:
- frozen=True y `values` como MappingProxyType → nunca se muta tras crearse.
  Un nuevo as_of produce un snapshot nuevo.
- Derivado 100% de la ventana de velas que termina en `as_of`: misma
  ventana → mismos valores (reproducible y cacheable).
- `ref` es determinista y se guarda en el AlertLog para trazar qué
  snapshot disparó una alerta.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional


@dataclass(frozen=True, slots=True)
class IndicatorSnapshot:
    symbol_id: int
    timeframe: str
    as_of: datetime                 # instante de evaluación (UTC)
    candle_timestamp: datetime      # apertura de la última vela usada
    candle_count: int
    values: Mapping[str, Optional[float]]

    @classmethod
    def create(
        cls,
        symbol_id: int,
        timeframe: str,
        as_of: datetime,
        candle_timestamp: datetime,
        candle_count: int,
        values: Dict[str, Optional[float]],
    ) -> "IndicatorSnapshot":
        return cls(
            symbol_id=symbol_id,
            timeframe=timeframe,
            as_of=as_of,
            candle_timestamp=candle_timestamp,
            candle_count=candle_count,
            values=MappingProxyType(dict(values)),
        )

    @property
    def ref(self) -> str:
        return f"{self.symbol_id}:{self.timeframe}:{self.as_of.isoformat()}"

    @property
    def price(self) -> Optional[float]:
        return self.values.get("close")

    def get(self, field: str) -> Optional[float]:
        return self.values.get(field)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ref": self.ref,
            "symbol_id": self.symbol_id,
            "timeframe": self.timeframe,
            "as_of": self.as_of.isoformat(),
            "candle_timestamp": self.candle_timestamp.isoformat(),
            "candle_count": self.candle_count,
            "values": dict(self.values),
        }
