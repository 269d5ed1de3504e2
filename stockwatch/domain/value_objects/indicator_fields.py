"""
StockWatch – Value Object: Indicator Fields
=============================================
Catálogo de campos que un IndicatorSnapshot puede contener y el mínimo
de velas que necesita cada uno.

Un campo cuyo período excede la ventana disponible queda en None en el
snapshot; las condiciones que lo referencian no se cumplen.
"""

from __future__ import annotations

from typing import Dict, Iterable, Optional

# campo → velas mínimas
FIELD_MIN_CANDLES: Dict[str, int] = {
    # Vela actual
    "open": 1,
    "high": 1,
    "low": 1,
    "close": 1,
    "volume": 1,
    "change_pct": 2,
    # Medias
    "ma5": 5,
    "ma20": 20,
    "ma60": 60,
    "ma120": 120,
    "ema12": 12,
    "ema26": 26,
    # Osciladores
    "rsi": 15,
    "macd": 34,
    "macd_signal": 34,
    "macd_hist": 34,
    "stoch_k": 14,
    "stoch_d": 16,
    # Bandas / volatilidad
    "bb_upper": 20,
    "bb_middle": 20,
    "bb_lower": 20,
    "atr": 15,
    "volatility": 21,
    # Volumen
    "volume_ma": 20,
    "volume_ratio": 20,
    # Niveles S/R (swing de 3 velas)
    "support": 3,
    "resistance": 3,
}

INDICATOR_FIELDS = frozenset(FIELD_MIN_CANDLES)

# Nombres heredados (camelCase) de las condiciones almacenadas
LEGACY_ALIASES: Dict[str, str] = {
    "price": "close",
    "macdSignal": "macd_signal",
    "macdHist": "macd_hist",
    "bbUpper": "bb_upper",
    "bbMiddle": "bb_middle",
    "bbLower": "bb_lower",
    "stochK": "stoch_k",
    "stochD": "stoch_d",
    "volumeMA": "volume_ma",
    "volumeMa": "volume_ma",
    "volumeRatio": "volume_ratio",
    "changePct": "change_pct",
}


def normalize_field(name: str) -> Optional[str]:
    """Nombre canónico de un campo, o None si no existe."""
    canonical = LEGACY_ALIASES.get(name, name)
    return canonical if canonical in INDICATOR_FIELDS else None


def required_candles(fields: Optional[Iterable[str]], minimum: int) -> int:
    """Velas necesarias para producir los campos pedidos (al menos `minimum`)."""
    if not fields:
        return minimum
    return max([minimum] + [FIELD_MIN_CANDLES.get(f, minimum) for f in fields])
