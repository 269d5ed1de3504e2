"""
StockWatch – Domain Layer
===========================
Núcleo del pipeline de alertas.

Este módulo contiene:
- entities/: Alert, AlertLog, Candle, IndicatorSnapshot, Symbol
- value_objects/: árbol de condiciones, catálogo de indicadores, timeframes
- services/: IndicatorCalculator, ConditionEvaluator (puros)
- repositories/: Interfaces abstractas (ABCs)
- events/: Eventos de dominio
- exceptions/: Excepciones de dominio

REGLA DE DEPENDENCIA:
Este módulo NO puede importar de infrastructure/, presentation/ ni
application/. La única librería externa admitida es pydantic, para
validar el JSON de las condiciones.
"""

from stockwatch.domain.entities import (
    Alert,
    AlertLog,
    AlertState,
    Candle,
    IndicatorSnapshot,
    NotificationOutcome,
    Symbol,
)

__all__ = [
    "Alert",
    "AlertLog",
    "AlertState",
    "Candle",
    "IndicatorSnapshot",
    "NotificationOutcome",
    "Symbol",
]
