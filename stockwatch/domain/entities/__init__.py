"""Domain entities."""
from stockwatch.domain.entities.alert import Alert, AlertState
from stockwatch.domain.entities.alert_log import AlertLog, NotificationOutcome
from stockwatch.domain.entities.candle import Candle
from stockwatch.domain.entities.indicator_snapshot import IndicatorSnapshot
from stockwatch.domain.entities.symbol import Symbol

__all__ = [
    "Alert",
    "AlertState",
    "AlertLog",
    "NotificationOutcome",
    "Candle",
    "IndicatorSnapshot",
    "Symbol",
]
