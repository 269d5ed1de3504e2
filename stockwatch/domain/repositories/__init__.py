"""Domain repository interfaces."""
from stockwatch.domain.repositories.alert_repository import IAlertRepository
from stockwatch.domain.repositories.alert_log_repository import IAlertLogRepository
from stockwatch.domain.repositories.watchlist_repository import (
    ISymbolRepository,
    IWatchlistRepository,
)

__all__ = [
    "IAlertRepository",
    "IAlertLogRepository",
    "ISymbolRepository",
    "IWatchlistRepository",
]
