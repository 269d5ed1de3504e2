"""Implementaciones SQLAlchemy de los repositorios del dominio."""
from stockwatch.infrastructure.persistence.repositories.alert_log_repository_impl import (
    AlertLogRepositoryImpl,
)
from stockwatch.infrastructure.persistence.repositories.alert_repository_impl import (
    AlertRepositoryImpl,
)
from stockwatch.infrastructure.persistence.repositories.market_repository_impl import (
    CandleRepositoryImpl,
    SymbolRepositoryImpl,
    WatchlistRepositoryImpl,
)

__all__ = [
    "AlertRepositoryImpl",
    "AlertLogRepositoryImpl",
    "CandleRepositoryImpl",
    "SymbolRepositoryImpl",
    "WatchlistRepositoryImpl",
]
