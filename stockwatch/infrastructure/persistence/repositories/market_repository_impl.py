"""
Market data repositories (SQLAlchemy).

- CandleRepositoryImpl: Candle Store de solo lectura para el pipeline
  (ICandleSource). `save_many` existe para el ingestor y los tests.
- WatchlistRepositoryImpl / SymbolRepositoryImpl: lecturas auxiliares.
"""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from stockwatch.application.ports.candle_source import ICandleSource
from stockwatch.domain.entities.candle import Candle
from stockwatch.domain.entities.symbol import Symbol
from stockwatch.domain.exceptions.domain_errors import RegistryUnavailableError
from stockwatch.domain.repositories.watchlist_repository import (
    ISymbolRepository,
    IWatchlistRepository,
)
from stockwatch.domain.value_objects.timeframe import ensure_utc
from stockwatch.infrastructure.persistence.database import DatabaseManager
from stockwatch.infrastructure.persistence.mappers.market_mapper import CandleMapper, SymbolMapper
from stockwatch.infrastructure.persistence.models import CandleModel, SymbolModel, UserSymbolModel
from stockwatch.shared.logging.logger import get_logger

logger = get_logger("infrastructure.market_repository")


class CandleRepositoryImpl(ICandleSource):

    def __init__(self, db: DatabaseManager):
        self._db = db

    async def get_candles(
        self,
        symbol_id: int,
        timeframe: str,
        start: datetime,
        end: datetime,
    ) -> List[Candle]:
        async with self._db.session() as session:
            result = await session.execute(
                select(CandleModel)
                .where(
                    CandleModel.symbol_id == symbol_id,
                    CandleModel.timeframe == timeframe,
                    CandleModel.timestamp >= ensure_utc(start),
                    CandleModel.timestamp <= ensure_utc(end),
                )
                .order_by(CandleModel.timestamp)
            )
            return [CandleMapper.to_entity(m) for m in result.scalars().all()]

    async def save_many(self, candles: Iterable[Candle]) -> int:
        models = [CandleModel(**CandleMapper.to_model(c)) for c in candles]
        async with self._db.session() as session:
            session.add_all(models)
            await session.commit()
        return len(models)


class WatchlistRepositoryImpl(IWatchlistRepository):

    def __init__(self, db: DatabaseManager):
        self._db = db

    async def list_watched_symbols(self) -> List[int]:
        try:
            async with self._db.session() as session:
                result = await session.execute(
                    select(UserSymbolModel.symbol_id)
                    .join(SymbolModel, SymbolModel.id == UserSymbolModel.symbol_id)
                    .where(SymbolModel.is_active.is_(True))
                    .where(UserSymbolModel.alert_enabled.is_(True))
                    .distinct()
                    .order_by(UserSymbolModel.symbol_id)
                )
                return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("Error listando watchlist: %s", e)
            raise RegistryUnavailableError(f"No se pudo leer la watchlist: {e}") from e


class SymbolRepositoryImpl(ISymbolRepository):

    def __init__(self, db: DatabaseManager):
        self._db = db

    async def get(self, symbol_id: int) -> Optional[Symbol]:
        async with self._db.session() as session:
            model = await session.get(SymbolModel, symbol_id)
            return SymbolMapper.to_entity(model) if model else None
