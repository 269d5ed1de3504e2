"""
StockWatch – Application Port: Candle Source
==============================================
Acceso de solo lectura al Candle Store (lo llena el colector externo).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List

from stockwatch.domain.entities.candle import Candle


class ICandleSource(ABC):
    """
    IMPLEMENTACIONES:
    - CandleRepositoryImpl (SQLAlchemy, tabla candles)
    - InMemoryCandleSource (tests / modo sin base de datos)
    """

    @abstractmethod
    async def get_candles(
        self,
        symbol_id: int,
        timeframe: str,
        start: datetime,
        end: datetime,
    ) -> List[Candle]:
        """
        Velas con start <= timestamp <= end.

        Contrato: ordenadas por timestamp ascendente, sin duplicados.
        Puede devolver menos velas de las esperadas (huecos de mercado).
        """
        pass
