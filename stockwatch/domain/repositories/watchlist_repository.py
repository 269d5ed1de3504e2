"""
StockWatch – Domain Repository Interfaces: Watchlist & Symbol
===============================================================
Datos de solo lectura para el pipeline: qué símbolos vigila algún
usuario y cómo se llaman.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Optional

from stockwatch.domain.entities.symbol import Symbol


class IWatchlistRepository(ABC):

    @abstractmethod
    async def list_watched_symbols(self) -> List[int]:
        """
        Ids de símbolos activos vigilados por al menos un usuario con
        alertas habilitadas para ese símbolo (alert_enabled).

        Raises:
            RegistryUnavailableError: si el almacén no responde.
        """
        pass


class ISymbolRepository(ABC):

    @abstractmethod
    async def get(self, symbol_id: int) -> Optional[Symbol]:
        pass
