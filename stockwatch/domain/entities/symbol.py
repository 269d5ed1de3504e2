"""
StockWatch – Domain Entity: Symbol
====================================
Instrumento listado (KOSPI / KOSDAQ). Identidad inmutable; el pipeline
solo lo lee para componer el mensaje de notificación.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True, slots=True)
class Symbol:
    id: int
    market: str                  # "KOSPI" | "KOSDAQ"
    code: str                    # e.g. "005930"
    name: str                    # nombre para mostrar
    provider_ticker: Optional[str] = None
    is_active: bool = True

    @property
    def display_name(self) -> str:
        return f"{self.name} ({self.code})"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "market": self.market,
            "code": self.code,
            "name": self.name,
            "provider_ticker": self.provider_ticker,
            "is_active": self.is_active,
        }
