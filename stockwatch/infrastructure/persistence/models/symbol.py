"""
StockWatch – Symbol ORM Model
===============================
Modelo para la tabla `symbols` (catálogo de instrumentos).

- (market, code) es UNIQUE: "KOSPI" + "005930".
- provider_ticker es el identificador del proveedor de datos de mercado.
- is_active permite retirar símbolos sin borrarlos.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from stockwatch.infrastructure.persistence.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SymbolModel(Base):
    """Modelo ORM para símbolos listados."""

    __tablename__ = "symbols"

    # ─── Columnas ─────────────────────────────────────────────────────
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    market: Mapped[str] = mapped_column(
        String(16), nullable=False, comment="KOSPI | KOSDAQ"
    )
    code: Mapped[str] = mapped_column(String(16), nullable=False)
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    provider_ticker: Mapped[str | None] = mapped_column(String(32), default=None)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, nullable=False
    )

    __table_args__ = (
        UniqueConstraint("market", "code", name="uq_symbols_market_code"),
    )

    def __repr__(self) -> str:
        return f"<Symbol(id={self.id}, market='{self.market}', code='{self.code}')>"
