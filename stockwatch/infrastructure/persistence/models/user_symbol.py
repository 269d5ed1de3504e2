"""
StockWatch – UserSymbol ORM Model
===================================
Watchlist: qué símbolos sigue cada usuario.
"""

from __future__ import annotations

from sqlalchemy import Boolean, ForeignKey, Integer, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from stockwatch.infrastructure.persistence.database import Base


class UserSymbolModel(Base):

    __tablename__ = "user_symbols"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    symbol_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("symbols.id", ondelete="CASCADE"), nullable=False
    )
    alert_enabled: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    __table_args__ = (
        UniqueConstraint("user_id", "symbol_id", name="uq_user_symbols_user_symbol"),
    )
