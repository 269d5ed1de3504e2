"""
StockWatch – Candle ORM Model
===============================
Modelo para la tabla `candles` (Candle Store).

Una fila por (symbol_id, timeframe, timestamp). El índice único cubre
la única consulta del pipeline: rango temporal de una serie.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import BigInteger, DateTime, ForeignKey, Integer, Numeric, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from stockwatch.infrastructure.persistence.database import Base


class CandleModel(Base):

    __tablename__ = "candles"

    id: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True
    )
    symbol_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("symbols.id", ondelete="CASCADE"), nullable=False
    )
    timeframe: Mapped[str] = mapped_column(String(8), nullable=False)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, comment="Apertura de la vela (UTC)"
    )

    # ─── OHLCV ────────────────────────────────────────────────────────
    open: Mapped[float] = mapped_column(Numeric(20, 4, asdecimal=False), nullable=False)
    high: Mapped[float] = mapped_column(Numeric(20, 4, asdecimal=False), nullable=False)
    low: Mapped[float] = mapped_column(Numeric(20, 4, asdecimal=False), nullable=False)
    close: Mapped[float] = mapped_column(Numeric(20, 4, asdecimal=False), nullable=False)
    volume: Mapped[float] = mapped_column(Numeric(24, 4, asdecimal=False), nullable=False, default=0)

    __table_args__ = (
        UniqueConstraint("symbol_id", "timeframe", "timestamp", name="uq_candles_series_ts"),
    )

    def __repr__(self) -> str:
        return f"<Candle(symbol_id={self.symbol_id}, tf={self.timeframe}, ts={self.timestamp})>"
