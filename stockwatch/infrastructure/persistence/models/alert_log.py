"""
StockWatch – AlertLog ORM Model
=================================
Modelo para la tabla `alert_logs` (historial append-only de disparos).

snapshot (JSON) guarda precio, volumen, indicadores y condiciones
cumplidas en el momento del disparo.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict

from sqlalchemy import (
    JSON, BigInteger, DateTime, Enum as SQLEnum, ForeignKey, Index, Integer, String, Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from stockwatch.infrastructure.persistence.database import Base


class AlertLogModel(Base):

    __tablename__ = "alert_logs"

    id: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True
    )
    alert_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("alerts.id", ondelete="CASCADE"), nullable=False
    )
    symbol_id: Mapped[int] = mapped_column(Integer, nullable=False)
    fired_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    snapshot_ref: Mapped[str] = mapped_column(String(96), nullable=False)
    snapshot: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)

    # ─── Entrega ──────────────────────────────────────────────────────
    notification_outcome: Mapped[str] = mapped_column(
        SQLEnum("PENDING", "SENT", "FAILED", name="notification_outcome_enum"),
        nullable=False, default="PENDING",
    )
    notification_channel: Mapped[str | None] = mapped_column(String(32), default=None)
    notification_error: Mapped[str | None] = mapped_column(Text, default=None)
    sent_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), default=None)

    __table_args__ = (
        Index("idx_alert_logs_alert_time", "alert_id", "fired_at"),
        Index("idx_alert_logs_fired_at", "fired_at"),
    )

    def __repr__(self) -> str:
        return f"<AlertLog(id={self.id}, alert_id={self.alert_id}, outcome={self.notification_outcome})>"
