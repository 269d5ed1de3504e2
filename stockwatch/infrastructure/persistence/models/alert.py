"""
StockWatch – Alert ORM Model
==============================
Modelo para la tabla `alerts` (Alert Registry).

DECISIONES DE DISEÑO:

- JSON para condition: árbol etiquetado o lista heredada, se valida al
  evaluar (no al guardar), así una fila mal formada queda marcada en
  condition_error en lugar de romper el ciclo.
- El estado (ACTIVE/COOLDOWN/INACTIVE) NO es columna: se deriva de
  active + last_triggered_at + cooldown_minutes.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, List

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from stockwatch.infrastructure.persistence.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AlertModel(Base):

    __tablename__ = "alerts"

    # ─── Primary Key / Owner ──────────────────────────────────────────
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(Integer, nullable=False)
    symbol_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("symbols.id", ondelete="CASCADE"), nullable=False
    )

    # ─── Definición ───────────────────────────────────────────────────
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, default=None)
    condition: Mapped[Any] = mapped_column(JSON, nullable=False)
    condition_logic: Mapped[str] = mapped_column(
        String(8), nullable=False, default="all", comment="all | any (forma heredada)"
    )
    timeframe: Mapped[str] = mapped_column(String(8), nullable=False, default="5m")
    notification_channels: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    cooldown_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=60)

    # ─── Estado durable ───────────────────────────────────────────────
    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    trigger_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    last_triggered_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), default=None
    )
    condition_error: Mapped[str | None] = mapped_column(Text, default=None)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False
    )

    __table_args__ = (
        Index("idx_alerts_active_symbol", "active", "symbol_id", "timeframe"),
        Index("idx_alerts_user", "user_id"),
    )

    def __repr__(self) -> str:
        return f"<Alert(id={self.id}, user_id={self.user_id}, symbol_id={self.symbol_id})>"
