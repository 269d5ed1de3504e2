"""
AlertLog Repository Implementation.

Historial de disparos sobre SQLAlchemy. Las filas las crea
AlertRepositoryImpl.record_fire; aquí solo se completa la entrega,
se consulta y se purga.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from sqlalchemy import delete, desc, select, update

from stockwatch.domain.entities.alert_log import AlertLog, NotificationOutcome
from stockwatch.domain.repositories.alert_log_repository import IAlertLogRepository
from stockwatch.domain.value_objects.timeframe import ensure_utc
from stockwatch.infrastructure.persistence.database import DatabaseManager
from stockwatch.infrastructure.persistence.mappers.alert_mapper import AlertLogMapper
from stockwatch.infrastructure.persistence.models import AlertLogModel, AlertModel
from stockwatch.shared.logging.logger import get_logger

logger = get_logger("infrastructure.alert_log_repository")


class AlertLogRepositoryImpl(IAlertLogRepository):

    def __init__(self, db: DatabaseManager):
        self._db = db

    async def update_outcome(
        self,
        log_id: int,
        outcome: NotificationOutcome,
        channel: Optional[str] = None,
        error: Optional[str] = None,
        sent_at: Optional[datetime] = None,
    ) -> None:
        async with self._db.session() as session:
            await session.execute(
                update(AlertLogModel)
                .where(AlertLogModel.id == log_id)
                .values(
                    notification_outcome=outcome.value,
                    notification_channel=channel,
                    notification_error=error,
                    sent_at=sent_at,
                )
            )
            await session.commit()

    async def find_by_alert(self, alert_id: int, limit: int = 50) -> List[AlertLog]:
        async with self._db.session() as session:
            result = await session.execute(
                select(AlertLogModel)
                .where(AlertLogModel.alert_id == alert_id)
                .order_by(desc(AlertLogModel.fired_at), desc(AlertLogModel.id))
                .limit(limit)
            )
            return [AlertLogMapper.to_entity(m) for m in result.scalars().all()]

    async def find_by_user(self, user_id: int, limit: int = 50) -> List[AlertLog]:
        async with self._db.session() as session:
            result = await session.execute(
                select(AlertLogModel)
                .join(AlertModel, AlertModel.id == AlertLogModel.alert_id)
                .where(AlertModel.user_id == user_id)
                .order_by(desc(AlertLogModel.fired_at), desc(AlertLogModel.id))
                .limit(limit)
            )
            return [AlertLogMapper.to_entity(m) for m in result.scalars().all()]

    async def find_recent(self, limit: int = 50) -> List[AlertLog]:
        async with self._db.session() as session:
            result = await session.execute(
                select(AlertLogModel)
                .order_by(desc(AlertLogModel.fired_at), desc(AlertLogModel.id))
                .limit(limit)
            )
            return [AlertLogMapper.to_entity(m) for m in result.scalars().all()]

    async def purge_older_than(self, cutoff: datetime) -> int:
        async with self._db.session() as session:
            result = await session.execute(
                delete(AlertLogModel).where(AlertLogModel.fired_at < ensure_utc(cutoff))
            )
            await session.commit()
            deleted = result.rowcount or 0
        if deleted:
            logger.info("Purga de historial: %d filas anteriores a %s", deleted, cutoff.isoformat())
        return deleted
