"""
Alert Repository Implementation.

Implementación concreta del Alert Registry usando SQLAlchemy.
Implementa IAlertRepository del dominio.

Cada operación abre su propia sesión: el scheduler vive todo el
proceso y no debe retener una sesión entre ciclos.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from stockwatch.domain.entities.alert import Alert
from stockwatch.domain.entities.alert_log import AlertLog
from stockwatch.domain.exceptions.domain_errors import (
    AlertNotFoundError,
    RegistryUnavailableError,
)
from stockwatch.domain.repositories.alert_repository import IAlertRepository
from stockwatch.infrastructure.persistence.database import DatabaseManager
from stockwatch.infrastructure.persistence.mappers.alert_mapper import AlertLogMapper, AlertMapper
from stockwatch.infrastructure.persistence.models import AlertLogModel, AlertModel
from stockwatch.shared.logging.logger import get_logger

logger = get_logger("infrastructure.alert_repository")


class AlertRepositoryImpl(IAlertRepository):
    """Implementación async del registro de alertas (MySQL / SQLite)."""

    def __init__(self, db: DatabaseManager):
        self._db = db

    # ════════════════════════════════════════════════════════════════
    #  LECTURAS
    # ════════════════════════════════════════════════════════════════

    async def list_active_alerts(self) -> List[Alert]:
        try:
            async with self._db.session() as session:
                result = await session.execute(
                    select(AlertModel)
                    .where(AlertModel.active.is_(True))
                    .order_by(AlertModel.id)
                )
                return [AlertMapper.to_entity(m) for m in result.scalars().all()]
        except SQLAlchemyError as e:
            logger.error("Error listando alertas activas: %s", e)
            raise RegistryUnavailableError(f"No se pudieron listar alertas: {e}") from e

    async def get(self, alert_id: int) -> Optional[Alert]:
        async with self._db.session() as session:
            model = await session.get(AlertModel, alert_id)
            return AlertMapper.to_entity(model) if model else None

    async def list_by_user(self, user_id: int) -> List[Alert]:
        async with self._db.session() as session:
            result = await session.execute(
                select(AlertModel)
                .where(AlertModel.user_id == user_id)
                .order_by(AlertModel.id)
            )
            return [AlertMapper.to_entity(m) for m in result.scalars().all()]

    # ════════════════════════════════════════════════════════════════
    #  ESCRITURAS
    # ════════════════════════════════════════════════════════════════

    async def add(self, alert: Alert) -> Alert:
        """Alta de una alerta (seed / administración)."""
        async with self._db.session() as session:
            model = AlertModel(**AlertMapper.to_model(alert))
            session.add(model)
            await session.commit()
            return AlertMapper.to_entity(model)

    async def _locked(self, session, alert_id: int) -> AlertModel:
        result = await session.execute(
            select(AlertModel).where(AlertModel.id == alert_id).with_for_update()
        )
        model = result.scalar_one_or_none()
        if model is None:
            raise AlertNotFoundError(alert_id)
        return model

    async def set_active(self, alert_id: int, active: bool) -> Alert:
        async with self._db.session() as session:
            model = await self._locked(session, alert_id)
            model.active = active
            await session.commit()
            return AlertMapper.to_entity(model)

    async def record_fire(
        self,
        alert_id: int,
        fired_at: datetime,
        log: AlertLog,
    ) -> Tuple[Alert, AlertLog]:
        async with self._db.session() as session:
            model = await self._locked(session, alert_id)
            updated = AlertMapper.to_entity(model).fired(fired_at)
            model.trigger_count = updated.trigger_count
            model.last_triggered_at = updated.last_triggered_at

            log_model = AlertLogModel(**AlertLogMapper.to_model(log))
            session.add(log_model)
            await session.commit()

            logger.debug("Disparo registrado: alerta=%d log=%d", alert_id, log_model.id)
            return updated, AlertLogMapper.to_entity(log_model)

    async def set_condition_error(self, alert_id: int, error: Optional[str]) -> None:
        async with self._db.session() as session:
            model = await self._locked(session, alert_id)
            model.condition_error = error
            await session.commit()
