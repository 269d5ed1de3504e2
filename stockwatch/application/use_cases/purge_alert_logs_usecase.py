"""
Purge Alert Logs Use Case.

Limpieza de retención del historial de disparos: borra en bloque las
filas de AlertLog más viejas que `retention_days`.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Optional

from stockwatch.domain.repositories.alert_log_repository import IAlertLogRepository
from stockwatch.domain.value_objects.timeframe import ensure_utc, utc_now
from stockwatch.shared.logging.logger import get_logger

logger = get_logger("purge_alert_logs")


class PurgeAlertLogsUseCase:

    def __init__(self, alert_log_repository: IAlertLogRepository, retention_days: int = 90):
        self._logs = alert_log_repository
        self._retention_days = retention_days

    @property
    def enabled(self) -> bool:
        return self._retention_days > 0

    async def execute(self, now: Optional[datetime] = None) -> int:
        """Retorna cuántas filas se borraron (0 si la retención está deshabilitada)."""
        if not self.enabled:
            return 0
        now = ensure_utc(now) if now else utc_now()
        cutoff = now - timedelta(days=self._retention_days)
        deleted = await self._logs.purge_older_than(cutoff)
        if deleted:
            logger.info(
                "Retención: %d disparos anteriores a %s eliminados",
                deleted, cutoff.isoformat(),
            )
        return deleted
