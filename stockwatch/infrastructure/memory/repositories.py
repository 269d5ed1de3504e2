"""
StockWatch – In-Memory Repositories
=====================================
Implementaciones en memoria de los repositorios del dominio.

Se usan cuando db_enabled=False y en los tests. Respetan los mismos
contratos que las implementaciones SQLAlchemy: record_fire es atómico
(no hay await entre el incremento y el append del log) y los logs son
append-only.
"""

from __future__ import annotations

import itertools
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from stockwatch.domain.entities.alert import Alert
from stockwatch.domain.entities.alert_log import AlertLog, NotificationOutcome
from stockwatch.domain.entities.symbol import Symbol
from stockwatch.domain.exceptions.domain_errors import AlertNotFoundError
from stockwatch.domain.repositories.alert_log_repository import IAlertLogRepository
from stockwatch.domain.repositories.alert_repository import IAlertRepository
from stockwatch.domain.repositories.watchlist_repository import (
    ISymbolRepository,
    IWatchlistRepository,
)
from stockwatch.domain.value_objects.timeframe import ensure_utc


class InMemoryAlertLogRepository(IAlertLogRepository):

    def __init__(self) -> None:
        self._logs: Dict[int, AlertLog] = {}
        self._ids = itertools.count(1)
        # alert_id → user_id, para find_by_user
        self._owners: Dict[int, int] = {}

    def append(self, log: AlertLog, user_id: Optional[int] = None) -> AlertLog:
        stored = log.with_id(next(self._ids))
        self._logs[stored.id] = stored
        if user_id is not None:
            self._owners[stored.alert_id] = user_id
        return stored

    async def update_outcome(
        self,
        log_id: int,
        outcome: NotificationOutcome,
        channel: Optional[str] = None,
        error: Optional[str] = None,
        sent_at: Optional[datetime] = None,
    ) -> None:
        log = self._logs.get(log_id)
        if log is None:
            return
        self._logs[log_id] = log.with_outcome(outcome, channel=channel, error=error, sent_at=sent_at)

    def _newest_first(self, logs) -> List[AlertLog]:
        return sorted(logs, key=lambda log: (log.fired_at, log.id), reverse=True)

    async def find_by_alert(self, alert_id: int, limit: int = 50) -> List[AlertLog]:
        return self._newest_first(l for l in self._logs.values() if l.alert_id == alert_id)[:limit]

    async def find_by_user(self, user_id: int, limit: int = 50) -> List[AlertLog]:
        return self._newest_first(
            l for l in self._logs.values() if self._owners.get(l.alert_id) == user_id
        )[:limit]

    async def find_recent(self, limit: int = 50) -> List[AlertLog]:
        return self._newest_first(self._logs.values())[:limit]

    async def purge_older_than(self, cutoff: datetime) -> int:
        cutoff = ensure_utc(cutoff)
        stale = [log_id for log_id, log in self._logs.items() if ensure_utc(log.fired_at) < cutoff]
        for log_id in stale:
            del self._logs[log_id]
        return len(stale)


class InMemoryAlertRepository(IAlertRepository):

    def __init__(self, log_repository: Optional[InMemoryAlertLogRepository] = None) -> None:
        self._alerts: Dict[int, Alert] = {}
        self.logs = log_repository or InMemoryAlertLogRepository()

    def add(self, alert: Alert) -> Alert:
        self._alerts[alert.id] = alert
        return alert

    def _require(self, alert_id: int) -> Alert:
        alert = self._alerts.get(alert_id)
        if alert is None:
            raise AlertNotFoundError(alert_id)
        return alert

    async def list_active_alerts(self) -> List[Alert]:
        return [a for a in sorted(self._alerts.values(), key=lambda a: a.id) if a.active]

    async def get(self, alert_id: int) -> Optional[Alert]:
        return self._alerts.get(alert_id)

    async def list_by_user(self, user_id: int) -> List[Alert]:
        return [a for a in sorted(self._alerts.values(), key=lambda a: a.id) if a.user_id == user_id]

    async def set_active(self, alert_id: int, active: bool) -> Alert:
        alert = self._require(alert_id).with_active(active)
        self._alerts[alert_id] = alert
        return alert

    async def record_fire(
        self,
        alert_id: int,
        fired_at: datetime,
        log: AlertLog,
    ) -> Tuple[Alert, AlertLog]:
        alert = self._require(alert_id).fired(fired_at)
        self._alerts[alert_id] = alert
        stored = self.logs.append(log, user_id=alert.user_id)
        return alert, stored

    async def set_condition_error(self, alert_id: int, error: Optional[str]) -> None:
        self._alerts[alert_id] = self._require(alert_id).with_condition_error(error)


class InMemoryWatchlistRepository(IWatchlistRepository):

    def __init__(self) -> None:
        # (user_id, symbol_id) → alert_enabled
        self._links: Dict[Tuple[int, int], bool] = {}

    def watch(self, user_id: int, symbol_id: int, alert_enabled: bool = True) -> None:
        self._links[(user_id, symbol_id)] = alert_enabled

    async def list_watched_symbols(self) -> List[int]:
        return sorted({symbol_id for (_, symbol_id), enabled in self._links.items() if enabled})


class InMemorySymbolRepository(ISymbolRepository):

    def __init__(self) -> None:
        self._symbols: Dict[int, Symbol] = {}

    def add(self, symbol: Symbol) -> Symbol:
        self._symbols[symbol.id] = symbol
        return symbol

    async def get(self, symbol_id: int) -> Optional[Symbol]:
        return self._symbols.get(symbol_id)
