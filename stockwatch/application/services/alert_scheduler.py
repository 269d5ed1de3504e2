"""
StockWatch – Alert Scheduler (Runner)
=======================================
Conduce los ciclos periódicos de evaluación sobre el universo de símbolos.

═══════════════════════════════════════════════════════════════
            UN CICLO
═══════════════════════════════════════════════════════════════

  1. Enumerar alertas activas y símbolos vigilados.
     Si falla → el ciclo se aborta (CycleReport.aborted) y el loop sigue
     en el próximo tick. Es el ÚNICO error que aborta un ciclo.
  2. Agrupar en unidades (symbol_id, timeframe). Un símbolo vigilado
     sin alertas usa el timeframe por defecto (solo refresca el snapshot).
  3. Ejecutar las unidades en paralelo, acotadas por un Semaphore
     (max_workers). Dentro de una unidad las alertas son secuenciales.
     Un fallo de una unidad queda aislado en su SymbolUnitResult.

═══════════════════════════════════════════════════════════════
            LOOP Y APAGADO
═══════════════════════════════════════════════════════════════

  - Los ciclos del timer corren de a uno. El siguiente arranca
    `interval` segundos después del inicio del anterior (o de inmediato
    si el ciclo tardó más que el intervalo).
  - La espera entre ciclos es wait_for(stop_event.wait(), timeout).
  - stop(): marca el apagado. Un ciclo en curso termina las unidades ya
    empezadas; las que aún esperaban worker se marcan "cancelled" y no
    se inician ciclos nuevos.
  - Cada `retention_interval` se purga el historial de disparos.
"""

from __future__ import annotations

import asyncio
import itertools
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Tuple

from stockwatch.application.dto.cycle_dto import CycleReport, SymbolUnitResult, UnitStatus
from stockwatch.application.services.alert_state_machine import AlertLockRegistry
from stockwatch.application.services.indicator_engine import IndicatorEngine, SnapshotCache
from stockwatch.application.state.snapshot_state import SnapshotHistory
from stockwatch.application.use_cases.evaluate_symbol_usecase import EvaluateSymbolUseCase
from stockwatch.application.use_cases.purge_alert_logs_usecase import PurgeAlertLogsUseCase
from stockwatch.domain.entities.alert import Alert
from stockwatch.domain.repositories.alert_repository import IAlertRepository
from stockwatch.domain.repositories.watchlist_repository import IWatchlistRepository
from stockwatch.domain.value_objects.timeframe import ensure_utc, utc_now
from stockwatch.shared.logging.logger import get_logger

logger = get_logger("alert_scheduler")

UnitKey = Tuple[int, str]


class AlertScheduler:
    """Timer recurrente + ejecución de ciclos con pool acotado."""

    def __init__(
        self,
        alert_repository: IAlertRepository,
        watchlist_repository: IWatchlistRepository,
        engine: IndicatorEngine,
        evaluate_usecase: EvaluateSymbolUseCase,
        history: SnapshotHistory,
        purge_usecase: Optional[PurgeAlertLogsUseCase] = None,
        interval_seconds: float = 60.0,
        max_workers: int = 8,
        default_timeframe: str = "5m",
        retention_interval_hours: float = 24.0,
        locks: Optional[AlertLockRegistry] = None,
    ) -> None:
        self._alerts = alert_repository
        self._watchlist = watchlist_repository
        self._engine = engine
        self._evaluate = evaluate_usecase
        self._history = history
        self._purge = purge_usecase
        self._locks = locks
        self._interval = interval_seconds
        self._max_workers = max(1, max_workers)
        self._default_timeframe = default_timeframe
        self._retention_interval = timedelta(hours=retention_interval_hours)

        self._stop_event = asyncio.Event()
        self._shutting_down = False
        self._task: Optional[asyncio.Task] = None
        self._cycle_ids = itertools.count(1)
        self._last_purge: Optional[datetime] = None

        self.last_report: Optional[CycleReport] = None
        self.cycles_completed = 0
        self.cycles_aborted = 0

    # ════════════════════════════════════════════════════════════════
    #  LIFECYCLE
    # ════════════════════════════════════════════════════════════════

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        if self.is_running:
            return
        self._shutting_down = False
        self._stop_event.clear()
        self._task = asyncio.create_task(self._run_loop(), name="alert-scheduler")
        logger.info(
            "AlertScheduler iniciado (intervalo=%.0fs, workers=%d)",
            self._interval, self._max_workers,
        )

    async def stop(self, timeout: Optional[float] = 30.0) -> None:
        """Apagado ordenado: deja terminar el ciclo en curso."""
        self._shutting_down = True
        self._stop_event.set()
        if self._task is None:
            return
        try:
            await asyncio.wait_for(asyncio.shield(self._task), timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning("El ciclo en curso no terminó en %.0fs, se cancela", timeout)
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self._task = None
        logger.info("AlertScheduler detenido (%d ciclos)", self.cycles_completed)

    async def _run_loop(self) -> None:
        while not self._stop_event.is_set():
            started = asyncio.get_running_loop().time()
            try:
                await self.run_cycle()
                await self._maybe_purge()
            except Exception:
                logger.exception("Error no controlado en el ciclo de evaluación")

            elapsed = asyncio.get_running_loop().time() - started
            try:
                await asyncio.wait_for(
                    self._stop_event.wait(), timeout=max(0.0, self._interval - elapsed)
                )
            except asyncio.TimeoutError:
                pass

    async def _maybe_purge(self, now: Optional[datetime] = None) -> int:
        if self._purge is None or not self._purge.enabled:
            return 0
        now = now or utc_now()
        if self._last_purge is not None and now - self._last_purge < self._retention_interval:
            return 0
        self._last_purge = now
        try:
            return await self._purge.execute(now)
        except Exception:
            logger.exception("Falló la purga de retención del historial")
            return 0

    # ════════════════════════════════════════════════════════════════
    #  CICLO
    # ════════════════════════════════════════════════════════════════

    async def run_cycle(self, now: Optional[datetime] = None) -> CycleReport:
        """
        Ejecuta un ciclo completo. También lo usa el "check now" manual.

        Nunca lanza por errores de símbolos o alertas: todo queda en el
        CycleReport.
        """
        now = ensure_utc(now) if now else utc_now()
        report = CycleReport(cycle_id=next(self._cycle_ids), started_at=now)

        if self._shutting_down:
            report.aborted = True
            report.error = "scheduler en apagado"
            report.finished_at = utc_now()
            return report

        try:
            alerts = await self._alerts.list_active_alerts()
            watched = await self._watchlist.list_watched_symbols()
        except Exception as e:
            logger.error("Ciclo %d abortado: no se pudo enumerar el registro (%s)", report.cycle_id, e)
            report.aborted = True
            report.error = str(e)
            report.finished_at = utc_now()
            self.cycles_aborted += 1
            self.last_report = report
            return report

        active_ids = {a.id for a in alerts}
        self._history.retain_only(active_ids)
        if self._locks is not None:
            self._locks.retain_only(active_ids)
        units = self._group_units(alerts, watched)
        cache = SnapshotCache(self._engine)
        semaphore = asyncio.Semaphore(self._max_workers)

        async def run_unit(key: UnitKey, unit_alerts: List[Alert]) -> SymbolUnitResult:
            symbol_id, timeframe = key
            async with semaphore:
                if self._shutting_down:
                    return SymbolUnitResult(
                        symbol_id=symbol_id,
                        timeframe=timeframe,
                        status=UnitStatus.CANCELLED,
                        skipped=[a.id for a in unit_alerts],
                    )
                try:
                    return await self._evaluate.execute(symbol_id, timeframe, unit_alerts, now, cache)
                except Exception as e:
                    logger.exception("Unidad %d/%s falló", symbol_id, timeframe)
                    return SymbolUnitResult(
                        symbol_id=symbol_id,
                        timeframe=timeframe,
                        status=UnitStatus.ERROR,
                        skipped=[a.id for a in unit_alerts],
                        error=f"{type(e).__name__}: {e}",
                    )

        tasks = [asyncio.ensure_future(run_unit(key, unit_alerts)) for key, unit_alerts in units.items()]
        if tasks:
            # shield: una cancelación externa no corta unidades ya iniciadas
            report.units = list(await asyncio.shield(asyncio.gather(*tasks)))

        report.snapshots_computed = cache.computed
        report.finished_at = utc_now()
        self.cycles_completed += 1
        self.last_report = report

        logger.info(
            "Ciclo %d: %d unidades, %d alertas, %d snapshots, %d disparos, %d fallos",
            report.cycle_id, len(units), len(alerts), report.snapshots_computed,
            len(report.fired), len(report.failed_units),
        )
        return report

    def _group_units(self, alerts: List[Alert], watched: List[int]) -> Dict[UnitKey, List[Alert]]:
        units: Dict[UnitKey, List[Alert]] = {}
        for alert in alerts:
            key = (alert.symbol_id, alert.timeframe or self._default_timeframe)
            units.setdefault(key, []).append(alert)
        for symbol_id in watched:
            if not any(key[0] == symbol_id for key in units):
                units[(symbol_id, self._default_timeframe)] = []
        return units

    def status(self) -> dict:
        return {
            "running": self.is_running,
            "shutting_down": self._shutting_down,
            "interval_seconds": self._interval,
            "max_workers": self._max_workers,
            "cycles_completed": self.cycles_completed,
            "cycles_aborted": self.cycles_aborted,
            "last_cycle": self.last_report.to_dict() if self.last_report else None,
        }
