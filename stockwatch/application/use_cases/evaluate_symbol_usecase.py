"""
Evaluate Symbol Use Case.

Unidad de trabajo del Scheduler: UN (símbolo, timeframe) con todas sus
alertas activas.

FLUJO:
  1. Snapshot desde la caché del ciclo (un solo cálculo por clave).
     InsufficientData / timeout → la unidad se salta entera.
  2. Alertas de la unidad en orden de id, SECUENCIALES:
     a. Tomar el lock de la alerta (si lo tiene otro ciclo → saltar).
     b. COOLDOWN → no se evalúa; solo se actualiza su snapshot anterior.
     c. Parsear la condición (mal formada → marcar y saltar).
     d. Evaluar contra (snapshot, snapshot anterior de la alerta).
     e. true → AlertStateMachine.fire()

Los errores de una alerta no afectan a las demás de la unidad.
"""

from __future__ import annotations

from datetime import datetime
from typing import List

from stockwatch.application.dto.cycle_dto import SymbolUnitResult, UnitStatus
from stockwatch.application.services.alert_state_machine import AlertStateMachine
from stockwatch.application.services.indicator_engine import IndicatorEngine, SnapshotCache
from stockwatch.application.state.snapshot_state import SnapshotHistory, SnapshotStore
from stockwatch.domain.entities.alert import Alert, AlertState
from stockwatch.domain.entities.indicator_snapshot import IndicatorSnapshot
from stockwatch.domain.exceptions.domain_errors import (
    CandleFetchTimeoutError,
    InsufficientDataError,
    InvalidTransitionError,
    MalformedConditionError,
)
from stockwatch.domain.repositories.alert_repository import IAlertRepository
from stockwatch.domain.services.condition_evaluator import ConditionEvaluator
from stockwatch.shared.logging.logger import get_logger

logger = get_logger("evaluate_symbol")


class EvaluateSymbolUseCase:
    """
    Caso de uso: evaluar las alertas de un símbolo/timeframe.

    DEPENDE SOLO DE:
    - IAlertRepository (marcar condiciones mal formadas)
    - IndicatorEngine / SnapshotCache
    - ConditionEvaluator (puro)
    - AlertStateMachine (único que escribe disparos)
    """

    def __init__(
        self,
        alert_repository: IAlertRepository,
        engine: IndicatorEngine,
        evaluator: ConditionEvaluator,
        state_machine: AlertStateMachine,
        history: SnapshotHistory,
        store: SnapshotStore,
    ) -> None:
        self._alerts = alert_repository
        self._engine = engine
        self._evaluator = evaluator
        self._state_machine = state_machine
        self._history = history
        self._store = store

    async def execute(
        self,
        symbol_id: int,
        timeframe: str,
        alerts: List[Alert],
        now: datetime,
        cache: SnapshotCache,
    ) -> SymbolUnitResult:
        result = SymbolUnitResult(symbol_id=symbol_id, timeframe=timeframe)
        alert_ids = [a.id for a in alerts]

        try:
            snapshot = await cache.get(symbol_id, timeframe, now)
        except InsufficientDataError as e:
            logger.info(
                "Símbolo %d/%s saltado: %d velas de %d requeridas",
                symbol_id, timeframe, e.available or 0, e.required or 0,
            )
            result.status = UnitStatus.INSUFFICIENT_DATA
            result.error = e.message
            result.skipped = alert_ids
            return result
        except CandleFetchTimeoutError as e:
            logger.warning("Símbolo %d/%s saltado: %s", symbol_id, timeframe, e.message)
            result.status = UnitStatus.TIMEOUT
            result.error = e.message
            result.skipped = alert_ids
            return result

        result.snapshot_ref = snapshot.ref
        self._store.update(snapshot)

        for alert in sorted(alerts, key=lambda a: a.id):
            try:
                await self._process_alert(alert, snapshot, now, result)
            except Exception:
                logger.exception(
                    "Error evaluando alerta %d (símbolo %d/%s)", alert.id, symbol_id, timeframe,
                )
                result.skipped.append(alert.id)

        return result

    async def _process_alert(
        self,
        alert: Alert,
        snapshot: IndicatorSnapshot,
        now: datetime,
        result: SymbolUnitResult,
    ) -> None:
        locks = self._state_machine.locks
        if locks.is_locked(alert.id):
            logger.debug("Alerta %d en proceso por otro ciclo, se salta", alert.id)
            result.skipped.append(alert.id)
            return

        async with locks.get(alert.id):
            state = alert.state_at(now)
            if state != AlertState.ACTIVE:
                self._history.record(alert.id, snapshot)
                result.skipped.append(alert.id)
                return

            try:
                condition = self._evaluator.parse(alert)
            except MalformedConditionError as e:
                await self._flag_malformed(alert, e)
                result.malformed.append(alert.id)
                return

            if alert.condition_error is not None:
                await self._alerts.set_condition_error(alert.id, None)
                logger.info("Alerta %d: condición corregida, se desmarca", alert.id)

            required = self._engine.required_candles(condition.fields())
            if snapshot.candle_count < required:
                logger.debug(
                    "Alerta %d saltada: %d velas de %d requeridas",
                    alert.id, snapshot.candle_count, required,
                )
                result.skipped.append(alert.id)
                return

            previous = self._history.previous(alert.id)
            evaluation = self._evaluator.explain(condition, snapshot, previous)
            self._history.record(alert.id, snapshot)
            result.evaluated.append(alert.id)

            if not evaluation.triggered:
                return

            try:
                await self._state_machine.fire(alert.id, snapshot, evaluation, now)
            except InvalidTransitionError as e:
                logger.info("Disparo rechazado: %s", e.message)
                return
            result.fired.append(alert.id)

    async def _flag_malformed(self, alert: Alert, error: MalformedConditionError) -> None:
        if alert.condition_error == error.message:
            return
        logger.warning(
            "Alerta %d '%s' con condición mal formada: %s",
            alert.id, alert.name, error.message,
        )
        await self._alerts.set_condition_error(alert.id, error.message)
