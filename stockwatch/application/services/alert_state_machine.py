"""
StockWatch – Alert State Machine
==================================
Transiciones de una alerta con sus efectos secundarios.

═══════════════════════════════════════════════════════════════
            TRANSICIONES
═══════════════════════════════════════════════════════════════

  enable()   INACTIVE → ACTIVE     no toca contadores, limpia la
                                    historia de cruces de la alerta
  disable()  * → INACTIVE          conserva contadores
  fire()     ACTIVE → COOLDOWN     ver abajo
  (auto)     COOLDOWN → ACTIVE     derivado: now − last_triggered_at >= cooldown

FIRE (con el lock de la alerta tomado):
  1. Releer la alerta del registro (contadores frescos).
  2. Si no está ACTIVE en fired_at → InvalidTransitionError, sin efectos.
  3. record_fire: trigger_count += 1, last_triggered_at, fila AlertLog
     → UNA transacción.
  4. Emitir AlertFired al Notification Sink (con timeout).
  5. Completar el resultado de entrega en el AlertLog (SENT / FAILED).

  Un fallo de entrega NUNCA revierte el paso 3: la alerta queda en
  COOLDOWN aunque la notificación falle, para no duplicar disparos.

EXCLUSIÓN MUTUA:
  AlertLockRegistry entrega un asyncio.Lock por alerta. Si un ciclo
  concurrente (p.ej. "check now" manual) ya lo tiene, el otro ciclo
  salta esa alerta en lugar de esperar.
"""

from __future__ import annotations

import asyncio
from datetime import datetime
from typing import Dict, Optional

from stockwatch.application.ports.notification_sink import INotificationSink
from stockwatch.application.state.snapshot_state import SnapshotHistory
from stockwatch.domain.entities.alert import Alert, AlertState
from stockwatch.domain.entities.alert_log import AlertLog, NotificationOutcome
from stockwatch.domain.entities.indicator_snapshot import IndicatorSnapshot
from stockwatch.domain.events.domain_events import AlertFired
from stockwatch.domain.exceptions.domain_errors import (
    AlertNotFoundError,
    DeliveryFailureError,
    InvalidTransitionError,
)
from stockwatch.domain.repositories.alert_log_repository import IAlertLogRepository
from stockwatch.domain.repositories.alert_repository import IAlertRepository
from stockwatch.domain.repositories.watchlist_repository import ISymbolRepository
from stockwatch.domain.services.condition_evaluator import EvaluationResult
from stockwatch.shared.logging.logger import get_logger

logger = get_logger("alert_state_machine")

# Campos de la vela que no se repiten dentro de "indicators" en el log
_CANDLE_FIELDS = ("open", "high", "low", "close", "volume")


class AlertLockRegistry:
    """Un asyncio.Lock por alerta, creado bajo demanda."""

    def __init__(self) -> None:
        self._locks: Dict[int, asyncio.Lock] = {}

    def get(self, alert_id: int) -> asyncio.Lock:
        lock = self._locks.get(alert_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[alert_id] = lock
        return lock

    def is_locked(self, alert_id: int) -> bool:
        lock = self._locks.get(alert_id)
        return lock is not None and lock.locked()

    def retain_only(self, alert_ids: set) -> None:
        """Descarta los locks libres de alertas que ya no están activas."""
        stale = [a for a, lock in self._locks.items() if a not in alert_ids and not lock.locked()]
        for alert_id in stale:
            del self._locks[alert_id]

    def __contains__(self, alert_id: int) -> bool:
        return alert_id in self._locks

    def __len__(self) -> int:
        return len(self._locks)


def build_log_payload(snapshot: IndicatorSnapshot, evaluation: EvaluationResult) -> dict:
    """Snapshot resumido que se guarda en el AlertLog."""
    values = snapshot.values
    return {
        "price": values.get("close"),
        "volume": values.get("volume"),
        "timeframe": snapshot.timeframe,
        "candle_timestamp": snapshot.candle_timestamp.isoformat(),
        "indicators": {
            name: value
            for name, value in values.items()
            if name not in _CANDLE_FIELDS and value is not None
        },
        "conditions_met": list(evaluation.conditions_met),
    }


class AlertStateMachine:
    """
    Dueño único de las escrituras del pipeline sobre alertas.

    El lock de cada alerta lo toma el llamador (EvaluateSymbolUseCase)
    con `locks.get(alert_id)` para cubrir evaluación + disparo.
    """

    def __init__(
        self,
        alert_repository: IAlertRepository,
        alert_log_repository: IAlertLogRepository,
        notification_sink: INotificationSink,
        history: SnapshotHistory,
        symbol_repository: Optional[ISymbolRepository] = None,
        locks: Optional[AlertLockRegistry] = None,
        notification_timeout: float = 5.0,
    ) -> None:
        self._alerts = alert_repository
        self._logs = alert_log_repository
        self._sink = notification_sink
        self._history = history
        self._symbols = symbol_repository
        self.locks = locks or AlertLockRegistry()
        self._notification_timeout = notification_timeout

    # ════════════════════════════════════════════════════════════════
    #  TOGGLES DEL USUARIO
    # ════════════════════════════════════════════════════════════════

    async def enable(self, alert_id: int) -> Alert:
        """INACTIVE → ACTIVE. Raises AlertNotFoundError."""
        async with self.locks.get(alert_id):
            alert = await self._alerts.set_active(alert_id, True)
            self._history.forget(alert_id)
        logger.info("Alerta %d habilitada (trigger_count=%d)", alert_id, alert.trigger_count)
        return alert

    async def disable(self, alert_id: int) -> Alert:
        """ACTIVE/COOLDOWN → INACTIVE. Raises AlertNotFoundError."""
        async with self.locks.get(alert_id):
            alert = await self._alerts.set_active(alert_id, False)
            self._history.forget(alert_id)
        logger.info("Alerta %d deshabilitada", alert_id)
        return alert

    # ════════════════════════════════════════════════════════════════
    #  FIRE: ACTIVE → COOLDOWN
    # ════════════════════════════════════════════════════════════════

    async def fire(
        self,
        alert_id: int,
        snapshot: IndicatorSnapshot,
        evaluation: EvaluationResult,
        fired_at: datetime,
    ) -> AlertLog:
        """
        Ejecuta el disparo. El llamador debe tener el lock de la alerta.

        Raises:
            AlertNotFoundError: la alerta ya no existe.
            InvalidTransitionError: la alerta no está ACTIVE en fired_at.
        """
        alert = await self._alerts.get(alert_id)
        if alert is None:
            raise AlertNotFoundError(alert_id)

        state = alert.state_at(fired_at)
        if state != AlertState.ACTIVE:
            raise InvalidTransitionError(
                f"Alerta {alert_id} en estado {state.value}, no puede disparar",
                alert_id=alert_id,
                state=state.value,
            )

        log = AlertLog(
            alert_id=alert.id,
            symbol_id=alert.symbol_id,
            fired_at=fired_at,
            snapshot_ref=snapshot.ref,
            snapshot=build_log_payload(snapshot, evaluation),
        )
        updated, log = await self._alerts.record_fire(alert.id, fired_at, log)
        logger.info(
            "Alerta %d '%s' disparada (symbol=%d tf=%s count=%d) [%s]",
            updated.id, updated.name, updated.symbol_id, updated.timeframe,
            updated.trigger_count, ", ".join(evaluation.conditions_met),
        )

        event = await self._build_event(updated, snapshot, evaluation, log, fired_at)
        return await self._deliver(updated, event, log)

    async def _build_event(
        self,
        alert: Alert,
        snapshot: IndicatorSnapshot,
        evaluation: EvaluationResult,
        log: AlertLog,
        fired_at: datetime,
    ) -> AlertFired:
        symbol_name = str(alert.symbol_id)
        if self._symbols is not None:
            symbol = await self._symbols.get(alert.symbol_id)
            if symbol is not None:
                symbol_name = symbol.display_name

        return AlertFired(
            alert_id=alert.id,
            user_id=alert.user_id,
            alert_name=alert.name,
            symbol_id=alert.symbol_id,
            symbol_name=symbol_name,
            timeframe=alert.timeframe,
            fired_at=fired_at.isoformat(),
            snapshot_ref=snapshot.ref,
            price=snapshot.price,
            values=dict(snapshot.values),
            conditions_met=evaluation.conditions_met,
            channels=tuple(alert.notification_channels),
            log_id=log.id,
        )

    async def _deliver(self, alert: Alert, event: AlertFired, log: AlertLog) -> AlertLog:
        """Emite la notificación y registra el resultado. Nunca revierte el disparo."""
        channel = alert.notification_channels[0] if alert.notification_channels else None
        try:
            receipt = await asyncio.wait_for(
                self._sink.on_alert_fired(alert, event),
                timeout=self._notification_timeout,
            )
        except DeliveryFailureError as e:
            return await self._record_failure(log, e.channel or channel, e.message)
        except asyncio.TimeoutError:
            return await self._record_failure(
                log, channel, f"timeout ({self._notification_timeout:.1f}s)"
            )
        except Exception as e:
            logger.exception("Error inesperado del Notification Sink (alerta %d)", alert.id)
            return await self._record_failure(log, channel, f"{type(e).__name__}: {e}")

        await self._logs.update_outcome(
            log.id,
            NotificationOutcome.SENT,
            channel=receipt.channel,
            sent_at=receipt.accepted_at,
        )
        return log.with_outcome(
            NotificationOutcome.SENT, channel=receipt.channel, sent_at=receipt.accepted_at
        )

    async def _record_failure(
        self, log: AlertLog, channel: Optional[str], error: str
    ) -> AlertLog:
        logger.warning(
            "Entrega fallida para alerta %d (log=%s canal=%s): %s",
            log.alert_id, log.id, channel, error,
        )
        await self._logs.update_outcome(
            log.id, NotificationOutcome.FAILED, channel=channel, error=error,
        )
        return log.with_outcome(NotificationOutcome.FAILED, channel=channel, error=error)
