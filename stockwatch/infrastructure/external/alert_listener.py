"""
StockWatch – Alert Listener
=============================
Consumidor por defecto del tópico `alert_fired`.

  AlertStateMachine ──▸ EventBusNotificationSink ──▸ EventBus(alert_fired)
                                                        │ Queue
                                                        ▼
                                               AlertListener._consume_loop()
                                                        │
                                                        ▼
                                                  log / handler

Sin al menos un consumidor suscrito, el sink reporta DeliveryFailure.
Un gateway real (SMS, push) se registra como otro consumidor del mismo
tópico o reemplaza `handler`.

El listener vive todo el proceso: solo cuenta los eventos consumidos y
conserva los últimos `recent_size`.
"""

from __future__ import annotations

import asyncio
from collections import deque
from typing import Awaitable, Callable, Deque, Optional

from stockwatch.application.ports.event_publisher import IEventPublisher
from stockwatch.infrastructure.external.notification_sinks import ALERT_FIRED_TOPIC
from stockwatch.shared.logging.logger import get_logger

logger = get_logger("alert_listener")

Handler = Callable[[dict], Awaitable[None]]


class AlertListener:

    def __init__(
        self,
        event_bus: IEventPublisher,
        handler: Optional[Handler] = None,
        consumer_name: str = "alert_log",
        recent_size: int = 100,
    ) -> None:
        self._event_bus = event_bus
        self._handler = handler or self._log_event
        self._consumer_name = consumer_name
        self._running = False
        self._task: Optional[asyncio.Task] = None
        self.consumed = 0
        # Solo los últimos `recent_size` eventos, para inspección
        self.recent: Deque[dict] = deque(maxlen=recent_size)

    @property
    def is_running(self) -> bool:
        return self._running

    async def start(self) -> None:
        if self._running:
            return
        self._running = True
        queue = await self._event_bus.subscribe(ALERT_FIRED_TOPIC, self._consumer_name)
        self._task = asyncio.create_task(self._consume_loop(queue), name="alert-listener")
        logger.info("AlertListener activo – escuchando %s", ALERT_FIRED_TOPIC)

    async def stop(self) -> None:
        self._running = False
        if self._task is not None:
            self._task.cancel()
            await asyncio.gather(self._task, return_exceptions=True)
            self._task = None
        logger.info("AlertListener detenido (%d eventos)", self.consumed)

    async def _consume_loop(self, queue: asyncio.Queue) -> None:
        while self._running:
            try:
                data = await asyncio.wait_for(queue.get(), timeout=1.0)
            except asyncio.TimeoutError:
                continue
            self.consumed += 1
            self.recent.append(data)
            try:
                await self._handler(data)
            except Exception as e:
                logger.error("Error procesando alert_fired %s: %s", data.get("event_id"), e)

    async def _log_event(self, data: dict) -> None:
        logger.info(
            "Alerta emitida [%s] %s → usuario %s (%s)",
            ",".join(data.get("channels") or []) or "-",
            data.get("alert_name"),
            data.get("user_id"),
            data.get("symbol_name"),
        )
