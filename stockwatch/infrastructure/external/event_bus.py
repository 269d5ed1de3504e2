"""
StockWatch – Event Bus (asyncio.Queue fan-out)
===============================================
Bus de eventos interno. Desacopla el pipeline de alertas de los
consumidores de disparos (workers de entrega SMS/push, generador de
reportes, broadcast a la UI).

Arquitectura:
  ┌──────────────┐             ┌───────────┐
  │ AlertState   │─alert_fired▸│ Event Bus │──▸ Consumer 1 (entrega)
  │ Machine      │             │ (fan-out) │──▸ Consumer 2 (reportes)
  └──────────────┘             └───────────┘──▸ Consumer N ...

PÉRDIDA DE EVENTOS:
- Cada consumidor tiene su propia asyncio.Queue con tamaño limitado.
- Si un consumidor es lento y su cola se llena, se descarta el evento MÁS
  ANTIGUO de esa cola (drop-oldest). El productor nunca se bloquea, así
  el ciclo de evaluación no depende de la velocidad de los consumidores.

THREAD-SAFETY:
- asyncio.Queue es safe dentro del mismo event loop, que es nuestro caso.
"""

from __future__ import annotations

import asyncio
from typing import Dict, Optional

from stockwatch.application.ports.event_publisher import IEventPublisher
from stockwatch.domain.events.domain_events import DomainEvent
from stockwatch.shared.logging.logger import get_logger

logger = get_logger("event_bus")


class EventBus(IEventPublisher):
    """Fan-out event bus basado en asyncio.Queue."""

    def __init__(self, max_queue_size: int = 10_000) -> None:
        self._max_queue_size = max_queue_size
        # topic → lista de (queue, nombre_consumidor)
        self._subscribers: Dict[str, list[tuple[asyncio.Queue, str]]] = {}
        self._lock = asyncio.Lock()
        self.published = 0
        self.dropped = 0

    async def subscribe(self, topic: str, consumer_name: str) -> asyncio.Queue:
        """
        Registrar un consumidor en un tópico.
        Retorna la Queue exclusiva de ese consumidor.
        """
        async with self._lock:
            queue: asyncio.Queue = asyncio.Queue(maxsize=self._max_queue_size)
            self._subscribers.setdefault(topic, []).append((queue, consumer_name))
            logger.info(
                "Consumidor '%s' suscrito a tópico '%s' (max_queue=%d)",
                consumer_name,
                topic,
                self._max_queue_size,
            )
            return queue

    async def publish(self, topic: str, event: DomainEvent) -> int:
        """
        Publicar un evento (serializado con to_dict) a todos los suscriptores.
        Política drop-oldest si la cola está llena.
        """
        data = event.to_dict()
        subscribers = self._subscribers.get(topic, [])
        for queue, consumer_name in subscribers:
            if queue.full():
                try:
                    queue.get_nowait()
                    self.dropped += 1
                    logger.warning(
                        "Cola llena para '%s' en tópico '%s' – evento antiguo descartado",
                        consumer_name,
                        topic,
                    )
                except asyncio.QueueEmpty:
                    pass
            queue.put_nowait(data)
        self.published += 1
        return len(subscribers)

    async def unsubscribe_all(self, topic: Optional[str] = None) -> None:
        """Desuscribir todos los consumidores (cleanup al shutdown)."""
        async with self._lock:
            if topic:
                self._subscribers.pop(topic, None)
                logger.info("Todos los suscriptores del tópico '%s' eliminados", topic)
            else:
                self._subscribers.clear()
                logger.info("Todos los suscriptores eliminados (shutdown)")

    @property
    def subscriber_count(self) -> int:
        return sum(len(subs) for subs in self._subscribers.values())
