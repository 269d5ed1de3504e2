"""
StockWatch – Application Port: Event Publisher
================================================
Interfaz para publicar eventos de dominio. La infraestructura decide
CÓMO se entregan (asyncio.Queue fan-out, message bus, etc.)
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod

from stockwatch.domain.events.domain_events import DomainEvent


class IEventPublisher(ABC):

    @abstractmethod
    async def publish(self, topic: str, event: DomainEvent) -> int:
        """
        Publica un evento en un tópico.

        Returns:
            Cantidad de consumidores que lo recibieron
        """
        pass

    @abstractmethod
    async def subscribe(self, topic: str, consumer_name: str) -> asyncio.Queue:
        """Registra un consumidor y devuelve su cola exclusiva."""
        pass
