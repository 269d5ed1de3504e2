"""Constructores de datos y fakes compartidos por los tests."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional, Sequence

from stockwatch.application.ports.notification_sink import DeliveryReceipt, INotificationSink
from stockwatch.container import Container
from stockwatch.domain.entities.alert import Alert
from stockwatch.domain.entities.candle import Candle
from stockwatch.domain.entities.symbol import Symbol
from stockwatch.domain.exceptions.domain_errors import DeliveryFailureError
from stockwatch.domain.value_objects.timeframe import timeframe_delta, utc_now

T0 = datetime(2026, 3, 2, 1, 0, tzinfo=timezone.utc)


def build_candles(
    symbol_id: int,
    closes: Sequence[float],
    end: datetime,
    timeframe: str = "5m",
    volumes: Optional[Sequence[float]] = None,
) -> List[Candle]:
    """Serie con la última vela abriendo en `end`."""
    step = timeframe_delta(timeframe)
    candles = []
    prev = closes[0]
    for i, close in enumerate(closes):
        ts = end - step * (len(closes) - 1 - i)
        candles.append(
            Candle(
                symbol_id=symbol_id,
                timeframe=timeframe,
                timestamp=ts,
                open=prev,
                high=max(prev, close) + 1.0,
                low=min(prev, close) - 1.0,
                close=close,
                volume=volumes[i] if volumes else 1000.0,
            )
        )
        prev = close
    return candles


def make_alert(alert_id: int, condition, **kwargs) -> Alert:
    values = {
        "id": alert_id,
        "user_id": 7,
        "symbol_id": 1,
        "name": f"alert-{alert_id}",
        "condition": condition,
        "timeframe": "5m",
        "cooldown_minutes": 60,
    }
    values.update(kwargs)
    return Alert(**values)


class RecordingSink(INotificationSink):

    def __init__(self, fail: bool = False, delay: float = 0.0) -> None:
        self.fail = fail
        self.delay = delay
        self.events = []

    async def on_alert_fired(self, alert, event) -> DeliveryReceipt:
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail:
            raise DeliveryFailureError("gateway down", channel="sms")
        self.events.append(event)
        return DeliveryReceipt(channel="sms", accepted_at=utc_now(), reference=event.event_id)


@dataclass
class Pipeline:
    container: Container
    sink: RecordingSink
    symbols: List[Symbol] = field(default_factory=list)

    @property
    def source(self):
        return self.container.candle_source

    @property
    def alerts(self):
        return self.container.alert_repository

    @property
    def logs(self):
        return self.container.alert_log_repository

    @property
    def scheduler(self):
        return self.container.scheduler

    def add_symbol(self, symbol_id: int, name: str = "Samsung Electronics", code: str = "005930") -> None:
        symbol = Symbol(id=symbol_id, market="KOSPI", code=code, name=name)
        self.container.symbol_repository.add(symbol)
        self.container.watchlist_repository.watch(7, symbol_id)
        self.symbols.append(symbol)

    def add_candles(self, symbol_id: int, closes: Sequence[float], end: datetime, **kwargs) -> None:
        self.source.extend(build_candles(symbol_id, closes, end, **kwargs))

    def add_alert(self, alert_id: int, condition, **kwargs) -> Alert:
        return self.alerts.add(make_alert(alert_id, condition, **kwargs))
