"""
StockWatch – Snapshot State Management
========================================
Estado en memoria que sobrevive entre ciclos.

SnapshotStore:
  Último snapshot calculado por (símbolo, timeframe). Lo leen la API y
  el generador de reportes; el pipeline solo escribe.

SnapshotHistory:
  Último snapshot OBSERVADO por cada alerta. Es el "snapshot anterior"
  que se le pasa explícitamente al ConditionEvaluator para detectar
  cruces. El evaluador no guarda historia propia.

  - Se actualiza en cada ciclo en que la alerta tiene snapshot, también
    durante COOLDOWN (así al salir del cooldown no se dispara por un
    cruce viejo).
  - Se limpia al habilitar/deshabilitar la alerta: la primera evaluación
    tras re-habilitar nunca dispara un cruce (fail closed).

Ambas se instancian una vez en el Container y se inyectan.
"""

from __future__ import annotations

from typing import Dict, Optional, Tuple

from stockwatch.domain.entities.indicator_snapshot import IndicatorSnapshot


class SnapshotStore:

    def __init__(self) -> None:
        self._latest: Dict[Tuple[int, str], IndicatorSnapshot] = {}

    def update(self, snapshot: IndicatorSnapshot) -> None:
        key = (snapshot.symbol_id, snapshot.timeframe)
        current = self._latest.get(key)
        # Nunca retroceder (un "check now" atrasado no pisa un ciclo posterior)
        if current is None or snapshot.as_of >= current.as_of:
            self._latest[key] = snapshot

    def latest(self, symbol_id: int, timeframe: str) -> Optional[IndicatorSnapshot]:
        return self._latest.get((symbol_id, timeframe))


class SnapshotHistory:

    def __init__(self) -> None:
        self._previous: Dict[int, IndicatorSnapshot] = {}

    def previous(self, alert_id: int) -> Optional[IndicatorSnapshot]:
        return self._previous.get(alert_id)

    def record(self, alert_id: int, snapshot: IndicatorSnapshot) -> None:
        self._previous[alert_id] = snapshot

    def forget(self, alert_id: int) -> None:
        self._previous.pop(alert_id, None)

    def retain_only(self, alert_ids: set) -> None:
        """Descarta la historia de alertas que ya no están activas."""
        for alert_id in [a for a in self._previous if a not in alert_ids]:
            del self._previous[alert_id]

    def __len__(self) -> int:
        return len(self._previous)
