"""
StockWatch – Application DTO: Cycle
=====================================
Resultados de un ciclo de evaluación y de cada unidad (símbolo, timeframe).
Estructuras simples sin lógica de negocio.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional


class UnitStatus:
    OK = "ok"
    INSUFFICIENT_DATA = "insufficient_data"
    TIMEOUT = "timeout"
    ERROR = "error"
    CANCELLED = "cancelled"


@dataclass
class SymbolUnitResult:
    """Resultado de evaluar todas las alertas de un (símbolo, timeframe)."""

    symbol_id: int
    timeframe: str
    status: str = UnitStatus.OK
    snapshot_ref: Optional[str] = None
    evaluated: List[int] = field(default_factory=list)
    fired: List[int] = field(default_factory=list)
    skipped: List[int] = field(default_factory=list)
    malformed: List[int] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == UnitStatus.OK

    def to_dict(self) -> Dict[str, Any]:
        return {
            "symbol_id": self.symbol_id,
            "timeframe": self.timeframe,
            "status": self.status,
            "snapshot_ref": self.snapshot_ref,
            "evaluated": list(self.evaluated),
            "fired": list(self.fired),
            "skipped": list(self.skipped),
            "malformed": list(self.malformed),
            "error": self.error,
        }


@dataclass
class CycleReport:
    """Resumen de un ciclo completo."""

    cycle_id: int
    started_at: datetime
    finished_at: Optional[datetime] = None
    aborted: bool = False
    error: Optional[str] = None
    units: List[SymbolUnitResult] = field(default_factory=list)
    snapshots_computed: int = 0

    @property
    def fired(self) -> List[int]:
        return [alert_id for unit in self.units for alert_id in unit.fired]

    @property
    def failed_units(self) -> List[SymbolUnitResult]:
        return [unit for unit in self.units if not unit.ok]

    def unit(self, symbol_id: int, timeframe: Optional[str] = None) -> Optional[SymbolUnitResult]:
        for result in self.units:
            if result.symbol_id == symbol_id and (timeframe is None or result.timeframe == timeframe):
                return result
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "cycle_id": self.cycle_id,
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "aborted": self.aborted,
            "error": self.error,
            "snapshots_computed": self.snapshots_computed,
            "fired": self.fired,
            "units": [unit.to_dict() for unit in self.units],
        }
