"""Application DTOs."""
from stockwatch.application.dto.cycle_dto import CycleReport, SymbolUnitResult, UnitStatus

__all__ = ["CycleReport", "SymbolUnitResult", "UnitStatus"]
