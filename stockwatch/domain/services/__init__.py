"""Domain services - Pure business logic with no external dependencies."""
from stockwatch.domain.services.condition_evaluator import ConditionEvaluator, EvaluationResult
from stockwatch.domain.services.indicator_calculator import IndicatorCalculator

__all__ = [
    "ConditionEvaluator",
    "EvaluationResult",
    "IndicatorCalculator",
]
