"""
StockWatch – Domain Service: Condition Evaluator
==================================================
Decide si la condición de una alerta se cumple sobre un snapshot.

PROPIEDADES:
- Sin efectos secundarios: no muta la alerta ni el snapshot.
- Total: para cualquier snapshot bien formado nunca lanza excepción.
- Las condiciones `cross` comparan contra el snapshot anterior que se
  recibe explícitamente.

LÓGICA DE TRES VALORES:
  Cada nodo devuelve True (cumplida), False (no cumplida) o None
  (DESCONOCIDA). Una hoja es desconocida cuando no se puede decidir:
  valor faltante (None) o NaN, ratio con base 0, o `cross` sin snapshot
  anterior (alerta nueva).

  - not(desconocida) → desconocida
  - all: False si algún hijo es False; si no, desconocida si alguno lo es
  - any: True si algún hijo es True; si no, desconocida si alguno lo es
  - Raíz desconocida → NO dispara (fail closed)

  Así `not(cross)` no dispara en el primer ciclo de una alerta y
  `not(ratio)` tampoco cuando la base vale 0.

La única excepción que puede salir de aquí es MalformedConditionError,
cuando el JSON almacenado de la alerta no se puede interpretar.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, List, Optional, Tuple

from stockwatch.domain.entities.alert import Alert
from stockwatch.domain.entities.indicator_snapshot import IndicatorSnapshot
from stockwatch.domain.value_objects.condition import (
    AllOf,
    AnyOf,
    Compare,
    Condition,
    Cross,
    Not,
    Ratio,
    Threshold,
    parse_condition,
)

# Tolerancia absoluta del operador "=="
EQ_TOLERANCE = 0.01


@dataclass(frozen=True)
class EvaluationResult:
    triggered: bool
    conditions_met: Tuple[str, ...] = ()


# Resultado de un nodo: True cumplida, False no cumplida, None desconocida
Truth = Optional[bool]


def _number(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def _compare(left: Optional[float], op: str, right: Optional[float]) -> Truth:
    if left is None or right is None:
        return None
    if op == ">":
        return left > right
    if op == "<":
        return left < right
    if op == ">=":
        return left >= right
    if op == "<=":
        return left <= right
    if op == "==":
        return abs(left - right) < EQ_TOLERANCE
    return False


class ConditionEvaluator:
    """Evaluador stateless del árbol de condiciones."""

    def parse(self, alert: Alert) -> Condition:
        """Raises MalformedConditionError."""
        return parse_condition(alert.condition, alert.condition_logic)

    def evaluate(
        self,
        alert: Alert,
        snapshot: IndicatorSnapshot,
        previous: Optional[IndicatorSnapshot] = None,
    ) -> bool:
        return self.explain(self.parse(alert), snapshot, previous).triggered

    def explain(
        self,
        condition: Condition,
        snapshot: IndicatorSnapshot,
        previous: Optional[IndicatorSnapshot] = None,
    ) -> EvaluationResult:
        """Evalúa y devuelve además la descripción de las hojas cumplidas."""
        met: List[str] = []
        triggered = self._eval(condition, snapshot, previous, met) is True
        return EvaluationResult(triggered=triggered, conditions_met=tuple(met) if triggered else ())

    # ════════════════════════════════════════════════════════════════
    #  EVALUACIÓN RECURSIVA
    # ════════════════════════════════════════════════════════════════

    def _eval(
        self,
        node: Condition,
        snapshot: IndicatorSnapshot,
        previous: Optional[IndicatorSnapshot],
        met: List[str],
    ) -> Truth:
        if isinstance(node, AllOf):
            collected: List[str] = []
            unknown = False
            for child in node.children:
                result = self._eval(child, snapshot, previous, collected)
                if result is False:
                    return False
                if result is None:
                    unknown = True
            if unknown:
                return None
            met.extend(collected)
            return True

        if isinstance(node, AnyOf):
            # Evalúa todas las ramas para registrar todas las hojas cumplidas
            results = [self._eval(child, snapshot, previous, met) for child in node.children]
            if True in results:
                return True
            return None if None in results else False

        if isinstance(node, Not):
            result = self._eval(node.child, snapshot, previous, [])
            return None if result is None else not result

        result = self._leaf(node, snapshot, previous)
        if result:
            met.append(node.describe())
        return result

    def _leaf(
        self,
        node: Condition,
        snapshot: IndicatorSnapshot,
        previous: Optional[IndicatorSnapshot],
    ) -> Truth:
        values = snapshot.values

        if isinstance(node, Threshold):
            return _compare(_number(values.get(node.field)), node.op, node.value)

        if isinstance(node, Compare):
            return _compare(
                _number(values.get(node.field)), node.op, _number(values.get(node.other))
            )

        if isinstance(node, Ratio):
            numerator = _number(values.get(node.field))
            base = _number(values.get(node.base))
            if numerator is None or base is None or base == 0:
                return None
            return _compare(numerator / base, node.op, node.multiple)

        if isinstance(node, Cross):
            if previous is None:
                return None
            left = _number(values.get(node.field))
            prev_left = _number(previous.values.get(node.field))
            if node.other is not None:
                right = _number(values.get(node.other))
                prev_right = _number(previous.values.get(node.other))
            else:
                right = prev_right = node.value
            if None in (left, prev_left, right, prev_right):
                return None
            if node.direction == "above":
                return prev_left <= prev_right and left > right
            return prev_left >= prev_right and left < right

        return False
