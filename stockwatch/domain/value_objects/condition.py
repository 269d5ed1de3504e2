"""
StockWatch – Value Object: Condition
======================================
Árbol de expresiones booleanas sobre campos de un IndicatorSnapshot.

Cada nodo es un modelo pydantic inmutable con discriminador `kind`.
Agregar un tipo de condición nuevo = agregar un nodo aquí y su rama en
ConditionEvaluator; el Scheduler y la máquina de estados no cambian.

NODOS:
    threshold   field <op> value                    rsi < 30
    compare     field <op> other                    ma5 > ma20
    ratio       field / base <op> multiple          volume >= 2 × volume_ma
    cross       field cruza above|below value|other close cruza above resistance
    all / any   AND / OR sobre children
    not         negación de child

FORMA HEREDADA:
    Las alertas antiguas guardan una lista de reglas
    [{"type", "operator", "indicator", "value", "compareWith"}] más una
    lógica "all" | "any". `parse_condition` las traduce a este árbol.
"""

from __future__ import annotations

from typing import Annotated, Any, Iterator, Literal, Optional, Tuple, Union

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, TypeAdapter, model_validator
from pydantic import ValidationError as PydanticValidationError

from stockwatch.domain.exceptions.domain_errors import MalformedConditionError
from stockwatch.domain.value_objects.indicator_fields import normalize_field

Operator = Literal[">", "<", ">=", "<=", "=="]
Direction = Literal["above", "below"]


def _canonical_field(value: str) -> str:
    canonical = normalize_field(value)
    if canonical is None:
        raise ValueError(f"campo de indicador desconocido: '{value}'")
    return canonical


# Nombre de campo del snapshot, normalizado (alias camelCase aceptados)
FieldName = Annotated[str, AfterValidator(_canonical_field)]


class _Node(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    def fields(self) -> Iterator[str]:
        """Campos del snapshot referenciados por este nodo."""
        return iter(())


class Threshold(_Node):
    kind: Literal["threshold"] = "threshold"
    field: FieldName
    op: Operator
    value: float

    def fields(self) -> Iterator[str]:
        yield self.field

    def describe(self) -> str:
        return f"{self.field} {self.op} {self.value:g}"


class Compare(_Node):
    kind: Literal["compare"] = "compare"
    field: FieldName
    op: Operator
    other: FieldName

    def fields(self) -> Iterator[str]:
        yield self.field
        yield self.other

    def describe(self) -> str:
        return f"{self.field} {self.op} {self.other}"


class Ratio(_Node):
    kind: Literal["ratio"] = "ratio"
    field: FieldName
    base: FieldName
    op: Operator = ">="
    multiple: float

    def fields(self) -> Iterator[str]:
        yield self.field
        yield self.base

    def describe(self) -> str:
        return f"{self.field} {self.op} {self.multiple:g}x {self.base}"


class Cross(_Node):
    kind: Literal["cross"] = "cross"
    field: FieldName
    direction: Direction
    value: Optional[float] = None
    other: Optional[FieldName] = None

    @model_validator(mode="after")
    def _one_target(self) -> "Cross":
        if (self.value is None) == (self.other is None):
            raise ValueError("cross requiere exactamente uno de 'value' u 'other'")
        return self

    def fields(self) -> Iterator[str]:
        yield self.field
        if self.other is not None:
            yield self.other

    def describe(self) -> str:
        target = self.other if self.other is not None else f"{self.value:g}"
        return f"{self.field} crosses {self.direction} {target}"


class AllOf(_Node):
    kind: Literal["all"] = "all"
    children: Tuple[Condition, ...] = Field(min_length=1)

    def fields(self) -> Iterator[str]:
        for child in self.children:
            yield from child.fields()


class AnyOf(_Node):
    kind: Literal["any"] = "any"
    children: Tuple[Condition, ...] = Field(min_length=1)

    def fields(self) -> Iterator[str]:
        for child in self.children:
            yield from child.fields()


class Not(_Node):
    kind: Literal["not"] = "not"
    child: Condition

    def fields(self) -> Iterator[str]:
        return self.child.fields()


Condition = Annotated[
    Union[Threshold, Compare, Ratio, Cross, AllOf, AnyOf, Not],
    Field(discriminator="kind"),
]

for _model in (AllOf, AnyOf, Not):
    _model.model_rebuild()

_condition_adapter: TypeAdapter = TypeAdapter(Condition)


# ════════════════════════════════════════════════════════════════════════
#  PARSING
# ════════════════════════════════════════════════════════════════════════

_LEGACY_CROSS = {"crossAbove": "above", "crossBelow": "below"}


def _legacy_rule(rule: Any) -> dict:
    """Traduce una regla heredada a un nodo del árbol (como dict)."""
    if not isinstance(rule, dict):
        raise MalformedConditionError(f"regla inválida: {rule!r}")
    operator = rule.get("operator")
    indicator = rule.get("indicator")
    if indicator is None and rule.get("type") in ("price", "volume"):
        indicator = rule["type"]
    if indicator is None:
        raise MalformedConditionError("regla sin 'indicator'", details=rule)

    compare_with = rule.get("compareWith")
    value = rule.get("value")

    if operator in _LEGACY_CROSS:
        node = {"kind": "cross", "field": indicator, "direction": _LEGACY_CROSS[operator]}
        if compare_with:
            node["other"] = compare_with
        else:
            node["value"] = value if value is not None else 0
        return node
    if compare_with:
        return {"kind": "compare", "field": indicator, "op": operator, "other": compare_with}
    return {
        "kind": "threshold",
        "field": indicator,
        "op": operator,
        "value": value if value is not None else 0,
    }


def parse_condition(raw: Any, logic: str = "all") -> Condition:
    """
    Valida el JSON almacenado de una alerta y devuelve el árbol.

    Acepta un nodo (dict con `kind`) o la lista heredada de reglas.

    Raises:
        MalformedConditionError: estructura, campo u operador inválidos.
    """
    if isinstance(raw, (list, tuple)):
        if not raw:
            raise MalformedConditionError("condición vacía")
        if logic not in ("all", "any"):
            raise MalformedConditionError(f"lógica desconocida: '{logic}'")
        raw = {"kind": logic, "children": [_legacy_rule(rule) for rule in raw]}
    elif not isinstance(raw, dict):
        raise MalformedConditionError(f"condición inválida: {raw!r}")

    try:
        return _condition_adapter.validate_python(raw)
    except PydanticValidationError as e:
        raise MalformedConditionError(
            f"condición inválida: {e.error_count()} error(es)",
            details=e.errors(include_url=False),
        ) from e
