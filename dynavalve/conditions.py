"""
Filter and key conditions for Dynavalve.

Valves take conditions as a mapping from attribute name to ``Comparison``,
mirroring DynamoDB's ScanFilter/KeyConditions shape:

    conditions = {
        "status": equal_to("active"),
        "age": between(18, 65),
    }

At request time the mapping is compiled into a FilterExpression (or a
KeyConditionExpression for queries) by boto3's ConditionExpressionBuilder,
so placeholder generation and reserved-word escaping stay in boto3.
All entries of a mapping are combined with AND.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from functools import reduce
from typing import TYPE_CHECKING, Any

from boto3.dynamodb.conditions import Attr as Boto3Attr
from boto3.dynamodb.conditions import ConditionBase as Boto3ConditionBase
from boto3.dynamodb.conditions import ConditionExpressionBuilder
from boto3.dynamodb.conditions import Key as Boto3Key
from boto3.dynamodb.conditions import Not as Boto3Not

if TYPE_CHECKING:
    from .serializer import DynamoSerializer

# operator -> (boto3 method name, number of values; None means one or more)
_OPERATORS: dict[str, tuple[str, int | None]] = {
    "EQ": ("eq", 1),
    "NE": ("ne", 1),
    "LT": ("lt", 1),
    "LE": ("lte", 1),
    "GT": ("gt", 1),
    "GE": ("gte", 1),
    "BETWEEN": ("between", 2),
    "BEGINS_WITH": ("begins_with", 1),
    "CONTAINS": ("contains", 1),
    "NOT_CONTAINS": ("contains", 1),
    "IN": ("is_in", None),
    "NOT_NULL": ("exists", 0),
    "NULL": ("not_exists", 0),
}

_KEY_OPERATORS = frozenset({"EQ", "LT", "LE", "GT", "GE", "BETWEEN", "BEGINS_WITH"})


@dataclass(frozen=True)
class Comparison:
    """
    One comparison applied to a single attribute.

    Users typically don't instantiate this directly - use equal_to(),
    between() and the other builders below.
    """

    operator: str
    values: tuple[Any, ...] = ()

    def __post_init__(self) -> None:
        if self.operator not in _OPERATORS:
            raise ValueError(f"Unsupported comparison operator '{self.operator}'")
        arity = _OPERATORS[self.operator][1]
        if arity is None:
            if not self.values:
                raise ValueError(f"{self.operator} needs at least one value")
        elif len(self.values) != arity:
            raise ValueError(
                f"{self.operator} needs {arity} value(s), got {len(self.values)}"
            )

    def to_filter(self, name: str) -> Boto3ConditionBase:
        """Builds the boto3 Attr condition for this comparison on ``name``."""
        method, _ = _OPERATORS[self.operator]
        attr = Boto3Attr(name)
        if self.operator == "IN":
            return attr.is_in(list(self.values))
        condition = getattr(attr, method)(*self.values)
        if self.operator == "NOT_CONTAINS":
            return Boto3Not(condition)
        return condition

    def to_key(self, name: str) -> Boto3ConditionBase:
        """Builds the boto3 Key condition for this comparison on ``name``."""
        if self.operator not in _KEY_OPERATORS:
            raise ValueError(f"{self.operator} cannot be used in a key condition")
        method, _ = _OPERATORS[self.operator]
        return getattr(Boto3Key(name), method)(*self.values)

    def __str__(self) -> str:
        return f"{self.operator}({', '.join(repr(v) for v in self.values)})"


def equal_to(value: Any) -> Comparison:
    return Comparison("EQ", (value,))


def not_equal_to(value: Any) -> Comparison:
    return Comparison("NE", (value,))


def less_than(value: Any) -> Comparison:
    return Comparison("LT", (value,))


def less_or_equal(value: Any) -> Comparison:
    return Comparison("LE", (value,))


def greater_than(value: Any) -> Comparison:
    return Comparison("GT", (value,))


def greater_or_equal(value: Any) -> Comparison:
    return Comparison("GE", (value,))


def between(low: Any, high: Any) -> Comparison:
    """Inclusive range: between(18, 65)."""
    return Comparison("BETWEEN", (low, high))


def begins_with(prefix: str) -> Comparison:
    return Comparison("BEGINS_WITH", (prefix,))


def contains(value: Any) -> Comparison:
    """Substring match for strings, membership for lists and sets."""
    return Comparison("CONTAINS", (value,))


def not_contains(value: Any) -> Comparison:
    return Comparison("NOT_CONTAINS", (value,))


def is_in(*values: Any) -> Comparison:
    return Comparison("IN", tuple(values))


def exists() -> Comparison:
    return Comparison("NOT_NULL")


def not_exists() -> Comparison:
    return Comparison("NULL")


def describe(conditions: Mapping[str, Comparison]) -> str:
    """Short human-readable summary of a condition mapping, for log lines."""
    if not conditions:
        return "{}"
    parts = [f"{name}: {comparison}" for name, comparison in conditions.items()]
    return "{" + ", ".join(parts) + "}"


def _tokens(conditions: Mapping[str, Comparison]) -> dict[str, str]:
    # Attr/Key read "a.b" as a nested path; a dot-free token keeps the name literal
    return {f"f{i}": name for i, name in enumerate(conditions)}


def _compile(
    condition: Boto3ConditionBase,
    tokens: dict[str, str],
    serializer: DynamoSerializer,
    expression_key: str,
    is_key_condition: bool,
) -> dict[str, Any]:
    builder = ConditionExpressionBuilder()
    expression = builder.build_expression(condition, is_key_condition=is_key_condition)

    result: dict[str, Any] = {expression_key: expression.condition_expression}
    if expression.attribute_name_placeholders:
        result["ExpressionAttributeNames"] = {
            placeholder: tokens[token]
            for placeholder, token in expression.attribute_name_placeholders.items()
        }
    if expression.attribute_value_placeholders:
        # boto3's builder leaves values as Python objects; the low-level
        # client needs them in DynamoDB format
        result["ExpressionAttributeValues"] = {
            placeholder: serializer.to_dynamo_value(value)
            for placeholder, value in expression.attribute_value_placeholders.items()
        }
    return result


def compile_filter(
    conditions: Mapping[str, Comparison],
    serializer: DynamoSerializer,
) -> dict[str, Any]:
    """
    Compiles a condition mapping into scan request parameters.

    Returns:
        Dict with FilterExpression, and ExpressionAttributeNames /
        ExpressionAttributeValues when non-empty. Empty dict for no conditions.
    """
    if not conditions:
        return {}
    tokens = _tokens(conditions)
    parts = [conditions[name].to_filter(token) for token, name in tokens.items()]
    combined = reduce(lambda left, right: left & right, parts)
    return _compile(
        combined, tokens, serializer, "FilterExpression", is_key_condition=False
    )


def compile_key_condition(
    conditions: Mapping[str, Comparison],
    serializer: DynamoSerializer,
) -> dict[str, Any]:
    """
    Compiles a condition mapping into query key condition parameters.

    Raises:
        ValueError: If the mapping is empty or uses a non-key operator
    """
    if not conditions:
        raise ValueError("A query needs at least a partition key condition")
    tokens = _tokens(conditions)
    parts = [conditions[name].to_key(token) for token, name in tokens.items()]
    combined = reduce(lambda left, right: left & right, parts)
    return _compile(
        combined, tokens, serializer, "KeyConditionExpression", is_key_condition=True
    )
