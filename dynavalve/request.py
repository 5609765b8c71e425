"""
Immutable descriptions of a bounded scan or query.

A request is built once by a valve. The request for the next page is a
copy that differs only in ``exclusive_start_key``, so re-sending any
request asks DynamoDB for the same logical page.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from .conditions import Comparison, compile_filter, compile_key_condition

if TYPE_CHECKING:
    from .serializer import DynamoSerializer


def _freeze_conditions(conditions: Mapping[str, Comparison] | None) -> Mapping[str, Comparison]:
    return MappingProxyType(dict(conditions or {}))


def _projection(attributes: Iterable[str]) -> dict[str, Any]:
    """
    Builds ProjectionExpression parameters.

    Every attribute goes through a placeholder so reserved words
    like "name" or "status" can be projected.
    """
    placeholders = {f"#p{i}": name for i, name in enumerate(sorted(attributes))}
    if not placeholders:
        return {}
    return {
        "ProjectionExpression": ", ".join(placeholders),
        "ExpressionAttributeNames": placeholders,
    }


def _merge(kwargs: dict[str, Any], params: dict[str, Any]) -> None:
    for key, value in params.items():
        if key in ("ExpressionAttributeNames", "ExpressionAttributeValues"):
            kwargs.setdefault(key, {}).update(value)
        else:
            kwargs[key] = value


@dataclass(frozen=True)
class ScanRequest:
    """
    A bounded scan: table, projected attributes, filter, limit and an
    optional continuation key.
    """

    table_name: str
    attributes: frozenset[str] = frozenset()
    conditions: Mapping[str, Comparison] = field(default_factory=dict)
    limit: int = 100
    exclusive_start_key: dict[str, Any] | None = None

    def __post_init__(self) -> None:
        if not self.table_name:
            raise ValueError("table_name must not be empty")
        if self.limit < 1:
            raise ValueError(f"limit must be positive, got {self.limit}")
        object.__setattr__(self, "attributes", frozenset(self.attributes))
        object.__setattr__(self, "conditions", _freeze_conditions(self.conditions))

    def with_exclusive_start_key(self, key: dict[str, Any] | None) -> "ScanRequest":
        """Same request, resuming after ``key``."""
        return ScanRequest(
            table_name=self.table_name,
            attributes=self.attributes,
            conditions=self.conditions,
            limit=self.limit,
            exclusive_start_key=key,
        )

    def to_kwargs(self, serializer: "DynamoSerializer") -> dict[str, Any]:
        """Renders keyword arguments for ``client.scan``."""
        kwargs: dict[str, Any] = {
            "TableName": self.table_name,
            "Limit": self.limit,
            "ReturnConsumedCapacity": "TOTAL",
        }
        _merge(kwargs, _projection(self.attributes))
        _merge(kwargs, compile_filter(self.conditions, serializer))
        if self.exclusive_start_key is not None:
            kwargs["ExclusiveStartKey"] = self.exclusive_start_key
        return kwargs


@dataclass(frozen=True)
class QueryRequest:
    """A bounded query against a table or one of its indexes."""

    table_name: str
    conditions: Mapping[str, Comparison]
    attributes: frozenset[str] = frozenset()
    limit: int = 100
    index_name: str | None = None
    consistent_read: bool = False
    scan_index_forward: bool = True
    exclusive_start_key: dict[str, Any] | None = None

    def __post_init__(self) -> None:
        if not self.table_name:
            raise ValueError("table_name must not be empty")
        if self.limit < 1:
            raise ValueError(f"limit must be positive, got {self.limit}")
        if not self.conditions:
            raise ValueError("A query needs at least a partition key condition")
        object.__setattr__(self, "attributes", frozenset(self.attributes))
        object.__setattr__(self, "conditions", _freeze_conditions(self.conditions))

    def with_exclusive_start_key(self, key: dict[str, Any] | None) -> "QueryRequest":
        """Same request, resuming after ``key``."""
        return QueryRequest(
            table_name=self.table_name,
            conditions=self.conditions,
            attributes=self.attributes,
            limit=self.limit,
            index_name=self.index_name,
            consistent_read=self.consistent_read,
            scan_index_forward=self.scan_index_forward,
            exclusive_start_key=key,
        )

    def to_kwargs(self, serializer: "DynamoSerializer") -> dict[str, Any]:
        """Renders keyword arguments for ``client.query``."""
        kwargs: dict[str, Any] = {
            "TableName": self.table_name,
            "Limit": self.limit,
            "ReturnConsumedCapacity": "TOTAL",
            "ScanIndexForward": self.scan_index_forward,
        }
        if self.index_name:
            kwargs["IndexName"] = self.index_name
        if self.consistent_read:
            kwargs["ConsistentRead"] = True
        _merge(kwargs, _projection(self.attributes))
        _merge(kwargs, compile_key_condition(self.conditions, serializer))
        if self.exclusive_start_key is not None:
            kwargs["ExclusiveStartKey"] = self.exclusive_start_key
        return kwargs
