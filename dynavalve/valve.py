"""
Valves build the first request of a scan or query and return its first page.

A valve is an immutable policy: page limit, attributes to pre-load and,
for queries, index and ordering options. ``with_*`` methods return a new
valve and never touch the receiver.

Usage:
    valve = ScanValve().with_limit(25).with_attribute_to_get("email", "status")
    dosage = valve.fetch(creds, "users", {"status": equal_to("active")}, ["age"])
    while True:
        handle(dosage.items())
        if not dosage.has_next():
            break
        dosage = dosage.next()
"""

import copy
import time
from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any, Union

from ._logging import logger, print_capacity, redact_key
from .conditions import Comparison, describe
from .credentials import Credentials, acquire
from .dosage import Dosage
from .exceptions import NoNextPageError, handle_dynamo_errors
from .pagination import PageResult
from .request import QueryRequest, ScanRequest
from .serializer import DynamoSerializer

Request = Union[ScanRequest, QueryRequest]

DEFAULT_LIMIT = 100

_serializer = DynamoSerializer()


class Valve(ABC):
    """Fetches the first page of items from a table."""

    @abstractmethod
    def fetch(
        self,
        credentials: Credentials,
        table: str,
        conditions: Mapping[str, Comparison] | None = None,
        keys: Iterable[str] = (),
    ) -> Dosage:
        """
        Fetches the first page.

        Args:
            credentials: Source of the DynamoDB client for this call
            table: Table name (already prefixed by the region, if any)
            conditions: Attribute name -> Comparison, combined with AND
            keys: Attributes the caller is going to read from the items

        Raises:
            FetchError: If the remote call failed
        """


def _names(keys: Iterable[str]) -> frozenset[str]:
    if isinstance(keys, str):
        return frozenset((keys,))
    return frozenset(keys)


def _load(
    credentials: Credentials, request: Request, method: str, operation: str
) -> PageResult:
    """
    Issues one scan/query call and wraps the response.

    The client is acquired for this call only and closed on every exit path.
    """
    kwargs = request.to_kwargs(_serializer)
    with acquire(credentials) as client:
        start = time.monotonic()
        with handle_dynamo_errors(table_name=request.table_name):
            response = getattr(client, method)(**kwargs)
        elapsed_ms = int((time.monotonic() - start) * 1000)
    result = PageResult.from_response(response, _serializer)
    logger.info(
        "Loaded %s page%s",
        method,
        print_capacity(result.consumed_capacity),
        extra={
            "operation": operation,
            "method": method,
            "table": request.table_name,
            "count": result.count,
            "filter": describe(request.conditions),
            "capacity": (result.consumed_capacity or {}).get("CapacityUnits"),
            "elapsed_ms": elapsed_ms,
            "has_cursor": request.exclusive_start_key is not None,
        },
    )
    return result


@dataclass(frozen=True, eq=False)
class _NextDosage(Dosage):
    """Dosage produced by a valve: one loaded page plus the request behind it."""

    credentials: Credentials
    request: Request
    result: PageResult
    method: str

    def items(self) -> list[dict[str, Any]]:
        # Callers get their own records; nested maps and lists included
        return copy.deepcopy(list(self.result.items))

    def has_next(self) -> bool:
        return self.result.has_more

    def next(self) -> Dosage:
        if not self.has_next():
            raise NoNextPageError()
        request = self.request.with_exclusive_start_key(self.result.last_evaluated_key)
        logger.debug(
            "Fetching next page",
            extra={
                "operation": "next",
                "table": request.table_name,
                "start_key_hash": redact_key(request.exclusive_start_key),
            },
        )
        result = _load(self.credentials, request, self.method, "next")
        return _NextDosage(self.credentials, request, result, self.method)

    def __repr__(self) -> str:
        return (
            f"Dosage(table={self.request.table_name!r}, count={self.result.count}, "
            f"has_next={self.has_next()})"
        )


@dataclass(frozen=True)
class ScanValve(Valve):
    """
    Scans a table, page by page.

    Attributes:
        limit: Items DynamoDB evaluates per page (default 100)
        attributes: Attributes always included in the projection
    """

    limit: int = DEFAULT_LIMIT
    attributes: frozenset[str] = frozenset()

    def __post_init__(self) -> None:
        if self.limit < 1:
            raise ValueError(f"limit must be positive, got {self.limit}")
        object.__setattr__(self, "attributes", _names(self.attributes))

    def fetch(
        self,
        credentials: Credentials,
        table: str,
        conditions: Mapping[str, Comparison] | None = None,
        keys: Iterable[str] = (),
    ) -> Dosage:
        if credentials is None:
            raise ValueError("credentials must not be None")
        request = ScanRequest(
            table_name=table,
            attributes=self.attributes | _names(keys),
            conditions=conditions or {},
            limit=self.limit,
        )
        result = _load(credentials, request, "scan", "fetch")
        return _NextDosage(credentials, request, result, "scan")

    def with_limit(self, limit: int) -> "ScanValve":
        """New valve with this page limit."""
        return ScanValve(limit=limit, attributes=self.attributes)

    def with_attribute_to_get(self, *names: str) -> "ScanValve":
        """New valve that also pre-loads these attributes."""
        if not names:
            raise ValueError("at least one attribute name is required")
        return ScanValve(limit=self.limit, attributes=self.attributes | frozenset(names))


@dataclass(frozen=True)
class QueryValve(Valve):
    """
    Queries a table or index by key conditions, page by page.

    ``conditions`` passed to fetch() are key conditions: an equality on the
    partition key, optionally combined with one sort key comparison.
    """

    limit: int = DEFAULT_LIMIT
    attributes: frozenset[str] = frozenset()
    index_name: str | None = None
    consistent_read: bool = False
    scan_index_forward: bool = True

    def __post_init__(self) -> None:
        if self.limit < 1:
            raise ValueError(f"limit must be positive, got {self.limit}")
        object.__setattr__(self, "attributes", _names(self.attributes))

    def fetch(
        self,
        credentials: Credentials,
        table: str,
        conditions: Mapping[str, Comparison] | None = None,
        keys: Iterable[str] = (),
    ) -> Dosage:
        if credentials is None:
            raise ValueError("credentials must not be None")
        request = QueryRequest(
            table_name=table,
            conditions=conditions or {},
            attributes=self.attributes | _names(keys),
            limit=self.limit,
            index_name=self.index_name,
            consistent_read=self.consistent_read,
            scan_index_forward=self.scan_index_forward,
        )
        result = _load(credentials, request, "query", "fetch")
        return _NextDosage(credentials, request, result, "query")

    def with_limit(self, limit: int) -> "QueryValve":
        return QueryValve(
            limit=limit,
            attributes=self.attributes,
            index_name=self.index_name,
            consistent_read=self.consistent_read,
            scan_index_forward=self.scan_index_forward,
        )

    def with_attribute_to_get(self, *names: str) -> "QueryValve":
        if not names:
            raise ValueError("at least one attribute name is required")
        return QueryValve(
            limit=self.limit,
            attributes=self.attributes | frozenset(names),
            index_name=self.index_name,
            consistent_read=self.consistent_read,
            scan_index_forward=self.scan_index_forward,
        )

    def with_index_name(self, index_name: str) -> "QueryValve":
        return QueryValve(
            limit=self.limit,
            attributes=self.attributes,
            index_name=index_name,
            consistent_read=self.consistent_read,
            scan_index_forward=self.scan_index_forward,
        )

    def with_consistent_read(self, consistent_read: bool = True) -> "QueryValve":
        return QueryValve(
            limit=self.limit,
            attributes=self.attributes,
            index_name=self.index_name,
            consistent_read=consistent_read,
            scan_index_forward=self.scan_index_forward,
        )

    def with_scan_index_forward(self, forward: bool) -> "QueryValve":
        return QueryValve(
            limit=self.limit,
            attributes=self.attributes,
            index_name=self.index_name,
            consistent_read=self.consistent_read,
            scan_index_forward=forward,
        )
