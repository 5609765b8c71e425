"""
Pagination support for Dynavalve.

A PageResult is one bounded batch of items returned by a single scan or
query call. Its ``last_evaluated_key`` is the only signal that more data
exists: DynamoDB, not the client, decides where pages end.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .serializer import DynamoSerializer


@dataclass(frozen=True)
class PageResult:
    """
    Represents a single page of results with pagination cursor.

    Attributes:
        items: Records of this page, in the order DynamoDB returned them
        last_evaluated_key: Raw continuation key (None if no more pages)
        count: Number of items in this page
        consumed_capacity: ConsumedCapacity block, when DynamoDB reported one
    """

    items: tuple[dict[str, Any], ...]
    last_evaluated_key: dict[str, Any] | None
    count: int
    consumed_capacity: dict[str, Any] | None = None

    @property
    def has_more(self) -> bool:
        """Returns True if there are more pages available."""
        return self.last_evaluated_key is not None

    @classmethod
    def from_response(
        cls, response: dict[str, Any], serializer: "DynamoSerializer"
    ) -> "PageResult":
        """Builds a page from a raw boto3 scan/query response."""
        items = tuple(serializer.from_dynamo(item) for item in response.get("Items", []))
        return cls(
            items=items,
            last_evaluated_key=response.get("LastEvaluatedKey"),
            count=response.get("Count", len(items)),
            consumed_capacity=response.get("ConsumedCapacity"),
        )
