"""
Regions resolve table names into table handles.

Cross-cutting concerns compose by wrapping one region in another, never by
subclassing. ``PrefixedRegion`` puts a namespace in front of every table name:

    region = PrefixedRegion(SimpleRegion(creds), "staging-")
    region.table("users")   # points at "staging-users"

Each wrapper prepends its prefix before delegating inwards, so the
innermost prefix ends up leftmost:

    PrefixedRegion(PrefixedRegion(SimpleRegion(creds), "a-"), "b-").table("x")
    # -> "a-b-x"
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable, Iterator, Mapping
from typing import Any

from ._logging import logger
from .conditions import Comparison
from .config import ClientConfig
from .credentials import Credentials, SimpleCredentials
from .dosage import Dosage, iterate
from .valve import QueryValve, ScanValve, Valve


class Table(ABC):
    """Handle to one DynamoDB table, read side only."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Full table name, prefixes included."""

    @abstractmethod
    def region(self) -> "Region":
        """Region this table belongs to."""

    @abstractmethod
    def scan(
        self,
        valve: Valve | None = None,
        conditions: Mapping[str, Comparison] | None = None,
        keys: Iterable[str] = (),
    ) -> Dosage:
        """First page of a scan over this table."""

    @abstractmethod
    def query(
        self,
        conditions: Mapping[str, Comparison],
        valve: Valve | None = None,
        keys: Iterable[str] = (),
    ) -> Dosage:
        """First page of a query over this table."""


class Region(ABC):
    """Top-level handle: exposes the client and resolves tables."""

    @abstractmethod
    def aws(self) -> Any:
        """Returns a DynamoDB client."""

    @abstractmethod
    def table(self, name: str) -> Table:
        """Returns a handle to the named table."""

    @staticmethod
    def from_config(config: ClientConfig | None = None) -> "Region":
        """
        Builds a region from connection settings.

        The region is wrapped in a PrefixedRegion when the config
        carries a table prefix.
        """
        config = config or ClientConfig()
        region: Region = SimpleRegion(SimpleCredentials.from_config(config))
        if config.table_prefix:
            region = PrefixedRegion(region, config.table_prefix)
        logger.debug(
            "Region configured",
            extra={
                "operation": "configure",
                "region": config.region_name,
                "endpoint": config.endpoint_url,
                "prefix": config.table_prefix,
            },
        )
        return region


class AwsTable(Table):
    """Table resolved by a SimpleRegion."""

    def __init__(self, credentials: Credentials, region: Region, name: str) -> None:
        self.credentials = credentials
        self._region = region
        self._name = name

    @property
    def name(self) -> str:
        return self._name

    def region(self) -> Region:
        return self._region

    def scan(
        self,
        valve: Valve | None = None,
        conditions: Mapping[str, Comparison] | None = None,
        keys: Iterable[str] = (),
    ) -> Dosage:
        return (valve or ScanValve()).fetch(self.credentials, self._name, conditions, keys)

    def query(
        self,
        conditions: Mapping[str, Comparison],
        valve: Valve | None = None,
        keys: Iterable[str] = (),
    ) -> Dosage:
        return (valve or QueryValve()).fetch(self.credentials, self._name, conditions, keys)

    def items(
        self,
        valve: Valve | None = None,
        conditions: Mapping[str, Comparison] | None = None,
        keys: Iterable[str] = (),
    ) -> Iterator[dict[str, Any]]:
        """
        Lazily scans the whole table, one page at a time.

        Nothing is fetched until iteration starts.
        """
        yield from iterate(self.scan(valve, conditions, keys))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AwsTable):
            return NotImplemented
        return (self._name, self._region) == (other._name, other._region)

    def __hash__(self) -> int:
        return hash((self._name, self._region))

    def __repr__(self) -> str:
        return f"AwsTable({self._name!r})"


class SimpleRegion(Region):
    """Region that resolves names as given, with no transformation."""

    def __init__(self, credentials: Credentials) -> None:
        if credentials is None:
            raise ValueError("credentials must not be None")
        self.credentials = credentials

    def aws(self) -> Any:
        return self.credentials.aws()

    def table(self, name: str) -> Table:
        if not name:
            raise ValueError("table name must not be empty")
        return AwsTable(self.credentials, self, name)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SimpleRegion):
            return NotImplemented
        return self.credentials == other.credentials

    def __hash__(self) -> int:
        return hash(self.credentials)

    def __repr__(self) -> str:
        return f"SimpleRegion({self.credentials!r})"


class PrefixedRegion(Region):
    """Region that puts a fixed prefix in front of every table name."""

    def __init__(self, origin: Region, prefix: str) -> None:
        if origin is None:
            raise ValueError("region must not be None")
        if prefix is None:
            raise ValueError("prefix must not be None")
        self.origin = origin
        self.prefix = prefix

    def aws(self) -> Any:
        return self.origin.aws()

    def table(self, name: str) -> Table:
        if not name:
            raise ValueError("table name must not be empty")
        return self.origin.table(self.prefix + name)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PrefixedRegion):
            return NotImplemented
        return (self.origin, self.prefix) == (other.origin, other.prefix)

    def __hash__(self) -> int:
        return hash((self.origin, self.prefix))

    def __repr__(self) -> str:
        return f"PrefixedRegion({self.origin!r}, {self.prefix!r})"
