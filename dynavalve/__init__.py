from .conditions import (
    Comparison,
    begins_with,
    between,
    contains,
    equal_to,
    exists,
    greater_or_equal,
    greater_than,
    is_in,
    less_or_equal,
    less_than,
    not_contains,
    not_equal_to,
    not_exists,
)
from .config import ClientConfig
from .credentials import (
    ClientCredentials,
    Credentials,
    DirectCredentials,
    SimpleCredentials,
    acquire,
)
from .dosage import EMPTY, Dosage, iterate, pages
from .exceptions import (
    DynavalveError,
    FetchError,
    NoNextPageError,
    RequestTimeoutError,
    ServiceUnavailableError,
    TableNotFoundError,
    ThrottlingError,
    ValidationError,
)
from .pagination import PageResult
from .region import AwsTable, PrefixedRegion, Region, SimpleRegion, Table
from .request import QueryRequest, ScanRequest
from .retry import RetryPolicy, RetryValve
from .valve import QueryValve, ScanValve, Valve

__all__ = [
    # Regions and tables
    "Region",
    "SimpleRegion",
    "PrefixedRegion",
    "Table",
    "AwsTable",
    # Valves and cursors
    "Valve",
    "ScanValve",
    "QueryValve",
    "RetryValve",
    "RetryPolicy",
    "Dosage",
    "EMPTY",
    "iterate",
    "pages",
    "ScanRequest",
    "QueryRequest",
    "PageResult",
    # Credentials and config
    "Credentials",
    "SimpleCredentials",
    "DirectCredentials",
    "ClientCredentials",
    "acquire",
    "ClientConfig",
    # Conditions
    "Comparison",
    "equal_to",
    "not_equal_to",
    "less_than",
    "less_or_equal",
    "greater_than",
    "greater_or_equal",
    "between",
    "begins_with",
    "contains",
    "not_contains",
    "is_in",
    "exists",
    "not_exists",
    # Exceptions
    "DynavalveError",
    "FetchError",
    "NoNextPageError",
    "TableNotFoundError",
    "ThrottlingError",
    "ServiceUnavailableError",
    "RequestTimeoutError",
    "ValidationError",
]
