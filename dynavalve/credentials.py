"""
Credentials resolve into live DynamoDB clients.

Every call to ``aws()`` returns a fresh boto3 client. Valves treat the
client as a single-call resource: acquire it, issue one request, close it.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable, Generator
from contextlib import contextmanager
from typing import Any

import boto3
from botocore.config import Config

from ._logging import logger
from .config import ClientConfig


class Credentials(ABC):
    """Source of DynamoDB clients."""

    @abstractmethod
    def aws(self) -> Any:
        """Returns a new low-level DynamoDB client."""


class SimpleCredentials(Credentials):
    """
    Explicit access key and secret in a given region.

    Usage:
        creds = SimpleCredentials("AKIA...", "secret", region="eu-west-1")
    """

    def __init__(
        self,
        key: str | None,
        secret: str | None,
        region: str = "us-east-1",
        config: Config | None = None,
        endpoint_url: str | None = None,
    ) -> None:
        self.key = key
        self.secret = secret
        self.region = region
        self.config = config
        self.endpoint_url = endpoint_url

    @classmethod
    def from_config(cls, config: ClientConfig) -> "SimpleCredentials":
        return cls(
            config.aws_access_key_id,
            config.aws_secret_access_key,
            region=config.region_name,
            config=config.to_botocore(),
            endpoint_url=config.endpoint_url,
        )

    def aws(self) -> Any:
        kwargs: dict[str, Any] = {"region_name": self.region}
        if self.key and self.secret:
            kwargs["aws_access_key_id"] = self.key
            kwargs["aws_secret_access_key"] = self.secret
        if self.config is not None:
            kwargs["config"] = self.config
        if self.endpoint_url:
            kwargs["endpoint_url"] = self.endpoint_url
        return boto3.client("dynamodb", **kwargs)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SimpleCredentials):
            return NotImplemented
        return (self.key, self.region, self.endpoint_url) == (
            other.key,
            other.region,
            other.endpoint_url,
        )

    def __hash__(self) -> int:
        return hash((self.key, self.region, self.endpoint_url))

    def __repr__(self) -> str:
        # The secret never goes into reprs or logs
        return f"SimpleCredentials(key={self.key!r}, region={self.region!r})"


class DirectCredentials(Credentials):
    """
    Points another set of credentials at a custom endpoint.

    Useful for LocalStack or DynamoDB Local:
        creds = DirectCredentials(SimpleCredentials("test", "test"), "http://localhost:4566")
    """

    def __init__(self, origin: SimpleCredentials, endpoint: str) -> None:
        if not endpoint:
            raise ValueError("endpoint must not be empty")
        self.origin = origin
        self.endpoint = endpoint

    def aws(self) -> Any:
        return SimpleCredentials(
            self.origin.key,
            self.origin.secret,
            region=self.origin.region,
            config=self.origin.config,
            endpoint_url=self.endpoint,
        ).aws()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DirectCredentials):
            return NotImplemented
        return (self.origin, self.endpoint) == (other.origin, other.endpoint)

    def __hash__(self) -> int:
        return hash((self.origin, self.endpoint))

    def __repr__(self) -> str:
        return f"DirectCredentials({self.origin!r}, endpoint={self.endpoint!r})"


class ClientCredentials(Credentials):
    """
    Delegates to any zero-argument client factory.

    Mostly for tests and for callers that manage sessions themselves:
        creds = ClientCredentials(lambda: session.client("dynamodb"))
    """

    def __init__(self, factory: Callable[[], Any]) -> None:
        self.factory = factory

    def aws(self) -> Any:
        return self.factory()

    def __repr__(self) -> str:
        return f"ClientCredentials({self.factory!r})"


@contextmanager
def acquire(credentials: Credentials) -> Generator[Any, None, None]:
    """
    Scopes one client to a block of code and closes it on exit.

    A failure while closing is logged and dropped, so it never
    replaces the exception raised inside the block.

    Usage:
        with acquire(creds) as client:
            client.scan(...)
    """
    client = credentials.aws()
    try:
        yield client
    finally:
        try:
            client.close()
        except Exception as e:
            logger.warning(
                "Failed to close DynamoDB client",
                extra={"operation": "close", "error": repr(e)},
            )
