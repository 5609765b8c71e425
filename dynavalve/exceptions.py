from collections.abc import Generator
from contextlib import contextmanager

from botocore.exceptions import (
    BotoCoreError,
    ClientError,
    ConnectionClosedError,
    ConnectTimeoutError,
    EndpointConnectionError,
    ReadTimeoutError,
)


class DynavalveError(Exception):
    """Base exception for all Dynavalve errors."""

    def __init__(self, message: str, original_error: Exception | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.original_error = original_error


class FetchError(DynavalveError, OSError):
    """
    A page could not be fetched from DynamoDB.

    This is the I/O kind of failure: the same request may be re-issued.
    Whether a retry is likely to help is carried in ``retryable``.
    """

    retryable: bool = False

    def __init__(
        self,
        message: str,
        original_error: Exception | None = None,
        retryable: bool | None = None,
    ) -> None:
        super().__init__(message, original_error)
        if retryable is not None:
            self.retryable = retryable


class TableNotFoundError(FetchError):
    """Raised when the DynamoDB table does not exist."""

    def __init__(self, table_name: str, original_error: Exception | None = None) -> None:
        super().__init__(f"Table '{table_name}' not found", original_error)
        self.table_name = table_name


class ThrottlingError(FetchError):
    """Raised when DynamoDB throttles requests."""

    retryable = True

    def __init__(
        self, message: str = "Request rate exceeded", original_error: Exception | None = None
    ) -> None:
        super().__init__(message, original_error)


class ServiceUnavailableError(FetchError):
    """Raised when DynamoDB reports an internal or availability failure."""

    retryable = True

    def __init__(
        self, message: str = "Service unavailable", original_error: Exception | None = None
    ) -> None:
        super().__init__(message, original_error)


class RequestTimeoutError(FetchError):
    """Raised when a request to DynamoDB times out or the connection drops."""

    retryable = True

    def __init__(
        self, message: str = "Request timed out", original_error: Exception | None = None
    ) -> None:
        super().__init__(message, original_error)


class ValidationError(FetchError):
    """Raised when DynamoDB rejects the request as malformed."""

    def __init__(self, message: str, original_error: Exception | None = None) -> None:
        super().__init__(message, original_error)


class NoNextPageError(DynavalveError, RuntimeError):
    """
    Raised when next() is called on a Dosage that has no further pages.

    This signals caller misuse, so it is never an OSError and never retried.
    """

    def __init__(self, message: str = "nothing left in the iterator") -> None:
        super().__init__(message)


@contextmanager
def handle_dynamo_errors(table_name: str | None = None) -> Generator[None, None, None]:
    """
    Context manager that catches botocore errors and raises
    the appropriate FetchError subclass.

    Args:
        table_name: Optional table name for better error messages

    Usage:
        with handle_dynamo_errors(table_name="users"):
            client.scan(...)
    """
    try:
        yield
    except ClientError as e:
        error_code = e.response.get("Error", {}).get("Code", "Unknown")
        error_message = e.response.get("Error", {}).get("Message", str(e))

        if error_code == "ResourceNotFoundException":
            raise TableNotFoundError(table_name=table_name or "unknown", original_error=e) from e

        if error_code in (
            "ProvisionedThroughputExceededException",
            "ThrottlingException",
            "RequestLimitExceeded",
        ):
            raise ThrottlingError(message=error_message, original_error=e) from e

        if error_code in (
            "InternalServerError",
            "ServiceUnavailable",
            "ServiceUnavailableException",
        ):
            raise ServiceUnavailableError(message=error_message, original_error=e) from e

        if error_code in ("ValidationException", "SerializationException"):
            raise ValidationError(message=error_message, original_error=e) from e

        if error_code in ("RequestTimeout", "RequestTimeoutException"):
            raise RequestTimeoutError(message=error_message, original_error=e) from e

        # Unknown error: wrap in generic FetchError
        raise FetchError(
            message=f"DynamoDB error ({error_code}): {error_message}", original_error=e
        ) from e
    except (
        EndpointConnectionError,
        ConnectionClosedError,
        ConnectTimeoutError,
        ReadTimeoutError,
    ) as e:
        raise RequestTimeoutError(message=str(e), original_error=e) from e
    except BotoCoreError as e:
        raise FetchError(message=f"DynamoDB client error: {e}", original_error=e) from e
