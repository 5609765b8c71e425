"""
Dosage: an immutable cursor over one fetched page.

A Dosage never changes after construction. ``next()`` issues exactly one
remote call and returns a *new* Dosage, so a failed ``next()`` leaves the
receiver intact and the call can simply be repeated on it.

    dosage = ScanValve().fetch(creds, "users", {}, ["email"])
    for item in iterate(dosage):
        ...
"""

from abc import ABC, abstractmethod
from collections.abc import Iterator
from typing import Any

from .exceptions import NoNextPageError


class Dosage(ABC):
    """One page of items plus the means to fetch the next one."""

    @abstractmethod
    def items(self) -> list[dict[str, Any]]:
        """Items of this page, in the order DynamoDB returned them."""

    @abstractmethod
    def has_next(self) -> bool:
        """True iff DynamoDB returned a continuation key. Does no I/O."""

    @abstractmethod
    def next(self) -> "Dosage":
        """
        Fetches the next page.

        Raises:
            NoNextPageError: If has_next() is False
            FetchError: If the remote call failed
        """


class _EmptyDosage(Dosage):
    def items(self) -> list[dict[str, Any]]:
        return []

    def has_next(self) -> bool:
        return False

    def next(self) -> Dosage:
        raise NoNextPageError("empty dosage has no next page")

    def __repr__(self) -> str:
        return "Dosage.EMPTY"


EMPTY: Dosage = _EmptyDosage()


def pages(dosage: Dosage) -> Iterator[Dosage]:
    """
    Yields ``dosage`` and every Dosage after it in the chain.

    Lazy: the next page is fetched only when the caller asks for it.
    """
    current = dosage
    yield current
    while current.has_next():
        current = current.next()
        yield current


def iterate(dosage: Dosage) -> Iterator[dict[str, Any]]:
    """Yields every item across the chain, page by page."""
    for page in pages(dosage):
        yield from page.items()
