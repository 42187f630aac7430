from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional

from WeaveQuery.core.errors import InvalidStateError

MAX_PAGE_SIZE = 100


class SearchKind(str, Enum):
    """Record shape a search is run against."""

    TRANSACTION = "transaction"
    TRANSACTIONS = "transactions"
    BLOCK = "block"
    BLOCKS = "blocks"

    @property
    def is_single(self) -> bool:
        return self in (SearchKind.TRANSACTION, SearchKind.BLOCK)

    @property
    def is_block(self) -> bool:
        return self in (SearchKind.BLOCK, SearchKind.BLOCKS)

    @classmethod
    def parse(cls, value: SearchKind | str) -> SearchKind:
        """Resolve a kind from its value.

        Raises:
            InvalidStateError: If `value` is not a known kind.
        """
        if isinstance(value, SearchKind):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise InvalidStateError(
                'Invalid search type. Must be either "transaction", "transactions", "block" or "blocks"'
            ) from None


class SortOrder(str, Enum):
    """Gateway sort order, by block height."""

    HEIGHT_DESC = "HEIGHT_DESC"
    HEIGHT_ASC = "HEIGHT_ASC"

    @classmethod
    def parse(cls, value: SortOrder | str) -> SortOrder:
        if isinstance(value, SortOrder):
            return value
        return cls(str(value).strip().upper())


@dataclass(frozen=True, slots=True)
class TagFilter:
    """Tag predicate: the tag `name` must hold one of `values`.

    Distinct tag filters are ANDed by the gateway; values within one filter
    are ORed.
    """

    name: str
    values: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class HeightRange:
    """Inclusive block height bounds; either side may be open."""

    min: Optional[int] = None
    max: Optional[int] = None


@dataclass(frozen=True, slots=True)
class SearchSpec:
    """Accumulated parameters of one in-progress search.

    A spec is immutable: every setter of the query builder produces a new one
    with `dataclasses.replace`. Fields that do not apply to `kind` are kept
    here but never rendered.

    Attributes:
        kind: Shape of the search, None until a search is started.
        id: Single id, the only parameter of single-record lookups.
        ids: Id list for list searches.
        tags: Tag predicates, in insertion order.
        owners: Owner addresses (transactions only).
        recipients: Recipient addresses (transactions only).
        height: Block height bounds (blocks only).
        first: Page size.
        after: Cursor to resume from; empty means the start.
        sort: Sort order.
    """

    kind: Optional[SearchKind] = None
    id: Optional[str] = None
    ids: tuple[str, ...] = ()
    tags: tuple[TagFilter, ...] = ()
    owners: tuple[str, ...] = ()
    recipients: tuple[str, ...] = ()
    height: Optional[HeightRange] = None
    first: Optional[int] = None
    after: str = ""
    sort: Optional[SortOrder] = None


def as_values(value: str | Iterable[str]) -> tuple[str, ...]:
    """Normalise one value or an iterable of values into a tuple of strings.

    Raises:
        TypeError: If `value` is bytes.
    """
    if isinstance(value, str):
        return (value,)
    if isinstance(value, (bytes, bytearray)):
        raise TypeError("Expected text values, got bytes")
    if not isinstance(value, Iterable):
        return (str(value),)
    return tuple(str(item) for item in value)
