"""Fluent search builder over the ledger gateway.

Example:
    >>> ledger = LedgerQuery(GatewayClient())
    >>> txs = ledger.search("transactions").app_name("SmartWeaveAction").tag("Type", "Post").find()
    >>> more = ledger.next()

One `LedgerQuery` instance is one query session: its search state and cursor
belong to whoever drives it, and `search()` starts over.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Any, Iterable, Mapping, Optional, Union

from WeaveQuery.core.errors import InvalidStateError
from WeaveQuery.core.fields import FieldToken, Field, all_fields, close_selection, parse_fields, remove_fields
from WeaveQuery.core.query import (
    MAX_PAGE_SIZE,
    HeightRange,
    SearchKind,
    SearchSpec,
    SortOrder,
    TagFilter,
    as_values,
)
from WeaveQuery.gql.pagination import Model, PageResult, QueryRunner, QueryTransport, first_or_none
from WeaveQuery.gql.render import render_query
from WeaveQuery.utils.log import log

DEFAULT_LIMIT = 10
FIND_ALL_PAGE_SIZE = 100

TagInput = Union[TagFilter, Mapping[str, Any]]


class LedgerQuery:
    """Builds, runs and paginates transaction and block searches."""

    def __init__(self, transport: QueryTransport, *, default_limit: int = DEFAULT_LIMIT) -> None:
        """Create a query session.

        Args:
            transport: Gateway read endpoint (e.g. `GatewayClient`).
            default_limit: Page size used by `find()` when no limit was set.
        """
        self.transport = transport
        self.default_limit = default_limit
        self._runner = QueryRunner(transport)
        self._spec = SearchSpec()
        self._fields: set[Field] = all_fields()

    @property
    def spec(self) -> SearchSpec:
        """Current search state."""
        return self._spec

    @property
    def fields(self) -> frozenset[Field]:
        """Current (closed) transaction field selection."""
        return frozenset(self._fields)

    def search(self, kind: SearchKind | str = SearchKind.TRANSACTIONS) -> LedgerQuery:
        """Start a new search, discarding filters and cursor.

        The field selection is kept. A rejected kind leaves the session
        without a kind, so setters fail until a valid search is started.

        Args:
            kind: "transaction", "transactions", "block" or "blocks".

        Raises:
            InvalidStateError: If the kind is unknown.
        """
        self._runner.reset()
        try:
            self._spec = SearchSpec(kind=SearchKind.parse(kind))
        except InvalidStateError:
            self._spec = SearchSpec()
            raise
        return self

    # Filters

    def id(self, entry_id: str) -> LedgerQuery:
        self._update(id=entry_id, ids=(entry_id,))
        return self

    def ids(self, entry_ids: Iterable[str]) -> LedgerQuery:
        values = as_values(entry_ids)
        self._update(ids=values, id=values[0] if values else None)
        return self

    def tag(self, name: str, values: str | Iterable[str]) -> LedgerQuery:
        """Add a tag filter; earlier tag filters are kept."""
        self._update(tags=self._spec.tags + (TagFilter(name=name, values=as_values(values)),))
        return self

    def tags(self, tags: Iterable[TagInput]) -> LedgerQuery:
        """Replace all tag filters.

        Args:
            tags: `TagFilter`s or mappings with `name` and `values` (or `value`).
        """
        self._update(tags=tuple(_to_tag_filter(tag) for tag in tags))
        return self

    def app_name(self, name: str) -> LedgerQuery:
        return self.tag("App-Name", name)

    def content_type(self, content_type: str) -> LedgerQuery:
        return self.tag("Content-Type", content_type)

    def owners(self, owners: str | Iterable[str]) -> LedgerQuery:
        self._update(owners=as_values(owners))
        return self

    def recipients(self, recipients: str | Iterable[str]) -> LedgerQuery:
        self._update(recipients=as_values(recipients))
        return self

    from_ = owners
    to = recipients

    def min(self, height: int) -> LedgerQuery:
        current = self._spec.height or HeightRange()
        self._update(height=replace(current, min=height))
        return self

    def max(self, height: int) -> LedgerQuery:
        current = self._spec.height or HeightRange()
        self._update(height=replace(current, max=height))
        return self

    def limit(self, limit: int) -> LedgerQuery:
        """Set the page size.

        Values below 1 are raised to 1. Values above 100 are kept, but the
        gateway will not return more than 100 entries per page.
        """
        self._check_search_kind()
        if limit < 1:
            log.warning("Limit cannot be less than 1, setting it to 1.")
            limit = 1
        elif limit > MAX_PAGE_SIZE:
            log.warning("The gateway won't return more than %d entries at once.", MAX_PAGE_SIZE)
        self._spec = replace(self._spec, first=limit)
        return self

    def sort(self, order: SortOrder | str) -> LedgerQuery:
        self._update(sort=SortOrder.parse(order))
        return self

    def cursor(self, after: str) -> LedgerQuery:
        self._update(after=after or "")
        return self

    # Field selection

    def only(self, fields: FieldToken | Iterable[FieldToken]) -> LedgerQuery:
        """Return only these transaction fields (plus required companions)."""
        self._fields = close_selection(parse_fields(fields))
        return self

    def exclude(self, fields: FieldToken | Iterable[FieldToken]) -> LedgerQuery:
        """Stop returning these transaction fields."""
        remove_fields(self._fields, parse_fields(fields))
        return self

    # Execution

    def build_query(self) -> str:
        """Render the current state without running it."""
        return render_query(self._spec, self._fields)

    def find(self, **filters: Any) -> PageResult:
        """Run one page (10 entries unless a limit was set)."""
        self._apply_filters(filters)
        if self._spec.first is None:
            self._spec = replace(self._spec, first=self.default_limit)
        return self._runner.run_page(self._spec, self._fields)

    def find_one(self, **filters: Any) -> Optional[Model]:
        """Run the search for a single entry."""
        self._apply_filters(filters)
        self._spec = replace(self._spec, first=1)
        return first_or_none(self._runner.run_page(self._spec, self._fields))

    def find_all(self, **filters: Any) -> Union[Model, list[Model], None]:
        """Run the search to completion, 100 entries per page."""
        self._apply_filters(filters)
        self._spec = replace(self._spec, first=FIND_ALL_PAGE_SIZE)
        return self._runner.run_all(self._spec, self._fields)

    def next(self) -> PageResult:
        """Fetch the page after the last one returned.

        Returns:
            The next page (a single entry when the page size is 1), or None
            without any request when there is no stored cursor.
        """
        if not self._runner.cursor:
            log.warning("next(): Nothing more to search.")
            return None

        spec = replace(self._spec, after=self._runner.cursor)
        result = self._runner.run_page(spec, self._fields)
        if spec.first == 1:
            return first_or_none(result)
        return result

    def get_cursor(self) -> str:
        """Cursor after the last returned page, for manual pagination."""
        return self._runner.cursor

    # Helpers

    def _check_search_kind(self) -> None:
        if self._spec.kind is None:
            raise InvalidStateError(
                'Invalid search type. Must be either "transaction", "transactions", "block" or "blocks"'
            )

    def _update(self, **changes: Any) -> None:
        self._check_search_kind()
        self._spec = replace(self._spec, **changes)

    def _apply_filters(self, filters: Mapping[str, Any]) -> None:
        """Apply keyword overrides given to the `find*` methods."""
        self._check_search_kind()
        for key, value in filters.items():
            if key == "id":
                self.id(value)
            elif key == "ids":
                self.ids(value)
            elif key == "tags":
                self.tags(value)
            elif key in ("owners", "recipients"):
                self._update(**{key: as_values(value)})
            elif key in ("height", "block"):
                bounds = value if isinstance(value, HeightRange) else HeightRange(**dict(value))
                self._update(height=bounds)
            elif key == "first":
                self.limit(int(value))
            elif key == "after":
                self.cursor(value)
            elif key == "sort":
                self.sort(value)
            else:
                raise InvalidStateError(f"Unknown search filter: {key}")


def _to_tag_filter(tag: TagInput) -> TagFilter:
    if isinstance(tag, TagFilter):
        return tag
    values = tag["values"] if "values" in tag else tag["value"]
    return TagFilter(name=str(tag["name"]), values=as_values(values))
