"""Command implementations for the WeaveQuery CLI.

Turns parsed command-line options into a ledger search, separated from
click parameter handling and output printing.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from WeaveQuery.config import AppConfig
from WeaveQuery.core.models import Block, Transaction
from WeaveQuery.core.query import TagFilter
from WeaveQuery.query.builder import LedgerQuery
from WeaveQuery.renderers import render
from WeaveQuery.utils.log import log


@dataclass(frozen=True, slots=True)
class SearchRequest:
    """Options of one `search` invocation.

    Attributes:
        kind: "transaction", "transactions", "block" or "blocks".
        ids: Entry ids; single kinds use the first one.
        tags: (name, value) pairs; values sharing a name are alternatives.
        fetch_all: Follow cursors until the last page.
        output_format: "text" or "json".
    """

    kind: str
    ids: tuple[str, ...] = ()
    tags: tuple[tuple[str, str], ...] = ()
    app_name: Optional[str] = None
    content_type: Optional[str] = None
    owners: tuple[str, ...] = ()
    recipients: tuple[str, ...] = ()
    min_height: Optional[int] = None
    max_height: Optional[int] = None
    limit: Optional[int] = None
    sort: Optional[str] = None
    cursor: str = ""
    only: tuple[str, ...] = ()
    exclude: tuple[str, ...] = ()
    fetch_all: bool = False
    output_format: str = "text"


def parse_tag_option(raw: str) -> tuple[str, str]:
    """Split a `NAME=VALUE` option.

    Raises:
        ValueError: If there is no `=` or the name is empty.
    """
    name, sep, value = raw.partition("=")
    if not sep or not name.strip():
        raise ValueError(f"Expected NAME=VALUE, got {raw!r}")
    return name.strip(), value


def group_tags(pairs: tuple[tuple[str, str], ...]) -> list[TagFilter]:
    """Merge (name, value) pairs into one filter per name, keeping first-seen order."""
    grouped: dict[str, list[str]] = {}
    for name, value in pairs:
        grouped.setdefault(name, []).append(value)
    return [TagFilter(name=name, values=tuple(values)) for name, values in grouped.items()]


@dataclass(slots=True)
class SearchCommand:
    """Runs one search and renders its result."""

    config: AppConfig
    ledger: LedgerQuery
    request: SearchRequest

    def build(self) -> LedgerQuery:
        """Apply the request to a fresh search on the ledger."""
        req = self.request
        ledger = self.ledger.search(req.kind)

        if req.ids:
            ledger.ids(list(req.ids))
        if req.tags:
            ledger.tags(group_tags(req.tags))
        if req.app_name:
            ledger.app_name(req.app_name)
        if req.content_type:
            ledger.content_type(req.content_type)
        if req.owners:
            ledger.owners(list(req.owners))
        if req.recipients:
            ledger.recipients(list(req.recipients))
        if req.min_height is not None:
            ledger.min(req.min_height)
        if req.max_height is not None:
            ledger.max(req.max_height)
        if req.limit is not None:
            ledger.limit(req.limit)
        sort = req.sort or self.config.query.sort
        if sort:
            ledger.sort(sort)
        if req.cursor:
            ledger.cursor(req.cursor)
        if req.only:
            ledger.only(list(req.only))
        if req.exclude:
            ledger.exclude(list(req.exclude))
        return ledger

    def execute(self) -> str:
        """Run the search.

        Returns:
            Rendered output in the requested format.
        """
        ledger = self.build()
        log.debug("Query:\n%s", ledger.build_query())

        result = ledger.find_all() if self.request.fetch_all else ledger.find()
        models = _as_models(result)
        log.info("Fetched %d %s", len(models), "entries" if len(models) != 1 else "entry")

        cursor = ledger.get_cursor()
        if cursor and not self.request.fetch_all:
            log.info("Next page: --cursor %s", cursor)
        return render(models, self.request.output_format)


def _as_models(result) -> list[Transaction | Block]:
    if result is None:
        return []
    if isinstance(result, (Transaction, Block)):
        return [result]
    return list(result)
