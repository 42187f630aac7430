"""Query execution and cursor-based pagination.

Runs compiled queries through a gateway transport and maps the response,
which comes back in one of four shapes (`transaction`, `block`,
`transactions`, `blocks`), into result models.

Two modes are supported:

- single page: one request; the last edge cursor is remembered so a caller
  can continue manually;
- exhaustive: pages are requested one after the other, each with the cursor
  of the previous page, until the gateway reports no further page.

Gateway failures and malformed responses are logged and treated as "no
result". Nothing is retried here; that is the transport's policy.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Mapping, Optional, Protocol, Sequence, Union

from WeaveQuery.core.errors import GatewayError
from WeaveQuery.core.fields import Field
from WeaveQuery.core.models import Block, Transaction
from WeaveQuery.core.query import SearchSpec
from WeaveQuery.gql.render import render_query
from WeaveQuery.utils.log import log

Model = Union[Transaction, Block]
PageResult = Union[Model, list[Model], None]


class QueryTransport(Protocol):
    """Read side of the gateway: runs one GraphQL query."""

    def post_query(self, query: str) -> Optional[Mapping[str, Any]]:
        """Return the `data` member of the response, or None."""
        raise NotImplementedError


@dataclass(frozen=True, slots=True)
class Page:
    """One decoded gateway response.

    Attributes:
        items: Models of the page, in gateway order.
        single: True when the response was a single-record shape.
        has_next_page: Gateway's `pageInfo.hasNextPage` flag.
        end_cursor: Cursor of the last edge, empty for an empty page.
    """

    items: tuple[Model, ...]
    single: bool = False
    has_next_page: bool = False
    end_cursor: str = ""


def parse_response(data: Optional[Mapping[str, Any]]) -> Optional[Page]:
    """Decode a gateway `data` member into a `Page`.

    Args:
        data: The `data` member of a GraphQL response.

    Returns:
        The decoded page, or None when no known shape is present.
    """
    if not isinstance(data, Mapping):
        return None

    if "transaction" in data:
        node = data["transaction"]
        items = (Transaction.from_node(node),) if isinstance(node, Mapping) else ()
        return Page(items=items, single=True)

    if "block" in data:
        node = data["block"]
        items = (Block.from_node(node),) if isinstance(node, Mapping) else ()
        return Page(items=items, single=True)

    for key, model in (("transactions", Transaction), ("blocks", Block)):
        if key not in data:
            continue
        connection = data[key]
        if not isinstance(connection, Mapping):
            return None
        edges = connection.get("edges") or []
        page_info = connection.get("pageInfo") or {}
        items = tuple(
            model.from_node(edge["node"], cursor=edge.get("cursor"))
            for edge in edges
            if isinstance(edge, Mapping) and isinstance(edge.get("node"), Mapping)
        )
        end_cursor = ""
        if edges and isinstance(edges[-1], Mapping):
            end_cursor = str(edges[-1].get("cursor") or "")
        return Page(
            items=items,
            has_next_page=bool(page_info.get("hasNextPage")) if isinstance(page_info, Mapping) else False,
            end_cursor=end_cursor,
        )

    return None


class QueryRunner:
    """Executes searches and keeps the cursor of the last page.

    Attributes:
        transport: Gateway read endpoint.
        cursor: Cursor after the last page returned by `run_page`; empty when
            nothing was run yet or the last page was empty.
    """

    def __init__(self, transport: QueryTransport) -> None:
        self.transport = transport
        self.cursor = ""

    def reset(self) -> None:
        """Forget the stored cursor."""
        self.cursor = ""

    def run_page(self, spec: SearchSpec, fields: set[Field] | None = None) -> PageResult:
        """Run one page of a search.

        Args:
            spec: Search state; its `after` is the cursor to start from.
            fields: Transaction field selection.

        Returns:
            One model (or None) for single-record kinds, a list of models for
            list kinds, None when the gateway failed or answered nothing.
        """
        page = self._fetch(render_query(spec, fields))
        if page is None:
            return None

        if page.single:
            return page.items[0] if page.items else None

        self.cursor = page.end_cursor
        return list(page.items)

    def run_all(self, spec: SearchSpec, fields: set[Field] | None = None) -> Union[Model, list[Model], None]:
        """Run a search to completion, following cursors.

        Args:
            spec: Search state; its `after` is the cursor to start from.
            fields: Transaction field selection.

        Returns:
            Every model across all pages in gateway order. A single-record
            response is returned as-is. When a request fails, the models
            accumulated so far are returned.
        """
        collected: list[Model] = []
        current = spec
        page_num = 0

        while True:
            page = self._fetch(render_query(current, fields))
            if page is None:
                if page_num:
                    log.warning("Pagination stopped after %d page(s); returning partial results", page_num)
                return collected

            if page.single:
                return page.items[0] if page.items else None

            page_num += 1
            collected.extend(page.items)
            log.debug("Fetched page %d: %d items (total %d)", page_num, len(page.items), len(collected))

            if not page.has_next_page:
                break
            if not page.end_cursor:
                log.warning("Gateway reported more pages without returning a cursor; stop")
                break
            current = replace(current, after=page.end_cursor)

        return collected

    def _fetch(self, query: str) -> Optional[Page]:
        """Send one query and decode it, treating failures as no result."""
        log.debug("Running query:\n%s", query)
        try:
            data = self.transport.post_query(query)
        except GatewayError as e:
            log.warning("Gateway request failed: %s", e)
            return None

        page = parse_response(data)
        if page is None:
            log.debug("Gateway response has no known shape: %s", data)
        return page


def first_or_none(result: PageResult) -> Optional[Model]:
    """Collapse a page result into one model."""
    if isinstance(result, Sequence):
        return result[0] if result else None
    return result
