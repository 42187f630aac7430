"""Query defaults applied by the CLI."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from WeaveQuery.config.common import expect_int, expect_str, get_optional_value, get_section
from WeaveQuery.core.query import MAX_PAGE_SIZE, SortOrder


@dataclass(frozen=True, slots=True)
class QueryConfig:
    """Validated query defaults.

    Attributes:
        default_limit: Page size of a search without `--limit`.
        sort: Sort order name, empty to use the gateway default.
    """

    default_limit: int = 10
    sort: str = ""


def load_query(raw: Mapping[str, Any]) -> QueryConfig:
    """Load the optional `query` section."""
    section = get_section(raw, "query", required=False)
    return QueryConfig(
        default_limit=expect_int(get_optional_value(section, "default_limit", 10), "query.default_limit"),
        sort=expect_str(get_optional_value(section, "sort", "") or "", "query.sort").upper(),
    )


def check_query(config: QueryConfig) -> None:
    """Validate query defaults.

    Args:
        config: Parsed query configuration.

    Raises:
        ValueError: If the default limit or sort order is not accepted.
    """
    if not 1 <= config.default_limit <= MAX_PAGE_SIZE:
        raise ValueError(f"query.default_limit must be between 1 and {MAX_PAGE_SIZE}")
    if config.sort:
        try:
            SortOrder.parse(config.sort)
        except ValueError:
            raise ValueError(f"query.sort must be one of {[order.value for order in SortOrder]}") from None
