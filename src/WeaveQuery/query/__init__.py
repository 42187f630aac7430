from __future__ import annotations

from WeaveQuery.query.builder import LedgerQuery

__all__ = ["LedgerQuery"]
