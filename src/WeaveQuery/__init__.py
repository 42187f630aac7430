"""WeaveQuery: query builder and versioned documents for ledger gateways."""

from __future__ import annotations

from WeaveQuery.core.errors import (
    GatewayError,
    InvalidQueryError,
    InvalidStateError,
    ValidationError,
    WeaveQueryError,
)
from WeaveQuery.core.fields import Field
from WeaveQuery.core.models import Block, Tag, Transaction
from WeaveQuery.core.query import SearchKind, SortOrder
from WeaveQuery.documents import DocumentModel, Schema, SchemaRegistry
from WeaveQuery.gql.client import GatewayClient
from WeaveQuery.query.builder import LedgerQuery

__all__ = [
    "Block",
    "DocumentModel",
    "Field",
    "GatewayClient",
    "GatewayError",
    "InvalidQueryError",
    "InvalidStateError",
    "LedgerQuery",
    "Schema",
    "SchemaRegistry",
    "SearchKind",
    "SortOrder",
    "Tag",
    "Transaction",
    "ValidationError",
    "WeaveQueryError",
]
