"""GraphQL rendering, transport and pagination for the ledger gateway."""

from __future__ import annotations

from WeaveQuery.gql.client import GatewayClient
from WeaveQuery.gql.pagination import QueryRunner, QueryTransport, parse_response
from WeaveQuery.gql.render import render_query

__all__ = [
    "GatewayClient",
    "QueryRunner",
    "QueryTransport",
    "parse_response",
    "render_query",
]
