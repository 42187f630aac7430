"""Collaborators of the document layer that live outside this package."""

from __future__ import annotations

from typing import Optional, Protocol, Sequence

from WeaveQuery.core.models import Tag


class EntryWriter(Protocol):
    """Write side of the ledger.

    Implementations create, sign and post one new immutable entry. Key
    management and signing are entirely theirs.
    """

    def post_entry(self, data: bytes, tags: Sequence[Tag]) -> Optional[str]:
        """Post an entry and return its id, or None if it was not accepted."""
        raise NotImplementedError


class PayloadFetcher(Protocol):
    """Downloads the raw payload of an entry (`GatewayClient` is one)."""

    def fetch_data(self, entry_id: str) -> bytes:
        raise NotImplementedError
