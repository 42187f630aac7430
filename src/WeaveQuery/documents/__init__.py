"""Versioned document layer over immutable ledger entries.

A `DocumentModel` stores every write as a new tagged entry and rebuilds the
current state of a document from the entry with the highest `_v`.
"""

from __future__ import annotations

from WeaveQuery.documents.codec import DEFAULT_TAG_PREFIX, build_filter_tags, decode_entry, encode_entry
from WeaveQuery.documents.model import DocumentModel
from WeaveQuery.documents.registry import SchemaRegistry
from WeaveQuery.documents.schema import FieldSpec, Schema, validate_record
from WeaveQuery.documents.writer import EntryWriter, PayloadFetcher

__all__ = [
    "DEFAULT_TAG_PREFIX",
    "DocumentModel",
    "EntryWriter",
    "FieldSpec",
    "PayloadFetcher",
    "Schema",
    "SchemaRegistry",
    "build_filter_tags",
    "decode_entry",
    "encode_entry",
    "validate_record",
]
