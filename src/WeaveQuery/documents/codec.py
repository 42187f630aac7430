"""Mapping between document records and tagged ledger entries."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Mapping

from dateutil import parser as dt_parser

from WeaveQuery.core.models import Tag, Transaction
from WeaveQuery.core.query import TagFilter, as_values
from WeaveQuery.core.errors import ValidationError
from WeaveQuery.documents.schema import (
    CREATED_AT_FIELD,
    ID_FIELD,
    MINED_AT_FIELD,
    TX_ID_FIELD,
    VERSION_FIELD,
    Schema,
)
from WeaveQuery.utils.log import log

DEFAULT_TAG_PREFIX = "__%$"
PAYLOAD_CONTENT_TYPE = "application/json"

# Metadata stored as tags, in the order they are written.
_STORED_METADATA = (ID_FIELD, VERSION_FIELD, CREATED_AT_FIELD)


def encode_value(value: Any) -> str:
    """Render a scalar as a tag value."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


def encode_entry(
    schema: Schema,
    record: Mapping[str, Any],
    *,
    prefix: str = DEFAULT_TAG_PREFIX,
) -> tuple[bytes, list[Tag]]:
    """Encode a record into payload bytes and tags.

    Args:
        schema: Document schema.
        record: Validated record including `_id`, `_v` and `_createdAt`.
        prefix: Tag name prefix marking document fields.

    Returns:
        JSON payload of the non-indexed fields and the tag list.
    """
    tags = [Tag(name="Content-Type", value=PAYLOAD_CONTENT_TYPE)]
    payload: dict[str, Any] = {}

    for name in _STORED_METADATA:
        tags.append(Tag(name=f"{prefix}{name}", value=encode_value(record[name])))

    for spec in schema:
        value = record.get(spec.name)
        if value is None:
            continue
        if spec.indexed:
            tags.append(Tag(name=f"{prefix}{spec.name}", value=encode_value(value)))
        else:
            payload[spec.name] = value

    data = json.dumps(payload, ensure_ascii=False, sort_keys=True).encode("utf-8")
    return data, tags


def decode_entry(schema: Schema, tx: Transaction, *, prefix: str = DEFAULT_TAG_PREFIX) -> dict[str, Any]:
    """Rebuild a record from an entry's tags.

    Non-indexed fields are not included; see `decode_payload`.

    Args:
        schema: Document schema.
        tx: Entry returned by the gateway (tags, id and block selected).
        prefix: Tag name prefix marking document fields.

    Returns:
        Record with coerced values plus `_txId` and, once mined, `_minedAt`.
    """
    record: dict[str, Any] = {}
    for tag in tx.tags or ():
        if tag.name.startswith(prefix):
            record[tag.name[len(prefix):]] = tag.value

    coerce_record(schema, record)
    record[TX_ID_FIELD] = tx.id
    if not tx.is_pending and tx.block.timestamp is not None:
        record[MINED_AT_FIELD] = datetime.fromtimestamp(tx.block.timestamp, tz=timezone.utc)
    return record


def decode_payload(data: bytes) -> dict[str, Any]:
    """Decode a JSON payload written by `encode_entry`.

    Returns:
        The payload fields; empty when the payload is not a JSON object.
    """
    try:
        decoded = json.loads(data.decode("utf-8") if isinstance(data, bytes) else data)
    except (UnicodeDecodeError, ValueError) as e:
        log.warning("Entry payload is not valid JSON: %s", e)
        return {}
    if not isinstance(decoded, dict):
        log.warning("Entry payload is not a JSON object")
        return {}
    return decoded


def coerce_record(schema: Schema, record: dict[str, Any]) -> dict[str, Any]:
    """Convert tag strings back into typed values, in place.

    `_v` becomes an int, `_createdAt` an aware datetime, and schema fields of
    numeric or boolean type are parsed from their string form.
    """
    if isinstance(record.get(VERSION_FIELD), str):
        try:
            record[VERSION_FIELD] = int(record[VERSION_FIELD])
        except ValueError:
            log.warning("Invalid document version: %r", record[VERSION_FIELD])
    if isinstance(record.get(CREATED_AT_FIELD), str):
        try:
            record[CREATED_AT_FIELD] = dt_parser.isoparse(record[CREATED_AT_FIELD])
        except ValueError:
            log.warning("Invalid document creation date: %r", record[CREATED_AT_FIELD])

    for spec in schema:
        value = record.get(spec.name)
        if not isinstance(value, str):
            continue
        try:
            if spec.type == "integer":
                record[spec.name] = int(value)
            elif spec.type == "number":
                record[spec.name] = _parse_number(value)
            elif spec.type == "boolean":
                record[spec.name] = value.strip().lower() == "true"
        except ValueError:
            log.debug("Keeping %s as string, cannot parse %r as %s", spec.name, value, spec.type)
    return record


def build_filter_tags(
    schema: Schema,
    filters: Mapping[str, Any],
    *,
    prefix: str = DEFAULT_TAG_PREFIX,
) -> list[TagFilter]:
    """Translate a field filter into tag predicates.

    Args:
        schema: Document schema.
        filters: Field name to one value or a list of accepted values.
        prefix: Tag name prefix marking document fields.

    Returns:
        Tag filters, one per field.

    Raises:
        ValidationError: If a field is unknown or not indexed.
    """
    tag_filters: list[TagFilter] = []
    for name, value in filters.items():
        spec = schema.get(name)
        if spec is None and name not in _STORED_METADATA:
            raise ValidationError(f"Unknown field in filter: {name}", field=name)
        if spec is not None and not spec.indexed:
            raise ValidationError(f"Field {name} is not indexed and cannot be used in a filter", field=name)
        if isinstance(value, (set, frozenset)):
            values = sorted(value, key=str)
        elif isinstance(value, (list, tuple)):
            values = list(value)
        else:
            values = [value]
        tag_filters.append(
            TagFilter(name=f"{prefix}{name}", values=as_values([encode_value(item) for item in values]))
        )
    return tag_filters


def _parse_number(value: str) -> int | float:
    try:
        return int(value)
    except ValueError:
        return float(value)
