"""Versioned documents on top of immutable ledger entries.

Every write appends a new entry carrying the whole record:

- indexed fields and the metadata `_id`, `_v`, `_createdAt` as tags;
- non-indexed fields as a JSON payload.

The current version of a document is the entry with its `_id` and the
highest `_v`. Nothing is ever modified or deleted, so reads rebuild the
document state from the entries found through the gateway.

Misses are not errors: lookups return None when nothing (current) matches,
and gateway failures during lookups look the same as "not found".
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Mapping, Optional, Sequence, Union

from WeaveQuery.core.errors import GatewayError, WeaveQueryError
from WeaveQuery.core.fields import Field
from WeaveQuery.core.models import Transaction
from WeaveQuery.documents.codec import (
    DEFAULT_TAG_PREFIX,
    build_filter_tags,
    decode_entry,
    decode_payload,
    encode_entry,
)
from WeaveQuery.documents.schema import (
    CREATED_AT_FIELD,
    ID_FIELD,
    METADATA_FIELDS,
    TX_ID_FIELD,
    VERSION_FIELD,
    Schema,
    validate_record,
)
from WeaveQuery.documents.writer import EntryWriter, PayloadFetcher
from WeaveQuery.gql.pagination import QueryTransport
from WeaveQuery.query.builder import LedgerQuery
from WeaveQuery.utils.log import log

MAX_ID_ATTEMPTS = 10

# Everything needed to decode a document entry.
_ENTRY_FIELDS = (Field.ID, Field.TAGS, Field.BLOCK)

Record = dict[str, Any]


class DocumentModel:
    """Create, read, update and list the history of one kind of document."""

    def __init__(
        self,
        schema: Union[Schema, Mapping[str, Any]],
        transport: QueryTransport,
        writer: EntryWriter,
        *,
        data_fetcher: PayloadFetcher | None = None,
        tag_prefix: str = DEFAULT_TAG_PREFIX,
        id_factory: Callable[[], Any] = uuid.uuid4,
        max_id_attempts: int = MAX_ID_ATTEMPTS,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """Create a document model.

        Args:
            schema: `Schema` or the compact mapping accepted by
                `Schema.from_mapping`.
            transport: Gateway read endpoint.
            writer: Ledger write endpoint.
            data_fetcher: Payload downloader for non-indexed fields; defaults
                to `transport` when it can fetch payloads.
            tag_prefix: Tag name prefix marking document fields.
            id_factory: Generator of candidate document ids.
            max_id_attempts: Candidate ids tried before `create` gives up.
            clock: Source of creation timestamps (aware datetimes).
        """
        self.schema = schema if isinstance(schema, Schema) else Schema.from_mapping(schema)
        self.transport = transport
        self.writer = writer
        if data_fetcher is None and hasattr(transport, "fetch_data"):
            data_fetcher = transport  # type: ignore[assignment]
        self.data_fetcher = data_fetcher
        self.tag_prefix = tag_prefix
        self.id_factory = id_factory
        self.max_id_attempts = max_id_attempts
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    # Writes

    def create(self, record: Mapping[str, Any]) -> Optional[Record]:
        """Store a new document.

        The returned record is assembled locally; the entry may not be
        visible through the gateway yet.

        Args:
            record: Application fields.

        Returns:
            The record with `_id`, `_v` (1), `_createdAt` and `_txId`, or None
            when no unused id could be generated.

        Raises:
            ValidationError: If the record does not match the schema.
            GatewayError: If the writer did not accept the entry.
        """
        validate_record(self.schema, record)
        doc_id = self._new_id()
        if doc_id is None:
            return None
        return self._append(doc_id, 1, record)

    def update_by_id(self, doc_id: str, record: Mapping[str, Any]) -> Optional[Record]:
        """Replace a document by id with a new version.

        The new version holds exactly `record`: fields left out are dropped.

        Returns:
            The new version, or None when the document does not exist.

        Raises:
            ValidationError: If the record does not match the schema.
        """
        validate_record(self.schema, record)
        current = self._current(doc_id)
        if current is None:
            log.debug("update_by_id: no document %s", doc_id)
            return None
        return self._append(doc_id, current[VERSION_FIELD] + 1, record)

    def update_one(self, filters: Mapping[str, Any], record: Mapping[str, Any]) -> Optional[Record]:
        """Replace the document found by `find_one(filters)` with a new version.

        Returns:
            The new version, or None when no current version matches.
        """
        validate_record(self.schema, record)
        source = self._find_current_one(filters)
        if source is None:
            return None
        return self._append(source[ID_FIELD], source[VERSION_FIELD] + 1, record)

    def update_many(self, filters: Mapping[str, Any], record: Mapping[str, Any]) -> Optional[list[Record]]:
        """Replace every document found by `find_many(filters)`.

        Returns:
            The new versions in match order, or None when nothing matched.
        """
        validate_record(self.schema, record)
        sources = self._find_current_many(filters)
        if not sources:
            return None
        return [self._append(source[ID_FIELD], source[VERSION_FIELD] + 1, record) for source in sources]

    # Reads

    def find_by_id(self, doc_id: str, *, with_data: bool = False) -> Optional[Record]:
        """Return the current version of a document, or None."""
        record = self._current(doc_id)
        if record is not None and with_data:
            self.get_data(record)
        return record

    def find_one(self, filters: Mapping[str, Any], *, with_data: bool = False) -> Optional[Record]:
        """Return the newest entry matching `filters` if it is a current version.

        Args:
            filters: Indexed field name to one value or a list of values.
            with_data: Also load the non-indexed fields.

        Returns:
            The record, or None when nothing matches or the match has been
            superseded by a newer version of its document.
        """
        record = self._find_current_one(filters)
        if record is not None and with_data:
            self.get_data(record)
        return record

    def find_many(self, filters: Mapping[str, Any], *, with_data: bool = False) -> Optional[list[Record]]:
        """Return the current versions of all documents matching `filters`.

        Superseded entries that still match are skipped, and each document is
        returned once.

        Returns:
            Matching records in gateway order, or None when no entry matched.
        """
        records = self._find_current_many(filters)
        if records and with_data:
            for record in records:
                self.get_data(record)
        return records

    def history(self, doc_id: str, *, with_data: bool = False) -> list[Record]:
        """Return every version of a document, newest first."""
        records = sorted(self._versions(doc_id), key=_version_of, reverse=True)
        if with_data:
            for record in records:
                self.get_data(record)
        return records

    def get_data(self, record: Record) -> Record:
        """Load the non-indexed fields of a record, in place.

        Nothing is fetched when the schema has no non-indexed field or the
        record already carries all of them.

        Returns:
            The same record.

        Raises:
            WeaveQueryError: If no payload fetcher is configured.
        """
        payload_fields = self.schema.payload_fields
        if not payload_fields or all(name in record for name in payload_fields):
            return record

        tx_id = record.get(TX_ID_FIELD)
        if not tx_id:
            log.warning("Cannot load document data without %s", TX_ID_FIELD)
            return record
        if self.data_fetcher is None:
            raise WeaveQueryError("No payload fetcher configured for this document model")

        try:
            data = self.data_fetcher.fetch_data(tx_id)
        except GatewayError as e:
            log.warning("Failed to load data of entry %s: %s", tx_id, e)
            return record

        for name, value in decode_payload(data).items():
            if name not in METADATA_FIELDS:
                record[name] = value
        return record

    # Helpers

    def _query(self) -> LedgerQuery:
        return LedgerQuery(self.transport).search("transactions").only(_ENTRY_FIELDS)

    def _id_tag(self) -> str:
        return f"{self.tag_prefix}{ID_FIELD}"

    def _decode(self, tx: Transaction) -> Record:
        return decode_entry(self.schema, tx, prefix=self.tag_prefix)

    def _versions(self, doc_id: str) -> list[Record]:
        """Decode every entry of a document, in gateway order."""
        result = self._query().tag(self._id_tag(), doc_id).find_all()
        return [self._decode(tx) for tx in _as_transactions(result)]

    def _current(self, doc_id: str) -> Optional[Record]:
        versions = [record for record in self._versions(doc_id) if isinstance(record.get(VERSION_FIELD), int)]
        if not versions:
            return None
        return max(versions, key=_version_of)

    def _latest_version(self, doc_id: str) -> Optional[int]:
        current = self._current(doc_id)
        return current[VERSION_FIELD] if current is not None else None

    def _find_current_one(self, filters: Mapping[str, Any]) -> Optional[Record]:
        tag_filters = build_filter_tags(self.schema, filters, prefix=self.tag_prefix)
        tx = self._query().tags(tag_filters).find_one()
        if not isinstance(tx, Transaction):
            return None

        record = self._decode(tx)
        doc_id = record.get(ID_FIELD)
        if not doc_id or self._latest_version(doc_id) != record.get(VERSION_FIELD):
            log.debug("find_one: match %s is not the current version", record.get(TX_ID_FIELD))
            return None
        return record

    def _find_current_many(self, filters: Mapping[str, Any]) -> Optional[list[Record]]:
        tag_filters = build_filter_tags(self.schema, filters, prefix=self.tag_prefix)
        matches = _as_transactions(self._query().tags(tag_filters).find_all())
        if not matches:
            return None

        latest: dict[str, Optional[int]] = {}
        records: list[Record] = []
        for tx in matches:
            record = self._decode(tx)
            doc_id = record.get(ID_FIELD)
            if not doc_id or doc_id in latest and latest[doc_id] is None:
                continue
            if doc_id not in latest:
                latest[doc_id] = self._latest_version(doc_id)
            if latest[doc_id] != record.get(VERSION_FIELD):
                continue
            records.append(record)
            # One record per document, even if the gateway lists it twice.
            latest[doc_id] = None
        return records

    def _new_id(self) -> Optional[str]:
        """Generate an id that no existing entry uses yet."""
        for attempt in range(1, self.max_id_attempts + 1):
            candidate = str(self.id_factory())
            taken = self._query().tag(self._id_tag(), candidate).only([Field.ID]).find_one()
            if taken is None:
                return candidate
            log.debug("Document id %s already used (attempt %d/%d)", candidate, attempt, self.max_id_attempts)
        log.warning("Could not generate an unused document id after %d attempts", self.max_id_attempts)
        return None

    def _append(self, doc_id: str, version: int, record: Mapping[str, Any]) -> Record:
        """Write one new version of a document."""
        assembled: Record = {name: value for name, value in record.items() if name not in METADATA_FIELDS}
        assembled[ID_FIELD] = doc_id
        assembled[VERSION_FIELD] = version
        assembled[CREATED_AT_FIELD] = self._clock()

        data, tags = encode_entry(self.schema, assembled, prefix=self.tag_prefix)
        tx_id = self.writer.post_entry(data, tags)
        if not tx_id:
            raise GatewayError(f"Ledger did not accept version {version} of document {doc_id}")

        assembled[TX_ID_FIELD] = tx_id
        log.info("Stored document %s version %d in entry %s", doc_id, version, tx_id)
        return assembled


def _version_of(record: Mapping[str, Any]) -> int:
    version = record.get(VERSION_FIELD)
    return version if isinstance(version, int) else 0


def _as_transactions(result: Any) -> list[Transaction]:
    if isinstance(result, Transaction):
        return [result]
    if isinstance(result, Sequence):
        return [item for item in result if isinstance(item, Transaction)]
    return []
