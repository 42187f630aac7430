"""Tests for document schemas and the entry codec."""

from __future__ import annotations

import json
import sys
import unittest
from datetime import datetime, timezone
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT / "src"))

from WeaveQuery.core.errors import ValidationError
from WeaveQuery.core.models import Transaction
from WeaveQuery.documents.codec import (
    DEFAULT_TAG_PREFIX,
    build_filter_tags,
    decode_entry,
    decode_payload,
    encode_entry,
    encode_value,
)
from WeaveQuery.documents.schema import FieldSpec, Schema, validate_record

_SCHEMA = Schema.from_mapping(
    {
        "name": "string",
        "age": "integer",
        "weight": "number",
        "alive": "boolean",
        "father": {"type": "string", "required": False},
        "profile": {"type": "object", "required": False},
    }
)


class TestSchema(unittest.TestCase):
    def test_from_mapping_defaults(self) -> None:
        self.assertEqual(_SCHEMA.get("age").type, "integer")
        self.assertTrue(_SCHEMA.get("name").indexed)
        self.assertFalse(_SCHEMA.get("profile").indexed)
        self.assertEqual(_SCHEMA.payload_fields, ("profile",))
        self.assertNotIn("father", _SCHEMA.required_fields)

    def test_python_types_are_accepted(self) -> None:
        schema = Schema.from_mapping({"count": int, "tags": list})
        self.assertEqual(schema.get("count").type, "integer")
        self.assertEqual(schema.get("tags").type, "array")

    def test_invalid_definitions(self) -> None:
        with self.assertRaises(ValueError):
            Schema.from_mapping({"x": "uuid"})
        with self.assertRaises(ValueError):
            Schema([FieldSpec(name="_id", type="string")])
        with self.assertRaises(ValueError):
            Schema([FieldSpec(name="blob", type="object", indexed=True)])


class TestValidateRecord(unittest.TestCase):
    def _record(self, **overrides) -> dict:
        record = {"name": "Luck", "age": 3, "weight": 4.5, "alive": True}
        record.update(overrides)
        return record

    def test_valid_record(self) -> None:
        validate_record(_SCHEMA, self._record(father=None, _id="ignored"))

    def test_missing_required(self) -> None:
        record = self._record()
        del record["age"]
        with self.assertRaises(ValidationError) as ctx:
            validate_record(_SCHEMA, record)
        self.assertEqual(ctx.exception.field, "age")
        self.assertIn("Required fields missing: age", str(ctx.exception))

    def test_unknown_field(self) -> None:
        with self.assertRaises(ValidationError) as ctx:
            validate_record(_SCHEMA, self._record(color="brown"))
        self.assertEqual(ctx.exception.field, "color")

    def test_wrong_type(self) -> None:
        with self.assertRaises(ValidationError):
            validate_record(_SCHEMA, self._record(age="3"))
        with self.assertRaises(ValidationError):
            validate_record(_SCHEMA, self._record(weight=True))


class TestCodec(unittest.TestCase):
    def test_encode_value(self) -> None:
        self.assertEqual(encode_value(True), "true")
        self.assertEqual(encode_value(3), "3")
        self.assertEqual(
            encode_value(datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)),
            "2024-01-02T03:04:05+00:00",
        )

    def test_encode_entry_splits_tags_and_payload(self) -> None:
        record = {
            "name": "Luck",
            "age": 3,
            "weight": 4.5,
            "alive": False,
            "profile": {"color": "brown"},
            "_id": "doc1",
            "_v": 2,
            "_createdAt": datetime(2024, 1, 2, tzinfo=timezone.utc),
        }
        data, tags = encode_entry(_SCHEMA, record)

        tag_map = {tag.name: tag.value for tag in tags}
        self.assertEqual(tags[0].name, "Content-Type")
        self.assertEqual(tag_map[f"{DEFAULT_TAG_PREFIX}_id"], "doc1")
        self.assertEqual(tag_map[f"{DEFAULT_TAG_PREFIX}_v"], "2")
        self.assertEqual(tag_map[f"{DEFAULT_TAG_PREFIX}alive"], "false")
        self.assertNotIn(f"{DEFAULT_TAG_PREFIX}profile", tag_map)
        self.assertNotIn(f"{DEFAULT_TAG_PREFIX}father", tag_map)
        self.assertEqual(json.loads(data), {"profile": {"color": "brown"}})

    def test_decode_entry_coerces_values(self) -> None:
        node = {
            "id": "tx9",
            "tags": [
                {"name": "Content-Type", "value": "application/json"},
                {"name": "__%$_id", "value": "doc1"},
                {"name": "__%$_v", "value": "3"},
                {"name": "__%$_createdAt", "value": "2024-01-02T00:00:00+00:00"},
                {"name": "__%$name", "value": "Luck"},
                {"name": "__%$age", "value": "3"},
                {"name": "__%$weight", "value": "4.5"},
                {"name": "__%$alive", "value": "true"},
            ],
            "block": {"id": "b", "timestamp": 1704153600, "height": 1, "previous": "a"},
        }
        record = decode_entry(_SCHEMA, Transaction.from_node(node))

        self.assertEqual(record["_id"], "doc1")
        self.assertEqual(record["_v"], 3)
        self.assertEqual(record["_createdAt"], datetime(2024, 1, 2, tzinfo=timezone.utc))
        self.assertEqual(record["age"], 3)
        self.assertEqual(record["weight"], 4.5)
        self.assertIs(record["alive"], True)
        self.assertEqual(record["_txId"], "tx9")
        self.assertEqual(record["_minedAt"], datetime(2024, 1, 2, tzinfo=timezone.utc))
        self.assertNotIn("Content-Type", record)

    def test_pending_entry_has_no_mined_at(self) -> None:
        node = {"id": "tx1", "tags": [{"name": "__%$_v", "value": "1"}], "block": None}
        record = decode_entry(_SCHEMA, Transaction.from_node(node))
        self.assertNotIn("_minedAt", record)

    def test_decode_payload(self) -> None:
        self.assertEqual(decode_payload(b'{"profile": {"a": 1}}'), {"profile": {"a": 1}})
        with self.assertLogs("WeaveQuery", "WARNING"):
            self.assertEqual(decode_payload(b"not json"), {})
        with self.assertLogs("WeaveQuery", "WARNING"):
            self.assertEqual(decode_payload(b"[1, 2]"), {})

    def test_build_filter_tags(self) -> None:
        filters = build_filter_tags(_SCHEMA, {"name": ["Luck", "Bob"], "age": 3, "_id": "doc1"})
        self.assertEqual(
            [(tag.name, tag.values) for tag in filters],
            [("__%$name", ("Luck", "Bob")), ("__%$age", ("3",)), ("__%$_id", ("doc1",))],
        )

    def test_filter_rejects_unknown_or_unindexed_fields(self) -> None:
        with self.assertRaises(ValidationError):
            build_filter_tags(_SCHEMA, {"color": "brown"})
        with self.assertRaises(ValidationError):
            build_filter_tags(_SCHEMA, {"profile": "x"})


if __name__ == "__main__":
    unittest.main()
