"""Tests for gateway result models."""

import sys
import unittest
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT / "src"))

from WeaveQuery.core.models import Block, Tag, Transaction, model_to_dict

_NODE = {
    "id": "tx1",
    "owner": {"address": "alice", "key": "k"},
    "fee": {"winston": "10", "ar": "0.00000000001"},
    "data": {"size": "42", "type": "application/json"},
    "tags": [{"name": "App-Name", "value": "Demo"}, {"name": "Type", "value": "Post"}],
    "block": {"id": "b1", "timestamp": 1600000000, "height": 10, "previous": "b0"},
    "parent": None,
}


class TestTransaction(unittest.TestCase):
    def test_from_node(self) -> None:
        tx = Transaction.from_node(_NODE, cursor="c1")
        self.assertEqual(tx.id, "tx1")
        self.assertEqual(tx.owner.address, "alice")
        self.assertEqual(tx.data.size, 42)
        self.assertEqual(tx.tags[1], Tag(name="Type", value="Post"))
        self.assertEqual(tx.block.height, 10)
        self.assertEqual(tx.cursor, "c1")
        self.assertFalse(tx.is_pending)
        self.assertEqual(tx.tag_map(), {"App-Name": "Demo", "Type": "Post"})

    def test_unselected_field_warns(self) -> None:
        tx = Transaction.from_node({"id": "tx1"})
        with self.assertLogs("WeaveQuery", "WARNING") as logs:
            self.assertIsNone(tx.owner)
        self.assertIn("Owner wasn't defined, make sure you have selected to return it.", logs.output[0])

    def test_pending_entry(self) -> None:
        tx = Transaction.from_node({"id": "tx1", "block": None, "parent": {"id": ""}})
        self.assertTrue(tx.is_pending)
        self.assertIsNone(tx._parent)

    def test_model_to_dict_keeps_selected_fields(self) -> None:
        data = model_to_dict(Transaction.from_node(_NODE, cursor="c1"))
        self.assertEqual(data["id"], "tx1")
        self.assertEqual(data["tags"][0], {"name": "App-Name", "value": "Demo"})
        self.assertEqual(data["block"]["previous"], "b0")
        self.assertEqual(data["cursor"], "c1")
        self.assertNotIn("anchor", data)
        self.assertNotIn("parent", data)


class TestBlock(unittest.TestCase):
    def test_from_node(self) -> None:
        block = Block.from_node({"id": "b1", "timestamp": "1600000000", "height": 7, "previous": "b0"})
        self.assertEqual(block.timestamp, 1600000000)
        self.assertEqual(block.previous, "b0")
        self.assertEqual(model_to_dict(block), {"id": "b1", "timestamp": 1600000000, "height": 7, "previous": "b0"})


if __name__ == "__main__":
    unittest.main()
