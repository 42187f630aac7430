"""Tests for response decoding and cursor pagination."""

from __future__ import annotations

import sys
import unittest
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT / "src"))

from WeaveQuery.core.errors import GatewayError
from WeaveQuery.core.models import Block, Transaction
from WeaveQuery.core.query import SearchKind, SearchSpec
from WeaveQuery.gql.pagination import QueryRunner, first_or_none, parse_response


def _tx_page(ids: list[str], *, has_next: bool, cursors: list[str] | None = None) -> dict:
    cursors = cursors if cursors is not None else [f"c-{tx_id}" for tx_id in ids]
    return {
        "transactions": {
            "pageInfo": {"hasNextPage": has_next},
            "edges": [{"cursor": cursor, "node": {"id": tx_id}} for tx_id, cursor in zip(ids, cursors)],
        }
    }


class _SequenceTransport:
    def __init__(self, responses: list) -> None:
        self._responses = list(responses)
        self.calls = 0

    def post_query(self, query: str):
        del query
        self.calls += 1
        response = self._responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


_SPEC = SearchSpec(kind=SearchKind.TRANSACTIONS, ids=("x",), first=100)


class TestParseResponse(unittest.TestCase):
    def test_transactions_shape(self) -> None:
        page = parse_response(_tx_page(["a", "b"], has_next=True))
        self.assertFalse(page.single)
        self.assertTrue(page.has_next_page)
        self.assertEqual(page.end_cursor, "c-b")
        self.assertEqual([item.cursor for item in page.items], ["c-a", "c-b"])

    def test_blocks_shape(self) -> None:
        data = {"blocks": {"pageInfo": {"hasNextPage": False}, "edges": [{"cursor": "k", "node": {"id": "b1"}}]}}
        page = parse_response(data)
        self.assertIsInstance(page.items[0], Block)
        self.assertFalse(page.has_next_page)

    def test_single_shapes(self) -> None:
        page = parse_response({"transaction": {"id": "t1"}})
        self.assertTrue(page.single)
        self.assertIsInstance(page.items[0], Transaction)

        missing = parse_response({"transaction": None})
        self.assertTrue(missing.single)
        self.assertEqual(missing.items, ())

    def test_unknown_shape(self) -> None:
        self.assertIsNone(parse_response({"wallets": []}))
        self.assertIsNone(parse_response(None))


class TestQueryRunner(unittest.TestCase):
    def test_run_all_requests_each_page_once(self) -> None:
        transport = _SequenceTransport(
            [
                _tx_page(["a"], has_next=True),
                _tx_page(["b"], has_next=True),
                _tx_page(["c"], has_next=False),
            ]
        )
        result = QueryRunner(transport).run_all(_SPEC)
        self.assertEqual([tx.id for tx in result], ["a", "b", "c"])
        self.assertEqual(transport.calls, 3)

    def test_run_all_stops_on_missing_cursor(self) -> None:
        transport = _SequenceTransport([_tx_page(["a"], has_next=True, cursors=[""])])
        with self.assertLogs("WeaveQuery", "WARNING"):
            result = QueryRunner(transport).run_all(_SPEC)
        self.assertEqual([tx.id for tx in result], ["a"])
        self.assertEqual(transport.calls, 1)

    def test_run_all_returns_partial_results_on_failure(self) -> None:
        transport = _SequenceTransport([_tx_page(["a", "b"], has_next=True), GatewayError("boom", status_code=502)])
        with self.assertLogs("WeaveQuery", "WARNING"):
            result = QueryRunner(transport).run_all(_SPEC)
        self.assertEqual([tx.id for tx in result], ["a", "b"])

    def test_run_all_single_shape(self) -> None:
        transport = _SequenceTransport([{"transaction": {"id": "t1"}}])
        spec = SearchSpec(kind=SearchKind.TRANSACTION, id="t1", ids=("t1",))
        result = QueryRunner(transport).run_all(spec)
        self.assertIsInstance(result, Transaction)

    def test_run_page_tracks_cursor(self) -> None:
        runner = QueryRunner(_SequenceTransport([_tx_page(["a", "b"], has_next=True), _tx_page([], has_next=False)]))
        runner.run_page(_SPEC)
        self.assertEqual(runner.cursor, "c-b")
        self.assertEqual(runner.run_page(_SPEC), [])
        self.assertEqual(runner.cursor, "")

    def test_run_page_failure_is_none(self) -> None:
        runner = QueryRunner(_SequenceTransport([GatewayError("down")]))
        with self.assertLogs("WeaveQuery", "WARNING"):
            self.assertIsNone(runner.run_page(_SPEC))

    def test_first_or_none(self) -> None:
        self.assertIsNone(first_or_none([]))
        self.assertIsNone(first_or_none(None))
        tx = Transaction(_id="t")
        self.assertIs(first_or_none([tx]), tx)
        self.assertIs(first_or_none(tx), tx)


if __name__ == "__main__":
    unittest.main()
