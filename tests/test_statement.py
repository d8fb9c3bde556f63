"""Tests for statement and transaction builders."""

import pytest

from sql_over_http.statement import ParamList, Statement, Transaction
from sql_over_http.values import Param, array_literal


class TestParamList:
    def test_push_returns_marker_number(self):
        params = ParamList()
        assert params.push("a") == 1
        assert params.push(2) == 2
        assert len(params) == 2

    def test_order_preserved_on_wire(self):
        params = ParamList()
        params.extend([3, "x", True, 1.5])
        assert params.to_wire() == [3, "x", True, 1.5]

    def test_clear_twice_is_empty(self):
        params = ParamList([1, 2])
        params.clear()
        assert params.to_wire() == []
        params.clear()
        assert params.to_wire() == []

    def test_rejects_unsupported_value(self):
        params = ParamList()
        with pytest.raises(TypeError):
            params.push([1, 2])
        assert len(params) == 0

    def test_indexing_and_iteration(self):
        params = ParamList(["a", 1])
        assert params[0] == Param.text("a")
        assert [p.value for p in params] == ["a", 1]

    def test_literal_sent_as_text(self):
        params = ParamList([array_literal([1, 2])])
        assert params.to_wire() == ["{1,2}"]


class TestStatement:
    def test_document(self):
        stmt = Statement("SELECT $1::int")
        stmt.params.push(7)
        assert stmt.to_document() == {"query": "SELECT $1::int", "params": [7]}

    def test_changing_text_keeps_params(self):
        stmt = Statement("SELECT $1")
        stmt.params.push(1)
        stmt.text = "SELECT $1 + 1"
        assert stmt.to_document()["params"] == [1]

    def test_marker_count_not_validated(self):
        stmt = Statement("SELECT $1, $2")
        stmt.params.push(1)
        assert stmt.to_document()["params"] == [1]


class TestTransaction:
    def test_add_returns_index(self):
        txn = Transaction()
        assert txn.add("SELECT 1") == 0
        assert txn.add("SELECT 2") == 1
        assert len(txn) == 2

    def test_params_for_index(self):
        txn = Transaction()
        txn.add("SELECT $1::int")
        txn.add("SELECT $1::text")
        txn.params_for(0).push(100)
        txn.params_for(1).push("abc")
        assert txn.to_document() == {
            "queries": [
                {"query": "SELECT $1::int", "params": [100]},
                {"query": "SELECT $1::text", "params": ["abc"]},
            ]
        }

    def test_params_for_out_of_range_is_detached(self, caplog):
        txn = Transaction()
        txn.add("SELECT 1")
        detached = txn.params_for(3)
        detached.push(42)
        assert len(detached) == 1
        assert txn.to_document()["queries"][0]["params"] == []
        assert "no statement at index 3" in caplog.text

    def test_negative_index_is_detached(self):
        txn = Transaction()
        txn.add("SELECT 1")
        txn.params_for(-1).push(1)
        assert txn.to_document()["queries"][0]["params"] == []

    def test_reset(self):
        txn = Transaction()
        txn.add("SELECT 1")
        txn.reset()
        assert len(txn) == 0
        assert txn.to_document() == {"queries": []}
