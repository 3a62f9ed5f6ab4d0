from plantwire.rows import (
    Indexes,
    clone_row,
    table_subscription_indexes,
    unique_subscription_ids,
)
from plantwire.subscription import TableRequest


def test_unique_subscription_ids_drops_non_positive_and_sorts():
    assert unique_subscription_ids([2002, 1001, 0, -5, 2002, 1001]) == [1001, 2002]


def test_unique_subscription_ids_empty():
    assert unique_subscription_ids([0, -1]) == []


def test_unique_subscription_ids_is_sorted_and_unique():
    result = unique_subscription_ids([9, 3, 7, 3, 9, 1])
    assert result == sorted(set(result))
    assert set(result) == {9, 3, 7, 1}


def test_table_indexes_int32():
    req = TableRequest(db="W3", table="Point", key="ID", int32=[1001])
    assert table_subscription_indexes(req) == Indexes(key="ID", int32=[1001])


def test_table_indexes_copies_values():
    values = [1001, 1002]
    req = TableRequest(db="W3", table="Point", key="ID", int32=values)
    indexes = table_subscription_indexes(req)
    values.append(1003)
    assert indexes.int32 == [1001, 1002]


def test_table_indexes_int64_and_strings():
    req64 = TableRequest(db="W3", table="Point", key="ID", int64=[5])
    assert table_subscription_indexes(req64) == Indexes(key="ID", int64=[5])
    req_str = TableRequest(db="W3", table="Point", key="GN", strings=["W3.N.P1"])
    assert table_subscription_indexes(req_str) == Indexes(key="GN", strings=["W3.N.P1"])


def test_table_indexes_prefers_int32():
    req = TableRequest(db="W3", table="Point", key="ID", int32=[1], strings=["x"])
    indexes = table_subscription_indexes(req)
    assert indexes.int32 == [1]
    assert indexes.strings == []


def test_clone_row_is_independent():
    row = {"ID": 1001, "GN": "W3.N.P1"}
    copy = clone_row(row)
    copy["GN"] = "changed"
    assert row["GN"] == "W3.N.P1"
    assert clone_row(row) == row