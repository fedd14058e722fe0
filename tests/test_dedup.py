"""Tests for anti-join and deduplication."""

import pytest

from window_duck import (
    InvalidKey,
    OrderKey,
    Table,
    TypeMismatch,
    anti_join,
    deduplicate,
    find_duplicates,
)


@pytest.fixture
def customers() -> Table:
    return Table.from_records(
        [{"id": 1, "name": "Ann"}, {"id": 2, "name": "Bob"}, {"id": 3, "name": "Cy"}]
    )


@pytest.fixture
def events() -> Table:
    return Table.from_records(
        [
            {"user": "a", "seen": 1, "page": "home"},
            {"user": "b", "seen": 5, "page": "cart"},
            {"user": "a", "seen": 3, "page": "cart"},
            {"user": None, "seen": 2, "page": "home"},
            {"user": "a", "seen": 3, "page": "exit"},
            {"user": None, "seen": 4, "page": "exit"},
        ]
    )


class TestAntiJoin:
    """Tests for NOT EXISTS semantics."""

    def test_null_right_key_suppresses_nothing(self, customers: Table) -> None:
        """A-keys {1, 2, 3} minus B-keys {2, null} is {1, 3}."""
        orders = Table.from_records([{"customer_id": 2}, {"customer_id": None}])
        result = anti_join(customers, orders, "id", "customer_id")
        assert result.column("id") == [1, 3]

    def test_null_left_key_is_kept(self) -> None:
        left = Table.from_records([{"k": None}, {"k": 1}])
        right = Table.from_records([{"k": None}, {"k": 1}])
        assert anti_join(left, right, "k").column("k") == [None]

    def test_empty_right_keeps_everything(self, customers: Table) -> None:
        right = Table.from_records([], schema=customers.schema)
        assert anti_join(customers, right, "id").to_records() == customers.to_records()

    def test_multi_column_keys(self) -> None:
        left = Table.from_records(
            [{"a": 1, "b": "x"}, {"a": 1, "b": "y"}, {"a": 2, "b": None}]
        )
        right = Table.from_records([{"c": 1, "d": "x"}, {"c": 2, "d": None}])
        result = anti_join(left, right, ["a", "b"], ["c", "d"])
        assert result.to_records() == [{"a": 1, "b": "y"}, {"a": 2, "b": None}]

    def test_result_has_left_schema(self, customers: Table) -> None:
        orders = Table.from_records([{"customer_id": 1}])
        assert anti_join(customers, orders, "id", "customer_id").columns == ("id", "name")

    def test_key_length_mismatch(self, customers: Table) -> None:
        orders = Table.from_records([{"customer_id": 1, "region": "n"}])
        with pytest.raises(ValueError, match="right_on has 2"):
            anti_join(customers, orders, "id", ["customer_id", "region"])

    def test_numeric_keys_of_different_types_match(self, customers: Table) -> None:
        orders = Table.from_records([{"customer_id": 2.0}, {"customer_id": 3.5}])
        assert anti_join(customers, orders, "id", "customer_id").column("id") == [1, 3]

    def test_all_null_right_key_suppresses_nothing(self, customers: Table) -> None:
        orders = Table.from_records([{"customer_id": None}])
        assert anti_join(customers, orders, "id", "customer_id").column("id") == [1, 2, 3]

    def test_incomparable_keys_raise_type_mismatch(self, customers: Table) -> None:
        orders = Table.from_records([{"customer_id": "2"}])
        with pytest.raises(TypeMismatch) as exc_info:
            anti_join(customers, orders, "id", "customer_id")
        assert exc_info.value.operation == "anti_join"

    def test_missing_right_key(self, customers: Table) -> None:
        orders = Table.from_records([{"customer_id": 1}])
        with pytest.raises(InvalidKey) as exc_info:
            anti_join(customers, orders, "id")
        assert exc_info.value.available_columns == ["customer_id"]


class TestDeduplicate:
    """Tests for keeping one row per key."""

    def test_keeps_latest_row_per_key(self, events: Table) -> None:
        result = deduplicate(events, "user", OrderKey("seen", "desc", "last"))
        assert result.column("page") == ["cart", "cart", "exit"]

    def test_ties_keep_earliest_input_row(self, events: Table) -> None:
        """Both of user a's seen=3 rows tie; the earlier one wins."""
        result = deduplicate(events, "user", [OrderKey("seen", "desc", "last")])
        kept_for_a = [row["page"] for row in result if row["user"] == "a"]
        assert kept_for_a == ["cart"]

    def test_null_keys_form_one_group(self, events: Table) -> None:
        result = deduplicate(events, "user", OrderKey("seen", "asc", "last"))
        assert [row["seen"] for row in result if row["user"] is None] == [2]

    def test_output_in_input_order(self, events: Table) -> None:
        result = deduplicate(events, "user", OrderKey("seen", "asc", "last"))
        assert result.column("user") == ["a", "b", None]

    def test_missing_order_column(self, events: Table) -> None:
        with pytest.raises(InvalidKey) as exc_info:
            deduplicate(events, "user", OrderKey("ts", "asc", "last"))
        assert exc_info.value.operation == "deduplicate"


class TestFindDuplicates:
    """Tests for listing rows with repeated keys."""

    def test_rows_with_repeated_key(self, events: Table) -> None:
        result = find_duplicates(events, "user")
        assert result.column("seen") == [1, 3, 2, 3, 4]

    def test_multi_column_key(self, events: Table) -> None:
        result = find_duplicates(events, ["user", "seen"])
        assert result.column("page") == ["cart", "exit"]

    def test_no_duplicates(self, customers: Table) -> None:
        assert len(find_duplicates(customers, "id")) == 0
