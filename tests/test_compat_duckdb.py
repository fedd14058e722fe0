"""Tests for the DuckDB compatibility shim.

Cross-checks window-duck results against DuckDB running the equivalent SQL.
"""

import pytest

from window_duck import (
    Bound,
    ConfigurationError,
    Frame,
    NullOrder,
    OrderKey,
    PartitionIndex,
    Table,
    aggregate,
    dense_rank,
    lag,
    median,
    rank,
    row_number,
)
from window_duck.compat import (
    DuckDBWindowProcessor,
    engine_null_order,
    engine_order_key,
    reference_values,
    render_order_by,
    render_window,
)


class TestEngineDefaults:
    """Tests for per-engine null placement."""

    @pytest.mark.parametrize(
        "engine, direction, expected",
        [
            ("duckdb", "asc", NullOrder.LAST),
            ("duckdb", "desc", NullOrder.LAST),
            ("postgres", "asc", NullOrder.LAST),
            ("postgres", "desc", NullOrder.FIRST),
            ("mysql", "asc", NullOrder.FIRST),
            ("mysql", "desc", NullOrder.LAST),
            ("SQLite", "asc", NullOrder.FIRST),
        ],
    )
    def test_null_order(self, engine, direction, expected):
        assert engine_null_order(engine, direction) == expected

    def test_unknown_engine(self):
        with pytest.raises(ConfigurationError, match="Unknown engine 'db2'"):
            engine_null_order("db2", "asc")

    def test_engine_order_key(self):
        key = engine_order_key("oracle", "salary", "desc")
        assert key == OrderKey("salary", "desc", "first")


class TestRendering:
    """Tests for SQL rendering of window specs."""

    def test_render_order_by(self):
        keys = [OrderKey("salary", "desc", "last"), OrderKey("id", "asc", "first")]
        assert render_order_by(keys) == '"salary" DESC NULLS LAST, "id" ASC NULLS FIRST'

    def test_render_window(self):
        window = render_window(
            "dept", OrderKey("salary", "desc", "first"), Frame.trailing(2)
        )
        assert window == (
            'OVER (PARTITION BY "dept" ORDER BY "salary" DESC NULLS FIRST '
            "ROWS BETWEEN 2 PRECEDING AND CURRENT ROW)"
        )

    def test_render_empty_window(self):
        assert render_window(None, None) == "OVER ()"

    def test_quotes_identifiers(self):
        assert render_window('we"ird', None) == 'OVER (PARTITION BY "we""ird")'


class TestDuckDBReference:
    """window-duck results agree with DuckDB."""

    def test_processor_preserves_row_order(self, employees_df):
        result = DuckDBWindowProcessor(
            {"n": "COUNT(*) OVER (PARTITION BY department_id)"}
        ).process(employees_df)
        assert result.columns == [*employees_df.columns, "n"]
        assert result["id"].to_list() == [1, 2, 3, 4, 5]
        assert result["n"].to_list() == [3, 3, 2, 2, 3]

    def test_pandas_input(self, employees_df):
        result = DuckDBWindowProcessor({"r": "RANK() OVER (ORDER BY salary DESC)"}).process(
            employees_df.to_pandas()
        )
        assert result["r"].to_list() == [4, 1, 3, 5, 1]

    def test_repr(self):
        assert repr(DuckDBWindowProcessor({"a": "1", "b": "2"})) == "DuckDBWindowProcessor(['a', 'b'])"

    @pytest.mark.parametrize(
        "function, sql_function", [(rank, "RANK()"), (dense_rank, "DENSE_RANK()")]
    )
    def test_ranking_matches(self, employees_df, employees, by_salary_desc, function, sql_function):
        index = PartitionIndex.build(employees, "department_id", [by_salary_desc])
        expected = reference_values(
            employees_df, f"{sql_function} {render_window('department_id', by_salary_desc)}"
        )
        assert function(index) == expected

    def test_row_number_with_tiebreaker(self, employees_df, employees, by_salary_desc, by_id):
        """A unique tiebreaker makes ROW_NUMBER deterministic in both engines."""
        keys = [by_salary_desc, by_id]
        index = PartitionIndex.build(employees, None, keys)
        expected = reference_values(employees_df, f"ROW_NUMBER() {render_window(None, keys)}")
        assert row_number(index) == expected

    def test_lag_matches(self, employees_df, employees, by_id):
        index = PartitionIndex.build(employees, "department_id", [by_id])
        expected = reference_values(
            employees_df, f"LAG(salary) {render_window('department_id', by_id)}"
        )
        assert lag(employees, index, "salary") == expected

    def test_running_sum_matches(self, employees_df, employees, by_id):
        frame = Frame.running()
        index = PartitionIndex.build(employees, "department_id", [by_id])
        expected = reference_values(
            employees_df, f"SUM(salary) {render_window('department_id', by_id, frame)}"
        )
        # DuckDB widens integer sums to HUGEINT/DECIMAL; compare by value
        assert [int(v) for v in aggregate(employees, index, "salary", "sum", frame)] == [
            int(v) for v in expected
        ]

    def test_sliding_average_matches(self, employees_df, employees, by_id):
        frame = Frame(Bound.preceding(1), Bound.following(1))
        index = PartitionIndex.build(employees, None, [by_id])
        expected = reference_values(employees_df, f"AVG(salary) {render_window(None, by_id, frame)}")
        assert aggregate(employees, index, "salary", "avg", frame) == pytest.approx(expected)

    def test_median_matches(self, employees_df, employees):
        index = PartitionIndex.build(employees, "department_id")
        expected = reference_values(
            employees_df, "QUANTILE_CONT(salary, 0.5) OVER (PARTITION BY department_id)"
        )
        result = median(employees, index, "salary")
        assert [result[(row["department_id"],)] for row in employees] == pytest.approx(expected)

    def test_null_placement_matches(self):
        records = [{"id": 1, "v": None}, {"id": 2, "v": 3}, {"id": 3, "v": 1}]
        table = Table.from_records(records)
        df = table.to_polars()
        for nulls in ("first", "last"):
            key = OrderKey("v", "desc", nulls)
            index = PartitionIndex.build(table, None, [key])
            expected = reference_values(df, f"ROW_NUMBER() {render_window(None, key)}")
            assert row_number(index) == expected
