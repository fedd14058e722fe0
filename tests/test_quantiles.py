"""Tests for exact and approximate quantiles."""

import datetime as dt
from decimal import Decimal

import pytest

from window_duck import (
    PartitionIndex,
    PrecisionUnavailable,
    QuantileMode,
    Table,
    TypeMismatch,
    median,
    quantile,
    quantile_table,
)
from window_duck.quantiles import exact_quantile


def _single(values, column="v") -> tuple[Table, PartitionIndex]:
    table = Table.from_records([{column: v} for v in values])
    return table, PartitionIndex.build(table)


class TestExactQuantile:
    """Tests for PERCENTILE_CONT semantics."""

    def test_median_resists_outlier(self) -> None:
        """One very large salary moves the mean but not the median."""
        salaries = [40000, 42000, 45000, 47000, 50000, 52000, 55000, 57000, 1500000]
        table, index = _single(salaries, "salary")
        result = median(table, index, "salary")[()]
        assert result == 50000
        assert result != sum(salaries) / len(salaries)

    def test_even_sized_median_interpolates(self) -> None:
        table, index = _single([4, 1, 3, 2])
        assert median(table, index, "v") == {(): 2.5}

    def test_interpolated_percentile(self) -> None:
        table, index = _single([10, 20, 30, 40, 50])
        assert quantile(table, index, "v", 0.1)[()] == pytest.approx(14.0)

    @pytest.mark.parametrize("q, expected", [(0, 10), (1, 50)])
    def test_extremes(self, q: float, expected: int) -> None:
        table, index = _single([30, 10, 50])
        assert quantile(table, index, "v", q)[()] == expected

    def test_decimal_median_stays_decimal(self) -> None:
        table, index = _single([Decimal("1"), Decimal("2")])
        assert median(table, index, "v")[()] == Decimal("1.5")

    def test_date_median(self) -> None:
        table, index = _single([dt.date(2024, 1, 3), dt.date(2024, 1, 1)])
        assert median(table, index, "v")[()] == dt.date(2024, 1, 2)

    def test_date_median_truncates_to_whole_days(self) -> None:
        """Half a day between two dates rounds down to the earlier date."""
        table, index = _single([dt.date(2024, 1, 2), dt.date(2024, 1, 1)])
        assert median(table, index, "v")[()] == dt.date(2024, 1, 1)

    def test_time_of_day_median(self) -> None:
        table, index = _single([dt.time(2, 0), None, dt.time(1, 0)])
        assert median(table, index, "v")[()] == dt.time(1, 30)

    def test_time_of_day_quantile(self) -> None:
        table, index = _single([dt.time(0, 0), dt.time(23, 0)])
        assert quantile(table, index, "v", 0.25)[()] == dt.time(5, 45)

    def test_nulls_are_ignored(self) -> None:
        table, index = _single([None, 1, None, 3])
        assert median(table, index, "v")[()] == 2

    def test_partition_without_values_gives_none(self) -> None:
        table = Table.from_records(
            [{"g": 1, "v": None}, {"g": 2, "v": 5}, {"g": 1, "v": None}]
        )
        index = PartitionIndex.build(table, "g")
        assert median(table, index, "v") == {(1,): None, (2,): 5}

    def test_department_medians(self, employees: Table) -> None:
        index = PartitionIndex.build(employees, "department_id")
        assert median(employees, index, "salary") == {(1,): 90000, (2,): 70000}

    def test_exact_quantile_of_empty_input(self) -> None:
        assert exact_quantile([], 0.5) is None


class TestQuantileValidation:
    """Tests for argument and type checks."""

    @pytest.mark.parametrize("q", [-0.1, 1.5, True, "0.5"])
    def test_invalid_quantile(self, q) -> None:
        table, index = _single([1, 2])
        with pytest.raises(ValueError, match="between 0 and 1"):
            quantile(table, index, "v", q)

    def test_text_column_rejected(self, employees: Table) -> None:
        index = PartitionIndex.build(employees)
        with pytest.raises(TypeMismatch) as exc_info:
            median(employees, index, "name")
        assert exc_info.value.operation == "quantile"

    def test_approximate_rejects_temporal(self) -> None:
        table, index = _single([dt.date(2024, 1, 1)])
        with pytest.raises(TypeMismatch):
            median(table, index, "v", mode=QuantileMode.APPROXIMATE)

    def test_exact_over_limit_raises(self) -> None:
        """Never silently downgraded to an approximation."""
        table, index = _single([1, 2, 3])
        with pytest.raises(PrecisionUnavailable) as exc_info:
            median(table, index, "v", max_exact_rows=2)
        assert exc_info.value.partition_size == 3
        assert exc_info.value.max_exact_rows == 2

    def test_limit_counts_non_null_values(self) -> None:
        table, index = _single([1, None, None, 3])
        assert median(table, index, "v", max_exact_rows=2) == {(): 2}


class TestApproximateQuantile:
    """Tests for the t-digest mode."""

    def test_close_to_exact(self) -> None:
        table, index = _single(list(range(1, 1002)))
        approx = median(table, index, "v", mode="approximate")[()]
        assert approx == pytest.approx(501, abs=10)

    def test_ignores_limit(self) -> None:
        table, index = _single(list(range(100)))
        result = quantile(table, index, "v", 0.9, QuantileMode.APPROXIMATE, max_exact_rows=10)
        assert result[()] == pytest.approx(89.1, abs=3)

    def test_per_partition_results(self) -> None:
        table = Table.from_records(
            [{"g": g, "v": v} for g in ("a", "b") for v in range(10 if g == "a" else 100, 0, -1)]
        )
        index = PartitionIndex.build(table, "g")
        result = median(table, index, "v", mode=QuantileMode.APPROXIMATE)
        assert list(result) == [("a",), ("b",)]
        assert result[("a",)] == pytest.approx(5.5, abs=1)
        assert result[("b",)] == pytest.approx(50.5, abs=3)

    def test_partition_without_values_gives_none(self) -> None:
        table = Table.from_records([{"g": 1, "v": None}, {"g": 2, "v": 4}])
        index = PartitionIndex.build(table, "g")
        result = median(table, index, "v", mode=QuantileMode.APPROXIMATE)
        assert result[(1,)] is None
        assert result[(2,)] == pytest.approx(4)


class TestQuantileTable:
    """Tests for the tabular quantile output."""

    def test_columns_and_values(self, employees: Table) -> None:
        index = PartitionIndex.build(employees, "department_id")
        summary = quantile_table(employees, index, "salary", 0.5, output_column="median_salary")
        assert summary.columns == ("department_id", "median_salary")
        assert summary.to_records() == [
            {"department_id": 1, "median_salary": 90000},
            {"department_id": 2, "median_salary": 70000},
        ]
