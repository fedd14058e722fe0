"""Tests for ranking window functions."""

import random

import pytest

from window_duck import (
    OrderKey,
    PartitionIndex,
    RankMethod,
    Table,
    cume_dist,
    dense_rank,
    nth_highest,
    ntile,
    percent_rank,
    rank,
    row_number,
    top_n,
)


@pytest.fixture
def scores() -> Table:
    """Partition {(A,90000),(B,70000),(C,90000),(D,60000)}."""
    return Table.from_records(
        [
            {"name": "A", "value": 90000},
            {"name": "B", "value": 70000},
            {"name": "C", "value": 90000},
            {"name": "D", "value": 60000},
        ]
    )


@pytest.fixture
def generated() -> Table:
    rng = random.Random(7)
    return Table.from_records(
        [{"grp": rng.randint(1, 5), "v": rng.randint(1, 20)} for _ in range(300)]
    )


def _by_value_desc() -> list[OrderKey]:
    return [OrderKey("value", "desc", "last")]


class TestRankingSemantics:
    """Tests for ROW_NUMBER, RANK and DENSE_RANK tie handling."""

    def test_dense_rank_scenario(self, scores: Table) -> None:
        """A and C tie for first; B is second, D third."""
        index = PartitionIndex.build(scores, None, _by_value_desc())
        ranks = dict(zip(scores.column("name"), dense_rank(index)))
        assert ranks == {"A": 1, "C": 1, "B": 2, "D": 3}

    def test_rank_leaves_gaps_after_ties(self, scores: Table) -> None:
        index = PartitionIndex.build(scores, None, _by_value_desc())
        assert dict(zip(scores.column("name"), rank(index))) == {"A": 1, "C": 1, "B": 3, "D": 4}

    def test_row_number_breaks_ties_by_input_order(self, scores: Table) -> None:
        index = PartitionIndex.build(scores, None, _by_value_desc())
        assert dict(zip(scores.column("name"), row_number(index))) == {
            "A": 1,
            "C": 2,
            "B": 3,
            "D": 4,
        }

    def test_rank_one_is_the_minimum_when_ascending(self, scores: Table) -> None:
        index = PartitionIndex.build(scores, None, [OrderKey("value", "asc", "last")])
        assert dense_rank(index) == [3, 2, 3, 1]

    def test_ranks_restart_per_partition(self, employees: Table, by_salary_desc: OrderKey) -> None:
        index = PartitionIndex.build(employees, "department_id", [by_salary_desc])
        assert rank(index) == [3, 1, 1, 2, 1]

    def test_null_order_values_are_peers(self) -> None:
        table = Table.from_records([{"v": None}, {"v": 1}, {"v": None}])
        index = PartitionIndex.build(table, None, [OrderKey("v", "asc", "first")])
        assert dense_rank(index) == [1, 2, 1]

    def test_nan_order_values_are_peers(self) -> None:
        table = Table.from_records([{"v": float("nan")}, {"v": 1.0}, {"v": float("nan")}])
        index = PartitionIndex.build(table, None, [OrderKey("v", "asc", "last")])
        assert dense_rank(index) == [2, 1, 2]
        assert rank(index) == [2, 1, 2]


class TestRankingProperties:
    """Invariants that hold for any partition."""

    def test_row_number_is_a_permutation(self, generated: Table) -> None:
        index = PartitionIndex.build(generated, "grp", [OrderKey("v", "asc", "last")])
        numbers = row_number(index)
        for positions in index.partitions.values():
            assert sorted(numbers[p] for p in positions) == list(range(1, len(positions) + 1))

    def test_rank_and_dense_rank_are_non_decreasing(self, generated: Table) -> None:
        index = PartitionIndex.build(generated, "grp", [OrderKey("v", "desc", "last")])
        ranks, dense = rank(index), dense_rank(index)
        for positions in index.partitions.values():
            ordered_ranks = [ranks[p] for p in positions]
            ordered_dense = [dense[p] for p in positions]
            assert ordered_ranks == sorted(ordered_ranks)
            assert ordered_dense == sorted(ordered_dense)

    def test_max_dense_rank_is_distinct_count(self, generated: Table) -> None:
        index = PartitionIndex.build(generated, "grp", [OrderKey("v", "asc", "last")])
        dense = dense_rank(index)
        values = generated.column("v")
        for positions in index.partitions.values():
            assert max(dense[p] for p in positions) == len({values[p] for p in positions})


class TestDistributionFunctions:
    """Tests for NTILE, PERCENT_RANK and CUME_DIST."""

    def test_ntile_puts_extra_rows_first(self) -> None:
        table = Table.from_records([{"v": i} for i in range(10)])
        index = PartitionIndex.build(table, None, [OrderKey("v", "asc", "last")])
        assert ntile(index, 3) == [1, 1, 1, 1, 2, 2, 2, 3, 3, 3]

    def test_ntile_with_more_buckets_than_rows(self) -> None:
        table = Table.from_records([{"v": i} for i in range(3)])
        index = PartitionIndex.build(table, None, [OrderKey("v", "asc", "last")])
        assert ntile(index, 5) == [1, 2, 3]

    def test_ntile_bucket_sizes_differ_by_at_most_one(self, generated: Table) -> None:
        index = PartitionIndex.build(generated, "grp", [OrderKey("v", "asc", "last")])
        buckets = ntile(index, 4)
        for positions in index.partitions.values():
            sizes = [sum(1 for p in positions if buckets[p] == b) for b in range(1, 5)]
            assert max(sizes) - min(sizes) <= 1

    @pytest.mark.parametrize("buckets", [0, -1, 2.5, True])
    def test_ntile_rejects_invalid_buckets(self, scores: Table, buckets) -> None:
        index = PartitionIndex.build(scores, None, _by_value_desc())
        with pytest.raises(ValueError, match="positive integer"):
            ntile(index, buckets)

    def test_percent_rank_and_cume_dist(self, scores: Table) -> None:
        index = PartitionIndex.build(scores, None, _by_value_desc())
        assert percent_rank(index) == pytest.approx([0.0, 2 / 3, 0.0, 1.0])
        assert cume_dist(index) == pytest.approx([0.5, 0.75, 0.5, 1.0])

    def test_percent_rank_of_single_row(self) -> None:
        table = Table.from_records([{"v": 1}])
        index = PartitionIndex.build(table, None, [OrderKey("v", "asc", "last")])
        assert percent_rank(index) == [0.0]


class TestTopN:
    """Tests for top-N and Nth-highest selection."""

    def test_department_highest_salary(self, employees: Table, by_salary_desc: OrderKey) -> None:
        """RANK = 1 per department keeps both tied top earners."""
        index = PartitionIndex.build(employees, "department_id", [by_salary_desc])
        result = top_n(employees, index, 1, RankMethod.RANK)
        assert result.column("name") == ["Jim", "Henry", "Max"]

    def test_top_three_distinct_salaries(self) -> None:
        table = Table.from_records(
            [
                {"name": n, "salary": s, "dept": d}
                for n, s, d in [
                    ("Joe", 85000, 1),
                    ("Henry", 80000, 2),
                    ("Sam", 60000, 2),
                    ("Max", 90000, 1),
                    ("Janet", 69000, 1),
                    ("Randy", 85000, 1),
                    ("Will", 70000, 1),
                ]
            ]
        )
        index = PartitionIndex.build(table, "dept", [OrderKey("salary", "desc", "last")])
        result = top_n(table, index, 3)
        assert result.column("name") == ["Joe", "Henry", "Sam", "Max", "Randy", "Will"]

    def test_nth_highest(self, employees: Table, by_salary_desc: OrderKey) -> None:
        index = PartitionIndex.build(employees, None, [by_salary_desc])
        assert nth_highest(employees, index, 2).column("salary") == [80000]

    def test_nth_highest_missing_value_is_empty(
        self, employees: Table, by_salary_desc: OrderKey
    ) -> None:
        index = PartitionIndex.build(employees, None, [by_salary_desc])
        assert len(nth_highest(employees, index, 5)) == 0

    def test_top_n_rejects_non_positive_n(self, employees: Table, by_salary_desc: OrderKey) -> None:
        index = PartitionIndex.build(employees, None, [by_salary_desc])
        with pytest.raises(ValueError):
            top_n(employees, index, 0)
