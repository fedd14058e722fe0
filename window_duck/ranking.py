"""Ranking window functions: ROW_NUMBER, RANK, DENSE_RANK and friends.

All functions take a PartitionIndex and return one value per input row, in
input row order. Rows with equal order-key values are peers; nulls are peers
of each other, and so are NaNs.

Each function is a Polars window expression over the index frame:

    >>> index.peer_id().rank("dense").over(PARTITION_COLUMN)
"""

from __future__ import annotations

import logging
from enum import Enum

import polars as pl

from window_duck.constants import PARTITION_COLUMN, POSITION_COLUMN
from window_duck.index import PartitionIndex
from window_duck.table import Table

logger = logging.getLogger(__name__)


class RankMethod(str, Enum):
    ROW_NUMBER = "row_number"
    RANK = "rank"
    DENSE_RANK = "dense_rank"


def _row_number_expr(index: PartitionIndex) -> pl.Expr:
    return pl.col(POSITION_COLUMN).cast(pl.Int64) + 1


def _rank_expr(index: PartitionIndex) -> pl.Expr:
    return index.peer_id().rank("min").over(PARTITION_COLUMN).cast(pl.Int64)


def _dense_rank_expr(index: PartitionIndex) -> pl.Expr:
    return index.peer_id().rank("dense").over(PARTITION_COLUMN).cast(pl.Int64)


_EXPRESSIONS = {
    RankMethod.ROW_NUMBER: _row_number_expr,
    RankMethod.RANK: _rank_expr,
    RankMethod.DENSE_RANK: _dense_rank_expr,
}


def row_number(index: PartitionIndex) -> list[int]:
    """1..k within each partition; ties are broken by input order."""
    return index.evaluate(_row_number_expr(index))


def rank(index: PartitionIndex) -> list[int]:
    """Position of the first peer; gaps follow ties (1, 1, 3)."""
    return index.evaluate(_rank_expr(index))


def dense_rank(index: PartitionIndex) -> list[int]:
    """Ordinal of the distinct order value; no gaps (1, 1, 2)."""
    return index.evaluate(_dense_rank_expr(index))


def ntile(index: PartitionIndex, buckets: int) -> list[int]:
    """Distribute each partition into `buckets` groups of near-equal size.

    Earlier buckets receive the extra rows when the partition does not
    divide evenly, as SQL NTILE does.

    Raises:
        ValueError: If buckets is not a positive integer.
    """
    if isinstance(buckets, bool) or not isinstance(buckets, int) or buckets <= 0:
        raise ValueError(f"ntile buckets must be a positive integer, got: {buckets!r}")

    position = pl.col(POSITION_COLUMN).cast(pl.Int64)
    rows = pl.len().over(PARTITION_COLUMN).cast(pl.Int64)
    size = rows // buckets
    extra = rows % buckets
    threshold = extra * (size + 1)
    bucket = (
        pl.when(position < threshold)
        .then(position // (size + 1) + 1)
        .otherwise(extra + (position - threshold) // pl.max_horizontal(size, 1) + 1)
    )
    return index.evaluate(bucket)


def percent_rank(index: PartitionIndex) -> list[float]:
    """(rank - 1) / (rows - 1); 0.0 for single-row partitions."""
    rows = pl.len().over(PARTITION_COLUMN).cast(pl.Float64)
    ranks = _rank_expr(index).cast(pl.Float64)
    return index.evaluate(
        pl.when(rows > 1).then((ranks - 1) / (rows - 1)).otherwise(pl.lit(0.0))
    )


def cume_dist(index: PartitionIndex) -> list[float]:
    """Fraction of partition rows ordered at or before the current peer group."""
    rows = pl.len().over(PARTITION_COLUMN).cast(pl.Float64)
    through_peers = (pl.col(POSITION_COLUMN) + 1).max().over(index.peer_id())
    return index.evaluate(through_peers.cast(pl.Float64) / rows)


def evaluate_rank(index: PartitionIndex, method: RankMethod | str) -> list[int]:
    """Dispatch to row_number, rank or dense_rank."""
    return index.evaluate(_EXPRESSIONS[RankMethod(method)](index))


def _check_n(n: int) -> None:
    if isinstance(n, bool) or not isinstance(n, int) or n <= 0:
        raise ValueError(f"n must be a positive integer, got: {n!r}")


def top_n(
    table: Table,
    index: PartitionIndex,
    n: int,
    method: RankMethod | str = RankMethod.DENSE_RANK,
) -> Table:
    """Rows ranked within the first `n` of their partition, in input order.

    With DENSE_RANK, ties never push a row out: "top three salaries per
    department" keeps every employee earning one of the three highest
    distinct salaries.

    Raises:
        ValueError: If n is not a positive integer.
    """
    _check_n(n)
    index.check(table, "top_n")
    kept = index.positions_where(_EXPRESSIONS[RankMethod(method)](index) <= n)
    logger.debug(f"top_n kept {len(kept):,} of {len(table):,} rows (n={n}, method={method})")
    return table.take(kept)


def nth_highest(table: Table, index: PartitionIndex, n: int) -> Table:
    """Rows whose DENSE_RANK equals `n`, in input order.

    With the index ordered descending this is "the Nth highest value" with
    ties handled correctly. An empty table means no such value exists.
    """
    _check_n(n)
    index.check(table, "nth_highest")
    return table.take(index.positions_where(_dense_rank_expr(index) == n))
