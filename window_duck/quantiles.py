"""Order statistics: exact and approximate quantiles per partition.

Exact quantiles follow continuous-percentile semantics (PERCENTILE_CONT):
for n non-null values sorted ascending, the target rank is r = q * (n - 1)
(0-indexed) and the result interpolates linearly between the values at
floor(r) and ceil(r). The median of an even-sized partition is therefore the
midpoint of the two centre values.

Approximate quantiles use DuckDB's t-digest ``approx_quantile``. They are a
separate mode, never a fallback: an exact request that exceeds
``max_exact_rows`` raises PrecisionUnavailable.
"""

from __future__ import annotations

import datetime as dt
import logging
import math
from collections.abc import Sequence
from decimal import Decimal
from enum import Enum
from numbers import Real
from typing import Any

import polars as pl

from window_duck.constants import MEDIAN_QUANTILE, PARTITION_COLUMN
from window_duck.exceptions import PrecisionUnavailable, TypeMismatch
from window_duck.index import PartitionIndex
from window_duck.sql import fetch_rows, quote
from window_duck.table import (
    NUMERIC_TYPES,
    ColumnType,
    Table,
    infer_column_type,
    time_since_midnight,
)

logger = logging.getLogger(__name__)


class QuantileMode(str, Enum):
    EXACT = "exact"
    APPROXIMATE = "approximate"


_ACCEPTED_TYPES = {
    QuantileMode.EXACT: (*NUMERIC_TYPES, ColumnType.TEMPORAL, ColumnType.NULL),
    QuantileMode.APPROXIMATE: (*NUMERIC_TYPES, ColumnType.NULL),
}


def _check_quantile(q: float) -> None:
    if isinstance(q, bool) or not isinstance(q, Real) or not 0 <= q <= 1:
        raise ValueError(f"Quantile must be a number between 0 and 1, got: {q!r}")


def _interpolate(lower: Any, upper: Any, weight: float) -> Any:
    if weight == 0 or lower == upper:
        return lower
    if isinstance(lower, Decimal):
        return lower + (upper - lower) * Decimal(repr(weight))
    if isinstance(lower, dt.time):
        # Interpolate on the time since midnight, then map back to a time of day
        offset = _interpolate(time_since_midnight(lower), time_since_midnight(upper), weight)
        return (dt.datetime.min + offset).time()
    return lower + (upper - lower) * weight


def exact_quantile(values: Sequence[Any], q: float) -> Any:
    """Interpolated quantile of already-sorted, non-null values (None if empty).

    Date values stay dates: the fractional day of the interpolation is
    dropped, so the median of 2024-01-01 and 2024-01-02 is 2024-01-01.
    Use datetime values for sub-day precision.
    """
    if not values:
        return None
    rank = q * (len(values) - 1)
    lower = math.floor(rank)
    upper = min(lower + 1, len(values) - 1)
    return _interpolate(values[lower], values[upper], rank - lower)


def _keys(summary: pl.DataFrame, partition_by: Sequence[str]) -> list[tuple]:
    if not partition_by:
        return [()] * summary.height
    return [tuple(row) for row in summary.select(partition_by).iter_rows()]


def _approximate(frame: pl.DataFrame, column: str, q: float) -> list[Any]:
    sql = f"""SELECT {quote(PARTITION_COLUMN)}, approx_quantile(value, {float(q)!r}) AS q
        FROM _input
        GROUP BY {quote(PARTITION_COLUMN)}"""
    data = frame.select(PARTITION_COLUMN, pl.col(column).cast(pl.Float64).alias("value"))
    approximations = dict(fetch_rows(sql, data))
    partitions = frame.get_column(PARTITION_COLUMN).unique(maintain_order=True)
    return [approximations.get(partition) for partition in partitions]


def quantile(
    table: Table,
    index: PartitionIndex,
    column: str,
    q: float,
    mode: QuantileMode | str = QuantileMode.EXACT,
    max_exact_rows: int | None = None,
) -> dict[tuple, Any]:
    """Quantile `q` of `column` for every partition.

    Nulls are ignored. A partition with no non-null values yields None.
    Integer and float columns use Polars' linear quantile; decimal and
    temporal columns are interpolated on their own type (see exact_quantile).

    Args:
        table: Input table.
        index: Partition index built for `table` (its order is not used;
               values are ranked by the column itself).
        column: Numeric or temporal column.
        q: Quantile in [0, 1]; 0.5 is the median.
        mode: EXACT or APPROXIMATE.
        max_exact_rows: Largest partition EXACT may process. None for no limit.

    Returns:
        {partition key: quantile value}, in partition order.

    Raises:
        InvalidKey: If `column` does not exist.
        TypeMismatch: If the column type is not supported by `mode`.
        PrecisionUnavailable: If EXACT is requested for a partition larger
            than `max_exact_rows`.
        ValueError: If q is outside [0, 1].
    """
    mode = QuantileMode(mode)
    _check_quantile(q)
    table.require("quantile", column)
    column_type = table.column_type(column)
    if column_type not in _ACCEPTED_TYPES[mode]:
        raise TypeMismatch(
            "quantile", column, column_type, [t.value for t in _ACCEPTED_TYPES[mode]]
        )
    index.check(table, "quantile")

    frame = index.with_values(table, column)
    summary = frame.group_by(PARTITION_COLUMN, maintain_order=True).agg(
        *(pl.col(c).first() for c in index.partition_by),
        pl.col(column).count().alias("__count"),
    )
    keys = _keys(summary, index.partition_by)

    if column_type == ColumnType.NULL:
        return {key: None for key in keys}

    if mode == QuantileMode.APPROXIMATE:
        logger.info(f"Approximating q={q} of '{column}' over {len(keys):,} partitions")
        return dict(zip(keys, _approximate(frame, column, q)))

    if max_exact_rows is not None:
        oversized = summary.filter(pl.col("__count") > max_exact_rows)
        if oversized.height:
            raise PrecisionUnavailable(
                "quantile", oversized.get_column("__count")[0], max_exact_rows
            )

    dtype = frame.schema[column]
    grouped = frame.group_by(PARTITION_COLUMN, maintain_order=True)
    if dtype.is_numeric() and not dtype.is_decimal():
        values = grouped.agg(pl.col(column).quantile(q, interpolation="linear")).get_column(column)
        return dict(zip(keys, values.to_list()))

    ordered = grouped.agg(pl.col(column).drop_nulls().sort()).get_column(column)
    return {key: exact_quantile(vals, q) for key, vals in zip(keys, ordered.to_list())}


def median(
    table: Table,
    index: PartitionIndex,
    column: str,
    mode: QuantileMode | str = QuantileMode.EXACT,
    max_exact_rows: int | None = None,
) -> dict[tuple, Any]:
    """Median of `column` for every partition. See quantile()."""
    return quantile(table, index, column, MEDIAN_QUANTILE, mode, max_exact_rows)


def quantile_table(
    table: Table,
    index: PartitionIndex,
    column: str,
    q: float,
    mode: QuantileMode | str = QuantileMode.EXACT,
    max_exact_rows: int | None = None,
    output_column: str = "quantile",
) -> Table:
    """quantile() as a table: partition columns plus `output_column`."""
    results = quantile(table, index, column, q, mode, max_exact_rows)
    values = list(results.values())
    schema = {c: table.column_type(c) for c in index.partition_by}
    if QuantileMode(mode) == QuantileMode.APPROXIMATE:
        schema[output_column] = ColumnType.DECIMAL
    else:
        schema[output_column] = infer_column_type(output_column, values)
    return Table.from_rows(schema, [(*key, value) for key, value in results.items()])
