"""Row model: typed, immutable tables of ordered rows.

A Table is created once per evaluation from external input (Polars, pandas,
or plain records) and never modified afterwards. Deriving a column returns a
new Table that shares the same lineage, so partition indexes built on the
original remain valid for it.
"""

from __future__ import annotations

import datetime as dt
import itertools
from collections.abc import Iterable, Iterator, Mapping, Sequence
from decimal import Decimal
from enum import Enum
from typing import Any

import pandas as pd
import polars as pl

from window_duck.exceptions import InvalidKey, TypeMismatch

_lineage_ids = itertools.count(1)


class ColumnType(str, Enum):
    """Logical column types understood by the evaluators."""

    INTEGER = "integer"
    DECIMAL = "decimal"
    TEXT = "text"
    TEMPORAL = "temporal"
    BOOLEAN = "boolean"
    NULL = "null"

    def __str__(self) -> str:
        return self.value


NUMERIC_TYPES = (ColumnType.INTEGER, ColumnType.DECIMAL)

# Used only when a column has no values to infer a dtype from
_POLARS_FALLBACK: dict[ColumnType, pl.DataType] = {
    ColumnType.INTEGER: pl.Int64,
    ColumnType.DECIMAL: pl.Float64,
    ColumnType.TEXT: pl.String,
    ColumnType.TEMPORAL: pl.Datetime,
    ColumnType.BOOLEAN: pl.Boolean,
    ColumnType.NULL: pl.Null,
}


def column_type_for_dtype(column: str, dtype: pl.DataType) -> ColumnType:
    """Map a Polars dtype onto a logical column type."""
    if dtype == pl.Null:
        return ColumnType.NULL
    if dtype == pl.Boolean:
        return ColumnType.BOOLEAN
    if dtype.is_integer():
        return ColumnType.INTEGER
    if dtype.is_float() or dtype.is_decimal():
        return ColumnType.DECIMAL
    if dtype.is_temporal():
        return ColumnType.TEMPORAL
    if dtype in (pl.String, pl.Categorical, pl.Enum):
        return ColumnType.TEXT
    raise TypeMismatch("load", column, dtype, [t.value for t in ColumnType])


def _value_type(value: Any) -> ColumnType | None:
    # bool is a subclass of int, check it first
    if value is None:
        return None
    if isinstance(value, bool):
        return ColumnType.BOOLEAN
    if isinstance(value, int):
        return ColumnType.INTEGER
    if isinstance(value, (float, Decimal)):
        return ColumnType.DECIMAL
    if isinstance(value, str):
        return ColumnType.TEXT
    if isinstance(value, (dt.date, dt.datetime, dt.time, dt.timedelta)):
        return ColumnType.TEMPORAL
    return None


def infer_column_type(column: str, values: Iterable[Any]) -> ColumnType:
    """Infer the logical type of a column from its Python values.

    Integers mixed with decimals widen to DECIMAL. Any other mix raises
    TypeMismatch. A column with only nulls is NULL.
    """
    inferred = ColumnType.NULL
    for value in values:
        if value is None:
            continue
        value_type = _value_type(value)
        if value_type is None:
            raise TypeMismatch("load", column, type(value).__name__, [t.value for t in ColumnType])
        if inferred == ColumnType.NULL or inferred == value_type:
            inferred = value_type
        elif {inferred, value_type} == set(NUMERIC_TYPES):
            inferred = ColumnType.DECIMAL
        else:
            raise TypeMismatch("load", column, value_type, [inferred.value])
    return inferred


def time_since_midnight(value: dt.time) -> dt.timedelta:
    """Offset of a time of day from midnight."""
    return dt.timedelta(
        hours=value.hour,
        minutes=value.minute,
        seconds=value.second,
        microseconds=value.microsecond,
    )


class Row(Mapping[str, Any]):
    """Immutable ordered mapping of column name to value.

    Rows of one table share a single column-position map.
    """

    __slots__ = ("_positions", "_values")

    def __init__(self, positions: Mapping[str, int], values: tuple[Any, ...]):
        self._positions = positions
        self._values = values

    def __getitem__(self, column: str) -> Any:
        return self._values[self._positions[column]]

    def __iter__(self) -> Iterator[str]:
        return iter(self._positions)

    def __len__(self) -> int:
        return len(self._values)

    def values_for(self, columns: Sequence[str]) -> tuple[Any, ...]:
        """Project the row onto `columns`."""
        return tuple(self._values[self._positions[c]] for c in columns)

    def __repr__(self) -> str:
        return f"Row({dict(self)!r})"


class Table:
    """An immutable, ordered sequence of rows with a fixed schema.

    Values live in a Polars DataFrame; the evaluators run Polars expressions
    against it. Row objects are only materialized when iterated.

    Example:
        >>> table = Table.from_records([
        ...     {"name": "Joe", "salary": 70000, "dept": 1},
        ...     {"name": "Jim", "salary": 90000, "dept": 1},
        ... ])
        >>> table.schema
        {'name': <ColumnType.TEXT: 'text'>, 'salary': ..., 'dept': ...}
        >>> ranked = table.with_column("rnk", [2, 1])
    """

    def __init__(
        self,
        frame: pl.DataFrame,
        schema: Mapping[str, ColumnType] | None = None,
        lineage: int | None = None,
    ):
        """
        Args:
            frame: Column data.
            schema: Ordered {column: ColumnType}. Derived from the frame's
                    dtypes when omitted.
            lineage: Identity shared by tables whose rows are the same rows
                     in the same order. A new one is allocated when omitted.
        """
        if schema is None:
            schema = {
                name: column_type_for_dtype(name, dtype)
                for name, dtype in zip(frame.columns, frame.dtypes)
            }
        self._frame = frame
        self._schema = dict(schema)
        self._positions = {name: i for i, name in enumerate(self._schema)}
        self._rows: tuple[Row, ...] | None = None
        self.lineage = lineage if lineage is not None else next(_lineage_ids)

    # --- Construction ---

    @classmethod
    def from_rows(
        cls, schema: Mapping[str, ColumnType], rows: Iterable[Sequence[Any]]
    ) -> Table:
        """Build a table from value tuples laid out in schema column order.

        Raises:
            ValueError: If a row's width differs from the schema.
        """
        width = len(schema)
        materialized = []
        for values in rows:
            values = tuple(values)
            if len(values) != width:
                raise ValueError(f"Row has {len(values)} values but schema has {width} columns")
            materialized.append(values)
        columns = list(zip(*materialized)) if materialized else [()] * width
        frame = pl.DataFrame(
            [
                _series(name, list(values), column_type)
                for (name, column_type), values in zip(schema.items(), columns)
            ]
        )
        return cls(frame, schema)

    @classmethod
    def from_records(
        cls,
        records: Iterable[Mapping[str, Any]],
        schema: Mapping[str, ColumnType] | None = None,
    ) -> Table:
        """Build a table from mappings that all share one column set.

        Raises:
            InvalidKey: If a record is missing a column or has an extra one.
            TypeMismatch: If a column mixes incompatible value types.
        """
        records = list(records)
        if schema is not None:
            columns = list(schema)
        elif records:
            columns = list(records[0])
        else:
            columns = []

        expected = set(columns)
        for record in records:
            missing = expected - set(record)
            if missing:
                raise InvalidKey("load", sorted(missing)[0], record.keys())
            extra = set(record) - expected
            if extra:
                raise InvalidKey("load", sorted(extra)[0], columns)

        rows = [tuple(record[c] for c in columns) for record in records]
        if schema is None:
            schema = {
                c: infer_column_type(c, (row[i] for row in rows))
                for i, c in enumerate(columns)
            }
        return cls.from_rows(schema, rows)

    @classmethod
    def from_polars(cls, df: pl.DataFrame | pl.LazyFrame) -> Table:
        """Build a table from a Polars DataFrame (LazyFrames are collected)."""
        if isinstance(df, pl.LazyFrame):
            df = df.collect()
        return cls(df)

    @classmethod
    def from_pandas(cls, df: pd.DataFrame) -> Table:
        """Build a table from a pandas DataFrame."""
        return cls.from_polars(pl.from_pandas(df))

    @classmethod
    def from_frame(cls, data: Any) -> Table:
        """Build a table from any supported input.

        Args:
            data: Table, Polars DataFrame/LazyFrame, pandas DataFrame,
                  or a sequence of mappings.
        """
        if isinstance(data, Table):
            return data
        if isinstance(data, (pl.DataFrame, pl.LazyFrame)):
            return cls.from_polars(data)
        if isinstance(data, pd.DataFrame):
            return cls.from_pandas(data)
        if isinstance(data, Sequence) and not isinstance(data, (str, bytes)):
            return cls.from_records(data)
        raise TypeError(
            f"Cannot build a Table from {type(data).__name__}. "
            "Pass a Polars DataFrame, pandas DataFrame, or list of dicts."
        )

    # --- Access ---

    @property
    def schema(self) -> dict[str, ColumnType]:
        return dict(self._schema)

    @property
    def columns(self) -> tuple[str, ...]:
        return tuple(self._schema)

    @property
    def frame(self) -> pl.DataFrame:
        """The underlying Polars DataFrame. Treat it as read-only."""
        return self._frame

    @property
    def rows(self) -> tuple[Row, ...]:
        if self._rows is None:
            self._rows = tuple(Row(self._positions, values) for values in self._frame.iter_rows())
        return self._rows

    def __len__(self) -> int:
        return self._frame.height

    def __iter__(self) -> Iterator[Row]:
        return iter(self.rows)

    def __getitem__(self, position: int) -> Row:
        return self.rows[position]

    def column(self, name: str) -> list[Any]:
        """Return a copy of one column's values, in row order."""
        self.require("column", name)
        return self._frame.get_column(name).to_list()

    def column_type(self, name: str) -> ColumnType:
        self.require("column_type", name)
        return self._schema[name]

    def require(self, operation: str, *columns: str) -> None:
        """Raise InvalidKey for the first column not in the schema."""
        for column in columns:
            if column not in self._positions:
                raise InvalidKey(operation, column, self._schema)

    # --- Derivation ---

    def with_column(
        self,
        name: str,
        values: Sequence[Any],
        column_type: ColumnType | None = None,
    ) -> Table:
        """Return a new table with `values` appended as column `name`.

        Raises:
            ValueError: If the column already exists or lengths differ.
        """
        if name in self._positions:
            raise ValueError(f"Column '{name}' already exists")
        if len(values) != len(self):
            raise ValueError(
                f"Column '{name}' has {len(values)} values but table has {len(self)} rows"
            )
        values = list(values)
        column_type = column_type or infer_column_type(name, values)
        frame = self._frame.with_columns(_series(name, values, column_type))
        return Table(frame, {**self._schema, name: column_type}, lineage=self.lineage)

    def take(self, positions: Iterable[int]) -> Table:
        """Return a new table holding the rows at `positions`, in that order."""
        indices = pl.Series(list(positions), dtype=pl.UInt32)
        return Table(self._frame.select(pl.all().gather(indices)), self._schema)

    # --- Export ---

    def to_records(self) -> list[dict[str, Any]]:
        return [dict(row) for row in self.rows]

    def to_polars(self) -> pl.DataFrame:
        """Export to Polars; source dtypes are kept."""
        return self._frame.clone()

    def __repr__(self) -> str:
        return f"Table({len(self)} rows, columns={list(self._schema)})"


def _series(name: str, values: list[Any], column_type: ColumnType) -> pl.Series:
    dtype = None
    if all(v is None for v in values):
        dtype = _POLARS_FALLBACK[column_type]
    return pl.Series(name, values, dtype=dtype, strict=False)
