"""Exception classes for window evaluation.

Provides structured error handling with actionable error messages.
Every evaluation error names the operation that failed so callers can
diagnose without re-running.
"""

from __future__ import annotations

from collections.abc import Iterable


class WindowError(Exception):
    """Base exception for all window-duck errors."""

    pass


class ConfigurationError(WindowError):
    """Raised when engine configuration is invalid or incomplete.

    Example:
        raise ConfigurationError(
            "WINDOW_DUCK_MAX_WORKERS must be a positive integer, got '-1'"
        )
    """

    pass


class EvaluationError(WindowError):
    """Base exception for errors raised while evaluating an operation.

    Args:
        operation: Name of the operation where the error occurred
        message: Detailed error message

    Attributes:
        operation: Name of the operation (included in error message)
    """

    def __init__(self, operation: str, message: str):
        self.operation = operation
        super().__init__(f"[{operation}] {message}")


class InvalidKey(EvaluationError):
    """Raised when a referenced column does not exist in the table schema.

    Automatically lists available columns to help debugging.

    Args:
        operation: Name of the operation where the error occurred
        column: Name of the missing column
        available_columns: Columns that exist in the table

    Attributes:
        column: Name of the missing column
        available_columns: List of available column names

    Example:
        raise InvalidKey("dense_rank", "salary", ["id", "name", "dept"])
    """

    def __init__(
        self, operation: str, column: str, available_columns: Iterable[str]
    ) -> None:
        self.column = column
        self.available_columns = list(available_columns)

        message = (
            f"Column '{column}' not found. "
            f"Available columns: {sorted(self.available_columns)}"
        )
        super().__init__(operation, message)


class TypeMismatch(EvaluationError):
    """Raised when an operation is requested over an incompatible column type.

    Args:
        operation: Name of the operation where the error occurred
        column: Column the operation was applied to
        column_type: Actual type of the column
        expected: Types the operation accepts

    Example:
        raise TypeMismatch("avg", "name", ColumnType.TEXT, ["integer", "decimal"])
    """

    def __init__(
        self,
        operation: str,
        column: str,
        column_type: object,
        expected: Iterable[str],
    ) -> None:
        self.column = column
        self.column_type = column_type
        self.expected = list(expected)

        message = (
            f"Column '{column}' has type {column_type}, "
            f"expected one of: {', '.join(self.expected)}"
        )
        super().__init__(operation, message)


class PrecisionUnavailable(EvaluationError):
    """Raised when an exact order statistic is requested but not affordable.

    Never downgraded to an approximation silently: callers that accept an
    approximate answer must ask for one.

    Args:
        operation: Name of the operation where the error occurred
        partition_size: Number of non-null values in the offending partition
        max_exact_rows: Configured limit for exact computation
    """

    def __init__(self, operation: str, partition_size: int, max_exact_rows: int) -> None:
        self.partition_size = partition_size
        self.max_exact_rows = max_exact_rows

        message = (
            f"Exact computation needs {partition_size:,} values but the limit is "
            f"{max_exact_rows:,}. Request QuantileMode.APPROXIMATE or raise "
            f"WINDOW_DUCK_MAX_EXACT_ROWS."
        )
        super().__init__(operation, message)
