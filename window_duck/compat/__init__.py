"""Compatibility shims for SQL engines."""

from .duckdb import (
    ENGINE_NULL_DEFAULTS,
    DuckDBWindowProcessor,
    engine_null_order,
    engine_order_key,
    reference_values,
    render_frame,
    render_order_by,
    render_window,
)

__all__ = [
    "ENGINE_NULL_DEFAULTS",
    "DuckDBWindowProcessor",
    "engine_null_order",
    "engine_order_key",
    "reference_values",
    "render_frame",
    "render_order_by",
    "render_window",
]
