"""Configuration management for the window-duck engine.

This module provides validated configuration with clear error messages.
Engine-wide knobs are loaded from environment variables with sensible
defaults. Per-call settings (partition keys, order keys, frames) are never
read from here: they are always explicit arguments.
"""

import os
from dataclasses import dataclass

from window_duck.constants import (
    DEFAULT_MAX_EXACT_ROWS,
    DEFAULT_MAX_WORKERS,
    ENV_LOG_TIMINGS,
    ENV_MAX_EXACT_ROWS,
    ENV_MAX_WORKERS,
)
from window_duck.exceptions import ConfigurationError

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"", "0", "false", "no", "off"}


@dataclass(frozen=True)
class EngineConfig:
    """Validated engine configuration.

    Attributes:
        max_workers: Threads for evaluating callable island predicates (default: 1)
        max_exact_rows: Largest partition for exact quantiles, None for no limit
        log_timings: Log elapsed time of processor runs at INFO (default: False)
    """

    max_workers: int = DEFAULT_MAX_WORKERS
    max_exact_rows: int | None = DEFAULT_MAX_EXACT_ROWS
    log_timings: bool = False

    def validate(self) -> None:
        """Validate configuration values.

        Raises:
            ConfigurationError: If any configuration is invalid
        """
        if self.max_workers <= 0:
            raise ConfigurationError(
                f"max_workers must be positive, got: {self.max_workers}"
            )

        if self.max_exact_rows is not None and self.max_exact_rows <= 0:
            raise ConfigurationError(
                f"max_exact_rows must be positive or None, got: {self.max_exact_rows}"
            )

    @classmethod
    def from_env(cls) -> "EngineConfig":
        """Load and validate configuration from environment variables.

        Environment Variables:
            WINDOW_DUCK_MAX_WORKERS: Partition worker threads (default: 1)
            WINDOW_DUCK_MAX_EXACT_ROWS: Exact quantile limit (default: unlimited)
            WINDOW_DUCK_LOG_TIMINGS: Log processor timings (default: false)

        Returns:
            Validated configuration object

        Raises:
            ConfigurationError: If configuration is invalid
        """
        config = cls(
            max_workers=_read_int(ENV_MAX_WORKERS, DEFAULT_MAX_WORKERS),
            max_exact_rows=_read_optional_int(ENV_MAX_EXACT_ROWS),
            log_timings=_read_bool(ENV_LOG_TIMINGS),
        )

        # Validate before returning
        config.validate()

        return config


def _read_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be an integer, got: '{raw}'") from e


def _read_optional_int(name: str) -> int | None:
    raw = os.environ.get(name)
    if raw is None or raw.strip().lower() in ("", "none"):
        return None
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigurationError(
            f"{name} must be an integer or 'none', got: '{raw}'"
        ) from e


def _read_bool(name: str) -> bool:
    raw = os.environ.get(name, "").strip().lower()
    if raw in _TRUE_VALUES:
        return True
    if raw in _FALSE_VALUES:
        return False
    raise ConfigurationError(f"{name} must be true or false, got: '{raw}'")
