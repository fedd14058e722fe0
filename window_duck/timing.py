"""Timing helper for processor runs."""

import logging
import time

logger = logging.getLogger(__name__)


class track_timing:
    """Context manager to track and log execution time.

    Logs a completion message when the block exits and keeps the elapsed
    time on the instance. Use this to eliminate manual timing boilerplate.

    Args:
        operation: Description of operation (e.g., "dense_rank", "chain")
        log_message: Optional custom log message template. Use {elapsed_ms} placeholder.
        level: Logging level for the completion message (default: DEBUG)

    Example:
        >>> with track_timing("dense_rank") as timer:
        ...     ranks = dense_rank(index)
        ...     # Logs: "Completed dense_rank in 1.2ms"
        >>> timer.elapsed_ms
        1.2
    """

    def __init__(
        self,
        operation: str = "processing",
        log_message: str | None = None,
        level: int = logging.DEBUG,
    ):
        self.operation = operation
        self.log_message = log_message
        self.level = level
        self.start_time = None
        self.elapsed_ms = None

    def __enter__(self):
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.start_time is not None:
            self.elapsed_ms = (time.perf_counter() - self.start_time) * 1000

            if exc_type is not None:
                logger.log(self.level, f"Failed {self.operation} after {self.elapsed_ms:.1f}ms")
            elif self.log_message:
                logger.log(self.level, self.log_message.format(elapsed_ms=self.elapsed_ms))
            else:
                logger.log(self.level, f"Completed {self.operation} in {self.elapsed_ms:.1f}ms")

        return False  # Don't suppress exceptions
