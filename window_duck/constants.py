"""Engine defaults and naming constants for window-duck.

These constants define the defaults used when configuration is not supplied
through the environment. Centralizing them here makes it easy to:
- See every tunable in one place
- Change a default without hunting through code
- Test with different configurations
"""

# -----------------------------------------------------------------------------
# Parallelism
# -----------------------------------------------------------------------------

# Number of worker threads used to evaluate callable island predicates.
# 1 evaluates partitions sequentially on the calling thread.
DEFAULT_MAX_WORKERS = 1

# -----------------------------------------------------------------------------
# Order Statistics
# -----------------------------------------------------------------------------

# Largest partition (non-null values) for which exact quantiles are computed.
# None means no limit.
DEFAULT_MAX_EXACT_ROWS = None

# Quantile used by median()
MEDIAN_QUANTILE = 0.5

# -----------------------------------------------------------------------------
# Output Column Names
# -----------------------------------------------------------------------------

# Island summary tables
ISLAND_ROW_COUNT_COLUMN = "row_count"
ISLAND_VALUE_COLUMN = "value"
ISLAND_START_PREFIX = "start_"
ISLAND_END_PREFIX = "end_"

# -----------------------------------------------------------------------------
# Internal Column Names
# -----------------------------------------------------------------------------

# Helper columns added to partition index frames
ROW_COLUMN = "__window_duck_row"
PARTITION_COLUMN = "__window_duck_partition"
POSITION_COLUMN = "__window_duck_position"
RESULT_COLUMN = "__window_duck_result"
LABEL_COLUMN = "__window_duck_label"

# -----------------------------------------------------------------------------
# Environment Variables
# -----------------------------------------------------------------------------

ENV_MAX_WORKERS = "WINDOW_DUCK_MAX_WORKERS"
ENV_MAX_EXACT_ROWS = "WINDOW_DUCK_MAX_EXACT_ROWS"
ENV_LOG_TIMINGS = "WINDOW_DUCK_LOG_TIMINGS"
