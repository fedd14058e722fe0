"""Example: Employee Salaries

Demonstrates the classic window exercises on a small employee table:
highest salary per department, top three distinct salaries, running
payroll, and salary streaks.

Run with:
    uv run python examples/employee_salaries.py
"""

import logging

import polars as pl

from window_duck import Consecutive, EngineConfig, Frame, OrderKey
from window_duck.processors import (
    Chain,
    FilterProcessor,
    FrameAggregateProcessor,
    IslandProcessor,
    QuantileProcessor,
    RankProcessor,
    TopNProcessor,
)

logging.basicConfig(level=logging.INFO, format="%(name)s - %(message)s")

employees = pl.DataFrame(
    {
        "id": [1, 2, 3, 4, 5, 6, 7],
        "name": ["Joe", "Henry", "Sam", "Max", "Janet", "Randy", "Will"],
        "salary": [85000, 80000, 60000, 90000, 69000, 85000, 70000],
        "department_id": [1, 2, 2, 1, 1, 1, 1],
        "hired_year": [2019, 2020, 2021, 2020, 2022, 2021, 2023],
    }
)

by_salary = OrderKey("salary", "desc", "last")
by_id = OrderKey("id", "asc", "last")
config = EngineConfig(log_timings=True)


# =============================================================================
# Department Highest Salary: RANK() = 1 keeps every tied top earner
# =============================================================================

highest = Chain(
    [
        RankProcessor("rnk", "rank", partition_by="department_id", order_by=by_salary),
        FilterProcessor("rnk", 1, "=="),
    ],
    config=config,
).process(employees)
print("Highest salary per department:")
print(highest.select("department_id", "name", "salary"))


# =============================================================================
# Department Top Three Salaries: DENSE_RANK() <= 3
# =============================================================================

top_three = TopNProcessor(3, "department_id", by_salary).process(employees, config)
print("\nTop three distinct salaries per department:")
print(top_three.select("department_id", "name", "salary"))


# =============================================================================
# Running payroll and 3-row moving average, sharing one sort
# =============================================================================

payroll = Chain(
    [
        FrameAggregateProcessor(
            "running_payroll", "salary", "sum", "department_id", by_id, Frame.running()
        ),
        FrameAggregateProcessor(
            "avg_3", "salary", "avg", "department_id", by_id, Frame.trailing(2)
        ),
    ],
    config=config,
)
print("\nRunning payroll by department:")
print(payroll.process(employees))
print(f"Partition indexes built: {payroll.index_builds}")


# =============================================================================
# Median salary per department
# =============================================================================

medians = QuantileProcessor("salary", 0.5, "department_id", output="median_salary")
print("\nMedian salary per department:")
print(medians.process(employees, config))


# =============================================================================
# Hiring streaks: consecutive years with at least one hire
# =============================================================================

hire_years = employees.select("hired_year").unique().sort("hired_year")
streaks = IslandProcessor(
    Consecutive("hired_year"),
    partition_by=None,
    order_by=OrderKey("hired_year", "asc", "last"),
    min_length=2,
).process(hire_years, config)
print("\nHiring streaks of two or more years:")
print(streaks)
