"""Pytest fixtures for window-duck tests.

Provides small, hand-checkable tables modelled on the classic SQL window
exercises (department salaries, logins, weather, sensor readings).

Key fixtures:
- employees_df / employees: five employees across two departments
- by_salary_desc: OrderKey for "highest salary first"
- base_config: EngineConfig with defaults, independent of the environment
"""

import datetime as dt

import polars as pl
import pytest

from window_duck import Direction, EngineConfig, NullOrder, OrderKey, Table


@pytest.fixture
def employees_df() -> pl.DataFrame:
    """Employees with a salary tie at the top of department 1."""
    return pl.DataFrame(
        {
            "id": [1, 2, 3, 4, 5],
            "name": ["Joe", "Jim", "Henry", "Sam", "Max"],
            "salary": [70000, 90000, 80000, 60000, 90000],
            "department_id": [1, 1, 2, 2, 1],
        }
    )


@pytest.fixture
def employees(employees_df: pl.DataFrame) -> Table:
    return Table.from_polars(employees_df)


@pytest.fixture
def by_salary_desc() -> OrderKey:
    return OrderKey("salary", Direction.DESC, NullOrder.LAST)


@pytest.fixture
def by_id() -> OrderKey:
    return OrderKey("id", Direction.ASC, NullOrder.LAST)


@pytest.fixture
def logins() -> Table:
    """User logins; user 1 logs in on three consecutive days, then skips one."""
    return Table.from_records(
        [
            {"user_id": 1, "login_date": dt.date(2024, 1, 1), "device": "web"},
            {"user_id": 2, "login_date": dt.date(2024, 1, 1), "device": "ios"},
            {"user_id": 1, "login_date": dt.date(2024, 1, 2), "device": "web"},
            {"user_id": 1, "login_date": dt.date(2024, 1, 3), "device": "ios"},
            {"user_id": 2, "login_date": dt.date(2024, 1, 3), "device": "ios"},
            {"user_id": 1, "login_date": dt.date(2024, 1, 5), "device": "web"},
            {"user_id": 1, "login_date": dt.date(2024, 1, 6), "device": "web"},
        ]
    )


@pytest.fixture
def sensor_readings() -> Table:
    """One sensor reporting the stuck value 5 three times in a row."""
    return Table.from_records(
        [{"ts": ts, "reading": value} for ts, value in enumerate([5, 5, 5, 7, 5], start=1)]
    )


@pytest.fixture
def base_config() -> EngineConfig:
    """Default configuration, not read from the environment."""
    return EngineConfig()
