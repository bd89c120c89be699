"""
Pytest configuration and shared fixtures.

This module provides common fixtures and utilities used across all tests.
"""

import pandas as pd
import pytest

from airaware.database_operations import add_station

# ============================================================================
# Database Fixtures
# ============================================================================


@pytest.fixture
def database_file(tmp_path):
    """Return path to a fresh SQLite database file for one test."""
    return str(tmp_path / "airaware.db")


@pytest.fixture
def station(database_file):
    """Store and return a station in the test database."""
    return add_station(
        name="Elephant & Castle",
        latitude=51.4946,
        longitude=-0.1003,
        provider="PurpleAir",
        database_file=database_file,
    )


# ============================================================================
# Sample DataFrames for Testing Metrics and Transforms
# ============================================================================


@pytest.fixture
def sample_wide_df():
    """
    Sample DataFrame in wide format (one row per reading).

    This mimics the output of get_readings().
    """
    return pd.DataFrame(
        {
            "date_time": pd.date_range("2024-01-01", periods=4, freq="h"),
            "site_code": ["EC1"] * 4,
            "pm25": [35.5, 12.0, 24.0, 600.0],
            "pm10": [154.0, 354.0, None, 20.0],
        }
    )


@pytest.fixture
def sample_long_df():
    """
    Sample DataFrame in long format (one row per measurement).
    """
    return pd.DataFrame(
        {
            "date_time": pd.to_datetime(
                [
                    "2024-01-01 00:00:00",
                    "2024-01-01 00:00:00",
                    "2024-01-01 00:00:00",
                    "2024-01-01 01:00:00",
                    "2024-01-01 01:00:00",
                ]
            ),
            "site_code": ["EC1", "EC1", "EC1", "EC1", "EC1"],
            "measurand": ["PM2.5", "PM10", "NO2", "pm25", "pm10"],
            "value": [35.5, 154.0, 45.2, 12.0, 354.0],
            "units": ["ug/m3", "ug/m3", "ug/m3", "µg/m³", "ug/m3"],
        }
    )


@pytest.fixture
def empty_df():
    """Empty DataFrame with expected columns for testing edge cases."""
    return pd.DataFrame(
        columns=["date_time", "site_code", "measurand", "value", "units"]
    )


# ============================================================================
# Utility Functions
# ============================================================================


def assert_has_columns(df: pd.DataFrame, columns: list[str]):
    """
    Assert that DataFrame has all specified columns.

    Args:
        df: DataFrame to check
        columns: List of required column names
    """
    missing = set(columns) - set(df.columns)
    assert not missing, f"Missing columns: {missing}"


def assert_no_nulls(df: pd.DataFrame, columns: list[str] | None = None):
    """
    Assert that DataFrame has no null values in specified columns.

    Args:
        df: DataFrame to check
        columns: List of columns to check (None = all columns)
    """
    if columns is None:
        columns = df.columns.tolist()

    for col in columns:
        null_count = df[col].isna().sum()
        assert null_count == 0, f"Column '{col}' has {null_count} null values"


# Make utility functions available to tests
pytest.assert_has_columns = assert_has_columns
pytest.assert_no_nulls = assert_no_nulls
