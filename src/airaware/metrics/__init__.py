# AirAware: compute air quality indices for monitoring stations
# Copyright (C) 2025 Ruaraidh Dobson, South London Scientific

# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.

# You should have received a copy of the GNU General Public License
# along with this program.  If not, see <https://www.gnu.org/licenses/>.

"""
Air Quality Index calculations and metrics.

This module provides the particulate AQI calculator and a DataFrame
helper that applies it to many readings at once.

Supported Indices:
    - US_EPA: US EPA Air Quality Index (0-500 scale, PM2.5 and PM10)

Quick Start:
    >>> from airaware import metrics
    >>>
    >>> # Single pollutant
    >>> metrics.calculate_for_pm25(24.0).value
    76
    >>>
    >>> # Overall AQI for one reading
    >>> final, pm25, pm10 = metrics.calculate({"pm25": 35.5, "pm10": 154})
    >>>
    >>> # AQI for every row of a DataFrame
    >>> table = metrics.aqi_readings(readings)
"""

import warnings
from typing import Sequence

import pandas as pd

from ..transforms import (
    add_column,
    compose,
    filter_rows,
    pivot_measurands,
    rename_columns,
    select_columns,
)
from ..types import AQI_COLUMNS, ReadingRecord
from .base import (
    AQIResult,
    Breakpoint,
    IndexInfo,
    ensure_ugm3,
    get_available_pollutants,
    standardise_pollutant,
    validate_data,
)
from .indices import get_index
from .indices import list_indices as _list_indices
from .indices.us_epa import (
    calculate,
    calculate_for_pm10,
    calculate_for_pm25,
    calculate_pollutant,
)

# Re-export key types
__all__ = [
    # Calculator
    "calculate",
    "calculate_for_pm25",
    "calculate_for_pm10",
    "calculate_pollutant",
    # Main API functions
    "aqi_readings",
    "list_indices",
    "get_index_info",
    # Types
    "AQIResult",
    "Breakpoint",
    "IndexInfo",
]

# Measurand name -> wide column name
PM_COLUMNS = {"PM2.5": "pm25", "PM10": "pm10"}


# =============================================================================
# Public API
# =============================================================================


def list_indices() -> list[str]:
    """
    List all available AQI indices.

    Returns:
        List of index keys (e.g., ["US_EPA"])
    """
    return _list_indices()


def get_index_info(index: str) -> IndexInfo | None:
    """
    Get detailed information about an AQI index.

    Args:
        index: Index key (e.g., "US_EPA")

    Returns:
        IndexInfo dict with name, country, scale, pollutants, description, url
        or None if index not found

    Example:
        >>> info = metrics.get_index_info("US_EPA")
        >>> print(info["pollutants"])
        ['PM2.5', 'PM10']
    """
    return get_index(index)


def aqi_readings(
    data: pd.DataFrame,
    index: str = "US_EPA",
    group_by: Sequence[str] = ("site_code", "date_time"),
) -> pd.DataFrame:
    """
    Calculate the AQI for every reading in a DataFrame.

    Two input shapes are accepted:

    - Wide: one row per reading with a ``pm25`` column and an optional
      ``pm10`` column. A missing or NaN PM10 counts as 0.
    - Long: one row per measurement with ``measurand``, ``value`` and
      ``units`` columns. Rows are standardised to µg/m³ and pivoted to
      wide form using the ``group_by`` columns that are present.

    Rows without a PM2.5 value cannot be scored and are dropped with a
    warning. No averaging is applied: each reading is scored as given.

    Args:
        data: Readings in wide or long format
        index: AQI index to use (default: "US_EPA")
        group_by: Columns identifying one reading in long-format data

    Returns:
        DataFrame with the wide reading columns plus:
            pm25_aqi, pm25_category, pm10_aqi, pm10_category,
            aqi_value, aqi_category, dominant_pollutant

    Raises:
        ValueError: If the index is unknown or the data has neither shape

    Example:
        >>> df = pd.DataFrame({"pm25": [12.0, 35.5], "pm10": [354, 154]})
        >>> metrics.aqi_readings(df)[["aqi_value", "dominant_pollutant"]]
           aqi_value dominant_pollutant
        0        200               PM10
        1        101              PM2.5
    """
    index_info = get_index(index)
    if index_info is None:
        available = list_indices()
        raise ValueError(f"Unknown index '{index}'. Available: {available}")

    index_module = _get_index_module(index)

    shape = validate_data(data)
    if shape == "long":
        df = _long_to_wide(data, list(group_by))
    else:
        df = data.copy()

    if "pm25" not in df.columns:
        df["pm25"] = float("nan")
    if "pm10" not in df.columns:
        df["pm10"] = float("nan")

    missing = df["pm25"].isna()
    if missing.any():
        warnings.warn(
            f"{int(missing.sum())} reading(s) have no PM2.5 value and were dropped.",
            UserWarning,
            stacklevel=2,
        )
        df = df[~missing]

    rows = []
    for pm25, pm10 in zip(df["pm25"], df["pm10"]):
        reading: ReadingRecord = {
            "pm25": float(pm25),
            "pm10": None if pd.isna(pm10) else float(pm10),
        }
        final, pm25_result, pm10_result = index_module.calculate(reading)
        rows.append(
            {
                "pm25_aqi": pm25_result.value,
                "pm25_category": pm25_result.category,
                "pm10_aqi": pm10_result.value,
                "pm10_category": pm10_result.category,
                "aqi_value": final.value,
                "aqi_category": final.category,
                "dominant_pollutant": final.pollutant,
            }
        )

    aqi = pd.DataFrame(rows, index=df.index, columns=AQI_COLUMNS)
    return pd.concat([df, aqi], axis=1)


# =============================================================================
# Internal Helpers
# =============================================================================


def _get_index_module(index: str):
    """Get the module for an index."""
    from .indices import us_epa

    modules = {
        "US_EPA": us_epa,
    }

    return modules.get(index)


def _long_to_wide(data: pd.DataFrame, group_by: list[str]) -> pd.DataFrame:
    """Standardise long-format particulate data and pivot it to one row per reading."""
    available = get_available_pollutants(data)
    if "PM2.5" not in available:
        raise ValueError(
            f"No PM2.5 measurements found in data. Data contains: {available or 'none'}"
        )

    prepare = compose(
        select_columns(*group_by, "measurand", "value", "units"),
        add_column("measurand", lambda d: d["measurand"].map(standardise_pollutant)),
        filter_rows(lambda d: d["measurand"].isin(list(PM_COLUMNS)) & d["value"].notna()),
        add_column(
            "value",
            lambda d: [
                ensure_ugm3(value, measurand, units, warn=False)
                for value, measurand, units in zip(
                    d["value"], d["measurand"], d["units"]
                )
            ],
        ),
        pivot_measurands(id_vars=group_by),
        rename_columns(PM_COLUMNS),
    )
    return prepare(data)
