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
Core type definitions for AirAware.

This module defines the plain reading schema, the transformer alias and
the standard column names used throughout the package.
"""

from datetime import datetime
from typing import Callable, TypeAlias, TypedDict
from uuid import UUID

import pandas as pd


class ReadingRecord(TypedDict, total=False):
    """
    Schema for a particulate reading.

    Required fields:
        pm25: PM2.5 concentration in µg/m³

    Optional fields:
        pm10: PM10 concentration in µg/m³ (treated as 0 when absent)
        station_id: Station the reading belongs to
        raw_payload: Provider payload the reading was taken from
        created_at: Timestamp when record was created
    """
    # Required fields
    pm25: float

    # Optional fields
    pm10: float | None
    station_id: UUID
    raw_payload: str | None
    created_at: datetime


Transformer: TypeAlias = Callable[[pd.DataFrame], pd.DataFrame]
"""
A function that transforms a DataFrame (e.g., renaming columns, adding fields).

Args:
    df: Input DataFrame

Returns:
    pd.DataFrame: Transformed DataFrame
"""


# Standard column names - for reference and validation
STATION_COLUMNS = [
    "id",
    "name",
    "latitude",
    "longitude",
    "provider",
    "provider_metadata",
    "active",
    "created_at",
]

READING_COLUMNS = [
    "id",
    "station_id",
    "pm25",
    "pm10",
    "raw_payload",
    "created_at",
]

AQI_COLUMNS = [
    "pm25_aqi",
    "pm25_category",
    "pm10_aqi",
    "pm10_category",
    "aqi_value",
    "aqi_category",
    "dominant_pollutant",
]
