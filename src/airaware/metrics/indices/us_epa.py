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
US EPA Air Quality Index (AQI) implementation for particulate matter.

The US EPA AQI uses a 0-500 scale divided into six categories:
Good (0-50), Moderate (51-100), Unhealthy for Sensitive Groups (101-150),
Unhealthy (151-200), Very Unhealthy (201-300), Hazardous (301-500).

Breakpoints are the 2012 PM2.5 / PM10 tables, with the upper Hazardous
bands folded into a single 301-500 row.

Reference: https://www.airnow.gov/aqi/aqi-basics/
CFR: 40 CFR Appendix G to Part 58
"""

from collections.abc import Mapping
from dataclasses import replace
from typing import Any

from ..base import (
    AQIResult,
    Breakpoint,
    IndexInfo,
    calculate_aqi_from_breakpoints,
    standardise_pollutant,
)
from . import register_index

# =============================================================================
# Index Metadata
# =============================================================================

INDEX_INFO: IndexInfo = {
    "name": "US EPA Air Quality Index",
    "short_name": "AQI",
    "country": "United States",
    "scale_min": 0,
    "scale_max": 500,
    "pollutants": ["PM2.5", "PM10"],
    "description": (
        "The US EPA Air Quality Index (AQI) is a nationally uniform index for "
        "reporting daily air quality. It uses a 0-500 scale with six categories. "
        "The overall AQI is the highest of the PM2.5 and PM10 sub-indices."
    ),
    "url": "https://www.airnow.gov/aqi/aqi-basics/",
    "source": "40 CFR Part 58, Appendix G - Uniform Air Quality Index (AQI) and Daily Reporting",
    "version": "December 2012 (PM2.5 breakpoints)",
}

# Register this index
register_index("US_EPA", INDEX_INFO)


# =============================================================================
# Category Definitions
# =============================================================================

COLORS = {
    "Good": "#00E400",  # Green
    "Moderate": "#FFFF00",  # Yellow
    "Unhealthy for Sensitive Groups": "#FF7E00",  # Orange
    "Unhealthy": "#FF0000",  # Red
    "Very Unhealthy": "#8F3F97",  # Purple
    "Hazardous": "#7E0023",  # Maroon
}

HEALTH_MESSAGES = {
    "Good": ("Air quality is satisfactory, and air pollution poses little or no risk."),
    "Moderate": (
        "Air quality is acceptable. However, there may be a risk for some people, "
        "particularly those who are unusually sensitive to air pollution."
    ),
    "Unhealthy for Sensitive Groups": (
        "Members of sensitive groups may experience health effects. "
        "The general public is less likely to be affected."
    ),
    "Unhealthy": (
        "Some members of the general public may experience health effects; "
        "members of sensitive groups may experience more serious health effects."
    ),
    "Very Unhealthy": (
        "Health alert: The risk of health effects is increased for everyone."
    ),
    "Hazardous": (
        "Health warning of emergency conditions: everyone is more likely to be affected."
    ),
}

UNIT = "µg/m³"


# =============================================================================
# Breakpoints
# =============================================================================
#
# Source: 40 CFR Part 58, Appendix G (as amended January 2013)
# Both tables are closed intervals; the gaps between rows (e.g. 12.0-12.1)
# are the reporting precision of the standard.
# =============================================================================


def _make_breakpoint(
    low_conc: float,
    high_conc: float,
    low_aqi: int,
    high_aqi: int,
    category: str,
) -> Breakpoint:
    return Breakpoint(
        low_conc=low_conc,
        high_conc=high_conc,
        low_aqi=low_aqi,
        high_aqi=high_aqi,
        category=category,
        color=COLORS[category],
    )


# PM2.5 (µg/m³, 24-hour)
PM25_BREAKPOINTS = (
    _make_breakpoint(0.0, 12.0, 0, 50, "Good"),
    _make_breakpoint(12.1, 35.4, 51, 100, "Moderate"),
    _make_breakpoint(35.5, 55.4, 101, 150, "Unhealthy for Sensitive Groups"),
    _make_breakpoint(55.5, 150.4, 151, 200, "Unhealthy"),
    _make_breakpoint(150.5, 250.4, 201, 300, "Very Unhealthy"),
    _make_breakpoint(250.5, 500.4, 301, 500, "Hazardous"),
)

# PM10 (µg/m³, 24-hour)
PM10_BREAKPOINTS = (
    _make_breakpoint(0, 54, 0, 50, "Good"),
    _make_breakpoint(55, 154, 51, 100, "Moderate"),
    _make_breakpoint(155, 254, 101, 150, "Unhealthy for Sensitive Groups"),
    _make_breakpoint(255, 354, 151, 200, "Unhealthy"),
    _make_breakpoint(355, 424, 201, 300, "Very Unhealthy"),
    _make_breakpoint(425, 504, 301, 500, "Hazardous"),
)

BREAKPOINTS = {
    "PM2.5": PM25_BREAKPOINTS,
    "PM10": PM10_BREAKPOINTS,
}


# =============================================================================
# Calculation Functions
# =============================================================================


def _calculate(concentration: float, pollutant: str) -> AQIResult:
    result = calculate_aqi_from_breakpoints(
        concentration, BREAKPOINTS[pollutant], pollutant
    )
    return replace(result, unit=UNIT, message=HEALTH_MESSAGES[result.category])


def calculate_for_pm25(concentration: float) -> AQIResult:
    """
    Calculate the PM2.5 sub-index.

    Concentrations above 500.4 µg/m³ saturate at 500 and negative
    concentrations clamp to 0; no input raises.

    Example:
        >>> calculate_for_pm25(35.5).value
        101
    """
    return _calculate(concentration, "PM2.5")


def calculate_for_pm10(concentration: float) -> AQIResult:
    """
    Calculate the PM10 sub-index.

    Concentrations above 504 µg/m³ saturate at 500 and negative
    concentrations clamp to 0; no input raises.
    """
    return _calculate(concentration, "PM10")


def calculate_pollutant(concentration: float, pollutant: str) -> AQIResult:
    """
    Calculate US EPA AQI for a single particulate concentration.

    Args:
        concentration: Concentration in µg/m³
        pollutant: Pollutant name (PM2.5 or PM10, common aliases accepted)

    Returns:
        AQIResult with AQI value (0-500), category, color and health message

    Raises:
        ValueError: If pollutant is not supported
    """
    standard = standardise_pollutant(pollutant)
    if standard not in BREAKPOINTS:
        raise ValueError(
            f"Pollutant '{pollutant}' not supported by US EPA AQI. "
            f"Supported: {list(BREAKPOINTS.keys())}"
        )
    return _calculate(concentration, standard)


def _reading_field(reading: Any, name: str) -> Any:
    if isinstance(reading, Mapping):
        return reading.get(name)
    return getattr(reading, name, None)


def calculate(reading: Any) -> tuple[AQIResult, AQIResult, AQIResult]:
    """
    Calculate the overall AQI for a reading.

    The reading may be a mapping (e.g. a ReadingRecord) or any object with
    ``pm25`` and ``pm10`` attributes. A missing PM10 concentration counts
    as 0.

    Args:
        reading: Reading with a required pm25 and optional pm10 value

    Returns:
        Tuple of (final, pm25, pm10) results. The final result is whichever
        sub-index is higher; PM2.5 wins a tie.

    Example:
        >>> final, pm25, pm10 = calculate({"pm25": 12.0, "pm10": 354})
        >>> final.value, final.pollutant
        (200, 'PM10')
    """
    pm10_concentration = _reading_field(reading, "pm10")
    if pm10_concentration is None:
        pm10_concentration = 0.0

    pm25_result = calculate_for_pm25(_reading_field(reading, "pm25"))
    pm10_result = calculate_for_pm10(pm10_concentration)

    final = pm25_result if pm25_result.value >= pm10_result.value else pm10_result
    return final, pm25_result, pm10_result

