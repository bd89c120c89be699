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
Base types, constants, and utilities for AQI calculations.

This module provides the foundation for the index implementations:
breakpoint and result types, the clamped breakpoint interpolation,
pollutant standardisation and particulate unit handling.
"""

import math
import warnings
from dataclasses import dataclass
from typing import Sequence, TypedDict

import pandas as pd

# =============================================================================
# Types
# =============================================================================


@dataclass(frozen=True)
class Breakpoint:
    """A single AQI breakpoint definition."""

    low_conc: float  # Low concentration bound (inclusive)
    high_conc: float  # High concentration bound (inclusive)
    low_aqi: int  # Low AQI bound
    high_aqi: int  # High AQI bound
    category: str  # Category name (e.g., "Good", "Moderate")
    color: str  # Hex color code for display


class IndexInfo(TypedDict):
    """Metadata about an AQI index."""

    name: str  # Full name of the index
    short_name: str  # Abbreviated name
    country: str  # Country or region
    scale_min: int  # Minimum possible value
    scale_max: int  # Maximum possible value
    pollutants: list[str]  # Supported pollutants
    description: str  # Brief description
    url: str  # Reference URL
    source: str  # Regulation the breakpoints come from
    version: str  # Breakpoint table revision


@dataclass(frozen=True)
class AQIResult:
    """Result of an AQI calculation for a single pollutant."""

    value: int  # AQI value
    category: str  # Category name
    pollutant: str  # Pollutant name ("PM2.5" or "PM10")
    color: str | None = None  # Hex color code
    concentration: float | None = None  # Input concentration
    unit: str = "µg/m³"  # Unit of concentration
    message: str | None = None  # Optional health message


# =============================================================================
# Rounding
# =============================================================================


def round_half_away_from_zero(value: float) -> int:
    """
    Round to the nearest integer, sending ties away from zero.

    Python's built-in round() uses banker's rounding (76.5 -> 76), which
    is not how published AQI values are reported.

    Example:
        >>> round_half_away_from_zero(76.5)
        77
        >>> round_half_away_from_zero(-76.5)
        -77
    """
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


# =============================================================================
# Unit Handling
# =============================================================================

UGM3_UNITS = ("ug/m3", "µg/m³", "ugm3", "µg/m3", "ug/m³")
MGM3_UNITS = ("mg/m3", "mg/m³")
MIXING_RATIO_UNITS = ("ppb", "parts per billion", "ppm", "parts per million")


def ensure_ugm3(
    concentration: float,
    pollutant: str,
    current_unit: str,
    warn: bool = True,
) -> float:
    """
    Ensure a particulate concentration is in µg/m³, converting if necessary.

    Particulates have no molecular weight, so mixing ratios (ppb, ppm)
    cannot be converted and are rejected.

    Args:
        concentration: The concentration value
        pollutant: Pollutant name
        current_unit: Current unit of the concentration
        warn: Whether to warn about conversions

    Returns:
        Concentration in µg/m³

    Raises:
        ValueError: If the unit is a mixing ratio
    """
    unit_lower = current_unit.lower().strip()

    if unit_lower in UGM3_UNITS:
        return concentration

    if unit_lower in MGM3_UNITS:
        if warn:
            warnings.warn(
                f"Converting {pollutant} from mg/m³ to µg/m³ for AQI calculation.",
                UserWarning,
                stacklevel=3,
            )
        return concentration * 1000

    if unit_lower in MIXING_RATIO_UNITS:
        raise ValueError(
            f"Cannot convert {pollutant} from {current_unit} to µg/m³. "
            f"Particulate matter must be reported as a mass concentration."
        )

    # Unknown unit - warn and assume µg/m³
    warnings.warn(
        f"Unknown unit '{current_unit}' for {pollutant}. "
        f"Assuming µg/m³ for AQI calculation.",
        UserWarning,
        stacklevel=3,
    )
    return concentration


# =============================================================================
# Pollutant Standardisation
# =============================================================================

# Map common pollutant names to standard forms
POLLUTANT_ALIASES = {
    # PM2.5 variants
    "pm2.5": "PM2.5",
    "pm25": "PM2.5",
    "PM25": "PM2.5",
    "pm 2.5": "PM2.5",
    "PM 2.5": "PM2.5",
    "pm2_5": "PM2.5",
    "fine particulate": "PM2.5",
    "fine particles": "PM2.5",
    # PM10 variants
    "pm10": "PM10",
    "PM 10": "PM10",
    "pm 10": "PM10",
    "pm_10": "PM10",
    "coarse particulate": "PM10",
}


def standardise_pollutant(pollutant: str) -> str | None:
    """
    Standardise a pollutant name to its canonical form.

    Args:
        pollutant: Pollutant name in any common format

    Returns:
        Standardised pollutant name, or None if not recognised
    """
    if pollutant in ("PM2.5", "PM10"):
        return pollutant

    return POLLUTANT_ALIASES.get(pollutant)


# =============================================================================
# Breakpoint Interpolation
# =============================================================================


def calculate_aqi_from_breakpoints(
    concentration: float,
    breakpoints: Sequence[Breakpoint],
    pollutant: str = "",
) -> AQIResult:
    """
    Calculate AQI value using linear interpolation between breakpoints.

    This is the standard EPA-style calculation:

    AQI = ((high_aqi - low_aqi) / (high_conc - low_conc)) * (conc - low_conc) + low_aqi

    Values outside the table are clamped rather than extrapolated: anything
    below the first row gets the first row's low_aqi, anything above the
    last row (or NaN) gets the last row's high_aqi. A concentration falling
    between one row's high_conc and the next row's low_conc takes the lower
    row's high_aqi, so the value always lies inside its category's band.

    Args:
        concentration: Pollutant concentration (must be in correct units)
        breakpoints: Breakpoint definitions, sorted by concentration
        pollutant: Label to attach to the result

    Returns:
        AQIResult with interpolated or clamped value
    """
    first, last = breakpoints[0], breakpoints[-1]

    if concentration < first.low_conc:
        return AQIResult(
            value=first.low_aqi,
            category=first.category,
            pollutant=pollutant,
            color=first.color,
            concentration=concentration,
        )

    matched = None
    for bp in breakpoints:
        if bp.low_conc <= concentration:
            matched = bp
        else:
            break

    if matched is None or concentration > last.high_conc:
        return AQIResult(
            value=last.high_aqi,
            category=last.category,
            pollutant=pollutant,
            color=last.color,
            concentration=concentration,
        )

    aqi_range = matched.high_aqi - matched.low_aqi
    conc_range = matched.high_conc - matched.low_conc

    if conc_range == 0:
        # Edge case: single-point breakpoint
        aqi_value = matched.low_aqi
    elif concentration > matched.high_conc:
        # Between this row and the next: stay at the top of this band
        aqi_value = matched.high_aqi
    else:
        aqi_value = (aqi_range / conc_range) * (
            concentration - matched.low_conc
        ) + matched.low_aqi

    return AQIResult(
        value=round_half_away_from_zero(aqi_value),
        category=matched.category,
        pollutant=pollutant,
        color=matched.color,
        concentration=concentration,
    )


# =============================================================================
# Data Validation
# =============================================================================

WIDE_COLUMNS = {"pm25"}
LONG_COLUMNS = {"measurand", "value", "units"}


def validate_data(df: pd.DataFrame) -> str:
    """
    Check that a DataFrame can be used for AQI calculation.

    Args:
        df: Input DataFrame

    Returns:
        "wide" if the frame has a pm25 column, "long" if it has
        measurand/value/units columns

    Raises:
        ValueError: If the frame has neither shape
    """
    columns = set(df.columns)

    if WIDE_COLUMNS <= columns:
        return "wide"
    if LONG_COLUMNS <= columns:
        return "long"

    raise ValueError(
        f"DataFrame missing required columns for AQI calculation. "
        f"Expected {sorted(WIDE_COLUMNS)} (wide) or {sorted(LONG_COLUMNS)} (long), "
        f"got {sorted(columns)}."
    )


def get_available_pollutants(df: pd.DataFrame) -> set[str]:
    """
    Get the set of standardised pollutants available in long-format data.

    Args:
        df: Input DataFrame with 'measurand' column

    Returns:
        Set of standardised pollutant names
    """
    pollutants = set()
    unknown = set()

    for measurand in df["measurand"].unique():
        standard = standardise_pollutant(measurand)
        if standard:
            pollutants.add(standard)
        else:
            unknown.add(measurand)

    if unknown:
        warnings.warn(
            f"Unknown pollutants will be skipped: {unknown}",
            UserWarning,
            stacklevel=2,
        )

    return pollutants
