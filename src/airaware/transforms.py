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
Composable DataFrame transformation functions.

This module provides small, pure functions that transform DataFrames in
predictable ways. Functions can be composed together using `pipe()` or
`compose()` to build reading-preparation pipelines.

All transformer functions follow the pattern:
    - Take configuration as arguments
    - Return a function that transforms a DataFrame
    - Are pure (no side effects)
    - Are composable

Example:
    >>> prepare = compose(
    ...     rename_columns({"PM2.5": "pm25"}),
    ...     add_column("source", "sensor-42"),
    ...     select_columns("site_code", "date_time", "pm25")
    ... )
    >>> df_ready = prepare(df_raw)
"""

from functools import reduce
from typing import Any, Callable

import pandas as pd

from .types import Transformer


def pipe(df: pd.DataFrame, *functions: Transformer) -> pd.DataFrame:
    """
    Apply a series of transformation functions to a DataFrame in sequence.

    Args:
        df: Input DataFrame
        *functions: Variable number of transformer functions to apply

    Returns:
        pd.DataFrame: Transformed DataFrame after all functions applied

    Example:
        >>> result = pipe(
        ...     df,
        ...     rename_columns({"site": "site_code"}),
        ...     add_column("provider", "PurpleAir"),
        ... )
    """
    return reduce(lambda data, func: func(data), functions, df)


def compose(*functions: Transformer) -> Transformer:
    """
    Compose multiple transformer functions into a single function.

    Args:
        *functions: Variable number of transformer functions to compose

    Returns:
        Transformer: A new function that applies all transformations
    """

    def composed(df: pd.DataFrame) -> pd.DataFrame:
        return pipe(df, *functions)

    return composed


def rename_columns(mapping: dict[str, str]) -> Transformer:
    """
    Return a function that renames DataFrame columns.

    Args:
        mapping: Dictionary mapping old column names to new column names

    Returns:
        Transformer: Function that renames columns according to mapping
    """

    def transform(df: pd.DataFrame) -> pd.DataFrame:
        return df.rename(columns=mapping)

    return transform


def add_column(name: str, value: Any | Callable[[pd.DataFrame], Any]) -> Transformer:
    """
    Return a function that adds a new column to a DataFrame.

    The value can be either:
    - A static value (string, number, etc.) applied to all rows
    - A callable that takes the DataFrame and returns a value or Series

    Args:
        name: Name of the new column
        value: Static value or callable that generates the column values

    Returns:
        Transformer: Function that adds the specified column

    Example:
        >>> transform = add_column("pm10", lambda df: df["pm10"].fillna(0))
    """

    def transform(df: pd.DataFrame) -> pd.DataFrame:
        if callable(value):
            return df.assign(**{name: value(df)})
        else:
            return df.assign(**{name: value})

    return transform


def filter_rows(predicate: Callable[[pd.DataFrame], pd.Series]) -> Transformer:
    """
    Return a function that keeps only the rows matching a predicate.

    Args:
        predicate: Function returning a boolean Series for the DataFrame

    Returns:
        Transformer: Function that filters rows
    """

    def transform(df: pd.DataFrame) -> pd.DataFrame:
        return df[predicate(df)]

    return transform


def select_columns(*columns: str) -> Transformer:
    """
    Return a function that selects only specified columns from a DataFrame.

    Only selects columns that exist in the DataFrame - silently ignores
    columns that don't exist.

    Args:
        *columns: Variable number of column names to select

    Returns:
        Transformer: Function that selects the specified columns
    """

    def transform(df: pd.DataFrame) -> pd.DataFrame:
        cols_to_select = [col for col in columns if col in df.columns]
        return df[cols_to_select]

    return transform


def pivot_measurands(
    id_vars: list[str],
    var_name: str = "measurand",
    value_name: str = "value",
) -> Transformer:
    """
    Return a function that pivots long data to wide format.

    Each distinct measurand becomes a column. Where one id_vars group has
    several values for the same measurand, the first one is kept; no
    averaging is done.

    Args:
        id_vars: Columns identifying one reading (e.g. site_code, date_time)
        var_name: Name of the variable column (default: "measurand")
        value_name: Name of the value column (default: "value")

    Returns:
        Transformer: Function that pivots the DataFrame from long to wide format

    Example:
        >>> to_wide = compose(
        ...     pivot_measurands(id_vars=["site_code", "date_time"]),
        ...     rename_columns({"PM2.5": "pm25", "PM10": "pm10"}),
        ... )
        >>> df_wide = to_wide(df_long)
    """

    def transform(df: pd.DataFrame) -> pd.DataFrame:
        keys = [col for col in id_vars if col in df.columns]
        if df.empty:
            return pd.DataFrame(columns=keys)

        if keys:
            wide = df.pivot_table(
                index=keys, columns=var_name, values=value_name, aggfunc="first"
            ).reset_index()
        else:
            wide = (
                df.groupby(var_name)[value_name].first().to_frame().T.reset_index(drop=True)
            )
        wide.columns.name = None
        return wide

    return transform
