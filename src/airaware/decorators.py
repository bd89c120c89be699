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
Decorators for storage operation logging and optional parsing.

Storage operations are logged in one shape, whichever function runs:

    Station operation: UpdateStation | StationId: 4f1c... | Started
    Reading operation: CreateReading | StationId: 4f1c... | Failed: ...

The ids are taken from the decorated function's ``station_id`` and
``reading_id`` arguments when it has them.
"""

import inspect
import logging
from functools import wraps
from typing import Any, Callable, TypeVar

F = TypeVar("F", bound=Callable)

# Arguments whose values identify the station or reading being worked on
ID_ARGUMENTS = ("station_id", "reading_id")


def _id_label(argument: str) -> str:
    # station_id -> StationId
    return "".join(part.capitalize() for part in argument.split("_"))


def _describe_ids(
    signature: inspect.Signature, args: tuple, kwargs: dict[str, Any]
) -> str:
    try:
        bound = signature.bind_partial(*args, **kwargs)
    except TypeError:
        # The call itself will fail with the same error
        return ""

    return "".join(
        f" | {_id_label(name)}: {bound.arguments[name]}"
        for name in ID_ARGUMENTS
        if bound.arguments.get(name) is not None
    )


def with_logging(
    entity: str, operation: str, logger_name: str | None = None
) -> Callable[[F], F]:
    """
    Log the start, end and failure of a storage operation.

    Start and end are logged at DEBUG, failures at ERROR with the
    traceback before the exception is re-raised.

    Args:
        entity: What the operation acts on, e.g. "Station" or "Reading"
        operation: Operation name, e.g. "CreateReading"
        logger_name: Logger to use (default: the function's module)

    Example:
        >>> @with_logging("Station", "UpdateStation")
        ... def update_station(station_id, name=None):
        ...     ...
    """

    def decorator(func: F) -> F:
        func_logger = logging.getLogger(logger_name or func.__module__)
        signature = inspect.signature(func)

        @wraps(func)
        def wrapper(*args, **kwargs):
            prefix = f"{entity} operation: {operation}" + _describe_ids(
                signature, args, kwargs
            )
            context = {"entity": entity, "operation": operation}

            func_logger.debug(f"{prefix} | Started", extra=context)
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                func_logger.error(
                    f"{prefix} | Failed: {e}",
                    extra={**context, "error_type": type(e).__name__},
                    exc_info=True,
                )
                raise
            func_logger.debug(f"{prefix} | Completed", extra=context)
            return result

        return wrapper

    return decorator


def ignore_exceptions(
    *exception_types: type[Exception], default=None
) -> Callable[[F], F]:
    """
    Return ``default`` instead of raising the given exception types.

    For parsing optional extras out of provider payloads, where a bad
    payload should not stop a reading from being stored. Ignored errors
    are logged at DEBUG on the function's module logger.
    """

    def decorator(func: F) -> F:
        func_logger = logging.getLogger(func.__module__)

        @wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except exception_types as e:
                func_logger.debug(
                    f"{func.__name__} | Ignored {type(e).__name__}: {e}",
                    extra={"error_type": type(e).__name__},
                )
                return default

        return wrapper

    return decorator
