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
Store stations, readings and derived AQI records.

Every stored reading gets exactly one AQI record, computed when the
reading is added. All functions take either a SQLite ``database_file`` or
a SQLAlchemy ``database_url``; when neither is given the
``AIRAWARE_DATABASE_URL`` environment variable is used.
"""

import json
import math
import os
import warnings
from datetime import datetime, timezone
from functools import lru_cache
from logging import getLogger
from typing import Any
from uuid import UUID, uuid4

import pandas as pd
from sqlalchemy.engine import Engine
from sqlmodel import Field, Session, SQLModel, col, create_engine, select

from .decorators import ignore_exceptions, with_logging
from .metrics import calculate
from .types import READING_COLUMNS, STATION_COLUMNS

logger = getLogger(__name__)

__all__ = [
    "Station",
    "Reading",
    "AqiRecord",
    "add_station",
    "update_station",
    "get_station",
    "get_stations",
    "add_reading",
    "get_reading",
    "get_readings",
    "get_latest_aqi",
    "extract_pm10",
]

DATABASE_URL_ENV = "AIRAWARE_DATABASE_URL"

# Keys checked, in order, for a PM10 value in a provider payload
PM10_PAYLOAD_KEYS = ("pm10", "pm_10", "pm10_atm")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Station(SQLModel, table=True):
    """
    Represents an air quality monitoring station.
    """

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    name: str
    latitude: float
    longitude: float
    provider: str | None = None
    provider_metadata: str | None = None
    active: bool = True
    created_at: datetime = Field(default_factory=_utcnow)


class Reading(SQLModel, table=True):
    """
    Represents a particulate reading reported by a station.
    """

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    station_id: UUID = Field(foreign_key="station.id", index=True)
    pm25: float
    pm10: float | None = None
    raw_payload: str | None = None
    created_at: datetime = Field(default_factory=_utcnow)


class AqiRecord(SQLModel, table=True):
    """
    Represents the AQI derived from a single reading.
    """

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    reading_id: UUID = Field(foreign_key="reading.id", unique=True)
    station_id: UUID = Field(foreign_key="station.id", index=True)
    aqi_value: int
    category: str
    pm25_aqi: int | None = None
    pm25_category: str | None = None
    pm10_aqi: int | None = None
    pm10_category: str | None = None
    computed_at: datetime = Field(default_factory=_utcnow)


# =============================================================================
# Engine and validation helpers
# =============================================================================


# Engines (and their pools) are kept for this many most recently used URLs
ENGINE_CACHE_SIZE = 8


@lru_cache(maxsize=ENGINE_CACHE_SIZE)
def _engine_for(engine_url: str) -> Engine:
    """Create the engine for a URL, and its tables, once per URL."""
    engine = create_engine(engine_url, echo=False)
    SQLModel.metadata.create_all(engine)
    return engine


def _get_engine(database_file: str | None, database_url: str | None) -> Engine:
    if database_file is not None and database_url is not None:
        raise ValueError("Provide only one of database_file or database_url")
    if database_url is not None:
        engine_url = database_url
    elif database_file is not None:
        engine_url = f"sqlite:///{database_file}"
    else:
        engine_url = os.getenv(DATABASE_URL_ENV)
        if not engine_url:
            raise ValueError(
                "One of database_file or database_url must be provided, "
                f"or set {DATABASE_URL_ENV}"
            )
    return _engine_for(engine_url)


def _as_uuid(value: UUID | str) -> UUID:
    if isinstance(value, UUID):
        return value
    return UUID(str(value))


def _validate_concentration(name: str, value: Any) -> float:
    try:
        concentration = float(value)
    except (TypeError, ValueError):
        raise ValueError(f"{name} must be a number, got {value!r}")
    if not math.isfinite(concentration) or concentration < 0:
        raise ValueError(
            f"{name} must be a finite, non-negative concentration, got {value!r}"
        )
    return concentration


def _validate_coordinates(latitude: float | None, longitude: float | None) -> None:
    if latitude is not None and not -90 <= latitude <= 90:
        raise ValueError(f"latitude must be between -90 and 90, got {latitude}")
    if longitude is not None and not -180 <= longitude <= 180:
        raise ValueError(f"longitude must be between -180 and 180, got {longitude}")


@ignore_exceptions(json.JSONDecodeError, TypeError, AttributeError, default=None)
def extract_pm10(raw_payload: str) -> float | None:
    """
    Pull a PM10 concentration out of a provider's JSON payload.

    Looks for a numeric value under ``pm10``, ``pm_10`` or ``pm10_atm``,
    in that order. Non-numeric, negative or non-finite values are skipped.
    Payloads that are not JSON objects yield None.

    Example:
        >>> extract_pm10('{"pm2.5_atm": 8.1, "pm10_atm": 19.4}')
        19.4
    """
    payload = json.loads(raw_payload)
    for key in PM10_PAYLOAD_KEYS:
        value = payload.get(key)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            continue
        if math.isfinite(value) and value >= 0:
            return float(value)
    return None


# =============================================================================
# Stations
# =============================================================================


@with_logging("Station", "CreateStation")
def add_station(
    name: str,
    latitude: float,
    longitude: float,
    provider: str | None = None,
    provider_metadata: str | None = None,
    database_file: str | None = None,
    database_url: str | None = None,
) -> Station:
    """
    Store a new monitoring station.

    A station with the same name as an existing one is still stored, with
    a warning.

    Raises:
        ValueError: If the coordinates are out of range
    """
    _validate_coordinates(latitude, longitude)
    engine = _get_engine(database_file, database_url)

    with Session(engine, expire_on_commit=False) as session:
        existing = session.exec(select(Station).where(Station.name == name)).first()
        if existing:
            warnings.warn(f"Duplicate station name {name} found")

        station = Station(
            name=name,
            latitude=latitude,
            longitude=longitude,
            provider=provider,
            provider_metadata=provider_metadata,
        )
        session.add(station)
        session.commit()

    logger.info(f"Station operation: CreateStation | StationId: {station.id} | {name}")
    return station


@with_logging("Station", "UpdateStation")
def update_station(
    station_id: UUID | str,
    name: str | None = None,
    latitude: float | None = None,
    longitude: float | None = None,
    provider: str | None = None,
    provider_metadata: str | None = None,
    active: bool | None = None,
    database_file: str | None = None,
    database_url: str | None = None,
) -> Station:
    """
    Update a station in place. Only arguments that are not None are applied.

    Raises:
        ValueError: If the station does not exist or coordinates are out of range
    """
    station_id = _as_uuid(station_id)
    _validate_coordinates(latitude, longitude)
    engine = _get_engine(database_file, database_url)

    changes = {
        "name": name,
        "latitude": latitude,
        "longitude": longitude,
        "provider": provider,
        "provider_metadata": provider_metadata,
        "active": active,
    }

    with Session(engine, expire_on_commit=False) as session:
        station = session.get(Station, station_id)
        if station is None:
            logger.warning(f"UpdateStation | Station not found: {station_id}")
            raise ValueError(f"Station '{station_id}' not found")

        for field, value in changes.items():
            if value is not None:
                setattr(station, field, value)

        session.add(station)
        session.commit()

    logger.info(
        f"Station operation: UpdateStation | StationId: {station_id} | "
        f"Updated {sorted(k for k, v in changes.items() if v is not None)}"
    )
    return station


def get_station(
    station_id: UUID | str,
    database_file: str | None = None,
    database_url: str | None = None,
) -> Station | None:
    """Return a station by id, or None if it does not exist."""
    station_id = _as_uuid(station_id)
    engine = _get_engine(database_file, database_url)

    with Session(engine) as session:
        station = session.get(Station, station_id)

    if station is None:
        logger.warning(f"GetStationById | Station not found: {station_id}")
    return station


def get_stations(
    active: bool | None = None,
    database_file: str | None = None,
    database_url: str | None = None,
) -> pd.DataFrame:
    """
    Returns metadata for all stored stations, oldest first.

    Args:
        active: If given, only stations with this active flag are returned
    """
    engine = _get_engine(database_file, database_url)

    statement = select(Station).order_by(col(Station.created_at))
    if active is not None:
        statement = statement.where(Station.active == active)

    with Session(engine) as session:
        stations = session.exec(statement).all()

    logger.info(f"Station operation: GetAllStations | Retrieved {len(stations)} stations")
    return pd.DataFrame(
        [station.model_dump() for station in stations], columns=STATION_COLUMNS
    )


# =============================================================================
# Readings
# =============================================================================


@with_logging("Reading", "CreateReading")
def add_reading(
    station_id: UUID | str,
    pm25: float,
    pm10: float | None = None,
    raw_payload: str | None = None,
    created_at: datetime | None = None,
    database_file: str | None = None,
    database_url: str | None = None,
) -> tuple[Reading, AqiRecord]:
    """
    Store a reading and the AQI record derived from it.

    When ``pm10`` is not given it is looked up in ``raw_payload`` (see
    :func:`extract_pm10`). The reading and its AQI record are written in one
    transaction, so a reading is never stored without its record. If a
    record for the reading already exists it is returned rather than
    duplicated.

    Args:
        station_id: Station the reading belongs to
        pm25: PM2.5 concentration in µg/m³
        pm10: Optional PM10 concentration in µg/m³
        raw_payload: Optional provider payload, stored verbatim
        created_at: Reading timestamp (default: now). A naive timestamp
            is taken to be UTC

    Returns:
        Tuple of (reading, aqi_record)

    Raises:
        ValueError: If the station does not exist or a concentration is
            negative, non-finite or not a number
    """
    station_id = _as_uuid(station_id)
    pm25 = _validate_concentration("pm25", pm25)
    if created_at is None:
        created_at = _utcnow()
    elif created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=timezone.utc)

    if pm10 is None and raw_payload:
        pm10 = extract_pm10(raw_payload)
        if pm10 is not None:
            logger.info(
                f"Reading operation: CreateReading | StationId: {station_id} | "
                f"Extracted PM10 from payload: {pm10}"
            )
    if pm10 is not None:
        pm10 = _validate_concentration("pm10", pm10)

    logger.info(
        f"Reading operation: CreateReading | StationId: {station_id} | "
        f"PM2.5: {pm25}, PM10: {pm10}"
    )

    engine = _get_engine(database_file, database_url)

    with Session(engine, expire_on_commit=False) as session:
        if session.get(Station, station_id) is None:
            logger.warning(f"CreateReading | Station not found: {station_id}")
            raise ValueError(f"Station '{station_id}' not found")

        reading = Reading(
            station_id=station_id,
            pm25=pm25,
            pm10=pm10,
            raw_payload=raw_payload,
            created_at=created_at,
        )
        session.add(reading)
        session.flush()

        final, pm25_result, pm10_result = calculate(reading)
        logger.info(
            f"AQI calculated | ReadingId: {reading.id} | "
            f"AQI: {final.value} ({final.category}) | "
            f"PM2.5: {pm25_result.value} | PM10: {pm10_result.value}"
        )

        record = session.exec(
            select(AqiRecord).where(AqiRecord.reading_id == reading.id)
        ).first()
        if record is None:
            record = AqiRecord(
                reading_id=reading.id,
                station_id=station_id,
                aqi_value=final.value,
                category=final.category,
                pm25_aqi=pm25_result.value,
                pm25_category=pm25_result.category,
                pm10_aqi=pm10_result.value,
                pm10_category=pm10_result.category,
            )
            session.add(record)

        session.commit()

    logger.info(
        f"Reading operation: CreateReading | ReadingId: {reading.id} | "
        f"StationId: {station_id} | Reading and AQI record saved successfully"
    )
    return reading, record


def get_reading(
    reading_id: UUID | str,
    database_file: str | None = None,
    database_url: str | None = None,
) -> Reading | None:
    """Return a reading by id, or None if it does not exist."""
    reading_id = _as_uuid(reading_id)
    engine = _get_engine(database_file, database_url)

    with Session(engine) as session:
        reading = session.get(Reading, reading_id)

    if reading is None:
        logger.warning(f"GetReadingById | Reading not found: {reading_id}")
    return reading


def get_readings(
    station_id: UUID | str | None = None,
    database_file: str | None = None,
    database_url: str | None = None,
) -> pd.DataFrame:
    """
    Returns stored readings, oldest first.

    The result has ``pm25`` and ``pm10`` columns, so it can be passed
    straight to :func:`airaware.metrics.aqi_readings`.

    Args:
        station_id: If given, only readings for this station are returned
    """
    engine = _get_engine(database_file, database_url)

    statement = select(Reading).order_by(col(Reading.created_at))
    if station_id is not None:
        statement = statement.where(Reading.station_id == _as_uuid(station_id))

    with Session(engine) as session:
        readings = session.exec(statement).all()

    logger.info(f"Reading operation: GetAllReadings | Retrieved {len(readings)} readings")
    return pd.DataFrame(
        [reading.model_dump() for reading in readings], columns=READING_COLUMNS
    )

@with_logging("Station", "GetLatestAqi")
def get_latest_aqi(
    station_id: UUID | str,
    database_file: str | None = None,
    database_url: str | None = None,
) -> dict[str, Any] | None:
    """
    Return the most recently computed AQI for a station, with its reading.

    Returns:
        dict with keys id, aqi_value, category, computed_at, reading_id,
        pm25, pm10 and reading_created_at; or None if the station has no
        AQI records yet

    Raises:
        ValueError: If the station does not exist
    """
    station_id = _as_uuid(station_id)
    engine = _get_engine(database_file, database_url)

    with Session(engine) as session:
        if session.get(Station, station_id) is None:
            logger.warning(f"GetLatestAqi | Station not found: {station_id}")
            raise ValueError(f"Station '{station_id}' not found")

        statement = (
            select(AqiRecord, Reading)
            .join(Reading, col(AqiRecord.reading_id) == col(Reading.id))
            .where(AqiRecord.station_id == station_id)
            .order_by(col(AqiRecord.computed_at).desc())
        )
        latest = session.exec(statement).first()

    if latest is None:
        logger.warning(f"GetLatestAqi | No AQI records found for station: {station_id}")
        return None

    record, reading = latest
    logger.info(
        f"Station operation: GetLatestAqi | StationId: {station_id} | "
        f"Latest AQI: {record.aqi_value} ({record.category})"
    )
    return {
        "id": record.id,
        "aqi_value": record.aqi_value,
        "category": record.category,
        "computed_at": record.computed_at,
        "reading_id": reading.id,
        "pm25": reading.pm25,
        "pm10": reading.pm10,
        "reading_created_at": reading.created_at,
    }
