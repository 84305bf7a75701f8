"""
Normalization of raw telemetry records into canonical stations.

Two raw shapes are in circulation:

- DWLR records with human-readable keys ("Water Level (m)", "Date & Time",
  "Telemetry_UID", location columns, ...)
- sensor records with capitalized underscored keys (Water_Level, Battery_V,
  Date_Time, ...) and usually no station identifier or location

Each shape has its own adapter. The adapter for a batch is chosen once,
either from an explicit ``source`` tag or by ``detect_format``.
"""

import logging
from datetime import datetime, timezone
from typing import (
    Any,
    Callable,
    Dict,
    List,
    Mapping,
    Optional,
    Sequence,
    Tuple,
    Union,
)

from .exceptions import MalformedRecordError
from .models import Location, NormalizationResult, Reading, RecordFormat, Station

logger = logging.getLogger(__name__)

# Canonical reading field -> raw key
DWLR_FIELDS = {
    "station_id": "Telemetry_UID",
    "timestamp": "Date & Time",
    "water_level_m": "Water Level (m)",
    "battery_v": "Battery (V)",
    "temperature_c": "Water Temperature (°C)",
    "pressure": "Barometric Pressure (mH2O)",
    "anomaly": "Anomaly",
}

DWLR_LOCATION_FIELDS = {
    "state": "State",
    "district": "District",
    "village": "Village",
    "block": "Block",
    "tahsil": "Tahsil",
    "latitude": "Latitude",
    "longitude": "Longitude",
}

SENSOR_FIELDS = {
    "timestamp": "Date_Time",
    "water_level_m": "Water_Level",
    "battery_v": "Battery_V",
    "temperature_c": "Water_Temperature",
    "pressure": "Barometric_Pressure",
    "anomaly": "Anomaly",
}

# Sensor records rarely carry an identifier; these keys are tried in order
SENSOR_ID_FIELDS = ("Telemetry_UID", "Station_ID")

NUMERIC_FIELDS = ("water_level_m", "battery_v", "temperature_c", "pressure")

# Fallback formats for timestamps that are not ISO 8601
TIMESTAMP_FORMATS = (
    "%d-%m-%Y %H:%M:%S",
    "%d-%m-%Y %H:%M",
    "%d/%m/%Y %H:%M:%S",
    "%d/%m/%Y %H:%M",
    "%d-%m-%Y",
    "%d/%m/%Y",
)

AdaptedRecord = Tuple[Reading, Location]


def as_utc(timestamp: datetime) -> datetime:
    """Attach UTC to a naive datetime; aware values are returned unchanged."""
    if timestamp.tzinfo is None:
        return timestamp.replace(tzinfo=timezone.utc)
    return timestamp


def parse_timestamp(value: Any) -> datetime:
    """
    Parse a raw timestamp into a timezone-aware datetime.

    Accepts datetime objects, ISO 8601 strings (with or without a ``Z``
    suffix) and the day-first formats in ``TIMESTAMP_FORMATS``. Naive values
    are taken to be UTC.

    Raises:
        ValueError: If the value cannot be parsed
    """
    if isinstance(value, datetime):
        timestamp = value
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        try:
            timestamp = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            for fmt in TIMESTAMP_FORMATS:
                try:
                    timestamp = datetime.strptime(text, fmt)
                    break
                except ValueError:
                    continue
            else:
                raise ValueError(f"Unrecognized timestamp format: {value!r}") from None
    else:
        raise ValueError(f"Timestamp must be a non-empty string, got {value!r}")

    return as_utc(timestamp)


def _require_number(
    record: Mapping[str, Any], key: str, index: Optional[int]
) -> float:
    value = record.get(key)
    if value is None:
        raise MalformedRecordError(
            f"missing required field '{key}'", field=key, index=index
        )
    # bool is an int subclass but never a valid measurement
    if isinstance(value, bool):
        raise MalformedRecordError(
            f"field '{key}' is not numeric: {value!r}", field=key, index=index
        )
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            pass
    raise MalformedRecordError(
        f"field '{key}' is not numeric: {value!r}", field=key, index=index
    )


def _optional_number(value: Any) -> Optional[float]:
    if value in (None, "", "-") or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _optional_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _station_id(value: Any, key: str, index: Optional[int]) -> str:
    station_id = _optional_text(value)
    if station_id is None:
        raise MalformedRecordError(
            f"missing station identifier '{key}'", field=key, index=index
        )
    return station_id


def _require_timestamp(
    record: Mapping[str, Any], key: str, index: Optional[int]
) -> datetime:
    if record.get(key) is None:
        raise MalformedRecordError(
            f"missing required field '{key}'", field=key, index=index
        )
    try:
        return parse_timestamp(record[key])
    except ValueError as e:
        raise MalformedRecordError(str(e), field=key, index=index) from e


def _check_mapping(record: Any, index: Optional[int]) -> Mapping[str, Any]:
    if not isinstance(record, Mapping):
        raise MalformedRecordError(
            f"expected a mapping, got {type(record).__name__}", index=index
        )
    return record


def adapt_dwlr_record(
    record: Mapping[str, Any], index: Optional[int] = None
) -> AdaptedRecord:
    """
    Convert a DWLR-style record into a Reading and its station Location.

    Args:
        record: Raw record keyed by human-readable field names
        index: Position of the record in its batch, used in error messages

    Returns:
        (Reading, Location) tuple

    Raises:
        MalformedRecordError: If the identifier, timestamp or a measurement
            is missing or invalid
    """
    record = _check_mapping(record, index)
    id_key = DWLR_FIELDS["station_id"]
    station_id = _station_id(record.get(id_key), id_key, index)
    timestamp = _require_timestamp(record, DWLR_FIELDS["timestamp"], index)
    values = {
        name: _require_number(record, DWLR_FIELDS[name], index)
        for name in NUMERIC_FIELDS
    }

    reading = Reading(
        station_id=station_id,
        timestamp=timestamp,
        pressure_unit="mH2O",
        source_anomaly=_optional_text(record.get(DWLR_FIELDS["anomaly"])),
        **values,
    )
    location = Location(
        state=_optional_text(record.get(DWLR_LOCATION_FIELDS["state"])),
        district=_optional_text(record.get(DWLR_LOCATION_FIELDS["district"])),
        village=_optional_text(record.get(DWLR_LOCATION_FIELDS["village"])),
        block=_optional_text(record.get(DWLR_LOCATION_FIELDS["block"])),
        tahsil=_optional_text(record.get(DWLR_LOCATION_FIELDS["tahsil"])),
        latitude=_optional_number(record.get(DWLR_LOCATION_FIELDS["latitude"])),
        longitude=_optional_number(record.get(DWLR_LOCATION_FIELDS["longitude"])),
    )
    return reading, location


def adapt_sensor_record(
    record: Mapping[str, Any],
    station_id: Optional[str] = None,
    index: Optional[int] = None,
) -> AdaptedRecord:
    """
    Convert a sensor-style record into a Reading.

    The sensor feed reports one device, so the identifier comes from the
    record when present and from ``station_id`` otherwise. Pressure in this
    feed is barometric pressure in hPa.

    Raises:
        MalformedRecordError: If no identifier is available or a required
            field is missing or invalid
    """
    record = _check_mapping(record, index)
    raw_id = next(
        (record[key] for key in SENSOR_ID_FIELDS if _optional_text(record.get(key))),
        station_id,
    )
    resolved_id = _station_id(raw_id, SENSOR_ID_FIELDS[0], index)
    timestamp = _require_timestamp(record, SENSOR_FIELDS["timestamp"], index)
    values = {
        name: _require_number(record, SENSOR_FIELDS[name], index)
        for name in NUMERIC_FIELDS
    }

    reading = Reading(
        station_id=resolved_id,
        timestamp=timestamp,
        pressure_unit="hPa",
        source_anomaly=_optional_text(record.get(SENSOR_FIELDS["anomaly"])),
        **values,
    )
    return reading, Location()


def detect_format(records: Sequence[Any]) -> RecordFormat:
    """
    Decide which adapter a batch needs.

    The first mapping carrying a water-level key decides for the whole
    batch. Sensor records may carry a Telemetry_UID too, so the identifier
    only decides when no record has a water-level key.

    Raises:
        MalformedRecordError: If no record in the batch is recognizable
    """
    has_dwlr_id = False
    for record in records:
        if not isinstance(record, Mapping):
            continue
        if DWLR_FIELDS["water_level_m"] in record:
            return RecordFormat.DWLR
        if SENSOR_FIELDS["water_level_m"] in record:
            return RecordFormat.SENSOR
        has_dwlr_id = has_dwlr_id or DWLR_FIELDS["station_id"] in record
    if has_dwlr_id:
        return RecordFormat.DWLR
    raise MalformedRecordError("no record matches a known telemetry format")


def _get_adapter(
    record_format: RecordFormat, station_id: Optional[str]
) -> Callable[[Mapping[str, Any], Optional[int]], AdaptedRecord]:
    if record_format is RecordFormat.DWLR:
        return adapt_dwlr_record
    return lambda record, index: adapt_sensor_record(record, station_id, index)


def normalize_records(
    records: Sequence[Any],
    source: Optional[Union[RecordFormat, str]] = None,
    station_id: Optional[str] = None,
) -> NormalizationResult:
    """
    Group raw records into stations and report what was skipped.

    Args:
        records: Raw records as decoded from the telemetry feed
        source: Record format; detected from the batch when omitted
        station_id: Identifier for sensor records that carry none

    Returns:
        NormalizationResult with stations in first-seen order, each holding
        its readings sorted oldest first

    Raises:
        TypeError: If records is not a list or tuple
    """
    if not isinstance(records, (list, tuple)):
        raise TypeError(
            f"records must be a list of mappings, got {type(records).__name__}"
        )

    result = NormalizationResult()
    if not records:
        return result

    if source is not None:
        record_format = RecordFormat(source)
    else:
        try:
            record_format = detect_format(records)
        except MalformedRecordError as e:
            logger.warning(f"Skipping batch of {len(records)} records: {e}")
            result.skipped = len(records)
            result.errors.append(str(e))
            return result

    result.record_format = record_format
    adapter = _get_adapter(record_format, station_id)

    grouped: Dict[str, List[Reading]] = {}
    locations: Dict[str, Location] = {}
    for index, record in enumerate(records):
        try:
            reading, location = adapter(record, index)
        except MalformedRecordError as e:
            logger.debug(f"Skipping malformed record: {e}")
            result.skipped += 1
            result.errors.append(str(e))
            continue

        grouped.setdefault(reading.station_id, []).append(reading)
        locations.setdefault(reading.station_id, location)

    result.stations = [
        Station(id=uid, location=locations[uid], readings=tuple(readings))
        for uid, readings in grouped.items()
    ]

    logger.info(
        f"Normalized {len(records) - result.skipped} {record_format.value} records "
        f"into {len(result.stations)} stations ({result.skipped} skipped)"
    )
    return result


def normalize(
    records: Sequence[Any],
    source: Optional[Union[RecordFormat, str]] = None,
    station_id: Optional[str] = None,
) -> List[Station]:
    """Group raw records into stations, dropping malformed records."""
    return normalize_records(records, source=source, station_id=station_id).stations
