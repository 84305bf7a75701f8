"""
Shared fixtures for dwlr tests.
"""

from datetime import datetime, timedelta, timezone

import pytest

from dwlr.models import Location, Reading, Station

NOW = datetime(2025, 9, 21, 12, 0, 0, tzinfo=timezone.utc)


def dwlr_record(
    uid="DWLR-001",
    level=-2.0,
    battery=4.0,
    temperature=25.0,
    pressure=10.3,
    minutes_ago=10,
    state="Rajasthan",
    district="Jaipur",
    village="Bassi",
    **extra,
):
    """Build a raw DWLR-feed record."""
    record = {
        "S.No": 1,
        "Telemetry_UID": uid,
        "State": state,
        "District": district,
        "Tahsil": "Bassi",
        "Block": "Bassi",
        "Village": village,
        "Latitude": 26.84,
        "Longitude": 75.99,
        "Date & Time": (NOW - timedelta(minutes=minutes_ago)).isoformat(),
        "Battery (V)": battery,
        "Water Temperature (°C)": temperature,
        "Water Level (m)": level,
        "Barometric Pressure (mH2O)": pressure,
        "Anomaly": "Normal",
    }
    record.update(extra)
    return record


def sensor_record(
    level=-3.0,
    battery=3.8,
    temperature=25.0,
    pressure=1012.0,
    minutes_ago=10,
    anomaly="No",
):
    """Build a raw sensor-feed record."""
    return {
        "Battery_V": battery,
        "Water_Temperature": temperature,
        "Water_Level": level,
        "Barometric_Pressure": pressure,
        "Date_Time": (NOW - timedelta(minutes=minutes_ago)).strftime("%Y-%m-%d %H:%M:%S"),
        "Anomaly": anomaly,
    }


def make_reading(
    station_id="DWLR-001",
    level=-2.0,
    battery=4.0,
    temperature=25.0,
    pressure=10.3,
    minutes_ago=10,
    pressure_unit="mH2O",
    source_anomaly=None,
):
    return Reading(
        station_id=station_id,
        timestamp=NOW - timedelta(minutes=minutes_ago),
        water_level_m=level,
        battery_v=battery,
        temperature_c=temperature,
        pressure=pressure,
        pressure_unit=pressure_unit,
        source_anomaly=source_anomaly,
    )


def make_station(station_id="DWLR-001", levels=(-2.0,), state="Rajasthan", village="Bassi", **reading_kwargs):
    """Build a station whose readings are ten minutes apart, the last one being newest."""
    count = len(levels)
    minutes_ago = reading_kwargs.pop("minutes_ago", 10)
    readings = tuple(
        make_reading(
            station_id=station_id,
            level=level,
            minutes_ago=minutes_ago + 10 * (count - 1 - i),
            **reading_kwargs,
        )
        for i, level in enumerate(levels)
    )
    return Station(
        id=station_id,
        location=Location(state=state, district="Jaipur", village=village),
        readings=readings,
    )


@pytest.fixture
def now():
    """Fixed evaluation time."""
    return NOW


@pytest.fixture
def dwlr_records():
    """Raw DWLR batch: three recent readings for A, one stale critical reading for B."""
    return [
        dwlr_record(uid="A", level=-2.0, minutes_ago=30),
        dwlr_record(uid="A", level=-2.0, minutes_ago=20),
        dwlr_record(uid="B", level=-16.0, battery=2.8, minutes_ago=180, state="Gujarat",
                    district="Kutch", village="Bhuj"),
        dwlr_record(uid="A", level=-2.0, minutes_ago=10),
    ]
