"""
DataFrame export of stations and readings.

pandas and polars are optional; each is imported only when requested.
"""

from dataclasses import asdict
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from .classifier import classify
from .models import Station
from .policies import DashboardHealthPolicy, HealthPolicy


def station_rows(
    stations: Iterable[Station],
    now: Optional[datetime] = None,
    policy: HealthPolicy = DashboardHealthPolicy,
) -> List[Dict[str, Any]]:
    """
    One flat row per station with its location and latest reading.

    Status columns are included when ``now`` is given.
    """
    rows = []
    for station in stations:
        latest = station.latest
        row: Dict[str, Any] = {"station_id": station.id, "name": station.name}
        row.update(asdict(station.location))
        row.update(
            {
                "timestamp": latest.timestamp if latest else None,
                "water_level_m": latest.water_level_m if latest else None,
                "battery_v": latest.battery_v if latest else None,
                "temperature_c": latest.temperature_c if latest else None,
                "pressure": latest.pressure if latest else None,
                "n_readings": len(station.readings),
            }
        )
        if now is not None:
            status = classify(station, now, policy)
            row.update(
                {
                    "severity": status.severity.value,
                    "health": status.health.value,
                    "trend": status.trend.value,
                    "anomalies": ", ".join(status.anomaly_reasons),
                }
            )
        rows.append(row)
    return rows


def reading_rows(stations: Iterable[Station]) -> List[Dict[str, Any]]:
    """One flat row per reading, oldest first within each station."""
    return [asdict(reading) for station in stations for reading in station.readings]


def _to_dataframe(rows: List[Dict[str, Any]], library: str) -> Any:
    if library.lower() == "pandas":
        try:
            import pandas as pd
        except ImportError:
            raise ImportError(
                "pandas is required for DataFrame conversion. Install with: pip install pandas"
            ) from None
        return pd.DataFrame(rows)

    elif library.lower() == "polars":
        try:
            import polars as pl
        except ImportError:
            raise ImportError(
                "polars is required for DataFrame conversion. Install with: pip install polars"
            ) from None
        return pl.DataFrame(rows)

    else:
        raise ValueError(
            f"Unsupported library: {library}. Choose 'pandas' or 'polars'."
        )


def stations_to_dataframe(
    stations: Iterable[Station],
    now: Optional[datetime] = None,
    policy: HealthPolicy = DashboardHealthPolicy,
    library: str = "pandas",
) -> Any:
    """Convert stations to a pandas or polars DataFrame, one row per station."""
    return _to_dataframe(station_rows(stations, now, policy), library)


def readings_to_dataframe(stations: Iterable[Station], library: str = "pandas") -> Any:
    """Convert every reading of the stations to a pandas or polars DataFrame."""
    return _to_dataframe(reading_rows(stations), library)
