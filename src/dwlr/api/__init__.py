"""
Access to the DWLR telemetry API.

Two feeds are available:
- the DWLR station feed: one record per station reading, with station
  location (state, district, village) and water level, battery, water
  temperature and barometric pressure (mH2O)
- the sensor feed: readings of a single device, with barometric pressure in
  hPa and the feed's own anomaly label

The client returns raw records; the convenience functions run them through
the normalizer, classifier and aggregator.
"""

from .client import TelemetryClient
from .convenience import (
    Snapshot,
    build_snapshot,
    get_sensor_summary,
    get_station_snapshot,
    get_station_status,
)
from .poller import SnapshotPoller, snapshot_source

__all__ = [
    "TelemetryClient",
    "Snapshot",
    "build_snapshot",
    "get_sensor_summary",
    "get_station_snapshot",
    "get_station_status",
    "SnapshotPoller",
    "snapshot_source",
]
