"""
Data core for DWLR groundwater telemetry.

Normalize raw telemetry records into stations, classify station health and
compute dashboard statistics.
"""

try:
    from importlib import metadata

    __version__ = metadata.version("dwlr-telemetry")
except Exception:
    __version__ = "unknown"

from .aggregator import (
    aggregate,
    daily_water_level_series,
    mean,
    percentage_breakdown,
    period_trend,
    state_water_level_averages,
    summarize_readings,
)
from .api import (
    Snapshot,
    SnapshotPoller,
    TelemetryClient,
    build_snapshot,
    get_sensor_summary,
    get_station_snapshot,
    get_station_status,
)
from .classifier import (
    classify,
    classify_battery,
    classify_health,
    classify_severity,
    classify_trend,
    detect_anomalies,
    generate_alerts,
)
from .config import ClientConfig
from .exceptions import (
    DWLRConnectionError,
    DWLRError,
    DWLRQueryError,
    MalformedRecordError,
)
from .export import readings_to_dataframe, stations_to_dataframe
from .filters import filter_stations, unique_states
from .models import (
    Alert,
    AnomalyFlag,
    AnomalySeverity,
    BatteryStatus,
    DailyLevel,
    HealthStatus,
    Location,
    NormalizationResult,
    Reading,
    ReadingSummary,
    RecordFormat,
    SeverityBand,
    Station,
    StationStatus,
    Statistics,
    Trend,
)
from .normalizer import (
    adapt_dwlr_record,
    adapt_sensor_record,
    detect_format,
    normalize,
    normalize_records,
    parse_timestamp,
)
from .policies import (
    AnomalyDetectionPolicy,
    DashboardHealthPolicy,
    HealthPolicy,
    get_policy,
)
from .utils import format_last_update

__all__ = [
    # Normalizer
    "normalize",
    "normalize_records",
    "detect_format",
    "adapt_dwlr_record",
    "adapt_sensor_record",
    "parse_timestamp",
    # Classifier
    "classify",
    "classify_severity",
    "classify_health",
    "classify_trend",
    "classify_battery",
    "detect_anomalies",
    "generate_alerts",
    # Aggregator
    "aggregate",
    "mean",
    "percentage_breakdown",
    "period_trend",
    "daily_water_level_series",
    "state_water_level_averages",
    "summarize_readings",
    # Filters
    "filter_stations",
    "unique_states",
    # Policies
    "HealthPolicy",
    "DashboardHealthPolicy",
    "AnomalyDetectionPolicy",
    "get_policy",
    # Models
    "Alert",
    "AnomalyFlag",
    "AnomalySeverity",
    "BatteryStatus",
    "DailyLevel",
    "HealthStatus",
    "Location",
    "NormalizationResult",
    "Reading",
    "ReadingSummary",
    "RecordFormat",
    "SeverityBand",
    "Station",
    "StationStatus",
    "Statistics",
    "Trend",
    # API access
    "ClientConfig",
    "TelemetryClient",
    "Snapshot",
    "SnapshotPoller",
    "build_snapshot",
    "get_station_snapshot",
    "get_station_status",
    "get_sensor_summary",
    # Export
    "stations_to_dataframe",
    "readings_to_dataframe",
    # Utilities
    "format_last_update",
    # Exceptions
    "DWLRError",
    "DWLRConnectionError",
    "DWLRQueryError",
    "MalformedRecordError",
]
