"""
Data models for DWLR (Digital Water Level Recorder) telemetry.
"""

import math
from dataclasses import asdict, dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class RecordFormat(str, Enum):
    """Shape of a raw telemetry record."""

    DWLR = "dwlr"  # "Water Level (m)", "Date & Time", "Telemetry_UID", ...
    SENSOR = "sensor"  # Water_Level, Battery_V, Date_Time, ...


class SeverityBand(str, Enum):
    """Water-level band of a station's latest reading."""

    EXCELLENT = "excellent"
    GOOD = "good"
    MODERATE = "moderate"
    POOR = "poor"
    CRITICAL = "critical"


class HealthStatus(str, Enum):
    """Composite station health combining level, battery and staleness."""

    NORMAL = "normal"
    WARNING = "warning"
    CRITICAL = "critical"
    OFFLINE = "offline"


class Trend(str, Enum):
    RISING = "rising"
    FALLING = "falling"
    STABLE = "stable"


class BatteryStatus(str, Enum):
    GOOD = "good"
    WARNING = "warning"
    CRITICAL = "critical"


class AnomalySeverity(str, Enum):
    """Severity of an anomaly flag, ordered low < medium < high < critical."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]


_SEVERITY_RANK = {
    AnomalySeverity.LOW: 0,
    AnomalySeverity.MEDIUM: 1,
    AnomalySeverity.HIGH: 2,
    AnomalySeverity.CRITICAL: 3,
}


@dataclass(frozen=True)
class Location:
    """Where a monitoring station is installed."""

    state: Optional[str] = None
    district: Optional[str] = None
    village: Optional[str] = None
    block: Optional[str] = None
    tahsil: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None


@dataclass(frozen=True)
class Reading:
    """A single telemetry reading from one station."""

    station_id: str
    timestamp: datetime
    water_level_m: float  # relative to ground level, negative = below ground
    battery_v: float
    temperature_c: float
    pressure: float
    pressure_unit: str = "mH2O"  # 'mH2O' (DWLR feed) or 'hPa' (sensor feed)
    source_anomaly: Optional[str] = None


@dataclass
class Station:
    """A monitoring station and its readings, oldest first."""

    id: str
    location: Location
    readings: Tuple[Reading, ...] = ()

    def __post_init__(self) -> None:
        for reading in self.readings:
            if reading.station_id != self.id:
                raise ValueError(
                    f"Reading for station '{reading.station_id}' "
                    f"cannot belong to station '{self.id}'"
                )
        self.readings = tuple(sorted(self.readings, key=lambda r: r.timestamp))

    @property
    def name(self) -> str:
        if self.location.village:
            return f"{self.location.village} Station"
        return f"Station {self.id}"

    @property
    def state(self) -> Optional[str]:
        return self.location.state

    @property
    def latest(self) -> Optional[Reading]:
        """Most recent reading (last element)."""
        return self.readings[-1] if self.readings else None

    @property
    def previous(self) -> Optional[Reading]:
        """Reading immediately before the latest one."""
        return self.readings[-2] if len(self.readings) > 1 else None

    @property
    def water_levels(self) -> List[float]:
        return [r.water_level_m for r in self.readings]

    @property
    def average_water_level(self) -> Optional[float]:
        levels = [v for v in self.water_levels if math.isfinite(v)]
        if not levels:
            return None
        return sum(levels) / len(levels)


@dataclass(frozen=True)
class AnomalyFlag:
    """One threshold violation found in a reading."""

    metric: str  # 'battery', 'temperature', 'water_level' or 'pressure'
    label: str
    severity: AnomalySeverity
    value: float
    threshold: Optional[float] = None


@dataclass(frozen=True)
class StationStatus:
    """Status derived from a station's latest readings. Never stored."""

    station_id: str
    severity: SeverityBand
    health: HealthStatus
    trend: Trend
    anomalies: Tuple[AnomalyFlag, ...] = ()
    anomaly_severity: AnomalySeverity = AnomalySeverity.LOW
    battery_status: BatteryStatus = BatteryStatus.GOOD

    @property
    def anomaly_reasons(self) -> List[str]:
        return [flag.label for flag in self.anomalies]

    @property
    def is_anomaly(self) -> bool:
        return len(self.anomalies) > 0


@dataclass(frozen=True)
class Alert:
    """An actionable alert raised from an anomaly flag."""

    station_id: str
    station_name: str
    metric: str
    severity: AnomalySeverity
    message: str
    timestamp: datetime
    value: Optional[float] = None
    threshold: Optional[float] = None


@dataclass
class NormalizationResult:
    """Stations built from a raw batch plus a report of skipped records."""

    stations: List[Station] = field(default_factory=list)
    skipped: int = 0
    errors: List[str] = field(default_factory=list)
    record_format: Optional[RecordFormat] = None

    @property
    def total_readings(self) -> int:
        return sum(len(s.readings) for s in self.stations)


@dataclass
class Statistics:
    """Dashboard summary over a collection of stations.

    Averages and extremes are None when there is no finite value to
    summarize; counts and percentages are zero for an empty collection.
    """

    has_data: bool
    total_stations: int
    active_stations: int
    alert_stations: int
    avg_water_level: Optional[float]
    avg_temperature: Optional[float]
    avg_battery: Optional[float]
    avg_pressure: Optional[float]
    min_water_level: Optional[float]
    max_water_level: Optional[float]
    severity_counts: Dict[str, int]
    severity_percentages: Dict[str, float]
    health_counts: Dict[str, int]
    health_percentages: Dict[str, float]
    trend_counts: Dict[str, int]
    trend_percentages: Dict[str, float]
    state_distribution: Dict[str, int]
    low_battery_count: int
    high_temperature_count: int
    data_quality: float
    recharge_potential: float
    groundwater_stress: float
    water_level_trend: float
    temperature_trend: float
    pressure_trend: float

    @classmethod
    def empty(cls) -> "Statistics":
        """Sentinel statistics for a collection with no stations."""
        return cls(
            has_data=False,
            total_stations=0,
            active_stations=0,
            alert_stations=0,
            avg_water_level=None,
            avg_temperature=None,
            avg_battery=None,
            avg_pressure=None,
            min_water_level=None,
            max_water_level=None,
            severity_counts={band.value: 0 for band in SeverityBand},
            severity_percentages={band.value: 0.0 for band in SeverityBand},
            health_counts={status.value: 0 for status in HealthStatus},
            health_percentages={status.value: 0.0 for status in HealthStatus},
            trend_counts={trend.value: 0 for trend in Trend},
            trend_percentages={trend.value: 0.0 for trend in Trend},
            state_distribution={},
            low_battery_count=0,
            high_temperature_count=0,
            data_quality=0.0,
            recharge_potential=0.0,
            groundwater_stress=0.0,
            water_level_trend=0.0,
            temperature_trend=0.0,
            pressure_trend=0.0,
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ReadingSummary:
    """Summary of one sensor feed (a single series of readings)."""

    total_readings: int
    anomalies: int
    battery_status: Optional[BatteryStatus]
    avg_temperature: Optional[float]
    avg_water_level: Optional[float]
    avg_pressure: Optional[float]
    temperature_trend: float
    pressure_trend: float
    water_level_trend: float


@dataclass(frozen=True)
class DailyLevel:
    """Mean water level over all readings taken on one day."""

    day: date
    average_level: float
    n_readings: int
