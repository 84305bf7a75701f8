"""
Status classification of stations from their latest readings.

Every function here is pure: the evaluation time is always passed in as
``now`` and nothing is cached or stored. Non-finite measurements are
classified as critical rather than ignored.
"""

import math
from datetime import datetime
from typing import Iterable, List, Sequence

from .models import (
    Alert,
    AnomalyFlag,
    AnomalySeverity,
    BatteryStatus,
    HealthStatus,
    Reading,
    SeverityBand,
    Station,
    StationStatus,
    Trend,
)
from .normalizer import as_utc
from .policies import DashboardHealthPolicy, HealthPolicy

# Upper-exclusive lower bounds of the water-level bands, highest band first
SEVERITY_BANDS = (
    (0.0, SeverityBand.EXCELLENT),
    (-5.0, SeverityBand.GOOD),
    (-10.0, SeverityBand.MODERATE),
    (-15.0, SeverityBand.POOR),
)

_METRIC_TITLES = {
    "battery": "Battery",
    "temperature": "Temperature",
    "water_level": "Water Level",
    "pressure": "Pressure",
}

_METRIC_UNITS = {
    "battery": "V",
    "temperature": "°C",
    "water_level": "m",
}


def _is_finite(value: float) -> bool:
    return isinstance(value, (int, float)) and math.isfinite(value)


def classify_severity(water_level: float) -> SeverityBand:
    """
    Place a water level (m, relative to ground) in its severity band.

    excellent > 0 >= good > -5 >= moderate > -10 >= poor > -15 >= critical
    """
    if not _is_finite(water_level):
        return SeverityBand.CRITICAL
    for lower_bound, band in SEVERITY_BANDS:
        if water_level > lower_bound:
            return band
    return SeverityBand.CRITICAL


def is_stale(reading: Reading, now: datetime, policy: HealthPolicy) -> bool:
    # Naive datetimes are UTC, as in parse_timestamp
    return (as_utc(now) - as_utc(reading.timestamp)) > policy.offline_after


def classify_health(
    reading: Reading, now: datetime, policy: HealthPolicy = DashboardHealthPolicy
) -> HealthStatus:
    """Composite health of a station from its latest reading."""
    if is_stale(reading, now, policy):
        return HealthStatus.OFFLINE

    level = reading.water_level_m
    battery = reading.battery_v
    if not (_is_finite(level) and _is_finite(battery)):
        return HealthStatus.CRITICAL

    if (
        level < policy.health_critical_water_level
        or battery < policy.health_critical_battery
    ):
        return HealthStatus.CRITICAL
    if (
        level < policy.health_warning_water_level
        or battery < policy.health_warning_battery
    ):
        return HealthStatus.WARNING
    return HealthStatus.NORMAL


def classify_trend(readings: Sequence[Reading], deadband: float = 0.1) -> Trend:
    """
    Direction of the latest water-level change.

    Readings must be ordered oldest first; only the last two are compared.
    """
    if len(readings) < 2:
        return Trend.STABLE

    delta = readings[-1].water_level_m - readings[-2].water_level_m
    if not _is_finite(delta):
        return Trend.STABLE
    if delta > deadband:
        return Trend.RISING
    if delta < -deadband:
        return Trend.FALLING
    return Trend.STABLE


def classify_battery(
    battery: float, policy: HealthPolicy = DashboardHealthPolicy
) -> BatteryStatus:
    if not _is_finite(battery) or battery < policy.anomaly_critical_battery:
        return BatteryStatus.CRITICAL
    if battery < policy.anomaly_low_battery:
        return BatteryStatus.WARNING
    return BatteryStatus.GOOD


def _battery_flags(battery: float, policy: HealthPolicy) -> List[AnomalyFlag]:
    if battery < policy.anomaly_critical_battery:
        return [
            AnomalyFlag(
                "battery",
                "Critical Battery",
                AnomalySeverity.CRITICAL,
                battery,
                policy.anomaly_critical_battery,
            )
        ]
    if battery < policy.anomaly_low_battery:
        return [
            AnomalyFlag(
                "battery",
                "Low Battery",
                AnomalySeverity.MEDIUM,
                battery,
                policy.anomaly_low_battery,
            )
        ]
    return []


def _temperature_flags(temperature: float, policy: HealthPolicy) -> List[AnomalyFlag]:
    extreme = policy.anomaly_temperature_extreme
    if extreme is not None:
        if temperature > extreme:
            return [
                AnomalyFlag(
                    "temperature",
                    "Extreme Temperature",
                    AnomalySeverity.CRITICAL,
                    temperature,
                    extreme,
                )
            ]
        if temperature < policy.anomaly_temperature_min:
            return [
                AnomalyFlag(
                    "temperature",
                    "Extreme Temperature",
                    AnomalySeverity.CRITICAL,
                    temperature,
                    policy.anomaly_temperature_min,
                )
            ]
    elif temperature < policy.anomaly_temperature_min:
        return [
            AnomalyFlag(
                "temperature",
                "Low Temperature",
                AnomalySeverity.MEDIUM,
                temperature,
                policy.anomaly_temperature_min,
            )
        ]

    if temperature > policy.anomaly_temperature_max:
        return [
            AnomalyFlag(
                "temperature",
                "High Temperature",
                AnomalySeverity.MEDIUM,
                temperature,
                policy.anomaly_temperature_max,
            )
        ]
    return []


def _water_level_flags(level: float, policy: HealthPolicy) -> List[AnomalyFlag]:
    critical = policy.anomaly_critical_water_level
    if critical is not None and level < critical:
        return [
            AnomalyFlag(
                "water_level",
                "Critical Water Level",
                AnomalySeverity.CRITICAL,
                level,
                critical,
            )
        ]
    low = policy.anomaly_low_water_level
    if low is not None and level < low:
        return [
            AnomalyFlag(
                "water_level", "Low Water Level", AnomalySeverity.HIGH, level, low
            )
        ]
    return []


def _pressure_flags(reading: Reading, policy: HealthPolicy) -> List[AnomalyFlag]:
    # Only barometric readings can be compared against standard atmosphere
    if policy.anomaly_pressure_delta is None or reading.pressure_unit != "hPa":
        return []
    deviation = abs(reading.pressure - policy.standard_pressure)
    if deviation > policy.anomaly_pressure_delta:
        return [
            AnomalyFlag(
                "pressure",
                "Extreme Pressure",
                AnomalySeverity.CRITICAL,
                reading.pressure,
                policy.anomaly_pressure_delta,
            )
        ]
    return []


def detect_anomalies(
    reading: Reading, policy: HealthPolicy = DashboardHealthPolicy
) -> List[AnomalyFlag]:
    """
    Evaluate every anomaly rule against a reading.

    Rules are independent and their flags accumulate, so one reading can
    carry a battery, a temperature, a water-level and a pressure flag at
    once.
    """
    flags: List[AnomalyFlag] = []
    checks = (
        ("battery", reading.battery_v, _battery_flags),
        ("temperature", reading.temperature_c, _temperature_flags),
        ("water_level", reading.water_level_m, _water_level_flags),
    )
    for metric, value, check in checks:
        if not _is_finite(value):
            flags.append(_invalid_flag(metric, value))
        else:
            flags.extend(check(value, policy))

    if not _is_finite(reading.pressure):
        flags.append(_invalid_flag("pressure", reading.pressure))
    else:
        flags.extend(_pressure_flags(reading, policy))
    return flags


def _invalid_flag(metric: str, value: float) -> AnomalyFlag:
    return AnomalyFlag(
        metric,
        f"Invalid {_METRIC_TITLES[metric]} Reading",
        AnomalySeverity.CRITICAL,
        value,
    )


def anomaly_severity(flags: Iterable[AnomalyFlag]) -> AnomalySeverity:
    """Highest severity among the flags, LOW when there are none."""
    return max(
        (flag.severity for flag in flags),
        key=lambda severity: severity.rank,
        default=AnomalySeverity.LOW,
    )


def classify(
    station: Station, now: datetime, policy: HealthPolicy = DashboardHealthPolicy
) -> StationStatus:
    """
    Derive the status of a station at time ``now``.

    Args:
        station: Station with readings ordered oldest first
        now: Evaluation time (timezone-aware)
        policy: Threshold policy for health, battery and anomaly rules

    Returns:
        StationStatus; a station without readings is reported critical and
        offline
    """
    latest = station.latest
    if latest is None:
        return StationStatus(
            station_id=station.id,
            severity=SeverityBand.CRITICAL,
            health=HealthStatus.OFFLINE,
            trend=Trend.STABLE,
            anomaly_severity=AnomalySeverity.CRITICAL,
            battery_status=BatteryStatus.CRITICAL,
        )

    flags = detect_anomalies(latest, policy)
    return StationStatus(
        station_id=station.id,
        severity=classify_severity(latest.water_level_m),
        health=classify_health(latest, now, policy),
        trend=classify_trend(station.readings, policy.trend_deadband),
        anomalies=tuple(flags),
        anomaly_severity=anomaly_severity(flags),
        battery_status=classify_battery(latest.battery_v, policy),
    )


def _alert_message(flag: AnomalyFlag) -> str:
    unit = _METRIC_UNITS.get(flag.metric, "")
    return f"{flag.label}: {flag.value:g}{unit}"


def generate_alerts(
    stations: Iterable[Station], policy: HealthPolicy = DashboardHealthPolicy
) -> List[Alert]:
    """
    Turn the anomaly flags of each station's latest reading into alerts.

    Alerts carry the timestamp of the reading that raised them and are
    ordered newest first.
    """
    alerts: List[Alert] = []
    for station in stations:
        latest = station.latest
        if latest is None:
            continue
        for flag in detect_anomalies(latest, policy):
            alerts.append(
                Alert(
                    station_id=station.id,
                    station_name=station.name,
                    metric=flag.metric,
                    severity=flag.severity,
                    message=_alert_message(flag),
                    timestamp=latest.timestamp,
                    value=flag.value,
                    threshold=flag.threshold,
                )
            )
    alerts.sort(key=lambda alert: as_utc(alert.timestamp), reverse=True)
    return alerts
