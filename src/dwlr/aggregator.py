"""
Summary statistics over collections of stations and readings.

All functions are pure. Non-finite measurements are left out of averages
and extremes, and an empty collection yields a defined "no data" result
instead of NaN.
"""

import math
from collections import Counter, defaultdict
from datetime import date, datetime
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from .classifier import classify, classify_battery, detect_anomalies
from .models import (
    DailyLevel,
    HealthStatus,
    Reading,
    ReadingSummary,
    SeverityBand,
    Station,
    Statistics,
    Trend,
)
from .normalizer import as_utc
from .policies import AnomalyDetectionPolicy, DashboardHealthPolicy, HealthPolicy

# Feed-supplied anomaly labels that mark a reading as anomalous
SOURCE_ANOMALY_LABELS = {"yes", "warning", "critical"}

UNKNOWN_STATE = "Unknown"


def _finite(values: Iterable[float]) -> List[float]:
    return [v for v in values if isinstance(v, (int, float)) and math.isfinite(v)]


def mean(values: Iterable[float]) -> Optional[float]:
    """Arithmetic mean of the finite values, None if there are none."""
    finite = _finite(values)
    if not finite:
        return None
    return sum(finite) / len(finite)


def percentage(part: int, total: int) -> float:
    """``part / total * 100`` rounded to one decimal, 0.0 for an empty total."""
    if total <= 0:
        return 0.0
    return round(part / total * 100, 1)


def percentage_breakdown(counts: Mapping[str, int]) -> Dict[str, float]:
    """
    Percentages for mutually exclusive categories, one decimal each.

    Uses largest-remainder rounding on tenths of a percent so the parts of
    a non-empty breakdown always add up to 100.
    """
    total = sum(counts.values())
    if total <= 0:
        return {key: 0.0 for key in counts}

    tenths = {key: count * 1000 // total for key, count in counts.items()}
    remainders = {key: count * 1000 % total for key, count in counts.items()}
    missing = 1000 - sum(tenths.values())
    for key in sorted(counts, key=lambda k: remainders[k], reverse=True)[:missing]:
        tenths[key] += 1
    return {key: tenths[key] / 10 for key in counts}


def period_trend(values: Sequence[float], window: int = 5) -> float:
    """
    Relative change between the last ``window`` values and the ``window``
    values before them, in percent.

    Returns 0.0 when either half is empty or the earlier average is zero.
    """
    if window <= 0:
        raise ValueError("window must be positive")
    values = list(values)
    recent = values[-window:]
    previous = values[-2 * window : -window]

    recent_avg = mean(recent)
    previous_avg = mean(previous)
    if recent_avg is None or previous_avg is None or previous_avg == 0:
        return 0.0
    return (recent_avg - previous_avg) / previous_avg * 100


def _chronological(stations: Iterable[Station]) -> List[Reading]:
    return sorted(
        (reading for station in stations for reading in station.readings),
        key=lambda r: as_utc(r.timestamp),
    )


def _is_low_battery(reading: Reading, policy: HealthPolicy) -> bool:
    battery = reading.battery_v
    return not math.isfinite(battery) or battery < policy.health_warning_battery


def aggregate(
    stations: Iterable[Station],
    now: datetime,
    policy: HealthPolicy = DashboardHealthPolicy,
) -> Statistics:
    """
    Compute dashboard statistics over the latest reading of each station.

    Args:
        stations: Stations to summarize; not modified
        now: Evaluation time used for offline detection
        policy: Threshold policy for health and battery counts

    Returns:
        Statistics; ``Statistics.empty()`` when there are no stations
    """
    stations = list(stations)
    if not stations:
        return Statistics.empty()

    total = len(stations)
    statuses = [classify(station, now, policy) for station in stations]
    latest = [s.latest for s in stations if s.latest is not None]

    severity_counts = {band.value: 0 for band in SeverityBand}
    health_counts = {status.value: 0 for status in HealthStatus}
    trend_counts = {trend.value: 0 for trend in Trend}
    for status in statuses:
        severity_counts[status.severity.value] += 1
        health_counts[status.health.value] += 1
        trend_counts[status.trend.value] += 1

    states = Counter(s.location.state or UNKNOWN_STATE for s in stations)
    levels = _finite(r.water_level_m for r in latest)
    low_battery = sum(1 for r in latest if _is_low_battery(r, policy))
    high_temperature = sum(
        1 for r in latest if math.isfinite(r.temperature_c)
        and r.temperature_c > policy.high_temperature
    )

    series = _chronological(stations)

    return Statistics(
        has_data=True,
        total_stations=total,
        active_stations=total - health_counts[HealthStatus.OFFLINE.value],
        alert_stations=health_counts[HealthStatus.WARNING.value]
        + health_counts[HealthStatus.CRITICAL.value],
        avg_water_level=mean(r.water_level_m for r in latest),
        avg_temperature=mean(r.temperature_c for r in latest),
        avg_battery=mean(r.battery_v for r in latest),
        avg_pressure=mean(r.pressure for r in latest),
        min_water_level=min(levels) if levels else None,
        max_water_level=max(levels) if levels else None,
        severity_counts=severity_counts,
        severity_percentages=percentage_breakdown(severity_counts),
        health_counts=health_counts,
        health_percentages=percentage_breakdown(health_counts),
        trend_counts=trend_counts,
        trend_percentages=percentage_breakdown(trend_counts),
        state_distribution=dict(sorted(states.items())),
        low_battery_count=low_battery,
        high_temperature_count=high_temperature,
        data_quality=percentage(total - low_battery, total),
        recharge_potential=percentage(trend_counts[Trend.RISING.value], total),
        groundwater_stress=percentage(
            severity_counts[SeverityBand.CRITICAL.value], total
        ),
        water_level_trend=period_trend([r.water_level_m for r in series]),
        temperature_trend=period_trend([r.temperature_c for r in series]),
        pressure_trend=period_trend([r.pressure for r in series]),
    )


def daily_water_level_series(stations: Iterable[Station]) -> List[DailyLevel]:
    """Average water level per calendar day (UTC) over all readings."""
    by_day: Dict[date, List[float]] = defaultdict(list)
    for reading in _chronological(stations):
        if math.isfinite(reading.water_level_m):
            by_day[reading.timestamp.date()].append(reading.water_level_m)

    return [
        DailyLevel(day=day, average_level=sum(levels) / len(levels), n_readings=len(levels))
        for day, levels in sorted(by_day.items())
    ]


def state_water_level_averages(stations: Iterable[Station]) -> Dict[str, float]:
    """Mean latest water level per state, ordered by state name."""
    by_state: Dict[str, List[float]] = defaultdict(list)
    for station in stations:
        latest = station.latest
        if latest is None or not math.isfinite(latest.water_level_m):
            continue
        by_state[station.location.state or UNKNOWN_STATE].append(latest.water_level_m)

    return {
        state: sum(levels) / len(levels) for state, levels in sorted(by_state.items())
    }


def _is_anomalous(reading: Reading, policy: HealthPolicy) -> bool:
    label = (reading.source_anomaly or "").lower()
    return label in SOURCE_ANOMALY_LABELS or bool(detect_anomalies(reading, policy))


def summarize_readings(
    readings: Iterable[Reading], policy: HealthPolicy = AnomalyDetectionPolicy
) -> ReadingSummary:
    """
    Summarize a single series of readings, e.g. one sensor feed.

    Trends compare the last five readings with the five before them.
    """
    series = sorted(readings, key=lambda r: as_utc(r.timestamp))
    if not series:
        return ReadingSummary(
            total_readings=0,
            anomalies=0,
            battery_status=None,
            avg_temperature=None,
            avg_water_level=None,
            avg_pressure=None,
            temperature_trend=0.0,
            pressure_trend=0.0,
            water_level_trend=0.0,
        )

    return ReadingSummary(
        total_readings=len(series),
        anomalies=sum(1 for r in series if _is_anomalous(r, policy)),
        battery_status=classify_battery(series[-1].battery_v, policy),
        avg_temperature=mean(r.temperature_c for r in series),
        avg_water_level=mean(r.water_level_m for r in series),
        avg_pressure=mean(r.pressure for r in series),
        temperature_trend=period_trend([r.temperature_c for r in series]),
        pressure_trend=period_trend([r.pressure for r in series]),
        water_level_trend=period_trend([r.water_level_m for r in series]),
    )
