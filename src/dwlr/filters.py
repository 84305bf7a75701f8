"""
Station filtering and search, as used by the dashboard station list.
"""

from typing import Callable, Dict, Iterable, List, Optional

from .classifier import classify_severity, classify_trend
from .models import SeverityBand, Station, Trend
from .policies import DashboardHealthPolicy, HealthPolicy

StationPredicate = Callable[[Station, HealthPolicy], bool]


def _latest_below(attribute: str, threshold: str) -> StationPredicate:
    def predicate(station: Station, policy: HealthPolicy) -> bool:
        latest = station.latest
        return latest is not None and getattr(latest, attribute) < getattr(policy, threshold)

    return predicate


def _high_temperature(station: Station, policy: HealthPolicy) -> bool:
    latest = station.latest
    return latest is not None and latest.temperature_c > policy.high_temperature


def _in_band(band: SeverityBand) -> StationPredicate:
    def predicate(station: Station, policy: HealthPolicy) -> bool:
        latest = station.latest
        return latest is not None and classify_severity(latest.water_level_m) is band

    return predicate


def _recharged(station: Station, policy: HealthPolicy) -> bool:
    return classify_trend(station.readings, policy.trend_deadband) is Trend.RISING


FILTER_PRESETS: Dict[str, StationPredicate] = {
    "low_battery": _latest_below("battery_v", "health_warning_battery"),
    "high_temp": _high_temperature,
    "low_water": _latest_below("water_level_m", "low_water_level"),
    "critical": _in_band(SeverityBand.CRITICAL),
    "recharged": _recharged,
    "excellent": _in_band(SeverityBand.EXCELLENT),
}


def _matches_query(station: Station, query: str) -> bool:
    needle = query.lower()
    location = station.location
    haystack = (station.id, location.state, location.district, location.village)
    return any(needle in value.lower() for value in haystack if value)


def filter_stations(
    stations: Iterable[Station],
    state: Optional[str] = None,
    query: Optional[str] = None,
    preset: Optional[str] = None,
    policy: HealthPolicy = DashboardHealthPolicy,
) -> List[Station]:
    """
    Narrow a station list the way the dashboard filters do.

    Args:
        stations: Stations to filter; order is preserved
        state: Exact state name; None or 'all' keeps every state
        query: Case-insensitive text matched against id, state, district
            and village
        preset: One of 'all', 'low_battery', 'high_temp', 'low_water',
            'critical', 'recharged', 'excellent'
        policy: Policy providing the preset thresholds

    Returns:
        Stations matching every given criterion

    Raises:
        ValueError: If the preset is unknown
    """
    if preset not in (None, "all") and preset not in FILTER_PRESETS:
        available = ["all"] + sorted(FILTER_PRESETS)
        raise ValueError(f"Unknown filter preset '{preset}'. Available: {available}")

    result = list(stations)
    if state and state != "all":
        result = [s for s in result if s.location.state == state]
    if query:
        result = [s for s in result if _matches_query(s, query)]
    if preset and preset != "all":
        predicate = FILTER_PRESETS[preset]
        result = [s for s in result if predicate(s, policy)]
    return result


def unique_states(stations: Iterable[Station]) -> List[str]:
    """Sorted distinct states present in the station list."""
    return sorted({s.location.state for s in stations if s.location.state})
