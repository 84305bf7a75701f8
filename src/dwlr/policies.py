"""
Named threshold policies for station classification.

The dashboard and the anomaly detector were tuned independently and use
different thresholds for the same metrics. Both are kept as explicit,
named policies; callers pick the one matching their use case.
"""

from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

STANDARD_ATMOSPHERE_HPA = 1013.25


@dataclass(frozen=True)
class HealthPolicy:
    """Thresholds used to derive health, battery status and anomaly flags.

    All ``*_water_level`` and ``*_battery`` thresholds are strict lower
    bounds: a value below the threshold triggers the condition.
    """

    name: str

    # Composite health
    health_critical_water_level: float
    health_warning_water_level: float
    health_critical_battery: float
    health_warning_battery: float
    offline_after: timedelta = timedelta(hours=2)

    # Trend deadband in meters
    trend_deadband: float = 0.1

    # Anomaly flags
    anomaly_critical_battery: float = 3.0
    anomaly_low_battery: float = 3.2
    anomaly_temperature_min: float = 10.0
    anomaly_temperature_max: float = 35.0
    anomaly_temperature_extreme: Optional[float] = None
    anomaly_critical_water_level: Optional[float] = None
    anomaly_low_water_level: Optional[float] = None
    anomaly_pressure_delta: Optional[float] = None
    standard_pressure: float = STANDARD_ATMOSPHERE_HPA

    # Dashboard filter presets
    high_temperature: float = 30.0
    low_water_level: float = -10.0


DashboardHealthPolicy = HealthPolicy(
    name="dashboard",
    health_critical_water_level=-6.0,
    health_warning_water_level=-4.0,
    health_critical_battery=3.0,
    health_warning_battery=3.5,
    anomaly_critical_battery=3.0,
    anomaly_low_battery=3.2,
    anomaly_temperature_min=10.0,
    anomaly_temperature_max=35.0,
    anomaly_low_water_level=-5.5,
)

AnomalyDetectionPolicy = HealthPolicy(
    name="anomaly_detection",
    health_critical_water_level=-10.0,
    health_warning_water_level=-5.0,
    health_critical_battery=3.2,
    health_warning_battery=3.4,
    anomaly_critical_battery=3.2,
    anomaly_low_battery=3.4,
    anomaly_temperature_min=15.0,
    anomaly_temperature_max=35.0,
    anomaly_temperature_extreme=40.0,
    anomaly_critical_water_level=-10.0,
    anomaly_low_water_level=-5.0,
    anomaly_pressure_delta=50.0,
)

POLICIES = {
    DashboardHealthPolicy.name: DashboardHealthPolicy,
    AnomalyDetectionPolicy.name: AnomalyDetectionPolicy,
}


def get_policy(name: str) -> HealthPolicy:
    """Look up a named policy ('dashboard' or 'anomaly_detection')."""
    try:
        return POLICIES[name]
    except KeyError:
        raise ValueError(
            f"Unknown policy '{name}'. Available: {sorted(POLICIES)}"
        ) from None
