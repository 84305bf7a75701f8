"""
Tests for summary statistics.
"""

import math
from datetime import date

import pytest

from conftest import NOW, make_reading, make_station
from dwlr.aggregator import (
    aggregate,
    daily_water_level_series,
    mean,
    percentage,
    percentage_breakdown,
    period_trend,
    state_water_level_averages,
    summarize_readings,
)
from dwlr.models import BatteryStatus, Location, Station, Statistics
from dwlr.normalizer import normalize
from dwlr.policies import AnomalyDetectionPolicy


def _no_nan(stats: Statistics) -> bool:
    for value in stats.to_dict().values():
        if isinstance(value, float) and math.isnan(value):
            return False
        if isinstance(value, dict):
            if any(isinstance(v, float) and math.isnan(v) for v in value.values()):
                return False
    return True


class TestHelpers:
    """Test the numeric helpers."""

    def test_mean(self):
        assert mean([1.0, 2.0, 3.0]) == 2.0
        assert mean([1.0, float("nan"), 3.0]) == 2.0
        assert mean([]) is None
        assert mean([float("nan")]) is None

    def test_percentage(self):
        assert percentage(1, 3) == 33.3
        assert percentage(0, 0) == 0.0

    def test_breakdown_sums_to_100(self):
        breakdown = percentage_breakdown({"a": 1, "b": 1, "c": 1})
        assert breakdown == {"a": 33.4, "b": 33.3, "c": 33.3}
        assert sum(breakdown.values()) == pytest.approx(100.0)

    def test_breakdown_keeps_zero_categories(self):
        breakdown = percentage_breakdown({"a": 2, "b": 0, "c": 2})
        assert breakdown == {"a": 50.0, "b": 0.0, "c": 50.0}

    def test_breakdown_empty(self):
        assert percentage_breakdown({"a": 0, "b": 0}) == {"a": 0.0, "b": 0.0}

    def test_period_trend(self):
        assert period_trend([1.0] * 5 + [2.0] * 5) == pytest.approx(100.0)

    def test_period_trend_negative_levels(self):
        # Rising water divided by a negative baseline reads as a decrease
        assert period_trend([-10.0] * 5 + [-9.0] * 5) == pytest.approx(-10.0)

    def test_period_trend_uses_last_two_windows(self):
        values = [100.0] * 3 + [4.0] * 5 + [5.0] * 5
        assert period_trend(values) == pytest.approx(25.0)

    def test_period_trend_not_enough_data(self):
        assert period_trend([1.0, 2.0, 3.0, 4.0, 5.0]) == 0.0
        assert period_trend([]) == 0.0

    def test_period_trend_zero_baseline(self):
        assert period_trend([0.0] * 5 + [1.0] * 5) == 0.0

    def test_period_trend_window(self):
        assert period_trend([2.0, 3.0], window=1) == pytest.approx(50.0)
        with pytest.raises(ValueError):
            period_trend([1.0, 2.0], window=0)


class TestAggregate:
    """Test dashboard statistics."""

    def test_empty(self):
        stats = aggregate([], NOW)

        assert stats == Statistics.empty()
        assert not stats.has_data
        assert stats.total_stations == 0
        assert stats.avg_water_level is None
        assert stats.min_water_level is None
        assert stats.severity_counts["critical"] == 0
        assert _no_nan(stats)

    def test_levels(self):
        stations = [
            make_station("A", levels=(-3.0,)),
            make_station("B", levels=(-9.0,)),
        ]
        stats = aggregate(stations, NOW)

        assert stats.has_data
        assert stats.total_stations == 2
        assert stats.min_water_level == -9.0
        assert stats.max_water_level == -3.0
        assert stats.avg_water_level == pytest.approx(-6.0)
        assert stats.avg_battery == pytest.approx(4.0)

    def test_uses_latest_reading(self):
        stats = aggregate([make_station("A", levels=(-20.0, -2.0))], NOW)
        assert stats.avg_water_level == -2.0
        assert stats.severity_counts["good"] == 1

    def test_percentages_sum_to_100(self):
        stations = [
            make_station("S1", levels=(1.0,)),
            make_station("S2", levels=(-2.0,)),
            make_station("S3", levels=(-7.0,)),
            make_station("S4", levels=(-12.0,)),
            make_station("S5", levels=(-20.0,)),
            make_station("S6", levels=(-21.0,)),
            make_station("S7", levels=(-1.0,), minutes_ago=300),
        ]
        stats = aggregate(stations, NOW)

        for breakdown in (
            stats.severity_percentages,
            stats.health_percentages,
            stats.trend_percentages,
        ):
            assert sum(breakdown.values()) == pytest.approx(100.0)
        assert stats.severity_counts == {
            "excellent": 1,
            "good": 2,
            "moderate": 1,
            "poor": 1,
            "critical": 2,
        }
        assert stats.groundwater_stress == percentage(2, 7)

    def test_health_counts(self):
        stations = [
            make_station("OK", levels=(-2.0,)),
            make_station("WARN", levels=(-4.5,)),
            make_station("CRIT", levels=(-8.0,)),
            make_station("GONE", levels=(-2.0,), minutes_ago=500),
        ]
        stats = aggregate(stations, NOW)

        assert stats.health_counts == {
            "normal": 1,
            "warning": 1,
            "critical": 1,
            "offline": 1,
        }
        assert stats.active_stations == 3
        assert stats.alert_stations == 2

    def test_battery_and_temperature_counts(self):
        stations = [
            make_station("A", battery=4.0),
            make_station("B", battery=3.4),
            make_station("C", temperature=31.0),
            make_station("D"),
        ]
        stats = aggregate(stations, NOW)

        assert stats.low_battery_count == 1
        assert stats.high_temperature_count == 1
        assert stats.data_quality == 75.0

    def test_recharge_potential(self):
        stations = [
            make_station("A", levels=(-5.0, -4.0)),
            make_station("B", levels=(-5.0, -5.0)),
        ]
        stats = aggregate(stations, NOW)
        assert stats.trend_counts["rising"] == 1
        assert stats.recharge_potential == 50.0

    def test_state_distribution(self):
        stations = [
            make_station("A", state="Rajasthan"),
            make_station("B", state="Gujarat"),
            make_station("C", state="Rajasthan"),
            Station(id="D", location=Location(), readings=(make_reading(station_id="D"),)),
        ]
        stats = aggregate(stations, NOW)
        assert stats.state_distribution == {"Gujarat": 1, "Rajasthan": 2, "Unknown": 1}

    def test_nan_excluded_from_averages(self):
        stations = [
            make_station("A", levels=(float("nan"),)),
            make_station("B", levels=(-4.0,)),
        ]
        stats = aggregate(stations, NOW)

        assert stats.avg_water_level == -4.0
        assert stats.min_water_level == -4.0
        assert stats.severity_counts["critical"] == 1
        assert _no_nan(stats)

    def test_water_level_trend(self):
        station = make_station("A", levels=[-10.0] * 5 + [-9.0] * 5)
        stats = aggregate([station], NOW)
        assert stats.water_level_trend == pytest.approx(-10.0)
        assert stats.temperature_trend == 0.0

    def test_idempotent_and_non_mutating(self, dwlr_records):
        stations = normalize(dwlr_records)
        readings = [s.readings for s in stations]

        first = aggregate(stations, NOW)
        second = aggregate(stations, NOW)

        assert first == second
        assert [s.readings for s in stations] == readings

    def test_naive_now(self):
        stats = aggregate([make_station("A"), make_station("B", minutes_ago=300)], NOW.replace(tzinfo=None))
        assert stats.active_stations == 1

    def test_to_dict(self):
        data = aggregate([make_station()], NOW).to_dict()
        assert data["total_stations"] == 1
        assert data["severity_counts"]["good"] == 1


class TestSeries:
    """Test chart series helpers."""

    def test_daily_series(self):
        station = Station(
            id="A",
            location=Location(state="Rajasthan"),
            readings=(
                make_reading(station_id="A", level=-4.0, minutes_ago=60 * 24),
                make_reading(station_id="A", level=-2.0, minutes_ago=60),
                make_reading(station_id="A", level=-3.0, minutes_ago=30),
                make_reading(station_id="A", level=float("nan"), minutes_ago=20),
            ),
        )
        series = daily_water_level_series([station])

        assert [d.day for d in series] == [date(2025, 9, 20), date(2025, 9, 21)]
        assert series[0].average_level == -4.0
        assert series[1].average_level == -2.5
        assert series[1].n_readings == 2

    def test_daily_series_empty(self):
        assert daily_water_level_series([]) == []

    def test_state_averages(self):
        stations = [
            make_station("A", levels=(-2.0,), state="Rajasthan"),
            make_station("B", levels=(-4.0,), state="Rajasthan"),
            make_station("C", levels=(-8.0,), state="Gujarat"),
        ]
        assert state_water_level_averages(stations) == {"Gujarat": -8.0, "Rajasthan": -3.0}


class TestSummarizeReadings:
    """Test single-series summaries."""

    def _series(self, n=10, **kwargs):
        return [
            make_reading(station_id="sensor-feed", minutes_ago=10 * (n - i), pressure_unit="hPa", **kwargs)
            for i in range(n)
        ]

    def test_empty(self):
        summary = summarize_readings([])
        assert summary.total_readings == 0
        assert summary.battery_status is None
        assert summary.avg_water_level is None
        assert summary.water_level_trend == 0.0

    def test_healthy_series(self):
        summary = summarize_readings(self._series(pressure=1013.0))

        assert summary.total_readings == 10
        assert summary.anomalies == 0
        assert summary.battery_status is BatteryStatus.GOOD
        assert summary.avg_pressure == pytest.approx(1013.0)
        assert summary.pressure_trend == 0.0

    def test_counts_rule_and_source_anomalies(self):
        readings = self._series(n=3, pressure=1013.0)
        readings[0] = make_reading(
            station_id="sensor-feed", minutes_ago=100, pressure=1013.0,
            pressure_unit="hPa", battery=3.0,
        )
        readings[1] = make_reading(
            station_id="sensor-feed", minutes_ago=90, pressure=1013.0,
            pressure_unit="hPa", source_anomaly="Yes",
        )
        summary = summarize_readings(readings, AnomalyDetectionPolicy)
        assert summary.anomalies == 2

    def test_battery_status_from_latest(self):
        readings = self._series(n=2, pressure=1013.0)
        readings.append(
            make_reading(station_id="sensor-feed", minutes_ago=1, battery=3.3,
                         pressure=1013.0, pressure_unit="hPa")
        )
        summary = summarize_readings(readings)
        assert summary.battery_status is BatteryStatus.WARNING

    def test_order_independent(self):
        readings = self._series(pressure=1013.0)
        assert summarize_readings(readings) == summarize_readings(list(reversed(readings)))
