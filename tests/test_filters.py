"""
Tests for station filtering.
"""

import pytest

from conftest import make_station
from dwlr.filters import FILTER_PRESETS, filter_stations, unique_states
from dwlr.models import Location, Station


@pytest.fixture
def stations():
    return [
        make_station("RJ-1", levels=(-2.0,), state="Rajasthan", village="Bassi"),
        make_station("RJ-2", levels=(-20.0,), state="Rajasthan", village="Phagi", battery=3.3),
        make_station("GJ-1", levels=(1.5,), state="Gujarat", village="Bhuj", temperature=32.0),
        make_station("GJ-2", levels=(-7.0, -6.0), state="Gujarat", village="Anjar"),
    ]


class TestFilterStations:
    """Test dashboard filters."""

    def test_no_criteria(self, stations):
        assert filter_stations(stations) == stations

    def test_state(self, stations):
        result = filter_stations(stations, state="Gujarat")
        assert [s.id for s in result] == ["GJ-1", "GJ-2"]

    def test_state_all(self, stations):
        assert filter_stations(stations, state="all") == stations

    @pytest.mark.parametrize(
        "query,expected",
        [
            ("rj-2", ["RJ-2"]),
            ("BHUJ", ["GJ-1"]),
            ("jaipur", ["RJ-1", "RJ-2", "GJ-1", "GJ-2"]),
            ("nowhere", []),
        ],
    )
    def test_query(self, stations, query, expected):
        assert [s.id for s in filter_stations(stations, query=query)] == expected

    @pytest.mark.parametrize(
        "preset,expected",
        [
            ("all", ["RJ-1", "RJ-2", "GJ-1", "GJ-2"]),
            ("low_battery", ["RJ-2"]),
            ("high_temp", ["GJ-1"]),
            ("low_water", ["RJ-2"]),
            ("critical", ["RJ-2"]),
            ("recharged", ["GJ-2"]),
            ("excellent", ["GJ-1"]),
        ],
    )
    def test_presets(self, stations, preset, expected):
        assert [s.id for s in filter_stations(stations, preset=preset)] == expected

    def test_combined(self, stations):
        result = filter_stations(stations, state="Rajasthan", preset="low_water")
        assert [s.id for s in result] == ["RJ-2"]

    def test_low_water_uses_preset_threshold(self, stations):
        # GJ-2 at -6.0 raises a low-water anomaly but is above the filter threshold
        result = filter_stations(stations, preset="low_water")
        assert "GJ-2" not in [s.id for s in result]

    def test_unknown_preset(self, stations):
        with pytest.raises(ValueError, match="Unknown filter preset"):
            filter_stations(stations, preset="sparkly")

    def test_stations_without_readings(self):
        empty = Station(id="E", location=Location(state="Goa"))
        for preset in FILTER_PRESETS:
            assert filter_stations([empty], preset=preset) == []


class TestUniqueStates:
    """Test state listing."""

    def test_sorted_and_distinct(self, stations):
        stations.append(Station(id="X", location=Location()))
        assert unique_states(stations) == ["Gujarat", "Rajasthan"]
