"""Tests for station settings."""

import json
import threading
from pathlib import Path

import pytest

from fuelflow.errors import APIError
from fuelflow.models import StationSettings
from fuelflow.station import StationService


@pytest.fixture
def cache_path(temp_dir):
    return Path(temp_dir) / "station.json"


@pytest.fixture
def station(auth, fake_client, cache_path):
    service = StationService(auth, fake_client, cache_path)
    service.init()
    yield service
    service.dispose()


@pytest.fixture
def release():
    """Event that holds station "1" fetches until set."""
    event = threading.Event()
    yield event
    event.set()


def blocking_station_lookup(release):
    def get_station(station_id):
        if station_id == "1":
            release.wait(5)
            return {"id": "1", "name": "Main Station"}
        return {"id": station_id, "name": f"Station {station_id}"}
    return get_station


class TestStationService:
    """Test loading, caching and editing station settings."""

    def test_defaults_when_logged_out(self, station, fake_client):
        assert station.settings == StationSettings()
        assert station.is_loading is False
        fake_client.get_station.assert_not_called()

    def test_loads_on_login(self, auth, station, cache_path):
        auth.login("admin", "admin123")
        assert station.wait(5)

        assert station.settings.station_name == "Main Station"
        assert json.loads(cache_path.read_text())["stationName"] == "Main Station"

    def test_failure_keeps_cached_settings(self, auth, fake_client, cache_path):
        cache_path.write_text(json.dumps({"stationName": "Cached Station"}))
        fake_client.get_station.side_effect = APIError("down")
        service = StationService(auth, fake_client, cache_path)
        service.init()

        auth.login("admin", "admin123")
        service.wait(5)

        assert service.settings.station_name == "Cached Station"
        assert service.is_loading is False
        service.dispose()

    def test_unreadable_cache_ignored(self, auth, fake_client, cache_path):
        cache_path.write_text("not json")
        service = StationService(auth, fake_client, cache_path)

        assert service.init() == StationSettings()

    def test_restored_session_fetched_on_init(self, auth, fake_client, cache_path):
        auth.login("admin", "admin123")
        service = StationService(auth, fake_client, cache_path)
        service.init()

        assert service.wait(5)
        assert service.settings.station_name == "Main Station"
        service.dispose()

    def test_logout_resets_to_defaults(self, auth, station):
        auth.login("admin", "admin123")
        station.wait(5)
        auth.logout()

        assert station.settings == StationSettings()

    def test_update_settings(self, station, cache_path):
        station.update_settings(address="Canal Road", gst_number="GST-9")

        assert station.settings.address == "Canal Road"
        assert json.loads(cache_path.read_text())["gstNumber"] == "GST-9"

    def test_update_unknown_setting(self, station):
        with pytest.raises(ValueError):
            station.update_settings(refresh="x")
        assert not hasattr(station.settings, "refresh")

    def test_dispose_stops_following_session(self, auth, station, fake_client):
        station.dispose()
        auth.login("admin", "admin123")
        fake_client.get_station.assert_not_called()


class TestBackgroundFetch:
    """Test that station fetches never block the session change."""

    def test_login_returns_while_fetch_in_flight(self, auth, station, fake_client, release):
        fake_client.get_station.side_effect = blocking_station_lookup(release)

        auth.login("admin", "admin123")

        assert station.is_loading is True
        assert station.settings == StationSettings()

        release.set()
        assert station.wait(5)
        assert station.is_loading is False
        assert station.settings.station_name == "Main Station"

    def test_stale_settings_are_dropped(self, auth, station, fake_client, user_payload, release):
        fake_client.get_station.side_effect = blocking_station_lookup(release)

        auth.login("admin", "admin123")
        first_fetch = station._fetch_thread

        fake_client.login.return_value = dict(user_payload, stationId="2")
        auth.login("admin", "admin123")
        assert station.wait(5)
        assert station.settings.station_name == "Station 2"

        release.set()
        first_fetch.join(5)

        assert station.settings.station_name == "Station 2"

    def test_dispose_discards_in_flight_result(self, auth, fake_client, cache_path, release):
        fake_client.get_station.side_effect = blocking_station_lookup(release)
        service = StationService(auth, fake_client, cache_path)
        service.init()

        auth.login("admin", "admin123")
        service.dispose()
        release.set()
        service.wait(5)

        assert service.settings == StationSettings()
        assert not cache_path.exists()
