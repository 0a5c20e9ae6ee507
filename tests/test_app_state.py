"""
tests/test_app_state.py: Wiring of the shared client state, alerts and logging.
"""

from __future__ import annotations

import logging

import pytest

from dormtui import config, palette
from dormtui.alerts import AlertOptions, alert_icon
from dormtui.api_interface import ApiError
from dormtui.app_state import AppState
from dormtui.data_models import User


@pytest.fixture
def state(fake_api, store, fake_keyring) -> AppState:
    return AppState.create(api=fake_api, store=store, system_scheme=lambda: "dark")


class TestAppState:
    def test_start_loads_preferences_then_session(self, state, store, fake_api):
        store.set(config.THEME_KEY, "light")
        store.set(config.HAPTICS_KEY, False)
        state.start()
        assert state.theme.resolved == "light"
        assert state.haptics.enabled is False
        assert state.session.is_loading is False
        assert not state.session.authenticated

    def test_settings_seeded_from_profile(self, state):
        state.session.user = User(
            id="u1", name="Ada",
            notification_settings={"orderUpdates": False},
            privacy_settings={"readReceipts": False},
        )
        assert state.notification_settings().value("orderUpdates") is False
        assert state.privacy_settings().value("readReceipts") is False

    def test_toggles_survive_reopening_settings(self, state, fake_api):
        state.session.user = User(id="u1", name="Ada", notification_settings={"mentions": True})
        first = state.notification_settings()
        first.toggle("mentions", False)
        assert state.notification_settings() is first
        assert state.notification_settings().value("mentions") is False
        state.privacy_settings().toggle("readReceipts", False)
        assert state.privacy_settings().value("readReceipts") is False

    def test_committed_value_is_written_to_profile(self, state):
        state.session.user = User(id="u1", name="Ada")
        state.notification_settings().toggle("priceAlerts", False)
        assert state.session.user.notification_settings == {"priceAlerts": False}

    def test_failed_toggle_leaves_profile_alone(self, state, fake_api):
        state.session.user = User(id="u1", name="Ada", privacy_settings={"showOnlineStatus": True})
        fake_api.update_profile.side_effect = ApiError("Network error: down")
        sync = state.privacy_settings()
        sync.toggle("showOnlineStatus", False)
        assert sync.value("showOnlineStatus") is False
        assert state.session.user.privacy_settings == {"showOnlineStatus": True}

    def test_settings_reset_on_logout(self, state):
        state.session.user = User(id="u1", name="Ada")
        state.notification_settings().toggle("mentions", False)
        state.logout()
        state.session.user = User(id="u1", name="Ada", notification_settings={"mentions": True})
        assert state.notification_settings().value("mentions") is True

    def test_settings_follow_the_signed_in_user(self, state):
        state.session.user = User(id="u1", name="Ada")
        first = state.notification_settings()
        first.set_pause_all(True)
        state.session.user = User(id="u2", name="Bola", notification_settings={"comments": False})
        second = state.notification_settings()
        assert second is not first
        assert second.pause_all is False
        assert second.value("comments") is False

    def test_logout_clears_cache(self, state, store):
        state.cache.refresh("market_all_", lambda: [])
        state.session.user = User(id="u1", name="Ada")
        state.logout()
        assert state.session.user is None
        assert not any(k.startswith(config.CACHE_PREFIX) for k in store.keys())


class TestAlerts:
    def test_defaults(self):
        options = AlertOptions("Saved", "Profile updated successfully")
        assert options.type == "success"
        assert options.button_text == "OK"
        assert options.show_cancel is False

    def test_unknown_type_becomes_success(self):
        assert AlertOptions("x", "y", type="warning").type == "success"

    def test_icons(self):
        assert alert_icon("error").color == palette.DANGER
        assert alert_icon("info").name == "information-circle"
        assert alert_icon("success").color is None


class TestLogging:
    def test_quiet_without_debug(self, monkeypatch):
        monkeypatch.delenv(config.DEBUG_ENV, raising=False)
        config.configure_logging()
        assert logging.getLogger("dormtui").level == logging.WARNING

    def test_debug_log_file(self, monkeypatch, isolated_home):
        monkeypatch.setenv(config.DEBUG_ENV, "1")
        logger = logging.getLogger("dormtui")
        config.configure_logging()
        try:
            logger.debug("hello from the test")
            for handler in logger.handlers:
                handler.flush()
            assert "hello from the test" in (isolated_home / ".dormtui_debug.log").read_text(encoding="utf-8")
        finally:
            for handler in list(logger.handlers):
                if isinstance(handler, logging.FileHandler):
                    logger.removeHandler(handler)
                    handler.close()
            logger.setLevel(logging.NOTSET)
