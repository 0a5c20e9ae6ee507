"""
tests/test_preferences.py: Theme, haptics and app-lock preferences.
"""

from __future__ import annotations

import pytest

from dormtui import config
from dormtui.preferences import (
    AppLockPreference,
    HapticsProvider,
    LocalStore,
    ThemeProvider,
    detect_system_scheme,
)


# ---------------------------------------------------------------------------
# LocalStore
# ---------------------------------------------------------------------------

class TestLocalStore:
    def test_missing_file_reads_empty(self, store):
        assert store.get("theme") is None
        assert store.keys() == []

    def test_set_get_delete(self, store):
        assert store.set("theme", "dark") is True
        assert LocalStore(store.path).get("theme") == "dark"
        store.delete("theme")
        assert store.get("theme") is None

    def test_corrupt_file_reads_empty(self, store):
        store.path.write_text("{not json", encoding="utf-8")
        assert store.get("theme", "fallback") == "fallback"


# ---------------------------------------------------------------------------
# System scheme detection
# ---------------------------------------------------------------------------

class TestSystemScheme:
    def test_forced_scheme(self, monkeypatch):
        monkeypatch.setenv(config.COLOR_SCHEME_ENV, "Dark")
        assert detect_system_scheme() == "dark"

    @pytest.mark.parametrize("value,expected", [("15;0", "dark"), ("0;15", "light"), ("7;8", "dark"), ("0;7", "light")])
    def test_colorfgbg(self, monkeypatch, value, expected):
        monkeypatch.setenv("COLORFGBG", value)
        assert detect_system_scheme() == expected

    def test_unknown(self):
        assert detect_system_scheme() is None


# ---------------------------------------------------------------------------
# ThemeProvider
# ---------------------------------------------------------------------------

class TestTheme:
    def test_defaults_to_system(self, store):
        theme = ThemeProvider(store, lambda: "dark")
        assert theme.load() == "system"
        assert theme.resolved == "dark"

    def test_system_without_os_scheme_is_light(self, store):
        theme = ThemeProvider(store, lambda: None)
        assert theme.resolved == "light"

    @pytest.mark.parametrize("mode", ["light", "dark"])
    def test_explicit_mode_ignores_os(self, store, mode):
        theme = ThemeProvider(store, lambda: "dark" if mode == "light" else "light")
        theme.set_preference(mode)
        assert theme.resolved == mode
        theme.system_scheme_changed("dark" if mode == "light" else "light")
        assert theme.resolved == mode

    def test_preference_persists(self, store):
        ThemeProvider(store, lambda: None).set_preference("dark")
        reloaded = ThemeProvider(store, lambda: None)
        reloaded.load()
        assert reloaded.preference == "dark"
        assert reloaded.resolved == "dark"

    def test_unknown_saved_value_is_ignored(self, store):
        store.set(config.THEME_KEY, "sepia")
        theme = ThemeProvider(store, lambda: None)
        assert theme.load() == "system"

    def test_invalid_mode_rejected(self, store):
        theme = ThemeProvider(store, lambda: None)
        with pytest.raises(ValueError):
            theme.set_preference("blue")
        assert store.get(config.THEME_KEY) is None

    def test_listeners_only_hear_resolved_changes(self, store):
        theme = ThemeProvider(store, lambda: "light")
        heard = []
        theme.add_listener(heard.append)
        theme.set_preference("light")  # system(light) -> light: no visible change
        theme.set_preference("dark")
        theme.system_scheme_changed("light")  # not following the system
        theme.set_preference("system")
        theme.system_scheme_changed("dark")
        assert heard == ["dark", "light", "dark"]

    def test_toggle_listener_sees_new_preference(self, store):
        theme = ThemeProvider(store, lambda: "dark")
        seen = []

        def listener(resolved):
            seen.append((resolved, theme.preference))

        theme.add_listener(listener)
        theme.toggle()
        assert seen == [("light", "light")]
        theme.remove_listener(listener)
        theme.toggle()
        assert seen == [("light", "light")]

    def test_toggle(self, store):
        theme = ThemeProvider(store, lambda: "dark")
        theme.toggle()
        assert theme.preference == "light"
        theme.toggle()
        assert theme.preference == "dark"


# ---------------------------------------------------------------------------
# Haptics and app lock
# ---------------------------------------------------------------------------

class TestHaptics:
    def test_enabled_by_default(self, store):
        haptics = HapticsProvider(store)
        assert haptics.load() is True

    def test_setting_survives_reload(self, store):
        HapticsProvider(store).set_enabled(False)
        reloaded = HapticsProvider(store)
        assert reloaded.load() is False

    def test_non_boolean_saved_value_ignored(self, store):
        store.set(config.HAPTICS_KEY, "no")
        assert HapticsProvider(store).load() is True

    def test_trigger_respects_setting(self, store):
        buzzes = []
        haptics = HapticsProvider(store, feedback=lambda: buzzes.append(1))
        assert haptics.trigger() is True
        haptics.set_enabled(False)
        assert haptics.trigger() is False
        assert len(buzzes) == 1

    def test_enabling_gives_confirmation_buzz(self, store):
        buzzes = []
        haptics = HapticsProvider(store, feedback=lambda: buzzes.append(1))
        haptics.set_enabled(False)
        haptics.set_enabled(True)
        assert buzzes == [1]

    def test_no_feedback_hook(self, store):
        assert HapticsProvider(store).trigger() is False


class TestAppLock:
    def test_default_off_and_persisted(self, store):
        lock = AppLockPreference(store)
        assert lock.load() is False
        lock.set_enabled(True)
        assert AppLockPreference(store).load() is True
