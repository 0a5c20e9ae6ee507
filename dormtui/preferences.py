"""Device-local preferences: theme, haptic feedback and app lock.

Each preference is loaded once from the local store at startup, falls back
to its default when absent, and is written back on every change.
"""
import json
import logging
import os
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from . import config

logger = logging.getLogger("dormtui.preferences")

THEME_MODES = ("system", "light", "dark")


class LocalStore:
    """A small JSON key-value file, read and written whole."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def _read(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning("Failed to read %s: %s", self.path, e)
            return {}
        return data if isinstance(data, dict) else {}

    def get(self, key: str, default: Any = None) -> Any:
        return self._read().get(key, default)

    def set(self, key: str, value: Any) -> bool:
        data = self._read()
        data[key] = value
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, default=str)
        except (OSError, TypeError) as e:
            logger.warning("Failed to save %s: %s", key, e)
            return False
        return True

    def delete(self, key: str) -> None:
        data = self._read()
        if data.pop(key, None) is None:
            return
        try:
            with open(self.path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, default=str)
        except OSError as e:
            logger.warning("Failed to delete %s: %s", key, e)

    def keys(self) -> List[str]:
        return list(self._read())


def detect_system_scheme() -> Optional[str]:
    """Best guess at the OS/terminal colour scheme.

    DORMTUI_COLOR_SCHEME wins; otherwise COLORFGBG ("fg;bg") set by most
    terminals tells us whether the background is dark.
    """
    forced = os.environ.get(config.COLOR_SCHEME_ENV, "").strip().lower()
    if forced in ("light", "dark"):
        return forced
    colorfgbg = os.environ.get("COLORFGBG", "")
    if colorfgbg:
        bg = colorfgbg.split(";")[-1]
        if bg.isdigit():
            # 0-6 and 8 are the dark ANSI colours
            return "dark" if int(bg) in (0, 1, 2, 3, 4, 5, 6, 8) else "light"
    return None


class ThemeProvider:
    def __init__(self, store: LocalStore, system_scheme: Callable[[], Optional[str]] = detect_system_scheme):
        self.store = store
        self._preference = "system"
        self._system_scheme = system_scheme() or "light"
        self._listeners: List[Callable[[str], None]] = []

    def load(self) -> str:
        saved = self.store.get(config.THEME_KEY)
        if saved in THEME_MODES:
            self._preference = saved
        elif saved is not None:
            logger.warning("Ignoring unknown theme preference %r", saved)
        return self._preference

    @property
    def preference(self) -> str:
        return self._preference

    @property
    def resolved(self) -> str:
        if self._preference == "system":
            return self._system_scheme
        return self._preference

    def add_listener(self, callback: Callable[[str], None]) -> None:
        self._listeners.append(callback)

    def remove_listener(self, callback: Callable[[str], None]) -> None:
        if callback in self._listeners:
            self._listeners.remove(callback)

    def _broadcast(self, before: str) -> None:
        after = self.resolved
        if after == before:
            return
        for callback in list(self._listeners):
            callback(after)

    def set_preference(self, mode: str) -> None:
        if mode not in THEME_MODES:
            raise ValueError(f"theme must be one of {THEME_MODES}, got {mode!r}")
        before = self.resolved
        self._preference = mode
        self.store.set(config.THEME_KEY, mode)
        self._broadcast(before)

    def toggle(self) -> None:
        self.set_preference("dark" if self.resolved == "light" else "light")

    def system_scheme_changed(self, scheme: Optional[str]) -> None:
        """Record an OS scheme change; only visible while following the system."""
        before = self.resolved
        self._system_scheme = scheme or "light"
        self._broadcast(before)


class HapticsProvider:
    def __init__(self, store: LocalStore, feedback: Optional[Callable[[], None]] = None):
        self.store = store
        self.feedback = feedback
        self._enabled = True

    def load(self) -> bool:
        saved = self.store.get(config.HAPTICS_KEY)
        if isinstance(saved, bool):
            self._enabled = saved
        return self._enabled

    @property
    def enabled(self) -> bool:
        return self._enabled

    def set_enabled(self, enabled: bool) -> None:
        self._enabled = bool(enabled)
        self.store.set(config.HAPTICS_KEY, self._enabled)
        if self._enabled:
            # confirm the switch with a buzz
            self.trigger(force=True)

    def trigger(self, force: bool = False) -> bool:
        if not (self._enabled or force) or self.feedback is None:
            return False
        self.feedback()
        return True


class AppLockPreference:
    def __init__(self, store: LocalStore):
        self.store = store
        self._enabled = False

    def load(self) -> bool:
        self._enabled = bool(self.store.get(config.APP_LOCK_KEY, False))
        return self._enabled

    @property
    def enabled(self) -> bool:
        return self._enabled

    def set_enabled(self, enabled: bool) -> None:
        self._enabled = bool(enabled)
        self.store.set(config.APP_LOCK_KEY, self._enabled)
