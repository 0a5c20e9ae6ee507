"""Preference-bag toggles synced to the user profile.

Each switch on the notification and privacy screens is one boolean field of
a bag on the profile. A toggle changes the local value at once and sends a
partial profile update carrying only that field. The outcome is tracked per
field (pending, committed or failed) so the UI can flag fields that did not
reach the server. A failed update leaves the local value as the user set it.
"""
import enum
import logging
import threading
from dataclasses import dataclass
from typing import Callable, Dict, List, Mapping, Optional

from .api_interface import APIInterface, ApiError

logger = logging.getLogger("dormtui.settings_sync")

NOTIFICATION_BAG = "notificationSettings"
PRIVACY_BAG = "privacySettings"

# (key, label, section)
NOTIFICATION_FIELDS = (
    ("mentions", "Mentions", "Community"),
    ("comments", "Replies", "Community"),
    ("follows", "New Followers", "Community"),
    ("shares", "Shares", "Community"),
    ("priceAlerts", "Price Alerts", "Marketplace"),
    ("orderUpdates", "Order Updates", "Marketplace"),
    ("messages", "Direct Messages", "Marketplace"),
    ("electionReminders", "Voting Reminders", "Elections"),
)

PRIVACY_FIELDS = (
    ("showOnlineStatus", "Show Online Status", "Activity Status"),
    ("readReceipts", "Read Receipts", "Activity Status"),
)


class SyncState(enum.Enum):
    COMMITTED = "committed"
    PENDING = "pending"
    FAILED = "failed"


@dataclass
class FieldStatus:
    value: bool
    state: SyncState = SyncState.COMMITTED
    error: Optional[str] = None
    seq: int = 0


class PreferenceBagSync:
    def __init__(self, api: APIInterface, bag: str, defaults: Mapping[str, bool],
                 initial: Optional[Mapping[str, bool]] = None):
        self.api = api
        self.bag = bag
        initial = initial or {}
        self._fields: Dict[str, FieldStatus] = {
            key: FieldStatus(value=bool(initial.get(key, default)))
            for key, default in defaults.items()
        }
        self._lock = threading.Lock()
        self._listeners: List[Callable[[str, FieldStatus], None]] = []

    def add_listener(self, callback: Callable[[str, FieldStatus], None]) -> None:
        self._listeners.append(callback)

    def remove_listener(self, callback: Callable[[str, FieldStatus], None]) -> None:
        if callback in self._listeners:
            self._listeners.remove(callback)

    def _emit(self, key: str) -> None:
        status = self.status(key)
        for callback in list(self._listeners):
            callback(key, status)

    def keys(self) -> List[str]:
        return list(self._fields)

    def value(self, key: str) -> bool:
        return self._fields[key].value

    def status(self, key: str) -> FieldStatus:
        f = self._fields[key]
        return FieldStatus(value=f.value, state=f.state, error=f.error, seq=f.seq)

    def values(self) -> Dict[str, bool]:
        return {key: f.value for key, f in self._fields.items()}

    def failed(self) -> List[str]:
        return [key for key, f in self._fields.items() if f.state is SyncState.FAILED]

    def toggle(self, key: str, value: bool) -> FieldStatus:
        """Set ``key`` locally, then push just that field to the profile.

        Blocks for the duration of the request; the UI calls it from a
        worker thread. Listeners see the new value before the request goes out.
        """
        with self._lock:
            f = self._fields[key]
            f.seq += 1
            seq = f.seq
            f.value = bool(value)
            f.state = SyncState.PENDING
            f.error = None
        self._emit(key)

        try:
            self.api.update_profile({self.bag: {key: bool(value)}})
        except ApiError as e:
            logger.warning("Failed to update setting %s.%s: %s", self.bag, key, e)
            self._settle(key, seq, SyncState.FAILED, e.message)
        else:
            self._settle(key, seq, SyncState.COMMITTED, None)
        return self.status(key)

    def _settle(self, key: str, seq: int, state: SyncState, error: Optional[str]) -> None:
        with self._lock:
            f = self._fields[key]
            if f.seq != seq:
                # a newer toggle of this field owns the status now
                return
            f.state = state
            f.error = error
        self._emit(key)


class NotificationSettingsSync(PreferenceBagSync):
    """Notification toggles plus the local-only "pause all" switch.

    ``pause_all`` is not a profile field: it is never sent to the backend and
    does not alter the other toggles. While it is on the screen disables the
    other switches.
    """

    def __init__(self, api: APIInterface, initial: Optional[Mapping[str, bool]] = None):
        super().__init__(api, NOTIFICATION_BAG, {key: True for key, _, _ in NOTIFICATION_FIELDS}, initial)
        self.pause_all = False

    def set_pause_all(self, paused: bool) -> None:
        self.pause_all = bool(paused)


class PrivacySettingsSync(PreferenceBagSync):
    def __init__(self, api: APIInterface, initial: Optional[Mapping[str, bool]] = None):
        super().__init__(api, PRIVACY_BAG, {key: True for key, _, _ in PRIVACY_FIELDS}, initial)
