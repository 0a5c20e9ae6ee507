"""Process-wide client state, built once and handed to the app."""
import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, Optional

from . import auth_storage, config
from .api_interface import APIInterface, create_api
from .auth import AuthSession
from .offline_cache import OfflineCache
from .preferences import (
    AppLockPreference,
    HapticsProvider,
    LocalStore,
    ThemeProvider,
    detect_system_scheme,
)
from .settings_sync import (
    NOTIFICATION_BAG,
    PRIVACY_BAG,
    FieldStatus,
    NotificationSettingsSync,
    PreferenceBagSync,
    PrivacySettingsSync,
    SyncState,
)

logger = logging.getLogger("dormtui.app_state")


@dataclass
class AppState:
    api: APIInterface
    session: AuthSession
    theme: ThemeProvider
    haptics: HapticsProvider
    app_lock: AppLockPreference
    cache: OfflineCache
    _settings: Dict[str, PreferenceBagSync] = field(default_factory=dict, init=False, repr=False)
    _settings_owner: Optional[str] = field(default=None, init=False, repr=False)

    @classmethod
    def create(
        cls,
        api: Optional[APIInterface] = None,
        store: Optional[LocalStore] = None,
        storage=auth_storage,
        system_scheme: Callable[[], Optional[str]] = detect_system_scheme,
    ) -> "AppState":
        api = api or create_api()
        store = store or LocalStore(config.prefs_file())
        return cls(
            api=api,
            session=AuthSession(api, storage),
            theme=ThemeProvider(store, system_scheme),
            haptics=HapticsProvider(store),
            app_lock=AppLockPreference(store),
            cache=OfflineCache(store),
        )

    def load_preferences(self) -> None:
        self.theme.load()
        self.haptics.load()
        self.app_lock.load()

    def start(self) -> None:
        """Load device-local preferences, then restore the stored session."""
        self.load_preferences()
        self.session.restore()

    def logout(self) -> None:
        self.session.logout()
        self.cache.clear()
        self._settings.clear()

    def _settings_sync(self, bag: str, factory, attr: str):
        user = self.session.user
        owner = user.id if user else None
        if self._settings_owner != owner:
            self._settings.clear()
            self._settings_owner = owner
        sync = self._settings.get(bag)
        if sync is None:
            sync = factory(self.api, getattr(user, attr) if user else None)
            sync.add_listener(lambda key, status: self._commit_to_profile(attr, key, status))
            self._settings[bag] = sync
        return sync

    def _commit_to_profile(self, attr: str, key: str, status: FieldStatus) -> None:
        user = self.session.user
        if user is None or status.state is not SyncState.COMMITTED:
            return
        getattr(user, attr)[key] = status.value

    def notification_settings(self) -> NotificationSettingsSync:
        """The signed-in user's notification toggles, shared by every screen."""
        return self._settings_sync(NOTIFICATION_BAG, NotificationSettingsSync, "notification_settings")

    def privacy_settings(self) -> PrivacySettingsSync:
        return self._settings_sync(PRIVACY_BAG, PrivacySettingsSync, "privacy_settings")
