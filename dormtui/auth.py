"""
Authentication session for dormtui.
Restores the stored session on startup and handles login, registration and
logout. Listeners are told about every change so the navigation guard can
re-run.
"""
import logging
from typing import Any, Callable, Dict, List, Optional

from . import auth_storage
from .api_interface import APIInterface, ApiError
from .data_models import User

logger = logging.getLogger("dormtui.auth")


class AuthError(Exception):
    """Authentication related errors"""
    pass


class AuthSession:
    def __init__(self, api: APIInterface, storage=auth_storage):
        self.api = api
        self.storage = storage
        self.user: Optional[User] = None
        self.is_loading = True
        self.has_seen_onboarding = False
        self._listeners: List[Callable[["AuthSession"], None]] = []

    @property
    def authenticated(self) -> bool:
        return self.user is not None

    def add_listener(self, callback: Callable[["AuthSession"], None]) -> None:
        self._listeners.append(callback)

    def _changed(self) -> None:
        for callback in list(self._listeners):
            callback(self)

    def restore(self) -> Optional[User]:
        """Load the onboarding flag and, with a stored token, the current user."""
        self.is_loading = True
        try:
            self.has_seen_onboarding = self.storage.has_seen_onboarding()
            token = self.storage.load_token()
            if token:
                self.api.set_token(token)
                self.user = self.api.get_me()
        except ApiError as e:
            logger.warning("Error loading user: %s", e)
            self.storage.clear_token()
            self.api.set_token(None)
            self.user = None
        finally:
            self.is_loading = False
        self._changed()
        return self.user

    def _start(self, data: Dict[str, Any]) -> User:
        data = dict(data or {})
        token = data.pop("token", None)
        if not token:
            raise AuthError("No token in response")
        self.storage.save_token(token)
        self.api.set_token(token)
        self.user = User.from_api(data)
        self._changed()
        return self.user

    def login(self, email: str, password: str) -> User:
        try:
            data = self.api.login(email, password)
        except ApiError as e:
            raise AuthError(e.server_message or "Login failed") from e
        return self._start(data)

    def register(self, fields: Dict[str, Any]) -> User:
        try:
            data = self.api.register(fields)
        except ApiError as e:
            raise AuthError(e.server_message or "Registration failed") from e
        return self._start(data)

    def logout(self) -> None:
        self.storage.clear_token()
        self.api.set_token(None)
        self.user = None
        self._changed()

    def refresh_user(self) -> Optional[User]:
        try:
            self.user = self.api.get_me()
        except ApiError as e:
            logger.warning("Error refreshing user: %s", e)
            return self.user
        self._changed()
        return self.user

    def complete_onboarding(self) -> None:
        self.storage.set_onboarding_seen()
        self.has_seen_onboarding = True
        self._changed()
