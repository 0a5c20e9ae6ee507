"""
tests/conftest.py: Shared pytest fixtures for the dormtui test suite.

Provides:
  fake_keyring  : dict-backed replacement for the keyring backend
  store         : LocalStore in a temporary directory
  make_response : builds real requests.Response objects for a mocked session
  api           : RealAPI whose HTTP session is a MagicMock
  fake_api      : MagicMock standing in for the whole client
"""

from __future__ import annotations

import json
from typing import Any, Dict, Optional, Tuple
from unittest.mock import MagicMock

import keyring
from keyring.errors import PasswordDeleteError
import pytest
import requests

from dormtui.api_interface import RealAPI
from dormtui.preferences import LocalStore


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    """Keep prefs and debug logs out of the real home directory."""
    monkeypatch.setenv("DORMTUI_HOME", str(tmp_path))
    monkeypatch.delenv("DORMTUI_COLOR_SCHEME", raising=False)
    monkeypatch.delenv("COLORFGBG", raising=False)
    return tmp_path


# ---------------------------------------------------------------------------
# Keyring
# ---------------------------------------------------------------------------

@pytest.fixture
def fake_keyring(monkeypatch) -> Dict[Tuple[str, str], str]:
    vault: Dict[Tuple[str, str], str] = {}

    def get_password(service, key):
        return vault.get((service, key))

    def set_password(service, key, value):
        vault[(service, key)] = value

    def delete_password(service, key):
        if (service, key) not in vault:
            raise PasswordDeleteError(key)
        del vault[(service, key)]

    monkeypatch.setattr(keyring, "get_password", get_password)
    monkeypatch.setattr(keyring, "set_password", set_password)
    monkeypatch.setattr(keyring, "delete_password", delete_password)
    return vault


# ---------------------------------------------------------------------------
# Local storage
# ---------------------------------------------------------------------------

@pytest.fixture
def store(tmp_path) -> LocalStore:
    return LocalStore(tmp_path / "prefs.json")


# ---------------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------------

@pytest.fixture
def make_response():
    def _make(status: int = 200, body: Any = None, raw: Optional[bytes] = None) -> requests.Response:
        resp = requests.Response()
        resp.status_code = status
        if raw is not None:
            resp._content = raw
        elif body is None:
            resp._content = b""
        else:
            resp._content = json.dumps(body).encode("utf-8")
        resp.headers["Content-Type"] = "application/json"
        return resp

    return _make


@pytest.fixture
def api(make_response) -> RealAPI:
    """RealAPI with a mocked session; set ``api.session.request.return_value``."""
    client = RealAPI("https://dorm.test/api", timeout=5)
    session = MagicMock()
    session.headers = client.session.headers
    session.request.return_value = make_response(200, {})
    client.session = session
    return client


@pytest.fixture
def fake_api() -> MagicMock:
    return MagicMock()

