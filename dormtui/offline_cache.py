"""Last-good-copy cache for list screens.

A screen first shows whatever it cached last time, then refreshes from the
backend and stores the fresh copy. Entries are stored as plain JSON and
rebuilt through the models' ``from_api``.
"""
import dataclasses
import json
import logging
from typing import Any, Callable, List, Optional, TypeVar

from . import config
from .preferences import LocalStore

logger = logging.getLogger("dormtui.offline_cache")

T = TypeVar("T")


def _to_plain(items: List[Any]) -> List[Any]:
    plain = [dataclasses.asdict(i) if dataclasses.is_dataclass(i) else i for i in items]
    # round-trip so datetimes become ISO strings
    return json.loads(json.dumps(plain, default=lambda o: o.isoformat() if hasattr(o, "isoformat") else str(o)))


class OfflineCache:
    def __init__(self, store: LocalStore):
        self.store = store

    @staticmethod
    def cache_key(key: str) -> str:
        return f"{config.CACHE_PREFIX}{key}"

    def cached(self, key: str, convert: Callable[[Any], T]) -> Optional[List[T]]:
        raw = self.store.get(self.cache_key(key))
        if not isinstance(raw, list):
            return None
        try:
            return [convert(item) for item in raw]
        except (TypeError, ValueError, KeyError, AttributeError) as e:
            logger.warning("Error reading cache %s: %s", key, e)
            return None

    def refresh(self, key: str, fetch: Callable[[], List[T]]) -> List[T]:
        """Fetch fresh data and store it; ApiError propagates, the old entry stays."""
        items = fetch()
        if not self.store.set(self.cache_key(key), _to_plain(items)):
            logger.warning("Error saving to cache: %s", key)
        return items

    def clear(self) -> None:
        for key in self.store.keys():
            if key.startswith(config.CACHE_PREFIX):
                self.store.delete(key)
