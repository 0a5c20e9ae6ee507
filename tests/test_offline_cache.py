"""
tests/test_offline_cache.py: Cache-then-refresh for list screens.
"""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from dormtui import config
from dormtui.api_interface import ApiError
from dormtui.data_models import HousingListing, LibraryMaterial, NewsItem
from dormtui.offline_cache import OfflineCache


@pytest.fixture
def cache(store) -> OfflineCache:
    return OfflineCache(store)


def materials():
    return [
        LibraryMaterial(id="m1", title="Circuit Theory", course_code="EEE 201", file_type="pdf", level="200"),
        LibraryMaterial(id="m2", title="Fluid Mechanics", course_code="MEE 305", file_type="ppt", file_size=2097152),
    ]


def test_nothing_cached_yet(cache):
    assert cache.cached("library_materials", LibraryMaterial.from_api) is None


def test_refresh_stores_and_cached_rebuilds(cache, store):
    fresh = cache.refresh("library_materials", materials)
    assert fresh == materials()
    assert config.CACHE_PREFIX + "library_materials" in store.keys()

    again = cache.cached("library_materials", LibraryMaterial.from_api)
    assert again == materials()
    assert again[1].size_label == "2.0 MB"


def test_datetimes_survive(cache):
    when = datetime(2024, 5, 1, 12, 30, tzinfo=timezone.utc)
    cache.refresh("news", lambda: [NewsItem(id="n1", title="Polls open", created_at=when)])
    (item,) = cache.cached("news", NewsItem.from_api)
    assert item.created_at == when


def test_housing_listings_survive(cache):
    listing = HousingListing(
        id="h1", title="Room in shared flat", price=120000, address="Yaba", type="Roommate",
        amenities=["Wi-Fi"], owner="Mrs Bello",
    )
    cache.refresh("housing_all____", lambda: [listing])
    assert cache.cached("housing_all____", HousingListing.from_api) == [listing]


def test_failed_refresh_keeps_last_copy(cache):
    cache.refresh("library_materials", materials)

    def offline():
        raise ApiError("Network error: unreachable")

    with pytest.raises(ApiError):
        cache.refresh("library_materials", offline)
    assert len(cache.cached("library_materials", LibraryMaterial.from_api)) == 2


def test_clear_only_touches_cache_entries(cache, store):
    store.set(config.THEME_KEY, "dark")
    cache.refresh("a", lambda: [])
    cache.refresh("b", materials)
    cache.clear()
    assert store.keys() == [config.THEME_KEY]
