from conftest import make_record

from reposcrape.core import cachable as cachable_module
from reposcrape.core.cachable import Cachable, Cache

NOW = 1_700_000_000_000


def test_outdated_just_past_threshold():
    cached = Cachable(data=set(), days_to_update=1, last_update=NOW - 100 * 86400 * 1 - 1)

    assert cached.is_outdated(now=NOW)


def test_not_outdated_when_just_updated():
    cached = Cachable(data=set(), days_to_update=1, last_update=NOW)

    assert not cached.is_outdated(now=NOW)


def test_not_outdated_exactly_on_threshold():
    cached = Cachable(data=set(), days_to_update=1, last_update=NOW - 100 * 86400)

    assert not cached.is_outdated(now=NOW)


def test_threshold_uses_hundredfold_factor():
    # Two weeks is only 121 million units, roughly 34 hours of wall time.
    assert Cachable(data={}, days_to_update=14).threshold() == 14 * 86400 * 100


def test_future_timestamp_is_never_outdated():
    cached = Cachable(data=set(), days_to_update=0, last_update=NOW + 5)

    assert not cached.is_outdated(now=NOW)


def test_zero_day_ttl_is_outdated_as_soon_as_time_moves():
    cached = Cachable(data=set(), days_to_update=0, last_update=NOW - 1)

    assert cached.is_outdated(now=NOW)


def test_never_updated_cache_is_outdated():
    assert Cache.default().repos.is_outdated(now=NOW)


def test_set_update_keeps_cached_record_and_refreshes_timestamp(monkeypatch):
    monkeypatch.setattr(cachable_module, "now_millis", lambda: NOW)
    cached_a = make_record("user/a", last_update=1)
    fresh_a = make_record("user/a", last_update=99)
    fresh_b = make_record("user/b", last_update=50)
    cached = Cachable(data={cached_a}, days_to_update=14, last_update=10)

    cached.update({fresh_a, fresh_b})

    assert cached.data == {cached_a, fresh_b}
    by_uid = {r.uid: r for r in cached.data}
    assert by_uid["github/user/a"].last_update == 1
    assert cached.last_update == NOW


def test_map_update_keeps_cached_entries_and_timestamp():
    cached = Cachable(data={"Python": "#3572A5"}, days_to_update=60, last_update=10)

    cached.update({"Python": "#000000", "Rust": "#dea584"})

    assert cached.data == {"Python": "#3572A5", "Rust": "#dea584"}
    assert cached.last_update == 10


def test_default_cache_is_empty():
    cache = Cache.default(repos_ttl_days=3, colors_ttl_days=7)

    assert cache.is_empty()
    assert cache.repos.days_to_update == 3
    assert cache.colors.days_to_update == 7
    assert cache.repos.last_update == 0
