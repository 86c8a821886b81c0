import sys
from datetime import datetime, timedelta
from pathlib import Path
from types import SimpleNamespace

sys.path.insert(0, str(Path(__file__).resolve().parents[2]))

from managers.query_cache import QueryCache


def _cache(max_entries=512, ttl=30):
    config = SimpleNamespace(service=SimpleNamespace(cache_ttl_seconds=ttl))
    return QueryCache(config, max_entries=max_entries)


def test_get_returns_cached_value_and_counts_hits():
    cache = _cache()
    cache.set(('feeds',), [{'id': 1}])

    assert cache.get(('feeds',)) == [{'id': 1}]
    assert cache.get(('missing',)) is None

    stats = cache.get_statistics()
    assert stats['hits'] == 1
    assert stats['misses'] == 1
    assert stats['hit_rate'] == 0.5
    assert stats['size'] == 1


def test_expired_entries_are_dropped():
    cache = _cache()
    cache.set(('monitoring',), {'ok': True}, ttl=5)
    cache._cache_metadata[('monitoring',)]['expires_at'] = datetime.now() - timedelta(seconds=1)

    assert cache.get(('monitoring',)) is None
    assert cache.get_statistics()['size'] == 0


def test_invalidate_by_prefix():
    cache = _cache()
    cache.set(('feed-rules', 1), {})
    cache.set(('feed-rules', 2), {})
    cache.set(('feeds',), [])

    dropped = cache.invalidate(('feed-rules',))

    assert dropped == 2
    assert cache.get(('feeds',)) == []
    assert cache.get(('feed-rules', 1)) is None


def test_invalidate_exact_key_leaves_siblings():
    cache = _cache()
    cache.set(('feed-rules', 1), {'a': 1})
    cache.set(('feed-rules', 10), {'b': 2})

    assert cache.invalidate(('feed-rules', 1)) == 1
    assert cache.get(('feed-rules', 10)) == {'b': 2}


def test_oldest_entries_are_evicted():
    cache = _cache(max_entries=2)
    cache.set(('a',), 1)
    cache.set(('b',), 2)
    cache.get(('a',))
    cache.set(('c',), 3)

    assert cache.get(('b',)) is None
    assert cache.get(('a',)) == 1
    assert cache.get_statistics()['evictions'] == 1


def test_delete_and_clear():
    cache = _cache()
    cache.set(('a',), 1)
    cache.set(('b',), 2)

    assert cache.delete(('a',)) is True
    assert cache.delete(('a',)) is False

    cache.clear()
    assert cache.get_statistics()['size'] == 0
