"""
Query cache

Keeps server data (feeds, feed rules, schedules, monitoring snapshots)
between requests under tuple keys such as ``('feed-rules', 12)``, and lets
mutations invalidate or overwrite entries by key prefix.
"""

import logging
import threading
from collections import OrderedDict
from datetime import datetime, timedelta
from typing import Any, Dict, Optional, Tuple

from config import ControlPanelConfig

logger = logging.getLogger(__name__)

QueryKey = Tuple[Any, ...]


class QueryCache:
    """TTL cache of upstream query results"""

    def __init__(self, config: ControlPanelConfig, max_entries: int = 512):
        self.config = config
        self.max_entries = max_entries

        self._cache_storage: "OrderedDict[QueryKey, Any]" = OrderedDict()
        self._cache_metadata: Dict[QueryKey, Dict[str, Any]] = {}

        self._cache_statistics = {
            'hits': 0,
            'misses': 0,
            'evictions': 0,
            'invalidations': 0,
            'hit_rate': 0.0
        }

        self._cache_lock = threading.RLock()

        logger.info("QueryCache initialized")

    def get(self, key: QueryKey) -> Optional[Any]:
        """Cached value, or None when absent or expired"""
        with self._cache_lock:
            if key not in self._cache_storage:
                self._cache_statistics['misses'] += 1
                self._update_hit_rate()
                return None

            if self._is_expired(self._cache_metadata.get(key, {})):
                self._remove(key)
                self._cache_statistics['misses'] += 1
                self._update_hit_rate()
                return None

            self._cache_storage.move_to_end(key)
            self._cache_statistics['hits'] += 1
            self._update_hit_rate()
            return self._cache_storage[key]

    def set(self, key: QueryKey, value: Any, ttl: Optional[int] = None) -> None:
        with self._cache_lock:
            if ttl is None:
                ttl = self.config.service.cache_ttl_seconds

            self._cache_storage[key] = value
            self._cache_storage.move_to_end(key)
            self._cache_metadata[key] = {
                'created_at': datetime.now(),
                'expires_at': datetime.now() + timedelta(seconds=ttl),
            }

            while len(self._cache_storage) > self.max_entries:
                oldest, _ = self._cache_storage.popitem(last=False)
                self._cache_metadata.pop(oldest, None)
                self._cache_statistics['evictions'] += 1

            logger.debug(f"Cached query {key}")

    def delete(self, key: QueryKey) -> bool:
        with self._cache_lock:
            return self._remove(key)

    def invalidate(self, prefix: QueryKey) -> int:
        """Drop every entry whose key starts with ``prefix``

        Returns:
            int: Number of dropped entries
        """
        with self._cache_lock:
            matching = [k for k in self._cache_storage if k[:len(prefix)] == prefix]
            for key in matching:
                self._remove(key)
            self._cache_statistics['invalidations'] += len(matching)

        if matching:
            logger.debug(f"Invalidated {len(matching)} entries under {prefix}")
        return len(matching)

    def clear(self) -> None:
        with self._cache_lock:
            self._cache_storage.clear()
            self._cache_metadata.clear()

    def get_statistics(self) -> Dict[str, Any]:
        with self._cache_lock:
            stats = self._cache_statistics.copy()
            stats['size'] = len(self._cache_storage)
            return stats

    def _is_expired(self, metadata: Dict[str, Any]) -> bool:
        expires_at = metadata.get('expires_at')
        if expires_at is None:
            return False
        return datetime.now() > expires_at

    def _remove(self, key: QueryKey) -> bool:
        if key not in self._cache_storage:
            return False
        del self._cache_storage[key]
        self._cache_metadata.pop(key, None)
        return True

    def _update_hit_rate(self) -> None:
        total = self._cache_statistics['hits'] + self._cache_statistics['misses']
        if total > 0:
            self._cache_statistics['hit_rate'] = self._cache_statistics['hits'] / total
