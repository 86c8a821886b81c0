"""
Feed rules editor

Local working copy of one feed's FeedRulesConfig with a snapshot for dirty
tracking, saved optimistically through the shared query cache.
"""

import copy
import json
import logging
from typing import Any, Dict, List, Optional

from clients.feed_rules import FeedRulesApi
from exceptions import ControlPanelException
from managers.query_cache import QueryCache
from models import FEED_RULES_SECTIONS, empty_feed_rules_config


def _canonical(value: Any) -> str:
    return json.dumps(value, sort_keys=True, default=str)


class FeedRulesEditor:
    """Edits the rules column of a single feed"""

    def __init__(self, feed_rules_api: FeedRulesApi, cache: QueryCache, feed_id: int):
        self.feed_rules_api = feed_rules_api
        self.cache = cache
        self.feed_id = feed_id
        self.logger = logging.getLogger(self.__class__.__name__)

        self.local_rules: Dict[str, List[Any]] = empty_feed_rules_config()
        self._snapshot: str = ''

    @property
    def cache_key(self):
        return ('feed-rules', self.feed_id)

    async def load(self) -> Dict[str, List[Any]]:
        """Fetch the feed's rules (cache first) and take a snapshot"""
        rules = self.cache.get(self.cache_key)
        if rules is None:
            rules = await self.feed_rules_api.get_feed_rules(self.feed_id)
            self.cache.set(self.cache_key, rules)

        self._reset(rules)
        return self.local_rules

    def _reset(self, rules: Dict[str, List[Any]]) -> None:
        self.local_rules = copy.deepcopy(rules)
        self._snapshot = _canonical(rules)

    def set_rules(self, rules: Dict[str, List[Any]]) -> None:
        self.local_rules = copy.deepcopy(rules)

    def set_section(self, section: str, entries: List[Any]) -> None:
        if section not in FEED_RULES_SECTIONS:
            raise ValueError(f"Unknown rules section: {section}")
        self.local_rules[section] = list(entries)

    @property
    def has_pending_changes(self) -> bool:
        return _canonical(self.local_rules) != self._snapshot

    @property
    def pending_change_count(self) -> int:
        """Sum of per-section length differences, at least 1 when dirty"""
        if not self.has_pending_changes:
            return 0

        initial = json.loads(self._snapshot) if self._snapshot else {}
        count = 0
        for section in FEED_RULES_SECTIONS:
            current = self.local_rules.get(section) or []
            before = initial.get(section) or []
            if _canonical(current) != _canonical(before):
                count += abs(len(current) - len(before))

        return max(count, 1)

    def section_counts(self) -> Dict[str, int]:
        return {section: len(self.local_rules.get(section) or []) for section in FEED_RULES_SECTIONS}

    async def save(self) -> Dict[str, List[Any]]:
        """Store the local copy

        The cache entry is replaced before the call and restored, together
        with the local copy, when the call fails.

        Raises:
            ControlPanelException: Validation or upstream failure
        """
        previous: Optional[Dict[str, List[Any]]] = self.cache.get(self.cache_key)
        new_rules = copy.deepcopy(self.local_rules)
        self.cache.set(self.cache_key, new_rules)

        try:
            saved_feed = await self.feed_rules_api.update_feed_rules(self.feed_id, new_rules)
        except ControlPanelException as e:
            self.logger.warning(f"Saving rules of feed {self.feed_id} failed: {e.message}")
            if previous is not None:
                self.cache.set(self.cache_key, previous)
                self.local_rules = copy.deepcopy(previous)
            else:
                self.cache.delete(self.cache_key)
            raise

        self.cache.invalidate(self.cache_key)
        self.cache.invalidate(('feeds',))

        saved_rules = self.feed_rules_api.normalize_feed_rules((saved_feed or {}).get('rules'))
        self._reset(saved_rules)
        self.logger.info(f"Saved rules of feed {self.feed_id}")
        return self.local_rules

    def to_dict(self) -> Dict[str, Any]:
        return {
            'feed_id': self.feed_id,
            'rules': self.local_rules,
            'counts': self.section_counts(),
            'has_pending_changes': self.has_pending_changes,
            'pending_changes': self.pending_change_count,
        }
