"""
Feed rules API

The filters, field mappings, transformations, calculated fields and shard
rules of a feed live in its ``rules`` JSON column; the standalone field
mappings in ``field_mapping``.
"""

import logging
from typing import Dict, Any, List

from clients.feeds import FeedsApi
from exceptions import ValidationException
from models import FEED_RULES_SECTIONS, ValidationResult, empty_feed_rules_config, parse_json_blob
from validators.feed_rules_validation import validate_feed_rules

_UNPARSABLE = object()


class FeedRulesApi:
    """Feed level rules configuration"""

    def __init__(self, feeds: FeedsApi):
        self.feeds = feeds
        self.logger = logging.getLogger(__name__)

    async def get_feed_rules(self, feed_id: int) -> Dict[str, List[Any]]:
        feed = await self.feeds.get_by_id(feed_id)
        return self.normalize_feed_rules(feed.get('rules'))

    def normalize_feed_rules(self, rules: Any) -> Dict[str, List[Any]]:
        """Coerce a stored ``rules`` value into a full FeedRulesConfig

        A legacy bare list is the old filter-only format.
        """
        if not rules:
            return empty_feed_rules_config()

        rules = parse_json_blob(rules, _UNPARSABLE)
        if rules is _UNPARSABLE:
            return empty_feed_rules_config()

        if isinstance(rules, list):
            config = empty_feed_rules_config()
            config['filters'] = rules
            return config

        if not isinstance(rules, dict):
            return empty_feed_rules_config()

        return {
            section: rules[section] if isinstance(rules.get(section), list) else []
            for section in FEED_RULES_SECTIONS
        }

    async def update_feed_rules(self, feed_id: int, rules: Dict[str, Any]) -> Dict[str, Any]:
        """Validate and store a FeedRulesConfig, dropping empty sections

        Raises:
            ValidationException: The config has at least one error
        """
        validation = self.validate_rules(rules)
        if not validation.valid:
            messages = [f"{e.field}: {e.message}" for e in validation.errors if e.type == 'error']
            raise ValidationException(
                f"Invalid rules configuration: {', '.join(messages)}", messages
            )

        clean_rules = {section: rules[section] for section in FEED_RULES_SECTIONS if rules.get(section)}
        return await self.feeds.update(feed_id, {'rules': clean_rules})

    def validate_rules(self, rules: Dict[str, Any]) -> ValidationResult:
        return validate_feed_rules(rules)

    async def get_field_mappings(self, feed_id: int) -> List[Dict[str, Any]]:
        feed = await self.feeds.get_by_id(feed_id)
        mappings = feed.get('field_mapping')
        return mappings if isinstance(mappings, list) else []

    async def update_field_mappings(self, feed_id: int, mappings: List[Dict[str, Any]]) -> Dict[str, Any]:
        self.logger.info(f"Updating {len(mappings)} field mappings for feed {feed_id}")
        return await self.feeds.update(feed_id, {'field_mapping': mappings})
