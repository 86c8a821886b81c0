"""
Markup rules API

Markup tiers are stored in the feed's ``markup_rules`` column, either as
a bare list (default price fields) or as ``{rules, priceFields}``.
"""

import logging
from typing import Dict, Any, List, Optional, Union

from clients.feeds import FeedsApi
from exceptions import ValidationException
from models import MarkupRulesConfig
from validators.markup_validation import validate_markup_rules

DEFAULT_PRICE_FIELDS = [
    'price',
    'TotalPrice',
    'price_per_carat',
    'Price Per Carat',
]


def normalize_markup_rules(markup_rules: Any) -> Optional[MarkupRulesConfig]:
    if not markup_rules:
        return None

    if isinstance(markup_rules, list):
        return MarkupRulesConfig(rules=markup_rules, price_fields=list(DEFAULT_PRICE_FIELDS))

    if isinstance(markup_rules, dict) and isinstance(markup_rules.get('rules'), list):
        return MarkupRulesConfig(
            rules=markup_rules['rules'],
            price_fields=markup_rules.get('priceFields') or list(DEFAULT_PRICE_FIELDS)
        )

    return None


def denormalize_markup_rules(config: MarkupRulesConfig) -> Union[List[Dict[str, Any]], Dict[str, Any]]:
    """Storage form; default price fields keep the legacy bare list"""
    if (config.price_fields or []) == DEFAULT_PRICE_FIELDS:
        return config.rules
    return {'rules': config.rules, 'priceFields': config.price_fields}


class MarkupRulesApi:
    """Per feed markup tiers"""

    def __init__(self, feeds: FeedsApi):
        self.feeds = feeds
        self.logger = logging.getLogger(__name__)

    normalize_markup_rules = staticmethod(normalize_markup_rules)
    denormalize_markup_rules = staticmethod(denormalize_markup_rules)

    async def get_all_feeds_with_markup(self) -> List[Dict[str, Any]]:
        return await self.feeds.get_all()

    async def get_markup_rules(self, feed_id: int) -> Optional[MarkupRulesConfig]:
        feed = await self.feeds.get_by_id(feed_id)
        return normalize_markup_rules(feed.get('markup_rules'))

    async def update_markup_rules(self, feed_id: int, config: MarkupRulesConfig) -> Dict[str, Any]:
        valid, errors = self.validate_markup_rules(config)
        if not valid:
            raise ValidationException(f"Invalid markup rules: {', '.join(errors)}", errors)

        return await self.feeds.update(feed_id, {'markup_rules': denormalize_markup_rules(config)})

    def validate_markup_rules(self, config: MarkupRulesConfig):
        return validate_markup_rules(config)
