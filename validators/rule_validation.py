"""
Feed key, rule type and rule config validation
"""

import re
from typing import Any, Dict, List, Optional, Tuple

_FEED_KEY_PATTERN = re.compile(r'^[a-zA-Z0-9_-]+$')
_RULE_TYPE_PATTERN = re.compile(r'^[a-zA-Z0-9_\- ]+$')

# (valid, error message)
NameCheck = Tuple[bool, Optional[str]]


def validate_feed_key(feed_key: str, existing_feeds: List[str]) -> NameCheck:
    if not feed_key or not feed_key.strip():
        return False, 'Feed key cannot be empty'

    trimmed = feed_key.strip()
    if trimmed in existing_feeds:
        return False, 'Feed key already exists'

    if not _FEED_KEY_PATTERN.match(trimmed):
        return False, 'Feed key can only contain letters, numbers, dashes, and underscores'

    return True, None


def validate_rule_type(rule_type: str, existing_rule_types: List[str]) -> NameCheck:
    if not rule_type or not rule_type.strip():
        return False, 'Rule type cannot be empty'

    trimmed = rule_type.strip()
    if trimmed in existing_rule_types:
        return False, 'Rule type already exists'

    if not _RULE_TYPE_PATTERN.match(trimmed):
        return False, 'Rule type can only contain letters, numbers, spaces, dashes, and underscores'

    return True, None


def can_delete_feed(rule_count: int) -> bool:
    return rule_count == 0


def can_delete_rule_type(rule_count: int) -> bool:
    return rule_count == 0


def validate_rule_config(rule_type: str, config: Optional[Dict[str, Any]]) -> NameCheck:
    """Per rule type checks of a rule's ``config``; custom types only need a config"""
    if not config:
        return False, 'Configuration is required'

    if rule_type == 'pricing':
        min_price = config.get('min_price')
        max_price = config.get('max_price')
        if min_price is not None and max_price is not None and min_price >= max_price:
            return False, 'Min price must be less than max price'

    elif rule_type == 'origin':
        if not config.get('source_field') or not config.get('target_field'):
            return False, 'Origin rules require source_field and target_field'

    elif rule_type == 'scoring':
        if not config.get('field_name'):
            return False, 'Scoring rules require field_name'

    elif rule_type == 'filter':
        if not config.get('field_name'):
            return False, 'Filter rules require field_name'

    return True, None
