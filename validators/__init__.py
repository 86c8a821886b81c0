"""
Validators

Feed key and rule type names, per-type rule configs, markup tiers and
the FeedRulesConfig sections.
"""

from .rule_validation import (
    validate_feed_key,
    validate_rule_type,
    validate_rule_config,
    can_delete_feed,
    can_delete_rule_type
)
from .markup_validation import validate_markup_rules
from .feed_rules_validation import (
    validate_feed_rules,
    validate_rules_section,
    format_validation_errors,
    format_validation_warnings
)

__all__ = [
    'validate_feed_key',
    'validate_rule_type',
    'validate_rule_config',
    'can_delete_feed',
    'can_delete_rule_type',
    'validate_markup_rules',
    'validate_feed_rules',
    'validate_rules_section',
    'format_validation_errors',
    'format_validation_warnings'
]
