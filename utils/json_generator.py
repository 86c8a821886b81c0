"""
Combined rules JSON generator

Builds the single ingestion config document of a feed out of its enabled
rules, normalizing keys to snake_case.
"""

import logging
import re
from typing import Any, Dict, List

from models import IngestionRule, parse_json_blob

logger = logging.getLogger(__name__)

_SCORING_KEYS = ('field_name', 'field_value', 'target_field', 'score_multiplier')
_STANDARD_KEYS = ('source_field', 'source_value', 'target_field', 'target_value')


def normalize_key(key: str) -> str:
    """``Price Per Carat`` style keys to snake_case"""
    key = re.sub(r'\s+', '_', key)
    key = re.sub(r'([A-Z])', r'_\1', key)
    key = key.lower()
    return re.sub(r'^_', '', key)


def normalize_string(value: str) -> str:
    return re.sub(r'\s+', '_', value)


def normalize_object(obj: Any) -> Any:
    """Recursively normalize dict keys and string values"""
    if not obj:
        return obj
    if isinstance(obj, str):
        return normalize_string(obj)
    if isinstance(obj, list):
        return [normalize_object(item) for item in obj]
    if isinstance(obj, dict):
        return {normalize_key(key): normalize_object(value) for key, value in obj.items()}
    return obj


def clean_object(obj: Dict[str, Any]) -> Dict[str, Any]:
    """Drop None values, empty lists and empty dicts"""
    cleaned = {}
    for key, value in obj.items():
        if value is None:
            continue
        if isinstance(value, (list, dict)) and not value:
            continue
        cleaned[key] = value
    return cleaned


def _standardized_rule() -> Dict[str, Any]:
    return {
        'source_field': None,
        'source_value': None,
        'target_field': None,
        'target_value': None,
        'condition': {},
    }


def _extra_condition(config: Dict[str, Any], known_keys) -> Dict[str, Any]:
    return {key: value for key, value in config.items() if key not in known_keys}


def _or_default(value: Any, default: Any) -> Any:
    return default if value is None else value


def get_combined_config(all_feed_rules: List[IngestionRule], selected_feed: str) -> Dict[str, Any]:
    """Combine the enabled rules of a feed into one config document

    Args:
        all_feed_rules: Rules of any rule type
        selected_feed: Feed key to build the document for

    Returns:
        Dict[str, Any]: ``feed_name`` plus one list per rule family
    """
    config: Dict[str, Any] = {
        'feed_name': selected_feed,
        'field_mapping': [],
        'markup_rules': [],
        'value_transform_rules': {},
        'scoring_rules': [],
        'filter_rules': [],
        'default_values': {},
    }

    for rule in all_feed_rules or []:
        if not rule.enabled or rule.feed_key != selected_feed:
            continue

        rule_config = parse_json_blob(rule.config, {}) or {}
        standardized = _standardized_rule()

        if rule.rule_type == 'origin':
            for key in _STANDARD_KEYS:
                standardized[key] = rule_config.get(key) or None
            target = config['field_mapping']

        elif rule.rule_type == 'pricing':
            standardized['source_field'] = rule_config.get('source_field') or None
            standardized['target_field'] = rule_config.get('target_field') or None
            standardized['condition'] = {
                'min_price': _or_default(rule_config.get('min_price'), 0),
                'max_price': _or_default(rule_config.get('max_price'), 0),
                'percent': _or_default(rule_config.get('percent'), 0),
                'fixed_amount': _or_default(rule_config.get('fixed_amount'), 0),
            }
            target = config['markup_rules']

        elif rule.rule_type == 'scoring':
            standardized['source_field'] = rule_config.get('field_name') or None
            standardized['source_value'] = rule_config.get('field_value') or None
            standardized['target_field'] = rule_config.get('target_field') or None
            standardized['target_value'] = _or_default(rule_config.get('score_multiplier'), 1)
            extra = _extra_condition(rule_config, _SCORING_KEYS)
            if extra:
                standardized['condition'] = extra
            target = config['scoring_rules']

        elif rule.rule_type == 'filter':
            standardized['source_field'] = rule_config.get('field_name') or None
            standardized['source_value'] = rule_config.get('field_value') or None
            standardized['condition'] = {'operator': rule_config.get('operator') or 'equals'}
            target = config['filter_rules']

        else:
            for key in _STANDARD_KEYS:
                standardized[key] = rule_config.get(key) or None
            extra = _extra_condition(rule_config, _STANDARD_KEYS)
            if extra:
                standardized['condition'] = extra
            target = config.setdefault(f"{normalize_key(rule.rule_type)}_rules", [])

        target.append(normalize_object(clean_object(standardized)))

    for key in ('field_mapping', 'markup_rules', 'scoring_rules', 'filter_rules',
                'value_transform_rules', 'default_values'):
        if not config[key]:
            del config[key]

    return config
