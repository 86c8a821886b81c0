"""
Markup rules validation
"""

from typing import Any, List, Tuple

from models import MarkupRulesConfig
from utils.operators import is_number


def _price(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def validate_markup_rules(config: MarkupRulesConfig) -> Tuple[bool, List[str]]:
    """Check markup tiers

    Returns:
        Tuple[bool, List[str]]: Validity and the error messages
    """
    errors: List[str] = []

    if not config.rules:
        errors.append('At least one rule is required')
        return False, errors
    if not isinstance(config.rules, list):
        errors.append('Rules must be an array')
        return False, errors

    for index, rule in enumerate(config.rules, start=1):
        if not isinstance(rule, dict):
            errors.append(f'Rule {index}: Rule must be an object')
            continue

        percent = rule.get('percent')
        if percent is None or not is_number(percent):
            errors.append(f'Rule {index}: Percent is required and must be a number')
        elif float(percent) < 0:
            errors.append(f'Rule {index}: Percent cannot be negative')

        min_price = rule.get('minPrice')
        max_price = rule.get('maxPrice')
        if min_price is not None and not _price(min_price):
            errors.append(f'Rule {index}: Min price must be a number')
            min_price = None
        if max_price is not None and not _price(max_price):
            errors.append(f'Rule {index}: Max price must be a number')
            max_price = None

        if min_price is not None and max_price is not None and min_price >= max_price:
            errors.append(f'Rule {index}: Min price must be less than max price')

        if min_price is not None and min_price < 0:
            errors.append(f'Rule {index}: Min price cannot be negative')
        if max_price is not None and max_price < 0:
            errors.append(f'Rule {index}: Max price cannot be negative')

    if config.price_fields is not None:
        if not isinstance(config.price_fields, list):
            errors.append('Price fields must be an array')
        elif len(config.price_fields) == 0:
            errors.append('Price fields array cannot be empty if provided')

    return len(errors) == 0, errors
