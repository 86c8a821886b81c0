"""
Pricing rule helpers
"""

from typing import List, Optional, Set

from models import IngestionRule


def validate_price_range(min_price: float, max_price: float) -> bool:
    return min_price < max_price


def calculate_next_min_price(new_max_price: float) -> float:
    """Min price prefilled into the row after one whose max changed"""
    return new_max_price + 1


def can_auto_update_min_price(rule_id: int, manually_edited_rows: Set[int]) -> bool:
    return rule_id not in manually_edited_rows


def get_next_rule(display_rules: List[IngestionRule], current_rule_id: int) -> Optional[IngestionRule]:
    """Rule following ``current_rule_id`` in display order, None at the end"""
    for index, rule in enumerate(display_rules):
        if rule.id == current_rule_id:
            if index < len(display_rules) - 1:
                return display_rules[index + 1]
            return None
    return None
