"""
Row ordering and price chaining on top of RulesState
"""

import logging
from typing import Any, Dict, List, Optional

from managers.rules_state import RulesState
from models import IngestionRule
from utils.price_calculations import calculate_next_min_price, can_auto_update_min_price, get_next_rule

logger = logging.getLogger(__name__)


def array_move(items: List[Any], from_index: int, to_index: int) -> List[Any]:
    moved = list(items)
    item = moved.pop(from_index)
    moved.insert(to_index, item)
    return moved


def apply_drag_reorder(state: RulesState, active_id: int, over_id: int) -> bool:
    """Move ``active_id`` to the position of ``over_id`` and renumber

    Visible rows get priorities 0..N-1; rows pending deletion keep their
    priority and stay out of the numbering.

    Returns:
        bool: False when nothing moved
    """
    if active_id == over_id:
        return False

    display_rules = state.get_display_rules()
    ids = [r.id for r in display_rules]
    if active_id not in ids or over_id not in ids:
        return False

    reordered = array_move(display_rules, ids.index(active_id), ids.index(over_id))
    renumbered = [rule.with_changes(priority=index) for index, rule in enumerate(reordered)]

    deleted_rows = [r for r in state.local_rules if r.id in state.pending_deletes]
    state.local_rules = renumbered + deleted_rows

    for rule in renumbered:
        state.stage_patch(rule.id, {'priority': rule.priority})

    if state.editing_rule_id is not None and 'priority' in state.edit_form_data:
        for rule in renumbered:
            if rule.id == state.editing_rule_id:
                state.edit_form_data['priority'] = rule.priority

    logger.debug(f"Moved rule {active_id} to the position of {over_id}")
    return True


def apply_max_price_change(state: RulesState, rule_id: int, new_max_price: float) -> Optional[IngestionRule]:
    """Carry a pricing row's new max price into the next row's min price

    Returns:
        Optional[IngestionRule]: The next row after the update, or None when
        it was left alone
    """
    if not state.is_pricing:
        return None

    next_rule = get_next_rule(state.get_display_rules(), rule_id)
    if next_rule is None:
        return None
    if not can_auto_update_min_price(next_rule.id, state.manually_edited_rows):
        return None

    new_min_price = calculate_next_min_price(new_max_price)
    next_config = next_rule.config or {}
    if next_config.get('min_price') == new_min_price:
        return None

    updated_config: Dict[str, Any] = dict(next_config, min_price=new_min_price)
    updated = next_rule.with_changes(config=updated_config)
    state.local_rules = [updated if r.id == updated.id else r for r in state.local_rules]

    if state.editing_rule_id == next_rule.id:
        form_config = state.edit_form_data.get('config') or next_config
        state.edit_form_data['config'] = dict(form_config, min_price=new_min_price)

    state.stage_patch(next_rule.id, {'config': updated_config})
    return updated
