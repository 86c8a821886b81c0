"""
Rules pending-state machine

Buffers creates, updates and deletes of a (feed_key, rule_type) rule
table until an explicit batch save. Rows created locally carry negative
temporary ids until the server assigns real ones.
"""

import asyncio
import copy
import logging
from datetime import datetime, timezone
from typing import Dict, List, Any, Optional, Set, Tuple

from exceptions import BatchSaveError, ResourceNotFoundError
from models import IngestionRule, PendingCreateRule, RuleType
from utils.constants import RULE_TEMPLATE_CONFIGS

logger = logging.getLogger(__name__)

# Fields that live on the rule itself; everything else goes into ``config``
TOP_LEVEL_FIELDS = ('name', 'priority', 'enabled', 'notes')


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z')


class RulesState:
    """Local rules plus the pending change buffers of one rule table"""

    def __init__(self, feed_key: str, rule_type: str, tenant_id: int,
                 rules: Optional[List[IngestionRule]] = None, template_name: Optional[str] = None):
        self.selected_feed = feed_key
        self.selected_rule_type = rule_type
        self.tenant_id = tenant_id
        self.template_name = template_name or rule_type

        self.local_rules: List[IngestionRule] = list(rules or [])
        self.pending_changes: Dict[int, Dict[str, Any]] = {}
        self.pending_deletes: Set[int] = set()
        self.pending_creates: List[PendingCreateRule] = []
        self.manually_edited_rows: Set[int] = set()

        self.editing_rule_id: Optional[int] = None
        self.edit_form_data: Dict[str, Any] = {}

        self._temp_id_counter = -1

    @property
    def has_pending_changes(self) -> bool:
        return bool(self.pending_changes) or bool(self.pending_deletes) or bool(self.pending_creates)

    @property
    def is_pricing(self) -> bool:
        return self.selected_rule_type == RuleType.PRICING.value

    def load_rules(self, rules: List[IngestionRule]) -> None:
        """Replace the local rows with server rows"""
        self.local_rules = list(rules)

    def next_temp_id(self) -> int:
        temp_id = self._temp_id_counter
        self._temp_id_counter -= 1
        return temp_id

    def get_rule(self, rule_id: int) -> IngestionRule:
        for rule in self.local_rules:
            if rule.id == rule_id:
                return rule
        raise ResourceNotFoundError('Rule', rule_id)

    def get_display_rules(self) -> List[IngestionRule]:
        """Rows not pending deletion, ordered by priority"""
        return sorted(
            (r for r in self.local_rules if r.id not in self.pending_deletes),
            key=lambda r: r.priority
        )

    def _replace_local(self, updated: IngestionRule) -> None:
        self.local_rules = [updated if r.id == updated.id else r for r in self.local_rules]

    def _find_pending_create(self, temp_id: int) -> Optional[int]:
        for index, create in enumerate(self.pending_creates):
            if create.temp_id == temp_id:
                return index
        return None

    def _patch_pending_create(self, temp_id: int, patch: Dict[str, Any]) -> None:
        index = self._find_pending_create(temp_id)
        if index is None:
            return
        create = self.pending_creates[index]
        for key, value in patch.items():
            if hasattr(create, key) and key != 'temp_id':
                setattr(create, key, value)

    def stage_patch(self, rule_id: int, patch: Dict[str, Any]) -> None:
        """Record a patch in the right buffer without touching local rows

        Persisted rows merge into ``pending_changes``; temporary rows
        rewrite their pending create.
        """
        if rule_id > 0:
            existing = self.pending_changes.get(rule_id, {})
            self.pending_changes[rule_id] = dict(existing, **patch)
        else:
            self._patch_pending_create(rule_id, patch)

    def stage_update(self, rule_id: int, patch: Dict[str, Any]) -> IngestionRule:
        """Apply a patch to a row and buffer it for the next save"""
        rule = self.get_rule(rule_id)
        allowed = {k: v for k, v in patch.items() if k in TOP_LEVEL_FIELDS or k == 'config'}
        if 'config' in allowed:
            allowed['config'] = copy.deepcopy(allowed['config'])

        updated = rule.with_changes(updated_at=_now_iso(), **allowed)
        self._replace_local(updated)
        self.stage_patch(rule_id, allowed)
        return updated

    def stage_create(self, name: Optional[str] = None, config: Optional[Dict[str, Any]] = None,
                     priority: Optional[int] = None, enabled: bool = True,
                     notes: str = '') -> IngestionRule:
        """Add a new row with a temporary id and open it for editing

        Without an explicit config the rule type's template default is
        used; pricing rows start right after the last row's max price.
        """
        if config is None:
            template = RULE_TEMPLATE_CONFIGS.get(self.template_name, RULE_TEMPLATE_CONFIGS['generic'])
            config = copy.deepcopy(template)
            display_rules = self.get_display_rules()
            if self.is_pricing and display_rules:
                last_config = display_rules[-1].config or {}
                last_max = last_config.get('max_price')
                config['min_price'] = (last_max if last_max is not None else 0) + 1
                config['source_field'] = last_config.get('source_field') or []
                config['target_field'] = last_config.get('target_field') or []

        if priority is None:
            priority = len(self.local_rules) + len(self.pending_creates)

        pending = PendingCreateRule(
            temp_id=self.next_temp_id(),
            tenant_id=self.tenant_id,
            feed_key=self.selected_feed,
            rule_type=self.selected_rule_type,
            priority=priority,
            enabled=enabled,
            config=config,
            name=name or f"New {self.selected_rule_type} Rule",
            notes=notes,
        )
        self.pending_creates.append(pending)

        local_rule = pending.to_rule()
        local_rule.created_at = local_rule.updated_at = _now_iso()
        self.local_rules.append(local_rule)

        self.start_edit(local_rule.id)
        return local_rule

    def stage_delete(self, rule_id: int) -> None:
        """Buffer a delete; a temporary row is simply dropped"""
        if rule_id < 0:
            self.pending_creates = [c for c in self.pending_creates if c.temp_id != rule_id]
            self.local_rules = [r for r in self.local_rules if r.id != rule_id]
        else:
            self.get_rule(rule_id)
            self.pending_deletes.add(rule_id)
            self.pending_changes.pop(rule_id, None)

        self.manually_edited_rows.discard(rule_id)
        if self.editing_rule_id == rule_id:
            self.cancel_edit()

    def start_edit(self, rule_id: int) -> None:
        rule = self.get_rule(rule_id)
        self.editing_rule_id = rule.id
        self.edit_form_data = {
            'name': rule.name,
            'priority': rule.priority,
            'enabled': rule.enabled,
            'notes': rule.notes,
            'config': copy.deepcopy(rule.config),
        }

    def cancel_edit(self) -> None:
        self.editing_rule_id = None
        self.edit_form_data = {}

    def change_config_in_row(self, field: str, value: Any) -> None:
        """Edit one field of the row being edited"""
        if self.editing_rule_id is None:
            return

        if field in TOP_LEVEL_FIELDS:
            self.edit_form_data[field] = value
            return

        current_config = self.edit_form_data.get('config')
        if current_config is None:
            current_config = self.get_rule(self.editing_rule_id).config or {}
        self.edit_form_data['config'] = dict(current_config, **{field: value})

    def save_edit(self) -> Optional[IngestionRule]:
        """Commit the edit form of the row being edited into the buffers"""
        if self.editing_rule_id is None:
            return None

        rule = self.get_rule(self.editing_rule_id)
        form = self.edit_form_data
        update_data = {
            'name': form.get('name', rule.name),
            'priority': form.get('priority', rule.priority),
            'enabled': form.get('enabled', rule.enabled),
            'notes': form.get('notes', rule.notes),
            'config': form.get('config') or rule.config,
        }
        updated = self.stage_update(rule.id, update_data)
        self.cancel_edit()
        return updated

    def mark_manual_edit(self, rule_id: int) -> None:
        self.manually_edited_rows.add(rule_id)

    def build_batch(self) -> Tuple[List[Dict[str, Any]], List[Tuple[int, Dict[str, Any]]], List[int]]:
        """Creates, updates and deletes to send, in that order"""
        creates = [c.to_create_input() for c in self.pending_creates]
        updates = [
            (rule_id, data) for rule_id, data in self.pending_changes.items()
            if rule_id > 0 and rule_id not in self.pending_deletes
        ]
        deletes = [rule_id for rule_id in self.pending_deletes if rule_id > 0]
        return creates, updates, deletes

    def clear_pending(self) -> None:
        """Drop every buffer after a save; manual edit marks go too since the rows are reloaded"""
        self.pending_changes = {}
        self.pending_deletes = set()
        self.pending_creates = []
        self.manually_edited_rows = set()
        self.cancel_edit()

    def to_dict(self) -> Dict[str, Any]:
        return {
            'feed_key': self.selected_feed,
            'rule_type': self.selected_rule_type,
            'tenant_id': self.tenant_id,
            'rules': [r.to_dict() for r in self.get_display_rules()],
            'pending_changes': {str(k): v for k, v in self.pending_changes.items()},
            'pending_deletes': sorted(self.pending_deletes),
            'pending_creates': [c.temp_id for c in self.pending_creates],
            'manually_edited_rows': sorted(self.manually_edited_rows),
            'editing_rule_id': self.editing_rule_id,
            'edit_form_data': self.edit_form_data,
            'has_pending_changes': self.has_pending_changes,
        }


class RulesBatchSaver:
    """Flushes the buffers of a RulesState as concurrent API calls

    The calls are not ordered against each other and not atomic. Any
    failure fails the whole batch and leaves the buffers untouched, even
    when some calls already took effect on the server.
    """

    def __init__(self, rules_api):
        self.rules_api = rules_api
        self.logger = logging.getLogger(__name__)

    async def save(self, state: RulesState, reload: bool = True) -> Dict[str, int]:
        """Save every pending change

        Args:
            state: Rules state to flush
            reload: Refetch the rule table after a successful save

        Returns:
            Dict[str, int]: Number of creates, updates and deletes sent

        Raises:
            BatchSaveError: At least one call failed
        """
        creates, updates, deletes = state.build_batch()
        counts = {'creates': len(creates), 'updates': len(updates), 'deletes': len(deletes)}

        operations = []
        labels = []
        for payload in creates:
            operations.append(self.rules_api.create(payload))
            labels.append({'operation': 'create', 'name': payload.get('name')})
        for rule_id, data in updates:
            operations.append(self.rules_api.update(rule_id, data))
            labels.append({'operation': 'update', 'id': rule_id})
        for rule_id in deletes:
            operations.append(self.rules_api.delete(rule_id))
            labels.append({'operation': 'delete', 'id': rule_id})

        if not operations:
            return counts

        self.logger.info(
            f"Saving {state.selected_feed}/{state.selected_rule_type}: "
            f"{counts['creates']} creates, {counts['updates']} updates, {counts['deletes']} deletes"
        )

        results = await asyncio.gather(*operations, return_exceptions=True)

        failures = []
        for label, result in zip(labels, results):
            if isinstance(result, Exception):
                failures.append(dict(label, error=str(result)))
        if failures:
            self.logger.error(f"Batch save failed: {failures}")
            raise BatchSaveError(failures, len(operations))

        state.clear_pending()

        if reload:
            rules = await self.rules_api.get_by_feed(
                state.selected_feed, state.tenant_id, state.selected_rule_type
            )
            state.load_rules(rules)

        return counts
