"""
Feed and rule type catalog

Feed keys and rule types are derived from the rules table. A key that has
no rules yet exists only as a draft held here until its first rule is
saved; drafts are kept per tenant.
"""

import asyncio
import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, List, Optional, Set

from clients.rules import RulesApi
from exceptions import OperationNotAllowedError, ValidationException
from utils.constants import BUILTIN_RULE_TYPES, RULE_TEMPLATE_CONFIGS
from validators.rule_validation import (
    can_delete_feed, can_delete_rule_type, validate_feed_key, validate_rule_type
)

logger = logging.getLogger(__name__)


class TemplateRegistry:
    """Maps rule types to the template that shapes their config"""

    def __init__(self):
        self._templates: Dict[str, str] = {}

    def assign(self, rule_type: str, template_name: str) -> None:
        if template_name not in RULE_TEMPLATE_CONFIGS:
            raise ValidationException(f"Unknown rule template: {template_name}")
        self._templates[rule_type] = template_name

    def template_for(self, rule_type: str) -> str:
        """Assigned template, then the built-in one, then ``generic``"""
        template_name = self._templates.get(rule_type)
        if template_name:
            return template_name
        if rule_type in BUILTIN_RULE_TYPES:
            return rule_type
        return 'generic'

    def has_template(self, rule_type: str) -> bool:
        return rule_type in self._templates or rule_type in BUILTIN_RULE_TYPES

    def default_config(self, rule_type: str) -> dict:
        return dict(RULE_TEMPLATE_CONFIGS[self.template_for(rule_type)])


@dataclass
class CopyResult:
    source_feed: str
    target_feed: str
    copied: int

    @property
    def message(self) -> str:
        return f'Successfully copied {self.copied} rules from "{self.source_feed}" to "{self.target_feed}"'


class CatalogManager:
    """Feed keys and rule types of each tenant, server list plus drafts"""

    def __init__(self, rules_api: RulesApi, templates: Optional[TemplateRegistry] = None):
        self.rules_api = rules_api
        self.templates = templates or TemplateRegistry()
        self._draft_feeds: Dict[int, Set[str]] = defaultdict(set)
        self._draft_rule_types: Dict[int, Set[str]] = defaultdict(set)

    async def get_feed_keys(self, tenant_id: int) -> List[str]:
        db_keys = await self.rules_api.get_feed_keys(tenant_id)
        return sorted(set(db_keys) | self._draft_feeds[tenant_id])

    async def get_rule_types(self, tenant_id: int) -> List[str]:
        db_types = await self.rules_api.get_rule_types(tenant_id)
        return sorted(set(db_types) | self._draft_rule_types[tenant_id])

    async def add_feed(self, tenant_id: int, feed_key: str) -> str:
        """Register a draft feed key and return it as the new selection"""
        key = (feed_key or '').strip()
        if not key:
            raise ValidationException('Please enter a new feed key')

        existing = await self.get_feed_keys(tenant_id)
        if key not in existing:
            valid, error = validate_feed_key(key, existing)
            if not valid:
                raise ValidationException(error)
            self._draft_feeds[tenant_id].add(key)
            logger.info(f"Added draft feed {key} for tenant {tenant_id}")
        return key

    async def add_rule_type(self, tenant_id: int, rule_type: str, template_name: str = 'generic') -> str:
        """Register a draft rule type with its template"""
        name = (rule_type or '').strip()
        existing = await self.get_rule_types(tenant_id)
        if name not in existing:
            valid, error = validate_rule_type(name, existing)
            if not valid:
                raise ValidationException(error)

        self.templates.assign(name, template_name)
        if name not in existing:
            self._draft_rule_types[tenant_id].add(name)
            logger.info(f"Added draft rule type {name} ({template_name}) for tenant {tenant_id}")
        return name

    async def copy_feed(self, tenant_id: int, source_feed: str, target_feed: str) -> CopyResult:
        """Duplicate every rule of ``source_feed`` under ``target_feed``"""
        new_key = (target_feed or '').strip()
        if not new_key:
            raise ValidationException('Please enter a new feed key')
        if not source_feed:
            raise ValidationException('Please select a feed to copy from')

        all_rules = await self.rules_api.get_by_feed(source_feed, tenant_id)
        if not all_rules:
            raise OperationNotAllowedError(
                'No rules found in the selected feed to copy', 'CatalogManager',
                {'feed_key': source_feed}
            )

        copies = []
        for rule in all_rules:
            notes = f"{rule.notes} (copied from {source_feed})" if rule.notes else f"Copied from {source_feed}"
            copies.append(self.rules_api.create({
                'feed_key': new_key,
                'rule_type': rule.rule_type,
                'name': f"{rule.name} (copy)",
                'priority': rule.priority,
                'enabled': rule.enabled,
                'config': rule.config,
                'notes': notes,
                'tenant_id': tenant_id,
            }))
        await asyncio.gather(*copies)

        self._draft_feeds[tenant_id].add(new_key)
        logger.info(f"Copied {len(all_rules)} rules from {source_feed} to {new_key}")
        return CopyResult(source_feed, new_key, len(all_rules))

    async def delete_feed(self, tenant_id: int, feed_key: str, selected_feed: Optional[str] = None) -> str:
        """Forget a feed key that has no rules

        Returns:
            str: The selection afterwards, the first remaining feed when the
            deleted one was selected, '' when none remains
        """
        count = await self.rules_api.count_rules_by_feed(feed_key, tenant_id)
        if not can_delete_feed(count):
            raise OperationNotAllowedError(
                f'Cannot delete feed "{feed_key}". It has {count} rule(s). Please delete all rules first.',
                'CatalogManager', {'feed_key': feed_key, 'rule_count': count}
            )

        remaining = [f for f in await self.get_feed_keys(tenant_id) if f != feed_key]
        self._draft_feeds[tenant_id].discard(feed_key)

        if selected_feed == feed_key or selected_feed is None:
            return remaining[0] if remaining else ''
        return selected_feed

    async def delete_rule_type(self, tenant_id: int, rule_type: str,
                               selected_rule_type: Optional[str] = None) -> str:
        count = await self.rules_api.count_rules_by_type(rule_type, tenant_id)
        if not can_delete_rule_type(count):
            raise OperationNotAllowedError(
                f'Cannot delete rule type "{rule_type}". It has {count} rule(s). Please delete all rules first.',
                'CatalogManager', {'rule_type': rule_type, 'rule_count': count}
            )

        remaining = [t for t in await self.get_rule_types(tenant_id) if t != rule_type]
        self._draft_rule_types[tenant_id].discard(rule_type)

        if selected_rule_type == rule_type or selected_rule_type is None:
            return remaining[0] if remaining else ''
        return selected_rule_type
