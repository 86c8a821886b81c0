"""
Ingestion rules API

Reads and writes ``ingestion_rules`` directly in Supabase PostgREST.
"""

import logging
from typing import Dict, Any, List, Optional

from adapters.supabase_client import SupabaseClient
from models import IngestionRule

RULES_TABLE = 'ingestion_rules'


class RulesApi:
    """Ingestion rules scoped to (tenant, feed_key, rule_type)"""

    def __init__(self, supabase: SupabaseClient):
        self.supabase = supabase
        self.logger = logging.getLogger(__name__)

    async def get_feed_keys(self, tenant_id: int) -> List[str]:
        rows, _ = await self.supabase.select(
            RULES_TABLE, {'tenant_id': f'eq.{tenant_id}', 'select': 'feed_key'}
        )
        return sorted({row['feed_key'] for row in rows if row.get('feed_key') is not None})

    async def get_rule_types(self, tenant_id: int) -> List[str]:
        rows, _ = await self.supabase.select(
            RULES_TABLE, {'tenant_id': f'eq.{tenant_id}', 'select': 'rule_type'}
        )
        return sorted({row['rule_type'] for row in rows if row.get('rule_type') is not None})

    async def count_rules_by_feed(self, feed_key: str, tenant_id: int) -> int:
        return await self._count({'tenant_id': f'eq.{tenant_id}', 'feed_key': f'eq.{feed_key}'})

    async def count_rules_by_type(self, rule_type: str, tenant_id: int) -> int:
        return await self._count({'tenant_id': f'eq.{tenant_id}', 'rule_type': f'eq.{rule_type}'})

    async def _count(self, filters: Dict[str, str]) -> int:
        params = dict(filters, select='id')
        rows, total = await self.supabase.select(RULES_TABLE, params, count=True)
        return total if total is not None else len(rows)

    async def get_by_feed(self, feed_key: str, tenant_id: int,
                          rule_type: Optional[str] = None) -> List[IngestionRule]:
        """Rules of a feed ordered by priority, optionally of one rule type"""
        params = {
            'tenant_id': f'eq.{tenant_id}',
            'feed_key': f'eq.{feed_key}',
        }
        if rule_type:
            params['rule_type'] = f'eq.{rule_type}'
        params['order'] = 'priority.asc'

        rows, _ = await self.supabase.select(RULES_TABLE, params)
        return [IngestionRule.from_dict(row) for row in rows]

    async def create(self, data: Dict[str, Any]) -> IngestionRule:
        rows = await self.supabase.insert(RULES_TABLE, data)
        self.logger.info(f"Created rule for {data.get('feed_key')}/{data.get('rule_type')}")
        return IngestionRule.from_dict(rows[0])

    async def update(self, rule_id: int, data: Dict[str, Any]) -> Optional[IngestionRule]:
        rows = await self.supabase.update(RULES_TABLE, {'id': f'eq.{rule_id}'}, data)
        self.logger.info(f"Updated rule {rule_id}: {sorted(data)}")
        return IngestionRule.from_dict(rows[0]) if rows else None

    async def delete(self, rule_id: int) -> None:
        await self.supabase.delete(RULES_TABLE, {'id': f'eq.{rule_id}'})
        self.logger.info(f"Deleted rule {rule_id}")
