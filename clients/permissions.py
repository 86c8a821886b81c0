"""
Permissions API
"""

from typing import Dict, Any, List

from adapters.supabase_client import SupabaseClient


class PermissionsApi:

    def __init__(self, supabase: SupabaseClient):
        self.supabase = supabase

    async def get_all(self) -> List[Dict[str, Any]]:
        rows, _ = await self.supabase.select(
            'permissions', {'select': '*', 'order': 'resource.asc,action.asc'}
        )
        return rows

    async def get_grouped(self) -> List[Dict[str, Any]]:
        """Permissions grouped by resource, in first-seen order"""
        groups: Dict[str, Dict[str, Any]] = {}
        for permission in await self.get_all():
            resource = permission.get('resource')
            if resource not in groups:
                groups[resource] = {'resource': resource, 'permissions': []}
            groups[resource]['permissions'].append(permission)
        return list(groups.values())

    async def get_by_resource(self, resource: str) -> List[Dict[str, Any]]:
        rows, _ = await self.supabase.select(
            'permissions', {'select': '*', 'resource': f'eq.{resource}', 'order': 'action.asc'}
        )
        return rows
