"""
Roles API

RBAC roles in Supabase; permissions attach through ``role_permissions``
and users through ``profiles.role_id``.
"""

import asyncio
import logging
from typing import Dict, Any, List, Optional

from adapters.supabase_client import SupabaseClient
from exceptions import OperationNotAllowedError, ResourceNotFoundError

ROLE_PERMISSIONS_SELECT = 'permission_id,permissions(*)'


class RolesApi:

    def __init__(self, supabase: SupabaseClient):
        self.supabase = supabase
        self.logger = logging.getLogger(__name__)

    async def get_all(self) -> List[Dict[str, Any]]:
        """Every role with its permissions and user count, system roles first"""
        roles, _ = await self.supabase.select(
            'roles', {'select': '*', 'order': 'is_system.desc,name.asc'}
        )
        return list(await asyncio.gather(*(self._with_details(role) for role in roles)))

    async def get_by_id(self, role_id: str) -> Dict[str, Any]:
        roles, _ = await self.supabase.select('roles', {'select': '*', 'id': f'eq.{role_id}'})
        if not roles:
            raise ResourceNotFoundError('Role', role_id)
        return await self._with_details(roles[0])

    async def _with_details(self, role: Dict[str, Any]) -> Dict[str, Any]:
        permissions, user_count = await asyncio.gather(
            self.get_permissions(role['id']),
            self._count_users(role['id'])
        )
        return dict(role, permissions=permissions, user_count=user_count)

    async def _count_users(self, role_id: str) -> int:
        rows, total = await self.supabase.select(
            'profiles', {'select': 'id', 'role_id': f'eq.{role_id}'}, count=True
        )
        return total if total is not None else len(rows)

    async def create(self, name: str, description: Optional[str] = None,
                     permission_ids: Optional[List[str]] = None) -> Dict[str, Any]:
        rows = await self.supabase.insert('roles', {
            'name': name,
            'description': description or None,
            'is_system': False,
        })
        if not rows:
            raise OperationNotAllowedError('Failed to create role', 'RolesApi')
        role = rows[0]

        if permission_ids:
            await self._insert_permissions(role['id'], permission_ids)

        self.logger.info(f"Created role {name} with {len(permission_ids or [])} permissions")
        return role

    async def update(self, role_id: str, name: Optional[str] = None,
                     description: Optional[str] = None,
                     permission_ids: Optional[List[str]] = None) -> Dict[str, Any]:
        """Update fields, then replace the permission set when one is given"""
        update_data = {}
        if name is not None:
            update_data['name'] = name
        if description is not None:
            update_data['description'] = description

        if update_data:
            rows = await self.supabase.update('roles', {'id': f'eq.{role_id}'}, update_data)
            if not rows:
                raise ResourceNotFoundError('Role', role_id)

        if permission_ids is not None:
            await self.supabase.delete('role_permissions', {'role_id': f'eq.{role_id}'})
            if permission_ids:
                await self._insert_permissions(role_id, permission_ids)

        return await self.get_by_id(role_id)

    async def delete(self, role_id: str) -> None:
        roles, _ = await self.supabase.select('roles', {'select': 'is_system', 'id': f'eq.{role_id}'})
        if not roles:
            raise ResourceNotFoundError('Role', role_id)
        if roles[0].get('is_system'):
            raise OperationNotAllowedError('Cannot delete system role', 'RolesApi', {'role_id': role_id})

        if await self._count_users(role_id) > 0:
            raise OperationNotAllowedError(
                'Cannot delete role that is assigned to users', 'RolesApi', {'role_id': role_id}
            )

        await self.supabase.delete('roles', {'id': f'eq.{role_id}'})
        self.logger.info(f"Deleted role {role_id}")

    async def get_permissions(self, role_id: str) -> List[Dict[str, Any]]:
        rows, _ = await self.supabase.select(
            'role_permissions', {'select': ROLE_PERMISSIONS_SELECT, 'role_id': f'eq.{role_id}'}
        )
        return [row['permissions'] for row in rows if row.get('permissions')]

    async def _insert_permissions(self, role_id: str, permission_ids: List[str]) -> None:
        await self.supabase.insert(
            'role_permissions',
            [{'role_id': role_id, 'permission_id': permission_id} for permission_id in permission_ids]
        )
