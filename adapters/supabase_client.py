"""
Supabase adapter

Talks to Supabase Auth (``/auth/v1``) and PostgREST (``/rest/v1``) over
plain HTTP. Filters use PostgREST syntax, e.g. ``{'id': 'eq.5'}``.
"""

from typing import Dict, Any, List, Optional, Tuple

from config import ControlPanelConfig
from adapters.http_client import HttpClient
from exceptions import UpstreamServiceError


class SupabaseClient(HttpClient):
    """HTTP client of the Supabase project"""

    def __init__(self, config: ControlPanelConfig):
        super().__init__('Supabase', config, config.supabase.url)

    def missing_settings(self) -> List[str]:
        missing = []
        if not self.config.supabase.url:
            missing.append('NEXT_PUBLIC_SUPABASE_URL')
        if not self.config.supabase.anon_key:
            missing.append('NEXT_PUBLIC_SUPABASE_ANON_KEY')
        return missing

    def configuration_hint(self) -> Optional[str]:
        return 'Set NEXT_PUBLIC_SUPABASE_URL and NEXT_PUBLIC_SUPABASE_ANON_KEY in your environment variables'

    def default_headers(self) -> Dict[str, str]:
        anon_key = self.config.supabase.anon_key
        return {
            'Content-Type': 'application/json',
            'apikey': anon_key,
            'Authorization': f'Bearer {anon_key}',
        }

    async def get_user(self, access_token: str) -> Optional[Dict[str, Any]]:
        """Resolve the user behind an access token, None when it is not valid"""
        if not access_token:
            return None

        response = await self.request(
            'GET', '/auth/v1/user',
            headers={'Authorization': f'Bearer {access_token}'}
        )
        if response.status in (401, 403):
            return None
        if not response.ok:
            raise UpstreamServiceError(
                self.service_name, 'GET', '/auth/v1/user', response.status, response.text
            )
        return response.json()

    async def select(self, table: str, params: Any = None,
                     count: bool = False,
                     access_token: Optional[str] = None) -> Tuple[List[Dict[str, Any]], Optional[int]]:
        """Select rows

        Args:
            table: Table name
            params: Query parameters (``select``, filters, ``order``, ``limit``)
            count: Ask PostgREST for the exact total
            access_token: Read as this user instead of the anon role

        Returns:
            Tuple: Rows and the total from ``Content-Range`` (None unless counted)
        """
        path = f'/rest/v1/{table}'
        headers = {}
        if count:
            headers['Prefer'] = 'count=exact'
        if access_token:
            headers['Authorization'] = f'Bearer {access_token}'
        response = await self.request('GET', path, params=params, headers=headers)
        if not response.ok:
            raise UpstreamServiceError(self.service_name, 'GET', path, response.status, response.text)

        rows = response.json() or []
        total = response.content_range_total() if count else None
        return rows, total

    async def insert(self, table: str, rows: Any) -> List[Dict[str, Any]]:
        return await self._write('POST', table, None, rows)

    async def update(self, table: str, filters: Dict[str, str], data: Dict[str, Any]) -> List[Dict[str, Any]]:
        return await self._write('PATCH', table, filters, data)

    async def delete(self, table: str, filters: Dict[str, str]) -> None:
        path = f'/rest/v1/{table}'
        response = await self.request('DELETE', path, params=filters)
        if not response.ok:
            raise UpstreamServiceError(self.service_name, 'DELETE', path, response.status, response.text)

    async def _write(self, method: str, table: str, filters: Optional[Dict[str, str]],
                     body: Any) -> List[Dict[str, Any]]:
        path = f'/rest/v1/{table}'
        response = await self.request(
            method, path, params=filters, json_body=body,
            headers={'Prefer': 'return=representation'}
        )
        if not response.ok:
            raise UpstreamServiceError(self.service_name, method, path, response.status, response.text)
        return response.json() or []
