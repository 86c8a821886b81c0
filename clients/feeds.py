"""
Feeds API

CRUD over ``sys_feeds`` through the gateway's PostgREST passthrough.
"""

import logging
from typing import Dict, Any, List

from adapters.gateway_client import GatewayClient
from exceptions import ResourceNotFoundError

FEEDS_PATH = '/rest/sys_feeds'
REPRESENTATION = {'Prefer': 'return=representation'}


def first_row(result: Any) -> Any:
    """PostgREST writes return a list; callers want the single row"""
    if isinstance(result, list):
        return result[0] if result else None
    return result


class FeedsApi:
    """Feed configurations"""

    def __init__(self, gateway: GatewayClient):
        self.gateway = gateway
        self.logger = logging.getLogger(__name__)

    async def get_all(self) -> List[Dict[str, Any]]:
        return await self.gateway.request_json(
            'GET', FEEDS_PATH, params={'order': 'created_at.desc'}
        ) or []

    async def get_by_id(self, feed_id: int) -> Dict[str, Any]:
        rows = await self.gateway.request_json(
            'GET', FEEDS_PATH, params={'id': f'eq.{feed_id}'}
        ) or []
        if not rows:
            raise ResourceNotFoundError('Feed', feed_id)
        return rows[0]

    async def create(self, data: Dict[str, Any]) -> Dict[str, Any]:
        result = await self.gateway.request_json(
            'POST', FEEDS_PATH, json_body=data, headers=REPRESENTATION
        )
        return first_row(result)

    async def update(self, feed_id: int, data: Dict[str, Any]) -> Dict[str, Any]:
        body = {key: value for key, value in data.items() if key != 'id'}
        result = await self.gateway.request_json(
            'PATCH', FEEDS_PATH, params={'id': f'eq.{feed_id}'},
            json_body=body, headers=REPRESENTATION
        )
        self.logger.info(f"Updated feed {feed_id}: {sorted(body)}")
        return first_row(result)

    async def delete(self, feed_id: int) -> None:
        await self.gateway.request_json('DELETE', FEEDS_PATH, params={'id': f'eq.{feed_id}'})
        self.logger.info(f"Deleted feed {feed_id}")

    async def fetch_header_schema(self, feed_key: str, tenant_id: int,
                                  save: bool = False) -> Dict[str, Any]:
        """Ask the worker to sample the feed and infer its field schema"""
        params = {'feedKey': feed_key, 'tenant_id': str(tenant_id)}
        if save:
            params['save'] = 'true'
        return await self.gateway.request_json('GET', '/worker/ingestion/headers', params=params)
