"""
Schedules API

Cron schedules are owned by the gateway's scheduler service.
"""

from typing import Dict, Any, List, Optional

from adapters.gateway_client import GatewayClient
from clients.feeds import first_row

SCHEDULES_PATH = '/scheduler/schedules'


class SchedulesApi:

    def __init__(self, gateway: GatewayClient):
        self.gateway = gateway

    async def get_all(self, tenant_id: Optional[int] = None) -> List[Dict[str, Any]]:
        params = {'tenant_id': str(tenant_id)} if tenant_id else None
        return await self.gateway.request_json('GET', SCHEDULES_PATH, params=params) or []

    async def get_by_id(self, schedule_id: int) -> Dict[str, Any]:
        return await self.gateway.request_json('GET', f'{SCHEDULES_PATH}/{schedule_id}')

    async def create(self, data: Dict[str, Any]) -> Dict[str, Any]:
        result = await self.gateway.request_json('POST', SCHEDULES_PATH, json_body=data)
        return first_row(result)

    async def update(self, schedule_id: int, data: Dict[str, Any]) -> Dict[str, Any]:
        return await self.gateway.request_json('PUT', f'{SCHEDULES_PATH}/{schedule_id}', json_body=data)

    async def delete(self, schedule_id: int) -> None:
        await self.gateway.request_json('DELETE', f'{SCHEDULES_PATH}/{schedule_id}')

    async def execute(self, schedule_id: int) -> Any:
        """Run a schedule once, outside of its cron"""
        return await self.gateway.request_json(
            'POST', f'{SCHEDULES_PATH}/{schedule_id}/execute', json_body={}
        )
