"""
Schema API

Module and column listings of the target data model, used as mapping
targets in the rules editors.
"""

from typing import Dict, Any, List

from adapters.gateway_client import GatewayClient

COLUMNS_PATH = '/schema/columns'


class SchemaApi:

    def __init__(self, gateway: GatewayClient):
        self.gateway = gateway

    async def get_modules(self) -> List[Dict[str, Any]]:
        data = await self.gateway.request_json('GET', COLUMNS_PATH)
        if isinstance(data, list):
            return data
        if isinstance(data, dict):
            if isinstance(data.get('modules'), list):
                return data['modules']
            return [{'name': name, 'label': name} for name in data]
        return []

    async def get_module_columns(self, module: str) -> Dict[str, Any]:
        return await self.gateway.request_json('GET', COLUMNS_PATH, params={'modules': module})
