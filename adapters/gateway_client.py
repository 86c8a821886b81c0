"""
API gateway adapter

Every call carries the server-side ``X-API-Key``. The gateway fronts the
PostgREST tables (``/rest/...``), the scheduler, the worker and the schema
service.
"""

from typing import Dict, List, Optional

from config import ControlPanelConfig
from adapters.http_client import HttpClient


class GatewayClient(HttpClient):
    """HTTP client of the external API gateway"""

    def __init__(self, config: ControlPanelConfig):
        super().__init__('Gateway', config, config.gateway.url)

    def missing_settings(self) -> List[str]:
        return [] if self.config.gateway.api_key else ['GATEWAY_API_KEY']

    def configuration_hint(self) -> Optional[str]:
        return 'Set GATEWAY_API_KEY in your environment variables'

    def default_headers(self) -> Dict[str, str]:
        return {
            'Content-Type': 'application/json',
            'X-API-Key': self.config.gateway.api_key,
        }
