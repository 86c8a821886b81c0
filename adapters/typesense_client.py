"""
Typesense adapter

Read-only access to the search cluster with the search-scoped API key.
"""

from typing import Dict, List, Optional

from config import ControlPanelConfig
from adapters.http_client import HttpClient


class TypesenseClient(HttpClient):
    """HTTP client of the Typesense cluster"""

    def __init__(self, config: ControlPanelConfig):
        super().__init__('Typesense', config, config.typesense.url)

    def missing_settings(self) -> List[str]:
        missing = []
        if not self.config.typesense.url:
            missing.append('TYPESENSE_URL')
        if not self.config.typesense.api_key:
            missing.append('TYPESENSE_SEARCH_X_TYPESENSE_API_KEY')
        return missing

    def configuration_hint(self) -> Optional[str]:
        return ('Set TYPESENSE_URL and TYPESENSE_SEARCH_X_TYPESENSE_API_KEY '
                '(or NEXT_PUBLIC_TYPESENSE_SEARCH_API_KEY) in your environment variables')

    def default_headers(self) -> Dict[str, str]:
        return {
            'Content-Type': 'application/json',
            'X-TYPESENSE-API-KEY': self.config.typesense.api_key,
        }
