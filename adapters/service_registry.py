"""
Upstream service registry

Owns the shared aiohttp session and the gateway, Typesense and Supabase
adapters, and reports their configuration and health.
"""

import logging
from datetime import datetime
from typing import Dict, Any, Optional

import aiohttp

from config import ControlPanelConfig
from exceptions import AdapterException, ControlPanelException
from adapters.http_client import HttpClient
from adapters.gateway_client import GatewayClient
from adapters.typesense_client import TypesenseClient
from adapters.supabase_client import SupabaseClient


class ServiceRegistry:
    """Registry of the upstream services"""

    HEALTH_ENDPOINTS = {
        'gateway': '/health',
        'typesense': '/health',
        'supabase': '/auth/v1/health',
    }

    def __init__(self, config: ControlPanelConfig):
        """Initialize the registry

        Args:
            config: Control panel configuration
        """
        self.config = config
        self.logger = logging.getLogger(__name__)
        self._session: Optional[aiohttp.ClientSession] = None
        self._is_running = False

        self.gateway = GatewayClient(config)
        self.typesense = TypesenseClient(config)
        self.supabase = SupabaseClient(config)

        self._services: Dict[str, HttpClient] = {
            'gateway': self.gateway,
            'typesense': self.typesense,
            'supabase': self.supabase,
        }
        self._last_checks: Dict[str, Dict[str, Any]] = {}

    async def start(self):
        """Open the shared session and hand it to every adapter"""
        if self._is_running:
            return

        timeout = aiohttp.ClientTimeout(
            total=self.config.adapter.request_timeout,
            connect=self.config.adapter.connection_timeout
        )
        connector = aiohttp.TCPConnector(
            limit=self.config.adapter.pool_size,
            limit_per_host=self.config.adapter.limit_per_host
        )
        self._session = aiohttp.ClientSession(timeout=timeout, connector=connector)

        for client in self._services.values():
            client.bind_session(self._session)

        self._is_running = True
        self.logger.info("Service registry started")

    async def stop(self):
        if not self._is_running:
            return

        self._is_running = False

        for client in self._services.values():
            await client.stop()

        if self._session:
            await self._session.close()
            self._session = None

        self.logger.info("Service registry stopped")

    def get_client(self, service_name: str) -> HttpClient:
        if service_name not in self._services:
            raise AdapterException(service_name, f"Service '{service_name}' not found", "NOT_FOUND")
        return self._services[service_name]

    async def get_all_services(self) -> Dict[str, Any]:
        """Configuration state and request counters of every upstream

        Returns:
            Dict[str, Any]: Service list and counts
        """
        services_list = []
        for name, client in self._services.items():
            entry = client.get_statistics()
            entry.update({
                'name': name,
                'url': client.base_url,
                'missing': client.missing_settings(),
                'last_check': self._last_checks.get(name),
            })
            services_list.append(entry)

        return {
            'services': services_list,
            'total_count': len(services_list),
            'configured_count': len([s for s in services_list if s['configured']]),
        }

    async def health_check_service(self, service_name: str) -> Dict[str, Any]:
        """Probe one upstream once

        Args:
            service_name: gateway, typesense or supabase

        Returns:
            Dict[str, Any]: Health check result
        """
        client = self.get_client(service_name)
        start_time = datetime.utcnow()

        try:
            response = await client.request('GET', self.HEALTH_ENDPOINTS[service_name])
            response_time = (datetime.utcnow() - start_time).total_seconds() * 1000
            result = {
                'service': service_name,
                'status': 'healthy' if response.ok else 'unhealthy',
                'response_time': response_time,
                'timestamp': datetime.utcnow().isoformat()
            }
            if not response.ok:
                result['error'] = f"HTTP {response.status}"

        except ControlPanelException as e:
            result = {
                'service': service_name,
                'status': 'unhealthy',
                'error': e.message,
                'timestamp': datetime.utcnow().isoformat()
            }

        self._last_checks[service_name] = result
        return result
