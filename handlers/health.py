"""
Health and status handlers
"""

import time
from datetime import datetime

from aiohttp import web

from api_info import get_api_info
from exceptions import AdapterException
from handlers.base import BaseHandler


class HealthHandler(BaseHandler):
    """Liveness, component status and upstream probes"""

    def __init__(self):
        super().__init__()
        self.start_time = time.time()

    async def health_check(self, request: web.Request) -> web.Response:
        config = request.app.get('config')

        health_data = {
            'status': 'healthy',
            'timestamp': datetime.utcnow().isoformat() + 'Z',
            'uptime': time.time() - self.start_time,
            'version': '1.0.0',
            'environment': config.environment if config else 'unknown'
        }

        return self.success_response(health_data)

    async def detailed_status(self, request: web.Request) -> web.Response:
        """Upstream configuration, cache and session counters"""
        app = request.app
        config = app.get('config')

        components_status = {}

        if 'service_registry' in app:
            components_status['upstreams'] = await app['service_registry'].get_all_services()

        if 'query_cache' in app:
            components_status['query_cache'] = app['query_cache'].get_statistics()

        if 'rules_sessions' in app:
            components_status['rules_sessions'] = app['rules_sessions'].get_statistics()

        status_data = {
            'service': 'ingestion-control-panel',
            'version': '1.0.0',
            'environment': config.environment if config else 'unknown',
            'timestamp': datetime.utcnow().isoformat() + 'Z',
            'uptime': time.time() - self.start_time,
            'components': components_status,
            'configuration': {
                'host': config.service.host if config else 'unknown',
                'port': config.service.port if config else 'unknown',
                'debug': config.service.debug if config else False,
                'gateway_url': config.gateway.url if config else 'unknown'
            }
        }

        return self.success_response(status_data)

    async def service_health(self, request: web.Request) -> web.Response:
        """Probe one upstream: gateway, typesense or supabase"""
        service_name = request.match_info['service']
        registry = self.get_app_component(request, 'service_registry')

        try:
            result = await registry.health_check_service(service_name)
        except AdapterException as e:
            return self.error_response(e.message, 404, e.error_code)

        return self.success_response(result)

    async def api_info(self, request: web.Request) -> web.Response:
        return self.success_response(get_api_info())
