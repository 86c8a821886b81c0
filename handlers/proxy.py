"""
Gateway proxy handlers

Browser requests are forwarded to the API gateway with the server-side
API key. Query strings and bodies pass through; the upstream JSON is
returned as is.
"""

from typing import Any, Dict, List, Optional, Tuple

from aiohttp import web

from exceptions import (
    ConfigurationMissingError, ConnectionException, ExecutionInProgressError, UpstreamServiceError
)
from handlers.base import BaseHandler

FEEDS_CACHE_CONTROL = 'public, s-maxage=30, stale-while-revalidate=60'
SCHEMA_CACHE_CONTROL = 'public, s-maxage=300, stale-while-revalidate=600'
REPRESENTATION = {'Prefer': 'return=representation'}


class ProxyHandler(BaseHandler):
    """Pass-through routes to the API gateway"""

    def _gateway(self, request: web.Request):
        return self.get_app_component(request, 'service_registry').gateway

    @staticmethod
    def _query_pairs(request: web.Request) -> List[Tuple[str, str]]:
        return list(request.query.items())

    async def _forward(self, request: web.Request, method: str, path: str, error: str,
                       params: Any = None, json_body: Any = None,
                       headers: Optional[Dict[str, str]] = None,
                       with_details: bool = True,
                       cache_control: Optional[str] = None,
                       success_body: Any = None) -> web.Response:
        """Call the gateway and translate the outcome

        Args:
            error: ``error`` text of a non-2xx answer
            with_details: Include the upstream body as ``details``
            cache_control: ``Cache-Control`` of a successful answer
            success_body: Fixed body of a successful answer
        """
        gateway = self._gateway(request)
        try:
            response = await gateway.request(
                method, path, params=params, json_body=json_body, headers=headers
            )
            if not response.ok:
                details = (response.text or response.reason) if with_details else None
                return self.proxy_error_response(error, response.status, details)

            body = success_body if success_body is not None else response.json()
        except ConfigurationMissingError as e:
            return self.configuration_error_response(e)
        except ConnectionException as e:
            self.logger.error(f"{method} {path} failed: {e.message}")
            return self.proxy_error_response('Internal server error', 500, e.message)
        except ValueError as e:
            self.logger.error(f"{method} {path} returned invalid JSON: {e}")
            return self.proxy_error_response('Internal server error', 500, str(e))

        headers_out = {'Cache-Control': cache_control} if cache_control else None
        return self.proxy_response(body, headers=headers_out)

    async def _read_json(self, request: web.Request) -> Any:
        try:
            return await request.json()
        except ValueError as e:
            raise web.HTTPBadRequest(text=f"Invalid JSON body: {e}")

    async def get_feeds(self, request: web.Request) -> web.Response:
        return await self._forward(
            request, 'GET', '/rest/sys_feeds', 'Failed to fetch feeds',
            params=self._query_pairs(request), with_details=False,
            cache_control=FEEDS_CACHE_CONTROL
        )

    async def create_feed(self, request: web.Request) -> web.Response:
        body = await self._read_json(request)
        return await self._forward(
            request, 'POST', '/rest/sys_feeds', 'Failed to create feed',
            json_body=body, headers=REPRESENTATION
        )

    async def update_feed(self, request: web.Request) -> web.Response:
        body = await self._read_json(request)
        if not isinstance(body, dict) or body.get('id') in (None, ''):
            return self.proxy_error_response('Feed ID is required', 400)

        update_data = dict(body)
        feed_id = update_data.pop('id')
        self.logger.debug(f"PATCH feed {feed_id}")
        return await self._forward(
            request, 'PATCH', '/rest/sys_feeds', 'Failed to update feed',
            params={'id': f'eq.{feed_id}'}, json_body=update_data, headers=REPRESENTATION
        )

    async def delete_feed(self, request: web.Request) -> web.Response:
        feed_id = request.query.get('id')
        if not feed_id:
            return self.proxy_error_response('Feed ID is required', 400)

        return await self._forward(
            request, 'DELETE', '/rest/sys_feeds', 'Failed to delete feed',
            params={'id': f'eq.{feed_id}'},
            success_body={'message': 'Feed deleted successfully'}
        )

    async def get_feed_headers(self, request: web.Request) -> web.Response:
        feed_key = request.query.get('feedKey')
        if not feed_key:
            return self.proxy_error_response('feedKey parameter is required', 400)

        params = [('feedKey', feed_key)]
        tenant_id = request.query.get('tenant_id')
        if tenant_id:
            params.append(('tenant_id', tenant_id))
        if request.query.get('save') == 'true':
            params.append(('save', 'true'))

        return await self._forward(
            request, 'GET', '/worker/ingestion/headers', 'Failed to fetch header schema', params=params
        )

    async def typesense_health(self, request: web.Request) -> web.Response:
        return await self._forward(
            request, 'GET', '/typesense/health', 'Failed to fetch health from gateway'
        )

    async def scheduler_monitoring(self, request: web.Request) -> web.Response:
        return await self._forward(
            request, 'GET', '/scheduler/monitoring', 'Failed to fetch monitoring snapshot',
            params=self._query_pairs(request)
        )

    async def execute_schedule(self, request: web.Request) -> web.Response:
        schedule_id = request.query.get('id')
        if not schedule_id:
            return self.proxy_error_response('Schedule ID is required', 400)

        dashboard = self.get_app_component(request, 'monitoring_dashboard')
        try:
            result = await dashboard.execute_schedule(schedule_id)
        except ExecutionInProgressError as e:
            return self.proxy_error_response(e.message, 429)
        except ConfigurationMissingError as e:
            return self.configuration_error_response(e)
        except UpstreamServiceError as e:
            return self.proxy_error_response('Failed to execute schedule', e.status, e.error)
        except (ConnectionException, ValueError) as e:
            self.logger.error(f"Executing schedule {schedule_id} failed: {e}")
            return self.proxy_error_response('Internal server error', 500, str(e))

        return self.proxy_response(result)

    async def get_schema_columns(self, request: web.Request) -> web.Response:
        modules = request.query.get('modules')
        params = {'modules': modules} if modules else None
        return await self._forward(
            request, 'GET', '/schema/columns', 'Failed to fetch schema columns',
            params=params, cache_control=SCHEMA_CACHE_CONTROL
        )

    async def get_workers(self, request: web.Request) -> web.Response:
        return await self._forward(
            request, 'GET', '/rest/sys_workers', 'Failed to fetch workers',
            params=self._query_pairs(request), with_details=False
        )
