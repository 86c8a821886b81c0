"""
Typesense collection handlers
"""

from aiohttp import web

from clients.collections import CollectionsApi
from exceptions import ConfigurationMissingError, ConnectionException, UpstreamServiceError, mask_key
from handlers.base import BaseHandler


class CollectionsHandler(BaseHandler):
    """Collections of the search cluster, read with the search API key"""

    def _typesense(self, request: web.Request):
        return self.get_app_component(request, 'service_registry').typesense

    def _api(self, request: web.Request) -> CollectionsApi:
        return CollectionsApi(self._typesense(request))

    async def get_collections(self, request: web.Request) -> web.Response:
        try:
            collections = await self._api(request).get_all()
        except ConfigurationMissingError as e:
            return self.configuration_error_response(e)
        except UpstreamServiceError as e:
            if e.status == 401:
                return self.proxy_error_response(
                    'Typesense authentication failed', 401,
                    'Invalid or missing API key. Please check TYPESENSE_SEARCH_X_TYPESENSE_API_KEY environment variable.',
                    'Make sure the API key is correct and has read permissions for collections'
                )
            return self.proxy_error_response('Failed to fetch collections from Typesense', e.status, e.error)
        except (ConnectionException, ValueError) as e:
            self.logger.error(f"Error fetching collections: {e}")
            return self.proxy_error_response('Internal server error', 500, str(e))

        return self.proxy_response(collections)

    async def get_last_update(self, request: web.Request) -> web.Response:
        name = request.match_info.get('name')
        if not name:
            return self.proxy_error_response('Collection name is required', 400)

        try:
            last_updated_at = await self._api(request).get_last_update(name)
        except ConfigurationMissingError as e:
            return self.configuration_error_response(e)
        except UpstreamServiceError as e:
            return self.proxy_error_response('Failed to fetch last update', e.status, e.error)
        except (ConnectionException, ValueError) as e:
            self.logger.error(f"Error fetching last update of {name}: {e}")
            return self.proxy_error_response('Internal server error', 500, str(e))

        return self.proxy_response({'last_updated_at': last_updated_at})

    async def test_connection(self, request: web.Request) -> web.Response:
        """Diagnostic call of ``GET /collections`` reporting what was sent"""
        typesense = self._typesense(request)
        api_key = typesense.config.typesense.api_key
        if not typesense.is_configured:
            return self.proxy_response({
                'error': 'Missing configuration',
                'hasUrl': bool(typesense.config.typesense.url),
                'hasKey': bool(api_key),
            })

        test_url = f"{typesense.base_url}/collections"
        try:
            response = await typesense.request('GET', '/collections')
        except ConnectionException as e:
            return self.proxy_error_response('Test failed', 500, e.message)

        try:
            response_data = response.json()
        except ValueError:
            response_data = response.text

        return self.proxy_response({
            'success': response.ok,
            'status': response.status,
            'statusText': response.reason,
            'url': test_url,
            'headersSent': {
                'x-typesense-api-key': mask_key(api_key),
                'Content-Type': 'application/json',
            },
            'response': response_data,
            'rawResponse': response.text,
        })
