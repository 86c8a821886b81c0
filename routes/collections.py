"""
Typesense collection routes
"""

from aiohttp import web
from aiohttp_cors import CorsConfig

from handlers.collections import CollectionsHandler


def setup_collection_routes(app: web.Application, cors: CorsConfig = None):
    """Set up the Typesense collection routes"""

    collections_handler = CollectionsHandler()

    app['collections_handler'] = collections_handler

    route = app.router.add_get('/api/collections', collections_handler.get_collections)
    if cors:
        cors.add(route)

    # Connection diagnostic, registered before the {name} routes
    route = app.router.add_get('/api/collections/test', collections_handler.test_connection)
    if cors:
        cors.add(route)

    route = app.router.add_get('/api/collections/{name}/last-update', collections_handler.get_last_update)
    if cors:
        cors.add(route)
