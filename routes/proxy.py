"""
Gateway proxy routes
"""

from aiohttp import web
from aiohttp_cors import CorsConfig

from handlers.proxy import ProxyHandler


def setup_proxy_routes(app: web.Application, cors: CorsConfig = None):
    """Set up the routes forwarded to the API gateway"""
    handler = ProxyHandler()

    app['proxy_handler'] = handler

    routes = [
        app.router.add_get('/api/feeds', handler.get_feeds),
        app.router.add_post('/api/feeds', handler.create_feed),
        app.router.add_patch('/api/feeds', handler.update_feed),
        app.router.add_delete('/api/feeds', handler.delete_feed),
        app.router.add_get('/api/feeds/headers', handler.get_feed_headers),
        app.router.add_get('/api/typesense/health', handler.typesense_health),
        app.router.add_get('/api/scheduler/monitoring', handler.scheduler_monitoring),
        app.router.add_post('/api/schedules/execute', handler.execute_schedule),
        app.router.add_get('/api/schema/columns', handler.get_schema_columns),
        app.router.add_get('/api/workers', handler.get_workers),
    ]

    if cors:
        for route in routes:
            cors.add(route)
