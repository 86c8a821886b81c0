"""
Health check routes
"""

from aiohttp import web
from aiohttp_cors import CorsConfig

from handlers.health import HealthHandler


def setup_health_routes(app: web.Application, cors: CorsConfig = None):
    """Set up the health check routes

    Args:
        app: aiohttp application
        cors: CORS configuration
    """

    health_handler = HealthHandler()

    app['health_handler'] = health_handler

    # Basic health check
    route = app.router.add_get('/health', health_handler.health_check)
    if cors:
        cors.add(route)

    # Upstream and component status
    route = app.router.add_get('/api/status', health_handler.detailed_status)
    if cors:
        cors.add(route)

    # API info
    route = app.router.add_get('/api/info', health_handler.api_info)
    if cors:
        cors.add(route)

    # Probe one upstream
    route = app.router.add_get('/api/services/{service}/health', health_handler.service_health)
    if cors:
        cors.add(route)
