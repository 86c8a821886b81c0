"""
Monitoring dashboard routes
"""

from aiohttp import web
from aiohttp_cors import CorsConfig

from handlers.dashboard import DashboardHandler


def setup_dashboard_routes(app: web.Application, cors: CorsConfig = None):
    dashboard_handler = DashboardHandler()

    app['dashboard_handler'] = dashboard_handler

    route = app.router.add_get('/dashboard', dashboard_handler.get_dashboard)
    if cors:
        cors.add(route)
