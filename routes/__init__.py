"""
Control panel routes

Registers every page-level and proxy route.
"""

from aiohttp import web
from aiohttp_cors import CorsConfig

from .health import setup_health_routes
from .proxy import setup_proxy_routes
from .collections import setup_collection_routes
from .dashboard import setup_dashboard_routes
from .rules_editor import setup_rules_editor_routes
from .feed_rules import setup_feed_rules_routes
from .admin import setup_admin_routes


def setup_routes(app: web.Application, cors: CorsConfig = None):
    """Set up all routes

    Args:
        app: aiohttp application
        cors: CORS configuration
    """

    # Health and API info
    setup_health_routes(app, cors)

    # Gateway proxy
    setup_proxy_routes(app, cors)

    # Typesense collections
    setup_collection_routes(app, cors)

    # Monitoring dashboard
    setup_dashboard_routes(app, cors)

    # Rules editor and catalog
    setup_rules_editor_routes(app, cors)

    # Feed rules, field mappings and markup
    setup_feed_rules_routes(app, cors)

    # Roles, permissions and account status
    setup_admin_routes(app, cors)
