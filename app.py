"""
Control panel application factory

Creates the aiohttp application and wires the upstream clients, the
page-level managers and the auth service into it.
"""

import logging
from aiohttp import web
from aiohttp_cors import setup as cors_setup, ResourceOptions

from config import ControlPanelConfig
from middleware import setup_middleware
from routes import setup_routes
from adapters.service_registry import ServiceRegistry
from auth_service import SupabaseAuthService
from clients import (
    FeedsApi, RulesApi, FeedRulesApi, MarkupRulesApi, SchedulesApi,
    MonitoringApi, RolesApi, PermissionsApi
)
from managers.catalog_manager import CatalogManager
from managers.query_cache import QueryCache
from managers.rules_session_store import RulesSessionStore
from monitors.dashboard import MonitoringDashboard
from scheduler.execution_guard import ExecutionGuard

logger = logging.getLogger(__name__)


async def create_app(config: ControlPanelConfig) -> web.Application:
    """Create the aiohttp application

    Args:
        config: Control panel configuration

    Returns:
        web.Application: Configured application
    """
    logger.info("Creating control panel application")

    app = web.Application()

    app['config'] = config

    cors = cors_setup(app, defaults={
        "*": ResourceOptions(
            allow_credentials=True,
            expose_headers="*",
            allow_headers="*",
            allow_methods="*"
        )
    })
    app['cors_enabled'] = True

    setup_middleware(app)

    setup_routes(app, cors)

    await init_components(app, config)

    app.on_startup.append(startup_handler)
    app.on_cleanup.append(cleanup_handler)

    logger.info("Control panel application created successfully")
    return app


async def init_components(app: web.Application, config: ControlPanelConfig):
    """Build the components stored on the application

    Args:
        app: aiohttp application
        config: Control panel configuration
    """
    logger.info("Initializing components")

    try:
        # Upstream adapters
        registry = ServiceRegistry(config)
        app['service_registry'] = registry

        # Typed API clients
        feeds_api = FeedsApi(registry.gateway)
        app['feeds_api'] = feeds_api
        app['rules_api'] = RulesApi(registry.supabase)
        app['feed_rules_api'] = FeedRulesApi(feeds_api)
        app['markup_rules_api'] = MarkupRulesApi(feeds_api)
        app['schedules_api'] = SchedulesApi(registry.gateway)
        app['monitoring_api'] = MonitoringApi(registry.gateway)
        app['roles_api'] = RolesApi(registry.supabase)
        app['permissions_api'] = PermissionsApi(registry.supabase)

        # Page state
        app['query_cache'] = QueryCache(config)
        app['catalog_manager'] = CatalogManager(app['rules_api'])
        app['rules_sessions'] = RulesSessionStore(config.service.rules_session_ttl_seconds)

        # Manual schedule execution and monitoring
        app['execution_guard'] = ExecutionGuard.from_config(config)
        app['monitoring_dashboard'] = MonitoringDashboard(
            app['monitoring_api'],
            app['schedules_api'],
            app['query_cache'],
            app['execution_guard'],
            poll_interval_seconds=config.monitoring.poll_interval_seconds,
            alert_threshold=config.monitoring.alert_error_rate_threshold
        )

        # Session guard
        app['auth_service'] = SupabaseAuthService(registry.supabase, app['roles_api'])

        logger.info("Components initialized successfully")

    except Exception as e:
        logger.error(f"Failed to initialize components: {e}")
        raise


async def startup_handler(app: web.Application):
    logger.info("Starting control panel components")

    try:
        await app['service_registry'].start()
        logger.info("All components started successfully")

    except Exception as e:
        logger.error(f"Failed to start components: {e}")
        raise


async def cleanup_handler(app: web.Application):
    logger.info("Stopping control panel components")

    try:
        if 'rules_sessions' in app:
            app['rules_sessions'].prune()

        if 'query_cache' in app:
            app['query_cache'].clear()

        if 'service_registry' in app:
            await app['service_registry'].stop()

        logger.info("All components stopped successfully")

    except Exception as e:
        logger.error(f"Error during cleanup: {e}")
