"""
Ingestion control panel service entry point
"""

import asyncio
import logging
import signal
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from aiohttp import web

from app import create_app
from config import ControlPanelConfig


def setup_logging(config: ControlPanelConfig):
    """Configure root logging: rotating file plus stdout"""
    log_level = getattr(logging, config.logging.level.upper(), logging.INFO)

    log_file = config.logging.file
    log_path = Path(log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    logging.basicConfig(
        level=log_level,
        format=config.logging.format,
        handlers=[
            RotatingFileHandler(
                log_file,
                maxBytes=config.logging.max_size,
                backupCount=config.logging.backup_count
            ),
            logging.StreamHandler(sys.stdout)
        ]
    )

    # Third party loggers
    logging.getLogger('aiohttp').setLevel(logging.WARNING)
    logging.getLogger('asyncio').setLevel(logging.WARNING)


def log_upstreams(app: web.Application, logger: logging.Logger):
    """Log the base URL of each upstream and any settings it still lacks"""
    registry = app['service_registry']
    for name in ('gateway', 'typesense', 'supabase'):
        client = registry.get_client(name)
        missing = client.missing_settings()
        if missing:
            logger.warning(f"Upstream {name} not configured, missing: {', '.join(missing)}")
        else:
            logger.info(f"Upstream {name}: {client.base_url}")


async def main():
    try:
        environment = sys.argv[1] if len(sys.argv) > 1 else "development"
        config_file = sys.argv[2] if len(sys.argv) > 2 else None
        config = ControlPanelConfig(config_file=config_file, environment=environment)

        setup_logging(config)
        logger = logging.getLogger(__name__)

        logger.info(f"Starting control panel in {environment} environment")

        if not config.validate():
            logger.error("Configuration validation failed")
            sys.exit(1)

        app = await create_app(config)

        runner = web.AppRunner(app)
        await runner.setup()

        host = config.service.host
        port = config.service.port

        site = web.TCPSite(runner, host, port)
        await site.start()

        logger.info(f"Control panel started on http://{host}:{port}")
        logger.info(f"Health check: http://{host}:{port}/health")
        logger.info(f"API info: http://{host}:{port}/api/info")
        log_upstreams(app, logger)

        stop_event = asyncio.Event()

        def signal_handler():
            logger.info("Received shutdown signal")
            stop_event.set()

        if sys.platform != 'win32':
            loop = asyncio.get_running_loop()
            for sig in (signal.SIGTERM, signal.SIGINT):
                loop.add_signal_handler(sig, signal_handler)

        await stop_event.wait()
        await shutdown(runner)

    except Exception as e:
        logging.error(f"Failed to start control panel: {e}")
        sys.exit(1)


async def shutdown(runner: web.AppRunner):
    """Stop accepting requests and run the cleanup hooks"""
    logger = logging.getLogger(__name__)
    logger.info("Shutting down control panel...")

    try:
        await runner.cleanup()
        logger.info("Control panel shutdown complete")

    except Exception as e:
        logger.error(f"Error during shutdown: {e}")


if __name__ == '__main__':
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("\nShutdown requested by user")
