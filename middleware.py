"""
Control panel middleware

Request ids, request logging, error envelopes and security headers.
"""

import time
import uuid
import logging
import traceback
from datetime import datetime
from typing import Callable

from aiohttp import web
from aiohttp.web_middlewares import middleware

from auth_middleware import session_guard_middleware
from exceptions import ControlPanelException, create_error_response, get_http_status

logger = logging.getLogger(__name__)


@middleware
async def request_id_middleware(request: web.Request, handler: Callable) -> web.Response:
    """Give every request an id and echo it in ``X-Request-ID``"""
    request_id = str(uuid.uuid4())
    request['request_id'] = request_id

    try:
        response = await handler(request)
        response.headers['X-Request-ID'] = request_id
        return response
    except Exception as e:
        # redirects and other HTTP exceptions carry the id too
        if hasattr(e, 'headers'):
            e.headers['X-Request-ID'] = request_id
        raise


QUIET_PATHS = ('/health',)


def _user_label(request: web.Request) -> str:
    context = request.get('auth')
    if context is None:
        return 'anonymous'
    return context.user.get('email') or context.user.get('id') or 'unknown'


@middleware
async def logging_middleware(request: web.Request, handler: Callable) -> web.Response:
    """One line per request with status, duration and the signed-in user

    Liveness probes are logged at debug level.
    """
    start_time = time.monotonic()
    request_id = request.get('request_id', 'unknown')
    level = logging.DEBUG if request.path in QUIET_PATHS else logging.INFO

    try:
        response = await handler(request)
    except web.HTTPException as e:
        duration = time.monotonic() - start_time
        logger.log(level, f"{request.method} {request.path} -> {e.status} ({duration:.3f}s) [{request_id}]")
        raise
    except Exception as e:
        duration = time.monotonic() - start_time
        logger.error(f"{request.method} {request.path} failed after {duration:.3f}s: {e} [{request_id}]")
        raise

    duration = time.monotonic() - start_time
    logger.log(
        level,
        f"{request.method} {request.path} -> {response.status} ({duration:.3f}s) "
        f"user={_user_label(request)} [{request_id}]"
    )

    response.headers['X-Response-Time'] = f"{duration:.3f}s"
    return response


@middleware
async def error_handling_middleware(request: web.Request, handler: Callable) -> web.Response:
    """Turn escaped exceptions into JSON error envelopes

    Control panel exceptions keep their status and error code; anything
    else becomes a 500.
    """
    request_id = request.get('request_id', 'unknown')

    try:
        return await handler(request)

    except web.HTTPException:
        raise

    except ControlPanelException as e:
        logger.warning(f"{e.error_code} in {request.path}: {e.message} - Request-ID: {request_id}")
        error_response = create_error_response(e)
        error_response['request_id'] = request_id
        return web.json_response(error_response, status=get_http_status(e))

    except Exception as e:
        logger.exception(
            f"Unhandled error in {request.path} - "
            f"Error: {str(e)} - "
            f"Request-ID: {request_id}"
        )

        error_response = {
            'success': False,
            'error': 'Internal server error',
            'error_type': type(e).__name__,
            'request_id': request_id,
            'timestamp': datetime.utcnow().isoformat() + 'Z'
        }

        config = request.app.get('config')
        if config and config.service.debug:
            error_response['error_detail'] = str(e)
            error_response['traceback'] = traceback.format_exc()

        return web.json_response(error_response, status=500)


@middleware
async def cors_middleware(request: web.Request, handler: Callable) -> web.Response:
    """CORS headers, only used when aiohttp_cors is not set up"""
    if request.method == 'OPTIONS':
        response = web.Response()
    else:
        response = await handler(request)

    response.headers['Access-Control-Allow-Origin'] = '*'
    response.headers['Access-Control-Allow-Methods'] = 'GET, POST, PUT, PATCH, DELETE, OPTIONS'
    response.headers['Access-Control-Allow-Headers'] = 'Content-Type, Authorization, X-Requested-With'
    response.headers['Access-Control-Expose-Headers'] = 'X-Request-ID, X-Response-Time'
    response.headers['Access-Control-Max-Age'] = '86400'

    return response


@middleware
async def security_middleware(request: web.Request, handler: Callable) -> web.Response:
    response = await handler(request)

    response.headers['X-Content-Type-Options'] = 'nosniff'
    response.headers['X-Frame-Options'] = 'DENY'
    response.headers['X-XSS-Protection'] = '1; mode=block'
    response.headers['Strict-Transport-Security'] = 'max-age=31536000; includeSubDomains'
    response.headers['Referrer-Policy'] = 'strict-origin-when-cross-origin'

    return response


def setup_middleware(app: web.Application):
    """Install the middleware chain

    Requests pass top to bottom, responses bottom to top.
    """
    # 1. Request id (outermost)
    app.middlewares.append(request_id_middleware)

    # 2. Error envelopes
    app.middlewares.append(error_handling_middleware)

    # 3. Request logging
    app.middlewares.append(logging_middleware)

    # 4. Security headers
    app.middlewares.append(security_middleware)

    # 5. CORS, unless aiohttp_cors handles it
    if not app.get('cors_enabled'):
        app.middlewares.append(cors_middleware)

    # 6. Session guard for the page routes
    app.middlewares.append(session_guard_middleware)

    logger.info("Middleware setup completed")
