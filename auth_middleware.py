"""Session guard middleware for the control panel pages."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Iterable

from aiohttp import web
from aiohttp.web_middlewares import middleware

from auth_service import AuthError
from exceptions import ControlPanelException

logger = logging.getLogger(__name__)

DEFAULT_PROTECTED = ("/dashboard", "/feeds", "/schedules", "/workers", "/rules", "/admin")
DEFAULT_PUBLIC = ("/login", "/register", "/logout", "/pending-approval")


def _matches(path: str, prefixes: Iterable[str]) -> bool:
    return any(path.startswith(prefix) for prefix in prefixes)


def _wants_json(request: web.Request) -> bool:
    return "application/json" in request.headers.get("Accept", "")


def _deny(request: web.Request, location: str, status: int, message: str, code: str) -> web.Response:
    if _wants_json(request):
        return web.json_response(
            {
                "success": False,
                "error": message,
                "error_code": code,
                "redirect": location,
                "timestamp": datetime.utcnow().isoformat() + "Z",
            },
            status=status,
        )
    raise web.HTTPFound(location)


@middleware
async def session_guard_middleware(request: web.Request, handler: Callable) -> web.Response:
    path = request.path
    if request.method.upper() == "OPTIONS":
        return await handler(request)

    config = request.app.get("config")
    protected = config.service.protected_routes if config else DEFAULT_PROTECTED
    public = config.service.public_routes if config else DEFAULT_PUBLIC

    if _matches(path, public) or not _matches(path, protected):
        return await handler(request)

    auth_service = request.app.get("auth_service")
    if auth_service is None:
        return web.json_response(
            {
                "success": False,
                "error": "Auth service not initialized",
                "error_code": "AUTH_SERVICE_MISSING",
                "timestamp": datetime.utcnow().isoformat() + "Z",
            },
            status=500,
        )

    cookie_name = config.supabase.access_token_cookie if config else "sb-access-token"
    token = auth_service.extract_token(request.headers, request.cookies, cookie_name)

    try:
        context = await auth_service.resolve_access_token(token)
    except AuthError as exc:
        return _deny(request, "/login", exc.status, exc.message, exc.code)
    except ControlPanelException as exc:
        logger.warning(f"Session check failed for {path}: {exc.message}")
        return _deny(request, "/login", 401, f"Authorization failed: {exc.message}", "UNAUTHORIZED")

    if not context.is_active and path != "/pending-approval":
        return _deny(request, "/pending-approval", 403, "Account is pending approval", "PENDING_APPROVAL")

    if path.startswith("/admin") and not context.is_admin:
        return _deny(request, "/dashboard", 403, "Admin role required", "FORBIDDEN")

    request["auth"] = context
    request["current_user"] = context.user
    return await handler(request)
