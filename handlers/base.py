"""
Base handler

Shared response envelopes and request parsing for every handler.
"""

import json
import logging
from datetime import datetime
from typing import Any, Dict, Optional

from aiohttp import web

from exceptions import (
    ConfigurationMissingError, ControlPanelException, create_error_response, get_http_status
)


class BaseHandler:
    """Base class of the HTTP handlers

    Page endpoints answer with ``{success, data, message, timestamp}``;
    proxy endpoints mirror the upstream body and report errors as
    ``{error, details}``.
    """

    def __init__(self):
        self.logger = logging.getLogger(self.__class__.__name__)

    def success_response(self, data: Any = None, message: str = "OK") -> web.Response:
        response_data = {
            'success': True,
            'data': data,
            'message': message,
            'timestamp': datetime.utcnow().isoformat() + 'Z'
        }

        return web.json_response(response_data)

    def error_response(self, message: str, code: int = 400, error_code: str = None) -> web.Response:
        response_data = {
            'success': False,
            'error': message,
            'error_code': error_code,
            'timestamp': datetime.utcnow().isoformat() + 'Z'
        }

        return web.json_response(response_data, status=code)

    def exception_response(self, exception: ControlPanelException) -> web.Response:
        """Page envelope for a control panel exception"""
        return web.json_response(create_error_response(exception), status=get_http_status(exception))

    def proxy_response(self, data: Any, status: int = 200,
                       headers: Optional[Dict[str, str]] = None) -> web.Response:
        return web.json_response(data, status=status, headers=headers)

    def proxy_error_response(self, error: str, status: int, details: Any = None,
                             hint: Optional[str] = None) -> web.Response:
        """``{error, details}`` body of the proxy routes"""
        body: Dict[str, Any] = {'error': error}
        if details is not None:
            body['details'] = details
        if hint is not None:
            body['hint'] = hint
        return web.json_response(body, status=status)

    def configuration_error_response(self, exception: ConfigurationMissingError) -> web.Response:
        return self.proxy_error_response(
            exception.message, 500, exception.details_text, exception.hint
        )

    async def get_request_json(self, request: web.Request) -> Dict[str, Any]:
        """JSON body of the request, ``{}`` for other content types

        Raises:
            web.HTTPBadRequest: The body is not valid JSON
        """
        try:
            if request.content_type == 'application/json':
                return await request.json()
            else:
                return {}
        except json.JSONDecodeError as e:
            self.logger.error(f"JSON decode error: {e}")
            raise web.HTTPBadRequest(text="Invalid JSON format")

    def get_query_params(self, request: web.Request) -> Dict[str, str]:
        return dict(request.query)

    def get_int(self, value: Any, name: str) -> int:
        """Parse an integer parameter

        Raises:
            web.HTTPBadRequest: Not an integer
        """
        try:
            return int(value)
        except (TypeError, ValueError):
            raise web.HTTPBadRequest(text=f"{name} must be an integer")

    def get_tenant_id(self, request: web.Request, data: Optional[Dict[str, Any]] = None) -> int:
        """``tenant_id`` from the body or query, else the configured default"""
        value = (data or {}).get('tenant_id')
        if value is None:
            value = request.query.get('tenant_id')
        if value is None or value == '':
            config = request.app.get('config')
            return config.service.default_tenant_id if config else 1
        return self.get_int(value, 'tenant_id')

    def validate_required_fields(self, data: Dict[str, Any], required_fields: list) -> Optional[str]:
        """Error message naming missing fields, None when all are present"""
        missing_fields = []
        for field in required_fields:
            if field not in data or data[field] is None:
                missing_fields.append(field)

        if missing_fields:
            return f"Missing required fields: {', '.join(missing_fields)}"

        return None

    def get_app_component(self, request: web.Request, component_name: str) -> Any:
        """Component registered on the application

        Raises:
            web.HTTPInternalServerError: The component is not registered
        """
        app = request.app
        if component_name not in app:
            self.logger.error(f"Component '{component_name}' not found in app")
            raise web.HTTPInternalServerError(text=f"Component '{component_name}' not available")

        return app[component_name]
