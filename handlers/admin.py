"""
Admin and account handlers

Role management pages, the permission catalogue and the account status
endpoints used by the pending approval page.
"""

from typing import Any, Dict

from aiohttp import web

from auth_service import AuthError
from exceptions import ControlPanelException
from handlers.base import BaseHandler


class AdminHandler(BaseHandler):

    async def list_roles(self, request: web.Request) -> web.Response:
        try:
            roles = await self.get_app_component(request, 'roles_api').get_all()
        except ControlPanelException as e:
            return self.exception_response(e)
        return self.success_response(roles)

    async def create_role(self, request: web.Request) -> web.Response:
        data = await self.get_request_json(request)
        name = (data.get('name') or '').strip()
        if not name:
            return self.error_response('Role name is required', 400, 'VALIDATION_ERROR')

        try:
            role = await self.get_app_component(request, 'roles_api').create(
                name, data.get('description'), data.get('permission_ids') or []
            )
        except ControlPanelException as e:
            return self.exception_response(e)
        return self.success_response(role, "Role created")

    async def update_role(self, request: web.Request) -> web.Response:
        role_id = request.match_info['role_id']
        data = await self.get_request_json(request)
        name = data.get('name')
        if name is not None and not name.strip():
            return self.error_response('Role name must not be empty', 400, 'VALIDATION_ERROR')

        try:
            role = await self.get_app_component(request, 'roles_api').update(
                role_id,
                name=name.strip() if name is not None else None,
                description=data.get('description'),
                permission_ids=data.get('permission_ids')
            )
        except ControlPanelException as e:
            return self.exception_response(e)
        return self.success_response(role, "Role updated")

    async def delete_role(self, request: web.Request) -> web.Response:
        role_id = request.match_info['role_id']
        try:
            await self.get_app_component(request, 'roles_api').delete(role_id)
        except ControlPanelException as e:
            return self.exception_response(e)
        return self.success_response({'id': role_id}, "Role deleted")

    async def list_permissions(self, request: web.Request) -> web.Response:
        permissions_api = self.get_app_component(request, 'permissions_api')
        resource = request.query.get('resource')
        try:
            if resource:
                permissions = await permissions_api.get_by_resource(resource)
            else:
                permissions = await permissions_api.get_grouped()
        except ControlPanelException as e:
            return self.exception_response(e)
        return self.success_response(permissions)

    async def _resolve(self, request: web.Request, with_permissions: bool):
        """Auth context of the caller; these routes sit outside the session guard"""
        context = request.get('auth')
        if context is not None:
            return context

        auth_service = self.get_app_component(request, 'auth_service')
        cookie_name = request.app['config'].supabase.access_token_cookie
        token = auth_service.extract_token(request.headers, request.cookies, cookie_name)
        return await auth_service.resolve_access_token(token, with_permissions=with_permissions)

    def _auth_error_response(self, error: AuthError) -> web.Response:
        return self.error_response(error.message, error.status, error.code)

    async def pending_approval_status(self, request: web.Request) -> web.Response:
        try:
            context = await self._resolve(request, with_permissions=False)
        except AuthError as e:
            return self._auth_error_response(e)
        except ControlPanelException as e:
            return self.exception_response(e)

        profile: Dict[str, Any] = context.profile or {}
        return self.success_response({
            'user_id': context.user_id,
            'email': (context.user or {}).get('email'),
            'is_active': context.is_active,
            'role': context.role,
            'requested_at': profile.get('created_at'),
        })

    async def my_permissions(self, request: web.Request) -> web.Response:
        try:
            context = await self._resolve(request, with_permissions=True)
        except AuthError as e:
            return self._auth_error_response(e)
        except ControlPanelException as e:
            return self.exception_response(e)
        return self.success_response(context.to_dict())
