"""
Admin and account routes
"""

from aiohttp import web
from aiohttp_cors import CorsConfig

from handlers.admin import AdminHandler


def setup_admin_routes(app: web.Application, cors: CorsConfig = None):
    """Set up role management and account status routes

    Args:
        app: aiohttp application
        cors: CORS configuration
    """

    admin_handler = AdminHandler()

    app['admin_handler'] = admin_handler

    # Roles
    route = app.router.add_get('/admin/roles', admin_handler.list_roles)
    if cors:
        cors.add(route)

    route = app.router.add_post('/admin/roles', admin_handler.create_role)
    if cors:
        cors.add(route)

    route = app.router.add_patch('/admin/roles/{role_id}', admin_handler.update_role)
    if cors:
        cors.add(route)

    route = app.router.add_delete('/admin/roles/{role_id}', admin_handler.delete_role)
    if cors:
        cors.add(route)

    # Permission catalogue
    route = app.router.add_get('/admin/permissions', admin_handler.list_permissions)
    if cors:
        cors.add(route)

    # Account status, resolved from the caller's token
    route = app.router.add_get('/pending-approval/status', admin_handler.pending_approval_status)
    if cors:
        cors.add(route)

    route = app.router.add_get('/me/permissions', admin_handler.my_permissions)
    if cors:
        cors.add(route)
