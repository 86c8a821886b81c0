"""
Rules editor routes
"""

from aiohttp import web
from aiohttp_cors import CorsConfig

from handlers.rules_editor import RulesEditorHandler


def setup_rules_editor_routes(app: web.Application, cors: CorsConfig = None):
    """Set up the rules editor routes

    Args:
        app: aiohttp application
        cors: CORS configuration
    """

    rules_handler = RulesEditorHandler()

    app['rules_editor_handler'] = rules_handler

    # Editing sessions
    route = app.router.add_post('/rules/sessions', rules_handler.open_session)
    if cors:
        cors.add(route)

    route = app.router.add_get('/rules/sessions/{session_id}', rules_handler.get_session)
    if cors:
        cors.add(route)

    route = app.router.add_delete('/rules/sessions/{session_id}', rules_handler.close_session)
    if cors:
        cors.add(route)

    route = app.router.add_post('/rules/sessions/{session_id}/changes', rules_handler.stage_change)
    if cors:
        cors.add(route)

    route = app.router.add_post('/rules/sessions/{session_id}/reorder', rules_handler.reorder)
    if cors:
        cors.add(route)

    route = app.router.add_post('/rules/sessions/{session_id}/max-price', rules_handler.change_max_price)
    if cors:
        cors.add(route)

    route = app.router.add_post('/rules/sessions/{session_id}/save', rules_handler.save)
    if cors:
        cors.add(route)

    # Combined JSON config
    route = app.router.add_get('/rules/config', rules_handler.get_combined_config)
    if cors:
        cors.add(route)

    # Feed and rule type catalog
    route = app.router.add_get('/rules/feeds', rules_handler.get_catalog)
    if cors:
        cors.add(route)

    route = app.router.add_post('/rules/feeds', rules_handler.add_feed)
    if cors:
        cors.add(route)

    route = app.router.add_post('/rules/feeds/{feed_key}/copy', rules_handler.copy_feed)
    if cors:
        cors.add(route)

    route = app.router.add_delete('/rules/feeds/{feed_key}', rules_handler.delete_feed)
    if cors:
        cors.add(route)

    route = app.router.add_post('/rules/rule-types', rules_handler.add_rule_type)
    if cors:
        cors.add(route)

    route = app.router.add_delete('/rules/rule-types/{rule_type}', rules_handler.delete_rule_type)
    if cors:
        cors.add(route)
