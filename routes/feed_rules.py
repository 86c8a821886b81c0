"""
Feed rules and markup routes
"""

from aiohttp import web
from aiohttp_cors import CorsConfig

from handlers.feed_rules import FeedRulesHandler


def setup_feed_rules_routes(app: web.Application, cors: CorsConfig = None):
    """Set up the per-feed rules, field mapping and markup routes"""

    feed_rules_handler = FeedRulesHandler()

    app['feed_rules_handler'] = feed_rules_handler

    route = app.router.add_get('/feeds/markup', feed_rules_handler.list_markup)
    if cors:
        cors.add(route)

    route = app.router.add_get('/feeds/{feed_id}/rules', feed_rules_handler.get_rules)
    if cors:
        cors.add(route)

    route = app.router.add_put('/feeds/{feed_id}/rules', feed_rules_handler.save_rules)
    if cors:
        cors.add(route)

    route = app.router.add_post('/feeds/{feed_id}/rules/validate', feed_rules_handler.validate_rules)
    if cors:
        cors.add(route)

    route = app.router.add_get('/feeds/{feed_id}/field-mappings', feed_rules_handler.get_field_mappings)
    if cors:
        cors.add(route)

    route = app.router.add_put('/feeds/{feed_id}/field-mappings', feed_rules_handler.save_field_mappings)
    if cors:
        cors.add(route)

    route = app.router.add_get('/feeds/{feed_id}/markup-rules', feed_rules_handler.get_markup)
    if cors:
        cors.add(route)

    route = app.router.add_put('/feeds/{feed_id}/markup-rules', feed_rules_handler.save_markup)
    if cors:
        cors.add(route)
