"""
Control panel handlers

Request handlers of the page-level and proxy routes.
"""

from handlers.health import HealthHandler
from handlers.proxy import ProxyHandler
from handlers.collections import CollectionsHandler
from handlers.dashboard import DashboardHandler
from handlers.rules_editor import RulesEditorHandler
from handlers.feed_rules import FeedRulesHandler
from handlers.admin import AdminHandler

__all__ = [
    'HealthHandler',
    'ProxyHandler',
    'CollectionsHandler',
    'DashboardHandler',
    'RulesEditorHandler',
    'FeedRulesHandler',
    'AdminHandler'
]
