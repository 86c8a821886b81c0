"""
Managers

Stateful editing components: the rules pending-state machine, reordering
and price chaining, the feed rules editor, the feed/rule type catalog and
the query cache shared by them.
"""

from .query_cache import QueryCache
from .rules_state import RulesState, RulesBatchSaver
from .rule_ordering import apply_drag_reorder, apply_max_price_change
from .feed_rules_editor import FeedRulesEditor
from .catalog_manager import CatalogManager, TemplateRegistry, CopyResult
from .rules_session_store import RulesSessionStore

__all__ = [
    'QueryCache',
    'RulesState',
    'RulesBatchSaver',
    'apply_drag_reorder',
    'apply_max_price_change',
    'FeedRulesEditor',
    'CatalogManager',
    'TemplateRegistry',
    'CopyResult',
    'RulesSessionStore'
]
