"""
Typed API clients

One class per resource, built on the upstream adapters. Every class
raises UpstreamServiceError when the upstream answers with a non-2xx
status.
"""

from .feeds import FeedsApi
from .rules import RulesApi
from .feed_rules import FeedRulesApi
from .markup_rules import MarkupRulesApi
from .schedules import SchedulesApi
from .collections import CollectionsApi
from .monitoring import MonitoringApi
from .schema import SchemaApi
from .workers import WorkersApi
from .roles import RolesApi
from .permissions import PermissionsApi

__all__ = [
    'FeedsApi',
    'RulesApi',
    'FeedRulesApi',
    'MarkupRulesApi',
    'SchedulesApi',
    'CollectionsApi',
    'MonitoringApi',
    'SchemaApi',
    'WorkersApi',
    'RolesApi',
    'PermissionsApi',
]
