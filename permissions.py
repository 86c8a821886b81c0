"""
Roles and permission flags

Roles map to an explicit table of permission names. A role backed by a
database role id with at least one permission row uses those rows instead
of the table.
"""

from enum import Enum
from typing import Dict, FrozenSet, Iterable, List, Optional


class Role(Enum):
    ADMIN = "admin"
    DEVELOPER = "developer"
    STAFF = "staff"
    ACCOUNTANT = "accountant"
    USER = "user"

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional['Role']:
        try:
            return cls((value or 'user').lower())
        except ValueError:
            return None


_ALL = frozenset(Role)
_OPERATORS = frozenset({Role.DEVELOPER, Role.ADMIN, Role.STAFF})
_VIEWERS = _OPERATORS | {Role.USER}
_RULE_EDITORS = _OPERATORS | {Role.ACCOUNTANT}
_ADMINS = frozenset({Role.ADMIN})

# permission name -> roles holding it
PERMISSION_ROLES: Dict[str, FrozenSet[Role]] = {
    'dashboard.view': _ALL,

    'schedules.view': _VIEWERS,
    'schedules.create': _OPERATORS,
    'schedules.update': _OPERATORS,
    'schedules.delete': _ADMINS,
    'schedules.execute': _OPERATORS,

    'workers.view': _VIEWERS,
    'workers.retry': _OPERATORS,

    'feeds.view': _OPERATORS,
    'feeds.create': _OPERATORS,
    'feeds.update': _OPERATORS,
    'feeds.delete': _ADMINS,

    'rules.view': _RULE_EDITORS,
    'rules.create': _RULE_EDITORS,
    'rules.update': _RULE_EDITORS,
    'rules.delete': frozenset({Role.DEVELOPER, Role.ADMIN}),

    'admin.users.view': _ADMINS,
    'admin.users.create': _ADMINS,
    'admin.users.update': _ADMINS,
    'admin.users.delete': _ADMINS,

    'admin.roles.view': _ADMINS,
    'admin.roles.create': _ADMINS,
    'admin.roles.update': _ADMINS,
    'admin.roles.delete': _ADMINS,
}

# flag -> permission name
PERMISSION_FLAGS: Dict[str, str] = {
    'canAccessDashboard': 'dashboard.view',
    'canAccessSchedules': 'schedules.view',
    'canAccessWorkers': 'workers.view',
    'canAccessFeeds': 'feeds.view',
    'canAccessRules': 'rules.view',

    'canCreateFeeds': 'feeds.create',
    'canEditFeeds': 'feeds.update',
    'canDeleteFeeds': 'feeds.delete',

    'canCreateSchedules': 'schedules.create',
    'canEditSchedules': 'schedules.update',
    'canDeleteSchedules': 'schedules.delete',
    'canExecuteSchedules': 'schedules.execute',

    'canCreateRules': 'rules.create',
    'canEditRules': 'rules.update',
    'canDeleteRules': 'rules.delete',

    'canViewWorkers': 'workers.view',
    'canRetryWorkers': 'workers.retry',

    'canManageUsers': 'admin.users.view',
    'canCreateUsers': 'admin.users.create',
    'canUpdateUsers': 'admin.users.update',
    'canDeleteUsers': 'admin.users.delete',

    'canManageRoles': 'admin.roles.view',
    'canCreateRoles': 'admin.roles.create',
    'canUpdateRoles': 'admin.roles.update',
    'canDeleteRoles': 'admin.roles.delete',
}


def role_permissions(role_name: Optional[str]) -> FrozenSet[str]:
    """Permission names of a role from the built-in table

    Unknown roles only see the dashboard.
    """
    role = Role.parse(role_name)
    if role is None:
        return frozenset({'dashboard.view'})
    return frozenset(name for name, roles in PERMISSION_ROLES.items() if role in roles)


def build_permission_flags(permission_names: Iterable[str]) -> Dict[str, bool]:
    names = set(permission_names)
    flags = {flag: permission in names for flag, permission in PERMISSION_FLAGS.items()}
    flags['canAccessAdmin'] = 'admin.users.view' in names or 'admin.roles.view' in names
    return flags


def resolve_permissions(role_name: Optional[str], role_id: Optional[str] = None,
                        db_permissions: Optional[List[Dict]] = None) -> Dict[str, bool]:
    """Permission flags of a profile

    Args:
        role_name: Profile role, ``user`` when empty
        role_id: Profile role id
        db_permissions: Permission rows of ``role_id``, each with a ``name``
    """
    if role_id and db_permissions:
        return build_permission_flags(p.get('name') for p in db_permissions if p.get('name'))
    return build_permission_flags(role_permissions(role_name))
