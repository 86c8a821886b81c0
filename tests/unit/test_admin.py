import json
import sys
from pathlib import Path

import pytest
from aiohttp import web
from aiohttp.test_utils import make_mocked_request

sys.path.insert(0, str(Path(__file__).resolve().parents[2]))

from auth_service import AuthContext, SupabaseAuthService
from clients import PermissionsApi, RolesApi
from exceptions import OperationNotAllowedError, ResourceNotFoundError
from handlers.admin import AdminHandler


def _matches(row, filters):
    for key, value in (filters or {}).items():
        if isinstance(value, str) and value.startswith('eq.') and str(row.get(key)) != value[3:]:
            return False
    return True


class _FakeSupabase:
    """Tables held in memory, filtered on ``eq.`` parameters"""

    def __init__(self, **tables):
        self.tables = {name: list(rows) for name, rows in tables.items()}
        self.users = {}
        self.calls = []

    async def get_user(self, token):
        return self.users.get(token)

    async def select(self, table, params=None, count=False, access_token=None):
        self.calls.append(('select', table))
        rows = [row for row in self.tables.get(table, []) if _matches(row, params)]
        return rows, (len(rows) if count else None)

    async def insert(self, table, rows):
        rows = rows if isinstance(rows, list) else [rows]
        self.calls.append(('insert', table, rows))
        created = [dict(row, id=row.get('id', f'{table}-{len(self.tables.get(table, []))}')) for row in rows]
        self.tables.setdefault(table, []).extend(created)
        return created

    async def update(self, table, filters, data):
        self.calls.append(('update', table, data))
        updated = []
        for row in self.tables.get(table, []):
            if _matches(row, filters):
                row.update(data)
                updated.append(row)
        return updated

    async def delete(self, table, filters):
        self.calls.append(('delete', table, dict(filters)))
        self.tables[table] = [row for row in self.tables.get(table, []) if not _matches(row, filters)]


def _supabase():
    return _FakeSupabase(
        roles=[
            {'id': 'r-admin', 'name': 'admin', 'is_system': True},
            {'id': 'r-ops', 'name': 'ops', 'is_system': False},
            {'id': 'r-empty', 'name': 'empty', 'is_system': False},
        ],
        profiles=[{'id': 'u1', 'role_id': 'r-ops'}],
        role_permissions=[
            {'role_id': 'r-ops', 'permission_id': 'p1', 'permissions': {'id': 'p1', 'name': 'rules.view'}},
            {'role_id': 'r-ops', 'permission_id': 'p2', 'permissions': {'id': 'p2', 'name': 'feeds.view'}},
        ],
        permissions=[
            {'id': 'p1', 'name': 'rules.view', 'resource': 'rules', 'action': 'view'},
            {'id': 'p2', 'name': 'feeds.view', 'resource': 'feeds', 'action': 'view'},
            {'id': 'p3', 'name': 'rules.update', 'resource': 'rules', 'action': 'update'},
        ],
    )


@pytest.mark.asyncio
async def test_delete_refuses_system_role():
    supabase = _supabase()

    with pytest.raises(OperationNotAllowedError) as exc_info:
        await RolesApi(supabase).delete('r-admin')

    assert exc_info.value.message == 'Cannot delete system role'
    assert not any(call[0] == 'delete' for call in supabase.calls)


@pytest.mark.asyncio
async def test_delete_refuses_role_assigned_to_users():
    supabase = _supabase()

    with pytest.raises(OperationNotAllowedError) as exc_info:
        await RolesApi(supabase).delete('r-ops')

    assert exc_info.value.message == 'Cannot delete role that is assigned to users'
    assert not any(call[0] == 'delete' for call in supabase.calls)


@pytest.mark.asyncio
async def test_delete_unknown_and_unused_roles():
    supabase = _supabase()
    api = RolesApi(supabase)

    with pytest.raises(ResourceNotFoundError):
        await api.delete('r-missing')

    await api.delete('r-empty')
    assert ('delete', 'roles', {'id': 'eq.r-empty'}) in supabase.calls
    assert [r['id'] for r in supabase.tables['roles']] == ['r-admin', 'r-ops']


@pytest.mark.asyncio
async def test_update_replaces_permission_rows():
    supabase = _supabase()

    role = await RolesApi(supabase).update('r-ops', description='Operations', permission_ids=['p3'])

    writes = [call for call in supabase.calls if call[0] != 'select']
    assert writes == [
        ('update', 'roles', {'description': 'Operations'}),
        ('delete', 'role_permissions', {'role_id': 'eq.r-ops'}),
        ('insert', 'role_permissions', [{'role_id': 'r-ops', 'permission_id': 'p3'}]),
    ]
    assert [row['permission_id'] for row in supabase.tables['role_permissions']] == ['p3']
    assert role['description'] == 'Operations'
    assert role['user_count'] == 1


@pytest.mark.asyncio
async def test_update_with_empty_permission_list_clears_rows():
    supabase = _supabase()

    role = await RolesApi(supabase).update('r-ops', permission_ids=[])

    assert supabase.tables['role_permissions'] == []
    assert role['permissions'] == []
    assert not any(call[0] in ('update', 'insert') for call in supabase.calls)


@pytest.mark.asyncio
async def test_update_unknown_role_is_not_found():
    with pytest.raises(ResourceNotFoundError):
        await RolesApi(_supabase()).update('r-missing', name='x')


def _app(supabase):
    app = web.Application()
    app['roles_api'] = RolesApi(supabase)
    app['permissions_api'] = PermissionsApi(supabase)
    return app


def _handler(body=None):
    handler = AdminHandler()

    async def get_request_json(_request):
        return dict(body or {})

    handler.get_request_json = get_request_json
    return handler


def _body(response):
    return json.loads(response.body)


@pytest.mark.asyncio
async def test_list_roles_includes_permissions_and_user_count():
    app = _app(_supabase())

    response = await _handler().list_roles(make_mocked_request('GET', '/admin/roles', app=app))

    roles = {role['id']: role for role in _body(response)['data']}
    assert roles['r-ops']['user_count'] == 1
    assert [p['name'] for p in roles['r-ops']['permissions']] == ['rules.view', 'feeds.view']
    assert roles['r-admin']['permissions'] == []


@pytest.mark.asyncio
async def test_create_role_requires_a_name():
    app = _app(_supabase())

    response = await _handler({'name': '  '}).create_role(make_mocked_request('POST', '/admin/roles', app=app))

    assert response.status == 400
    assert _body(response)['error_code'] == 'VALIDATION_ERROR'


@pytest.mark.asyncio
async def test_create_role_with_permissions():
    supabase = _supabase()
    app = _app(supabase)

    response = await _handler({'name': ' auditors ', 'permission_ids': ['p1']}).create_role(
        make_mocked_request('POST', '/admin/roles', app=app)
    )

    assert response.status == 200
    assert _body(response)['data']['name'] == 'auditors'
    assert supabase.calls[-1][1] == 'role_permissions'


@pytest.mark.asyncio
async def test_delete_system_role_is_a_conflict():
    app = _app(_supabase())
    request = make_mocked_request('DELETE', '/admin/roles/r-admin', app=app, match_info={'role_id': 'r-admin'})

    response = await _handler().delete_role(request)

    assert response.status == 409
    assert _body(response)['error_code'] == 'OPERATION_NOT_ALLOWED'


@pytest.mark.asyncio
async def test_permissions_grouped_or_by_resource():
    app = _app(_supabase())

    grouped = await _handler().list_permissions(make_mocked_request('GET', '/admin/permissions', app=app))
    by_resource = await _handler().list_permissions(
        make_mocked_request('GET', '/admin/permissions?resource=rules', app=app)
    )

    assert [g['resource'] for g in _body(grouped)['data']] == ['rules', 'feeds']
    assert [p['id'] for p in _body(by_resource)['data']] == ['p1', 'p3']


def _auth_app(test_config, profile):
    supabase = _FakeSupabase(profiles=[profile])
    supabase.users['good-token'] = {'id': 'u1', 'email': 'ops@example.com'}
    app = web.Application()
    app['config'] = test_config
    app['auth_service'] = SupabaseAuthService(supabase)
    return app


@pytest.mark.asyncio
async def test_my_permissions_resolves_the_bearer_token(test_config):
    app = _auth_app(test_config, {'id': 'u1', 'role': 'accountant', 'is_active': True})
    request = make_mocked_request('GET', '/me/permissions', app=app,
                                  headers={'Authorization': 'Bearer good-token'})

    response = await _handler().my_permissions(request)

    data = _body(response)['data']
    assert data['role'] == 'accountant'
    assert data['permissions']['canAccessRules'] is True
    assert data['permissions']['canAccessFeeds'] is False


@pytest.mark.asyncio
async def test_my_permissions_without_token_is_unauthenticated(test_config):
    app = _auth_app(test_config, {'id': 'u1', 'role': 'user'})

    response = await _handler().my_permissions(make_mocked_request('GET', '/me/permissions', app=app))

    assert response.status == 401
    assert _body(response)['error_code'] == 'UNAUTHENTICATED'


@pytest.mark.asyncio
async def test_pending_approval_status_uses_guard_context():
    app = web.Application()
    request = make_mocked_request('GET', '/pending-approval/status', app=app)
    request['auth'] = AuthContext(
        user={'id': 'u2', 'email': 'new@example.com'},
        profile={'role': 'user', 'is_active': False, 'created_at': '2024-05-01T00:00:00Z'},
        access_token='token',
    )

    response = await _handler().pending_approval_status(request)

    assert _body(response)['data'] == {
        'user_id': 'u2',
        'email': 'new@example.com',
        'is_active': False,
        'role': 'user',
        'requested_at': '2024-05-01T00:00:00Z',
    }
