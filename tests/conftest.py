"""
Shared test fixtures

Fakes of the typed API clients record their calls so tests can assert on
what would have been sent upstream.
"""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from config import ControlPanelConfig
from models import IngestionRule


def make_rule(rule_id, priority=0, rule_type='pricing', feed_key='nivoda', config=None, **kwargs):
    return IngestionRule(
        id=rule_id,
        tenant_id=kwargs.pop('tenant_id', 1),
        feed_key=feed_key,
        rule_type=rule_type,
        priority=priority,
        config=config if config is not None else {},
        name=kwargs.pop('name', f'Rule {rule_id}'),
        **kwargs
    )


class FakeRulesApi:
    """In-memory stand-in for RulesApi"""

    def __init__(self, rules=None, fail_on=None):
        self.rules = list(rules or [])
        self.fail_on = set(fail_on or [])
        self.calls = []
        self._next_id = 1000

    async def get_feed_keys(self, tenant_id):
        self.calls.append(('get_feed_keys', tenant_id))
        return sorted({r.feed_key for r in self.rules if r.tenant_id == tenant_id})

    async def get_rule_types(self, tenant_id):
        self.calls.append(('get_rule_types', tenant_id))
        return sorted({r.rule_type for r in self.rules if r.tenant_id == tenant_id})

    async def count_rules_by_feed(self, feed_key, tenant_id):
        return len([r for r in self.rules if r.feed_key == feed_key and r.tenant_id == tenant_id])

    async def count_rules_by_type(self, rule_type, tenant_id):
        return len([r for r in self.rules if r.rule_type == rule_type and r.tenant_id == tenant_id])

    async def get_by_feed(self, feed_key, tenant_id, rule_type=None):
        self.calls.append(('get_by_feed', feed_key, tenant_id, rule_type))
        rules = [
            r for r in self.rules
            if r.feed_key == feed_key and r.tenant_id == tenant_id
            and (rule_type is None or r.rule_type == rule_type)
        ]
        return sorted(rules, key=lambda r: r.priority)

    async def create(self, data):
        self.calls.append(('create', data))
        if 'create' in self.fail_on:
            raise RuntimeError('create failed')
        self._next_id += 1
        rule = IngestionRule.from_dict(dict(data, id=self._next_id))
        self.rules.append(rule)
        return rule

    async def update(self, rule_id, data):
        self.calls.append(('update', rule_id, data))
        if 'update' in self.fail_on:
            raise RuntimeError('update failed')
        for index, rule in enumerate(self.rules):
            if rule.id == rule_id:
                self.rules[index] = rule.with_changes(**data)
                return self.rules[index]
        return None

    async def delete(self, rule_id):
        self.calls.append(('delete', rule_id))
        if 'delete' in self.fail_on:
            raise RuntimeError('delete failed')
        self.rules = [r for r in self.rules if r.id != rule_id]


@pytest.fixture
def test_config(monkeypatch) -> ControlPanelConfig:
    """Testing config with every upstream configured"""
    for name in ('API_GATEWAY_URL', 'NEXT_PUBLIC_GATEWAY_API_KEY', 'NEXT_PUBLIC_TYPESENSE_URL',
                 'NEXT_PUBLIC_TYPESENSE_SEARCH_API_KEY', 'TYPESENSE_SEARCH_X_TYPESENSE_API_KEY',
                 'SUPABASE_URL', 'SUPABASE_ANON_KEY'):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv('NEXT_PUBLIC_API_GATEWAY_URL', 'https://gateway.test')
    monkeypatch.setenv('GATEWAY_API_KEY', 'gw-secret-key-123')
    monkeypatch.setenv('TYPESENSE_URL', 'https://typesense.test')
    monkeypatch.setenv('TYPESENSE_SEARCH_API_KEY', 'ts-secret-key-456')
    monkeypatch.setenv('NEXT_PUBLIC_SUPABASE_URL', 'https://supabase.test')
    monkeypatch.setenv('NEXT_PUBLIC_SUPABASE_ANON_KEY', 'anon-key-789')
    return ControlPanelConfig(environment="testing")


@pytest.fixture
def fake_rules_api():
    return FakeRulesApi()


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: unit tests")


@pytest.fixture(name='make_rule')
def make_rule_fixture():
    return make_rule


@pytest.fixture(name='rules_api_factory')
def rules_api_factory_fixture():
    return FakeRulesApi
