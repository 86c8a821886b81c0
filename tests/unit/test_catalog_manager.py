import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[2]))

from exceptions import OperationNotAllowedError, ValidationException
from managers.catalog_manager import CatalogManager, TemplateRegistry


def _catalog(make_rule, rules_api_factory):
    api = rules_api_factory([
        make_rule(1, 0, feed_key='nivoda', rule_type='pricing', notes='tier one'),
        make_rule(2, 1, feed_key='nivoda', rule_type='origin'),
        make_rule(3, 0, feed_key='rapnet', rule_type='pricing'),
        make_rule(4, 0, feed_key='other-tenant', rule_type='pricing', tenant_id=2),
    ])
    return CatalogManager(api), api


@pytest.mark.asyncio
async def test_feed_keys_merge_drafts_per_tenant(make_rule, rules_api_factory):
    catalog, _ = _catalog(make_rule, rules_api_factory)

    await catalog.add_feed(1, ' vdb ')

    assert await catalog.get_feed_keys(1) == ['nivoda', 'rapnet', 'vdb']
    assert await catalog.get_feed_keys(2) == ['other-tenant']


@pytest.mark.asyncio
async def test_add_feed_rejects_bad_keys(make_rule, rules_api_factory):
    catalog, _ = _catalog(make_rule, rules_api_factory)

    with pytest.raises(ValidationException) as exc_info:
        await catalog.add_feed(1, '   ')
    assert exc_info.value.message == 'Please enter a new feed key'

    with pytest.raises(ValidationException) as exc_info:
        await catalog.add_feed(1, 'bad key!')
    assert 'letters, numbers, dashes, and underscores' in exc_info.value.message


@pytest.mark.asyncio
async def test_add_existing_feed_just_selects_it(make_rule, rules_api_factory):
    catalog, _ = _catalog(make_rule, rules_api_factory)

    assert await catalog.add_feed(1, 'nivoda') == 'nivoda'


@pytest.mark.asyncio
async def test_add_rule_type_assigns_template(make_rule, rules_api_factory):
    catalog, _ = _catalog(make_rule, rules_api_factory)

    name = await catalog.add_rule_type(1, 'brand boost', 'scoring')

    assert name == 'brand boost'
    assert 'brand boost' in await catalog.get_rule_types(1)
    assert catalog.templates.template_for('brand boost') == 'scoring'


@pytest.mark.asyncio
async def test_add_rule_type_with_unknown_template_fails(make_rule, rules_api_factory):
    catalog, _ = _catalog(make_rule, rules_api_factory)

    with pytest.raises(ValidationException):
        await catalog.add_rule_type(1, 'brand', 'nonexistent')


def test_template_registry_fallbacks():
    templates = TemplateRegistry()

    assert templates.template_for('pricing') == 'pricing'
    assert templates.template_for('custom') == 'generic'
    assert not templates.has_template('custom')
    assert templates.default_config('filter') == {'field_name': '', 'field_value': ''}


@pytest.mark.asyncio
async def test_copy_feed_duplicates_rules(make_rule, rules_api_factory):
    catalog, api = _catalog(make_rule, rules_api_factory)

    result = await catalog.copy_feed(1, 'nivoda', 'nivoda-eu')

    assert result.copied == 2
    assert result.message == 'Successfully copied 2 rules from "nivoda" to "nivoda-eu"'
    created = [call[1] for call in api.calls if call[0] == 'create']
    assert {c['name'] for c in created} == {'Rule 1 (copy)', 'Rule 2 (copy)'}
    notes = {c['name']: c['notes'] for c in created}
    assert notes['Rule 1 (copy)'] == 'tier one (copied from nivoda)'
    assert notes['Rule 2 (copy)'] == 'Copied from nivoda'
    assert all(c['feed_key'] == 'nivoda-eu' and c['tenant_id'] == 1 for c in created)


@pytest.mark.asyncio
async def test_copy_feed_errors(make_rule, rules_api_factory):
    catalog, _ = _catalog(make_rule, rules_api_factory)

    with pytest.raises(ValidationException) as exc_info:
        await catalog.copy_feed(1, 'nivoda', '')
    assert exc_info.value.message == 'Please enter a new feed key'

    with pytest.raises(ValidationException) as exc_info:
        await catalog.copy_feed(1, '', 'target')
    assert exc_info.value.message == 'Please select a feed to copy from'

    with pytest.raises(OperationNotAllowedError) as exc_info:
        await catalog.copy_feed(1, 'empty', 'target')
    assert exc_info.value.message == 'No rules found in the selected feed to copy'


@pytest.mark.asyncio
async def test_delete_feed_with_rules_is_refused(make_rule, rules_api_factory):
    catalog, _ = _catalog(make_rule, rules_api_factory)

    with pytest.raises(OperationNotAllowedError) as exc_info:
        await catalog.delete_feed(1, 'nivoda')

    assert exc_info.value.message == (
        'Cannot delete feed "nivoda". It has 2 rule(s). Please delete all rules first.'
    )


@pytest.mark.asyncio
async def test_delete_draft_feed_moves_selection(make_rule, rules_api_factory):
    catalog, _ = _catalog(make_rule, rules_api_factory)
    await catalog.add_feed(1, 'draft')

    assert await catalog.delete_feed(1, 'draft', selected_feed='draft') == 'nivoda'
    assert 'draft' not in await catalog.get_feed_keys(1)


@pytest.mark.asyncio
async def test_delete_unselected_feed_keeps_selection(make_rule, rules_api_factory):
    catalog, _ = _catalog(make_rule, rules_api_factory)
    await catalog.add_feed(1, 'draft')

    assert await catalog.delete_feed(1, 'draft', selected_feed='rapnet') == 'rapnet'


@pytest.mark.asyncio
async def test_delete_rule_type(make_rule, rules_api_factory):
    catalog, _ = _catalog(make_rule, rules_api_factory)
    await catalog.add_rule_type(1, 'brand')

    with pytest.raises(OperationNotAllowedError) as exc_info:
        await catalog.delete_rule_type(1, 'pricing')
    assert 'It has 2 rule(s)' in exc_info.value.message

    assert await catalog.delete_rule_type(1, 'brand', 'brand') == 'origin'
