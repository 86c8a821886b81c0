import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[2]))

from exceptions import BatchSaveError, ResourceNotFoundError
from managers.rules_state import RulesBatchSaver, RulesState


def _pricing_state(make_rule):
    rules = [
        make_rule(1, 0, config={'min_price': 0, 'max_price': 1000, 'percent': 10,
                                'source_field': ['price'], 'target_field': ['final_price']}),
        make_rule(2, 1, config={'min_price': 1001, 'max_price': 5000, 'percent': 8}),
    ]
    return RulesState('nivoda', 'pricing', 1, rules)


def test_stage_update_buffers_persisted_row(make_rule):
    state = _pricing_state(make_rule)

    updated = state.stage_update(1, {'name': 'Cheap stones', 'feed_key': 'ignored'})

    assert updated.name == 'Cheap stones'
    assert updated.feed_key == 'nivoda'
    assert state.pending_changes == {1: {'name': 'Cheap stones'}}
    assert state.get_rule(1).updated_at is not None


def test_stage_update_merges_successive_patches(make_rule):
    state = _pricing_state(make_rule)

    state.stage_update(2, {'name': 'Mid'})
    state.stage_update(2, {'enabled': False})

    assert state.pending_changes[2] == {'name': 'Mid', 'enabled': False}


def test_stage_create_uses_template_and_chains_min_price(make_rule):
    state = _pricing_state(make_rule)

    rule = state.stage_create()

    assert rule.id == -1
    assert rule.name == 'New pricing Rule'
    assert rule.priority == 2
    assert rule.config['min_price'] == 5001
    assert rule.config['max_price'] == 0
    assert state.editing_rule_id == -1
    assert [c.temp_id for c in state.pending_creates] == [-1]


def test_stage_create_copies_fields_from_last_pricing_row(make_rule):
    state = RulesState('nivoda', 'pricing', 1, [
        make_rule(1, 0, config={'min_price': 0, 'max_price': 100,
                                'source_field': ['price'], 'target_field': ['final_price']}),
    ])

    rule = state.stage_create()

    assert rule.config['source_field'] == ['price']
    assert rule.config['target_field'] == ['final_price']
    assert rule.config['min_price'] == 101


def test_stage_create_on_custom_type_uses_generic_template():
    state = RulesState('nivoda', 'brand', 1, [], template_name='brand')

    rule = state.stage_create()

    assert rule.config == {'source_field': '', 'source_value': '', 'target_field': '', 'target_value': ''}
    assert rule.priority == 0


def test_temp_ids_keep_decreasing(make_rule):
    state = _pricing_state(make_rule)

    first = state.stage_create(name='a')
    second = state.stage_create(name='b')

    assert (first.id, second.id) == (-1, -2)


def test_patch_on_temp_row_rewrites_pending_create(make_rule):
    state = _pricing_state(make_rule)
    rule = state.stage_create()

    state.stage_update(rule.id, {'name': 'Renamed', 'config': {'min_price': 1, 'max_price': 2}})

    assert state.pending_changes == {}
    assert state.pending_creates[0].name == 'Renamed'
    assert state.pending_creates[0].config == {'min_price': 1, 'max_price': 2}


def test_delete_temp_row_drops_it_entirely(make_rule):
    state = _pricing_state(make_rule)
    rule = state.stage_create()

    state.stage_delete(rule.id)

    assert state.pending_creates == []
    assert state.pending_deletes == set()
    assert rule.id not in [r.id for r in state.local_rules]
    assert state.editing_rule_id is None


def test_delete_persisted_row_hides_it_and_drops_its_patch(make_rule):
    state = _pricing_state(make_rule)
    state.stage_update(1, {'name': 'x'})

    state.stage_delete(1)

    assert state.pending_deletes == {1}
    assert 1 not in state.pending_changes
    assert [r.id for r in state.get_display_rules()] == [2]


def test_get_rule_raises_for_unknown_id(make_rule):
    state = _pricing_state(make_rule)

    with pytest.raises(ResourceNotFoundError):
        state.get_rule(99)


def test_edit_form_flow(make_rule):
    state = _pricing_state(make_rule)

    state.start_edit(2)
    state.change_config_in_row('percent', 12)
    state.change_config_in_row('name', 'Tier 2')
    updated = state.save_edit()

    assert updated.name == 'Tier 2'
    assert updated.config['percent'] == 12
    assert updated.config['min_price'] == 1001
    assert state.editing_rule_id is None
    assert state.pending_changes[2]['config']['percent'] == 12


def test_change_config_without_edit_is_ignored(make_rule):
    state = _pricing_state(make_rule)

    state.change_config_in_row('percent', 12)

    assert state.edit_form_data == {}
    assert not state.has_pending_changes


def test_build_batch_excludes_updates_of_deleted_rows(make_rule):
    state = _pricing_state(make_rule)
    state.stage_update(1, {'name': 'x'})
    state.stage_update(2, {'name': 'y'})
    state.pending_deletes.add(1)
    state.stage_create(name='new')

    creates, updates, deletes = state.build_batch()

    assert [c['name'] for c in creates] == ['new']
    assert 'temp_id' not in creates[0]
    assert updates == [(2, {'name': 'y'})]
    assert deletes == [1]


@pytest.mark.asyncio
async def test_batch_save_flushes_and_reloads(make_rule, rules_api_factory):
    api = rules_api_factory([make_rule(1, 0), make_rule(2, 1)])
    state = RulesState('nivoda', 'pricing', 1, list(api.rules))
    state.stage_update(1, {'name': 'Updated'})
    state.stage_delete(2)
    state.stage_create(name='Fresh', config={'min_price': 0, 'max_price': 10})

    counts = await RulesBatchSaver(api).save(state)

    assert counts == {'creates': 1, 'updates': 1, 'deletes': 1}
    assert not state.has_pending_changes
    assert ('get_by_feed', 'nivoda', 1, 'pricing') in api.calls
    assert sorted(r.name for r in state.local_rules) == ['Fresh', 'Updated']
    assert all(r.id > 0 for r in state.local_rules)


@pytest.mark.asyncio
async def test_batch_save_sends_one_call_per_pending_change(make_rule, rules_api_factory):
    api = rules_api_factory([make_rule(1, 0), make_rule(2, 1), make_rule(3, 2)])
    state = RulesState('nivoda', 'pricing', 1, list(api.rules))
    state.mark_manual_edit(1)
    state.stage_update(1, {'name': 'Updated'})
    state.stage_delete(3)
    state.stage_create(name='First')
    state.stage_create(name='Second')

    counts = await RulesBatchSaver(api).save(state)

    mutating = [call for call in api.calls if call[0] in ('create', 'update', 'delete')]
    assert len(mutating) == 4
    assert sorted(call[0] for call in mutating) == ['create', 'create', 'delete', 'update']
    assert counts == {'creates': 2, 'updates': 1, 'deletes': 1}
    assert state.pending_changes == {}
    assert state.pending_deletes == set()
    assert state.pending_creates == []
    assert state.manually_edited_rows == set()


@pytest.mark.asyncio
async def test_batch_save_failure_keeps_buffers(make_rule, rules_api_factory):
    api = rules_api_factory([make_rule(1, 0), make_rule(2, 1)], fail_on={'delete'})
    state = RulesState('nivoda', 'pricing', 1, list(api.rules))
    state.stage_update(1, {'name': 'Updated'})
    state.stage_delete(2)

    with pytest.raises(BatchSaveError) as exc_info:
        await RulesBatchSaver(api).save(state)

    assert exc_info.value.attempted == 2
    assert exc_info.value.failures[0]['operation'] == 'delete'
    assert state.pending_changes == {1: {'name': 'Updated'}}
    assert state.pending_deletes == {2}
    assert not any(call[0] == 'get_by_feed' for call in api.calls)


@pytest.mark.asyncio
async def test_batch_save_without_changes_makes_no_calls(make_rule, rules_api_factory):
    api = rules_api_factory([make_rule(1, 0)])
    state = RulesState('nivoda', 'pricing', 1, list(api.rules))

    counts = await RulesBatchSaver(api).save(state)

    assert counts == {'creates': 0, 'updates': 0, 'deletes': 0}
    assert api.calls == []
