import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[2]))

from models import MarkupRulesConfig
from validators import (
    format_validation_errors, format_validation_warnings, validate_feed_rules,
    validate_markup_rules, validate_rules_section
)
from validators.feed_rules_validation import is_rule_name_unique, validate_operator_value_type
from validators.rule_validation import validate_feed_key, validate_rule_config, validate_rule_type


def test_feed_key_names():
    assert validate_feed_key('nivoda-v2', ['rapnet']) == (True, None)
    assert validate_feed_key('  ', []) == (False, 'Feed key cannot be empty')
    assert validate_feed_key('rapnet', ['rapnet']) == (False, 'Feed key already exists')
    assert validate_feed_key('bad key', []) == (
        False, 'Feed key can only contain letters, numbers, dashes, and underscores'
    )


def test_rule_type_names_allow_spaces():
    assert validate_rule_type('shard keys', []) == (True, None)
    assert validate_rule_type('pricing', ['pricing']) == (False, 'Rule type already exists')
    assert validate_rule_type('bad/type', [])[0] is False


def test_rule_config_checks_per_type():
    assert validate_rule_config('pricing', {}) == (False, 'Configuration is required')
    assert validate_rule_config('pricing', {'min_price': 10, 'max_price': 10}) == (
        False, 'Min price must be less than max price'
    )
    assert validate_rule_config('origin', {'source_field': ['a']})[0] is False
    assert validate_rule_config('scoring', {'field_name': 'cut'}) == (True, None)
    assert validate_rule_config('filter', {'operator': 'equals'})[0] is False
    assert validate_rule_config('dedupe', {'anything': 1}) == (True, None)


def test_markup_rules():
    valid = MarkupRulesConfig(rules=[{'percent': 10, 'minPrice': 0, 'maxPrice': 1000}], price_fields=['price'])
    assert validate_markup_rules(valid) == (True, [])

    assert validate_markup_rules(MarkupRulesConfig(rules=[])) == (False, ['At least one rule is required'])

    ok, errors = validate_markup_rules(MarkupRulesConfig(
        rules=[{'percent': -5, 'minPrice': 100, 'maxPrice': 50}, {'percent': 'abc'}],
        price_fields=[]
    ))
    assert ok is False
    assert errors == [
        'Rule 1: Percent cannot be negative',
        'Rule 1: Min price must be less than max price',
        'Rule 2: Percent is required and must be a number',
        'Price fields array cannot be empty if provided',
    ]


def test_feed_rules_errors_block_and_warnings_do_not():
    rules = {
        'filters': [
            {'name': 'only-round', 'conditions': [{'field': 'shape', 'operator': 'equals', 'value': 'round'}]},
            {'name': 'only-round', 'conditions': []},
        ],
        'fieldMappings': [{'source': 'Price', 'target': '_id'}],
    }

    result = validate_feed_rules(rules)

    assert result.valid is False
    fields = [(e.field, e.message) for e in result.errors]
    assert ('filters[1].name', 'Duplicate filter name: "only-round"') in fields
    assert ('filters[1].conditions', 'At least one condition is required') in fields
    assert ('fieldMappings[0].target', 'Cannot use reserved field name: _id') in fields


def test_duplicate_shard_priority_is_a_warning():
    rules = {
        'shardRules': [
            {'name': 'a', 'shardKey': 'lab', 'priority': 1,
             'conditions': [{'field': 'lab', 'operator': 'in', 'value': ['GIA']}]},
            {'name': 'b', 'shardKey': 'natural', 'priority': 1,
             'conditions': [{'field': 'lab', 'operator': 'equals', 'value': 'IGI'}]},
        ]
    }

    result = validate_feed_rules(rules)

    assert result.valid is True
    assert format_validation_errors(result.errors) == ''
    assert format_validation_warnings(result.errors) == '• shardRules[1].priority: Duplicate priority: 1'


def test_shard_in_operator_needs_list():
    rules = {
        'shardRules': [
            {'name': 'a', 'shardKey': 'lab', 'priority': 0,
             'conditions': [{'field': 'lab', 'operator': 'in', 'value': 'GIA'}]},
        ]
    }

    messages = [e.message for e in validate_feed_rules(rules).errors]

    assert 'Priority must be a positive number' in messages
    assert 'Value must be an array for "in" and "not_in" operators' in messages


def test_single_section_validation_ignores_other_sections():
    rules = {
        'filters': [{'name': '', 'conditions': []}],
        'calculatedFields': [{'target': 'total', 'operations': [{'type': 'sum', 'fields': ['a', 'b']}]}],
    }

    assert validate_rules_section('calculatedFields', rules).valid is True
    assert validate_rules_section('filters', rules).valid is False


def test_rule_name_uniqueness_and_operator_types():
    rules = {'filters': [{'name': 'a'}, {'name': 'b'}]}

    assert is_rule_name_unique('c', 'filters', rules) is True
    assert is_rule_name_unique('a', 'filters', rules) is False
    assert is_rule_name_unique('a', 'filters', rules, exclude_index=0) is True

    assert validate_operator_value_type('gt', '12') is None
    assert validate_operator_value_type('lt', 'x').message == 'Operator "lt" requires a numeric value'
    assert validate_operator_value_type('in', 'x').message == 'Operator "in" requires an array value'


def test_markup_rules_with_badly_typed_entries():
    ok, errors = validate_markup_rules(MarkupRulesConfig(
        rules=[{'percent': 5, 'minPrice': '10', 'maxPrice': 20}, 'tier', {'percent': 1, 'maxPrice': [5]}],
        price_fields='price'
    ))

    assert ok is False
    assert errors == [
        'Rule 1: Min price must be a number',
        'Rule 2: Rule must be an object',
        'Rule 3: Max price must be a number',
        'Price fields must be an array',
    ]
    assert validate_markup_rules(MarkupRulesConfig(rules='tiers')) == (False, ['Rules must be an array'])


def test_feed_rules_with_non_object_entries():
    result = validate_feed_rules({
        'filters': ['oops'],
        'fieldMappings': [{'source': 'a', 'target': 5}],
        'calculatedFields': [{'target': 'total', 'operations': ['sum']}],
        'shardRules': 'lab',
    })

    fields = [(e.field, e.message) for e in result.errors]
    assert result.valid is False
    assert fields == [
        ('filters[0]', 'Filter must be an object'),
        ('fieldMappings[0].target', 'Target field must be a string'),
        ('calculatedFields[0].operations[0]', 'Operation must be an object'),
        ('shardRules', 'Shard rule list must be an array'),
    ]


def test_feed_rules_with_unhashable_values():
    rules = {
        'filters': [{'name': ['a'], 'conditions': [{'field': 'lab', 'operator': 'eq'}, 'x']}],
        'shardRules': [
            {'name': 'a', 'shardKey': 'lab', 'priority': [1],
             'conditions': [{'field': 'lab', 'operator': 'eq', 'value': 'GIA'}]},
            {'name': 'b', 'shardKey': 'lab', 'priority': [1],
             'conditions': [{'field': 'lab', 'operator': 'eq', 'value': 'IGI'}]},
        ],
    }

    fields = [(e.field, e.message) for e in validate_feed_rules(rules).errors]

    assert ('filters[0].name', 'Name must be a string') in fields
    assert ('filters[0].conditions[1]', 'Condition must be an object') in fields
    assert ('shardRules[0].priority', 'Priority must be a positive number') in fields
    assert ('shardRules[1].priority', 'Priority must be a positive number') in fields
    assert not any(message.startswith('Duplicate priority') for _, message in fields)


def test_feed_rules_must_be_an_object():
    result = validate_feed_rules(['filters'])

    assert result.valid is False
    assert [(e.field, e.message) for e in result.errors] == [('rules', 'Rules must be an object')]
