import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[2]))

from utils import clean_object, cron_to_human, get_combined_config, normalize_key
from utils.operators import get_operator_label, is_number, validate_operator_value
from utils.price_calculations import (
    calculate_next_min_price, can_auto_update_min_price, get_next_rule, validate_price_range
)


def test_cron_named_patterns():
    assert cron_to_human('') == 'No schedule set'
    assert cron_to_human('0 */6 * * *') == 'Every 6 hours'
    assert cron_to_human('0 0 * * 1') == 'At midnight on Monday'
    assert cron_to_human('0 0 *') == 'Invalid cron expression'


def test_cron_described_field_by_field():
    assert cron_to_human('*/15 * * * *') == 'Every 15 minutes, every hour'
    assert cron_to_human('30 2 * 3 5') == 'At minute 30, at hour 2, in Mar, on Friday'
    assert cron_to_human('0 */2 */3 * *') == 'At minute 0, every 2 hours, every 3 days'
    assert cron_to_human('0 1 * 13 9') == 'At minute 0, at hour 1, in month 13, on weekday 9'


def test_operator_values():
    assert validate_operator_value('in', 'GIA') == 'Value must be an array for "In (Array)" operator'
    assert validate_operator_value('in', []) == 'Array must contain at least one value'
    assert validate_operator_value('gt', '12.5') is None
    assert validate_operator_value('gt', 'abc') == 'Value must be a number for "Greater Than" operator'
    assert validate_operator_value('equals', '   ') == 'Value cannot be empty'
    assert validate_operator_value('equals', True) == 'Value must be text for "Equals" operator'
    assert validate_operator_value('contains', None) == 'Value is required'


def test_operator_helpers():
    assert is_number('3') is True
    assert is_number(True) is False
    assert is_number([1]) is False
    assert get_operator_label('starts_with') == 'Starts With'
    assert get_operator_label('regex') == 'regex'


def test_price_helpers(make_rule):
    rules = [make_rule(1, priority=0), make_rule(2, priority=1)]

    assert validate_price_range(0, 100) is True
    assert validate_price_range(100, 100) is False
    assert calculate_next_min_price(1000) == 1001
    assert can_auto_update_min_price(2, {3}) is True
    assert can_auto_update_min_price(2, {2}) is False
    assert get_next_rule(rules, 1).id == 2
    assert get_next_rule(rules, 2) is None
    assert get_next_rule(rules, 99) is None


def test_normalize_key_and_clean_object():
    assert normalize_key('pricePerCarat') == 'price_per_carat'
    assert normalize_key('Shape') == 'shape'
    assert clean_object({'a': None, 'b': [], 'c': {}, 'd': 0, 'e': 'x'}) == {'d': 0, 'e': 'x'}


def test_combined_config_groups_enabled_rules(make_rule):
    rules = [
        make_rule(1, rule_type='pricing', config={
            'source_field': ['price'], 'target_field': ['final_price'],
            'min_price': 0, 'max_price': 1000, 'percent': 10,
        }),
        make_rule(2, rule_type='filter', config={
            'field_name': 'shape', 'field_value': 'Round Brilliant',
        }),
        make_rule(3, rule_type='dedupe', config={'source_field': 'cert', 'keepLatest': True}),
        make_rule(4, rule_type='pricing', enabled=False, config={'min_price': 1001}),
        make_rule(5, rule_type='pricing', feed_key='rapnet', config={'min_price': 0}),
    ]

    config = get_combined_config(rules, 'nivoda')

    assert config == {
        'feed_name': 'nivoda',
        'markup_rules': [{
            'source_field': ['price'],
            'target_field': ['final_price'],
            'condition': {'min_price': 0, 'max_price': 1000, 'percent': 10, 'fixed_amount': 0},
        }],
        'filter_rules': [{
            'source_field': 'shape',
            'source_value': 'Round_Brilliant',
            'condition': {'operator': 'equals'},
        }],
        'dedupe_rules': [{
            'source_field': 'cert',
            'condition': {'keep_latest': True},
        }],
    }


def test_combined_config_of_feed_without_rules():
    assert get_combined_config([], 'nivoda') == {'feed_name': 'nivoda'}
