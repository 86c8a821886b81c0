"""
Feed rules validation

Checks a FeedRulesConfig (filters, field mappings, transformations,
calculated fields and shard rules) before it is written to the feed.
Errors block a save; warnings are only reported.
"""

from typing import Any, Dict, Iterator, List, Optional, Tuple

from models import ValidationError, ValidationResult, FEED_RULES_SECTIONS
from utils.constants import RESERVED_FIELD_NAMES
from utils.operators import is_number

NUMERIC_OPERATORS = ('gt', 'gte', 'lt', 'lte')


def _blank(value: Any) -> bool:
    return not value or (isinstance(value, str) and value.strip() == '')


def _error(errors: List[ValidationError], field: str, message: str, type: str = 'error'):
    errors.append(ValidationError(field=field, message=message, type=type))


def _entries(path: str, items: Any, errors: List[ValidationError],
             label: str) -> Iterator[Tuple[int, Dict[str, Any]]]:
    """Yield the object entries of a list, reporting anything else as an error"""
    if not isinstance(items, list):
        _error(errors, path, f'{label} list must be an array')
        return
    for index, item in enumerate(items):
        if isinstance(item, dict):
            yield index, item
        else:
            _error(errors, f'{path}[{index}]', f'{label} must be an object')


def _name(path: str, value: Any, errors: List[ValidationError]) -> Optional[str]:
    if value is None or isinstance(value, str):
        return value
    _error(errors, path, 'Name must be a string')
    return None


def _validate_filters(filters: Any, errors: List[ValidationError]):
    names = set()
    for index, rule in _entries('filters', filters, errors, 'Filter'):
        name = _name(f'filters[{index}].name', rule.get('name'), errors)
        if _blank(name):
            _error(errors, f'filters[{index}].name', 'Filter name is required')
        if name and name in names:
            _error(errors, f'filters[{index}].name', f'Duplicate filter name: "{name}"')
        names.add(name)

        conditions = rule.get('conditions')
        if not conditions:
            _error(errors, f'filters[{index}].conditions', 'At least one condition is required')
            continue
        for cond_index, condition in _entries(f'filters[{index}].conditions', conditions, errors, 'Condition'):
            prefix = f'filters[{index}].conditions[{cond_index}]'
            if not condition.get('field'):
                _error(errors, f'{prefix}.field', 'Field name is required')
            if not condition.get('operator'):
                _error(errors, f'{prefix}.operator', 'Operator is required')


def _check_target(section: str, index: int, target: Any, errors: List[ValidationError]):
    if _blank(target):
        _error(errors, f'{section}[{index}].target', 'Target field is required')
    elif not isinstance(target, str):
        _error(errors, f'{section}[{index}].target', 'Target field must be a string')
    elif is_reserved_field_name(target):
        _error(errors, f'{section}[{index}].target', f'Cannot use reserved field name: {target}')


def _validate_field_mappings(mappings: Any, errors: List[ValidationError]):
    for index, mapping in _entries('fieldMappings', mappings, errors, 'Field mapping'):
        if _blank(mapping.get('source')):
            _error(errors, f'fieldMappings[{index}].source', 'Source field is required')
        _check_target('fieldMappings', index, mapping.get('target'), errors)


def _validate_transformations(transformations: Any, errors: List[ValidationError]):
    for index, transform in _entries('fieldTransformations', transformations, errors, 'Transformation'):
        _check_target('fieldTransformations', index, transform.get('target'), errors)

        transform_type = transform.get('type')
        if transform_type == 'conditional':
            if not transform.get('conditions'):
                _error(errors, f'fieldTransformations[{index}].conditions',
                       'Conditional transformations require at least one condition')
            if 'then' not in transform:
                _error(errors, f'fieldTransformations[{index}].then',
                       '"then" value is required for conditional transformations')
        elif transform_type == 'direct':
            if 'value' not in transform:
                _error(errors, f'fieldTransformations[{index}].value',
                       'Value is required for direct transformations')


def _validate_calculated_fields(fields: Any, errors: List[ValidationError]):
    for index, calc in _entries('calculatedFields', fields, errors, 'Calculated field'):
        _check_target('calculatedFields', index, calc.get('target'), errors)

        operations = calc.get('operations')
        if not operations:
            _error(errors, f'calculatedFields[{index}].operations', 'At least one operation is required')
            continue
        for op_index, operation in _entries(f'calculatedFields[{index}].operations', operations, errors,
                                            'Operation'):
            prefix = f'calculatedFields[{index}].operations[{op_index}]'
            if not operation.get('type'):
                _error(errors, f'{prefix}.type', 'Operation type is required')
            if not operation.get('fields'):
                _error(errors, f'{prefix}.fields', 'At least one field is required')


def _validate_shard_rules(shard_rules: Any, errors: List[ValidationError]):
    names = set()
    priorities = set()
    for index, rule in _entries('shardRules', shard_rules, errors, 'Shard rule'):
        name = _name(f'shardRules[{index}].name', rule.get('name'), errors)
        if _blank(name):
            _error(errors, f'shardRules[{index}].name', 'Shard rule name is required')
        if name and name in names:
            _error(errors, f'shardRules[{index}].name', f'Duplicate shard rule name: "{name}"')
        names.add(name)

        if _blank(rule.get('shardKey')):
            _error(errors, f'shardRules[{index}].shardKey', 'Shard key is required')

        priority = rule.get('priority')
        if priority is None:
            _error(errors, f'shardRules[{index}].priority', 'Priority is required')
        elif isinstance(priority, bool) or not isinstance(priority, (int, float)) or priority < 1:
            _error(errors, f'shardRules[{index}].priority', 'Priority must be a positive number')
        else:
            if priority in priorities:
                _error(errors, f'shardRules[{index}].priority', f'Duplicate priority: {priority}', 'warning')
            priorities.add(priority)

        conditions = rule.get('conditions')
        if not conditions:
            _error(errors, f'shardRules[{index}].conditions', 'At least one condition is required')
            continue
        for cond_index, condition in _entries(f'shardRules[{index}].conditions', conditions, errors,
                                              'Condition'):
            prefix = f'shardRules[{index}].conditions[{cond_index}]'
            if _blank(condition.get('field')):
                _error(errors, f'{prefix}.field', 'Field name is required')
            if not condition.get('operator'):
                _error(errors, f'{prefix}.operator', 'Operator is required')

            value = condition.get('value')
            if value is None or value == '':
                _error(errors, f'{prefix}.value', 'Value is required')
            elif condition.get('operator') in ('in', 'not_in') and not isinstance(value, list):
                _error(errors, f'{prefix}.value', 'Value must be an array for "in" and "not_in" operators')


_SECTION_VALIDATORS = {
    'filters': _validate_filters,
    'fieldMappings': _validate_field_mappings,
    'fieldTransformations': _validate_transformations,
    'calculatedFields': _validate_calculated_fields,
    'shardRules': _validate_shard_rules,
}


def validate_feed_rules(rules: Dict[str, Any]) -> ValidationResult:
    """Validate every section present in ``rules``

    Args:
        rules: FeedRulesConfig dictionary; absent sections are skipped

    Returns:
        ValidationResult: valid when no entry has type ``error``
    """
    errors: List[ValidationError] = []
    if not isinstance(rules, dict):
        _error(errors, 'rules', 'Rules must be an object')
        return ValidationResult(valid=False, errors=errors)

    for section in FEED_RULES_SECTIONS:
        entries = rules.get(section)
        if entries:
            _SECTION_VALIDATORS[section](entries, errors)

    return ValidationResult(
        valid=not any(e.type == 'error' for e in errors),
        errors=errors
    )


def validate_rules_section(section: str, rules: Dict[str, Any]) -> ValidationResult:
    """Validate a single section of ``rules``"""
    return validate_feed_rules({section: rules.get(section)})


def is_reserved_field_name(field_name: str) -> bool:
    return field_name in RESERVED_FIELD_NAMES


def is_rule_name_unique(rule_name: str, section: str, rules: Dict[str, Any],
                        exclude_index: Optional[int] = None) -> bool:
    entries = rules.get(section)
    if not isinstance(entries, list):
        return True

    for index, rule in enumerate(entries):
        if exclude_index is not None and index == exclude_index:
            continue
        if isinstance(rule, dict) and rule.get('name') == rule_name:
            return False
    return True


def validate_operator_value_type(operator: str, value: Any) -> Optional[ValidationError]:
    if operator in NUMERIC_OPERATORS and not is_number(value):
        return ValidationError('value', f'Operator "{operator}" requires a numeric value')

    if operator == 'in' and not isinstance(value, list):
        return ValidationError('value', 'Operator "in" requires an array value')

    return None


def format_validation_errors(errors: List[ValidationError]) -> str:
    return '\n'.join(f'• {e.field}: {e.message}' for e in errors if e.type == 'error')


def format_validation_warnings(errors: List[ValidationError]) -> str:
    return '\n'.join(f'• {e.field}: {e.message}' for e in errors if e.type == 'warning')
