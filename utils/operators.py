"""
Condition operator metadata

Operators usable in filter and shard rule conditions, with the kind of
value each one expects.
"""

from dataclasses import dataclass
from typing import Any, List, Optional


@dataclass(frozen=True)
class OperatorMetadata:
    value: str
    label: str
    input_type: str  # text, number, array
    description: str


OPERATORS: List[OperatorMetadata] = [
    OperatorMetadata('equals', 'Equals', 'text',
                     'Field value must exactly match the specified value'),
    OperatorMetadata('not_equals', 'Not Equals', 'text',
                     'Field value must not match the specified value'),
    OperatorMetadata('in', 'In (Array)', 'array',
                     'Field value must be one of the specified values'),
    OperatorMetadata('not_in', 'Not In (Array)', 'array',
                     'Field value must not be any of the specified values'),
    OperatorMetadata('gt', 'Greater Than', 'number',
                     'Field value must be greater than the specified value'),
    OperatorMetadata('gte', 'Greater Than or Equal', 'number',
                     'Field value must be greater than or equal to the specified value'),
    OperatorMetadata('lt', 'Less Than', 'number',
                     'Field value must be less than the specified value'),
    OperatorMetadata('lte', 'Less Than or Equal', 'number',
                     'Field value must be less than or equal to the specified value'),
    OperatorMetadata('contains', 'Contains', 'text',
                     'Field value must contain the specified text'),
    OperatorMetadata('starts_with', 'Starts With', 'text',
                     'Field value must start with the specified text'),
]

_OPERATORS_BY_VALUE = {op.value: op for op in OPERATORS}


def get_operator_label(operator: str) -> str:
    op = _OPERATORS_BY_VALUE.get(operator)
    return op.label if op else operator


def get_operator_input_type(operator: str) -> str:
    op = _OPERATORS_BY_VALUE.get(operator)
    return op.input_type if op else 'text'


def get_operator_description(operator: str) -> str:
    op = _OPERATORS_BY_VALUE.get(operator)
    return op.description if op else ''


def get_available_operators() -> List[OperatorMetadata]:
    return list(OPERATORS)


def is_number(value: Any) -> bool:
    """True for numbers and numeric strings, never for booleans"""
    if isinstance(value, bool):
        return False
    if isinstance(value, (int, float)):
        return True
    if isinstance(value, str):
        try:
            float(value)
            return True
        except ValueError:
            return False
    return False


def validate_operator_value(operator: str, value: Any) -> Optional[str]:
    """Check a condition value against its operator

    Returns:
        Optional[str]: Error message, None when the value fits
    """
    if value is None:
        return 'Value is required'

    input_type = get_operator_input_type(operator)
    label = get_operator_label(operator)

    if input_type == 'array':
        if not isinstance(value, list):
            return f'Value must be an array for "{label}" operator'
        if not value:
            return 'Array must contain at least one value'

    elif input_type == 'number':
        if value == '':
            return 'Value is required'
        if not is_number(value):
            return f'Value must be a number for "{label}" operator'

    else:
        if isinstance(value, bool) or not isinstance(value, (str, int, float)):
            return f'Value must be text for "{label}" operator'
        if str(value).strip() == '':
            return 'Value cannot be empty'

    return None
