"""
Control panel utility functions

Cron descriptions, operator metadata, price tier helpers and the
combined rules config generator.
"""

from .cron_utils import (
    CronPreset,
    cron_to_human
)

from .operators import (
    OperatorMetadata,
    get_available_operators,
    get_operator_label,
    get_operator_input_type,
    get_operator_description,
    validate_operator_value
)

from .price_calculations import (
    validate_price_range,
    calculate_next_min_price,
    can_auto_update_min_price,
    get_next_rule
)

from .json_generator import (
    get_combined_config,
    normalize_key,
    clean_object
)

__all__ = [
    # Cron
    'CronPreset',
    'cron_to_human',

    # Operators
    'OperatorMetadata',
    'get_available_operators',
    'get_operator_label',
    'get_operator_input_type',
    'get_operator_description',
    'validate_operator_value',

    # Price tiers
    'validate_price_range',
    'calculate_next_min_price',
    'can_auto_update_min_price',
    'get_next_rule',

    # Combined config
    'get_combined_config',
    'normalize_key',
    'clean_object'
]
