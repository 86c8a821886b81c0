"""
Shared constants
"""

# Custom shard keys are accepted too
COMMON_SHARD_KEYS = [
    'usa_dh',
    'intl_dh',
    'usa_premium',
    'intl_premium',
    'default',
    'primary',
    'secondary',
    'archive',
    'staging',
]

# Endpoints offered per target service when building a schedule
SERVICE_ENDPOINTS = {
    'worker': [
        {'value': '/ingestion/feeds', 'label': 'Get Feeds', 'method': 'GET'},
        {'value': '/ingestion/run', 'label': 'Run Ingestion', 'method': 'POST'},
        {'value': '/ingestion/status', 'label': 'Get Status', 'method': 'GET'},
        {'value': '/jobs', 'label': 'Jobs (List/Create)', 'method': 'GET'},
        {'value': '/jobs/:id', 'label': 'Job by ID', 'method': 'GET'},
        {'value': '/jobs/:id/execute', 'label': 'Execute Job', 'method': 'POST'},
        {'value': '/jobs/recover', 'label': 'Recover Jobs', 'method': 'POST'},
        {'value': '/jobs/stats/queue', 'label': 'Queue Stats', 'method': 'GET'},
        {'value': '/jobs/failed', 'label': 'Failed Jobs', 'method': 'GET'},
        {'value': '/admin/markup/:feedKey', 'label': 'Markup Config', 'method': 'GET'},
        {'value': '/health', 'label': 'Health Check', 'method': 'GET'},
    ],
    'mcp': [
        {'value': '/mcp/chat', 'label': 'Chat', 'method': 'POST'},
        {'value': '/mcp/query', 'label': 'Query', 'method': 'POST'},
        {'value': '/mcp/analyze', 'label': 'Analyze', 'method': 'POST'},
        {'value': '/mcp/action', 'label': 'Action', 'method': 'POST'},
        {'value': '/mcp/embeddings', 'label': 'Embeddings', 'method': 'POST'},
        {'value': '/health', 'label': 'Health Check', 'method': 'GET'},
    ],
    'backend-api': [
        {'value': '/orders', 'label': 'Create Order', 'method': 'POST'},
        {'value': '/orders/calculate', 'label': 'Calculate Order', 'method': 'POST'},
        {'value': '/orders/:id/details', 'label': 'Order Details', 'method': 'GET'},
        {'value': '/workflows/refund', 'label': 'Refund Workflow', 'method': 'POST'},
        {'value': '/workflows/fulfill', 'label': 'Fulfill Workflow', 'method': 'POST'},
        {'value': '/workflows/payroll/process', 'label': 'Process Payroll', 'method': 'POST'},
        {'value': '/analytics/aggregate', 'label': 'Aggregate Analytics', 'method': 'GET'},
        {'value': '/analytics/sales/by-product', 'label': 'Sales by Product', 'method': 'GET'},
        {'value': '/health', 'label': 'Health Check', 'method': 'GET'},
    ],
}

# Default config per rule type template; unknown rule types use 'generic'
RULE_TEMPLATE_CONFIGS = {
    'pricing': {'source_field': [], 'target_field': [], 'min_price': 0, 'max_price': 0,
                'percent': 0, 'fixed_amount': 0},
    'origin': {'source_field': '', 'source_value': '', 'target_field': '', 'target_value': ''},
    'scoring': {'field_name': '', 'field_value': '', 'target_field': '', 'score_multiplier': 1},
    'filter': {'field_name': '', 'field_value': ''},
    'generic': {'source_field': '', 'source_value': '', 'target_field': '', 'target_value': ''},
}

BUILTIN_RULE_TYPES = ('pricing', 'origin', 'scoring', 'filter')

RESERVED_FIELD_NAMES = ('_metadata', '_id', '_checksum')
