"""
Monitoring views

Filtering, alerting and summary helpers for the scheduler and worker
monitoring page.
"""

from .dashboard import (
    MonitoringDashboard, ScheduleFilters, StatusFilter,
    alert_rows, filter_rows, service_options, summary_totals, tenant_options
)

__all__ = [
    'MonitoringDashboard',
    'ScheduleFilters',
    'StatusFilter',
    'alert_rows',
    'filter_rows',
    'service_options',
    'summary_totals',
    'tenant_options'
]
