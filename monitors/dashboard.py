"""
Monitoring dashboard view model

Filters and summarizes the schedule rows of a MonitoringSnapshot for the
monitoring page, and runs schedules through the execution guard.
"""

import logging
from dataclasses import dataclass, asdict
from enum import Enum
from typing import Dict, List, Any, Optional

from clients.monitoring import MonitoringApi
from clients.schedules import SchedulesApi
from managers.query_cache import QueryCache
from models import MonitoringSnapshot, ScheduleMonitorRow
from scheduler.execution_guard import ExecutionGuard

logger = logging.getLogger(__name__)

MONITORING_KEY = ('monitoring',)
SCHEDULES_KEY = ('schedules',)


class StatusFilter(Enum):
    """Schedule status filter of the monitoring page"""
    ALL = "all"
    ENABLED = "enabled"
    DISABLED = "disabled"
    ALERT = "alert"


@dataclass
class ScheduleFilters:
    tenant: str = "all"
    service: str = "all"
    status: StatusFilter = StatusFilter.ALL
    search: str = ""

    @classmethod
    def from_query(cls, query: Dict[str, str]) -> 'ScheduleFilters':
        try:
            status = StatusFilter(query.get('status', 'all'))
        except ValueError:
            status = StatusFilter.ALL
        return cls(
            tenant=query.get('tenant', 'all') or 'all',
            service=query.get('service', 'all') or 'all',
            status=status,
            search=(query.get('search') or '').strip(),
        )

    def to_dict(self) -> Dict[str, str]:
        data = asdict(self)
        data['status'] = self.status.value
        return data


def service_label(service: str) -> str:
    """``backend-api`` -> ``Backend Api``"""
    return ' '.join(word[:1].upper() + word[1:] for word in service.replace('-', ' ').split(' '))


def tenant_options(rows: List[ScheduleMonitorRow]) -> List[Dict[str, str]]:
    tenants = sorted({row.tenant_id for row in rows})
    return [{'value': str(t), 'label': f"Tenant {t}"} for t in tenants]


def service_options(rows: List[ScheduleMonitorRow]) -> List[Dict[str, str]]:
    services = sorted({row.target_service for row in rows if row.target_service})
    return [{'value': s, 'label': service_label(s)} for s in services]


def is_alert_row(row: ScheduleMonitorRow, threshold: float = 20.0) -> bool:
    return row.error_rate >= threshold or bool(row.last_error)


def alert_rows(rows: List[ScheduleMonitorRow], threshold: float = 20.0) -> List[ScheduleMonitorRow]:
    return [row for row in rows if is_alert_row(row, threshold)]


def filter_rows(rows: List[ScheduleMonitorRow], filters: ScheduleFilters,
                threshold: float = 20.0) -> List[ScheduleMonitorRow]:
    """Rows matching tenant, service, status and a name/endpoint search"""
    search = filters.search.lower()
    result = []

    for row in rows:
        if filters.tenant != 'all' and str(row.tenant_id) != filters.tenant:
            continue
        if filters.service != 'all' and row.target_service != filters.service:
            continue
        if filters.status == StatusFilter.ENABLED and not row.enabled:
            continue
        if filters.status == StatusFilter.DISABLED and row.enabled:
            continue
        # running jobs count as alerts too
        if filters.status == StatusFilter.ALERT and not (
                is_alert_row(row, threshold) or row.active_job is not None):
            continue
        if search and search not in row.name.lower() and search not in (row.target_endpoint or '').lower():
            continue
        result.append(row)

    return result


def summary_totals(snapshot: MonitoringSnapshot) -> Dict[str, int]:
    """Summary cards, preferring the gateway totals when present"""
    totals = snapshot.totals or {}

    def pick(key: str, fallback: int) -> int:
        value = totals.get(key)
        return value if value is not None else fallback

    return {
        'schedules': pick('schedules', len(snapshot.schedules)),
        'active_schedules': pick('active_schedules', len([s for s in snapshot.schedules if s.enabled])),
        'failed_jobs': pick('failed_jobs', snapshot.queue.failed),
        'stuck_jobs': pick('stuck_jobs', len(snapshot.worker_health.stuck_jobs)),
    }


class MonitoringDashboard:
    """Monitoring page backed by the gateway snapshot"""

    def __init__(self, monitoring_api: MonitoringApi, schedules_api: SchedulesApi,
                 cache: QueryCache, guard: ExecutionGuard,
                 poll_interval_seconds: int = 10, alert_threshold: float = 20.0):
        self.monitoring_api = monitoring_api
        self.schedules_api = schedules_api
        self.cache = cache
        self.guard = guard
        self.poll_interval_seconds = poll_interval_seconds
        self.alert_threshold = alert_threshold

    async def get_snapshot(self, refresh: bool = False) -> MonitoringSnapshot:
        snapshot = None if refresh else self.cache.get(MONITORING_KEY)
        if snapshot is None:
            snapshot = await self.monitoring_api.get_overview()
            # half the poll interval keeps polling clients on fresh data
            self.cache.set(MONITORING_KEY, snapshot, ttl=max(self.poll_interval_seconds // 2, 1))
        return snapshot

    async def build_view(self, filters: Optional[ScheduleFilters] = None,
                         refresh: bool = False) -> Dict[str, Any]:
        filters = filters or ScheduleFilters()
        snapshot = await self.get_snapshot(refresh)
        rows = snapshot.schedules
        alerts = alert_rows(rows, self.alert_threshold)

        return {
            'snapshot': snapshot.to_dict(),
            'filters': filters.to_dict(),
            'tenant_options': tenant_options(rows),
            'service_options': service_options(rows),
            'schedules': [asdict(r) for r in filter_rows(rows, filters, self.alert_threshold)],
            'alert_schedules': [asdict(r) for r in alerts],
            'alert_count': len(alerts),
            'totals': summary_totals(snapshot),
            'poll_interval_seconds': self.poll_interval_seconds,
        }

    async def execute_schedule(self, schedule_id: int) -> Any:
        """Run a schedule now and drop cached schedule and monitoring data

        Raises:
            ExecutionInProgressError: The schedule was started moments ago
        """
        result = await self.guard.run(schedule_id, lambda: self.schedules_api.execute(schedule_id))
        self.cache.invalidate(SCHEDULES_KEY)
        self.cache.invalidate(MONITORING_KEY)
        logger.info(f"Executed schedule {schedule_id}")
        return result
