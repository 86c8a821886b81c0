"""
Monitoring API

Fetches the scheduler/worker snapshot from the gateway and converts the
camelCase payload into a MonitoringSnapshot.
"""

from datetime import datetime, timezone
from typing import Dict, Any, List, Optional

from adapters.gateway_client import GatewayClient
from exceptions import UpstreamServiceError
from models import (
    ActiveJob, AlertItem, MonitoringSnapshot, QueueStats, ScheduleMonitorRow,
    SchedulerStatus, StuckJob, WorkerHealth
)

MONITORING_PATH = '/scheduler/monitoring'


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z')


def _coalesce(*values, default=None):
    """First value that is not None"""
    for value in values:
        if value is not None:
            return value
    return default


def _first_truthy(*values, default=None):
    for value in values:
        if value:
            return value
    return default


def _to_int(value: Any) -> int:
    try:
        return int(str(value))
    except (TypeError, ValueError):
        return 0


def _queue_counts(health_queue: Optional[Dict[str, Any]]) -> Dict[str, int]:
    """Counts from the ``stats`` array, falling back to plain numbers"""
    health_queue = health_queue or {}
    stats = health_queue.get('stats') if isinstance(health_queue.get('stats'), list) else []

    def count(status: str) -> int:
        for stat in stats:
            if stat.get('status') == status:
                return _to_int(stat.get('count'))
        return 0

    return {
        'pending': count('pending') or _coalesce(health_queue.get('pending'), default=0),
        'processing': count('processing') or _coalesce(health_queue.get('processing'), default=0),
        'failed': count('failed'),
        'completed': count('completed'),
    }


def _transform_scheduler(data: Optional[Dict[str, Any]]) -> SchedulerStatus:
    if not data:
        return SchedulerStatus()
    return SchedulerStatus(
        is_running=_coalesce(data.get('isRunning'), default=False),
        active_schedules=_coalesce(data.get('activeSchedules'), default=0),
        poll_interval_ms=_coalesce(data.get('pollInterval'), default=0),
        monitoring_interval_ms=_coalesce(data.get('monitoringInterval'), default=0),
        last_check=data.get('lastCheck'),
    )


def _transform_stuck_job(job: Dict[str, Any]) -> StuckJob:
    return StuckJob(
        job_id=_first_truthy(job.get('jobId'), job.get('job_id'), default=str(job.get('id') or '')),
        schedule_id=_first_truthy(job.get('scheduleId'), job.get('schedule_id')),
        runtime_seconds=_first_truthy(job.get('runtimeSeconds'), job.get('runtime_seconds'), default=0),
        started_at=_first_truthy(job.get('startedAt'), job.get('started_at')),
        details=job.get('details'),
    )


def _transform_worker_health(worker: Dict[str, Any]) -> WorkerHealth:
    health = worker.get('health')
    stuck_jobs = (worker.get('queue') or {}).get('stuckJobs')

    if not health:
        return WorkerHealth(status='down', last_check=_now_iso(), queue=QueueStats())

    return WorkerHealth(
        status=health.get('status') or 'down',
        last_check=health.get('timestamp') or _now_iso(),
        message=health.get('message'),
        queue=QueueStats(stuck=len(stuck_jobs) if stuck_jobs is not None else 0,
                         **_queue_counts(health.get('queue'))),
        stuck_jobs=[_transform_stuck_job(job) for job in stuck_jobs or []],
    )


def _transform_active_job(job: Optional[Dict[str, Any]]) -> Optional[ActiveJob]:
    if not job:
        return None
    return ActiveJob(
        job_id=_first_truthy(job.get('jobId'), job.get('job_id'), default=str(job.get('id') or '')),
        status=job.get('status') or 'running',
        started_at=_first_truthy(job.get('startedAt'), job.get('started_at'), default=_now_iso()),
        runtime_seconds=_first_truthy(job.get('runtimeSeconds'), job.get('runtime_seconds'), default=0),
    )


def _transform_schedule(schedule: Dict[str, Any]) -> ScheduleMonitorRow:
    schedule_id = schedule.get('id')
    if isinstance(schedule_id, str):
        schedule_id = _to_int(schedule_id)

    return ScheduleMonitorRow(
        id=schedule_id,
        tenant_id=_coalesce(schedule.get('tenantId'), schedule.get('tenant_id'), default=1),
        name=schedule.get('name') or 'Unnamed Schedule',
        enabled=_coalesce(schedule.get('enabled'), default=False),
        cron_expression=_first_truthy(schedule.get('cronExpression'), schedule.get('cron_expression'), default=''),
        last_run=_first_truthy(schedule.get('lastRun'), schedule.get('last_run')),
        next_run=_first_truthy(schedule.get('nextRun'), schedule.get('next_run')),
        run_count=_coalesce(schedule.get('runCount'), schedule.get('run_count'), default=0),
        error_count=_coalesce(schedule.get('errorCount'), schedule.get('error_count'), default=0),
        error_rate=_coalesce(schedule.get('errorRate'), schedule.get('error_rate'), default=0),
        target_service=_first_truthy(schedule.get('targetService'), schedule.get('target_service'), default=''),
        target_endpoint=_first_truthy(schedule.get('targetEndpoint'), schedule.get('target_endpoint'), default=''),
        http_method=_first_truthy(schedule.get('httpMethod'), schedule.get('http_method'), default='POST'),
        active_job=_transform_active_job(schedule.get('activeJob')),
        last_error=_first_truthy(schedule.get('lastError'), schedule.get('last_error')),
    )


def _transform_alert(alert: Dict[str, Any]) -> AlertItem:
    return AlertItem(
        id=str(alert.get('id') or ''),
        type=alert.get('type') or 'unknown',
        message=alert.get('message') or '',
        severity=alert.get('severity') or 'info',
        created_at=_first_truthy(alert.get('createdAt'), alert.get('created_at'), default=_now_iso()),
        meta=alert.get('meta'),
    )


def transform_monitoring_response(data: Dict[str, Any]) -> MonitoringSnapshot:
    """Gateway monitoring payload to MonitoringSnapshot"""
    data = data or {}
    worker = data.get('worker') or {}
    health_queue = (worker.get('health') or {}).get('queue')
    stuck_jobs = (worker.get('queue') or {}).get('stuckJobs')

    if health_queue:
        queue = QueueStats(stuck=len(stuck_jobs) if stuck_jobs is not None else 0,
                           **_queue_counts(health_queue))
    else:
        queue = QueueStats()

    schedules: List[ScheduleMonitorRow] = []
    if isinstance(data.get('schedules'), list):
        schedules = [_transform_schedule(s) for s in data['schedules']]

    alerts: List[AlertItem] = []
    if isinstance(data.get('alerts'), list):
        alerts = [_transform_alert(a) for a in data['alerts']]

    return MonitoringSnapshot(
        updated_at=_first_truthy(data.get('timestamp'), data.get('updated_at'), default=_now_iso()),
        scheduler=_transform_scheduler(data.get('scheduler')),
        worker_health=_transform_worker_health(worker),
        queue=queue,
        alerts=alerts,
        schedules=schedules,
        totals=data.get('totals'),
    )


class MonitoringApi:

    def __init__(self, gateway: GatewayClient):
        self.gateway = gateway

    async def get_overview(self, params: Optional[Dict[str, str]] = None) -> MonitoringSnapshot:
        response = await self.gateway.request('GET', MONITORING_PATH, params=params)
        if not response.ok:
            raise UpstreamServiceError(
                'Gateway', 'GET', MONITORING_PATH, response.status,
                f"Failed to load monitoring snapshot: {response.text or response.reason}"
            )
        return transform_monitoring_response(response.json())
