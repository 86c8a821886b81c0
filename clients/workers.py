"""
Workers API

Job rows of ``sys_workers`` plus the worker's retry and stop actions.
"""

from datetime import datetime
from typing import Dict, Any, List, Optional, Tuple

from adapters.gateway_client import GatewayClient
from exceptions import ResourceNotFoundError
from models import WorkerStats

WORKERS_PATH = '/rest/sys_workers'
WORKERS_ORDER = 'started_at.desc.nullslast,created_at.desc'


def _parse_timestamp(value: str) -> Optional[datetime]:
    try:
        return datetime.fromisoformat(value.replace('Z', '+00:00'))
    except (AttributeError, ValueError):
        return None


def calculate_worker_stats(workers: List[Dict[str, Any]], now: Optional[datetime] = None) -> WorkerStats:
    """Totals per status, jobs started since local midnight and success rate"""
    now = (now or datetime.now()).astimezone()
    start_of_day = now.replace(hour=0, minute=0, second=0, microsecond=0)

    started_today = 0
    for worker in workers:
        started_at = _parse_timestamp(worker.get('started_at')) if worker.get('started_at') else None
        if started_at is None:
            continue
        if started_at.tzinfo is None:
            started_at = started_at.replace(tzinfo=start_of_day.tzinfo)
        if started_at >= start_of_day:
            started_today += 1

    def count(status: str) -> int:
        return len([w for w in workers if w.get('status') == status])

    total = len(workers)
    return WorkerStats(
        total_workers=total,
        active_workers=count('running'),
        idle_workers=count('pending'),
        failed_workers=count('failed'),
        total_tasks_today=started_today,
        success_rate=(count('completed') / total) * 100 if total else 0,
    )


class WorkersApi:

    def __init__(self, gateway: GatewayClient):
        self.gateway = gateway

    async def get_all(self, filters: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        """Worker jobs, newest first

        Args:
            filters: status, tenant_id, worker_id, feed_name, date_from, date_to
        """
        filters = filters or {}
        params: List[Tuple[str, str]] = [('order', WORKERS_ORDER)]

        for key in ('status', 'tenant_id', 'worker_id', 'feed_name'):
            if filters.get(key):
                params.append((key, f"eq.{filters[key]}"))

        # created_at also covers jobs that never started
        if filters.get('date_from'):
            params.append(('created_at', f"gte.{filters['date_from']}"))
        if filters.get('date_to'):
            params.append(('created_at', f"lte.{filters['date_to']}"))

        return await self.gateway.request_json('GET', WORKERS_PATH, params=params) or []

    async def get_by_id(self, worker_id: int) -> Dict[str, Any]:
        rows = await self.gateway.request_json(
            'GET', WORKERS_PATH, params={'id': f'eq.{worker_id}'}
        ) or []
        if not rows:
            raise ResourceNotFoundError('Worker', worker_id)
        return rows[0]

    async def get_stats(self, tenant_id: Optional[int] = None) -> WorkerStats:
        params = {'tenant_id': f'eq.{tenant_id}'} if tenant_id else None
        workers = await self.gateway.request_json('GET', WORKERS_PATH, params=params) or []
        return calculate_worker_stats(workers)

    async def get_recent(self, limit: int = 20) -> List[Dict[str, Any]]:
        return await self.gateway.request_json(
            'GET', WORKERS_PATH, params={'order': WORKERS_ORDER, 'limit': str(limit)}
        ) or []

    async def retry(self, worker_id: int) -> Any:
        return await self.gateway.request_json('POST', f'/worker/retry/{worker_id}')

    async def stop(self, worker_id: int) -> None:
        await self.gateway.request_json('POST', f'/worker/stop/{worker_id}')
