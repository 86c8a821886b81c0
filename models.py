"""
Control panel data models

Dataclasses for the records the control panel edits or derives: ingestion
rules and their pending creates, markup configs, monitoring snapshots and
validation results. Raw feed, schedule, worker and role rows stay plain
dictionaries as returned by PostgREST.
"""

import json
import logging
from dataclasses import dataclass, field, asdict, replace
from typing import Dict, List, Any, Optional
from enum import Enum

logger = logging.getLogger(__name__)


class RuleType(Enum):
    """Built-in ingestion rule types; custom names are allowed too"""
    PRICING = "pricing"
    ORIGIN = "origin"
    SCORING = "scoring"
    FILTER = "filter"


FEED_RULES_SECTIONS = (
    'filters',
    'fieldMappings',
    'fieldTransformations',
    'calculatedFields',
    'shardRules',
)


def empty_feed_rules_config() -> Dict[str, List[Any]]:
    """Feed rules config with every section present and empty"""
    return {section: [] for section in FEED_RULES_SECTIONS}


def parse_json_blob(value: Any, default: Any = None) -> Any:
    """Decode a JSON column that may arrive as a string"""
    if isinstance(value, str):
        try:
            return json.loads(value)
        except ValueError as e:
            logger.error(f"Failed to parse JSON column: {e}")
            return default
    return value


@dataclass
class IngestionRule:
    """Rule scoped to a (feed_key, rule_type) pair, ordered by priority"""
    id: int
    tenant_id: int
    feed_key: str
    rule_type: str
    priority: int = 0
    enabled: bool = True
    config: Dict[str, Any] = field(default_factory=dict)
    name: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    created_by: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'IngestionRule':
        return cls(
            id=data['id'],
            tenant_id=data.get('tenant_id', 1),
            feed_key=data.get('feed_key', ''),
            rule_type=data.get('rule_type', ''),
            priority=data.get('priority') or 0,
            enabled=data.get('enabled', True),
            config=parse_json_blob(data.get('config'), {}) or {},
            name=data.get('name'),
            notes=data.get('notes'),
            created_at=data.get('created_at'),
            updated_at=data.get('updated_at'),
            created_by=data.get('created_by'),
        )

    def with_changes(self, **changes) -> 'IngestionRule':
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class PendingCreateRule:
    """A staged rule that only exists locally until the next batch save"""
    temp_id: int
    tenant_id: int
    feed_key: str
    rule_type: str
    priority: int = 0
    enabled: bool = True
    config: Dict[str, Any] = field(default_factory=dict)
    name: Optional[str] = None
    notes: Optional[str] = None

    def to_create_input(self) -> Dict[str, Any]:
        """Payload for the rules table insert, without the temp id"""
        payload = {
            'tenant_id': self.tenant_id,
            'feed_key': self.feed_key,
            'rule_type': self.rule_type,
            'priority': self.priority,
            'enabled': self.enabled,
            'config': self.config,
        }
        if self.name is not None:
            payload['name'] = self.name
        if self.notes is not None:
            payload['notes'] = self.notes
        return payload

    def to_rule(self) -> IngestionRule:
        return IngestionRule(
            id=self.temp_id,
            tenant_id=self.tenant_id,
            feed_key=self.feed_key,
            rule_type=self.rule_type,
            priority=self.priority,
            enabled=self.enabled,
            config=dict(self.config),
            name=self.name,
            notes=self.notes,
        )


@dataclass
class MarkupRulesConfig:
    """Markup tiers of a feed plus the price fields they apply to"""
    rules: List[Dict[str, Any]] = field(default_factory=list)
    price_fields: Optional[List[str]] = None

    def to_dict(self) -> Dict[str, Any]:
        return {'rules': self.rules, 'priceFields': self.price_fields}


@dataclass
class ValidationError:
    field: str
    message: str
    type: str = "error"  # error, warning


@dataclass
class ValidationResult:
    valid: bool
    errors: List[ValidationError] = field(default_factory=list)

    @property
    def warnings(self) -> List[ValidationError]:
        return [e for e in self.errors if e.type == 'warning']

    def to_dict(self) -> Dict[str, Any]:
        return {'valid': self.valid, 'errors': [asdict(e) for e in self.errors]}


@dataclass
class SchedulerStatus:
    is_running: bool = False
    active_schedules: int = 0
    poll_interval_ms: int = 0
    monitoring_interval_ms: int = 0
    last_check: Optional[str] = None


@dataclass
class QueueStats:
    pending: int = 0
    processing: int = 0
    failed: int = 0
    completed: int = 0
    stuck: Optional[int] = None


@dataclass
class StuckJob:
    job_id: str
    runtime_seconds: float = 0
    schedule_id: Optional[int] = None
    started_at: Optional[str] = None
    details: Optional[str] = None


@dataclass
class WorkerHealth:
    status: str  # healthy, degraded, down
    last_check: str
    queue: QueueStats
    message: Optional[str] = None
    stuck_jobs: List[StuckJob] = field(default_factory=list)


@dataclass
class AlertItem:
    id: str
    type: str
    message: str
    severity: str  # info, warning, critical
    created_at: str
    meta: Optional[Dict[str, Any]] = None


@dataclass
class ActiveJob:
    job_id: str
    status: str
    started_at: str
    runtime_seconds: float = 0


@dataclass
class ScheduleMonitorRow:
    id: int
    tenant_id: int
    name: str
    enabled: bool
    cron_expression: str
    run_count: int = 0
    error_count: int = 0
    error_rate: float = 0
    target_service: str = ""
    target_endpoint: str = ""
    http_method: str = "POST"
    last_run: Optional[str] = None
    next_run: Optional[str] = None
    active_job: Optional[ActiveJob] = None
    last_error: Optional[str] = None


@dataclass
class MonitoringSnapshot:
    """Scheduler and worker state fetched on every dashboard poll"""
    updated_at: str
    scheduler: SchedulerStatus
    worker_health: WorkerHealth
    queue: QueueStats
    alerts: List[AlertItem] = field(default_factory=list)
    schedules: List[ScheduleMonitorRow] = field(default_factory=list)
    totals: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class WorkerStats:
    total_workers: int = 0
    active_workers: int = 0
    idle_workers: int = 0
    failed_workers: int = 0
    total_tasks_today: int = 0
    success_rate: float = 0.0
