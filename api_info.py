"""
API metadata of the control panel service.
"""
from typing import Dict, Any
from datetime import datetime


def get_api_info() -> Dict[str, Any]:
    """Service name, version and the public endpoints, served at /api/info."""
    return {
        "service": "ingestion-control-panel",
        "version": "1.0.0",
        "description": "Control panel for scheduled feed ingestion: feeds, rules, schedules and monitoring.",
        "timestamp": datetime.utcnow().isoformat() + "Z",
        "endpoints": [
            {"method": "GET", "path": "/health", "desc": "Basic health check"},
            {"method": "GET", "path": "/api/status", "desc": "Upstream and component status"},
            {"method": "GET", "path": "/api/info", "desc": "API metadata"},
            {"method": "GET", "path": "/api/services/{service}/health", "desc": "Probe one upstream"},
            {"method": "GET|POST|PATCH|DELETE", "path": "/api/feeds", "desc": "Feeds proxy"},
            {"method": "GET", "path": "/api/feeds/headers", "desc": "Header schema of a feed"},
            {"method": "GET", "path": "/api/collections", "desc": "Typesense collections"},
            {"method": "GET", "path": "/api/collections/{name}/last-update", "desc": "Newest document time"},
            {"method": "GET", "path": "/api/collections/test", "desc": "Typesense connection diagnostic"},
            {"method": "GET", "path": "/api/typesense/health", "desc": "Typesense health via the gateway"},
            {"method": "GET", "path": "/api/scheduler/monitoring", "desc": "Monitoring snapshot proxy"},
            {"method": "POST", "path": "/api/schedules/execute", "desc": "Run a schedule now"},
            {"method": "GET", "path": "/api/schema/columns", "desc": "Schema columns proxy"},
            {"method": "GET", "path": "/api/workers", "desc": "Worker jobs proxy"},
            {"method": "GET", "path": "/dashboard", "desc": "Monitoring page view model"},
            {"method": "GET", "path": "/feeds/markup", "desc": "Markup rules of every feed"},
            {"method": "GET", "path": "/feeds/{feed_id}/rules", "desc": "Feed rules editor"},
            {"method": "GET|PUT", "path": "/feeds/{feed_id}/markup-rules", "desc": "Markup rules of a feed"},
            {"method": "POST", "path": "/rules/sessions", "desc": "Open a rules editing session"},
            {"method": "GET", "path": "/rules/feeds", "desc": "Feed keys and rule types"},
            {"method": "GET", "path": "/rules/config", "desc": "Combined ingestion config of a feed"},
            {"method": "GET", "path": "/admin/roles", "desc": "Roles with permissions"},
            {"method": "GET", "path": "/pending-approval/status", "desc": "Approval state of the current user"},
            {"method": "GET", "path": "/me/permissions", "desc": "Role and permission flags of the current user"},
        ],
    }
