"""
Scheduler helpers

Schedules run in the external scheduler service; this package only guards
manual executions started from the control panel.
"""

from .execution_guard import ExecutionGuard

__all__ = ['ExecutionGuard']
