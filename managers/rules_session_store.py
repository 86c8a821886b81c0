"""
In-process store of rules editing sessions
"""

import logging
import threading
import uuid
from datetime import datetime, timedelta
from typing import Dict, Any, Optional

from exceptions import ResourceNotFoundError
from managers.rules_state import RulesState

logger = logging.getLogger(__name__)


class RulesSessionStore:
    """RulesState objects by session id, expiring after a period of disuse"""

    def __init__(self, ttl_seconds: int = 3600):
        self.ttl = timedelta(seconds=ttl_seconds)
        self._sessions: Dict[str, RulesState] = {}
        self._last_used: Dict[str, datetime] = {}
        self._lock = threading.RLock()

    def create(self, state: RulesState) -> str:
        session_id = uuid.uuid4().hex
        with self._lock:
            self.prune()
            self._sessions[session_id] = state
            self._last_used[session_id] = datetime.now()

        logger.info(
            f"Opened rules session {session_id} for {state.selected_feed}/{state.selected_rule_type}"
        )
        return session_id

    def get(self, session_id: str) -> RulesState:
        with self._lock:
            state = self._sessions.get(session_id)
            if state is None or self._expired(session_id):
                self._drop(session_id)
                raise ResourceNotFoundError('Rules session', session_id)
            self._last_used[session_id] = datetime.now()
            return state

    def close(self, session_id: str) -> bool:
        with self._lock:
            return self._drop(session_id)

    def prune(self) -> int:
        with self._lock:
            expired = [sid for sid in self._sessions if self._expired(sid)]
            for session_id in expired:
                self._drop(session_id)

        if expired:
            logger.debug(f"Pruned {len(expired)} expired rules sessions")
        return len(expired)

    def _expired(self, session_id: str, now: Optional[datetime] = None) -> bool:
        last_used = self._last_used.get(session_id)
        if last_used is None:
            return True
        return (now or datetime.now()) - last_used > self.ttl

    def _drop(self, session_id: str) -> bool:
        self._last_used.pop(session_id, None)
        return self._sessions.pop(session_id, None) is not None

    def __len__(self) -> int:
        return len(self._sessions)

    def get_statistics(self) -> Dict[str, Any]:
        with self._lock:
            return {
                'active_sessions': len(self._sessions),
                'ttl_seconds': int(self.ttl.total_seconds()),
            }
