"""
Redis-based session state management
"""

import json
import redis
from datetime import datetime
from typing import Optional, Dict, Any
from gen3d.models.enums import Backend, ClientState
from gen3d.config import settings
import logging

logger = logging.getLogger(__name__)

TERMINAL_STATES = (ClientState.SUCCEEDED.value, ClientState.FAILED.value)


class SessionStore:
    """Persists generation session snapshots in Redis"""

    def __init__(self, redis_url: Optional[str] = None):
        self.redis_url = redis_url or settings.redis_url
        self._redis: Optional[redis.Redis] = None
        self.prefix = "session:"
        self.ttl = settings.session_ttl_seconds

    @property
    def redis(self) -> redis.Redis:
        """Lazy Redis connection"""
        if self._redis is None:
            self._redis = redis.from_url(self.redis_url, decode_responses=True)
        return self._redis

    def _key(self, session_id: str) -> str:
        """Generate Redis key for session"""
        return f"{self.prefix}{session_id}"

    def _save(self, session_id: str, data: Dict[str, Any]) -> None:
        self.redis.setex(self._key(session_id), self.ttl, json.dumps(data))

    def create_session(
        self,
        session_id: str,
        backend: Backend,
        filename: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Create a new session record"""
        now = datetime.utcnow().isoformat()
        session_data = {
            "session_id": session_id,
            "backend": backend.value,
            "state": ClientState.IDLE.value,
            "message": "Queued for generation",
            "filename": filename,
            "job_id": None,
            "job_status": None,
            "result_url": None,
            "error": None,
            "load_progress": None,
            "model": None,
            "created_at": now,
            "updated_at": now,
            "completed_at": None,
        }

        self._save(session_id, session_data)
        logger.info(f"Created session {session_id} for backend {backend.value}")
        return session_data

    def get_session(self, session_id: str) -> Optional[Dict[str, Any]]:
        """Get session data by ID"""
        data = self.redis.get(self._key(session_id))
        if data:
            return json.loads(data)
        return None

    def update_session(self, session_id: str, **fields: Any) -> Optional[Dict[str, Any]]:
        """Merge new fields into a session record"""
        session_data = self.get_session(session_id)
        if not session_data:
            logger.warning(f"Attempted to update non-existent session {session_id}")
            return None

        now = datetime.utcnow().isoformat()
        session_data["updated_at"] = now

        state = fields.get("state")
        if state is not None and state != session_data.get("state"):
            if state in TERMINAL_STATES:
                session_data["completed_at"] = now
            else:
                session_data["completed_at"] = None

        session_data.update(fields)
        self._save(session_id, session_data)

        logger.debug(f"Updated session {session_id}: state={session_data['state']}")
        return session_data

    def record_client(self, session_id: str, client) -> Optional[Dict[str, Any]]:
        """Snapshot a GenerationClient into the session record"""
        job = client.job
        fields = {}
        if client.backend is not None:
            fields["backend"] = client.backend.value
        return self.update_session(
            session_id,
            **fields,
            state=client.state.value,
            message=client.status_message,
            job_id=job.id if job else None,
            job_status=job.status.value if job else None,
            result_url=job.result_url if job else None,
            error=client.error.user_message if client.error else None,
            load_progress=client.load_progress,
            model=client.viewer.summary(),
        )

    def delete_session(self, session_id: str) -> bool:
        """Delete session record"""
        result = self.redis.delete(self._key(session_id))
        if result:
            logger.info(f"Deleted session {session_id}")
        return result > 0

    def health_check(self) -> bool:
        """Check Redis connection health"""
        try:
            return self.redis.ping()
        except Exception as e:
            logger.error(f"Redis health check failed: {e}")
            return False


# Global instance for dependency injection
_session_store: Optional[SessionStore] = None


def get_session_store() -> SessionStore:
    """Get or create SessionStore instance"""
    global _session_store
    if _session_store is None:
        _session_store = SessionStore()
    return _session_store
