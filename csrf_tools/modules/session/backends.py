"""
Session persistence backends.

Both backends store a whole session record per id. The host loads the record
at request start and saves it at request end; nothing here understands what
the record contains.
"""

import json
import logging
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


class InMemorySessionBackend:
    """Process-local session storage for tests and single-process development."""

    def __init__(self):
        self._records: Dict[str, str] = {}

    async def load(self, session_id: str) -> Optional[Dict[str, Any]]:
        data = self._records.get(session_id)
        if data is None:
            return None
        return json.loads(data)

    async def save(self, session_id: str, data: Dict[str, Any]) -> None:
        # Serialize so callers never share mutable state with the store
        self._records[session_id] = json.dumps(data)

    async def delete(self, session_id: str) -> None:
        self._records.pop(session_id, None)


class RedisSessionBackend:
    """
    Redis-backed session storage.

    The TTL is reset on every save. SessionMiddleware saves only modified
    sessions, so an idle or read-only session expires ttl seconds after its
    last write.
    """

    def __init__(self, redis_client, default_ttl: int = 3600, key_prefix: str = "session:"):
        """
        Initialize Redis session backend.

        Args:
            redis_client: Async Redis client
            default_ttl: Session TTL in seconds, refreshed on every save
            key_prefix: Prefix for session keys
        """
        self.redis = redis_client
        self.default_ttl = default_ttl
        self.key_prefix = key_prefix

    def _key(self, session_id: str) -> str:
        return f"{self.key_prefix}{session_id}"

    async def load(self, session_id: str) -> Optional[Dict[str, Any]]:
        """
        Get session data.

        Args:
            session_id: Session identifier

        Returns:
            Session data dict or None if not found or unreadable
        """
        data = await self.redis.get(self._key(session_id))
        if not data:
            return None

        if isinstance(data, bytes):
            data = data.decode("utf-8")

        try:
            record = json.loads(data)
        except json.JSONDecodeError as e:
            logger.warning(f"Discarding corrupt session record {session_id[:8]}...: {e}")
            return None

        if not isinstance(record, dict):
            logger.warning(f"Discarding non-mapping session record {session_id[:8]}...")
            return None
        return record

    async def save(self, session_id: str, data: Dict[str, Any]) -> None:
        """Store session data and reset its TTL."""
        await self.redis.setex(self._key(session_id), self.default_ttl, json.dumps(data))

    async def delete(self, session_id: str) -> None:
        await self.redis.delete(self._key(session_id))
