"""Session interfaces following Black Box Design principles."""
from typing import Any, Dict, Optional, Protocol


class SessionStore(Protocol):
    """Protocol for the request-scoped session a token manager reads and writes."""

    def ensure_active(self) -> None:
        """Guarantee a session context exists, creating one if necessary."""
        ...

    def get(self, key: str, default: Any = None) -> Any:
        """Return the value stored under key, or default."""
        ...

    def set(self, key: str, value: Any) -> None:
        """Store value under key."""
        ...

    def delete(self, key: str) -> None:
        """Remove key if present."""
        ...

    def __contains__(self, key: object) -> bool:
        ...


class SessionBackend(Protocol):
    """Protocol for session persistence - allows swappable implementations."""

    async def load(self, session_id: str) -> Optional[Dict[str, Any]]:
        """
        Load a session record.

        Args:
            session_id: Session identifier

        Returns:
            Session data dict or None if not found
        """
        ...

    async def save(self, session_id: str, data: Dict[str, Any]) -> None:
        """Persist a session record."""
        ...

    async def delete(self, session_id: str) -> None:
        """Remove a session record."""
        ...
