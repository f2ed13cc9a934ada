import secrets
from typing import Any, Dict, Optional


def new_session_id() -> str:
    # 32 bytes -> 43 chars when urlsafe encoded
    return secrets.token_urlsafe(32)


class Session:
    """
    In-memory snapshot of one session record.

    Loaded by the host at request start and persisted at request end. All
    reads and writes during the request happen against this object only.
    """

    def __init__(self, session_id: Optional[str] = None, data: Optional[Dict[str, Any]] = None):
        """
        Initialize session snapshot.

        Args:
            session_id: Existing session identifier, or None for no session yet
            data: Previously persisted session data
        """
        self.session_id = session_id
        self.data: Dict[str, Any] = dict(data or {})
        self.is_new = False
        self.modified = False

    @property
    def is_active(self) -> bool:
        return self.session_id is not None

    def ensure_active(self) -> None:
        """Assign a session id if this request has none yet."""
        if self.session_id is None:
            self.session_id = new_session_id()
            self.is_new = True
            self.modified = True

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self.data[key] = value
        self.modified = True

    def delete(self, key: str) -> None:
        if key in self.data:
            del self.data[key]
            self.modified = True

    def __contains__(self, key: object) -> bool:
        return key in self.data

    def to_dict(self) -> Dict[str, Any]:
        """Get session data for persistence."""
        return dict(self.data)

    def __repr__(self) -> str:
        sid = self.session_id[:8] + "..." if self.session_id else None
        return f"Session(id={sid!r}, keys={sorted(self.data)})"
