"""
Token manager for session-bound CSRF tokens.

A token has a name, chosen by the caller, and a value, always generated
here. Values live in the session under a single namespace key, and each
name owns two slots:

- new: the value returned by the latest create_token call
- old: the value that was in "new" before that call

Why two slots? A form page is usually invoked twice: once to display the
form and once to receive the post. If the page calls create_token before
is_valid, the second invocation rotates the token before validating, so the
value the user actually submitted is now in the "old" slot. Validate against
"old" in that case (the default).

When one endpoint issues the token and a different endpoint validates it
(e.g. a page plus an AJAX handler), create_token has only run once per round
trip and validation must use the "new" slot. Picking the slot is up to the
caller; it depends on how the application is wired.

For single-use tokens, delete the token right after a successful
validation so the same value cannot be replayed:

    if manager.is_valid("delete_account", submitted, use_new_slot=True):
        manager.delete_token("delete_account")
        ...
"""

import logging
import secrets
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from ..session.interfaces import SessionStore
from .generator import generate_token

logger = logging.getLogger(__name__)

DEFAULT_NAMESPACE = "csrf_tools_token"


@dataclass
class TokenEntry:
    """The two slots held for one token name."""

    new_value: str
    old_value: Optional[str] = None

    def rotate(self, fresh_value: str) -> None:
        """Move the current new value into old, then store fresh_value as new."""
        self.old_value = self.new_value
        self.new_value = fresh_value

    def to_dict(self) -> Dict[str, str]:
        data = {"new": self.new_value}
        if self.old_value is not None:
            data["old"] = self.old_value
        return data

    @classmethod
    def from_dict(cls, data: Any) -> Optional["TokenEntry"]:
        """Rebuild an entry from session data, or None if it is unusable."""
        if not isinstance(data, dict) or not isinstance(data.get("new"), str):
            return None
        old_value = data.get("old")
        if not isinstance(old_value, str):
            old_value = None
        return cls(new_value=data["new"], old_value=old_value)


class TokenManager:
    """
    Create, validate and delete named CSRF tokens stored in a session.

    The manager keeps no token state of its own. Build one per session scope
    and hand it to the request handlers that need it.
    """

    def __init__(
        self,
        store: SessionStore,
        namespace: str = DEFAULT_NAMESPACE,
        token_factory: Callable[[], str] = generate_token,
    ):
        """
        Initialize token manager.

        Args:
            store: Session store holding the token namespace
            namespace: Session key under which all tokens are stored
            token_factory: Zero-argument callable returning a fresh token value
        """
        self.store = store
        self.namespace = namespace
        self.token_factory = token_factory

    def _entries(self) -> Dict[str, Any]:
        """Ensure the session and namespace exist, then return the namespace mapping."""
        self.store.ensure_active()
        entries = self.store.get(self.namespace)
        if not isinstance(entries, dict):
            entries = {}
            self.store.set(self.namespace, entries)
        return entries

    def get_entry(self, token_name: str) -> Optional[TokenEntry]:
        """Return a copy of the stored slots for token_name, if any."""
        return TokenEntry.from_dict(self._entries().get(token_name))

    def create_token(self, token_name: str) -> str:
        """
        Create a token value for token_name and store it in the "new" slot.

        If the name already has a token, the previous "new" value moves to
        the "old" slot, replacing whatever was there.

        Args:
            token_name: Caller-chosen token name

        Returns:
            The freshly generated token value
        """
        entries = dict(self._entries())
        token = self.token_factory()

        entry = TokenEntry.from_dict(entries.get(token_name))
        if entry is None:
            entry = TokenEntry(new_value=token)
        else:
            entry.rotate(token)

        entries[token_name] = entry.to_dict()
        self.store.set(self.namespace, entries)

        logger.debug(
            f"Created token {token_name!r} ({token[:8]}...), "
            f"old slot {'set' if entry.old_value else 'empty'}"
        )
        return token

    def is_valid(self, token_name: str, token_value: Optional[str], use_new_slot: bool = False) -> bool:
        """
        Check whether token_name exists and holds token_value.

        Args:
            token_name: Token name
            token_value: Value submitted by the client
            use_new_slot: Compare against the "new" slot instead of "old"

        Returns:
            True if the chosen slot exists and matches exactly
        """
        entry = TokenEntry.from_dict(self._entries().get(token_name))
        if entry is None:
            logger.debug(f"Token {token_name!r} not found")
            return False

        expected = entry.new_value if use_new_slot else entry.old_value
        if expected is None:
            # Only one create_token call so far; nothing in the old slot yet
            return False

        if not isinstance(token_value, str) or not token_value:
            return False

        # Use constant-time comparison for security
        return secrets.compare_digest(token_value.encode("utf-8"), expected.encode("utf-8"))

    def delete_token(self, token_name: str) -> None:
        """Remove both slots for token_name. No-op if it does not exist."""
        entries = self._entries()
        if token_name not in entries:
            return

        entries = dict(entries)
        del entries[token_name]
        self.store.set(self.namespace, entries)
        logger.debug(f"Deleted token {token_name!r}")
