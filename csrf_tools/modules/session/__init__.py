"""
Session Module - Black Box Interface

Purpose: Hold per-request session state and persist it between requests
Interface: Session (SessionStore), InMemorySessionBackend, RedisSessionBackend
Hidden: Session id generation, serialization, TTL management

Replaceable with any session backend (database, in-memory, distributed cache).
"""

from .backends import InMemorySessionBackend, RedisSessionBackend
from .interfaces import SessionBackend, SessionStore
from .session import Session, new_session_id

__all__ = [
    "InMemorySessionBackend",
    "RedisSessionBackend",
    "Session",
    "SessionBackend",
    "SessionStore",
    "new_session_id",
]
