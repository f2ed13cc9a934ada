"""
Tokens Module - Black Box Interface

Purpose: Issue and validate session-bound CSRF tokens
Interface: create_token(), is_valid(), delete_token()
Hidden: Slot rotation, namespace layout in the session, value generation

Works against any SessionStore; knows nothing about HTTP or persistence.
"""

from .generator import generate_token
from .token_manager import DEFAULT_NAMESPACE, TokenEntry, TokenManager

__all__ = ["DEFAULT_NAMESPACE", "TokenEntry", "TokenManager", "generate_token"]
