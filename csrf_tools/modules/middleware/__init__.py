"""
Session Middleware Module - Black Box Interface

Purpose: Give every FastAPI request a loaded Session and persist it afterwards
Interface: SessionMiddleware, get_session(), extract_token()
Hidden: Cookie handling, backend load/save timing

Can be used by any FastAPI app or sub-app that needs session-bound tokens.
"""

import logging
from typing import Optional

from fastapi import Request

from ..session import Session, SessionBackend

logger = logging.getLogger(__name__)


class SessionMiddleware:
    """
    Load the session at request start and persist it at request end.

    Register with:

        @app.middleware("http")
        async def add_session(request: Request, call_next):
            return await session_middleware(request, call_next)
    """

    def __init__(
        self,
        backend: SessionBackend,
        cookie_name: str = "csrf_tools_session",
        ttl: int = 3600,
        cookie_secure: bool = False,
    ):
        """
        Initialize session middleware.

        Args:
            backend: Session persistence backend
            cookie_name: Cookie carrying the session id
            ttl: Cookie max-age in seconds
            cookie_secure: Whether to set the Secure flag on the cookie
        """
        self.backend = backend
        self.cookie_name = cookie_name
        self.ttl = ttl
        self.cookie_secure = cookie_secure

    async def load_session(self, request: Request) -> Session:
        """Build the request's Session from its cookie, if the backend knows it."""
        session_id = request.cookies.get(self.cookie_name)
        if not session_id:
            return Session()

        data = await self.backend.load(session_id)
        if data is None:
            logger.debug(f"Unknown session {session_id[:8]}..., starting a new one")
            return Session()

        return Session(session_id=session_id, data=data)

    async def __call__(self, request: Request, call_next):
        """Process the request with a session attached to request.state."""
        session = await self.load_session(request)
        request.state.session = session

        response = await call_next(request)

        if session.is_active and session.modified:
            await self.backend.save(session.session_id, session.to_dict())

            # Cookie expiry follows the backend TTL, which restarts on save
            response.set_cookie(
                key=self.cookie_name,
                value=session.session_id,
                max_age=self.ttl,
                httponly=True,
                samesite="lax",
                secure=self.cookie_secure,
            )
            if session.is_new:
                logger.debug(f"Started session {session.session_id[:8]}...")

        return response


def get_session(request: Request) -> Session:
    """FastAPI dependency returning the request's session."""
    session = getattr(request.state, "session", None)
    if session is None:
        raise RuntimeError("SessionMiddleware is not installed on this application")
    return session


async def extract_token(
    request: Request,
    field_name: str = "csrf_token",
    header_name: str = "X-CSRF-Token",
) -> Optional[str]:
    """
    Extract a submitted CSRF token from the request.

    Checks the header first, then falls back to a form field.
    """
    token = request.headers.get(header_name)
    if token:
        return token

    content_type = request.headers.get("content-type", "")
    if content_type.startswith(("application/x-www-form-urlencoded", "multipart/form-data")):
        form = await request.form()
        value = form.get(field_name)
        if isinstance(value, str) and value:
            return value

    return None


# Module interface - what this module provides
__all__ = [
    "SessionMiddleware",
    "extract_token",
    "get_session",
]
