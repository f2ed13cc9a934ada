#!/usr/bin/env python3
"""
csrf-tools - Demo Host Entry Point

This is the thin orchestration layer that:
1. Loads configuration
2. Initializes the session backend and middleware
3. Exposes the token lifecycle over HTTP

All token logic is in the modules, following black box principles.
"""

import html
import logging
from contextlib import asynccontextmanager
from typing import Optional

import redis.asyncio as redis
import uvicorn
from fastapi import Depends, FastAPI, HTTPException, Request, Response
from fastapi.responses import HTMLResponse, JSONResponse

from csrf_tools import __version__
from csrf_tools.config.provider import ConfigProvider, EnvConfigProvider
from csrf_tools.logging_config import get_logging_config
from csrf_tools.modules.api import (
    HealthResponse,
    TokenResponse,
    ValidateTokenRequest,
    ValidationResponse,
    validate_token_name,
)
from csrf_tools.modules.middleware import SessionMiddleware, extract_token, get_session
from csrf_tools.modules.session import (
    InMemorySessionBackend,
    RedisSessionBackend,
    Session,
    SessionBackend,
)
from csrf_tools.modules.tokens import TokenManager

logger = logging.getLogger(__name__)

FORM_TOKEN_NAME = "demo_form"

FORM_TEMPLATE = """<!doctype html>
<html>
  <body>
    <form method="post" action="/form">
      <input type="hidden" name="{field}" value="{token}">
      <input type="text" name="message">
      <button type="submit">Send</button>
    </form>
  </body>
</html>
"""


def build_backend(config_provider: ConfigProvider) -> SessionBackend:
    """Create the session backend selected by configuration."""
    session_config = config_provider.get_session_config()

    if session_config.uses_redis:
        logger.info("Using Redis session backend")
        client = redis.from_url(
            session_config.redis_url,
            encoding="utf-8",
            decode_responses=True,
        )
        return RedisSessionBackend(client, default_ttl=session_config.ttl)

    logger.info("Using in-memory session backend")
    return InMemorySessionBackend()


def create_app(
    config_provider: Optional[ConfigProvider] = None,
    backend: Optional[SessionBackend] = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        config_provider: Configuration provider (environment by default)
        backend: Session backend override, mainly for tests

    Returns:
        Configured FastAPI app
    """
    if config_provider is None:
        config_provider = EnvConfigProvider()
    csrf_config = config_provider.get_csrf_config()
    session_config = config_provider.get_session_config()
    if backend is None:
        backend = build_backend(config_provider)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Manage application lifecycle - cleanup the Redis connection on shutdown."""
        logger.info(f"Starting csrf-tools API with {session_config.backend} sessions...")
        yield
        logger.info("Shutting down csrf-tools API...")
        if isinstance(backend, RedisSessionBackend):
            await backend.redis.aclose()

    app = FastAPI(
        title="csrf-tools API",
        description="Session-bound CSRF tokens",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.csrf_config = csrf_config
    app.state.session_backend = backend

    session_middleware = SessionMiddleware(
        backend,
        cookie_name=session_config.cookie_name,
        ttl=session_config.ttl,
        cookie_secure=session_config.cookie_secure,
    )

    @app.middleware("http")
    async def add_session(request: Request, call_next):
        # Session load/save runs outside FastAPI's exception handlers
        try:
            return await session_middleware(request, call_next)
        except redis.ConnectionError as e:
            logger.error(f"Redis connection error: {e}")
            return JSONResponse(status_code=503, content={"error": "Session store unavailable"})

    # Dependency injection helpers
    def get_token_manager(session: Session = Depends(get_session)) -> TokenManager:
        """Bind a token manager to the request's session."""
        return TokenManager(session, namespace=csrf_config.namespace)

    @app.get("/health", response_model=HealthResponse)
    async def health():
        return HealthResponse(version=__version__, session_backend=session_config.backend)

    @app.post("/tokens/{token_name}", response_model=TokenResponse)
    async def create_token(token_name: str, manager: TokenManager = Depends(get_token_manager)):
        """
        Issue a token for token_name, rotating any existing value into the old slot.

        Returns:
            The new token value
        """
        validate_token_name(token_name)
        token = manager.create_token(token_name)
        return TokenResponse(token_name=token_name, token=token)

    @app.post("/tokens/{token_name}/validate", response_model=ValidationResponse)
    async def validate_token(
        token_name: str,
        body: ValidateTokenRequest,
        manager: TokenManager = Depends(get_token_manager),
    ):
        """
        Validate a submitted token, optionally consuming it.

        With consume=true a valid token is deleted immediately, so the same
        value is rejected on replay.
        """
        validate_token_name(token_name)
        valid = manager.is_valid(token_name, body.token, use_new_slot=body.use_new_slot)

        consumed = False
        if valid and body.consume:
            manager.delete_token(token_name)
            consumed = True

        if not valid:
            logger.info(f"Rejected token for {token_name!r}")

        return ValidationResponse(token_name=token_name, valid=valid, consumed=consumed)

    @app.delete("/tokens/{token_name}", status_code=204)
    async def delete_token(token_name: str, manager: TokenManager = Depends(get_token_manager)):
        validate_token_name(token_name)
        manager.delete_token(token_name)
        return Response(status_code=204)

    @app.get("/form", response_class=HTMLResponse)
    async def show_form(manager: TokenManager = Depends(get_token_manager)):
        """Render a form carrying a fresh token in a hidden field."""
        token = manager.create_token(FORM_TOKEN_NAME)
        return FORM_TEMPLATE.format(
            field=html.escape(csrf_config.form_field),
            token=html.escape(token),
        )

    @app.post("/form", response_class=HTMLResponse)
    async def submit_form(request: Request, manager: TokenManager = Depends(get_token_manager)):
        """
        Handle a form post.

        The page issues a new token before validating, like a handler that
        renders and processes the form in one place. The posted value is
        therefore checked against the old slot.
        """
        manager.create_token(FORM_TOKEN_NAME)
        submitted = await extract_token(
            request, field_name=csrf_config.form_field, header_name=csrf_config.header_name
        )

        if not manager.is_valid(FORM_TOKEN_NAME, submitted):
            raise HTTPException(status_code=403, detail="Invalid CSRF token")

        return "<p>Form accepted</p>"

    # Error handlers

    @app.exception_handler(ValueError)
    async def validation_error_handler(request, exc):
        """Handle validation errors."""
        logger.error(f"Validation error: {exc}")
        return JSONResponse(status_code=400, content={"error": str(exc)})

    return app


def run() -> None:
    """Run the demo host with uvicorn."""
    api_config = EnvConfigProvider().get_api_config()
    uvicorn.run(
        "csrf_tools.main:create_app",
        factory=True,
        host=api_config.host,
        port=api_config.port,
        log_level=api_config.log_level.lower(),
        reload=api_config.debug,
        log_config=get_logging_config(api_config.log_level),
    )


if __name__ == "__main__":
    run()
