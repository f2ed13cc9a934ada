"""
Shared pytest fixtures for csrf-tools tests.

This module provides common fixtures including:
- Redis mocks for session backend tests
- Session and token manager fixtures
- FastAPI test client for the demo host
"""

import itertools
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from csrf_tools.modules.session import InMemorySessionBackend, Session
from csrf_tools.modules.tokens import TokenManager


# =============================================================================
# Redis Mocking Infrastructure
# =============================================================================

@pytest.fixture
def mock_redis():
    """Create a mock Redis client for async operations."""
    redis = AsyncMock()
    redis.setex = AsyncMock()
    redis.get = AsyncMock(return_value=None)
    redis.delete = AsyncMock(return_value=1)
    redis.aclose = AsyncMock()
    return redis


@pytest.fixture
def mock_redis_with_data():
    """
    Redis mock with in-memory data storage for more realistic tests.

    This allows testing code that reads back what it writes.
    """
    storage = {}
    ttls = {}

    redis = AsyncMock()

    async def mock_setex(key, ttl, value):
        storage[key] = value
        ttls[key] = ttl
        return True

    async def mock_get(key):
        return storage.get(key)

    async def mock_delete(*keys):
        count = 0
        for key in keys:
            if key in storage:
                del storage[key]
                ttls.pop(key, None)
                count += 1
        return count

    redis.setex = mock_setex
    redis.get = mock_get
    redis.delete = mock_delete
    redis._storage = storage  # Expose for test assertions
    redis._ttls = ttls
    return redis


# =============================================================================
# Token Fixtures
# =============================================================================

@pytest.fixture
def session():
    """Fresh session with no id, as seen on a visitor's first request."""
    return Session()


@pytest.fixture
def manager(session):
    """Token manager bound to a fresh session."""
    return TokenManager(session)


@pytest.fixture
def sequential_manager(session):
    """Token manager producing predictable values A0, A1, ... for readable assertions."""
    counter = itertools.count()
    return TokenManager(session, token_factory=lambda: f"A{next(counter)}")


# =============================================================================
# Demo Host
# =============================================================================

@pytest.fixture
def session_backend():
    return InMemorySessionBackend()


@pytest.fixture
def client(monkeypatch, session_backend):
    """Test client for the demo host using in-memory sessions."""
    from csrf_tools.main import create_app

    monkeypatch.setenv("SESSION_BACKEND", "memory")
    monkeypatch.delenv("CSRF_NAMESPACE", raising=False)
    monkeypatch.delenv("CSRF_FORM_FIELD", raising=False)
    monkeypatch.delenv("CSRF_HEADER_NAME", raising=False)
    app = create_app(backend=session_backend)
    with TestClient(app) as test_client:
        yield test_client
