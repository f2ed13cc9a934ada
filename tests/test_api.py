"""
End-to-end tests for the demo host over the in-memory session backend.
"""

import asyncio
import re
from unittest.mock import AsyncMock

import pytest
import redis.asyncio as redis
from fastapi.testclient import TestClient

from csrf_tools.main import FORM_TOKEN_NAME, create_app
from csrf_tools.modules.session import InMemorySessionBackend, RedisSessionBackend

HIDDEN_FIELD = re.compile(r'name="csrf_token" value="([0-9a-f]+)"')


def render_form(client) -> str:
    response = client.get("/form")
    assert response.status_code == 200
    match = HIDDEN_FIELD.search(response.text)
    assert match, response.text
    return match.group(1)


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert response.json()["session_backend"] == "memory"


class TestTokenEndpoints:
    def test_create_returns_token(self, client):
        response = client.post("/tokens/checkout")

        assert response.status_code == 200
        data = response.json()
        assert data["token_name"] == "checkout"
        assert len(data["token"]) == 32

    def test_issue_then_validate_new_slot(self, client):
        token = client.post("/tokens/checkout").json()["token"]

        new_slot = client.post(
            "/tokens/checkout/validate", json={"token": token, "use_new_slot": True}
        )
        old_slot = client.post("/tokens/checkout/validate", json={"token": token})

        assert new_slot.json() == {"token_name": "checkout", "valid": True, "consumed": False}
        assert old_slot.json()["valid"] is False

    def test_rotation_moves_value_to_old_slot(self, client):
        v1 = client.post("/tokens/checkout").json()["token"]
        v2 = client.post("/tokens/checkout").json()["token"]

        def check(token, use_new_slot):
            return client.post(
                "/tokens/checkout/validate",
                json={"token": token, "use_new_slot": use_new_slot},
            ).json()["valid"]

        assert check(v1, False) is True
        assert check(v2, True) is True
        assert check(v1, True) is False
        assert check(v2, False) is False

    def test_consume_makes_token_single_use(self, client):
        token = client.post("/tokens/delete-account").json()["token"]
        body = {"token": token, "use_new_slot": True, "consume": True}

        first = client.post("/tokens/delete-account/validate", json=body)
        replay = client.post("/tokens/delete-account/validate", json=body)

        assert first.json() == {"token_name": "delete-account", "valid": True, "consumed": True}
        assert replay.json() == {"token_name": "delete-account", "valid": False, "consumed": False}

    def test_consume_ignored_when_invalid(self, client):
        token = client.post("/tokens/checkout").json()["token"]

        client.post(
            "/tokens/checkout/validate",
            json={"token": "wrong", "use_new_slot": True, "consume": True},
        )
        response = client.post(
            "/tokens/checkout/validate", json={"token": token, "use_new_slot": True}
        )

        assert response.json()["valid"] is True

    def test_delete(self, client):
        token = client.post("/tokens/checkout").json()["token"]

        response = client.delete("/tokens/checkout")
        check = client.post(
            "/tokens/checkout/validate", json={"token": token, "use_new_slot": True}
        )

        assert response.status_code == 204
        assert check.json()["valid"] is False

    def test_delete_unknown(self, client):
        assert client.delete("/tokens/never-created").status_code == 204

    def test_unknown_token_is_invalid(self, client):
        response = client.post(
            "/tokens/unknown/validate", json={"token": "abc", "use_new_slot": True}
        )
        assert response.json()["valid"] is False

    def test_invalid_token_name(self, client):
        response = client.post("/tokens/bad$name")

        assert response.status_code == 400
        assert "Invalid token name" in response.json()["error"]

    def test_missing_body_field(self, client):
        response = client.post("/tokens/checkout/validate", json={})
        assert response.status_code == 422

    def test_tokens_are_bound_to_session(self, client):
        token = client.post("/tokens/checkout").json()["token"]

        other = TestClient(client.app)
        response = other.post(
            "/tokens/checkout/validate", json={"token": token, "use_new_slot": True}
        )

        assert response.json()["valid"] is False


class TestFormFlow:
    """Render-then-submit pattern validated against the old slot."""

    def test_submit_rendered_token(self, client):
        token = render_form(client)

        response = client.post("/form", data={"csrf_token": token, "message": "hi"})

        assert response.status_code == 200
        assert "Form accepted" in response.text

    def test_submit_token_via_header(self, client):
        token = render_form(client)

        response = client.post("/form", headers={"X-CSRF-Token": token})

        assert response.status_code == 200

    def test_replayed_token_rejected_after_rotation(self, client):
        token = render_form(client)
        client.post("/form", data={"csrf_token": token})

        # The accepted post rotated the token again, so the first value is gone
        response = client.post("/form", data={"csrf_token": token})

        assert response.status_code == 403

    def test_forged_token_rejected(self, client):
        render_form(client)

        response = client.post("/form", data={"csrf_token": "0" * 32})

        assert response.status_code == 403
        assert response.json()["detail"] == "Invalid CSRF token"

    def test_missing_token_rejected(self, client):
        render_form(client)
        assert client.post("/form", data={"message": "hi"}).status_code == 403

    def test_post_without_render_rejected(self, client):
        assert client.post("/form", data={"csrf_token": "abc"}).status_code == 403

    def test_stale_render_rejected(self, client):
        stale = render_form(client)
        render_form(client)

        response = client.post("/form", data={"csrf_token": stale})

        assert response.status_code == 403

    def test_form_state_stored_under_namespace(self, client, session_backend):
        token = render_form(client)
        session_id = client.cookies.get("csrf_tools_session")

        record = asyncio.run(session_backend.load(session_id))
        assert record["csrf_tools_token"][FORM_TOKEN_NAME] == {"new": token}


def test_custom_namespace_and_field(monkeypatch):
    monkeypatch.setenv("SESSION_BACKEND", "memory")
    monkeypatch.setenv("CSRF_NAMESPACE", "app_tokens")
    monkeypatch.setenv("CSRF_FORM_FIELD", "_token")

    with TestClient(create_app()) as client:
        page = client.get("/form").text
        token = re.search(r'name="_token" value="([0-9a-f]+)"', page).group(1)

        response = client.post("/form", data={"_token": token})

    assert response.status_code == 200


def test_session_store_unavailable(monkeypatch):
    monkeypatch.setenv("SESSION_BACKEND", "memory")
    backend = AsyncMock()
    backend.load = AsyncMock(side_effect=redis.ConnectionError("connection refused"))

    with TestClient(create_app(backend=backend)) as client:
        client.cookies.set("csrf_tools_session", "some-session")
        response = client.post("/tokens/checkout")

    assert response.status_code == 503
    assert response.json() == {"error": "Session store unavailable"}


@pytest.mark.asyncio
async def test_redis_backend_selected(monkeypatch):
    monkeypatch.setenv("SESSION_BACKEND", "redis")
    monkeypatch.setenv("REDIS_URL", "redis://localhost:6379/3")

    app = create_app()

    backend = app.state.session_backend
    assert isinstance(backend, RedisSessionBackend)
    assert backend.default_ttl == 3600
    await backend.redis.aclose()


@pytest.mark.parametrize("configured_backend", ["memory", "redis"])
def test_injected_backend_is_used(monkeypatch, configured_backend):
    monkeypatch.setenv("SESSION_BACKEND", configured_backend)
    injected = InMemorySessionBackend()

    app = create_app(backend=injected)

    assert app.state.session_backend is injected


def test_injected_backend_receives_writes(monkeypatch):
    monkeypatch.setenv("SESSION_BACKEND", "memory")
    injected = InMemorySessionBackend()

    with TestClient(create_app(backend=injected)) as client:
        token = client.post("/tokens/checkout").json()["token"]
        session_id = client.cookies.get("csrf_tools_session")

    record = asyncio.run(injected.load(session_id))
    assert record["csrf_tools_token"]["checkout"] == {"new": token}
