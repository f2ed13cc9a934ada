"""Configuration provider following Black Box Design principles."""
import os
from dataclasses import dataclass
from typing import Optional, Protocol

from ..modules.tokens import DEFAULT_NAMESPACE

SESSION_BACKENDS = ("memory", "redis")


@dataclass
class CSRFConfig:
    """Token naming configuration."""
    namespace: str
    form_field: str
    header_name: str


@dataclass
class SessionConfig:
    """Session storage and cookie configuration."""
    backend: str
    redis_url: Optional[str]
    ttl: int
    cookie_name: str
    cookie_secure: bool

    @property
    def uses_redis(self) -> bool:
        """Check if sessions are persisted in Redis."""
        return self.backend == "redis"


@dataclass
class APIConfig:
    """API configuration."""
    port: int
    host: str
    debug: bool
    log_level: str


class ConfigProvider(Protocol):
    """Protocol for configuration providers."""

    def get_csrf_config(self) -> CSRFConfig:
        """Get token configuration."""
        ...

    def get_session_config(self) -> SessionConfig:
        """Get session configuration."""
        ...

    def get_api_config(self) -> APIConfig:
        """Get API configuration."""
        ...


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() == "true"


def _env_int(name: str, default: str) -> int:
    raw = os.getenv(name, default)
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


class EnvConfigProvider:
    """Environment-based configuration provider."""

    def get_csrf_config(self) -> CSRFConfig:
        """Get token configuration from environment variables."""
        namespace = os.getenv("CSRF_NAMESPACE", DEFAULT_NAMESPACE)
        if not namespace:
            raise ValueError("CSRF_NAMESPACE must not be empty")

        return CSRFConfig(
            namespace=namespace,
            form_field=os.getenv("CSRF_FORM_FIELD", "csrf_token"),
            header_name=os.getenv("CSRF_HEADER_NAME", "X-CSRF-Token"),
        )

    def get_session_config(self) -> SessionConfig:
        """Get session configuration from environment variables."""
        backend = os.getenv("SESSION_BACKEND", "memory").lower()
        if backend not in SESSION_BACKENDS:
            raise ValueError(
                f"SESSION_BACKEND must be one of {', '.join(SESSION_BACKENDS)}, got {backend!r}"
            )

        ttl = _env_int("SESSION_TTL", "3600")
        if ttl <= 0:
            raise ValueError("SESSION_TTL must be a positive number of seconds")

        redis_url = os.getenv("REDIS_URL", "redis://localhost:6379/0")
        if backend == "redis" and not redis_url:
            raise ValueError(
                "REDIS_URL is required when SESSION_BACKEND=redis. "
                "Example: redis://localhost:6379/0"
            )

        return SessionConfig(
            backend=backend,
            redis_url=redis_url or None,
            ttl=ttl,
            cookie_name=os.getenv("SESSION_COOKIE_NAME", "csrf_tools_session"),
            cookie_secure=_env_bool("SESSION_COOKIE_SECURE"),
        )

    def get_api_config(self) -> APIConfig:
        """Get API configuration from environment variables."""
        return APIConfig(
            port=_env_int("API_PORT", "8080"),
            host=os.getenv("API_HOST", "0.0.0.0"),
            debug=_env_bool("API_DEBUG"),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )
