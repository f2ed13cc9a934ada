"""
csrf-tools HTTP data models.

These models define the request and response bodies of the demo host.
"""

import re

from pydantic import BaseModel, Field

TOKEN_NAME_PATTERN = re.compile(r"^[A-Za-z0-9_.:-]+$")


def validate_token_name(token_name: str) -> str:
    """
    Validate a token name used in a URL path.

    Args:
        token_name: Token name to validate

    Returns:
        The token name

    Raises:
        ValueError: If the name is empty, too long or has unsupported characters
    """
    if not token_name:
        raise ValueError("Token name must not be empty")
    if len(token_name) > 100:
        raise ValueError("Token name must be at most 100 characters")
    if not TOKEN_NAME_PATTERN.match(token_name):
        raise ValueError(f"Invalid token name: {token_name!r}")
    return token_name


# Request Models (API Input)


class ValidateTokenRequest(BaseModel):
    """Request to validate a submitted token."""

    token: str = Field(..., description="Token value submitted by the client", max_length=256)
    use_new_slot: bool = Field(
        default=False, description="Compare against the new slot instead of the old one"
    )
    consume: bool = Field(
        default=False, description="Delete the token after a successful validation"
    )


# Response Models (API Output)


class TokenResponse(BaseModel):
    """Freshly created token."""

    token_name: str
    token: str


class ValidationResponse(BaseModel):
    """Outcome of a token validation."""

    token_name: str
    valid: bool
    consumed: bool = False


class HealthResponse(BaseModel):
    status: str = "healthy"
    version: str
    session_backend: str
