"""
API Module - Black Box Interface

Purpose: Request/response models for the HTTP host
Interface: pydantic models and token name validation
"""

from .models import (
    HealthResponse,
    TokenResponse,
    ValidateTokenRequest,
    ValidationResponse,
    validate_token_name,
)

__all__ = [
    "HealthResponse",
    "TokenResponse",
    "ValidateTokenRequest",
    "ValidationResponse",
    "validate_token_name",
]
