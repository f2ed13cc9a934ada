import secrets

TOKEN_BYTES = 16


def generate_token() -> str:
    """Generate a 128-bit token as 32 lowercase hex characters."""
    return secrets.token_hex(TOKEN_BYTES)
