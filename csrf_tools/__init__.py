"""
csrf-tools - Session-bound anti-forgery tokens

Issues and validates CSRF tokens stored in a server-side session.

Architecture:
- Each module is self-contained with clear interfaces
- Modules are completely replaceable
- No module knows the internals of another
- All communication through defined interfaces

Modules:
- tokens: Token lifecycle (create, rotate, validate, delete)
- session: Request-scoped session store and persistence backends
- middleware: Session loading/saving for FastAPI applications
- api: Request/response models for the HTTP host
"""

__version__ = "1.0.0"
