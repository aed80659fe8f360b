"""
Sessionseal - Sealed Cookie Sessions

Cookie-backed session state for Starlette/FastAPI request handlers.

Architecture:
- Each module is self-contained with clear interfaces
- Modules are completely replaceable
- No module knows the internals of another
- All communication through defined interfaces

Modules:
- keyring: Active and retired secret keys
- crypto: Token signing, encryption and verification
- session: Session object and per-request manager
- storage: Server-side session persistence adapters
- middleware: Cookie transport for FastAPI applications
"""

__version__ = "1.0.0"
