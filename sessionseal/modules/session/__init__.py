"""
Session Module - Black Box Interface

Purpose: Request-scoped session state and its per-request lifecycle
Interface: Session, SessionManager.load(), SessionManager.commit(), SessionManager.issue_token()
Hidden: Payload serialization, dirty tracking, store synchronisation

Replaceable with any session implementation exposing the same manager contract.
"""

from .manager import CookieDirective, SessionManager
from .models import SessionPayload, SessionRecord, SessionState
from .session import Session

__all__ = [
    "CookieDirective",
    "Session",
    "SessionManager",
    "SessionPayload",
    "SessionRecord",
    "SessionState",
]
