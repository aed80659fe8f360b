"""
Session Middleware Module - Black Box Interface

Purpose: Carry sealed session tokens between cookies and the session manager
Interface: SessionMiddleware, create_session_middleware(), get_session()
Hidden: Cookie parsing and encoding, Set-Cookie attributes, error formatting

Can be used by any FastAPI app or sub-app that needs cookie sessions.
Completely independent and replaceable.
"""

import logging
from typing import Any, Dict, Optional
from urllib.parse import quote, unquote

from fastapi import Request
from fastapi.responses import JSONResponse

from ...config.provider import SessionConfig
from ...errors import StoreUnavailable
from ..session import CookieDirective, Session, SessionManager
from ..storage import SessionStore

logger = logging.getLogger(__name__)


class SessionMiddleware:
    """
    Session middleware for FastAPI applications.

    Loads the session before the handler runs, exposes it as
    request.state.session and writes the resulting cookie afterwards.
    Register with:

        @app.middleware("http")
        async def sessions(request, call_next):
            return await session_middleware(request, call_next)
    """

    def __init__(self, manager: SessionManager, log_attempts: bool = True):
        """
        Initialize session middleware.

        Args:
            manager: SessionManager that loads and commits sessions
            log_attempts: Whether to log session cookie activity
        """
        self.manager = manager
        self.log_attempts = log_attempts

    @property
    def config(self) -> SessionConfig:
        return self.manager.config

    def extract_token(self, request: Request) -> Optional[str]:
        """Read the sealed token from the session cookie, then the token header."""
        value = request.cookies.get(self.config.cookie.name)
        if not value and self.config.token_header:
            value = request.headers.get(self.config.token_header)
        if not value:
            return None
        return unquote(value)

    def format_error(self, status_code: int, message: str) -> Dict[str, Any]:
        return {
            "error": message,
            "status": status_code
        }

    def apply_directive(self, response, directive: CookieDirective) -> None:
        """Write the directive to the response as Set-Cookie."""
        cookie = self.config.cookie
        if directive.is_deletion:
            response.delete_cookie(
                directive.name,
                path=cookie.path,
                domain=cookie.domain,
                secure=cookie.secure,
                httponly=cookie.http_only,
                samesite=cookie.same_site,
            )
            return

        # ";" is not a legal cookie octet
        response.set_cookie(
            directive.name,
            value=quote(directive.value, safe=""),
            max_age=directive.max_age,
            expires=directive.expires,
            path=cookie.path,
            domain=cookie.domain,
            secure=cookie.secure,
            httponly=cookie.http_only,
            samesite=cookie.same_site,
        )

    async def __call__(self, request: Request, call_next):
        """Process the request through the session middleware."""
        try:
            session = await self.manager.load(self.extract_token(request))
        except StoreUnavailable as e:
            logger.error(f"Session load failed for {request.method} {request.url.path}: {e}")
            return JSONResponse(
                status_code=500,
                content=self.format_error(500, "Session store unavailable")
            )

        request.state.session = session
        response = await call_next(request)

        try:
            directive = await self.manager.commit(session)
        except StoreUnavailable as e:
            logger.error(f"Session save failed for {request.method} {request.url.path}: {e}")
            return JSONResponse(
                status_code=500,
                content=self.format_error(500, "Session store unavailable")
            )

        if directive is not None:
            if self.log_attempts:
                action = "Clearing" if directive.is_deletion else "Setting"
                logger.debug(f"{action} session cookie for {request.method} {request.url.path}")
            self.apply_directive(response, directive)

        return response


def create_session_middleware(
    config: SessionConfig,
    store: Optional[SessionStore] = None,
    log_attempts: bool = True
) -> SessionMiddleware:
    """
    Factory function to create session middleware.

    Args:
        config: Session configuration
        store: Optional server-side session store
        log_attempts: Whether to log session cookie activity

    Returns:
        Configured SessionMiddleware instance
    """
    return SessionMiddleware(SessionManager(config, store), log_attempts=log_attempts)


def get_session(request: Request) -> Session:
    """FastAPI dependency returning the current request's session."""
    session = getattr(request.state, "session", None)
    if session is None:
        raise RuntimeError("SessionMiddleware is not installed")
    return session


# Module interface - what this module provides
__all__ = [
    "SessionMiddleware",
    "create_session_middleware",
    "get_session"
]
