#!/usr/bin/env python3
"""
Sessionseal - Reference Application

This is the thin orchestration layer that:
1. Loads configuration
2. Initializes the session store and middleware
3. Runs a FastAPI app exposing every session operation

All session logic is in the modules, following black box principles.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

import uvicorn
from fastapi import Body, Depends, FastAPI, Request, Response

from sessionseal.config.provider import ConfigProvider, EnvConfigProvider, SessionConfig
from sessionseal.logging_config import configure_logging, get_logging_config
from sessionseal.modules.middleware import create_session_middleware, get_session
from sessionseal.modules.session import Session
from sessionseal.modules.storage import SessionStore, StoreFactory

logger = logging.getLogger(__name__)


def create_app(
    config: SessionConfig,
    store: Optional[SessionStore] = None,
    log_attempts: bool = True,
) -> FastAPI:
    """
    Build the FastAPI application with session middleware installed.

    Args:
        config: Session configuration
        store: Optional server-side session store
        log_attempts: Whether the middleware logs cookie activity

    Returns:
        Configured FastAPI application
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting sessionseal API...")
        yield
        logger.info("Shutting down sessionseal API...")
        close = getattr(store, "close", None)
        if close is not None:
            await close()
        logger.info("sessionseal API shutdown complete")

    app = FastAPI(
        title="Sessionseal API",
        description="Sealed cookie sessions for FastAPI",
        version="1.0.0",
        lifespan=lifespan,
    )

    session_middleware = create_session_middleware(config, store, log_attempts=log_attempts)
    app.state.session_manager = session_middleware.manager

    @app.middleware("http")
    async def sessions(request: Request, call_next):
        return await session_middleware(request, call_next)

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    @app.post("/")
    async def set_data(body: Dict[str, Any] = Body(...), session: Session = Depends(get_session)):
        session.set("data", body)
        return {"ok": True}

    @app.get("/")
    async def get_data(session: Session = Depends(get_session)):
        data = session.get("data")
        if not data:
            return Response(status_code=404)
        return data

    @app.post("/update")
    async def update(body: Dict[str, Any] = Body(...), session: Session = Depends(get_session)):
        session.set("update", body)
        return {"ok": True}

    @app.post("/touch")
    async def touch(session: Session = Depends(get_session)):
        session.touch()
        return {"ok": True}

    @app.get("/session")
    async def describe(session: Session = Depends(get_session)):
        return {"id": session.id, "data": session.data, "expiry": session.expiry.isoformat()}

    @app.post("/noop")
    async def noop():
        return {"ok": 1}

    @app.post("/q")
    async def issue_token(
        request: Request,
        body: Dict[str, Any] = Body(...),
        session: Session = Depends(get_session),
    ):
        token = request.app.state.session_manager.issue_token(session)
        session.set("data", body)
        return {"token": token}

    @app.post("/regenerate")
    async def regenerate(session: Session = Depends(get_session)):
        session.regenerate()
        return {"id": session.id}

    @app.post("/logout")
    async def logout(session: Session = Depends(get_session)):
        session.destroy()
        return {"ok": True}

    @app.get("/raw")
    async def raw(session: Session = Depends(get_session)):
        return session.data

    return app


def build_app(config_provider: Optional[ConfigProvider] = None) -> FastAPI:
    """Build the application from a configuration provider (environment by default)."""
    config_provider = config_provider or EnvConfigProvider()
    store = StoreFactory.build(config_provider.get_store_config())
    return create_app(config_provider.get_session_config(), store)


def main() -> None:
    """Run the reference application with uvicorn."""
    config_provider = EnvConfigProvider()
    api_config = config_provider.get_api_config()
    configure_logging(api_config.log_level)

    uvicorn.run(
        build_app(config_provider),
        host=api_config.host,
        port=api_config.port,
        log_config=get_logging_config(api_config.log_level),
    )


if __name__ == "__main__":
    main()
