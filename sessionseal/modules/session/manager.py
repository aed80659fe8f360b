"""
Per-request session orchestration.

load() turns an inbound cookie value into a Session (fresh when absent or
invalid). commit() decides, once per request, whether to emit a cookie and
persists store-backed sessions. Only store failures escape: anything a client
can cause degrades to a fresh session.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from pydantic import ValidationError

from ...config.provider import SessionConfig
from ...errors import StoreUnavailable
from ..crypto import unseal
from ..storage import SessionStore
from .models import SessionRecord
from .session import Session

logger = logging.getLogger(__name__)


@dataclass
class CookieDirective:
    """What the transport must write as Set-Cookie."""
    name: str
    value: str
    max_age: int
    expires: Optional[datetime] = None

    @property
    def is_deletion(self) -> bool:
        return self.max_age == 0 and not self.value


class SessionManager:
    """
    Session lifecycle manager.

    Holds no per-request state; one instance serves all concurrent requests.
    """

    def __init__(self, config: SessionConfig, store: Optional[SessionStore] = None):
        """
        Initialize session manager.

        Args:
            config: Session configuration (key ring, ttl, cookie attributes)
            store: Optional server-side store; without one the whole session
                travels inside the cookie
        """
        self.config = config
        self.store = store

    @property
    def store_backed(self) -> bool:
        return self.store is not None

    def create(self) -> Session:
        """Create a fresh session with a new id and a full expiry window."""
        return Session(
            self.config.keyring,
            ttl=self.config.ttl,
            confidential=self.config.confidential,
            store_backed=self.store_backed,
        )

    async def load(self, token: Optional[str]) -> Session:
        """
        Load the session for a request.

        Args:
            token: Inbound cookie value, or None when the cookie is absent

        Returns:
            Loaded session, or a fresh one

        Raises:
            StoreUnavailable: The store could not be read
        """
        session = None
        if token:
            if self.store is None:
                session = Session.from_cookie(
                    token,
                    self.config.keyring,
                    ttl=self.config.ttl,
                    confidential=self.config.confidential,
                )
            else:
                session = await self._load_from_store(token)

        if session is None:
            session = self.create()

        # Fresh sessions already carry a full expiry window
        if self.config.rolling and not session.created:
            session.touch()

        return session

    async def _load_from_store(self, token: str) -> Optional[Session]:
        result = unseal(token, self.config.keyring, confidential=self.config.confidential)
        if not result.success:
            logger.debug(f"Discarding session cookie: {result.error}")
            return None

        try:
            session_id = result.payload.decode("utf-8")
        except UnicodeDecodeError:
            logger.debug("Discarding session cookie: id is not valid UTF-8")
            return None

        raw = await self._store_call("read", self.store.get, session_id)
        if raw is None:
            logger.debug("Session id not found in store")
            return None

        try:
            record = SessionRecord.model_validate(raw)
        except ValidationError as e:
            logger.warning(f"Corrupted session record in store, starting fresh: {e.error_count()} errors")
            return None

        session = Session.from_record(
            session_id,
            record,
            self.config.keyring,
            ttl=self.config.ttl,
            confidential=self.config.confidential,
            rotated=result.rotated,
        )
        if session.is_expired():
            logger.debug("Stored session expired")
            await self._store_call("deletion", self.store.destroy, session_id)
            return None

        return session

    async def commit(self, session: Session) -> Optional[CookieDirective]:
        """
        Finish the request for this session.

        Runs at most once per session; later calls return None.

        Returns:
            Cookie to write, or None when nothing needs to be sent

        Raises:
            StoreUnavailable: The store could not be written
        """
        if session.saved:
            return None

        if session.destroyed:
            if self.store is not None and not session.created:
                await self._store_call("deletion", self.store.destroy, session.id)
                for stale_id in session.stale_ids:
                    await self._store_call("deletion", self.store.destroy, stale_id)
            session.saved = True
            return CookieDirective(name=self.config.cookie_name, value="", max_age=0)

        if not self._should_emit(session):
            session.saved = True
            return None

        if self.store is not None:
            for stale_id in session.stale_ids:
                await self._store_call("deletion", self.store.destroy, stale_id)
            await self._store_call("write", self.store.set, session.id, session.to_record(), session.expiry)

        session.saved = True
        return CookieDirective(
            name=self.config.cookie_name,
            value=session.to_cookie(),
            max_age=session.remaining_seconds(),
            expires=session.expiry,
        )

    def issue_token(self, session: Session) -> str:
        """
        Produce a token for the session on demand, e.g. for bearer-style
        transfer to another channel.

        The token is equivalent to the cookie value: same expiry, reusable
        until then. Issuing does not count as committing the session.
        """
        return session.to_cookie()

    def _should_emit(self, session: Session) -> bool:
        if not session.needs_emission:
            return False
        if (
            session.created
            and not self.config.save_uninitialized
            and not (session.changed or session.touched or session.regenerated)
        ):
            return False
        return True

    async def _store_call(self, operation: str, method, *args):
        try:
            return await method(*args)
        except StoreUnavailable:
            raise
        except Exception as e:
            logger.error(f"Session store {operation} failed: {e}")
            raise StoreUnavailable(f"Session store {operation} failed") from e
