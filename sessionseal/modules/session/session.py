import logging
import math
import secrets
from datetime import UTC, datetime, timedelta
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from ...errors import (
    AuthenticationFailure,
    MalformedToken,
    SessionDestroyed,
    SessionExpired,
    TokenError,
)
from ..crypto import seal, unseal
from ..keyring import KeyRing
from .models import SessionPayload, SessionRecord, SessionState

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def new_session_id() -> str:
    # 24 bytes -> 32 chars when urlsafe encoded
    return secrets.token_urlsafe(24)


class Session:
    """
    Request-scoped session.

    Holds the id, the data map and the expiry, plus the flags the manager reads
    once at response time to decide whether a cookie must be emitted.
    """

    def __init__(
        self,
        keyring: KeyRing,
        *,
        ttl: int,
        confidential: bool = True,
        session_id: Optional[str] = None,
        data: Optional[Dict[str, Any]] = None,
        expiry: Optional[datetime] = None,
        created: bool = True,
        store_backed: bool = False,
    ):
        """
        Initialize a session.

        Args:
            keyring: Key ring; the active key seals to_cookie() output
            ttl: Expiry window in seconds, used by touch()
            confidential: Encrypt the cookie instead of only signing it
            session_id: Existing id; a new one is generated when omitted
            data: Initial data map
            expiry: Absolute expiry; defaults to now + ttl
            created: True for a session born in this request
            store_backed: Cookie carries only the id, data lives in a store
        """
        self._keyring = keyring
        self.ttl = ttl
        self.confidential = confidential
        self.store_backed = store_backed

        self.id = session_id or new_session_id()
        self._data: Dict[str, Any] = dict(data or {})
        self.expiry = _as_utc(expiry) if expiry else _utcnow() + timedelta(seconds=ttl)

        self.created = created
        self.changed = False
        self.touched = False
        self.rotated = False
        self.regenerated = False
        self.destroyed = False
        self.saved = False
        self.stale_ids: List[str] = []

    def __repr__(self) -> str:
        return f"Session(id={self.id[:6]}..., state={self.state.value})"

    # Data access

    @property
    def data(self) -> Dict[str, Any]:
        """Shallow copy of the data map. Mutate through set()/delete()."""
        return dict(self._data)

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._ensure_live()
        self._data[key] = value
        self.changed = True

    def delete(self, key: str) -> None:
        self._ensure_live()
        if key in self._data:
            del self._data[key]
            self.changed = True

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __setitem__(self, key: str, value: Any) -> None:
        self.set(key, value)

    def __delitem__(self, key: str) -> None:
        if key not in self._data:
            raise KeyError(key)
        self.delete(key)

    def __contains__(self, key: object) -> bool:
        return key in self._data

    # Lifecycle

    def touch(self) -> None:
        """Extend expiry by ttl. Forces re-emission without dirtying data."""
        self._ensure_live()
        self.expiry = _utcnow() + timedelta(seconds=self.ttl)
        self.touched = True

    def regenerate(self) -> None:
        """
        Assign a new id, keeping the data.

        The id that the client (and possibly a store) already knows is kept in
        stale_ids so a store-backed manager can delete it on commit.
        """
        self._ensure_live()
        if not self.created and not self.regenerated:
            self.stale_ids.append(self.id)
        self.id = new_session_id()
        self.regenerated = True

    def destroy(self) -> None:
        """Mark the session terminal. The next cookie deletes client state."""
        self.destroyed = True

    def _ensure_live(self) -> None:
        if self.destroyed:
            raise SessionDestroyed("Session has been destroyed")

    # State inspection

    @property
    def state(self) -> SessionState:
        if self.destroyed:
            return SessionState.DESTROYED
        if self.regenerated:
            return SessionState.REGENERATED
        if self.changed:
            return SessionState.MODIFIED
        if self.touched:
            return SessionState.TOUCHED
        if self.created:
            return SessionState.FRESH
        return SessionState.LOADED

    @property
    def needs_emission(self) -> bool:
        return (
            self.destroyed
            or self.changed
            or self.rotated
            or self.touched
            or self.regenerated
            or self.created
        )

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        return (now or _utcnow()) > self.expiry

    def remaining_seconds(self) -> int:
        """Seconds until expiry rounded up, never negative. Used for Max-Age."""
        return max(0, math.ceil((self.expiry - _utcnow()).total_seconds()))

    # Serialization

    def to_record(self) -> Dict[str, Any]:
        """Store record for this session (JSON-safe dict)."""
        return SessionRecord(data=self._data, expiry=self.expiry).model_dump(mode="json")

    def to_cookie(self) -> str:
        """
        Seal the session with the active key.

        Returns:
            Token string, or "" for a destroyed session
        """
        if self.destroyed:
            return ""

        if self.store_backed:
            body = self.id.encode("utf-8")
        else:
            body = SessionPayload(id=self.id, data=self._data, expiry=self.expiry).model_dump_json().encode("utf-8")

        return seal(body, self._keyring.active, confidential=self.confidential)

    @classmethod
    def open(
        cls,
        token: str,
        keyring: KeyRing,
        *,
        ttl: int,
        confidential: bool = True,
    ) -> "Session":
        """
        Load a stateless session from a cookie value.

        Raises:
            MalformedToken: Bad framing, bad encoding, or not a session payload
            AuthenticationFailure: No key in the ring authenticates the token
            SessionExpired: Authentic token whose expiry has elapsed
        """
        result = unseal(token, keyring, confidential=confidential)
        if not result.success:
            if result.error == "malformed":
                raise MalformedToken("Session token is malformed")
            raise AuthenticationFailure("Session token failed authentication")

        try:
            payload = SessionPayload.model_validate_json(result.payload)
        except ValidationError as e:
            raise MalformedToken("Session token payload is not a session") from e

        session = cls(
            keyring,
            ttl=ttl,
            confidential=confidential,
            session_id=payload.id,
            data=payload.data,
            expiry=payload.expiry,
            created=False,
        )
        if session.is_expired():
            raise SessionExpired(f"Session expired at {session.expiry.isoformat()}")

        session.rotated = result.rotated
        return session

    @classmethod
    def from_cookie(
        cls,
        token: str,
        keyring: KeyRing,
        *,
        ttl: int,
        confidential: bool = True,
    ) -> Optional["Session"]:
        """
        Fail-closed variant of open().

        Returns:
            Loaded session, or None when the caller must create a fresh one
        """
        try:
            return cls.open(token, keyring, ttl=ttl, confidential=confidential)
        except TokenError as e:
            logger.debug(f"Discarding session cookie: {e}")
            return None

    @classmethod
    def from_record(
        cls,
        session_id: str,
        record: SessionRecord,
        keyring: KeyRing,
        *,
        ttl: int,
        confidential: bool = True,
        rotated: bool = False,
    ) -> "Session":
        """Build a loaded store-backed session from a validated store record."""
        session = cls(
            keyring,
            ttl=ttl,
            confidential=confidential,
            session_id=session_id,
            data=record.data,
            expiry=record.expiry,
            created=False,
            store_backed=True,
        )
        session.rotated = rotated
        return session
