"""In-memory session store."""

import copy
import logging
from datetime import UTC, datetime
from typing import Any, Dict, Optional, Tuple

logger = logging.getLogger(__name__)


class MemoryStore:
    """
    Process-local session store.

    Suitable for tests and single-process deployments. Expired entries are
    dropped on read and swept on every write.
    """

    def __init__(self):
        self._records: Dict[str, Tuple[Dict[str, Any], datetime]] = {}

    async def get(self, session_id: str) -> Optional[Dict[str, Any]]:
        entry = self._records.get(session_id)
        if entry is None:
            return None

        record, expiry = entry
        if datetime.now(UTC) > expiry:
            self._records.pop(session_id, None)
            return None

        return copy.deepcopy(record)

    async def set(self, session_id: str, record: Dict[str, Any], expiry: datetime) -> None:
        self.cleanup_expired()
        self._records[session_id] = (copy.deepcopy(record), expiry)

    async def destroy(self, session_id: str) -> None:
        self._records.pop(session_id, None)

    def cleanup_expired(self) -> int:
        """
        Remove all expired records.

        Returns:
            Number of records removed
        """
        now = datetime.now(UTC)
        expired = [sid for sid, (_, expiry) in self._records.items() if now > expiry]
        for sid in expired:
            del self._records[sid]
        if expired:
            logger.debug(f"Cleaned up {len(expired)} expired sessions")
        return len(expired)

    def clear(self) -> None:
        self._records.clear()

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._records
