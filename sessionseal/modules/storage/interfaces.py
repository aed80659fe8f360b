"""Session store interfaces following Black Box Design principles."""
from datetime import datetime
from typing import Any, Dict, Optional, Protocol


class SessionStore(Protocol):
    """
    Protocol for server-side session persistence.

    Records are opaque JSON-safe dicts; stores never interpret them.
    Concurrent writes to the same id are last-write-wins.
    """

    async def get(self, session_id: str) -> Optional[Dict[str, Any]]:
        """
        Fetch a record.

        Returns:
            Record dict, or None when the id is unknown or expired
        """
        ...

    async def set(self, session_id: str, record: Dict[str, Any], expiry: datetime) -> None:
        """Persist a record until expiry (aware UTC datetime)."""
        ...

    async def destroy(self, session_id: str) -> None:
        """Remove a record. Unknown ids are not an error."""
        ...
