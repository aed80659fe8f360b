"""
Session data models.

These models define what travels inside a sealed cookie and what is handed to a
session store.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict

from pydantic import BaseModel, Field


class SessionState(str, Enum):
    """Lifecycle state of a request-scoped session."""

    FRESH = "fresh"
    LOADED = "loaded"
    MODIFIED = "modified"
    TOUCHED = "touched"
    REGENERATED = "regenerated"
    DESTROYED = "destroyed"


class SessionPayload(BaseModel):
    """Stateless cookie body: the whole session."""

    id: str = Field(..., min_length=1)
    data: Dict[str, Any] = Field(default_factory=dict)
    expiry: datetime


class SessionRecord(BaseModel):
    """Store-backed record; the cookie then carries only the id."""

    data: Dict[str, Any] = Field(default_factory=dict)
    expiry: datetime
