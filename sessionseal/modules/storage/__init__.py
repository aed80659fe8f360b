"""
Storage Module - Black Box Interface

Purpose: Persist session records server-side, keyed by session id
Interface: SessionStore.get(), SessionStore.set(), SessionStore.destroy()
Hidden: Redis specifics, connection pooling, serialization, expiry handling

Can be replaced with any storage backend that satisfies the SessionStore protocol.
"""

from .factory import StoreFactory
from .interfaces import SessionStore
from .memory import MemoryStore
from .redis_store import RedisStore

__all__ = ["MemoryStore", "RedisStore", "SessionStore", "StoreFactory"]
