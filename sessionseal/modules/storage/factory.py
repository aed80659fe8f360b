"""
Store Factory following Black Box Design principles.

Constructs the configured session store and returns it behind the
SessionStore protocol (or None for stateless cookie sessions).
"""

import logging
from typing import Optional

from ...config.provider import StoreConfig
from ...errors import InvalidConfiguration
from .interfaces import SessionStore
from .memory import MemoryStore
from .redis_store import RedisStore

logger = logging.getLogger(__name__)


class StoreFactory:
    """Factory for building the session store."""

    @staticmethod
    def build(store_config: StoreConfig) -> Optional[SessionStore]:
        """
        Build the session store.

        Args:
            store_config: Store configuration

        Returns:
            SessionStore, or None when session data travels in the cookie
        """
        if store_config.is_stateless:
            logger.info("Using stateless cookie sessions (no store)")
            return None

        if store_config.backend == "memory":
            logger.info("Using in-memory session store")
            return MemoryStore()

        if store_config.backend == "redis":
            logger.info("Using Redis session store")
            return RedisStore.from_url(store_config.redis_url, key_prefix=store_config.key_prefix)

        raise InvalidConfiguration(f"Unknown session store backend: {store_config.backend!r}")
