"""
Shared pytest fixtures for sessionseal tests.

This module provides common fixtures including:
- Secret keys and key rings (active and retired)
- Session configuration builders
- Redis mocks for store tests
"""

import os
import sys
from unittest.mock import AsyncMock

import pytest

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sessionseal.config.provider import CookieConfig, SessionConfig
from sessionseal.modules.keyring import KeyRing


# =============================================================================
# Key Material
# =============================================================================

@pytest.fixture
def secret_key() -> bytes:
    """Active key used across tests."""
    return bytes(range(32))


@pytest.fixture
def retired_key() -> bytes:
    """Second, distinct key used to simulate rotation."""
    return bytes(range(100, 132))


@pytest.fixture
def keyring(secret_key) -> KeyRing:
    """Single-key ring."""
    return KeyRing((secret_key,))


@pytest.fixture
def make_config(keyring):
    """
    Build a SessionConfig suitable for tests.

    Cookies are not Secure so the HTTP test client sends them back.
    """
    def _make(**overrides) -> SessionConfig:
        cookie = overrides.pop("cookie", CookieConfig(name="session", secure=False))
        params = {"keyring": keyring, "cookie": cookie, "ttl": 3600}
        params.update(overrides)
        return SessionConfig(**params)

    return _make


# =============================================================================
# Redis Mocking Infrastructure
# =============================================================================

@pytest.fixture
def mock_redis():
    """Create a mock Redis client for async operations."""
    redis = AsyncMock()

    redis.setex = AsyncMock()
    redis.get = AsyncMock(return_value=None)
    redis.delete = AsyncMock(return_value=1)
    redis.aclose = AsyncMock()

    return redis


@pytest.fixture
def mock_redis_with_data():
    """
    Redis mock with in-memory data storage for more realistic tests.

    This allows testing code that reads back what it writes.
    """
    storage = {}
    ttls = {}

    redis = AsyncMock()

    async def mock_setex(key, ttl, value):
        storage[key] = value
        ttls[key] = ttl
        return True

    async def mock_get(key):
        return storage.get(key)

    async def mock_delete(*keys):
        count = 0
        for key in keys:
            if key in storage:
                del storage[key]
                ttls.pop(key, None)
                count += 1
        return count

    redis.setex = mock_setex
    redis.get = mock_get
    redis.delete = mock_delete
    redis._storage = storage  # Expose for test assertions
    redis._ttls = ttls

    return redis


# =============================================================================
# Test Markers Configuration
# =============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "integration: Tests driving the full FastAPI application"
    )
    config.addinivalue_line(
        "markers", "slow: Tests that take a long time to run"
    )
