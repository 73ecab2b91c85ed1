"""
Shared pytest fixtures for hashsession tests.

This module provides:
- InMemoryRedis: async Redis double with hash, expiry and pipeline support
- Session engine fixtures (options, manager, unit of work factory)
- Mock Redis client for storage boundary tests
"""

import os
import sys
from types import SimpleNamespace
from typing import Dict, List, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from hashsession.modules.session import SessionManager, SessionOptions, UnitOfWork


SIGNING_KEY = "test-signing-key"
KEY_PREFIX = "session:"


# =============================================================================
# Redis Double
# =============================================================================


class InMemoryPipeline:
    """Records queued commands and applies them on execute()."""

    def __init__(self, redis: "InMemoryRedis", transaction: bool):
        self.redis = redis
        self.transaction = transaction
        self.commands: List[tuple] = []

    def hdel(self, key, *fields):
        self.commands.append(("hdel", key, fields))
        return self

    def hset(self, key, mapping=None):
        self.commands.append(("hset", key, dict(mapping or {})))
        return self

    def pexpire(self, key, ttl):
        self.commands.append(("pexpire", key, ttl))
        return self

    async def execute(self):
        if self.redis.fail_writes:
            raise RedisConnectionError("connection refused")
        self.redis.executed.append(self.commands)
        results = []
        for name, key, arg in self.commands:
            results.append(self.redis._apply(name, key, arg))
        return results


class InMemoryRedis:
    """
    Async Redis double for session engine tests.

    Stores hashes and millisecond TTLs, and keeps every executed pipeline
    in ``executed`` so tests can count batched writes.
    """

    def __init__(self):
        self.hashes: Dict[str, Dict[str, str]] = {}
        self.ttls: Dict[str, int] = {}
        self.executed: List[List[tuple]] = []
        self.hgetall_calls = 0
        self.fail_reads = False
        self.fail_writes = False
        self.fail_deletes = False

    async def hgetall(self, key):
        self.hgetall_calls += 1
        if self.fail_reads:
            raise RedisConnectionError("connection refused")
        return dict(self.hashes.get(key, {}))

    async def delete(self, *keys):
        if self.fail_deletes:
            raise RedisConnectionError("connection refused")
        count = 0
        for key in keys:
            if self.hashes.pop(key, None) is not None:
                count += 1
            self.ttls.pop(key, None)
        return count

    async def pexpire(self, key, ttl):
        return self._apply("pexpire", key, ttl)

    async def pttl(self, key):
        if key not in self.hashes:
            return -2
        return self.ttls.get(key, -1)

    async def ping(self):
        return True

    def pipeline(self, transaction=True):
        return InMemoryPipeline(self, transaction)

    def _apply(self, name, key, arg):
        if name == "hdel":
            record = self.hashes.get(key, {})
            removed = sum(1 for field in arg if record.pop(field, None) is not None)
            if key in self.hashes and not record:
                del self.hashes[key]
                self.ttls.pop(key, None)
            return removed
        if name == "hset":
            record = self.hashes.setdefault(key, {})
            added = sum(1 for field in arg if field not in record)
            record.update(arg)
            return added
        if name == "pexpire":
            if key not in self.hashes:
                return 0
            self.ttls[key] = arg
            return 1
        raise ValueError(f"Unsupported command {name}")

    @property
    def write_count(self) -> int:
        return len(self.executed)


# =============================================================================
# Session Engine Fixtures
# =============================================================================


@pytest.fixture
def fake_redis():
    return InMemoryRedis()


@pytest.fixture
def session_options(fake_redis):
    return SessionOptions(client=fake_redis, keys=[SIGNING_KEY], key_prefix=KEY_PREFIX)


@pytest.fixture
def manager(session_options):
    return SessionManager.from_options(session_options)


@pytest.fixture
def make_context():
    """Factory for units of work over a fake request carrying cookies."""

    def factory(cookies: Optional[Dict[str, str]] = None) -> UnitOfWork:
        request = SimpleNamespace(cookies=dict(cookies or {}))
        return UnitOfWork(request, on_error=lambda exc: None)

    return factory


@pytest.fixture
def signed_cookies(manager):
    """Build the cookie pair a client sends back for a token."""

    def factory(token: str) -> Dict[str, str]:
        carrier = manager.carrier
        return {carrier.cookie_name: token, carrier.signature_name: carrier.sign(token)}

    return factory


# =============================================================================
# Redis Mocking Infrastructure
# =============================================================================


@pytest.fixture
def mock_redis():
    """Create a mock async Redis client for storage boundary tests."""
    redis = AsyncMock()

    # Hash operations
    redis.hgetall = AsyncMock(return_value={})
    redis.delete = AsyncMock(return_value=1)
    redis.pexpire = AsyncMock(return_value=1)

    # Pipeline support
    pipeline = MagicMock()
    pipeline.execute = AsyncMock(return_value=[])
    redis.pipeline = MagicMock(return_value=pipeline)

    return redis
