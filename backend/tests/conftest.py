import asyncio
import sys
from pathlib import Path

import pytest
import pytest_asyncio
from fakeredis.aioredis import FakeRedis

# Ensure backend package is importable when tests run from repo root
BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
	sys.path.insert(0, str(BACKEND_ROOT))

from pflegeconnect.domain.consent.store import MemoryContactRequestStore
from pflegeconnect.domain.messaging.store import MemoryMessageStore
from pflegeconnect.domain.profiles.store import MemoryProfileStore
from pflegeconnect.domain.quota.store import MemoryListingStore
from pflegeconnect.domain.watchlist.store import MemoryWatchlistStore
from pflegeconnect.settings import settings


# Ensure a selector-based event loop policy on Windows to avoid Proactor issues with async IO
if sys.platform == "win32":
	asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())


@pytest_asyncio.fixture(autouse=True)
async def fake_redis():
	from pflegeconnect.infra.redis import redis_client, set_redis_client
	original = redis_client.client
	client = FakeRedis(decode_responses=True)
	set_redis_client(client)
	try:
		yield client
	finally:
		set_redis_client(original)
		await client.flushall()


@pytest.fixture(autouse=True)
def force_test_settings(monkeypatch):
	"""Keep every test on the in-memory stores with the default consent policy."""
	monkeypatch.setattr(settings, "store_backend", "memory")
	monkeypatch.setattr(settings, "environment", "test")
	monkeypatch.setattr(settings, "contact_rerequest_cooldown_days", None)
	monkeypatch.setattr(settings, "audit_stream_enabled", True)


# Fresh store instances per test so their locks never outlive the test's event loop.

@pytest.fixture
def profile_store() -> MemoryProfileStore:
	return MemoryProfileStore()


@pytest.fixture
def listing_store(profile_store) -> MemoryListingStore:
	return MemoryListingStore(profile_store)


@pytest.fixture
def contact_store() -> MemoryContactRequestStore:
	return MemoryContactRequestStore()


@pytest.fixture
def message_store() -> MemoryMessageStore:
	return MemoryMessageStore()


@pytest.fixture
def watchlist_store() -> MemoryWatchlistStore:
	return MemoryWatchlistStore()
