import pytest

from pflegeconnect.domain.consent import store as consent_store
from pflegeconnect.domain.messaging import store as message_store
from pflegeconnect.domain.profiles import store as profile_store
from pflegeconnect.domain.quota import store as listing_store
from pflegeconnect.domain.watchlist import store as watchlist_store
from pflegeconnect.settings import settings

MODULES = [
	(consent_store, consent_store.MemoryContactRequestStore, consent_store.PostgresContactRequestStore),
	(message_store, message_store.MemoryMessageStore, message_store.PostgresMessageStore),
	(profile_store, profile_store.MemoryProfileStore, profile_store.PostgresProfileStore),
	(listing_store, listing_store.MemoryListingStore, listing_store.PostgresListingStore),
	(watchlist_store, watchlist_store.MemoryWatchlistStore, watchlist_store.PostgresWatchlistStore),
]


@pytest.mark.parametrize("module, memory_cls, postgres_cls", MODULES)
def test_backend_follows_settings(monkeypatch, module, memory_cls, postgres_cls):
	assert isinstance(module.resolve_store(), memory_cls)
	monkeypatch.setattr(settings, "store_backend", "postgres")
	assert isinstance(module.resolve_store(), postgres_cls)


@pytest.mark.asyncio
async def test_memory_singletons_share_profiles_and_reset():
	org = profile_store.Profile(
		role=profile_store.Role.ORGANIZATION,
		basics=profile_store.ProfileBasics(id="org-shared", owner_id="u-shared"),
	)
	await profile_store.seed_memory_store([org])
	try:
		async with listing_store.memory_store().quota_scope("org-shared") as scope:
			assert scope.tier is profile_store.SubscriptionTier.FREE
			assert scope.active_count == 0
	finally:
		await profile_store.reset_memory_state()
		await listing_store.reset_memory_state()
	assert await profile_store.memory_store().get("org-shared") is None
