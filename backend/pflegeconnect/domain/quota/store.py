"""Listing persistence with an atomic section for quota check-then-act."""

from __future__ import annotations

import asyncio
import copy
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncContextManager, AsyncIterator, Iterable, Optional, Protocol

import asyncpg

from pflegeconnect.domain.errors import NotFound
from pflegeconnect.domain.profiles.models import Role, SubscriptionTier
from pflegeconnect.domain.profiles import store as profile_store
from pflegeconnect.domain.profiles.store import MemoryProfileStore
from pflegeconnect.domain.quota.models import Listing
from pflegeconnect.infra.postgres import get_pool
from pflegeconnect.settings import settings


class QuotaScope(Protocol):
	"""Counts and writes for one organization, valid only inside ``quota_scope``."""

	tier: SubscriptionTier
	active_count: int
	featured_count: int

	async def get_listing(self, listing_id: str) -> Optional[Listing]: ...

	async def insert(self, listing: Listing) -> Listing: ...

	async def update_flags(self, listing_id: str, *, is_active: bool, is_featured: bool) -> Listing: ...


class ListingStore(Protocol):
	async def get(self, listing_id: str) -> Optional[Listing]: ...

	async def list_for_organization(self, organization_id: str) -> list[Listing]: ...

	async def list_active(self) -> list[Listing]: ...

	def quota_scope(self, organization_id: str) -> AsyncContextManager[QuotaScope]: ...


class _PostgresScope:
	def __init__(self, conn: asyncpg.Connection, organization_id: str, tier: SubscriptionTier) -> None:
		self._conn = conn
		self._organization_id = organization_id
		self.tier = tier
		self.active_count = 0
		self.featured_count = 0

	async def refresh_counts(self) -> None:
		row = await self._conn.fetchrow(
			"""
			SELECT
				COUNT(*) FILTER (WHERE is_active) AS active_count,
				COUNT(*) FILTER (WHERE is_featured) AS featured_count
			FROM job_postings
			WHERE organization_id = $1
			""",
			self._organization_id,
		)
		self.active_count = int(row["active_count"])
		self.featured_count = int(row["featured_count"])

	async def get_listing(self, listing_id: str) -> Optional[Listing]:
		record = await self._conn.fetchrow(
			"SELECT * FROM job_postings WHERE id = $1 AND organization_id = $2",
			listing_id,
			self._organization_id,
		)
		return Listing.from_record(record) if record else None

	async def insert(self, listing: Listing) -> Listing:
		record = await self._conn.fetchrow(
			"""
			INSERT INTO job_postings (
				id, organization_id, title, description, city, employment_type,
				is_active, is_featured, created_at
			)
			VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9)
			RETURNING *
			""",
			listing.id,
			listing.organization_id,
			listing.title,
			listing.description,
			listing.city,
			listing.employment_type,
			listing.is_active,
			listing.is_featured,
			listing.created_at,
		)
		await self.refresh_counts()
		return Listing.from_record(record)

	async def update_flags(self, listing_id: str, *, is_active: bool, is_featured: bool) -> Listing:
		record = await self._conn.fetchrow(
			"""
			UPDATE job_postings
			SET is_active = $3, is_featured = $4, updated_at = NOW()
			WHERE id = $1 AND organization_id = $2
			RETURNING *
			""",
			listing_id,
			self._organization_id,
			is_active,
			is_featured,
		)
		if not record:
			raise NotFound("listing_missing")
		await self.refresh_counts()
		return Listing.from_record(record)


class PostgresListingStore:
	async def get(self, listing_id: str) -> Optional[Listing]:
		pool = await get_pool()
		record = await pool.fetchrow("SELECT * FROM job_postings WHERE id = $1", listing_id)
		return Listing.from_record(record) if record else None

	async def list_for_organization(self, organization_id: str) -> list[Listing]:
		pool = await get_pool()
		rows = await pool.fetch(
			"SELECT * FROM job_postings WHERE organization_id = $1 ORDER BY created_at DESC",
			organization_id,
		)
		return [Listing.from_record(row) for row in rows]

	async def list_active(self) -> list[Listing]:
		pool = await get_pool()
		rows = await pool.fetch("SELECT * FROM job_postings WHERE is_active ORDER BY created_at DESC")
		return [Listing.from_record(row) for row in rows]

	@asynccontextmanager
	async def quota_scope(self, organization_id: str) -> AsyncIterator[_PostgresScope]:
		pool = await get_pool()
		async with pool.acquire() as conn:
			async with conn.transaction():
				# Row lock serialises concurrent quota checks for the same organization.
				row = await conn.fetchrow(
					"SELECT subscription_tier FROM organization_attributes WHERE profile_id = $1 FOR UPDATE",
					organization_id,
				)
				if not row:
					raise NotFound("organization_missing")
				scope = _PostgresScope(conn, organization_id, SubscriptionTier.parse(row["subscription_tier"]))
				await scope.refresh_counts()
				yield scope


@dataclass(slots=True)
class _MemoryScope:
	store: "MemoryListingStore"
	organization_id: str
	tier: SubscriptionTier
	active_count: int = 0
	featured_count: int = 0

	def refresh_counts(self) -> None:
		owned = [l for l in self.store.listings.values() if l.organization_id == self.organization_id]
		self.active_count = sum(1 for l in owned if l.is_active)
		self.featured_count = sum(1 for l in owned if l.is_featured)

	async def get_listing(self, listing_id: str) -> Optional[Listing]:
		listing = self.store.listings.get(listing_id)
		if listing is None or listing.organization_id != self.organization_id:
			return None
		return copy.deepcopy(listing)

	async def insert(self, listing: Listing) -> Listing:
		self.store.listings[listing.id] = copy.deepcopy(listing)
		self.refresh_counts()
		return copy.deepcopy(listing)

	async def update_flags(self, listing_id: str, *, is_active: bool, is_featured: bool) -> Listing:
		listing = self.store.listings.get(listing_id)
		if listing is None or listing.organization_id != self.organization_id:
			raise NotFound("listing_missing")
		listing.is_active = is_active
		listing.is_featured = is_featured
		self.refresh_counts()
		return copy.deepcopy(listing)


class MemoryListingStore:
	def __init__(self, profiles: MemoryProfileStore) -> None:
		self._lock = asyncio.Lock()
		self._profiles = profiles
		self.listings: dict[str, Listing] = {}

	async def reset(self) -> None:
		async with self._lock:
			self.listings.clear()

	async def seed(self, listings: Iterable[Listing]) -> None:
		async with self._lock:
			for listing in listings:
				self.listings[listing.id] = copy.deepcopy(listing)

	async def get(self, listing_id: str) -> Optional[Listing]:
		async with self._lock:
			listing = self.listings.get(listing_id)
			return copy.deepcopy(listing) if listing else None

	async def list_for_organization(self, organization_id: str) -> list[Listing]:
		async with self._lock:
			owned = [copy.deepcopy(l) for l in self.listings.values() if l.organization_id == organization_id]
		owned.sort(key=lambda l: l.created_at, reverse=True)
		return owned

	async def list_active(self) -> list[Listing]:
		async with self._lock:
			active = [copy.deepcopy(l) for l in self.listings.values() if l.is_active]
		active.sort(key=lambda l: l.created_at, reverse=True)
		return active

	@asynccontextmanager
	async def quota_scope(self, organization_id: str) -> AsyncIterator[_MemoryScope]:
		async with self._lock:
			organization = await self._profiles.get(organization_id)
			if organization is None or organization.role is not Role.ORGANIZATION:
				raise NotFound("organization_missing")
			scope = _MemoryScope(
				store=self,
				organization_id=organization_id,
				tier=organization.organization.subscription_tier,
			)
			scope.refresh_counts()
			yield scope



_MEMORY = MemoryListingStore(profile_store.memory_store())


def resolve_store() -> ListingStore:
	if settings.store_backend == "memory":
		return _MEMORY
	return PostgresListingStore()


def memory_store() -> MemoryListingStore:
	return _MEMORY


async def reset_memory_state() -> None:
	await _MEMORY.reset()
