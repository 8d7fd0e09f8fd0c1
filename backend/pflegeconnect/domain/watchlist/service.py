from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

from pflegeconnect.domain.errors import NotFound, PermissionDenied, ValidationError
from pflegeconnect.domain.profiles.store import ProfileStore
from pflegeconnect.domain.profiles.store import resolve_store as resolve_profile_store
from pflegeconnect.domain.watchlist.models import WatchlistEntry
from pflegeconnect.domain.watchlist.store import WatchlistStore, resolve_store
from pflegeconnect.obs import metrics as obs_metrics

logger = logging.getLogger(__name__)


class WatchlistService:
	def __init__(
		self,
		store: Optional[WatchlistStore] = None,
		profiles: Optional[ProfileStore] = None,
	) -> None:
		self._store = store or resolve_store()
		self._profiles = profiles or resolve_profile_store()

	async def add(self, owner_id: str, watched_id: str) -> WatchlistEntry:
		"""Bookmark a profile; adding the same profile twice returns the first entry."""
		owner_id, watched_id = str(owner_id), str(watched_id)
		profile = await self._profiles.get(watched_id)
		if profile is None:
			raise NotFound("profile_missing", "That profile no longer exists.")
		if owner_id in (watched_id, profile.owner_id):
			raise ValidationError("self_watch", "You cannot add your own profile to the watchlist.")
		entry = await self._store.add(
			WatchlistEntry(
				id=str(uuid4()),
				owner_id=owner_id,
				watched_id=watched_id,
				created_at=datetime.now(timezone.utc),
			)
		)
		obs_metrics.inc_watchlist("add")
		logger.info("watchlist entry added", extra={"owner_id": owner_id, "watched_id": watched_id})
		return entry

	async def remove(self, owner_id: str, entry_id: str) -> None:
		entry = await self._store.get(str(entry_id))
		if entry is None:
			raise NotFound("entry_missing", "That watchlist entry does not exist.")
		if entry.owner_id != str(owner_id):
			raise PermissionDenied("not_owner", "Only the owner can change this watchlist.")
		if not await self._store.delete(entry.id):
			raise NotFound("entry_missing", "That watchlist entry does not exist.")
		obs_metrics.inc_watchlist("remove")

	async def list(self, owner_id: str) -> list[WatchlistEntry]:
		return await self._store.list_for_owner(str(owner_id))

	async def is_watching(self, owner_id: str, watched_id: str) -> bool:
		return await self._store.find(str(owner_id), str(watched_id)) is not None
