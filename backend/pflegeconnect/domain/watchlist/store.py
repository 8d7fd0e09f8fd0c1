"""Watchlist persistence."""

from __future__ import annotations

import asyncio
import copy
from typing import Optional, Protocol

from pflegeconnect.domain.watchlist.models import WatchlistEntry
from pflegeconnect.infra.postgres import get_pool
from pflegeconnect.settings import settings


class WatchlistStore(Protocol):
	async def add(self, entry: WatchlistEntry) -> WatchlistEntry: ...

	async def get(self, entry_id: str) -> Optional[WatchlistEntry]: ...

	async def find(self, owner_id: str, watched_id: str) -> Optional[WatchlistEntry]: ...

	async def delete(self, entry_id: str) -> bool: ...

	async def list_for_owner(self, owner_id: str) -> list[WatchlistEntry]: ...


class PostgresWatchlistStore:
	async def add(self, entry: WatchlistEntry) -> WatchlistEntry:
		pool = await get_pool()
		async with pool.acquire() as conn:
			# (owner_id, watched_id) is unique; a concurrent add returns the winner's row.
			record = await conn.fetchrow(
				"""
				INSERT INTO watchlist (id, owner_id, watched_id, created_at)
				VALUES ($1, $2, $3, $4)
				ON CONFLICT (owner_id, watched_id) DO NOTHING
				RETURNING *
				""",
				entry.id,
				entry.owner_id,
				entry.watched_id,
				entry.created_at,
			)
			if record is None:
				record = await conn.fetchrow(
					"SELECT * FROM watchlist WHERE owner_id = $1 AND watched_id = $2",
					entry.owner_id,
					entry.watched_id,
				)
		return WatchlistEntry.from_record(record)

	async def get(self, entry_id: str) -> Optional[WatchlistEntry]:
		pool = await get_pool()
		record = await pool.fetchrow("SELECT * FROM watchlist WHERE id = $1", entry_id)
		return WatchlistEntry.from_record(record) if record else None

	async def find(self, owner_id: str, watched_id: str) -> Optional[WatchlistEntry]:
		pool = await get_pool()
		record = await pool.fetchrow(
			"SELECT * FROM watchlist WHERE owner_id = $1 AND watched_id = $2",
			owner_id,
			watched_id,
		)
		return WatchlistEntry.from_record(record) if record else None

	async def delete(self, entry_id: str) -> bool:
		pool = await get_pool()
		result = await pool.execute("DELETE FROM watchlist WHERE id = $1", entry_id)
		return result.endswith(" 1")

	async def list_for_owner(self, owner_id: str) -> list[WatchlistEntry]:
		pool = await get_pool()
		rows = await pool.fetch(
			"SELECT * FROM watchlist WHERE owner_id = $1 ORDER BY created_at DESC",
			owner_id,
		)
		return [WatchlistEntry.from_record(row) for row in rows]


class MemoryWatchlistStore:
	def __init__(self) -> None:
		self._lock = asyncio.Lock()
		self.entries: dict[str, WatchlistEntry] = {}

	async def reset(self) -> None:
		async with self._lock:
			self.entries.clear()

	def _find(self, owner_id: str, watched_id: str) -> Optional[WatchlistEntry]:
		for entry in self.entries.values():
			if entry.owner_id == owner_id and entry.watched_id == watched_id:
				return entry
		return None

	async def add(self, entry: WatchlistEntry) -> WatchlistEntry:
		async with self._lock:
			existing = self._find(entry.owner_id, entry.watched_id)
			if existing is None:
				existing = copy.deepcopy(entry)
				self.entries[existing.id] = existing
			return copy.deepcopy(existing)

	async def get(self, entry_id: str) -> Optional[WatchlistEntry]:
		async with self._lock:
			entry = self.entries.get(entry_id)
			return copy.deepcopy(entry) if entry else None

	async def find(self, owner_id: str, watched_id: str) -> Optional[WatchlistEntry]:
		async with self._lock:
			entry = self._find(owner_id, watched_id)
			return copy.deepcopy(entry) if entry else None

	async def delete(self, entry_id: str) -> bool:
		async with self._lock:
			return self.entries.pop(entry_id, None) is not None

	async def list_for_owner(self, owner_id: str) -> list[WatchlistEntry]:
		async with self._lock:
			owned = [copy.deepcopy(e) for e in self.entries.values() if e.owner_id == owner_id]
		owned.sort(key=lambda e: e.created_at, reverse=True)
		return owned


_MEMORY = MemoryWatchlistStore()


def resolve_store() -> WatchlistStore:
	if settings.store_backend == "memory":
		return _MEMORY
	return PostgresWatchlistStore()


async def reset_memory_state() -> None:
	await _MEMORY.reset()
