"""Contact-request persistence.

The Postgres table carries a partial unique index over the unordered pair
restricted to pending/accepted rows, so two simultaneous requests from opposite
directions cannot both land. The memory store reproduces that by checking and
inserting under one lock.
"""

from __future__ import annotations

import asyncio
import copy
from datetime import datetime
from typing import Iterable, Optional, Protocol

import asyncpg

from pflegeconnect.domain.consent.models import ContactRequest, ContactStatus, pair_key
from pflegeconnect.domain.errors import RequestAlreadyActive
from pflegeconnect.infra.postgres import get_pool
from pflegeconnect.settings import settings


class ContactRequestStore(Protocol):
	async def insert_pending(self, request: ContactRequest) -> ContactRequest: ...

	async def get(self, request_id: str) -> Optional[ContactRequest]: ...

	async def find_between(self, user_a: str, user_b: str) -> list[ContactRequest]: ...

	async def transition(
		self,
		request_id: str,
		*,
		to_status: ContactStatus,
		responded_at: datetime,
	) -> Optional[ContactRequest]: ...

	async def has_accepted(self, user_a: str, user_b: str) -> bool: ...

	async def list_incoming(self, target_id: str) -> list[ContactRequest]: ...

	async def list_outgoing(self, requester_id: str) -> list[ContactRequest]: ...


class PostgresContactRequestStore:
	async def insert_pending(self, request: ContactRequest) -> ContactRequest:
		pool = await get_pool()
		try:
			record = await pool.fetchrow(
				"""
				INSERT INTO contact_requests (id, requester_id, target_id, message, status, created_at)
				VALUES ($1, $2, $3, $4, 'pending', $5)
				RETURNING *
				""",
				request.id,
				request.requester_id,
				request.target_id,
				request.message,
				request.created_at,
			)
		except asyncpg.UniqueViolationError as exc:
			raise RequestAlreadyActive("pending", "A contact request is already pending.") from exc
		return ContactRequest.from_record(record)

	async def get(self, request_id: str) -> Optional[ContactRequest]:
		pool = await get_pool()
		record = await pool.fetchrow("SELECT * FROM contact_requests WHERE id = $1", request_id)
		return ContactRequest.from_record(record) if record else None

	async def find_between(self, user_a: str, user_b: str) -> list[ContactRequest]:
		pool = await get_pool()
		rows = await pool.fetch(
			"""
			SELECT *
			FROM contact_requests
			WHERE (requester_id = $1 AND target_id = $2)
			   OR (requester_id = $2 AND target_id = $1)
			ORDER BY created_at DESC
			""",
			user_a,
			user_b,
		)
		return [ContactRequest.from_record(row) for row in rows]

	async def transition(
		self,
		request_id: str,
		*,
		to_status: ContactStatus,
		responded_at: datetime,
	) -> Optional[ContactRequest]:
		pool = await get_pool()
		# Compare-and-set: only a pending row moves, so a second response loses.
		record = await pool.fetchrow(
			"""
			UPDATE contact_requests
			SET status = $2, responded_at = $3
			WHERE id = $1 AND status = 'pending'
			RETURNING *
			""",
			request_id,
			to_status.value,
			responded_at,
		)
		return ContactRequest.from_record(record) if record else None

	async def has_accepted(self, user_a: str, user_b: str) -> bool:
		pool = await get_pool()
		value = await pool.fetchval(
			"""
			SELECT EXISTS (
				SELECT 1 FROM contact_requests
				WHERE status = 'accepted'
				  AND ((requester_id = $1 AND target_id = $2) OR (requester_id = $2 AND target_id = $1))
			)
			""",
			user_a,
			user_b,
		)
		return bool(value)

	async def list_incoming(self, target_id: str) -> list[ContactRequest]:
		pool = await get_pool()
		rows = await pool.fetch(
			"SELECT * FROM contact_requests WHERE target_id = $1 ORDER BY created_at DESC",
			target_id,
		)
		return [ContactRequest.from_record(row) for row in rows]

	async def list_outgoing(self, requester_id: str) -> list[ContactRequest]:
		pool = await get_pool()
		rows = await pool.fetch(
			"SELECT * FROM contact_requests WHERE requester_id = $1 ORDER BY created_at DESC",
			requester_id,
		)
		return [ContactRequest.from_record(row) for row in rows]


class MemoryContactRequestStore:
	def __init__(self) -> None:
		self._lock = asyncio.Lock()
		self.requests: dict[str, ContactRequest] = {}

	async def reset(self) -> None:
		async with self._lock:
			self.requests.clear()

	async def seed(self, requests: Iterable[ContactRequest]) -> None:
		async with self._lock:
			for request in requests:
				self.requests[request.id] = copy.deepcopy(request)

	def _between(self, user_a: str, user_b: str) -> list[ContactRequest]:
		key = pair_key(user_a, user_b)
		rows = [r for r in self.requests.values() if pair_key(r.requester_id, r.target_id) == key]
		rows.sort(key=lambda r: r.created_at, reverse=True)
		return rows

	async def insert_pending(self, request: ContactRequest) -> ContactRequest:
		async with self._lock:
			if any(r.status.is_active for r in self._between(request.requester_id, request.target_id)):
				raise RequestAlreadyActive("pending", "A contact request is already pending.")
			stored = copy.deepcopy(request)
			stored.status = ContactStatus.PENDING
			stored.responded_at = None
			self.requests[stored.id] = stored
			return copy.deepcopy(stored)

	async def get(self, request_id: str) -> Optional[ContactRequest]:
		async with self._lock:
			request = self.requests.get(request_id)
			return copy.deepcopy(request) if request else None

	async def find_between(self, user_a: str, user_b: str) -> list[ContactRequest]:
		async with self._lock:
			return [copy.deepcopy(r) for r in self._between(user_a, user_b)]

	async def transition(
		self,
		request_id: str,
		*,
		to_status: ContactStatus,
		responded_at: datetime,
	) -> Optional[ContactRequest]:
		async with self._lock:
			request = self.requests.get(request_id)
			if request is None or request.status is not ContactStatus.PENDING:
				return None
			request.status = to_status
			request.responded_at = responded_at
			return copy.deepcopy(request)

	async def has_accepted(self, user_a: str, user_b: str) -> bool:
		async with self._lock:
			return any(r.status is ContactStatus.ACCEPTED for r in self._between(user_a, user_b))

	async def list_incoming(self, target_id: str) -> list[ContactRequest]:
		async with self._lock:
			rows = [copy.deepcopy(r) for r in self.requests.values() if r.target_id == str(target_id)]
		rows.sort(key=lambda r: r.created_at, reverse=True)
		return rows

	async def list_outgoing(self, requester_id: str) -> list[ContactRequest]:
		async with self._lock:
			rows = [copy.deepcopy(r) for r in self.requests.values() if r.requester_id == str(requester_id)]
		rows.sort(key=lambda r: r.created_at, reverse=True)
		return rows


_MEMORY = MemoryContactRequestStore()


def resolve_store() -> ContactRequestStore:
	if settings.store_backend == "memory":
		return _MEMORY
	return PostgresContactRequestStore()


async def reset_memory_state() -> None:
	await _MEMORY.reset()
