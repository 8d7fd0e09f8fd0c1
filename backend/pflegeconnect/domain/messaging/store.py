"""Message persistence."""

from __future__ import annotations

import asyncio
import copy
from typing import Protocol

from pflegeconnect.domain.messaging.models import Message
from pflegeconnect.infra.postgres import get_pool
from pflegeconnect.settings import settings


class MessageStore(Protocol):
	async def insert(self, message: Message) -> Message: ...

	async def list_thread(self, user_a: str, user_b: str, *, limit: int) -> list[Message]: ...

	async def mark_read(self, receiver_id: str, sender_id: str) -> int: ...


class PostgresMessageStore:
	async def insert(self, message: Message) -> Message:
		pool = await get_pool()
		record = await pool.fetchrow(
			"""
			INSERT INTO messages (id, sender_id, receiver_id, content, created_at, is_read)
			VALUES ($1, $2, $3, $4, $5, FALSE)
			RETURNING *
			""",
			message.id,
			message.sender_id,
			message.receiver_id,
			message.content,
			message.created_at,
		)
		return Message.from_record(record)

	async def list_thread(self, user_a: str, user_b: str, *, limit: int) -> list[Message]:
		pool = await get_pool()
		rows = await pool.fetch(
			"""
			SELECT * FROM (
				SELECT *
				FROM messages
				WHERE (sender_id = $1 AND receiver_id = $2)
				   OR (sender_id = $2 AND receiver_id = $1)
				ORDER BY created_at DESC
				LIMIT $3
			) recent
			ORDER BY created_at ASC
			""",
			user_a,
			user_b,
			limit,
		)
		return [Message.from_record(row) for row in rows]

	async def mark_read(self, receiver_id: str, sender_id: str) -> int:
		pool = await get_pool()
		result = await pool.execute(
			"UPDATE messages SET is_read = TRUE WHERE receiver_id = $1 AND sender_id = $2 AND NOT is_read",
			receiver_id,
			sender_id,
		)
		# asyncpg returns the command tag, e.g. "UPDATE 3"
		return int(result.split()[-1])


class MemoryMessageStore:
	def __init__(self) -> None:
		self._lock = asyncio.Lock()
		self.messages: list[Message] = []

	async def reset(self) -> None:
		async with self._lock:
			self.messages.clear()

	async def insert(self, message: Message) -> Message:
		async with self._lock:
			self.messages.append(copy.deepcopy(message))
			return copy.deepcopy(message)

	async def list_thread(self, user_a: str, user_b: str, *, limit: int) -> list[Message]:
		pair = {str(user_a), str(user_b)}
		async with self._lock:
			thread = [copy.deepcopy(m) for m in self.messages if {m.sender_id, m.receiver_id} == pair]
		thread.sort(key=lambda m: m.created_at)
		return thread[-limit:] if limit > 0 else []

	async def mark_read(self, receiver_id: str, sender_id: str) -> int:
		changed = 0
		async with self._lock:
			for message in self.messages:
				if message.receiver_id == receiver_id and message.sender_id == sender_id and not message.is_read:
					message.is_read = True
					changed += 1
		return changed


_MEMORY = MemoryMessageStore()


def resolve_store() -> MessageStore:
	if settings.store_backend == "memory":
		return _MEMORY
	return PostgresMessageStore()


async def reset_memory_state() -> None:
	await _MEMORY.reset()
