"""Private message rows."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(slots=True)
class Message:
	id: str
	sender_id: str
	receiver_id: str
	content: str
	created_at: datetime
	is_read: bool = False

	@classmethod
	def from_record(cls, record) -> "Message":
		return cls(
			id=str(record["id"]),
			sender_id=str(record["sender_id"]),
			receiver_id=str(record["receiver_id"]),
			content=record["content"],
			created_at=record["created_at"],
			is_read=bool(record["is_read"]),
		)
