from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(slots=True)
class WatchlistEntry:
	"""Bookmark of a profile by a user. Carries no status."""

	id: str
	owner_id: str
	watched_id: str
	created_at: datetime

	@classmethod
	def from_record(cls, record) -> "WatchlistEntry":
		return cls(
			id=str(record["id"]),
			owner_id=str(record["owner_id"]),
			watched_id=str(record["watched_id"]),
			created_at=record["created_at"],
		)
