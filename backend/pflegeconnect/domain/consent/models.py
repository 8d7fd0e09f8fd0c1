"""Domain models for contact requests."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


class ContactStatus(str, Enum):
	"""Request lifecycle. ACCEPTED and REJECTED are terminal."""

	PENDING = "pending"
	ACCEPTED = "accepted"
	REJECTED = "rejected"

	@property
	def is_active(self) -> bool:
		return self in (ContactStatus.PENDING, ContactStatus.ACCEPTED)


class Decision(str, Enum):
	ACCEPT = "accept"
	REJECT = "reject"

	@property
	def outcome(self) -> ContactStatus:
		return ContactStatus.ACCEPTED if self is Decision.ACCEPT else ContactStatus.REJECTED


@dataclass(slots=True)
class ContactRequest:
	"""Directional proposal from requester to target."""

	id: str
	requester_id: str
	target_id: str
	message: str
	status: ContactStatus
	created_at: datetime
	responded_at: Optional[datetime] = None

	@classmethod
	def from_record(cls, record) -> "ContactRequest":
		return cls(
			id=str(record["id"]),
			requester_id=str(record["requester_id"]),
			target_id=str(record["target_id"]),
			message=record["message"] or "",
			status=ContactStatus(record["status"]),
			created_at=record["created_at"],
			responded_at=record["responded_at"],
		)


def pair_key(user_a: str, user_b: str) -> tuple[str, str]:
	"""Order-independent key for the {A, B} pair."""

	a, b = str(user_a), str(user_b)
	return (a, b) if a <= b else (b, a)
