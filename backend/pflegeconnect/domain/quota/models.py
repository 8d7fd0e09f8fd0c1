"""Listing (job posting) records counted against tier quotas."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from pflegeconnect.domain.profiles.models import SubscriptionTier


@dataclass(slots=True)
class Listing:
	id: str
	organization_id: str
	title: str
	description: str = ""
	city: Optional[str] = None
	employment_type: Optional[str] = None
	is_active: bool = True
	is_featured: bool = False
	created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

	@classmethod
	def from_record(cls, record) -> "Listing":
		return cls(
			id=str(record["id"]),
			organization_id=str(record["organization_id"]),
			title=record["title"],
			description=record["description"] or "",
			city=record["city"],
			employment_type=record["employment_type"],
			is_active=bool(record["is_active"]),
			is_featured=bool(record["is_featured"]),
			created_at=record["created_at"],
		)


@dataclass(slots=True)
class ListingDraft:
	title: str
	description: str = ""
	city: Optional[str] = None
	employment_type: Optional[str] = None
	is_active: bool = True
	is_featured: bool = False


@dataclass(frozen=True, slots=True)
class QuotaSummary:
	tier: SubscriptionTier
	active_count: int
	featured_count: int
	remaining_listings: int
	remaining_featured: int
