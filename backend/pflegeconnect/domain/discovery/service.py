"""Discovery query engine.

``search`` is pure: it filters a candidate set with every populated predicate
ANDed together and returns the ranked survivors. ``DiscoveryService`` wires it
to the stores and adds paging.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Iterable, Optional

from pflegeconnect.domain.discovery.models import SearchCandidate, from_listing, from_profile
from pflegeconnect.domain.discovery.ranking import rank
from pflegeconnect.domain.discovery.schemas import SearchFilter
from pflegeconnect.domain.geo import distance_km, in_bounding_box, within_radius_km
from pflegeconnect.domain.profiles.models import Role
from pflegeconnect.domain.profiles.store import ProfileStore
from pflegeconnect.domain.profiles.store import resolve_store as resolve_profile_store
from pflegeconnect.domain.quota.store import ListingStore
from pflegeconnect.domain.quota.store import resolve_store as resolve_listing_store
from pflegeconnect.obs import metrics as obs_metrics

logger = logging.getLogger(__name__)


def _contains(haystack: Optional[str], needle: str) -> bool:
	return bool(haystack) and needle in haystack.lower()


def _matches_query(candidate: SearchCandidate, needle: Optional[str]) -> bool:
	if not needle:
		return True
	if _contains(candidate.name, needle):
		return True
	return any(needle in text for text in candidate.text_fields)


def _matches_rate(candidate: SearchCandidate, flt: SearchFilter) -> bool:
	if not flt.has_rate_range:
		return True
	low = flt.rate_min or 0.0
	if candidate.hourly_rate is None:
		return low == 0
	if candidate.hourly_rate < low:
		return False
	return flt.rate_max is None or candidate.hourly_rate <= flt.rate_max


def _equals_ci(value: Optional[str], wanted: Optional[str]) -> bool:
	if wanted is None:
		return True
	return value is not None and value.strip().lower() == wanted.lower()


def matches(candidate: SearchCandidate, flt: SearchFilter) -> bool:
	if not _matches_query(candidate, flt.normalized_query()):
		return False
	if flt.city and not _contains(candidate.city, flt.city.lower()):
		return False
	if flt.language_level is not None and candidate.language_level is not flt.language_level:
		return False
	if flt.availability is not None and candidate.availability is not flt.availability:
		return False
	if not _equals_ci(candidate.company_type, flt.company_type):
		return False
	if not _equals_ci(candidate.employment_type, flt.employment_type):
		return False
	if not _matches_rate(candidate, flt):
		return False
	if flt.min_care_score and candidate.care_score < flt.min_care_score:
		return False
	if flt.verified_only and not candidate.is_verified:
		return False
	# Enabled geo filters reject candidates without coordinates.
	if flt.bounds is not None and not in_bounding_box(candidate.point, flt.bounds.to_box()):
		return False
	if flt.radius is not None and not within_radius_km(candidate.point, flt.radius.center, flt.radius.radius_km):
		return False
	return True


def search(candidates: Iterable[SearchCandidate], flt: SearchFilter) -> list[SearchCandidate]:
	"""Filter and rank ``candidates``; results carry ``distance_km`` when a radius is set."""

	survivors = [c for c in candidates if matches(c, flt)]
	if flt.radius is not None:
		center = flt.radius.center
		survivors = [c.with_distance(distance_km(c.point, center)) for c in survivors]
	return rank(survivors)


@dataclass(frozen=True, slots=True)
class SearchPage:
	items: list[SearchCandidate]
	total: int


class DiscoveryService:
	def __init__(
		self,
		profiles: Optional[ProfileStore] = None,
		listings: Optional[ListingStore] = None,
	) -> None:
		self._profiles = profiles or resolve_profile_store()
		self._listings = listings or resolve_listing_store()

	async def _load(self, kind: str) -> list[SearchCandidate]:
		if kind == "provider":
			return [from_profile(p) for p in await self._profiles.list_by_role(Role.PROVIDER)]
		organizations = await self._profiles.list_by_role(Role.ORGANIZATION)
		if kind == "organization":
			return [from_profile(p) for p in organizations]
		by_id = {org.id: org for org in organizations}
		listings = await self._listings.list_active()
		return [from_listing(l, by_id.get(l.organization_id)) for l in listings if l.is_active]

	async def search(self, actor_id: Optional[str], flt: SearchFilter) -> SearchPage:
		started = time.perf_counter()
		candidates = await self._load(flt.kind)
		if actor_id is not None:
			actor = str(actor_id)
			candidates = [
				c for c in candidates
				if c.kind == "listing" or (c.id != actor and c.owner_id != actor)
			]
		ranked = search(candidates, flt)
		page = SearchPage(items=ranked[flt.offset : flt.offset + flt.limit], total=len(ranked))
		elapsed = time.perf_counter() - started
		obs_metrics.inc_search_query(flt.kind)
		obs_metrics.observe_search_latency(flt.kind, elapsed)
		logger.debug(
			"discovery search",
			extra={"kind": flt.kind, "total": page.total, "latency_ms": round(elapsed * 1000, 2)},
		)
		return page
