"""Uniform search candidates built from profiles and listings."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Optional

from pflegeconnect.domain.geo import GeoPoint, point_or_none
from pflegeconnect.domain.profiles.models import Availability, LanguageLevel, Profile, Role
from pflegeconnect.domain.quota.models import Listing


@dataclass(frozen=True, slots=True)
class SearchCandidate:
	kind: str
	id: str
	owner_id: str
	name: Optional[str]
	created_at: datetime
	city: Optional[str] = None
	point: Optional[GeoPoint] = None
	# lower-cased fields searched by the free-text query besides the name
	text_fields: tuple[str, ...] = ()
	care_score: int = 0
	elite: bool = False
	is_verified: bool = False
	language_level: Optional[LanguageLevel] = None
	availability: Optional[Availability] = None
	company_type: Optional[str] = None
	employment_type: Optional[str] = None
	hourly_rate: Optional[float] = None
	distance_km: Optional[float] = None
	source: object = field(default=None, compare=False, repr=False)

	def with_distance(self, distance: Optional[float]) -> "SearchCandidate":
		return replace(self, distance_km=distance)


def from_profile(profile: Profile) -> SearchCandidate:
	"""Build a candidate from the public view, so hidden names are not searchable."""

	public = profile.public_view()
	basics = public.basics
	common = dict(
		id=public.id,
		owner_id=public.owner_id,
		created_at=basics.created_at,
		city=basics.city,
		point=point_or_none(basics.latitude, basics.longitude),
		source=public,
	)
	if public.role is Role.PROVIDER:
		attrs = public.provider
		return SearchCandidate(
			kind="provider",
			name=basics.display_name,
			text_fields=tuple(s.lower() for s in attrs.specializations),
			care_score=attrs.care_score,
			is_verified=attrs.is_verified,
			language_level=attrs.language_level,
			availability=attrs.availability,
			hourly_rate=attrs.hourly_rate,
			**common,
		)
	if public.role is Role.ORGANIZATION:
		attrs = public.organization
		texts = [attrs.description.lower()] if attrs.description else []
		if attrs.company_type:
			texts.append(attrs.company_type.lower())
		return SearchCandidate(
			kind="organization",
			name=attrs.name or basics.display_name,
			text_fields=tuple(texts),
			elite=attrs.is_elite,
			is_verified=attrs.is_verified,
			company_type=attrs.company_type,
			**common,
		)
	raise ValueError(f"{public.role.value} profiles are not searchable")


def from_listing(listing: Listing, organization: Optional[Profile] = None) -> SearchCandidate:
	"""Listings take their map position from the owning organization."""

	point = None
	company_type = None
	verified = False
	if organization is not None:
		point = point_or_none(organization.basics.latitude, organization.basics.longitude)
		if organization.role is Role.ORGANIZATION:
			company_type = organization.organization.company_type
			verified = organization.organization.is_verified
	return SearchCandidate(
		kind="listing",
		id=listing.id,
		owner_id=listing.organization_id,
		name=listing.title,
		created_at=listing.created_at,
		city=listing.city,
		point=point,
		text_fields=(listing.description.lower(),) if listing.description else (),
		elite=listing.is_featured,
		is_verified=verified,
		company_type=company_type,
		employment_type=listing.employment_type,
		source=listing,
	)
