"""Pydantic schemas for discovery queries."""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from pflegeconnect.domain.geo import BoundingBox, GeoPoint
from pflegeconnect.domain.profiles.models import Availability, LanguageLevel
from pflegeconnect.settings import settings

CandidateKind = Literal["provider", "organization", "listing"]


class BoundsFilter(BaseModel):
	north: float = Field(..., ge=-90.0, le=90.0)
	south: float = Field(..., ge=-90.0, le=90.0)
	east: float = Field(..., ge=-180.0, le=180.0)
	west: float = Field(..., ge=-180.0, le=180.0)

	def to_box(self) -> BoundingBox:
		return BoundingBox(north=self.north, south=self.south, east=self.east, west=self.west)


class RadiusFilter(BaseModel):
	lat: float = Field(..., ge=-90.0, le=90.0)
	lon: float = Field(..., ge=-180.0, le=180.0)
	radius_km: float = Field(..., ge=0.0)

	@property
	def center(self) -> GeoPoint:
		return GeoPoint(lat=self.lat, lon=self.lon)


class SearchFilter(BaseModel):
	"""Every populated field narrows the result; unset fields are ignored."""

	query: Optional[str] = Field(default=None, max_length=120)
	kind: CandidateKind = "provider"
	city: Optional[str] = None
	language_level: Optional[LanguageLevel] = None
	availability: Optional[Availability] = None
	company_type: Optional[str] = None
	employment_type: Optional[str] = None
	rate_min: Optional[float] = Field(default=None, ge=0.0)
	rate_max: Optional[float] = Field(default=None, ge=0.0)
	min_care_score: int = Field(default=0, ge=0, le=100)
	verified_only: bool = False
	bounds: Optional[BoundsFilter] = None
	radius: Optional[RadiusFilter] = None
	limit: int = Field(default_factory=lambda: settings.search_default_limit, ge=1)
	offset: int = Field(default=0, ge=0)

	@field_validator("query", mode="before")
	@classmethod
	def _strip_query(cls, value):
		if isinstance(value, str):
			return value.strip() or None
		return value

	@field_validator("city", "company_type", "employment_type", mode="before")
	@classmethod
	def _blank_to_none(cls, value):
		if isinstance(value, str):
			value = value.strip()
			# "all" is what the dropdowns send when no option is picked
			if not value or value.lower() == "all":
				return None
		return value

	@field_validator("language_level", mode="before")
	@classmethod
	def _parse_level(cls, value):
		if isinstance(value, str) and value.strip().lower() in ("", "all"):
			return None
		return LanguageLevel.parse(value)

	@field_validator("limit")
	@classmethod
	def _cap_limit(cls, value: int) -> int:
		return min(value, settings.search_max_limit)

	@model_validator(mode="after")
	def _order_rate_range(self) -> "SearchFilter":
		# Inverted ranges come from sliders dragged past each other; swap instead of rejecting.
		if self.rate_min is not None and self.rate_max is not None and self.rate_min > self.rate_max:
			self.rate_min, self.rate_max = self.rate_max, self.rate_min
		return self

	@property
	def has_rate_range(self) -> bool:
		return self.rate_min is not None or self.rate_max is not None

	def normalized_query(self) -> Optional[str]:
		return self.query.lower() if self.query else None
