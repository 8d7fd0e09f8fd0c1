"""Profile shapes for the three marketplace actors.

A ``Profile`` is a tagged union: the ``role`` tag decides which attribute payload
it carries. Constructing a profile with a payload that does not match its tag
raises ``ValueError``.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Union


class Role(str, Enum):
	PROVIDER = "provider"
	ORGANIZATION = "organization"
	RELATIVE = "relative"
	OPERATOR = "operator"


class LanguageLevel(str, Enum):
	"""CEFR proficiency levels, ordered from beginner to mastery."""

	A1 = "A1"
	A2 = "A2"
	B1 = "B1"
	B2 = "B2"
	C1 = "C1"
	C2 = "C2"

	@property
	def rank(self) -> int:
		return _LEVEL_ORDER.index(self)

	@classmethod
	def parse(cls, value: "LanguageLevel | str | None") -> Optional["LanguageLevel"]:
		if value is None or isinstance(value, LanguageLevel):
			return value
		text = str(value).strip().upper()
		if not text:
			return None
		return cls(text)


_LEVEL_ORDER = (
	LanguageLevel.A1,
	LanguageLevel.A2,
	LanguageLevel.B1,
	LanguageLevel.B2,
	LanguageLevel.C1,
	LanguageLevel.C2,
)


class Availability(str, Enum):
	FULL_TIME = "full_time"
	PART_TIME = "part_time"
	FLEXIBLE = "flexible"
	WEEKENDS = "weekends"


class SubscriptionTier(str, Enum):
	FREE = "free"
	STANDARD = "standard"
	PREMIUM = "premium"

	@classmethod
	def parse(cls, value: "SubscriptionTier | str | None") -> "SubscriptionTier":
		if isinstance(value, SubscriptionTier):
			return value
		text = (value or "free").strip().lower()
		return cls(_TIER_ALIASES.get(text, text))


# Plan names used by the billing screens before the tiers were renamed.
_TIER_ALIASES = {"pro": "standard", "elite": "premium", "basic": "free"}


@dataclass(slots=True)
class ProfileBasics:
	"""Identity fields shared by every role, owned by the identity system."""

	id: str
	owner_id: str
	display_name: Optional[str] = None
	city: Optional[str] = None
	latitude: Optional[float] = None
	longitude: Optional[float] = None
	email: Optional[str] = None
	phone: Optional[str] = None
	show_name: bool = True
	show_email: bool = True
	show_phone: bool = True
	created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass(slots=True)
class ProviderAttributes:
	experience_years: int = 0
	language_level: Optional[LanguageLevel] = None
	specializations: tuple[str, ...] = ()
	certifications: tuple[str, ...] = ()
	bio: str = ""
	hourly_rate: Optional[float] = None
	availability: Optional[Availability] = None
	icu_experience: bool = False
	pediatric_experience: bool = False
	is_verified: bool = False
	# Denormalised; only ever written from compute_score on the server.
	care_score: int = 0


@dataclass(slots=True)
class OrganizationAttributes:
	name: str = ""
	company_type: Optional[str] = None
	employee_count: Optional[int] = None
	founded_year: Optional[int] = None
	description: str = ""
	is_verified: bool = False
	subscription_tier: SubscriptionTier = SubscriptionTier.FREE

	@property
	def is_elite(self) -> bool:
		return self.subscription_tier is SubscriptionTier.PREMIUM


@dataclass(slots=True)
class RelativeAttributes:
	care_need: str = ""
	care_level: Optional[int] = None
	preferred_city: Optional[str] = None


AttributePayload = Union[ProviderAttributes, OrganizationAttributes, RelativeAttributes]

_PAYLOAD_FOR_ROLE: dict[Role, Optional[type]] = {
	Role.PROVIDER: ProviderAttributes,
	Role.ORGANIZATION: OrganizationAttributes,
	Role.RELATIVE: RelativeAttributes,
	Role.OPERATOR: None,
}


@dataclass(slots=True)
class Profile:
	role: Role
	basics: ProfileBasics
	attributes: Optional[AttributePayload] = None

	def __post_init__(self) -> None:
		expected = _PAYLOAD_FOR_ROLE[self.role]
		if expected is None:
			if self.attributes is not None:
				raise ValueError(f"{self.role.value} profiles carry no attributes")
			return
		if self.attributes is None:
			self.attributes = expected()
		elif not isinstance(self.attributes, expected):
			raise ValueError(
				f"{self.role.value} profile cannot carry {type(self.attributes).__name__}"
			)

	@property
	def id(self) -> str:
		return self.basics.id

	@property
	def owner_id(self) -> str:
		return self.basics.owner_id

	@property
	def provider(self) -> ProviderAttributes:
		if not isinstance(self.attributes, ProviderAttributes):
			raise TypeError(f"profile {self.id} is not a provider")
		return self.attributes

	@property
	def organization(self) -> OrganizationAttributes:
		if not isinstance(self.attributes, OrganizationAttributes):
			raise TypeError(f"profile {self.id} is not an organization")
		return self.attributes

	def public_view(self) -> "Profile":
		"""Copy with fields the owner chose to hide blanked out."""
		basics = replace(
			self.basics,
			display_name=self.basics.display_name if self.basics.show_name else None,
			email=self.basics.email if self.basics.show_email else None,
			phone=self.basics.phone if self.basics.show_phone else None,
		)
		return Profile(role=self.role, basics=basics, attributes=self.attributes)
