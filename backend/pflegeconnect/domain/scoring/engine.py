"""CareScore computation for provider profiles.

The score is a pure function of the profile snapshot: every category is capped
on its own, the capped points are summed, rounded half-up to an integer and
clamped to 0..100. No input can lower a category's points by being improved.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional

from pflegeconnect.domain.profiles.models import LanguageLevel, ProfileBasics, ProviderAttributes

MAX_SCORE = 100

NAME_POINTS = 10.0
CITY_POINTS = 10.0
EXPERIENCE_MAX = 15.0
EXPERIENCE_PER_YEAR = 3.0
LANGUAGE_MAX = 15.0
SPECIALIZATION_MAX = 15.0
SPECIALIZATION_EACH = 5.0
CERTIFICATION_MAX = 10.0
CERTIFICATION_EACH = 2.5
BIO_MAX = 10.0
AVAILABILITY_POINTS = 5.0
RATE_POINTS = 5.0
FLAG_POINTS = 2.5

LANGUAGE_POINTS: dict[LanguageLevel, float] = {
	LanguageLevel.A1: 3.0,
	LanguageLevel.A2: 6.0,
	LanguageLevel.B1: 9.0,
	LanguageLevel.B2: 12.0,
	LanguageLevel.C1: 14.0,
	LanguageLevel.C2: 15.0,
}

# (minimum stripped length, points), checked from the top down
BIO_STEPS: tuple[tuple[int, float], ...] = ((100, 10.0), (50, 7.0), (1, 3.0))


@dataclass(frozen=True, slots=True)
class ScoreItem:
	label: str
	points: float
	max_points: float
	satisfied: bool


@dataclass(frozen=True, slots=True)
class ScoreResult:
	total: int
	breakdown: tuple[ScoreItem, ...]

	@property
	def max_total(self) -> float:
		return sum(item.max_points for item in self.breakdown)


def _has_text(value: Optional[str]) -> bool:
	return bool(value and value.strip())


def _binary(label: str, satisfied: bool, points: float) -> ScoreItem:
	return ScoreItem(label=label, points=points if satisfied else 0.0, max_points=points, satisfied=satisfied)


def _bio_points(bio: Optional[str]) -> float:
	length = len((bio or "").strip())
	for minimum, points in BIO_STEPS:
		if length >= minimum:
			return points
	return 0.0


def _level(value) -> Optional[LanguageLevel]:
	try:
		return LanguageLevel.parse(value)
	except ValueError:
		return None


def _round_half_up(value: float) -> int:
	return int(math.floor(value + 0.5))


def compute_score(attrs: Optional[ProviderAttributes], basics: Optional[ProfileBasics]) -> ScoreResult:
	"""Return the CareScore total and its per-category breakdown."""

	attrs = attrs or ProviderAttributes()
	display_name = basics.display_name if basics else None
	city = basics.city if basics else None

	years = max(0, int(attrs.experience_years or 0))
	level = _level(attrs.language_level)
	specs = [s for s in attrs.specializations or () if _has_text(s)]
	certs = [c for c in attrs.certifications or () if _has_text(c)]
	rate_set = attrs.hourly_rate is not None and attrs.hourly_rate > 0

	items = (
		_binary("display_name", _has_text(display_name), NAME_POINTS),
		_binary("city", _has_text(city), CITY_POINTS),
		ScoreItem(
			label="experience_years",
			points=min(EXPERIENCE_MAX, years * EXPERIENCE_PER_YEAR),
			max_points=EXPERIENCE_MAX,
			satisfied=years > 0,
		),
		ScoreItem(
			label="language_level",
			points=LANGUAGE_POINTS.get(level, 0.0) if level else 0.0,
			max_points=LANGUAGE_MAX,
			satisfied=level is not None,
		),
		ScoreItem(
			label="specializations",
			points=min(SPECIALIZATION_MAX, len(specs) * SPECIALIZATION_EACH),
			max_points=SPECIALIZATION_MAX,
			satisfied=bool(specs),
		),
		ScoreItem(
			label="certifications",
			points=min(CERTIFICATION_MAX, len(certs) * CERTIFICATION_EACH),
			max_points=CERTIFICATION_MAX,
			satisfied=bool(certs),
		),
		ScoreItem(
			label="bio",
			points=_bio_points(attrs.bio),
			max_points=BIO_MAX,
			satisfied=_has_text(attrs.bio),
		),
		_binary("availability", attrs.availability is not None, AVAILABILITY_POINTS),
		_binary("hourly_rate", rate_set, RATE_POINTS),
		_binary("icu_experience", bool(attrs.icu_experience), FLAG_POINTS),
		_binary("pediatric_experience", bool(attrs.pediatric_experience), FLAG_POINTS),
	)

	raw = sum(item.points for item in items)
	total = max(0, min(MAX_SCORE, _round_half_up(raw)))
	return ScoreResult(total=total, breakdown=items)


def score_band(total: int) -> str:
	"""Label used next to the score on profile pages."""

	if total >= 80:
		return "excellent"
	if total >= 60:
		return "good"
	if total >= 40:
		return "fair"
	return "starter"


def missing_items(result: ScoreResult) -> list[ScoreItem]:
	"""Categories still below their maximum, largest gap first."""

	gaps = [item for item in result.breakdown if item.points < item.max_points]
	return sorted(gaps, key=lambda item: item.max_points - item.points, reverse=True)
