"""Profile persistence: Postgres for deployments, an in-memory twin for tests."""

from __future__ import annotations

import asyncio
import copy
from dataclasses import replace
from typing import Iterable, Optional, Protocol

from pflegeconnect.domain.profiles.models import (
	Availability,
	LanguageLevel,
	OrganizationAttributes,
	Profile,
	ProfileBasics,
	ProviderAttributes,
	RelativeAttributes,
	Role,
	SubscriptionTier,
)
from pflegeconnect.infra.postgres import get_pool
from pflegeconnect.settings import settings


class ProfileStore(Protocol):
	async def get(self, profile_id: str) -> Optional[Profile]: ...

	async def list_by_role(self, role: Role) -> list[Profile]: ...

	async def save_provider_attributes(self, profile_id: str, attrs: ProviderAttributes) -> Profile: ...

	async def set_subscription_tier(self, profile_id: str, tier: SubscriptionTier) -> Profile: ...


_PROFILE_SQL = """
SELECT p.id, p.user_id, p.role, p.full_name, p.city, p.latitude, p.longitude,
	p.email, p.phone, p.show_name, p.show_email, p.show_phone, p.created_at,
	pa.experience_years, pa.language_level, pa.specializations, pa.certifications,
	pa.bio, pa.hourly_rate, pa.availability, pa.icu_experience, pa.pediatric_experience,
	pa.is_verified AS provider_verified, pa.care_score,
	oa.company_name, oa.company_type, oa.employee_count, oa.founded_year,
	oa.description AS company_description, oa.is_verified AS company_verified,
	oa.subscription_tier,
	ra.care_need, ra.care_level, ra.preferred_city
FROM profiles p
LEFT JOIN provider_attributes pa ON pa.profile_id = p.id
LEFT JOIN organization_attributes oa ON oa.profile_id = p.id
LEFT JOIN relative_attributes ra ON ra.profile_id = p.id
"""


def _record_to_profile(record) -> Profile:
	role = Role(record["role"])
	basics = ProfileBasics(
		id=str(record["id"]),
		owner_id=str(record["user_id"]),
		display_name=record["full_name"],
		city=record["city"],
		latitude=record["latitude"],
		longitude=record["longitude"],
		email=record["email"],
		phone=record["phone"],
		show_name=record["show_name"] if record["show_name"] is not None else True,
		show_email=record["show_email"] if record["show_email"] is not None else True,
		show_phone=record["show_phone"] if record["show_phone"] is not None else True,
		created_at=record["created_at"],
	)
	attributes = None
	if role is Role.PROVIDER:
		attributes = ProviderAttributes(
			experience_years=record["experience_years"] or 0,
			language_level=LanguageLevel.parse(record["language_level"]),
			specializations=tuple(record["specializations"] or ()),
			certifications=tuple(record["certifications"] or ()),
			bio=record["bio"] or "",
			hourly_rate=float(record["hourly_rate"]) if record["hourly_rate"] is not None else None,
			availability=Availability(record["availability"]) if record["availability"] else None,
			icu_experience=bool(record["icu_experience"]),
			pediatric_experience=bool(record["pediatric_experience"]),
			is_verified=bool(record["provider_verified"]),
			care_score=record["care_score"] or 0,
		)
	elif role is Role.ORGANIZATION:
		attributes = OrganizationAttributes(
			name=record["company_name"] or "",
			company_type=record["company_type"],
			employee_count=record["employee_count"],
			founded_year=record["founded_year"],
			description=record["company_description"] or "",
			is_verified=bool(record["company_verified"]),
			subscription_tier=SubscriptionTier.parse(record["subscription_tier"]),
		)
	elif role is Role.RELATIVE:
		attributes = RelativeAttributes(
			care_need=record["care_need"] or "",
			care_level=record["care_level"],
			preferred_city=record["preferred_city"],
		)
	return Profile(role=role, basics=basics, attributes=attributes)


class PostgresProfileStore:
	async def get(self, profile_id: str) -> Optional[Profile]:
		pool = await get_pool()
		record = await pool.fetchrow(_PROFILE_SQL + " WHERE p.id = $1 AND p.deleted_at IS NULL", profile_id)
		return _record_to_profile(record) if record else None

	async def list_by_role(self, role: Role) -> list[Profile]:
		pool = await get_pool()
		rows = await pool.fetch(
			_PROFILE_SQL + " WHERE p.role = $1 AND p.deleted_at IS NULL ORDER BY p.created_at DESC",
			role.value,
		)
		return [_record_to_profile(row) for row in rows]

	async def save_provider_attributes(self, profile_id: str, attrs: ProviderAttributes) -> Profile:
		pool = await get_pool()
		async with pool.acquire() as conn:
			await conn.execute(
				"""
				INSERT INTO provider_attributes (
					profile_id, experience_years, language_level, specializations, certifications,
					bio, hourly_rate, availability, icu_experience, pediatric_experience, care_score, updated_at
				)
				VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11, NOW())
				ON CONFLICT (profile_id) DO UPDATE SET
					experience_years = EXCLUDED.experience_years,
					language_level = EXCLUDED.language_level,
					specializations = EXCLUDED.specializations,
					certifications = EXCLUDED.certifications,
					bio = EXCLUDED.bio,
					hourly_rate = EXCLUDED.hourly_rate,
					availability = EXCLUDED.availability,
					icu_experience = EXCLUDED.icu_experience,
					pediatric_experience = EXCLUDED.pediatric_experience,
					care_score = EXCLUDED.care_score,
					updated_at = NOW()
				""",
				profile_id,
				attrs.experience_years,
				attrs.language_level.value if attrs.language_level else None,
				list(attrs.specializations),
				list(attrs.certifications),
				attrs.bio,
				attrs.hourly_rate,
				attrs.availability.value if attrs.availability else None,
				attrs.icu_experience,
				attrs.pediatric_experience,
				attrs.care_score,
			)
			record = await conn.fetchrow(_PROFILE_SQL + " WHERE p.id = $1", profile_id)
		return _record_to_profile(record)

	async def set_subscription_tier(self, profile_id: str, tier: SubscriptionTier) -> Profile:
		pool = await get_pool()
		async with pool.acquire() as conn:
			await conn.execute(
				"UPDATE organization_attributes SET subscription_tier = $2, updated_at = NOW() WHERE profile_id = $1",
				profile_id,
				tier.value,
			)
			record = await conn.fetchrow(_PROFILE_SQL + " WHERE p.id = $1", profile_id)
		return _record_to_profile(record)


class MemoryProfileStore:
	def __init__(self) -> None:
		self._lock = asyncio.Lock()
		self.profiles: dict[str, Profile] = {}

	async def reset(self) -> None:
		async with self._lock:
			self.profiles.clear()

	async def seed(self, profiles: Iterable[Profile]) -> None:
		async with self._lock:
			for profile in profiles:
				self.profiles[profile.id] = copy.deepcopy(profile)

	async def get(self, profile_id: str) -> Optional[Profile]:
		async with self._lock:
			profile = self.profiles.get(profile_id)
			return copy.deepcopy(profile) if profile else None

	async def list_by_role(self, role: Role) -> list[Profile]:
		async with self._lock:
			matches = [p for p in self.profiles.values() if p.role is role]
		matches.sort(key=lambda p: p.basics.created_at, reverse=True)
		return [copy.deepcopy(p) for p in matches]

	async def save_provider_attributes(self, profile_id: str, attrs: ProviderAttributes) -> Profile:
		async with self._lock:
			profile = self.profiles[profile_id]
			self.profiles[profile_id] = Profile(role=profile.role, basics=profile.basics, attributes=copy.deepcopy(attrs))
			return copy.deepcopy(self.profiles[profile_id])

	async def set_subscription_tier(self, profile_id: str, tier: SubscriptionTier) -> Profile:
		async with self._lock:
			profile = self.profiles[profile_id]
			attrs = replace(profile.organization, subscription_tier=tier)
			self.profiles[profile_id] = Profile(role=profile.role, basics=profile.basics, attributes=attrs)
			return copy.deepcopy(self.profiles[profile_id])


_MEMORY = MemoryProfileStore()


def memory_store() -> MemoryProfileStore:
	return _MEMORY


def resolve_store() -> ProfileStore:
	if settings.store_backend == "memory":
		return _MEMORY
	return PostgresProfileStore()


async def seed_memory_store(profiles: Iterable[Profile]) -> None:
	await _MEMORY.seed(profiles)


async def reset_memory_state() -> None:
	await _MEMORY.reset()
