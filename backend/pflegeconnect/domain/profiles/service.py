"""Provider attribute writes with server-side CareScore recomputation."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Optional

from pflegeconnect.domain.errors import NotFound, PermissionDenied, ValidationError
from pflegeconnect.domain.profiles.models import Profile, ProviderAttributes, Role
from pflegeconnect.domain.profiles.store import ProfileStore, resolve_store
from pflegeconnect.domain.scoring import compute_score
from pflegeconnect.obs import metrics as obs_metrics

logger = logging.getLogger(__name__)


def _validate(attrs: ProviderAttributes) -> None:
	if attrs.experience_years is not None and attrs.experience_years < 0:
		raise ValidationError("experience_years", "Years of experience cannot be negative.")
	if attrs.hourly_rate is not None and attrs.hourly_rate < 0:
		raise ValidationError("hourly_rate", "The hourly rate cannot be negative.")


class ProviderProfileService:
	def __init__(self, store: Optional[ProfileStore] = None) -> None:
		self._store = store or resolve_store()

	async def get_profile(self, profile_id: str) -> Profile:
		profile = await self._store.get(profile_id)
		if profile is None:
			raise NotFound("profile_missing")
		return profile

	async def update_attributes(self, actor_id: str, profile_id: str, attrs: ProviderAttributes) -> Profile:
		"""Persist provider attributes.

		Any care_score or is_verified on ``attrs`` is discarded: the score is
		recomputed and the verification flag kept from the stored profile.
		"""

		profile = await self.get_profile(profile_id)
		if profile.role is not Role.PROVIDER:
			raise NotFound("not_a_provider")
		if str(profile.owner_id) != str(actor_id):
			raise PermissionDenied("not_owner", "Only the profile owner can edit these details.")
		_validate(attrs)

		result = compute_score(attrs, profile.basics)
		# Verification is granted by operators, never by the profile owner.
		scored = replace(attrs, care_score=result.total, is_verified=profile.provider.is_verified)
		saved = await self._store.save_provider_attributes(profile_id, scored)
		obs_metrics.observe_care_score(result.total)
		logger.info(
			"provider attributes saved",
			extra={"profile_id": profile_id, "care_score": result.total},
		)
		return saved
