"""Listing lifecycle guarded by subscription-tier quotas.

Every quota check runs inside ``ListingStore.quota_scope`` so the count that was
checked is the count the write lands on; two concurrent creations for the same
organization cannot both pass the limit.
"""

from __future__ import annotations

import logging
from typing import Optional
from uuid import uuid4

from pflegeconnect.domain.errors import NotFound, PermissionDenied, QuotaExceeded, ValidationError
from pflegeconnect.domain.profiles.models import Profile, Role, SubscriptionTier
from pflegeconnect.domain.profiles.store import ProfileStore
from pflegeconnect.domain.profiles.store import resolve_store as resolve_profile_store
from pflegeconnect.domain.quota import audit, limits
from pflegeconnect.domain.quota.models import Listing, ListingDraft, QuotaSummary
from pflegeconnect.domain.quota.store import ListingStore, QuotaScope
from pflegeconnect.domain.quota.store import resolve_store as resolve_listing_store

logger = logging.getLogger(__name__)

TITLE_MAX_LENGTH = 200


def _summary(scope: QuotaScope) -> QuotaSummary:
	return QuotaSummary(
		tier=scope.tier,
		active_count=scope.active_count,
		featured_count=scope.featured_count,
		remaining_listings=limits.remaining_listings(scope.tier, scope.active_count),
		remaining_featured=limits.remaining_featured(scope.tier, scope.featured_count),
	)


def _check_active(scope: QuotaScope, organization_id: str) -> None:
	allowed = limits.can_create_listing(scope.tier, scope.active_count)
	audit.inc_quota_check("active", allowed)
	if not allowed:
		logger.info(
			"listing quota reached",
			extra={"organization_id": organization_id, "tier": scope.tier.value, "active_count": scope.active_count},
		)
		raise QuotaExceeded("active_limit", "You have reached the number of active job postings your plan allows.")


def _check_featured(scope: QuotaScope, organization_id: str) -> None:
	allowed = limits.can_feature(scope.tier, scope.featured_count)
	audit.inc_quota_check("featured", allowed)
	if not allowed:
		logger.info(
			"featured quota reached",
			extra={"organization_id": organization_id, "tier": scope.tier.value, "featured_count": scope.featured_count},
		)
		raise QuotaExceeded("featured_limit", "You have reached the number of featured postings your plan allows.")


class ListingService:
	def __init__(
		self,
		listings: Optional[ListingStore] = None,
		profiles: Optional[ProfileStore] = None,
	) -> None:
		self._listings = listings or resolve_listing_store()
		self._profiles = profiles or resolve_profile_store()

	async def _owned_organization(self, actor_id: str, organization_id: str) -> Profile:
		organization = await self._profiles.get(organization_id)
		if organization is None or organization.role is not Role.ORGANIZATION:
			raise NotFound("organization_missing")
		if str(organization.owner_id) != str(actor_id):
			raise PermissionDenied("not_owner", "Only the organization's account can manage its postings.")
		return organization

	async def _owned_listing(self, actor_id: str, listing_id: str) -> Listing:
		listing = await self._listings.get(listing_id)
		if listing is None:
			raise NotFound("listing_missing")
		await self._owned_organization(actor_id, listing.organization_id)
		return listing

	async def create_listing(self, actor_id: str, organization_id: str, draft: ListingDraft) -> Listing:
		await self._owned_organization(actor_id, organization_id)
		title = (draft.title or "").strip()
		if not title:
			raise ValidationError("title_required", "A job posting needs a title.")
		if len(title) > TITLE_MAX_LENGTH:
			raise ValidationError("title_too_long", f"Titles are limited to {TITLE_MAX_LENGTH} characters.")

		async with self._listings.quota_scope(organization_id) as scope:
			if draft.is_active:
				_check_active(scope, organization_id)
			if draft.is_featured:
				_check_featured(scope, organization_id)
			listing = await scope.insert(
				Listing(
					id=str(uuid4()),
					organization_id=organization_id,
					title=title,
					description=(draft.description or "").strip(),
					city=draft.city,
					employment_type=draft.employment_type,
					is_active=draft.is_active,
					is_featured=draft.is_featured,
				)
			)
		await audit.log_listing_event(
			"created",
			{"listing_id": listing.id, "organization_id": organization_id, "featured": str(listing.is_featured)},
		)
		return listing

	async def set_featured(self, actor_id: str, listing_id: str, featured: bool) -> Listing:
		listing = await self._owned_listing(actor_id, listing_id)
		async with self._listings.quota_scope(listing.organization_id) as scope:
			current = await scope.get_listing(listing_id)
			if current is None:
				raise NotFound("listing_missing")
			if current.is_featured == featured:
				return current
			if featured:
				_check_featured(scope, listing.organization_id)
			updated = await scope.update_flags(listing_id, is_active=current.is_active, is_featured=featured)
		await audit.log_listing_event(
			"featured" if featured else "unfeatured",
			{"listing_id": listing_id, "organization_id": listing.organization_id},
		)
		return updated

	async def set_active(self, actor_id: str, listing_id: str, active: bool) -> Listing:
		listing = await self._owned_listing(actor_id, listing_id)
		async with self._listings.quota_scope(listing.organization_id) as scope:
			current = await scope.get_listing(listing_id)
			if current is None:
				raise NotFound("listing_missing")
			if current.is_active == active:
				return current
			if active:
				_check_active(scope, listing.organization_id)
			updated = await scope.update_flags(listing_id, is_active=active, is_featured=current.is_featured)
		await audit.log_listing_event(
			"activated" if active else "deactivated",
			{"listing_id": listing_id, "organization_id": listing.organization_id},
		)
		return updated

	async def quota_summary(self, actor_id: str, organization_id: str) -> QuotaSummary:
		await self._owned_organization(actor_id, organization_id)
		async with self._listings.quota_scope(organization_id) as scope:
			return _summary(scope)

	async def list_for_organization(self, actor_id: str, organization_id: str) -> list[Listing]:
		await self._owned_organization(actor_id, organization_id)
		return await self._listings.list_for_organization(organization_id)

	async def change_tier(self, organization_id: str, tier: SubscriptionTier | str) -> Profile:
		"""Apply a tier change confirmed by billing; existing listings are kept as they are."""

		organization = await self._profiles.get(organization_id)
		if organization is None or organization.role is not Role.ORGANIZATION:
			raise NotFound("organization_missing")
		updated = await self._profiles.set_subscription_tier(organization_id, SubscriptionTier.parse(tier))
		logger.info(
			"subscription tier changed",
			extra={"organization_id": organization_id, "tier": updated.organization.subscription_tier.value},
		)
		return updated
