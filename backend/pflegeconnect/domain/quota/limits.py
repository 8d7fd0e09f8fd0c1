"""Per-tier listing quotas.

Pure checks over caller-supplied counts. Counting rows and making the
check-then-insert atomic is the store's job (see ``store.quota_scope``).
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping

from pflegeconnect.domain.profiles.models import SubscriptionTier


@dataclass(frozen=True, slots=True)
class TierLimits:
	max_active_listings: int
	max_featured_listings: int


TIER_LIMITS: Mapping[SubscriptionTier, TierLimits] = MappingProxyType(
	{
		SubscriptionTier.FREE: TierLimits(max_active_listings=2, max_featured_listings=0),
		SubscriptionTier.STANDARD: TierLimits(max_active_listings=10, max_featured_listings=3),
		SubscriptionTier.PREMIUM: TierLimits(max_active_listings=999, max_featured_listings=10),
	}
)


def limits_for(tier: SubscriptionTier | str) -> TierLimits:
	return TIER_LIMITS[SubscriptionTier.parse(tier)]


def can_create_listing(tier: SubscriptionTier | str, current_active_count: int) -> bool:
	return current_active_count < limits_for(tier).max_active_listings


def can_feature(tier: SubscriptionTier | str, current_featured_count: int) -> bool:
	return current_featured_count < limits_for(tier).max_featured_listings


def remaining_listings(tier: SubscriptionTier | str, current_active_count: int) -> int:
	return max(0, limits_for(tier).max_active_listings - current_active_count)


def remaining_featured(tier: SubscriptionTier | str, current_featured_count: int) -> int:
	return max(0, limits_for(tier).max_featured_listings - current_featured_count)
