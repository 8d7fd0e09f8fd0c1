"""Quota domain exports."""

from .limits import (  # noqa: F401
	TIER_LIMITS,
	TierLimits,
	can_create_listing,
	can_feature,
	limits_for,
	remaining_featured,
	remaining_listings,
)
from .models import Listing, ListingDraft, QuotaSummary  # noqa: F401
