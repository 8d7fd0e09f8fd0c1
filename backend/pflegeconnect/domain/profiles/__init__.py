"""Profile domain exports."""

from .models import (  # noqa: F401
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
