"""Consent (contact request) domain exports."""

from .models import ContactRequest, ContactStatus, Decision  # noqa: F401
from .service import ContactRequestService  # noqa: F401
