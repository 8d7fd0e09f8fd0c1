"""Messaging domain exports."""

from .models import Message  # noqa: F401
from .service import MessagingService  # noqa: F401
