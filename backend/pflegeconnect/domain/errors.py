"""Domain-level exceptions shared by every engine component.

Transport failures (Postgres, Redis, sockets) are never wrapped; they surface as
the library's own exception types, collected in ``TRANSPORT_ERRORS`` for callers
that want to tell them apart from business outcomes.
"""

from __future__ import annotations

import asyncpg
from redis.exceptions import RedisError


class EngineError(Exception):
	"""Base class for business errors raised by the engine."""

	reason: str = "unknown"
	default_message: str = "The operation could not be completed."

	def __init__(self, reason: str | None = None, message: str | None = None) -> None:
		super().__init__(reason or self.reason)
		if reason:
			self.reason = reason
		self._message = message

	@property
	def message(self) -> str:
		"""Actionable, end-user facing text."""
		return self._message or self.default_message


class ValidationError(EngineError):
	reason = "invalid"
	default_message = "Some of the submitted information is missing or malformed."


class Conflict(EngineError):
	reason = "conflict"
	default_message = "This action conflicts with the current state."


class PermissionDenied(EngineError):
	reason = "forbidden"
	default_message = "You are not allowed to perform this action."


class InvalidState(EngineError):
	reason = "invalid_state"
	default_message = "This item can no longer be changed."


class NotFound(EngineError):
	reason = "not_found"
	default_message = "The requested item does not exist."


# Reported as a conflict by the consent flow and as malformed input by form validation.
class SelfContactRequest(Conflict, ValidationError):
	reason = "self_request"
	default_message = "You cannot send a contact request to yourself."


class RequestAlreadyActive(Conflict):
	reason = "already_active"
	default_message = "A contact request between you is already pending or accepted."


class RequestClosed(Conflict):
	reason = "closed"
	default_message = "A previous contact request between you was declined."


class RequestNotPending(InvalidState):
	reason = "not_pending"
	default_message = "This contact request has already been answered."


class NotRequestTarget(PermissionDenied):
	reason = "not_target"
	default_message = "Only the recipient can answer this contact request."


class MessagingNotAllowed(PermissionDenied):
	reason = "no_consent"
	default_message = "Messaging unlocks once your contact request is accepted."


class QuotaExceeded(Conflict):
	reason = "quota_exceeded"
	default_message = "Your plan limit has been reached. Upgrade to add more."


TRANSPORT_ERRORS: tuple[type[BaseException], ...] = (
	asyncpg.PostgresError,
	asyncpg.InterfaceError,
	RedisError,
	OSError,
)


__all__ = [
	"Conflict",
	"EngineError",
	"InvalidState",
	"MessagingNotAllowed",
	"NotFound",
	"NotRequestTarget",
	"PermissionDenied",
	"QuotaExceeded",
	"RequestAlreadyActive",
	"RequestClosed",
	"RequestNotPending",
	"SelfContactRequest",
	"TRANSPORT_ERRORS",
	"ValidationError",
]
