"""Pure guard checks and transitions for the contact-request state machine."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Iterable, Optional

from pflegeconnect.domain.consent.models import ContactRequest, ContactStatus, Decision
from pflegeconnect.domain.errors import (
	NotRequestTarget,
	RequestAlreadyActive,
	RequestClosed,
	RequestNotPending,
	SelfContactRequest,
	ValidationError,
)


def guard_not_self(requester_id: str, target_id: str) -> None:
	if str(requester_id) == str(target_id):
		raise SelfContactRequest()


def normalise_message(message: Optional[str], *, max_length: int) -> str:
	text = (message or "").strip()
	if len(text) > max_length:
		raise ValidationError("message_too_long", f"Messages are limited to {max_length} characters.")
	return text


def ensure_can_request(
	existing: Iterable[ContactRequest],
	*,
	now: datetime,
	cooldown_days: Optional[int],
) -> None:
	"""Reject a new request when the pair already has one that blocks it.

	Pending or accepted requests always block. A rejected request blocks forever
	when ``cooldown_days`` is None, otherwise until the cooldown has elapsed since
	it was answered.
	"""

	for request in existing:
		if request.status.is_active:
			raise RequestAlreadyActive(
				request.status.value,
				"A contact request is already pending." if request.status is ContactStatus.PENDING
				else "You are already connected.",
			)
		if request.status is ContactStatus.REJECTED:
			if cooldown_days is None:
				raise RequestClosed()
			answered = request.responded_at or request.created_at
			if now < answered + timedelta(days=cooldown_days):
				raise RequestClosed("cooldown", "You can send a new request once the waiting period has passed.")


def ensure_can_respond(request: ContactRequest, actor_id: str) -> None:
	if str(actor_id) != request.target_id:
		raise NotRequestTarget()
	if request.status is not ContactStatus.PENDING:
		raise RequestNotPending(request.status.value)


def next_status(request: ContactRequest, decision: Decision) -> ContactStatus:
	"""The only transitions are PENDING -> ACCEPTED and PENDING -> REJECTED."""

	if request.status is not ContactStatus.PENDING:
		raise RequestNotPending(request.status.value)
	return decision.outcome


def latest_status(requests: Iterable[ContactRequest]) -> Optional[ContactStatus]:
	"""Status shown for a pair: an active request wins over older rejected ones."""

	ordered = sorted(requests, key=lambda r: r.created_at, reverse=True)
	for request in ordered:
		if request.status.is_active:
			return request.status
	return ordered[0].status if ordered else None
