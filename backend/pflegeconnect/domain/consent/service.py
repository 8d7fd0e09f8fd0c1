"""Service layer for the contact-request consent flow.

The caller's identity is always passed in explicitly as ``actor_id``; nothing
here reads an ambient session.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, Optional
from uuid import uuid4

from pflegeconnect.domain.consent import audit, policy
from pflegeconnect.domain.consent.models import ContactRequest, ContactStatus, Decision
from pflegeconnect.domain.consent.store import ContactRequestStore, resolve_store
from pflegeconnect.domain.errors import Conflict, NotFound, RequestNotPending, ValidationError
from pflegeconnect.settings import settings

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
	return datetime.now(timezone.utc)


class ContactRequestService:
	def __init__(
		self,
		store: Optional[ContactRequestStore] = None,
		*,
		clock: Callable[[], datetime] = _utcnow,
	) -> None:
		self._store = store or resolve_store()
		self._clock = clock

	async def create_request(self, requester_id: str, target_id: str, message: Optional[str] = None) -> ContactRequest:
		requester_id, target_id = str(requester_id), str(target_id)
		try:
			policy.guard_not_self(requester_id, target_id)
			text = policy.normalise_message(message, max_length=settings.contact_message_max_length)
			now = self._clock()
			existing = await self._store.find_between(requester_id, target_id)
			policy.ensure_can_request(existing, now=now, cooldown_days=settings.contact_rerequest_cooldown_days)
			request = await self._store.insert_pending(
				ContactRequest(
					id=str(uuid4()),
					requester_id=requester_id,
					target_id=target_id,
					message=text,
					status=ContactStatus.PENDING,
					created_at=now,
				)
			)
		except Conflict as exc:
			audit.inc_request(exc.reason)
			logger.info(
				"contact request refused",
				extra={"requester_id": requester_id, "target_id": target_id, "reason": exc.reason},
			)
			raise

		audit.inc_request("created")
		await audit.log_request_event(
			"created",
			{"request_id": request.id, "from": requester_id, "to": target_id, "status": request.status.value},
		)
		logger.info("contact request created", extra={"request_id": request.id, "requester_id": requester_id})
		return request

	async def get_request(self, actor_id: str, request_id: str) -> ContactRequest:
		request = await self._store.get(request_id)
		# Strangers get the same answer as a missing id.
		if request is None or str(actor_id) not in (request.requester_id, request.target_id):
			raise NotFound("request_missing")
		return request

	async def respond(self, request_id: str, actor_id: str, decision: Decision | str) -> ContactRequest:
		try:
			decision = Decision(decision)
		except ValueError as exc:
			raise ValidationError("decision", "Choose either accept or reject.") from exc
		request = await self._store.get(request_id)
		if request is None:
			raise NotFound("request_missing")
		policy.ensure_can_respond(request, actor_id)
		to_status = policy.next_status(request, decision)

		updated = await self._store.transition(request_id, to_status=to_status, responded_at=self._clock())
		if updated is None:
			# Answered concurrently between the read and the write.
			raise RequestNotPending("answered")

		audit.inc_response(decision.value)
		await audit.log_request_event(
			updated.status.value,
			{"request_id": updated.id, "from": updated.requester_id, "to": updated.target_id, "status": updated.status.value},
		)
		logger.info("contact request answered", extra={"request_id": updated.id, "status": updated.status.value})
		return updated

	async def can_message(self, user_a: str, user_b: str) -> bool:
		if str(user_a) == str(user_b):
			return False
		return await self._store.has_accepted(str(user_a), str(user_b))

	async def status_between(self, user_a: str, user_b: str) -> Optional[ContactStatus]:
		return policy.latest_status(await self._store.find_between(str(user_a), str(user_b)))

	async def list_incoming(self, actor_id: str) -> list[ContactRequest]:
		return await self._store.list_incoming(str(actor_id))

	async def list_outgoing(self, actor_id: str) -> list[ContactRequest]:
		return await self._store.list_outgoing(str(actor_id))
