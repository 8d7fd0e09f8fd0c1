"""Private messaging, gated on an accepted contact request.

Consent is re-read from the contact-request store on every send and every
thread read; a decision is never cached between calls.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

from pflegeconnect.domain.consent.service import ContactRequestService
from pflegeconnect.domain.errors import MessagingNotAllowed, ValidationError
from pflegeconnect.domain.messaging.models import Message
from pflegeconnect.domain.messaging.store import MessageStore, resolve_store
from pflegeconnect.obs import metrics as obs_metrics
from pflegeconnect.settings import settings

logger = logging.getLogger(__name__)

THREAD_LIMIT = 200


class MessagingService:
	def __init__(
		self,
		consent: Optional[ContactRequestService] = None,
		store: Optional[MessageStore] = None,
	) -> None:
		self._consent = consent or ContactRequestService()
		self._store = store or resolve_store()

	async def _require_consent(self, user_a: str, user_b: str) -> None:
		if not await self._consent.can_message(user_a, user_b):
			obs_metrics.inc_message_sent("denied")
			logger.info("message blocked without consent", extra={"sender_id": user_a, "receiver_id": user_b})
			raise MessagingNotAllowed()

	async def send_message(self, sender_id: str, receiver_id: str, content: Optional[str]) -> Message:
		sender_id, receiver_id = str(sender_id), str(receiver_id)
		if sender_id == receiver_id:
			raise ValidationError("self_message", "You cannot message yourself.")
		text = (content or "").strip()
		if not text:
			raise ValidationError("empty_message", "Write a message before sending.")
		if len(text) > settings.message_max_length:
			raise ValidationError("message_too_long", f"Messages are limited to {settings.message_max_length} characters.")

		await self._require_consent(sender_id, receiver_id)
		message = await self._store.insert(
			Message(
				id=str(uuid4()),
				sender_id=sender_id,
				receiver_id=receiver_id,
				content=text,
				created_at=datetime.now(timezone.utc),
			)
		)
		obs_metrics.inc_message_sent("sent")
		return message

	async def list_thread(self, actor_id: str, other_id: str, *, limit: int = THREAD_LIMIT) -> list[Message]:
		await self._require_consent(str(actor_id), str(other_id))
		return await self._store.list_thread(str(actor_id), str(other_id), limit=min(limit, THREAD_LIMIT))

	async def mark_read(self, actor_id: str, other_id: str) -> int:
		return await self._store.mark_read(str(actor_id), str(other_id))
