"""Audit helpers for contact requests."""

from __future__ import annotations

from typing import Dict

from pflegeconnect.infra.redis import redis_client
from pflegeconnect.obs import metrics as obs_metrics
from pflegeconnect.settings import settings


async def log_request_event(event: str, fields: Dict[str, str]) -> None:
	if not settings.audit_stream_enabled:
		return
	payload = {"event": event, **fields}
	await redis_client.xadd("x:contact_requests.events", payload)


def inc_request(result: str) -> None:
	obs_metrics.inc_contact_request(result)


def inc_response(decision: str) -> None:
	obs_metrics.inc_contact_response(decision)
