"""Audit helpers for listing quota decisions."""

from __future__ import annotations

from typing import Dict

from pflegeconnect.infra.redis import redis_client
from pflegeconnect.obs import metrics as obs_metrics
from pflegeconnect.settings import settings


async def log_listing_event(event: str, fields: Dict[str, str]) -> None:
	if not settings.audit_stream_enabled:
		return
	payload = {"event": event, **fields}
	await redis_client.xadd("x:listings.events", payload)


def inc_quota_check(kind: str, allowed: bool) -> None:
	obs_metrics.inc_quota_check(kind, allowed)
