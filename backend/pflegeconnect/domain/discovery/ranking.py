"""Ordering shared by the provider directory, organization directory and job board."""

from __future__ import annotations

from typing import Iterable

from pflegeconnect.domain.discovery.models import SearchCandidate


def rank_key(candidate: SearchCandidate) -> tuple[bool, int, float]:
	return (candidate.elite, candidate.care_score, candidate.created_at.timestamp())


def rank(candidates: Iterable[SearchCandidate]) -> list[SearchCandidate]:
	"""Elite/featured first, then care score, then newest.

	``sorted`` is stable, so candidates with equal keys keep their input order.
	"""

	return sorted(candidates, key=rank_key, reverse=True)
