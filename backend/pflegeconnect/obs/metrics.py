"""Central registry for Prometheus metrics used across the engine."""

from __future__ import annotations

from prometheus_client import Counter, Histogram

CONTACT_REQUESTS = Counter(
	"pflege_contact_requests_total",
	"Contact request creation attempts",
	["result"],
)

CONTACT_RESPONSES = Counter(
	"pflege_contact_responses_total",
	"Contact requests answered by their target",
	["decision"],
)

MESSAGES_SENT = Counter(
	"pflege_messages_sent_total",
	"Private message send attempts",
	["result"],
)

WATCHLIST_CHANGES = Counter(
	"pflege_watchlist_changes_total",
	"Watchlist bookmarks added or removed",
	["action"],
)

QUOTA_CHECKS = Counter(
	"pflege_quota_checks_total",
	"Tier quota checks for listings",
	["kind", "result"],
)

SEARCH_QUERIES = Counter(
	"pflege_search_queries_total",
	"Discovery queries executed",
	["kind"],
)

SEARCH_LATENCY = Histogram(
	"pflege_search_latency_seconds",
	"Discovery query latency in seconds",
	["kind"],
	buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0),
)

CARE_SCORE_COMPUTED = Counter(
	"pflege_care_score_computed_total",
	"CareScore recomputations on attribute writes",
)

CARE_SCORE_VALUE = Histogram(
	"pflege_care_score_value",
	"Distribution of computed CareScores",
	buckets=(10, 20, 30, 40, 50, 60, 70, 80, 90, 100),
)


def inc_contact_request(result: str) -> None:
	CONTACT_REQUESTS.labels(result=result).inc()


def inc_contact_response(decision: str) -> None:
	CONTACT_RESPONSES.labels(decision=decision).inc()


def inc_message_sent(result: str) -> None:
	MESSAGES_SENT.labels(result=result).inc()


def inc_watchlist(action: str) -> None:
	WATCHLIST_CHANGES.labels(action=action).inc()


def inc_quota_check(kind: str, allowed: bool) -> None:
	QUOTA_CHECKS.labels(kind=kind, result="allowed" if allowed else "denied").inc()


def inc_search_query(kind: str) -> None:
	SEARCH_QUERIES.labels(kind=kind).inc()


def observe_search_latency(kind: str, latency_seconds: float) -> None:
	SEARCH_LATENCY.labels(kind=kind).observe(latency_seconds)


def observe_care_score(total: int) -> None:
	CARE_SCORE_COMPUTED.inc()
	CARE_SCORE_VALUE.observe(total)
