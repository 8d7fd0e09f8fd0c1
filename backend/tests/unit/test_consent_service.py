import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from pflegeconnect.domain.consent import ContactRequestService, ContactStatus, Decision
from pflegeconnect.domain.errors import (
	Conflict,
	InvalidState,
	NotFound,
	PermissionDenied,
	RequestAlreadyActive,
	RequestClosed,
	ValidationError,
)
from pflegeconnect.settings import settings


class FakeClock:
	def __init__(self) -> None:
		self.now = datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)

	def __call__(self) -> datetime:
		return self.now

	def advance(self, **kwargs) -> None:
		self.now += timedelta(**kwargs)


@pytest.fixture
def clock() -> FakeClock:
	return FakeClock()


@pytest.fixture
def service(contact_store, clock) -> ContactRequestService:
	return ContactRequestService(store=contact_store, clock=clock)


@pytest.mark.asyncio
async def test_create_request_is_pending_and_audited(service, fake_redis):
	request = await service.create_request("alice", "bob", "  Hallo Bob!  ")

	assert request.status is ContactStatus.PENDING
	assert request.message == "Hallo Bob!"
	assert request.responded_at is None
	entries = await fake_redis.xrange("x:contact_requests.events")
	assert len(entries) == 1
	assert entries[0][1]["event"] == "created"
	assert entries[0][1]["request_id"] == request.id


@pytest.mark.asyncio
async def test_self_request_is_refused(service):
	with pytest.raises(Conflict):
		await service.create_request("alice", "alice")
	with pytest.raises(ValidationError):
		await service.create_request("alice", "alice")


@pytest.mark.asyncio
@pytest.mark.parametrize("second", [("alice", "bob"), ("bob", "alice")])
async def test_duplicate_pending_request_conflicts_in_either_direction(service, second):
	await service.create_request("alice", "bob")
	with pytest.raises(RequestAlreadyActive):
		await service.create_request(*second)


@pytest.mark.asyncio
async def test_accepted_pair_cannot_request_again(service):
	request = await service.create_request("alice", "bob")
	await service.respond(request.id, "bob", Decision.ACCEPT)

	with pytest.raises(Conflict):
		await service.create_request("bob", "alice")


@pytest.mark.asyncio
async def test_only_target_can_respond(service):
	request = await service.create_request("alice", "bob")

	with pytest.raises(PermissionDenied):
		await service.respond(request.id, "alice", "accept")
	with pytest.raises(PermissionDenied):
		await service.respond(request.id, "mallory", "accept")


@pytest.mark.asyncio
async def test_terminal_request_cannot_be_answered_again(service, clock):
	request = await service.create_request("alice", "bob")
	clock.advance(hours=1)
	accepted = await service.respond(request.id, "bob", "accept")

	assert accepted.status is ContactStatus.ACCEPTED
	assert accepted.responded_at == clock.now
	with pytest.raises(InvalidState):
		await service.respond(request.id, "bob", "reject")


@pytest.mark.asyncio
async def test_respond_validates_decision_and_id(service):
	request = await service.create_request("alice", "bob")
	with pytest.raises(ValidationError):
		await service.respond(request.id, "bob", "maybe")
	with pytest.raises(NotFound):
		await service.respond("missing", "bob", "accept")


@pytest.mark.asyncio
async def test_concurrent_answers_only_one_wins(service):
	request = await service.create_request("alice", "bob")

	results = await asyncio.gather(
		service.respond(request.id, "bob", "accept"),
		service.respond(request.id, "bob", "reject"),
		return_exceptions=True,
	)

	successes = [r for r in results if not isinstance(r, Exception)]
	failures = [r for r in results if isinstance(r, Exception)]
	assert len(successes) == 1
	assert len(failures) == 1
	assert isinstance(failures[0], InvalidState)


@pytest.mark.asyncio
async def test_concurrent_requests_from_both_sides_only_one_lands(service, contact_store):
	results = await asyncio.gather(
		service.create_request("alice", "bob"),
		service.create_request("bob", "alice"),
		return_exceptions=True,
	)

	assert sum(1 for r in results if isinstance(r, RequestAlreadyActive)) == 1
	assert len(contact_store.requests) == 1


@pytest.mark.asyncio
async def test_can_message_follows_acceptance(service):
	assert not await service.can_message("alice", "bob")
	request = await service.create_request("alice", "bob")
	assert not await service.can_message("alice", "bob")

	await service.respond(request.id, "bob", Decision.ACCEPT)

	assert await service.can_message("alice", "bob")
	assert await service.can_message("bob", "alice")
	assert not await service.can_message("alice", "alice")


@pytest.mark.asyncio
async def test_rejection_keeps_the_pair_closed_by_default(service):
	request = await service.create_request("alice", "bob")
	await service.respond(request.id, "bob", Decision.REJECT)

	assert not await service.can_message("alice", "bob")
	with pytest.raises(RequestClosed) as excinfo:
		await service.create_request("alice", "bob")
	assert isinstance(excinfo.value, Conflict)
	assert excinfo.value.message


@pytest.mark.asyncio
async def test_rejection_cooldown_allows_a_later_request(service, clock, monkeypatch):
	monkeypatch.setattr(settings, "contact_rerequest_cooldown_days", 7)
	request = await service.create_request("alice", "bob")
	await service.respond(request.id, "bob", "reject")

	clock.advance(days=3)
	with pytest.raises(RequestClosed) as excinfo:
		await service.create_request("alice", "bob")
	assert excinfo.value.reason == "cooldown"

	clock.advance(days=5)
	again = await service.create_request("alice", "bob")
	assert again.status is ContactStatus.PENDING
	assert await service.status_between("bob", "alice") is ContactStatus.PENDING


@pytest.mark.asyncio
async def test_overlong_message_is_rejected(service, monkeypatch):
	monkeypatch.setattr(settings, "contact_message_max_length", 10)
	with pytest.raises(ValidationError):
		await service.create_request("alice", "bob", "x" * 11)


@pytest.mark.asyncio
async def test_get_request_hides_from_strangers(service):
	request = await service.create_request("alice", "bob")
	assert (await service.get_request("bob", request.id)).id == request.id
	with pytest.raises(NotFound):
		await service.get_request("mallory", request.id)


@pytest.mark.asyncio
async def test_inbox_and_outbox_listing(service, clock):
	first = await service.create_request("alice", "bob")
	clock.advance(minutes=5)
	second = await service.create_request("carol", "bob")

	incoming = await service.list_incoming("bob")
	assert [r.id for r in incoming] == [second.id, first.id]
	assert [r.id for r in await service.list_outgoing("alice")] == [first.id]
	assert await service.status_between("alice", "carol") is None
