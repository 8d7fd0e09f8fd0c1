import pytest

from pflegeconnect.domain.consent import ContactRequestService, Decision
from pflegeconnect.domain.errors import MessagingNotAllowed, PermissionDenied, ValidationError
from pflegeconnect.domain.messaging import MessagingService
from pflegeconnect.settings import settings


@pytest.fixture
def consent(contact_store) -> ContactRequestService:
	return ContactRequestService(store=contact_store)


@pytest.fixture
def messaging(consent, message_store) -> MessagingService:
	return MessagingService(consent=consent, store=message_store)


@pytest.mark.asyncio
async def test_send_requires_accepted_request(consent, messaging):
	with pytest.raises(MessagingNotAllowed):
		await messaging.send_message("alice", "bob", "Hallo")

	request = await consent.create_request("alice", "bob")
	with pytest.raises(PermissionDenied):
		await messaging.send_message("alice", "bob", "Hallo")

	await consent.respond(request.id, "bob", Decision.ACCEPT)
	# the very next send sees the acceptance
	message = await messaging.send_message("alice", "bob", "  Hallo Bob  ")
	assert message.content == "Hallo Bob"
	reply = await messaging.send_message("bob", "alice", "Hallo Alice")
	assert reply.receiver_id == "alice"


@pytest.mark.asyncio
async def test_rejected_request_blocks_messaging(consent, messaging, message_store):
	request = await consent.create_request("alice", "bob")
	await consent.respond(request.id, "bob", Decision.REJECT)

	with pytest.raises(PermissionDenied):
		await messaging.send_message("alice", "bob", "Bitte?")
	assert message_store.messages == []


@pytest.mark.asyncio
async def test_consent_is_checked_on_every_send(consent, messaging, monkeypatch):
	request = await consent.create_request("alice", "bob")
	await consent.respond(request.id, "bob", Decision.ACCEPT)

	calls = []
	original = consent.can_message

	async def counting(user_a, user_b):
		calls.append((user_a, user_b))
		return await original(user_a, user_b)

	monkeypatch.setattr(consent, "can_message", counting)
	await messaging.send_message("alice", "bob", "eins")
	await messaging.send_message("alice", "bob", "zwei")
	assert len(calls) == 2


@pytest.mark.asyncio
@pytest.mark.parametrize("content", ["", "   ", None])
async def test_empty_message_is_invalid(messaging, content):
	with pytest.raises(ValidationError):
		await messaging.send_message("alice", "bob", content)


@pytest.mark.asyncio
async def test_overlong_and_self_messages_are_invalid(messaging, monkeypatch):
	monkeypatch.setattr(settings, "message_max_length", 5)
	with pytest.raises(ValidationError):
		await messaging.send_message("alice", "bob", "zu lang")
	with pytest.raises(ValidationError):
		await messaging.send_message("alice", "alice", "hi")


@pytest.mark.asyncio
async def test_thread_and_read_markers(consent, messaging):
	request = await consent.create_request("alice", "bob")
	await consent.respond(request.id, "bob", Decision.ACCEPT)
	await messaging.send_message("alice", "bob", "eins")
	await messaging.send_message("alice", "bob", "zwei")
	await messaging.send_message("bob", "alice", "drei")

	thread = await messaging.list_thread("bob", "alice")
	assert [m.content for m in thread] == ["eins", "zwei", "drei"]

	assert await messaging.mark_read("bob", "alice") == 2
	assert await messaging.mark_read("bob", "alice") == 0
	thread = await messaging.list_thread("alice", "bob")
	assert [m.is_read for m in thread] == [True, True, False]


@pytest.mark.asyncio
async def test_thread_requires_consent(messaging):
	with pytest.raises(MessagingNotAllowed):
		await messaging.list_thread("alice", "bob")
