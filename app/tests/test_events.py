import pytest

from app.models.notification import Notification, NotificationPreference
from app.services import events
from app.services.events import Channel, EventDispatcher, OutboundEvent, email_event, in_app_event, realtime_event


@pytest.fixture
def dispatcher():
    return EventDispatcher(max_attempts=3, backoff=0)


@pytest.mark.asyncio
async def test_retries_then_succeeds(dispatcher):
    attempts = []

    async def flaky(event):
        attempts.append(event.name)
        if len(attempts) < 2:
            raise RuntimeError("temporarily down")

    dispatcher._handlers[Channel.REALTIME] = flaky

    assert await dispatcher.dispatch(OutboundEvent(channel=Channel.REALTIME, name="ping")) is True
    assert len(attempts) == 2


@pytest.mark.asyncio
async def test_drops_after_max_attempts_without_raising(dispatcher):
    attempts = []

    async def broken(event):
        attempts.append(1)
        raise RuntimeError("down")

    dispatcher._handlers[Channel.REALTIME] = broken

    assert await dispatcher.dispatch(OutboundEvent(channel=Channel.REALTIME, name="ping")) is False
    assert len(attempts) == 3


@pytest.mark.asyncio
async def test_unknown_channel_is_dropped(dispatcher):
    assert await dispatcher.dispatch(OutboundEvent(channel="pigeon", name="coo")) is False


@pytest.mark.asyncio
async def test_email_retries_only_failed_recipients(dispatcher, monkeypatch):
    sent = []
    failed_once = set()

    async def fake_send(address, subject, html):
        if address == "b@example.com" and address not in failed_once:
            failed_once.add(address)
            return False
        sent.append(address)
        return True

    monkeypatch.setattr(events, "send_email", fake_send)

    event = email_event("media.reported", ["a@example.com", "b@example.com"], "Subject", "<p>Body</p>")
    assert await dispatcher.dispatch(event) is True
    assert sent == ["a@example.com", "b@example.com"]


@pytest.mark.asyncio
async def test_in_app_respects_preferences(dispatcher, db, user, other_user):
    db.add(NotificationPreference(user_id=other_user.id, bookmark_notifications=False))
    db.commit()

    event = in_app_event(
        "media.bookmarked",
        [user.id, other_user.id],
        title="New bookmark",
        message="Someone saved your sermon",
        notification_type="bookmark",
        related_id=5,
    )
    assert await dispatcher.dispatch(event) is True

    stored = db.query(Notification).all()
    assert [n.user_id for n in stored] == [user.id]
    assert stored[0].type == "bookmark"
    assert stored[0].related_id == 5


@pytest.mark.asyncio
async def test_in_app_disabled_channel(dispatcher, db, user):
    db.add(NotificationPreference(user_id=user.id, in_app_enabled=False))
    db.commit()

    await dispatcher.dispatch(in_app_event("x", [user.id], title="t", message="m"))

    assert db.query(Notification).count() == 0


@pytest.mark.asyncio
async def test_realtime_publishes_to_room_channel(dispatcher, monkeypatch):
    published = []

    async def fake_publish(channel, message):
        published.append((channel, message))
        return 1

    monkeypatch.setattr(events.redis_client, "publish", fake_publish)

    event = realtime_event("content-bookmark-update", "content:media:7", {"mediaId": 7, "bookmarkCount": 2})
    assert await dispatcher.dispatch(event) is True
    assert published == [
        ("room:content:media:7", {"event": "content-bookmark-update", "data": {"mediaId": 7, "bookmarkCount": 2}}),
    ]
