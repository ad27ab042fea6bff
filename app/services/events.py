"""
Outbound side effects: email, in-app notifications and realtime room
broadcasts.

Endpoints build OutboundEvent values and hand them to the dispatcher through
FastAPI BackgroundTasks, so delivery happens after the response is sent.
Each event is retried with linear backoff; a delivery that keeps failing is
logged and dropped, never surfaced to the request that produced it.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional

from starlette.concurrency import run_in_threadpool

from ..config import settings
from ..database import SessionLocal
from ..redis_client import redis_client
from ..utils.notifications import send_email

logger = logging.getLogger(__name__)


class Channel:
    EMAIL = "email"
    IN_APP = "in_app"
    REALTIME = "realtime"


@dataclass
class OutboundEvent:
    channel: str
    name: str
    payload: Dict[str, Any] = field(default_factory=dict)
    recipients: List[Any] = field(default_factory=list)  # emails, user ids or room names


class DeliveryError(Exception):
    pass


def email_event(name: str, recipients: List[str], subject: str, html_content: str) -> OutboundEvent:
    return OutboundEvent(
        channel=Channel.EMAIL,
        name=name,
        recipients=recipients,
        payload={"subject": subject, "html": html_content},
    )


def in_app_event(
    name: str,
    user_ids: List[int],
    title: str,
    message: str,
    notification_type: str = "system",
    priority: str = "medium",
    data: Optional[dict] = None,
    related_id: Optional[int] = None,
) -> OutboundEvent:
    return OutboundEvent(
        channel=Channel.IN_APP,
        name=name,
        recipients=user_ids,
        payload={
            "title": title,
            "message": message,
            "type": notification_type,
            "priority": priority,
            "data": data or {},
            "related_id": related_id,
        },
    )


def realtime_event(name: str, room: str, payload: dict) -> OutboundEvent:
    return OutboundEvent(channel=Channel.REALTIME, name=name, recipients=[room], payload=payload)


class EventDispatcher:
    def __init__(self, max_attempts: Optional[int] = None, backoff: Optional[float] = None):
        self.max_attempts = max_attempts or settings.EVENT_MAX_ATTEMPTS
        self.backoff = settings.EVENT_RETRY_BACKOFF if backoff is None else backoff
        self._handlers: Dict[str, Callable[[OutboundEvent], Awaitable[None]]] = {
            Channel.EMAIL: self._deliver_email,
            Channel.IN_APP: self._deliver_in_app,
            Channel.REALTIME: self._deliver_realtime,
        }

    async def dispatch(self, event: OutboundEvent) -> bool:
        """Deliver one event. Returns True once acknowledged by its channel."""
        handler = self._handlers.get(event.channel)
        if handler is None:
            logger.error(f"❌ No handler for channel '{event.channel}' ({event.name})")
            return False

        for attempt in range(1, self.max_attempts + 1):
            try:
                await handler(event)
                logger.info(f"📣 {event.channel}:{event.name} delivered (attempt {attempt})")
                return True
            except Exception as e:
                logger.warning(
                    f"⚠️ {event.channel}:{event.name} attempt {attempt}/{self.max_attempts} failed: {e}"
                )
                if attempt < self.max_attempts:
                    await asyncio.sleep(self.backoff * attempt)

        logger.error(f"❌ {event.channel}:{event.name} dropped after {self.max_attempts} attempts")
        return False

    # ==================== Channels ====================

    async def _deliver_email(self, event: OutboundEvent) -> None:
        failed = []
        for address in event.recipients:
            sent = await send_email(address, event.payload["subject"], event.payload["html"])
            if not sent:
                failed.append(address)
        if failed:
            # Only retry the addresses that failed
            event.recipients = failed
            raise DeliveryError(f"email not sent to {', '.join(failed)}")

    async def _deliver_in_app(self, event: OutboundEvent) -> None:
        await run_in_threadpool(_store_notifications, event)

    async def _deliver_realtime(self, event: OutboundEvent) -> None:
        for room in event.recipients:
            await redis_client.publish(f"room:{room}", {"event": event.name, "data": event.payload})


def _store_notifications(event: OutboundEvent) -> None:
    # Imported here to keep models out of the module import path of main
    from ..models.notification import Notification, NotificationPreference

    db = SessionLocal()
    try:
        prefs = {
            p.user_id: p
            for p in db.query(NotificationPreference)
            .filter(NotificationPreference.user_id.in_(event.recipients))
            .all()
        }
        for user_id in event.recipients:
            pref = prefs.get(user_id)
            if pref is not None and not pref.allows(event.payload["type"]):
                continue
            db.add(Notification(
                user_id=user_id,
                title=event.payload["title"],
                message=event.payload["message"],
                type=event.payload["type"],
                priority=event.payload.get("priority", "medium"),
                data=event.payload.get("data"),
                related_id=event.payload.get("related_id"),
            ))
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


event_dispatcher = EventDispatcher()


def get_event_dispatcher() -> EventDispatcher:
    """FastAPI dependency; tests swap in a recording dispatcher"""
    return event_dispatcher
