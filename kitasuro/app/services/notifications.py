"""Outbound notifications - fire-and-forget, never fatal to the caller."""

import logging
from collections.abc import Awaitable
from dataclasses import dataclass
from datetime import datetime
from typing import Protocol

logger = logging.getLogger(__name__)


def proposal_url(app_url: str, proposal_id: str) -> str:
    """Client-facing link to a proposal."""
    return f"{app_url.rstrip('/')}/proposal/{proposal_id}"


@dataclass(frozen=True)
class CommentNotification:
    """A client commented on, or replied in, a proposal thread."""

    proposal_id: str
    proposal_title: str
    recipient_email: str
    author_name: str
    content: str
    proposal_url: str
    is_reply: bool = False
    parent_author: str | None = None
    parent_content: str | None = None


@dataclass(frozen=True)
class ConfirmationNotification:
    """A client accepted a proposal."""

    proposal_id: str
    proposal_title: str
    agency_name: str
    recipient_email: str
    client_name: str
    confirmed_at: datetime
    proposal_url: str
    total_price: float
    duration_days: int


@dataclass(frozen=True)
class ShareNotification:
    """A proposal was shared and its client link is live."""

    proposal_id: str
    proposal_title: str
    agency_name: str
    proposal_url: str
    recipient_email: str | None = None


class Notifier(Protocol):
    """Delivery channel for domain notifications."""

    async def comment_posted(self, notification: CommentNotification) -> None:
        ...

    async def proposal_confirmed(self, notification: ConfirmationNotification) -> None:
        ...

    async def proposal_shared(self, notification: ShareNotification) -> None:
        ...


class LoggingNotifier:
    """Notifier that records events in the log instead of sending email."""

    async def comment_posted(self, notification: CommentNotification) -> None:
        kind = "reply" if notification.is_reply else "comment"
        logger.info(
            "[notify] comment_posted kind=%s proposal_id=%s to=%s author=%s",
            kind,
            notification.proposal_id,
            notification.recipient_email,
            notification.author_name,
        )

    async def proposal_confirmed(self, notification: ConfirmationNotification) -> None:
        logger.info(
            "[notify] proposal_confirmed proposal_id=%s to=%s client=%s total=%.2f",
            notification.proposal_id,
            notification.recipient_email,
            notification.client_name,
            notification.total_price,
        )

    async def proposal_shared(self, notification: ShareNotification) -> None:
        logger.info(
            "[notify] proposal_shared proposal_id=%s url=%s",
            notification.proposal_id,
            notification.proposal_url,
        )


async def notify_safely(send: Awaitable[None], *, event: str) -> bool:
    """Await a notifier call, logging instead of raising on failure.

    Returns:
        True if the notification was handed off
    """
    try:
        await send
        return True
    except Exception as e:
        logger.warning(
            "[notify] failed event=%s error=%s", event, type(e).__name__, exc_info=True
        )
        return False
