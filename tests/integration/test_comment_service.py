"""Integration tests for the comment store over in-memory repositories."""

import uuid
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

import pytest

from kitasuro.app.db.inmemory import (
    InMemoryCommentRepository,
    InMemoryOrganizationRepository,
    InMemoryProposalRepository,
)
from kitasuro.app.errors import CommentClosedError, FeatureNotAvailableError, NotFoundError
from kitasuro.app.models.comments import Anchor
from kitasuro.app.models.common import CommentStatus, PlanTier
from kitasuro.app.models.organization import Organization
from kitasuro.app.models.proposal import Proposal
from kitasuro.app.services.comments import CommentService
from kitasuro.app.services.notifications import CommentNotification

ORG_ID = uuid.UUID("00000000-0000-0000-0000-000000000001")
APP_URL = "https://app.example.com"


async def add_proposal(
    repo: InMemoryProposalRepository, proposal_id: str = "trip-1", org_id: uuid.UUID = ORG_ID
) -> Proposal:
    now = datetime.now(timezone.utc)
    proposal = Proposal(
        proposal_id=proposal_id,
        org_id=org_id,
        name="Family Safari",
        tour_title="Big Five Week",
        created_at=now,
        updated_at=now,
    )
    await repo.save_proposal(proposal)
    return proposal


@pytest.mark.asyncio
async def test_comment_thread_lifecycle(
    comment_service: CommentService, proposal_repo: InMemoryProposalRepository
) -> None:
    """Point comment, two replies, then resolve."""
    await add_proposal(proposal_repo)

    comment = await comment_service.create_comment(
        "trip-1", "Amina", "Could we stay longer here?", Anchor(pos_x=40, pos_y=60)
    )
    assert comment.comment_id is not None
    assert comment.status == CommentStatus.open
    assert not comment.anchor.is_region

    await comment_service.add_reply(comment.comment_id, "Agent", "Yes, one more night is possible.")
    await comment_service.add_reply(comment.comment_id, "Amina", "Great, please add it.")

    open_comments = await comment_service.list_comments("trip-1", CommentStatus.open)
    assert [c.comment_id for c in open_comments] == [comment.comment_id]
    assert [r.content for r in open_comments[0].replies] == [
        "Yes, one more night is possible.",
        "Great, please add it.",
    ]
    assert open_comments[0].anchor.pos_x == 40
    assert open_comments[0].anchor.pos_y == 60

    await comment_service.resolve_comment(comment.comment_id)

    assert await comment_service.list_comments("trip-1", CommentStatus.open) == []
    everything = await comment_service.list_comments("trip-1")
    assert len(everything) == 1
    assert everything[0].status == CommentStatus.resolved
    assert len(everything[0].replies) == 2


@pytest.mark.asyncio
async def test_resolve_is_idempotent(
    comment_service: CommentService, proposal_repo: InMemoryProposalRepository
) -> None:
    await add_proposal(proposal_repo)
    comment = await comment_service.create_comment(
        "trip-1", "Amina", "Typo in day 2", Anchor(pos_x=5, pos_y=5)
    )

    first = await comment_service.resolve_comment(comment.comment_id)
    second = await comment_service.resolve_comment(comment.comment_id)

    assert first.status == second.status == CommentStatus.resolved
    assert first.resolved_at == second.resolved_at


@pytest.mark.asyncio
async def test_reply_on_resolved_thread_rejected(
    comment_service: CommentService, proposal_repo: InMemoryProposalRepository
) -> None:
    await add_proposal(proposal_repo)
    comment = await comment_service.create_comment(
        "trip-1", "Amina", "Done?", Anchor(pos_x=5, pos_y=5)
    )
    await comment_service.resolve_comment(comment.comment_id)

    with pytest.raises(CommentClosedError):
        await comment_service.add_reply(comment.comment_id, "Amina", "One more thing")

    stored = await comment_service.list_comments("trip-1")
    assert stored[0].replies == []


@pytest.mark.asyncio
async def test_region_comment_keeps_dimensions(
    comment_service: CommentService, proposal_repo: InMemoryProposalRepository
) -> None:
    await add_proposal(proposal_repo)

    comment = await comment_service.create_comment(
        "trip-1", "Amina", "This whole block", Anchor(pos_x=10, pos_y=20, width=30, height=5)
    )

    assert comment.anchor.is_region
    assert comment.anchor.width == 30
    assert comment.anchor.height == 5


@pytest.mark.asyncio
async def test_blank_text_rejected(
    comment_service: CommentService, proposal_repo: InMemoryProposalRepository
) -> None:
    await add_proposal(proposal_repo)

    with pytest.raises(ValueError):
        await comment_service.create_comment("trip-1", "  ", "Hello", Anchor(pos_x=1, pos_y=1))


@pytest.mark.asyncio
async def test_unknown_proposal_and_comment(comment_service: CommentService) -> None:
    with pytest.raises(NotFoundError):
        await comment_service.create_comment("missing", "A", "B", Anchor(pos_x=1, pos_y=1))
    with pytest.raises(NotFoundError):
        await comment_service.list_comments("missing")
    with pytest.raises(NotFoundError):
        await comment_service.resolve_comment(uuid.uuid4())
    with pytest.raises(NotFoundError):
        await comment_service.add_reply(uuid.uuid4(), "A", "B")


@pytest.mark.asyncio
async def test_plan_without_comments_rejected(
    proposal_repo: InMemoryProposalRepository,
    make_org: Callable[..., Organization],
    notifier: Any,
) -> None:
    await add_proposal(proposal_repo)
    organizations = InMemoryOrganizationRepository([make_org(plan_tier=PlanTier.starter)])
    service = CommentService(
        InMemoryCommentRepository(), proposal_repo, organizations, notifier, app_url=APP_URL
    )

    with pytest.raises(FeatureNotAvailableError):
        await service.create_comment("trip-1", "Amina", "Hi", Anchor(pos_x=1, pos_y=1))


@pytest.mark.asyncio
async def test_notifications_sent_to_agency(
    comment_service: CommentService,
    proposal_repo: InMemoryProposalRepository,
    notifier: Any,
) -> None:
    await add_proposal(proposal_repo)
    comment = await comment_service.create_comment(
        "trip-1", "Amina", "Lovely lodge", Anchor(pos_x=1, pos_y=1)
    )
    await comment_service.add_reply(comment.comment_id, "Agent", "Thank you!")

    assert len(notifier.comments) == 2
    first, reply = notifier.comments
    assert first.recipient_email == "ops@agency.example"
    assert first.proposal_title == "Big Five Week"
    assert first.proposal_url == f"{APP_URL}/proposal/trip-1"
    assert not first.is_reply
    assert reply.is_reply
    assert reply.parent_author == "Amina"
    assert reply.parent_content == "Lovely lodge"


class BrokenNotifier:
    """Notifier whose transport is down."""

    async def comment_posted(self, notification: CommentNotification) -> None:
        raise ConnectionError("mail relay down")

    async def proposal_confirmed(self, notification: object) -> None:
        raise ConnectionError("mail relay down")

    async def proposal_shared(self, notification: object) -> None:
        raise ConnectionError("mail relay down")


@pytest.mark.asyncio
async def test_failing_notifier_does_not_fail_write(
    proposal_repo: InMemoryProposalRepository, org_repo: InMemoryOrganizationRepository
) -> None:
    await add_proposal(proposal_repo)
    comments = InMemoryCommentRepository()
    service = CommentService(comments, proposal_repo, org_repo, BrokenNotifier(), app_url=APP_URL)

    comment = await service.create_comment("trip-1", "Amina", "Hello", Anchor(pos_x=1, pos_y=1))

    assert await comments.get_comment(comment.comment_id) is not None


@pytest.mark.asyncio
async def test_no_notification_without_email(
    proposal_repo: InMemoryProposalRepository,
    make_org: Callable[..., Organization],
    notifier: Any,
) -> None:
    await add_proposal(proposal_repo)
    service = CommentService(
        InMemoryCommentRepository(),
        proposal_repo,
        InMemoryOrganizationRepository([make_org(notification_email=None)]),
        notifier,
        app_url=APP_URL,
    )

    await service.create_comment("trip-1", "Amina", "Hello", Anchor(pos_x=1, pos_y=1))

    assert notifier.comments == []
