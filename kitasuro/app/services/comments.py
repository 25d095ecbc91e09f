"""Comment service - thread rules on top of the comment repository.

Comments are public: the proposal ID is the client's access token, so none
of these operations take a RequestContext. The owning organization's plan
must include comments.
"""

import logging
from datetime import datetime, timezone
from uuid import UUID

from kitasuro.app.db.repositories import (
    CommentRepository,
    OrganizationRepository,
    ProposalRepository,
)
from kitasuro.app.errors import CommentClosedError, FeatureNotAvailableError, NotFoundError
from kitasuro.app.models.comments import Anchor, Comment, Reply
from kitasuro.app.models.common import CommentStatus
from kitasuro.app.models.organization import Organization
from kitasuro.app.models.plans import allows_comments
from kitasuro.app.models.proposal import Proposal
from kitasuro.app.services.notifications import (
    CommentNotification,
    Notifier,
    notify_safely,
    proposal_url,
)
from kitasuro.app.utils.logging import event_logger
from kitasuro.app.utils.metrics import metrics

logger = logging.getLogger(__name__)


def _clean(value: str, field: str) -> str:
    cleaned = value.strip()
    if not cleaned:
        raise ValueError(f"{field} must not be blank")
    return cleaned


class CommentService:
    """Create, reply to and resolve anchored comments."""

    def __init__(
        self,
        comments: CommentRepository,
        proposals: ProposalRepository,
        organizations: OrganizationRepository,
        notifier: Notifier,
        *,
        app_url: str,
    ) -> None:
        self._comments = comments
        self._proposals = proposals
        self._organizations = organizations
        self._notifier = notifier
        self._app_url = app_url

    async def list_comments(
        self, proposal_id: str, status: CommentStatus | None = None
    ) -> list[Comment]:
        """All comments of a proposal with replies, oldest first.

        Raises:
            NotFoundError: If the proposal does not exist
        """
        await self._require_proposal(proposal_id)
        return await self._comments.list_comments(proposal_id, status)

    async def create_comment(
        self, proposal_id: str, author_name: str, content: str, anchor: Anchor
    ) -> Comment:
        """Create an open comment and return the stored entity.

        Raises:
            ValueError: If author name or content is blank
            NotFoundError: If the proposal does not exist
            FeatureNotAvailableError: If the organization plan excludes comments
        """
        author_name = _clean(author_name, "author_name")
        content = _clean(content, "content")

        proposal = await self._require_proposal(proposal_id)
        organization = await self._require_comments_enabled(proposal)

        comment = await self._comments.create_comment(proposal_id, author_name, content, anchor)

        metrics.inc_comment(anchor.is_region)
        event_logger.log_event(
            "comment_created",
            "success",
            proposal_id=proposal_id,
            comment_id=str(comment.comment_id),
            region=anchor.is_region,
            sticky=anchor.sticky is not None,
        )

        if organization.notification_email:
            await notify_safely(
                self._notifier.comment_posted(
                    CommentNotification(
                        proposal_id=proposal_id,
                        proposal_title=proposal.display_title,
                        recipient_email=organization.notification_email,
                        author_name=author_name,
                        content=content,
                        proposal_url=proposal_url(self._app_url, proposal_id),
                    )
                ),
                event="comment_posted",
            )

        return comment

    async def add_reply(self, comment_id: UUID, author_name: str, content: str) -> Reply:
        """Append a reply to an open thread.

        Raises:
            ValueError: If author name or content is blank
            NotFoundError: If the comment does not exist
            CommentClosedError: If the comment is resolved
        """
        author_name = _clean(author_name, "author_name")
        content = _clean(content, "content")

        parent = await self._comments.get_comment(comment_id)
        if parent is None:
            raise NotFoundError(f"Comment {comment_id} not found")

        if not parent.is_open:
            event_logger.log_event(
                "reply_created",
                "rejected",
                proposal_id=parent.proposal_id,
                error_reason="comment_resolved",
            )
            raise CommentClosedError("Comment is resolved; its thread is read-only")

        reply = await self._comments.add_reply(comment_id, author_name, content)

        metrics.inc_reply()
        event_logger.log_event(
            "reply_created",
            "success",
            proposal_id=parent.proposal_id,
            comment_id=str(comment_id),
        )

        proposal = await self._proposals.get_public_proposal(parent.proposal_id)
        organization = (
            await self._organizations.get_organization(proposal.org_id) if proposal else None
        )
        if proposal and organization and organization.notification_email:
            await notify_safely(
                self._notifier.comment_posted(
                    CommentNotification(
                        proposal_id=proposal.proposal_id,
                        proposal_title=proposal.display_title,
                        recipient_email=organization.notification_email,
                        author_name=author_name,
                        content=content,
                        proposal_url=proposal_url(self._app_url, proposal.proposal_id),
                        is_reply=True,
                        parent_author=parent.author_name,
                        parent_content=parent.content,
                    )
                ),
                event="reply_posted",
            )

        return reply

    async def resolve_comment(self, comment_id: UUID) -> Comment:
        """Mark a comment resolved. Resolving twice is a no-op.

        Raises:
            NotFoundError: If the comment does not exist
        """
        before = await self._comments.get_comment(comment_id)
        if before is None:
            raise NotFoundError(f"Comment {comment_id} not found")

        resolved = await self._comments.mark_resolved(comment_id, datetime.now(timezone.utc))
        if resolved is None:
            raise NotFoundError(f"Comment {comment_id} not found")

        if before.is_open:
            metrics.inc_resolved()
            event_logger.log_event(
                "comment_resolved",
                "success",
                proposal_id=resolved.proposal_id,
                comment_id=str(comment_id),
            )
        else:
            logger.debug("[resolve_comment] already_resolved comment_id=%s", comment_id)

        return resolved

    async def _require_proposal(self, proposal_id: str) -> Proposal:
        proposal = await self._proposals.get_public_proposal(proposal_id)
        if proposal is None:
            raise NotFoundError(f"Proposal {proposal_id} not found")
        return proposal

    async def _require_comments_enabled(self, proposal: Proposal) -> Organization:
        organization = await self._organizations.get_organization(proposal.org_id)
        if organization is None:
            raise NotFoundError(f"Organization {proposal.org_id} not found")

        if not allows_comments(organization.plan_tier):
            event_logger.log_event(
                "comment_created",
                "rejected",
                proposal_id=proposal.proposal_id,
                error_reason="plan_excludes_comments",
            )
            raise FeatureNotAvailableError(
                "Comments are not available on the current plan. Upgrade to Pro to enable them."
            )
        return organization
