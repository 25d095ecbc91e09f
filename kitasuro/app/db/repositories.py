"""Repository protocol interfaces for data access."""

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol
from uuid import UUID

from kitasuro.app.db.context import RequestContext
from kitasuro.app.models.comments import Anchor, Comment, Reply
from kitasuro.app.models.common import CommentStatus
from kitasuro.app.models.organization import Member, Organization
from kitasuro.app.models.proposal import Proposal, ProposalSummary
from kitasuro.app.models.tour import Tour


class CommentRepository(Protocol):
    """Repository for comment threads on proposals."""

    async def list_comments(
        self, proposal_id: str, status: CommentStatus | None = None
    ) -> list[Comment]:
        """List comments with replies, oldest first.

        Args:
            proposal_id: Proposal ID
            status: Optional status filter

        Returns:
            Comments ordered by created_at ascending, replies likewise
        """
        ...

    async def get_comment(self, comment_id: UUID) -> Comment | None:
        """Get a comment with its replies.

        Args:
            comment_id: Comment ID

        Returns:
            Comment or None if not found
        """
        ...

    async def create_comment(
        self, proposal_id: str, author_name: str, content: str, anchor: Anchor
    ) -> Comment:
        """Persist a new open comment.

        Returns:
            The stored comment including generated ID and timestamp
        """
        ...

    async def add_reply(self, comment_id: UUID, author_name: str, content: str) -> Reply:
        """Append a reply to a comment thread.

        Returns:
            The stored reply
        """
        ...

    async def mark_resolved(self, comment_id: UUID, resolved_at: datetime) -> Comment | None:
        """Set status=resolved, keeping an existing resolved_at.

        Args:
            comment_id: Comment ID
            resolved_at: Timestamp used only if the comment is still open

        Returns:
            The updated comment or None if not found
        """
        ...


class ProposalRepository(Protocol):
    """Repository for proposal aggregates."""

    async def get_proposal(self, proposal_id: str, ctx: RequestContext) -> Proposal | None:
        """Get proposal by ID.

        Args:
            proposal_id: Proposal ID
            ctx: Request context (enforces tenancy)

        Returns:
            Proposal or None if not found in the caller's organization
        """
        ...

    async def get_public_proposal(self, proposal_id: str) -> Proposal | None:
        """Get proposal by ID for the unauthenticated client view.

        The proposal ID is the access token for clients; no tenancy filter.
        """
        ...

    async def save_proposal(
        self, proposal: Proposal, *, expected_version: int | None = None
    ) -> None:
        """Insert or replace a proposal aggregate including its days.

        Args:
            proposal: Proposal to store (version already incremented)
            expected_version: Stored version the write is based on;
                None for inserts

        Raises:
            VersionConflictError: If the stored version differs
        """
        ...

    async def count_proposals(self, org_id: UUID) -> int:
        """Count proposals owned by an organization."""
        ...

    async def list_proposals(
        self, ctx: RequestContext, *, assigned_to: UUID | None = None
    ) -> list[ProposalSummary]:
        """List proposals of the caller's organization, newest update first.

        Args:
            ctx: Request context (enforces tenancy)
            assigned_to: Only proposals assigned to this user when given

        Returns:
            List of proposal summaries
        """
        ...

    async def assign(
        self, proposal_id: str, user_id: UUID, assigned_by: UUID | None
    ) -> bool:
        """Assign a user to a proposal.

        Returns:
            False if the assignment already existed
        """
        ...

    async def unassign(self, proposal_id: str, user_id: UUID) -> bool:
        """Remove an assignment.

        Returns:
            False if there was nothing to remove
        """
        ...


class TourRepository(Protocol):
    """Repository for tours and shared templates."""

    async def get_tour(self, tour_id: UUID) -> Tour | None:
        """Get tour or shared template by ID (callers check ownership)."""
        ...

    async def list_tours(self, ctx: RequestContext) -> list[Tour]:
        """List tours of the caller's organization, newest first."""
        ...

    async def list_shared_templates(self, limit: int = 50) -> list[Tour]:
        """List tours without an owning organization, newest first."""
        ...

    async def count_tours(self, org_id: UUID) -> int:
        """Count tours owned by an organization."""
        ...

    async def save_tour(self, tour: Tour) -> None:
        """Insert or replace a tour including its days."""
        ...


class OrganizationRepository(Protocol):
    """Repository for organizations and memberships."""

    async def get_organization(self, org_id: UUID) -> Organization | None:
        """Get organization by ID."""
        ...

    async def save_organization(self, organization: Organization) -> None:
        """Insert or replace an organization."""
        ...

    async def get_member(self, org_id: UUID, user_id: UUID) -> Member | None:
        """Get a member of an organization.

        Returns:
            Member or None if the user does not belong to the organization
        """
        ...


@dataclass
class RetryAfter:
    """Rate limit retry-after information."""

    seconds: int


class RateLimiter(Protocol):
    """Rate limiter interface."""

    def check_quota(self, key: str, now: datetime) -> RetryAfter | None:
        """Check if quota is available.

        Args:
            key: Rate limit key
            now: Current timestamp

        Returns:
            RetryAfter if over quota, None if allowed
        """
        ...
