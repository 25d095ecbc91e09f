"""In-memory implementations of repository interfaces."""

import uuid
from datetime import datetime, timedelta, timezone

from kitasuro.app.db.context import RequestContext
from kitasuro.app.db.repositories import RetryAfter
from kitasuro.app.errors import NotFoundError, VersionConflictError
from kitasuro.app.models.comments import Anchor, Comment, Reply
from kitasuro.app.models.common import CommentStatus
from kitasuro.app.models.organization import Member, Organization
from kitasuro.app.models.proposal import Proposal, ProposalSummary
from kitasuro.app.models.tour import Tour


class InMemoryCommentRepository:
    """In-memory implementation of CommentRepository."""

    def __init__(self) -> None:
        self._comments: dict[uuid.UUID, Comment] = {}

    async def list_comments(
        self, proposal_id: str, status: CommentStatus | None = None
    ) -> list[Comment]:
        """List comments with replies, oldest first."""
        results = [
            comment.model_copy(deep=True)
            for comment in self._comments.values()
            if comment.proposal_id == proposal_id
            and (status is None or comment.status == status)
        ]
        # Stable sort keeps insertion order for equal timestamps
        results.sort(key=lambda c: c.created_at)
        return results

    async def get_comment(self, comment_id: uuid.UUID) -> Comment | None:
        """Get a comment with its replies."""
        comment = self._comments.get(comment_id)
        return comment.model_copy(deep=True) if comment else None

    async def create_comment(
        self, proposal_id: str, author_name: str, content: str, anchor: Anchor
    ) -> Comment:
        """Persist a new open comment."""
        comment = Comment(
            comment_id=uuid.uuid4(),
            proposal_id=proposal_id,
            author_name=author_name,
            content=content,
            anchor=anchor,
            status=CommentStatus.open,
            created_at=datetime.now(timezone.utc),
        )
        self._comments[comment.comment_id] = comment
        return comment.model_copy(deep=True)

    async def add_reply(
        self, comment_id: uuid.UUID, author_name: str, content: str
    ) -> Reply:
        """Append a reply to a comment thread."""
        comment = self._comments.get(comment_id)
        if comment is None:
            raise NotFoundError(f"Comment {comment_id} not found")

        reply = Reply(
            reply_id=uuid.uuid4(),
            comment_id=comment_id,
            author_name=author_name,
            content=content,
            created_at=datetime.now(timezone.utc),
        )
        comment.replies.append(reply)
        return reply.model_copy()

    async def mark_resolved(
        self, comment_id: uuid.UUID, resolved_at: datetime
    ) -> Comment | None:
        """Set status=resolved, keeping an existing resolved_at."""
        comment = self._comments.get(comment_id)
        if comment is None:
            return None

        if comment.status != CommentStatus.resolved:
            comment = comment.model_copy(
                update={"status": CommentStatus.resolved, "resolved_at": resolved_at}
            )
            self._comments[comment_id] = comment

        return comment.model_copy(deep=True)


class InMemoryProposalRepository:
    """In-memory implementation of ProposalRepository."""

    def __init__(self) -> None:
        self._proposals: dict[str, Proposal] = {}
        self._assignments: dict[str, dict[uuid.UUID, uuid.UUID | None]] = {}

    async def get_proposal(
        self, proposal_id: str, ctx: RequestContext
    ) -> Proposal | None:
        """Get proposal by ID."""
        proposal = self._proposals.get(proposal_id)

        if proposal is None:
            return None

        # Enforce tenancy
        if proposal.org_id != ctx.org_id:
            return None

        return proposal.model_copy(deep=True)

    async def get_public_proposal(self, proposal_id: str) -> Proposal | None:
        """Get proposal by ID for the client view."""
        proposal = self._proposals.get(proposal_id)
        return proposal.model_copy(deep=True) if proposal else None

    async def save_proposal(
        self, proposal: Proposal, *, expected_version: int | None = None
    ) -> None:
        """Insert or replace a proposal aggregate including its days."""
        stored = self._proposals.get(proposal.proposal_id)

        if expected_version is not None:
            if stored is None:
                raise NotFoundError(f"Proposal {proposal.proposal_id} not found")
            if stored.version != expected_version:
                raise VersionConflictError(expected_version, stored.version)

        self._proposals[proposal.proposal_id] = proposal.model_copy(deep=True)

    async def count_proposals(self, org_id: uuid.UUID) -> int:
        """Count proposals owned by an organization."""
        return sum(1 for p in self._proposals.values() if p.org_id == org_id)

    async def list_proposals(
        self, ctx: RequestContext, *, assigned_to: uuid.UUID | None = None
    ) -> list[ProposalSummary]:
        """List proposals of the caller's organization, newest update first."""
        results: list[ProposalSummary] = []

        for proposal in self._proposals.values():
            # Enforce tenancy
            if proposal.org_id != ctx.org_id:
                continue

            assignees = list(self._assignments.get(proposal.proposal_id, {}))
            if assigned_to is not None and assigned_to not in assignees:
                continue

            results.append(
                ProposalSummary(
                    proposal_id=proposal.proposal_id,
                    name=proposal.name,
                    tour_title=proposal.tour_title,
                    status=proposal.status,
                    start_date=proposal.start_date,
                    client_id=proposal.client_id,
                    assignee_ids=assignees,
                    created_at=proposal.created_at,
                    updated_at=proposal.updated_at,
                )
            )

        results.sort(key=lambda x: x.updated_at, reverse=True)
        return results

    async def assign(
        self, proposal_id: str, user_id: uuid.UUID, assigned_by: uuid.UUID | None
    ) -> bool:
        """Assign a user to a proposal."""
        assignees = self._assignments.setdefault(proposal_id, {})
        if user_id in assignees:
            return False
        assignees[user_id] = assigned_by
        return True

    async def unassign(self, proposal_id: str, user_id: uuid.UUID) -> bool:
        """Remove an assignment."""
        assignees = self._assignments.get(proposal_id, {})
        if user_id not in assignees:
            return False
        del assignees[user_id]
        return True


class InMemoryTourRepository:
    """In-memory implementation of TourRepository."""

    def __init__(self) -> None:
        self._tours: dict[uuid.UUID, Tour] = {}

    async def get_tour(self, tour_id: uuid.UUID) -> Tour | None:
        """Get tour or shared template by ID."""
        tour = self._tours.get(tour_id)
        return tour.model_copy(deep=True) if tour else None

    async def list_tours(self, ctx: RequestContext) -> list[Tour]:
        """List tours of the caller's organization, newest first."""
        # Enforce tenancy
        results = [
            t.model_copy(deep=True) for t in self._tours.values() if t.org_id == ctx.org_id
        ]
        results.sort(key=lambda t: t.created_at, reverse=True)
        return results

    async def list_shared_templates(self, limit: int = 50) -> list[Tour]:
        """List tours without an owning organization, newest first."""
        results = [t.model_copy(deep=True) for t in self._tours.values() if t.org_id is None]
        results.sort(key=lambda t: t.created_at, reverse=True)
        return results[:limit]

    async def count_tours(self, org_id: uuid.UUID) -> int:
        """Count tours owned by an organization."""
        return sum(1 for t in self._tours.values() if t.org_id == org_id)

    async def save_tour(self, tour: Tour) -> None:
        """Insert or replace a tour including its days."""
        self._tours[tour.tour_id] = tour.model_copy(deep=True)


class InMemoryOrganizationRepository:
    """In-memory implementation of OrganizationRepository."""

    def __init__(self, organizations: list[Organization] | None = None) -> None:
        self._organizations: dict[uuid.UUID, Organization] = {
            organization.org_id: organization for organization in organizations or []
        }
        self._members: dict[tuple[uuid.UUID, uuid.UUID], Member] = {}

    async def get_organization(self, org_id: uuid.UUID) -> Organization | None:
        """Get organization by ID."""
        organization = self._organizations.get(org_id)
        return organization.model_copy() if organization else None

    async def save_organization(self, organization: Organization) -> None:
        """Insert or replace an organization."""
        self._organizations[organization.org_id] = organization.model_copy()

    async def get_member(self, org_id: uuid.UUID, user_id: uuid.UUID) -> Member | None:
        """Get a member of an organization."""
        return self._members.get((org_id, user_id))

    def add_member(self, member: Member) -> None:
        """Register a member (test and dev seeding helper)."""
        self._members[(member.org_id, member.user_id)] = member


class InMemoryRateLimiter:
    """In-memory implementation of RateLimiter using fixed window."""

    def __init__(self, max_requests: int, window_seconds: int = 60) -> None:
        """Initialize rate limiter.

        Args:
            max_requests: Maximum requests per window
            window_seconds: Window size in seconds (default 60)
        """
        self._max_requests = max_requests
        self._window_seconds = window_seconds
        self._windows: dict[str, tuple[datetime, int]] = {}
        self._next_sweep: datetime | None = None

    def window_count(self) -> int:
        """Number of keys with a tracked window."""
        return len(self._windows)

    def _evict_expired(self, now: datetime) -> None:
        # At most one sweep per window length
        if self._next_sweep is not None and now < self._next_sweep:
            return
        window = timedelta(seconds=self._window_seconds)
        self._windows = {
            key: (start, count)
            for key, (start, count) in self._windows.items()
            if now < start + window
        }
        self._next_sweep = now + window

    def check_quota(self, key: str, now: datetime) -> RetryAfter | None:
        """Check if quota is available, dropping windows that have expired."""
        self._evict_expired(now)

        if key not in self._windows:
            self._windows[key] = (now, 1)
            return None

        window_start, count = self._windows[key]
        window_end = window_start + timedelta(seconds=self._window_seconds)

        if now >= window_end:
            self._windows[key] = (now, 1)
            return None

        if count >= self._max_requests:
            seconds_remaining = int((window_end - now).total_seconds())
            return RetryAfter(seconds=max(1, seconds_remaining))

        self._windows[key] = (window_start, count + 1)
        return None
