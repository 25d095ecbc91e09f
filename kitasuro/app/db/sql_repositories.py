"""SQL implementations of repository interfaces."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from kitasuro.app.db.context import RequestContext
from kitasuro.app.db.models import Comment as CommentDB
from kitasuro.app.db.models import CommentReply as CommentReplyDB
from kitasuro.app.db.models import Org as OrgDB
from kitasuro.app.db.models import Proposal as ProposalDB
from kitasuro.app.db.models import ProposalActivity as ProposalActivityDB
from kitasuro.app.db.models import ProposalAssignment as ProposalAssignmentDB
from kitasuro.app.db.models import ProposalDay as ProposalDayDB
from kitasuro.app.db.models import ProposalDayAccommodation as ProposalDayAccommodationDB
from kitasuro.app.db.models import ProposalMeals as ProposalMealsDB
from kitasuro.app.db.models import Tour as TourDB
from kitasuro.app.db.models import TourDay as TourDayDB
from kitasuro.app.db.models import User as UserDB
from kitasuro.app.db.queries import (
    proposal_load_options,
    select_comments,
    select_proposals,
    select_tours,
)
from kitasuro.app.errors import NotFoundError, VersionConflictError
from kitasuro.app.models.comments import Anchor, Comment, Reply, StickyAnchor
from kitasuro.app.models.common import CommentStatus
from kitasuro.app.models.organization import Member, Organization
from kitasuro.app.models.proposal import (
    DayActivity,
    Extra,
    Meals,
    PricingRow,
    Proposal,
    ProposalDay,
    ProposalSummary,
    TravelerGroup,
)
from kitasuro.app.models.tour import Tour, TourDay


def _aware(value: datetime | None) -> datetime | None:
    """Attach UTC to naive timestamps (SQLite drops the offset)."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _to_reply(row: CommentReplyDB) -> Reply:
    return Reply(
        reply_id=row.reply_id,
        comment_id=row.comment_id,
        author_name=row.author_name,
        content=row.content,
        created_at=_aware(row.created_at),
    )


def _to_comment(row: CommentDB) -> Comment:
    sticky = None
    if row.sticky_anchor_id is not None:
        sticky = StickyAnchor(
            anchor_id=row.sticky_anchor_id,
            pos_x=row.sticky_pos_x or 0.0,
            pos_y=row.sticky_pos_y or 0.0,
        )

    return Comment(
        comment_id=row.comment_id,
        proposal_id=row.proposal_id,
        author_name=row.author_name,
        content=row.content,
        anchor=Anchor(
            pos_x=row.pos_x,
            pos_y=row.pos_y,
            width=row.width,
            height=row.height,
            sticky=sticky,
        ),
        status=CommentStatus(row.status),
        created_at=_aware(row.created_at),
        resolved_at=_aware(row.resolved_at),
        replies=[_to_reply(reply) for reply in row.replies],
    )


class SqlCommentRepository:
    """SQL implementation of CommentRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def list_comments(
        self, proposal_id: str, status: CommentStatus | None = None
    ) -> list[Comment]:
        """List comments with replies, oldest first."""
        query = select_comments(proposal_id).execution_options(populate_existing=True)
        if status is not None:
            query = query.where(CommentDB.status == status.value)

        result = await self._session.execute(query)
        return [_to_comment(row) for row in result.scalars().all()]

    async def get_comment(self, comment_id: uuid.UUID) -> Comment | None:
        """Get a comment with its replies."""
        row = await self._load(comment_id)
        return _to_comment(row) if row else None

    async def create_comment(
        self, proposal_id: str, author_name: str, content: str, anchor: Anchor
    ) -> Comment:
        """Persist a new open comment."""
        row = CommentDB(
            comment_id=uuid.uuid4(),
            proposal_id=proposal_id,
            author_name=author_name,
            content=content,
            pos_x=anchor.pos_x,
            pos_y=anchor.pos_y,
            width=anchor.width,
            height=anchor.height,
            sticky_anchor_id=anchor.sticky.anchor_id if anchor.sticky else None,
            sticky_pos_x=anchor.sticky.pos_x if anchor.sticky else None,
            sticky_pos_y=anchor.sticky.pos_y if anchor.sticky else None,
            status=CommentStatus.open.value,
            created_at=datetime.now(timezone.utc),
            replies=[],
        )
        self._session.add(row)
        await self._session.commit()

        return _to_comment(row)

    async def add_reply(
        self, comment_id: uuid.UUID, author_name: str, content: str
    ) -> Reply:
        """Append a reply to a comment thread."""
        exists = await self._session.scalar(
            select(CommentDB.comment_id).where(CommentDB.comment_id == comment_id)
        )
        if exists is None:
            raise NotFoundError(f"Comment {comment_id} not found")

        row = CommentReplyDB(
            reply_id=uuid.uuid4(),
            comment_id=comment_id,
            author_name=author_name,
            content=content,
            created_at=datetime.now(timezone.utc),
        )
        self._session.add(row)
        await self._session.commit()

        return _to_reply(row)

    async def mark_resolved(
        self, comment_id: uuid.UUID, resolved_at: datetime
    ) -> Comment | None:
        """Set status=resolved, keeping an existing resolved_at."""
        # Only an open comment gets a timestamp; repeats are no-ops
        await self._session.execute(
            update(CommentDB)
            .where(
                CommentDB.comment_id == comment_id,
                CommentDB.status == CommentStatus.open.value,
            )
            .values(status=CommentStatus.resolved.value, resolved_at=resolved_at)
        )
        await self._session.commit()

        row = await self._load(comment_id)
        return _to_comment(row) if row else None

    async def _load(self, comment_id: uuid.UUID) -> CommentDB | None:
        result = await self._session.execute(
            select(CommentDB)
            .where(CommentDB.comment_id == comment_id)
            .options(selectinload(CommentDB.replies))
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()


def _to_proposal(row: ProposalDB) -> Proposal:
    days = [
        ProposalDay(
            day_number=day.day_number,
            title=day.title,
            description=day.description,
            destination_id=day.destination_id,
            accommodation_ids=[a.accommodation_id for a in day.accommodations],
            activities=[
                DayActivity(
                    name=activity.name,
                    description=activity.description,
                    location=activity.location,
                    moment=activity.moment,
                    is_optional=activity.is_optional,
                )
                for activity in day.activities
            ],
            meals=(
                Meals(
                    breakfast=day.meals.breakfast,
                    lunch=day.meals.lunch,
                    dinner=day.meals.dinner,
                )
                if day.meals
                else None
            ),
        )
        for day in row.days
    ]

    return Proposal(
        proposal_id=row.proposal_id,
        org_id=row.org_id,
        tour_id=row.tour_id,
        client_id=row.client_id,
        name=row.name,
        tour_title=row.tour_title,
        theme=row.theme,
        status=row.status,
        start_date=row.start_date,
        start_city=row.start_city,
        end_city=row.end_city,
        days=days,
        pricing_rows=[PricingRow.model_validate(r) for r in row.pricing_rows],
        extras=[Extra.model_validate(e) for e in row.extras],
        traveler_groups=[TravelerGroup.model_validate(g) for g in row.traveler_groups],
        inclusions=list(row.inclusions),
        exclusions=list(row.exclusions),
        version=row.version,
        confirmed_at=_aware(row.confirmed_at),
        confirmed_by=row.confirmed_by,
        created_at=_aware(row.created_at),
        updated_at=_aware(row.updated_at),
    )


def _proposal_columns(proposal: Proposal) -> dict:
    data = proposal.model_dump(mode="json")
    return {
        "org_id": proposal.org_id,
        "tour_id": proposal.tour_id,
        "client_id": proposal.client_id,
        "name": proposal.name,
        "tour_title": proposal.tour_title,
        "theme": proposal.theme,
        "status": proposal.status.value,
        "start_date": proposal.start_date,
        "start_city": proposal.start_city,
        "end_city": proposal.end_city,
        "pricing_rows": data["pricing_rows"],
        "extras": data["extras"],
        "traveler_groups": data["traveler_groups"],
        "inclusions": data["inclusions"],
        "exclusions": data["exclusions"],
        "version": proposal.version,
        "confirmed_at": proposal.confirmed_at,
        "confirmed_by": proposal.confirmed_by,
        "created_at": proposal.created_at,
        "updated_at": proposal.updated_at,
    }


def _day_rows(proposal: Proposal) -> list[ProposalDayDB]:
    rows: list[ProposalDayDB] = []
    for day in proposal.days:
        rows.append(
            ProposalDayDB(
                day_id=uuid.uuid4(),
                proposal_id=proposal.proposal_id,
                day_number=day.day_number,
                title=day.title,
                description=day.description,
                destination_id=day.destination_id,
                accommodations=[
                    ProposalDayAccommodationDB(accommodation_id=accommodation_id)
                    for accommodation_id in day.accommodation_ids
                ],
                activities=[
                    ProposalActivityDB(
                        position=position,
                        name=activity.name,
                        description=activity.description,
                        location=activity.location,
                        moment=activity.moment.value,
                        is_optional=activity.is_optional,
                    )
                    for position, activity in enumerate(day.activities)
                ],
                meals=(
                    ProposalMealsDB(
                        breakfast=day.meals.breakfast,
                        lunch=day.meals.lunch,
                        dinner=day.meals.dinner,
                    )
                    if day.meals
                    else None
                ),
            )
        )
    return rows


class SqlProposalRepository:
    """SQL implementation of ProposalRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_proposal(
        self, proposal_id: str, ctx: RequestContext
    ) -> Proposal | None:
        """Get proposal by ID."""
        result = await self._session.execute(
            select_proposals(ctx)
            .where(ProposalDB.proposal_id == proposal_id)
            .execution_options(populate_existing=True)
        )
        row = result.scalar_one_or_none()
        return _to_proposal(row) if row else None

    async def get_public_proposal(self, proposal_id: str) -> Proposal | None:
        """Get proposal by ID for the client view."""
        result = await self._session.execute(
            select(ProposalDB)
            .where(ProposalDB.proposal_id == proposal_id)
            .options(*proposal_load_options())
            .execution_options(populate_existing=True)
        )
        row = result.scalar_one_or_none()
        return _to_proposal(row) if row else None

    async def save_proposal(
        self, proposal: Proposal, *, expected_version: int | None = None
    ) -> None:
        """Insert or replace a proposal aggregate including its days."""
        columns = _proposal_columns(proposal)

        if expected_version is None:
            self._session.add(ProposalDB(proposal_id=proposal.proposal_id, **columns))
            self._session.add_all(_day_rows(proposal))
            await self._session.commit()
            return

        # Compare-and-set on version guards concurrent editors
        result = await self._session.execute(
            update(ProposalDB)
            .where(
                ProposalDB.proposal_id == proposal.proposal_id,
                ProposalDB.version == expected_version,
            )
            .values(**columns)
        )

        if result.rowcount == 0:
            current = await self._session.scalar(
                select(ProposalDB.version).where(
                    ProposalDB.proposal_id == proposal.proposal_id
                )
            )
            await self._session.rollback()
            if current is None:
                raise NotFoundError(f"Proposal {proposal.proposal_id} not found")
            raise VersionConflictError(expected_version, current)

        await self._delete_days(proposal.proposal_id)
        self._session.add_all(_day_rows(proposal))
        await self._session.commit()

    async def _delete_days(self, proposal_id: str) -> None:
        day_ids = select(ProposalDayDB.day_id).where(ProposalDayDB.proposal_id == proposal_id)

        for child in (ProposalDayAccommodationDB, ProposalActivityDB, ProposalMealsDB):
            await self._session.execute(
                delete(child)
                .where(child.day_id.in_(day_ids))
                .execution_options(synchronize_session=False)
            )

        await self._session.execute(
            delete(ProposalDayDB)
            .where(ProposalDayDB.proposal_id == proposal_id)
            .execution_options(synchronize_session=False)
        )

    async def count_proposals(self, org_id: uuid.UUID) -> int:
        """Count proposals owned by an organization."""
        count = await self._session.scalar(
            select(func.count()).select_from(ProposalDB).where(ProposalDB.org_id == org_id)
        )
        return count or 0

    async def list_proposals(
        self, ctx: RequestContext, *, assigned_to: uuid.UUID | None = None
    ) -> list[ProposalSummary]:
        """List proposals of the caller's organization, newest update first."""
        query = select_proposals(ctx).order_by(ProposalDB.updated_at.desc())
        if assigned_to is not None:
            query = query.where(
                ProposalDB.assignments.any(ProposalAssignmentDB.user_id == assigned_to)
            )

        result = await self._session.execute(
            query.execution_options(populate_existing=True)
        )

        return [
            ProposalSummary(
                proposal_id=row.proposal_id,
                name=row.name,
                tour_title=row.tour_title,
                status=row.status,
                start_date=row.start_date,
                client_id=row.client_id,
                assignee_ids=[a.user_id for a in row.assignments],
                created_at=_aware(row.created_at),
                updated_at=_aware(row.updated_at),
            )
            for row in result.scalars().all()
        ]

    async def assign(
        self, proposal_id: str, user_id: uuid.UUID, assigned_by: uuid.UUID | None
    ) -> bool:
        """Assign a user to a proposal."""
        existing = await self._session.scalar(
            select(ProposalAssignmentDB.id).where(
                ProposalAssignmentDB.proposal_id == proposal_id,
                ProposalAssignmentDB.user_id == user_id,
            )
        )
        if existing is not None:
            return False

        self._session.add(
            ProposalAssignmentDB(
                proposal_id=proposal_id, user_id=user_id, assigned_by=assigned_by
            )
        )
        await self._session.commit()
        return True

    async def unassign(self, proposal_id: str, user_id: uuid.UUID) -> bool:
        """Remove an assignment."""
        result = await self._session.execute(
            delete(ProposalAssignmentDB)
            .where(
                ProposalAssignmentDB.proposal_id == proposal_id,
                ProposalAssignmentDB.user_id == user_id,
            )
            .execution_options(synchronize_session=False)
        )
        await self._session.commit()
        return result.rowcount > 0


def _to_tour(row: TourDB) -> Tour:
    return Tour(
        tour_id=row.tour_id,
        org_id=row.org_id,
        tour_name=row.tour_name,
        overview=row.overview,
        pricing=row.pricing,
        country=row.country,
        tags=list(row.tags),
        number_of_days=row.number_of_days,
        cloned_from_id=row.cloned_from_id,
        days=[
            TourDay(
                day_number=day.day_number,
                title=day.title,
                overview=day.overview,
                destination_id=day.destination_id,
                accommodation_id=day.accommodation_id,
            )
            for day in row.days
        ],
        created_at=_aware(row.created_at),
        updated_at=_aware(row.updated_at),
    )


class SqlTourRepository:
    """SQL implementation of TourRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_tour(self, tour_id: uuid.UUID) -> Tour | None:
        """Get tour or shared template by ID."""
        result = await self._session.execute(
            select(TourDB)
            .where(TourDB.tour_id == tour_id)
            .options(selectinload(TourDB.days))
            .execution_options(populate_existing=True)
        )
        row = result.scalar_one_or_none()
        return _to_tour(row) if row else None

    async def list_tours(self, ctx: RequestContext) -> list[Tour]:
        """List tours of the caller's organization, newest first."""
        result = await self._session.execute(
            select_tours(ctx)
            .order_by(TourDB.created_at.desc())
            .execution_options(populate_existing=True)
        )
        return [_to_tour(row) for row in result.scalars().all()]

    async def list_shared_templates(self, limit: int = 50) -> list[Tour]:
        """List tours without an owning organization, newest first."""
        result = await self._session.execute(
            select(TourDB)
            .where(TourDB.org_id.is_(None))
            .options(selectinload(TourDB.days))
            .order_by(TourDB.created_at.desc())
            .limit(limit)
            .execution_options(populate_existing=True)
        )
        return [_to_tour(row) for row in result.scalars().all()]

    async def count_tours(self, org_id: uuid.UUID) -> int:
        """Count tours owned by an organization."""
        count = await self._session.scalar(
            select(func.count()).select_from(TourDB).where(TourDB.org_id == org_id)
        )
        return count or 0

    async def save_tour(self, tour: Tour) -> None:
        """Insert or replace a tour including its days."""
        await self._session.execute(
            delete(TourDayDB)
            .where(TourDayDB.tour_id == tour.tour_id)
            .execution_options(synchronize_session=False)
        )

        columns = {
            "org_id": tour.org_id,
            "tour_name": tour.tour_name,
            "overview": tour.overview,
            "pricing": tour.pricing,
            "country": tour.country,
            "tags": list(tour.tags),
            "number_of_days": tour.number_of_days,
            "cloned_from_id": tour.cloned_from_id,
            "created_at": tour.created_at,
            "updated_at": tour.updated_at,
        }

        existing = await self._session.scalar(
            select(TourDB.tour_id).where(TourDB.tour_id == tour.tour_id)
        )
        if existing is None:
            self._session.add(TourDB(tour_id=tour.tour_id, **columns))
            await self._session.flush()
        else:
            await self._session.execute(
                update(TourDB).where(TourDB.tour_id == tour.tour_id).values(**columns)
            )

        self._session.add_all(
            [
                TourDayDB(
                    tour_id=tour.tour_id,
                    day_number=day.day_number,
                    title=day.title,
                    overview=day.overview,
                    destination_id=day.destination_id,
                    accommodation_id=day.accommodation_id,
                )
                for day in tour.days
            ]
        )
        await self._session.commit()


class SqlOrganizationRepository:
    """SQL implementation of OrganizationRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_organization(self, org_id: uuid.UUID) -> Organization | None:
        """Get organization by ID."""
        row = await self._session.get(OrgDB, org_id, populate_existing=True)
        if row is None:
            return None

        return Organization(
            org_id=row.org_id,
            name=row.name,
            logo_url=row.logo_url,
            primary_color=row.primary_color,
            notification_email=row.notification_email,
            plan_tier=row.plan_tier,
            onboarding_completed_at=_aware(row.onboarding_completed_at),
            created_at=_aware(row.created_at),
        )

    async def save_organization(self, organization: Organization) -> None:
        """Insert or replace an organization."""
        await self._session.merge(
            OrgDB(
                org_id=organization.org_id,
                name=organization.name,
                logo_url=organization.logo_url,
                primary_color=organization.primary_color,
                notification_email=organization.notification_email,
                plan_tier=organization.plan_tier.value,
                onboarding_completed_at=organization.onboarding_completed_at,
                created_at=organization.created_at,
            )
        )
        await self._session.commit()

    async def get_member(self, org_id: uuid.UUID, user_id: uuid.UUID) -> Member | None:
        """Get a member of an organization."""
        row = await self._session.scalar(
            select(UserDB).where(UserDB.org_id == org_id, UserDB.user_id == user_id)
        )
        if row is None:
            return None

        return Member(
            user_id=row.user_id,
            org_id=row.org_id,
            email=row.email,
            name=row.name,
            role=row.role,
        )
