"""Shared pytest fixtures for all test suites."""

import os
import uuid
from collections.abc import AsyncGenerator, Callable
from datetime import datetime, timezone

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.pool import NullPool, StaticPool

from kitasuro.app.db.context import RequestContext
from kitasuro.app.db.inmemory import (
    InMemoryCommentRepository,
    InMemoryOrganizationRepository,
    InMemoryProposalRepository,
    InMemoryTourRepository,
)
from kitasuro.app.db.models import Base
from kitasuro.app.models.common import MemberRole, PlanTier
from kitasuro.app.models.organization import Member, Organization
from kitasuro.app.services.comments import CommentService
from kitasuro.app.services.notifications import (
    CommentNotification,
    ConfirmationNotification,
    ShareNotification,
)
from kitasuro.app.services.proposals import ProposalService

ORG_ID = uuid.UUID("00000000-0000-0000-0000-000000000001")
ADMIN_ID = uuid.UUID("00000000-0000-0000-0000-000000000002")
MEMBER_ID = uuid.UUID("00000000-0000-0000-0000-000000000003")
OTHER_ORG_ID = uuid.UUID("00000000-0000-0000-0000-0000000000ff")

APP_URL = "https://app.example.com"


class RecordingNotifier:
    """Notifier that keeps every notification it is handed."""

    def __init__(self) -> None:
        self.comments: list[CommentNotification] = []
        self.confirmations: list[ConfirmationNotification] = []
        self.shares: list[ShareNotification] = []

    async def comment_posted(self, notification: CommentNotification) -> None:
        self.comments.append(notification)

    async def proposal_confirmed(self, notification: ConfirmationNotification) -> None:
        self.confirmations.append(notification)

    async def proposal_shared(self, notification: ShareNotification) -> None:
        self.shares.append(notification)


def make_organization(
    org_id: uuid.UUID = ORG_ID,
    *,
    plan_tier: PlanTier = PlanTier.pro,
    notification_email: str | None = "ops@agency.example",
    name: str = "Serengeti Trails",
) -> Organization:
    return Organization(
        org_id=org_id,
        name=name,
        notification_email=notification_email,
        plan_tier=plan_tier,
        created_at=datetime.now(timezone.utc),
    )


@pytest.fixture
def make_org() -> Callable[..., Organization]:
    """Factory for organizations (defaults: pro plan with a notification email)."""
    return make_organization


@pytest.fixture
def admin_ctx() -> RequestContext:
    return RequestContext(org_id=ORG_ID, user_id=ADMIN_ID, role=MemberRole.admin)


@pytest.fixture
def member_ctx() -> RequestContext:
    return RequestContext(org_id=ORG_ID, user_id=MEMBER_ID)


@pytest.fixture
def other_ctx() -> RequestContext:
    return RequestContext(org_id=OTHER_ORG_ID, user_id=uuid.uuid4(), role=MemberRole.admin)


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def comment_repo() -> InMemoryCommentRepository:
    return InMemoryCommentRepository()


@pytest.fixture
def proposal_repo() -> InMemoryProposalRepository:
    return InMemoryProposalRepository()


@pytest.fixture
def tour_repo() -> InMemoryTourRepository:
    return InMemoryTourRepository()


@pytest.fixture
def org_repo() -> InMemoryOrganizationRepository:
    """Organization repo holding a pro org with an admin and a member, plus another org."""
    repo = InMemoryOrganizationRepository(
        [make_organization(), make_organization(OTHER_ORG_ID, name="Other Agency")]
    )
    repo.add_member(
        Member(user_id=ADMIN_ID, org_id=ORG_ID, email="admin@agency.example", role=MemberRole.admin)
    )
    repo.add_member(
        Member(
            user_id=MEMBER_ID, org_id=ORG_ID, email="guide@agency.example", role=MemberRole.member
        )
    )
    return repo


@pytest.fixture
def proposal_service(
    proposal_repo: InMemoryProposalRepository,
    org_repo: InMemoryOrganizationRepository,
    notifier: RecordingNotifier,
) -> ProposalService:
    return ProposalService(proposal_repo, org_repo, notifier, app_url=APP_URL)


@pytest.fixture
def comment_service(
    comment_repo: InMemoryCommentRepository,
    proposal_repo: InMemoryProposalRepository,
    org_repo: InMemoryOrganizationRepository,
    notifier: RecordingNotifier,
) -> CommentService:
    return CommentService(comment_repo, proposal_repo, org_repo, notifier, app_url=APP_URL)


@pytest_asyncio.fixture
async def sqlite_engine() -> AsyncGenerator[AsyncEngine, None]:
    """In-memory SQLite engine shared across sessions of one test."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def sqlite_session(sqlite_engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    async with AsyncSession(sqlite_engine, expire_on_commit=False) as session:
        yield session


@pytest_asyncio.fixture
async def postgres_engine() -> AsyncGenerator[AsyncEngine, None]:
    """Create async engine for PostgreSQL integration tests.

    Requires DATABASE_URL to be set to a real PostgreSQL connection string.
    Tests using this fixture should be marked with @pytest.mark.postgres.
    """
    database_url = os.getenv("DATABASE_URL")
    if not database_url:
        pytest.skip("DATABASE_URL not set - skipping postgres test")

    if not database_url.startswith(("postgresql://", "postgresql+asyncpg://")):
        pytest.skip(f"DATABASE_URL is not PostgreSQL: {database_url}")

    if database_url.startswith("postgresql://"):
        database_url = database_url.replace("postgresql://", "postgresql+asyncpg://", 1)

    engine = create_async_engine(database_url, poolclass=NullPool, echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()
