"""FastAPI dependency providers for repositories and services."""

from datetime import datetime, timezone
from functools import lru_cache
from typing import Annotated

import redis
from fastapi import Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from kitasuro.app.config import get_settings
from kitasuro.app.db.engine import get_session
from kitasuro.app.db.inmemory import InMemoryRateLimiter
from kitasuro.app.db.repositories import RateLimiter
from kitasuro.app.db.sql_repositories import (
    SqlCommentRepository,
    SqlOrganizationRepository,
    SqlProposalRepository,
    SqlTourRepository,
)
from kitasuro.app.ratelimit import RedisRateLimiter, make_comment_rate_limit_key
from kitasuro.app.services.comments import CommentService
from kitasuro.app.services.notifications import LoggingNotifier, Notifier
from kitasuro.app.services.onboarding import OnboardingService
from kitasuro.app.services.org_settings import OrganizationSettingsService
from kitasuro.app.services.proposals import ProposalService
from kitasuro.app.services.tours import TourService

Session = Annotated[AsyncSession, Depends(get_session)]


def get_notifier() -> Notifier:
    return LoggingNotifier()


@lru_cache
def get_comment_rate_limiter() -> RateLimiter:
    """Redis-backed when REDIS_URL is configured, process-local otherwise."""
    settings = get_settings()
    if settings.redis_url:
        client = redis.from_url(settings.redis_url, decode_responses=True)  # type: ignore[no-untyped-call]
        return RedisRateLimiter(client, settings.comment_writes_per_min)
    return InMemoryRateLimiter(settings.comment_writes_per_min)


def get_comment_service(
    session: Session, notifier: Annotated[Notifier, Depends(get_notifier)]
) -> CommentService:
    return CommentService(
        SqlCommentRepository(session),
        SqlProposalRepository(session),
        SqlOrganizationRepository(session),
        notifier,
        app_url=get_settings().app_url,
    )


def get_proposal_service(
    session: Session, notifier: Annotated[Notifier, Depends(get_notifier)]
) -> ProposalService:
    return ProposalService(
        SqlProposalRepository(session),
        SqlOrganizationRepository(session),
        notifier,
        app_url=get_settings().app_url,
    )


def get_tour_service(session: Session) -> TourService:
    return TourService(SqlTourRepository(session))


def get_onboarding_service(session: Session) -> OnboardingService:
    return OnboardingService(SqlOrganizationRepository(session), SqlTourRepository(session))


def get_settings_service(session: Session) -> OrganizationSettingsService:
    return OrganizationSettingsService(SqlOrganizationRepository(session))


def enforce_comment_rate_limit(limiter: RateLimiter, proposal_id: str, author_name: str) -> None:
    """Raise 429 with Retry-After when the author is over quota on this proposal."""
    key = make_comment_rate_limit_key(proposal_id, author_name)
    retry_after = limiter.check_quota(key, datetime.now(timezone.utc))
    if retry_after is not None:
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Too many comments, please slow down",
            headers={"Retry-After": str(retry_after.seconds)},
        )
