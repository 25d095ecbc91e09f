"""Onboarding - derived checklist with a one-way completion latch."""

import logging
from datetime import datetime, timezone

from kitasuro.app.db.context import RequestContext
from kitasuro.app.db.repositories import OrganizationRepository, TourRepository
from kitasuro.app.errors import NotFoundError
from kitasuro.app.models.organization import (
    OnboardingStatus,
    OnboardingStep,
    OnboardingSteps,
    Organization,
)

logger = logging.getLogger(__name__)


def is_default_organization_name(name: str | None) -> bool:
    """Names generated at signup ("<name>'s Agency") do not count as set."""
    if not name or len(name) > 255:
        return True
    lower = name.lower()
    return lower.endswith("'s agency") or lower == "user's agency"


def compute_onboarding_status(
    organization: Organization | None, tour_count: int
) -> OnboardingStatus:
    """Evaluate the three onboarding steps."""
    name = organization.name if organization else None
    email = organization.notification_email if organization else None

    name_step = OnboardingStep(
        complete=bool(name) and not is_default_organization_name(name),
        current=name or None,
    )
    email_step = OnboardingStep(complete=bool(email), current=email or None)

    has_tours = tour_count > 0
    tours_step = OnboardingStep(
        complete=has_tours,
        current=f"{tour_count} tour{'' if tour_count == 1 else 's'}" if has_tours else None,
    )

    completed_count = sum(step.complete for step in (name_step, email_step, tours_step))

    return OnboardingStatus(
        is_complete=completed_count == 3,
        completed_count=completed_count,
        steps=OnboardingSteps(
            organization_name=name_step,
            notification_email=email_step,
            has_tours=tours_step,
            tour_count=tour_count,
        ),
        completed_at=organization.onboarding_completed_at if organization else None,
    )


class OnboardingService:
    """Reports onboarding progress and latches completion once reached."""

    def __init__(self, organizations: OrganizationRepository, tours: TourRepository) -> None:
        self._organizations = organizations
        self._tours = tours

    async def refresh_onboarding(self, ctx: RequestContext) -> OnboardingStatus:
        """Compute the status, persisting the completion timestamp the first time.

        Once completed_at is stored the organization stays complete even if a
        step later regresses.

        Raises:
            NotFoundError: If the organization does not exist
        """
        organization = await self._organizations.get_organization(ctx.org_id)
        if organization is None:
            raise NotFoundError(f"Organization {ctx.org_id} not found")

        tour_count = await self._tours.count_tours(ctx.org_id)
        status = compute_onboarding_status(organization, tour_count)

        if organization.onboarding_completed_at is not None:
            return status.model_copy(update={"is_complete": True})

        if status.is_complete:
            completed_at = datetime.now(timezone.utc)
            await self._organizations.save_organization(
                organization.model_copy(update={"onboarding_completed_at": completed_at})
            )
            logger.info("[onboarding] completed org_id=%s", ctx.org_id)
            return status.model_copy(update={"completed_at": completed_at})

        return status
