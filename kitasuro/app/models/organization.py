"""Organization models - tenancy root, settings and onboarding state."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field

from kitasuro.app.models.common import MemberRole, PlanTier


class Organization(BaseModel):
    """Travel agency account."""

    org_id: UUID
    name: str
    logo_url: str | None = None
    primary_color: str | None = "#15803d"
    notification_email: str | None = None
    plan_tier: PlanTier = PlanTier.free
    onboarding_completed_at: datetime | None = None
    created_at: datetime


class Member(BaseModel):
    """User membership in an organization."""

    user_id: UUID
    org_id: UUID
    email: str
    name: str | None = None
    role: MemberRole


class OrganizationSettingsUpdate(BaseModel):
    """Request body for PATCH /settings/organization. Unset fields are kept."""

    name: str | None = Field(None, min_length=1, max_length=255)
    logo_url: str | None = None
    primary_color: str | None = Field(None, pattern=r"^#[0-9a-fA-F]{6}$")
    notification_email: EmailStr | None = None


class OnboardingStep(BaseModel):
    """Single onboarding checklist item."""

    complete: bool
    current: str | None = None


class OnboardingSteps(BaseModel):
    """The three onboarding checklist items."""

    organization_name: OnboardingStep
    notification_email: OnboardingStep
    has_tours: OnboardingStep
    tour_count: int = 0


class OnboardingStatus(BaseModel):
    """Derived onboarding state for an organization."""

    is_complete: bool
    completed_count: int
    total_steps: int = 3
    steps: OnboardingSteps
    completed_at: datetime | None = None
