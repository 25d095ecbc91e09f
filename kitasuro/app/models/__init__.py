"""Models package - re-exports for convenience."""

from kitasuro.app.models.comments import (
    Anchor,
    Comment,
    CreateCommentRequest,
    CreateReplyRequest,
    Reply,
    StickyAnchor,
)
from kitasuro.app.models.common import (
    CommentStatus,
    DashboardFilter,
    MemberRole,
    Moment,
    PlanTier,
    ProposalStatus,
)
from kitasuro.app.models.organization import (
    Member,
    OnboardingStatus,
    OnboardingStep,
    OnboardingSteps,
    Organization,
    OrganizationSettingsUpdate,
)
from kitasuro.app.models.proposal import (
    DayActivity,
    DayInput,
    Extra,
    Meals,
    PricingRow,
    Proposal,
    ProposalDay,
    ProposalInput,
    ProposalSummary,
    TravelerGroup,
)
from kitasuro.app.models.tour import Tour, TourDay, TourDayForm, TourForm, TourListItem

__all__ = [
    # Common
    "CommentStatus",
    "DashboardFilter",
    "MemberRole",
    "Moment",
    "PlanTier",
    "ProposalStatus",
    # Comments
    "Anchor",
    "StickyAnchor",
    "Comment",
    "Reply",
    "CreateCommentRequest",
    "CreateReplyRequest",
    # Organization
    "Organization",
    "Member",
    "OrganizationSettingsUpdate",
    "OnboardingStatus",
    "OnboardingStep",
    "OnboardingSteps",
    # Proposal
    "Proposal",
    "ProposalDay",
    "ProposalInput",
    "ProposalSummary",
    "DayInput",
    "DayActivity",
    "Meals",
    "PricingRow",
    "Extra",
    "TravelerGroup",
    # Tour
    "Tour",
    "TourDay",
    "TourDayForm",
    "TourForm",
    "TourListItem",
]
