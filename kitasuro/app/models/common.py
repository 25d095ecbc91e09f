"""Common types and enums shared across all models."""

from enum import Enum


class MemberRole(str, Enum):
    """Role of a user inside an organization."""

    admin = "admin"
    member = "member"


class CommentStatus(str, Enum):
    """Comment lifecycle. Transitions only open -> resolved."""

    open = "open"
    resolved = "resolved"


class ProposalStatus(str, Enum):
    """Proposal lifecycle. Transitions only draft -> shared -> confirmed."""

    draft = "draft"
    shared = "shared"
    confirmed = "confirmed"


class Moment(str, Enum):
    """Time-of-day bucket an activity is tagged with."""

    morning = "Morning"
    afternoon = "Afternoon"
    evening = "Evening"
    half_day = "Half Day"
    full_day = "Full Day"
    night = "Night"


class PlanTier(str, Enum):
    """Subscription tier of an organization."""

    free = "free"
    starter = "starter"
    pro = "pro"
    business = "business"


class DashboardFilter(str, Enum):
    """Proposal listing scope on the staff dashboard."""

    mine = "mine"
    all = "all"

