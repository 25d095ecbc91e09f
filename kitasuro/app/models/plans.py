"""Plan tiers and the features each tier unlocks."""

from pydantic import BaseModel

from kitasuro.app.models.common import PlanTier


class PlanLimits(BaseModel):
    """Limits for a tier. -1 means unlimited."""

    active_proposals: int
    comments: bool


PLAN_LIMITS: dict[PlanTier, PlanLimits] = {
    PlanTier.free: PlanLimits(active_proposals=2, comments=False),
    PlanTier.starter: PlanLimits(active_proposals=5, comments=False),
    PlanTier.pro: PlanLimits(active_proposals=-1, comments=True),
    PlanTier.business: PlanLimits(active_proposals=-1, comments=True),
}

DEFAULT_THEME = "minimalistic"

ALLOWED_THEMES_BY_TIER: dict[PlanTier, list[str]] = {
    PlanTier.free: [DEFAULT_THEME],
    PlanTier.starter: [DEFAULT_THEME],
    PlanTier.pro: [DEFAULT_THEME, "kudu", "discovery", "safari-portal"],
    PlanTier.business: [DEFAULT_THEME, "kudu", "discovery", "safari-portal"],
}


def allows_comments(tier: PlanTier) -> bool:
    """Whether clients may comment on proposals of an organization on this tier."""
    return PLAN_LIMITS[tier].comments


def proposal_quota(tier: PlanTier) -> int:
    """Maximum number of proposals (-1 for unlimited)."""
    return PLAN_LIMITS[tier].active_proposals


def resolve_theme(requested: str | None, tier: PlanTier) -> str:
    """Return the requested theme if the tier allows it, else the default theme."""
    if requested and requested in ALLOWED_THEMES_BY_TIER[tier]:
        return requested
    return DEFAULT_THEME
