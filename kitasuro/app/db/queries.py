"""Tenancy-safe query helpers."""

from sqlalchemy import Select, select
from sqlalchemy.orm import selectinload

from kitasuro.app.db.context import RequestContext
from kitasuro.app.db.models import Comment, Proposal, ProposalDay, Tour


def select_proposals(ctx: RequestContext) -> Select[tuple[Proposal]]:
    """Select proposals with org scoping enforced.

    Args:
        ctx: Request context with org_id

    Returns:
        Select filtered by org_id, days and assignments eagerly loaded
    """
    return (
        select(Proposal)
        .where(Proposal.org_id == ctx.org_id)
        .options(*proposal_load_options())
    )


def select_tours(ctx: RequestContext) -> Select[tuple[Tour]]:
    """Select tours with org scoping enforced.

    Args:
        ctx: Request context with org_id

    Returns:
        Select filtered by org_id, days eagerly loaded
    """
    return select(Tour).where(Tour.org_id == ctx.org_id).options(selectinload(Tour.days))


def select_comments(proposal_id: str) -> Select[tuple[Comment]]:
    """Select comments of one proposal with replies, oldest first."""
    return (
        select(Comment)
        .where(Comment.proposal_id == proposal_id)
        .options(selectinload(Comment.replies))
        .order_by(Comment.created_at.asc())
    )


def proposal_load_options() -> list:
    """Eager-load options for the full proposal aggregate."""
    return [
        selectinload(Proposal.days).selectinload(ProposalDay.accommodations),
        selectinload(Proposal.days).selectinload(ProposalDay.activities),
        selectinload(Proposal.days).selectinload(ProposalDay.meals),
        selectinload(Proposal.assignments),
    ]
