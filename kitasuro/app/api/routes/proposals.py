"""Proposal endpoints - staff editor/dashboard plus the public client page."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field

from kitasuro.app.api.auth import get_current_context
from kitasuro.app.api.deps import get_proposal_service
from kitasuro.app.api.errors import to_http_exception
from kitasuro.app.db.context import RequestContext
from kitasuro.app.errors import DomainError
from kitasuro.app.models.common import DashboardFilter
from kitasuro.app.models.plans import allows_comments
from kitasuro.app.models.proposal import Proposal, ProposalInput, ProposalSummary
from kitasuro.app.services.proposals import ProposalService
from kitasuro.app.themes.renderers import RenderedProposal, render_proposal
from kitasuro.app.themes.view import build_itinerary_view

router = APIRouter(prefix="/proposals", tags=["proposals"])

Service = Annotated[ProposalService, Depends(get_proposal_service)]
Context = Annotated[RequestContext, Depends(get_current_context)]


class ShareRequest(BaseModel):
    """Request body for POST /proposals/{id}/share."""

    expected_version: int | None = Field(None, ge=1)


class ShareResponse(BaseModel):
    proposal: Proposal
    share_url: str


class ConfirmRequest(BaseModel):
    """Request body for POST /proposals/{id}/confirm."""

    client_name: str = Field("", max_length=200)


class ClientViewResponse(BaseModel):
    """Everything the public proposal page needs."""

    proposal: Proposal
    agency_name: str
    comments_enabled: bool
    page: RenderedProposal


class AssignmentResponse(BaseModel):
    changed: bool


@router.get("", response_model=list[ProposalSummary])
async def list_proposals(
    ctx: Context,
    service: Service,
    view: Annotated[DashboardFilter, Query()] = DashboardFilter.all,
) -> list[ProposalSummary]:
    """Dashboard listing, most recently updated first."""
    return await service.list_for_dashboard(ctx, view)


@router.post("", response_model=Proposal, status_code=status.HTTP_201_CREATED)
async def create_proposal(data: ProposalInput, ctx: Context, service: Service) -> Proposal:
    """Create a draft proposal; the creator is assigned to it."""
    try:
        return await service.save_proposal(None, data, ctx)
    except DomainError as e:
        raise to_http_exception(e) from e


@router.get("/{proposal_id}", response_model=Proposal)
async def get_proposal(proposal_id: str, ctx: Context, service: Service) -> Proposal:
    try:
        return await service.get_proposal(proposal_id, ctx)
    except DomainError as e:
        raise to_http_exception(e) from e


@router.put("/{proposal_id}", response_model=Proposal)
async def save_proposal(
    proposal_id: str, data: ProposalInput, ctx: Context, service: Service
) -> Proposal:
    """Replace the proposal with the editor state.

    Updates must carry the version the editor loaded (409 when stale). An
    unknown id is 404; only POST creates.
    """
    try:
        return await service.save_proposal(proposal_id, data, ctx)
    except DomainError as e:
        raise to_http_exception(e) from e


@router.post("/{proposal_id}/share", response_model=ShareResponse)
async def share_proposal(
    proposal_id: str, request: ShareRequest, ctx: Context, service: Service
) -> ShareResponse:
    try:
        proposal = await service.share_proposal(proposal_id, ctx, request.expected_version)
    except DomainError as e:
        raise to_http_exception(e) from e
    return ShareResponse(proposal=proposal, share_url=service.share_url(proposal_id))


@router.post("/{proposal_id}/assignments/{user_id}", response_model=AssignmentResponse)
async def assign_member(
    proposal_id: str, user_id: UUID, ctx: Context, service: Service
) -> AssignmentResponse:
    try:
        return AssignmentResponse(changed=await service.assign(proposal_id, user_id, ctx))
    except (DomainError, ValueError) as e:
        raise to_http_exception(e) from e


@router.delete("/{proposal_id}/assignments/{user_id}", response_model=AssignmentResponse)
async def unassign_member(
    proposal_id: str, user_id: UUID, ctx: Context, service: Service
) -> AssignmentResponse:
    try:
        return AssignmentResponse(changed=await service.unassign(proposal_id, user_id, ctx))
    except DomainError as e:
        raise to_http_exception(e) from e


@router.get("/{proposal_id}/view", response_model=ClientViewResponse)
async def client_view(proposal_id: str, service: Service) -> ClientViewResponse:
    """Public page: the proposal rendered with its theme."""
    try:
        proposal, organization = await service.get_client_view(proposal_id)
    except DomainError as e:
        raise to_http_exception(e) from e

    return ClientViewResponse(
        proposal=proposal,
        agency_name=organization.name,
        comments_enabled=allows_comments(organization.plan_tier),
        page=render_proposal(build_itinerary_view(proposal, organization)),
    )


@router.post("/{proposal_id}/confirm", response_model=Proposal)
async def confirm_proposal(
    proposal_id: str, request: ConfirmRequest, service: Service
) -> Proposal:
    """Client accepts a shared proposal."""
    try:
        return await service.confirm_proposal(proposal_id, request.client_name)
    except DomainError as e:
        raise to_http_exception(e) from e
