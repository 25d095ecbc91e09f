"""Tour endpoints - organization tours and the shared template library."""

from typing import Annotated, Any
from uuid import UUID

from fastapi import APIRouter, Body, Depends, Query, status

from kitasuro.app.api.auth import get_current_context
from kitasuro.app.api.deps import get_tour_service
from kitasuro.app.api.errors import to_http_exception
from kitasuro.app.db.context import RequestContext
from kitasuro.app.errors import DomainError
from kitasuro.app.models.tour import Tour, TourListItem
from kitasuro.app.services.tours import TourService

router = APIRouter(prefix="/tours", tags=["tours"])

Service = Annotated[TourService, Depends(get_tour_service)]
Context = Annotated[RequestContext, Depends(get_current_context)]


@router.get("", response_model=list[TourListItem])
async def list_tours(ctx: Context, service: Service) -> list[TourListItem]:
    return await service.list_tours(ctx)


@router.get("/templates", response_model=list[TourListItem])
async def list_templates(
    service: Service,
    limit: Annotated[int, Query(ge=1, le=200)] = 50,
) -> list[TourListItem]:
    """Shared templates any organization may clone."""
    return await service.list_shared_templates(limit)


@router.post(
    "/templates/{template_id}/clone",
    response_model=Tour,
    status_code=status.HTTP_201_CREATED,
)
async def clone_template(template_id: UUID, ctx: Context, service: Service) -> Tour:
    try:
        return await service.clone_template(template_id, ctx)
    except DomainError as e:
        raise to_http_exception(e) from e


@router.get("/{tour_id}", response_model=Tour)
async def get_tour(tour_id: UUID, ctx: Context, service: Service) -> Tour:
    try:
        return await service.get_tour(tour_id, ctx)
    except DomainError as e:
        raise to_http_exception(e) from e


@router.put("/{tour_id}", response_model=Tour)
async def update_tour(
    tour_id: UUID,
    form_data: Annotated[dict[str, Any], Body()],
    ctx: Context,
    service: Service,
) -> Tour:
    """Validate the tour editor form and replace the tour.

    Invalid forms return 422 with messages per field; nothing is written.
    """
    try:
        return await service.update_tour(tour_id, form_data, ctx)
    except DomainError as e:
        raise to_http_exception(e) from e
