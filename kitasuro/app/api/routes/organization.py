"""Organization endpoints - onboarding checklist and admin settings."""

from typing import Annotated

from fastapi import APIRouter, Depends

from kitasuro.app.api.auth import get_current_context
from kitasuro.app.api.deps import get_onboarding_service, get_settings_service
from kitasuro.app.api.errors import to_http_exception
from kitasuro.app.db.context import RequestContext
from kitasuro.app.errors import DomainError
from kitasuro.app.models.organization import (
    OnboardingStatus,
    Organization,
    OrganizationSettingsUpdate,
)
from kitasuro.app.services.onboarding import OnboardingService
from kitasuro.app.services.org_settings import OrganizationSettingsService

router = APIRouter(tags=["organization"])

Context = Annotated[RequestContext, Depends(get_current_context)]


@router.get("/onboarding", response_model=OnboardingStatus)
async def get_onboarding(
    ctx: Context,
    service: Annotated[OnboardingService, Depends(get_onboarding_service)],
) -> OnboardingStatus:
    """Checklist progress; completion is latched once reached."""
    try:
        return await service.refresh_onboarding(ctx)
    except DomainError as e:
        raise to_http_exception(e) from e


@router.get("/settings/organization", response_model=Organization)
async def get_organization_settings(
    ctx: Context,
    service: Annotated[OrganizationSettingsService, Depends(get_settings_service)],
) -> Organization:
    try:
        return await service.get_settings(ctx)
    except DomainError as e:
        raise to_http_exception(e) from e


@router.patch("/settings/organization", response_model=Organization)
async def update_organization_settings(
    update: OrganizationSettingsUpdate,
    ctx: Context,
    service: Annotated[OrganizationSettingsService, Depends(get_settings_service)],
) -> Organization:
    """Admin only. Fields left out of the body are kept."""
    try:
        return await service.update_settings(ctx, update)
    except DomainError as e:
        raise to_http_exception(e) from e
