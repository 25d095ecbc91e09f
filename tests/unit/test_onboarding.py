"""Tests for the onboarding checklist and its completion latch."""

import uuid
from datetime import datetime, timezone

import pytest

from kitasuro.app.db.context import RequestContext
from kitasuro.app.db.inmemory import InMemoryOrganizationRepository, InMemoryTourRepository
from kitasuro.app.errors import NotFoundError
from kitasuro.app.models.organization import Organization
from kitasuro.app.models.tour import Tour
from kitasuro.app.services.onboarding import (
    OnboardingService,
    compute_onboarding_status,
    is_default_organization_name,
)

ORG_ID = uuid.uuid4()
CTX = RequestContext(org_id=ORG_ID, user_id=uuid.uuid4())


def organization(
    name: str = "Kilima Expeditions", email: str | None = "hi@kilima.example"
) -> Organization:
    return Organization(
        org_id=ORG_ID,
        name=name,
        notification_email=email,
        created_at=datetime.now(timezone.utc),
    )


def tour(org_id: uuid.UUID | None = ORG_ID) -> Tour:
    now = datetime.now(timezone.utc)
    return Tour(
        tour_id=uuid.uuid4(),
        org_id=org_id,
        tour_name="Kilimanjaro Lemosho",
        overview="Eight days on the Lemosho route.",
        pricing=3200,
        country="Tanzania",
        tags=["trekking"],
        number_of_days=8,
        created_at=now,
        updated_at=now,
    )


@pytest.mark.parametrize(
    "name,expected",
    [
        ("Jane's Agency", True),
        ("User's Agency", True),
        ("", True),
        (None, True),
        ("Kilima Expeditions", False),
        ("Agency of Jane", False),
    ],
)
def test_default_organization_names(name: str | None, expected: bool) -> None:
    assert is_default_organization_name(name) is expected


def test_complete_only_when_all_three_steps_hold() -> None:
    assert compute_onboarding_status(organization(), 1).is_complete

    assert not compute_onboarding_status(organization(name="Jane's Agency"), 1).is_complete
    assert not compute_onboarding_status(organization(email=None), 1).is_complete
    assert not compute_onboarding_status(organization(), 0).is_complete


def test_status_reports_each_step() -> None:
    status = compute_onboarding_status(organization(email=None), 2)

    assert status.completed_count == 2
    assert status.steps.organization_name.complete
    assert status.steps.organization_name.current == "Kilima Expeditions"
    assert not status.steps.notification_email.complete
    assert status.steps.has_tours.current == "2 tours"
    assert status.steps.tour_count == 2


def test_status_without_organization() -> None:
    status = compute_onboarding_status(None, 0)

    assert not status.is_complete
    assert status.completed_count == 0


@pytest.mark.asyncio
async def test_refresh_latches_completion() -> None:
    organizations = InMemoryOrganizationRepository([organization()])
    tours = InMemoryTourRepository()
    service = OnboardingService(organizations, tours)

    first = await service.refresh_onboarding(CTX)
    assert not first.is_complete
    assert first.completed_at is None

    await tours.save_tour(tour())
    completed = await service.refresh_onboarding(CTX)
    assert completed.is_complete
    assert completed.completed_at is not None

    stored = await organizations.get_organization(ORG_ID)
    assert stored is not None
    assert stored.onboarding_completed_at == completed.completed_at

    # A step regresses after completion was persisted
    await organizations.save_organization(stored.model_copy(update={"notification_email": None}))
    later = await service.refresh_onboarding(CTX)
    assert later.is_complete
    assert not later.steps.notification_email.complete
    assert later.completed_at == completed.completed_at


@pytest.mark.asyncio
async def test_shared_templates_do_not_count_as_tours() -> None:
    tours = InMemoryTourRepository()
    await tours.save_tour(tour(org_id=None))
    service = OnboardingService(InMemoryOrganizationRepository([organization()]), tours)

    status = await service.refresh_onboarding(CTX)

    assert not status.steps.has_tours.complete


@pytest.mark.asyncio
async def test_refresh_unknown_organization() -> None:
    service = OnboardingService(InMemoryOrganizationRepository(), InMemoryTourRepository())

    with pytest.raises(NotFoundError):
        await service.refresh_onboarding(CTX)
