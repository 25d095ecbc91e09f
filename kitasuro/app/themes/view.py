"""ItineraryView - the single data contract every theme renders."""

from datetime import date, timedelta
from uuid import UUID

from pydantic import BaseModel, Field

from kitasuro.app.models.common import ProposalStatus
from kitasuro.app.models.organization import Organization
from kitasuro.app.models.proposal import DayActivity, Meals, Proposal


class DayView(BaseModel):
    """One itinerary day as shown to the client."""

    day_number: int
    travel_date: date | None = None
    title: str
    description: str | None = None
    destination_id: UUID | None = None
    activities: list[DayActivity] = Field(default_factory=list)
    accommodation_ids: list[UUID] = Field(default_factory=list)
    meals: str


class PricingView(BaseModel):
    """Derived pricing figures."""

    total: float
    per_person: float
    travelers: int
    selected_extras: list[str] = Field(default_factory=list)


class ItineraryView(BaseModel):
    """Proposal flattened for presentation."""

    proposal_id: str
    title: str
    agency_name: str
    primary_color: str | None = None
    logo_url: str | None = None
    theme: str
    status: ProposalStatus
    duration_days: int
    route: str | None = None
    start_date: date | None = None
    days: list[DayView]
    accommodation_ids: list[UUID]
    pricing: PricingView
    included: list[str]
    excluded: list[str]


def meals_label(meals: Meals | None) -> str:
    """Human label such as "Breakfast, Lunch & Dinner"."""
    if meals is None:
        return "No meals included"

    names = [
        label
        for label, included in (
            ("Breakfast", meals.breakfast),
            ("Lunch", meals.lunch),
            ("Dinner", meals.dinner),
        )
        if included
    ]
    if not names:
        return "No meals included"
    if len(names) == 1:
        return names[0]
    return f"{', '.join(names[:-1])} & {names[-1]}"


def build_itinerary_view(proposal: Proposal, organization: Organization) -> ItineraryView:
    """Project a proposal and its agency into the view contract."""
    days = [
        DayView(
            day_number=day.day_number,
            travel_date=(
                proposal.start_date + timedelta(days=day.day_number - 1)
                if proposal.start_date
                else None
            ),
            title=day.title,
            description=day.description,
            destination_id=day.destination_id,
            activities=day.activities,
            accommodation_ids=day.accommodation_ids,
            meals=meals_label(day.meals),
        )
        for day in proposal.days
    ]

    # Stays in order of first night, without repeats
    accommodation_ids: list[UUID] = []
    for day in proposal.days:
        for accommodation_id in day.accommodation_ids:
            if accommodation_id not in accommodation_ids:
                accommodation_ids.append(accommodation_id)

    travelers = sum(row.count for row in proposal.pricing_rows)
    total = proposal.total_price

    route = None
    if proposal.start_city and proposal.end_city:
        route = f"{proposal.start_city} to {proposal.end_city}"
    elif proposal.start_city or proposal.end_city:
        route = proposal.start_city or proposal.end_city

    return ItineraryView(
        proposal_id=proposal.proposal_id,
        title=proposal.display_title,
        agency_name=organization.name,
        primary_color=organization.primary_color,
        logo_url=organization.logo_url,
        theme=proposal.theme,
        status=proposal.status,
        duration_days=len(days),
        route=route,
        start_date=proposal.start_date,
        days=days,
        accommodation_ids=accommodation_ids,
        pricing=PricingView(
            total=total,
            per_person=total / travelers if travelers else total,
            travelers=travelers,
            selected_extras=[extra.name for extra in proposal.extras if extra.selected],
        ),
        included=proposal.inclusions,
        excluded=proposal.exclusions,
    )
