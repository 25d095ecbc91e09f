"""Proposal models - the priced multi-day itinerary aggregate."""

from collections.abc import Iterable, Sequence
from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from kitasuro.app.models.common import Moment, ProposalStatus


class PricingRow(BaseModel):
    """Traveler type x unit price x count."""

    traveler_type: str = Field(..., min_length=1, max_length=100)
    unit_price: float = Field(..., ge=0)
    count: int = Field(..., ge=0)


class Extra(BaseModel):
    """Optional add-on; only contributes to the total when selected."""

    name: str = Field(..., min_length=1, max_length=200)
    price: float = Field(..., ge=0)
    selected: bool = False


class TravelerGroup(BaseModel):
    """Head count per traveler type."""

    traveler_type: str = Field(..., min_length=1, max_length=100)
    count: int = Field(..., ge=0)


class Meals(BaseModel):
    """Meals included on a day. At most one record per day."""

    breakfast: bool = False
    lunch: bool = False
    dinner: bool = False


class DayActivity(BaseModel):
    """Activity scheduled on a day."""

    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    location: str | None = None
    moment: Moment = Moment.full_day
    is_optional: bool = False


class ProposalDay(BaseModel):
    """One day of a proposal itinerary."""

    day_number: int = Field(..., ge=1)
    title: str = Field(..., max_length=255)
    description: str | None = None
    destination_id: UUID | None = None
    accommodation_ids: list[UUID] = Field(default_factory=list)
    activities: list[DayActivity] = Field(default_factory=list)
    meals: Meals | None = None


class DayInput(BaseModel):
    """Day as submitted from the builder form; its number is reassigned on save."""

    day_number: int | None = None
    title: str | None = Field(None, max_length=255)
    description: str | None = None
    destination_id: UUID | None = None
    accommodation_ids: list[UUID] = Field(default_factory=list)
    activities: list[DayActivity] = Field(default_factory=list)
    meals: Meals | None = None


def total_price(pricing_rows: Iterable[PricingRow], extras: Iterable[Extra]) -> float:
    """Total = sum(unit_price * count) + sum(price of selected extras).

    Derived for display only; never stored.
    """
    rows_total = sum(row.unit_price * row.count for row in pricing_rows)
    extras_total = sum(extra.price for extra in extras if extra.selected)
    return rows_total + extras_total


def renumber_days(days: Sequence[DayInput]) -> list[ProposalDay]:
    """Assign day_number = index + 1 regardless of submitted numbers.

    Untitled days get a "Day N" title.
    """
    renumbered: list[ProposalDay] = []
    for index, day in enumerate(days):
        day_number = index + 1
        renumbered.append(
            ProposalDay(
                day_number=day_number,
                title=(day.title or "").strip() or f"Day {day_number}",
                description=day.description,
                destination_id=day.destination_id,
                accommodation_ids=list(day.accommodation_ids),
                activities=list(day.activities),
                meals=day.meals,
            )
        )
    return renumbered


class Proposal(BaseModel):
    """Complete proposal aggregate owned by one organization."""

    proposal_id: str
    org_id: UUID
    tour_id: UUID | None = None
    client_id: UUID | None = None
    name: str
    tour_title: str | None = None
    theme: str = "minimalistic"
    status: ProposalStatus = ProposalStatus.draft
    start_date: date | None = None
    start_city: str | None = None
    end_city: str | None = None
    days: list[ProposalDay] = Field(default_factory=list)
    pricing_rows: list[PricingRow] = Field(default_factory=list)
    extras: list[Extra] = Field(default_factory=list)
    traveler_groups: list[TravelerGroup] = Field(default_factory=list)
    inclusions: list[str] = Field(default_factory=list)
    exclusions: list[str] = Field(default_factory=list)
    version: int = Field(1, ge=1)
    confirmed_at: datetime | None = None
    confirmed_by: str | None = None
    created_at: datetime
    updated_at: datetime

    @field_validator("days")
    @classmethod
    def validate_dense_day_numbers(cls, v: list[ProposalDay]) -> list[ProposalDay]:
        """Ensure day numbers are unique and contiguous from 1."""
        numbers = sorted(day.day_number for day in v)
        if numbers != list(range(1, len(v) + 1)):
            raise ValueError("day numbers must be unique and sequential starting from 1")
        return sorted(v, key=lambda day: day.day_number)

    @property
    def total_price(self) -> float:
        """Derived total price."""
        return total_price(self.pricing_rows, self.extras)

    @property
    def display_title(self) -> str:
        """Title shown to clients."""
        return self.tour_title or self.name


class ProposalInput(BaseModel):
    """Request body for PUT /proposals/{proposal_id}.

    expected_version is the version the editor loaded; omit it when creating.
    """

    name: str = Field(..., min_length=1, max_length=255)
    tour_id: UUID | None = None
    client_id: UUID | None = None
    tour_title: str | None = Field(None, max_length=255)
    theme: str | None = None
    start_date: date | None = None
    start_city: str | None = None
    end_city: str | None = None
    days: list[DayInput] = Field(default_factory=list, max_length=60)
    pricing_rows: list[PricingRow] = Field(default_factory=list)
    extras: list[Extra] = Field(default_factory=list)
    traveler_groups: list[TravelerGroup] = Field(default_factory=list)
    inclusions: list[str] = Field(default_factory=list)
    exclusions: list[str] = Field(default_factory=list)
    expected_version: int | None = Field(None, ge=1)


class ProposalSummary(BaseModel):
    """Dashboard row for a proposal."""

    proposal_id: str
    name: str
    tour_title: str | None
    status: ProposalStatus
    start_date: date | None
    client_id: UUID | None
    assignee_ids: list[UUID]
    created_at: datetime
    updated_at: datetime
