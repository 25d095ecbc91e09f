"""Tour models - reusable base itineraries that proposals are cloned from."""

import math
from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field, ValidationError, field_validator

from kitasuro.app.errors import FormValidationError


class TourDay(BaseModel):
    """One day of a tour template."""

    day_number: int = Field(..., ge=1)
    title: str
    overview: str | None = None
    destination_id: UUID | None = None
    accommodation_id: UUID | None = None


class Tour(BaseModel):
    """Tour or shared template (org_id is None for shared templates)."""

    tour_id: UUID
    org_id: UUID | None
    tour_name: str
    overview: str
    pricing: float
    country: str
    tags: list[str]
    number_of_days: int
    cloned_from_id: UUID | None = None
    days: list[TourDay] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


class TourDayForm(BaseModel):
    """Day row of the tour editor form."""

    day_number: int
    title: str = Field(..., max_length=255)
    overview: str | None = Field(None, max_length=5000)
    destination_id: UUID | None = None
    accommodation_id: UUID | None = None

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        """Day title is required."""
        if not v.strip():
            raise ValueError("Day title is required")
        return v.strip()


class TourForm(BaseModel):
    """Tour editor form. Validated before anything is persisted."""

    tour_name: str = Field(..., min_length=2, max_length=255)
    overview: str = Field(..., min_length=10, max_length=5000)
    pricing: str
    country: str = Field(..., min_length=2)
    tags: list[str] = Field(..., min_length=1, max_length=20)
    days: list[TourDayForm] = Field(..., min_length=1, max_length=60)

    @field_validator("pricing")
    @classmethod
    def validate_pricing(cls, v: str) -> str:
        """Price must parse as a non-negative number."""
        try:
            value = float(v)
        except ValueError as e:
            raise ValueError("Pricing must be a number") from e
        if not math.isfinite(value):
            raise ValueError("Pricing must be a number")
        if value < 0:
            raise ValueError("Pricing must not be negative")
        return v

    @field_validator("tags")
    @classmethod
    def validate_tags(cls, v: list[str]) -> list[str]:
        """Tags are non-blank and at most 100 characters."""
        if any(len(tag) > 100 for tag in v):
            raise ValueError("Tags must be at most 100 characters")
        tags = [tag.strip() for tag in v if tag.strip()]
        if not tags:
            raise ValueError("At least one tag is required")
        return tags

    @property
    def price_value(self) -> float:
        """Parsed price."""
        return float(self.pricing)


def parse_tour_form(data: dict[str, Any]) -> TourForm:
    """Validate raw form data, collecting every error by field path.

    Raises:
        FormValidationError: If any field is invalid
    """
    try:
        return TourForm.model_validate(data)
    except ValidationError as e:
        field_errors: dict[str, list[str]] = {}
        for error in e.errors():
            field = ".".join(str(part) for part in error["loc"]) or "form"
            message = str(error["msg"]).removeprefix("Value error, ")
            field_errors.setdefault(field, []).append(message)
        raise FormValidationError(field_errors) from e


class TourListItem(BaseModel):
    """Tour row for listings and the template browser."""

    tour_id: UUID
    tour_name: str
    overview: str
    country: str
    number_of_days: int
    pricing: float
    tags: list[str]
