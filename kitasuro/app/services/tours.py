"""Tour service - org tours, shared templates and cloning."""

import uuid
from datetime import datetime, timezone
from typing import Any
from uuid import UUID

from kitasuro.app.db.context import RequestContext
from kitasuro.app.db.repositories import TourRepository
from kitasuro.app.errors import FormValidationError, NotFoundError, UnauthorizedError
from kitasuro.app.models.tour import Tour, TourDay, TourDayForm, TourListItem, parse_tour_form
from kitasuro.app.utils.logging import event_logger


def validate_day_numbers(days: list[TourDayForm]) -> None:
    """Day numbers must be unique positive integers forming 1..N.

    Raises:
        FormValidationError: On the first rule that fails
    """
    numbers = [day.day_number for day in days]

    if len(set(numbers)) != len(numbers):
        raise FormValidationError({"days": ["Duplicate day numbers are not allowed"]})
    if any(n < 1 for n in numbers):
        raise FormValidationError({"days": ["Day numbers must be positive integers"]})
    if sorted(numbers) != list(range(1, len(numbers) + 1)):
        raise FormValidationError({"days": ["Day numbers must be sequential starting from 1"]})


def to_list_item(tour: Tour) -> TourListItem:
    return TourListItem(
        tour_id=tour.tour_id,
        tour_name=tour.tour_name,
        overview=tour.overview,
        country=tour.country,
        number_of_days=tour.number_of_days,
        pricing=tour.pricing,
        tags=tour.tags,
    )


class TourService:
    """Operations on tours owned by an organization."""

    def __init__(self, tours: TourRepository) -> None:
        self._tours = tours

    async def list_tours(self, ctx: RequestContext) -> list[TourListItem]:
        return [to_list_item(tour) for tour in await self._tours.list_tours(ctx)]

    async def list_shared_templates(self, limit: int = 50) -> list[TourListItem]:
        return [to_list_item(tour) for tour in await self._tours.list_shared_templates(limit)]

    async def count_tours(self, ctx: RequestContext) -> int:
        return await self._tours.count_tours(ctx.org_id)

    async def get_tour(self, tour_id: UUID, ctx: RequestContext) -> Tour:
        """Load a tour of the caller's organization.

        Raises:
            NotFoundError: If missing or owned by another organization
        """
        tour = await self._tours.get_tour(tour_id)
        if tour is None or tour.org_id != ctx.org_id:
            raise NotFoundError("Tour not found")
        return tour

    async def update_tour(
        self, tour_id: UUID, form_data: dict[str, Any], ctx: RequestContext
    ) -> Tour:
        """Validate the editor form and replace the tour and its days.

        Raises:
            FormValidationError: If the form or day numbering is invalid
            NotFoundError: If the tour is not in the caller's organization
        """
        form = parse_tour_form(form_data)
        validate_day_numbers(form.days)
        existing = await self.get_tour(tour_id, ctx)

        days = sorted(form.days, key=lambda day: day.day_number)
        updated = existing.model_copy(
            update={
                "tour_name": form.tour_name.strip(),
                "overview": form.overview.strip(),
                "pricing": form.price_value,
                "country": form.country.strip(),
                "tags": form.tags,
                "number_of_days": len(days),
                "days": [
                    TourDay(
                        day_number=day.day_number,
                        title=day.title,
                        overview=day.overview,
                        destination_id=day.destination_id,
                        accommodation_id=day.accommodation_id,
                    )
                    for day in days
                ],
                "updated_at": datetime.now(timezone.utc),
            }
        )
        await self._tours.save_tour(updated)

        event_logger.log_event("tour_updated", "success", ctx=ctx, tour_id=str(tour_id))
        return updated

    async def clone_template(self, template_id: UUID, ctx: RequestContext) -> Tour:
        """Copy a shared template (or an own tour) into the caller's organization.

        Raises:
            NotFoundError: If the template does not exist
            UnauthorizedError: If the template belongs to another organization
        """
        template = await self._tours.get_tour(template_id)
        if template is None:
            raise NotFoundError("Template not found")
        if template.org_id is not None and template.org_id != ctx.org_id:
            raise UnauthorizedError("Unauthorized to clone this template")

        now = datetime.now(timezone.utc)
        clone = template.model_copy(
            update={
                "tour_id": uuid.uuid4(),
                "org_id": ctx.org_id,
                "cloned_from_id": template.tour_id,
                "days": [day.model_copy() for day in template.days],
                "created_at": now,
                "updated_at": now,
            }
        )
        await self._tours.save_tour(clone)

        event_logger.log_event(
            "tour_cloned",
            "success",
            ctx=ctx,
            template_id=str(template_id),
            tour_id=str(clone.tour_id),
        )
        return clone
