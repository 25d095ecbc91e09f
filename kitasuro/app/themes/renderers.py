"""Theme renderers.

Each theme turns the same ItineraryView into an ordered list of page
sections. Sections carry a stable anchor id so comments pinned to a sticky
element (the safari-portal nav, the minimalistic summary sidebar) can be
found again after a re-layout.
"""

import logging
from typing import Callable

from pydantic import BaseModel, Field

from kitasuro.app.models.plans import DEFAULT_THEME
from kitasuro.app.themes.view import DayView, ItineraryView

logger = logging.getLogger(__name__)


class Section(BaseModel):
    """One block of a rendered proposal page."""

    anchor_id: str
    heading: str
    lines: list[str] = Field(default_factory=list)
    sticky: bool = False


class RenderedProposal(BaseModel):
    theme: str
    title: str
    primary_color: str | None = None
    sections: list[Section]

    def sticky_anchor_ids(self) -> list[str]:
        return [section.anchor_id for section in self.sections if section.sticky]


Renderer = Callable[[ItineraryView], list[Section]]


def _money(amount: float) -> str:
    return f"${amount:,.0f}"


def _duration(view: ItineraryView) -> str:
    return f"{view.duration_days} day{'' if view.duration_days == 1 else 's'}"


def _day_lines(day: DayView) -> list[str]:
    lines = []
    if day.travel_date:
        lines.append(day.travel_date.strftime("%a %d %b %Y"))
    if day.description:
        lines.append(day.description)
    for activity in day.activities:
        label = f"{activity.moment.value}: {activity.name}"
        if activity.is_optional:
            label += " (optional)"
        lines.append(label)
    lines.append(f"Meals: {day.meals}")
    return lines


def _day_sections(view: ItineraryView, heading: Callable[[DayView], str]) -> list[Section]:
    return [
        Section(anchor_id=f"day-{day.day_number}", heading=heading(day), lines=_day_lines(day))
        for day in view.days
    ]


def _pricing_lines(view: ItineraryView) -> list[str]:
    lines = [f"Total: {_money(view.pricing.total)}"]
    if view.pricing.travelers:
        lines.append(f"Per person: {_money(view.pricing.per_person)}")
    lines.extend(f"Extra: {name}" for name in view.pricing.selected_extras)
    return lines


def _stays_lines(view: ItineraryView) -> list[str]:
    return [str(accommodation_id) for accommodation_id in view.accommodation_ids]


def render_minimalistic(view: ItineraryView) -> list[Section]:
    sections = [
        Section(
            anchor_id="hero",
            heading=view.title,
            lines=[line for line in (view.route, _duration(view)) if line],
        ),
        Section(anchor_id="journey", heading="The Journey"),
        *_day_sections(view, lambda day: f"Day {day.day_number}: {day.title}"),
    ]
    if view.accommodation_ids:
        sections.append(Section(anchor_id="stays", heading="Your Stays", lines=_stays_lines(view)))

    sections.append(
        Section(
            anchor_id="trip-summary",
            heading="Trip Summary",
            lines=[
                _duration(view),
                *([view.route] if view.route else []),
                *_pricing_lines(view),
            ],
            sticky=True,
        )
    )
    return sections


def render_safari_portal(view: ItineraryView) -> list[Section]:
    body = [
        Section(
            anchor_id="overview",
            heading=view.title,
            lines=[f"Prepared by {view.agency_name}", _duration(view)],
        ),
        Section(anchor_id="itinerary", heading="Itinerary"),
        *_day_sections(view, lambda day: f"Day {day.day_number} - {day.title}"),
        Section(anchor_id="stays", heading="Stays", lines=_stays_lines(view)),
        Section(anchor_id="map", heading="Map", lines=[view.route] if view.route else []),
        Section(
            anchor_id="details",
            heading="Details",
            lines=[
                *_pricing_lines(view),
                *(f"Included: {item}" for item in view.included),
                *(f"Excluded: {item}" for item in view.excluded),
            ],
        ),
    ]
    nav = Section(
        anchor_id="section-nav",
        heading=view.agency_name,
        lines=["Overview", "Itinerary", "Stays", "Map", "Details"],
        sticky=True,
    )
    return [nav, *body]


def render_kudu(view: ItineraryView) -> list[Section]:
    sections = [
        Section(
            anchor_id="hero",
            heading=view.title,
            lines=[line for line in (view.route, _duration(view)) if line],
        ),
        Section(anchor_id="expedition", heading="The Expedition"),
        *_day_sections(
            view, lambda day: f"Day {day.day_number:02d} - {day.title}"
        ),
        Section(
            anchor_id="investment",
            heading="The Investment",
            lines=[
                *_pricing_lines(view),
                *(f"Inclusion: {item}" for item in view.included),
                *(f"Exclusion: {item}" for item in view.excluded),
            ],
        ),
    ]
    if view.excluded:
        sections.append(
            Section(
                anchor_id="important-notes",
                heading="Important Notes",
                lines=["Items not listed as included are at the traveller's own expense."],
            )
        )
    return sections


def render_discovery(view: ItineraryView) -> list[Section]:
    return [
        Section(anchor_id="hero", heading=view.title, lines=[view.agency_name]),
        Section(
            anchor_id="introduction",
            heading="Your Journey",
            lines=[line for line in (_duration(view), view.route) if line],
        ),
        *_day_sections(view, lambda day: day.title),
        Section(anchor_id="stays", heading="Where You'll Stay", lines=_stays_lines(view)),
        Section(
            anchor_id="inclusions",
            heading="What's Included",
            lines=[*view.included, *(f"Not included: {item}" for item in view.excluded)],
        ),
        Section(anchor_id="call-to-action", heading="Ready to embark?", lines=_pricing_lines(view)),
    ]


THEME_RENDERERS: dict[str, Renderer] = {
    "minimalistic": render_minimalistic,
    "safari-portal": render_safari_portal,
    "kudu": render_kudu,
    "discovery": render_discovery,
}


def get_renderer(theme_id: str | None) -> tuple[str, Renderer]:
    """Look up a renderer, falling back to the default theme for unknown ids."""
    if theme_id in THEME_RENDERERS:
        return theme_id, THEME_RENDERERS[theme_id]
    logger.warning("[themes] unknown theme=%s, using %s", theme_id, DEFAULT_THEME)
    return DEFAULT_THEME, THEME_RENDERERS[DEFAULT_THEME]


def render_proposal(view: ItineraryView) -> RenderedProposal:
    theme, renderer = get_renderer(view.theme)
    return RenderedProposal(
        theme=theme,
        title=view.title,
        primary_color=view.primary_color,
        sections=renderer(view),
    )
