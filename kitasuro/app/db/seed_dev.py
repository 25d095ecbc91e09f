"""Dev seeding helper for stub authentication."""

import asyncio
import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from kitasuro.app.api.auth import DEV_ORG_ID, DEV_USER_ID
from kitasuro.app.db.engine import create_schema, get_async_engine
from kitasuro.app.db.models import Org, Tour, TourDay, User

DEV_TEMPLATE_ID = uuid.UUID("00000000-0000-0000-0000-0000000000a1")

_TEMPLATE_DAYS = [
    ("Arrival in Arusha", "Meet and greet, transfer to the lodge."),
    ("Tarangire National Park", "Full day game drive among the baobabs."),
    ("Ngorongoro Crater", "Descend into the crater for a day of game viewing."),
    ("Departure", "Transfer to Kilimanjaro International Airport."),
]


async def seed_dev_data(engine: AsyncEngine | None = None) -> None:
    """Seed the dev org, its admin, and one shared template tour.

    This function is idempotent - safe to run multiple times.
    """
    engine = engine or get_async_engine()
    await create_schema(engine)

    async with AsyncSession(engine, expire_on_commit=False) as session:
        org = await session.scalar(select(Org).where(Org.org_id == DEV_ORG_ID))
        if not org:
            print(f"Creating dev org with id {DEV_ORG_ID}...")
            session.add(Org(org_id=DEV_ORG_ID, name="Dev Agency", plan_tier="pro"))
        else:
            print(f"Dev org already exists: {org.name}")

        user = await session.scalar(select(User).where(User.user_id == DEV_USER_ID))
        if not user:
            print(f"Creating dev admin with id {DEV_USER_ID}...")
            session.add(
                User(
                    user_id=DEV_USER_ID,
                    org_id=DEV_ORG_ID,
                    email="dev@example.com",
                    name="Dev Admin",
                    role="admin",
                )
            )
        else:
            print(f"Dev admin already exists: {user.email}")

        template = await session.scalar(select(Tour).where(Tour.tour_id == DEV_TEMPLATE_ID))
        if not template:
            print("Creating shared template tour...")
            session.add(
                Tour(
                    tour_id=DEV_TEMPLATE_ID,
                    org_id=None,
                    tour_name="Northern Tanzania Classic",
                    overview="Four days through the highlights of the northern circuit.",
                    pricing=2450.0,
                    country="Tanzania",
                    tags=["safari", "wildlife"],
                    number_of_days=len(_TEMPLATE_DAYS),
                    days=[
                        TourDay(day_number=n, title=title, overview=overview)
                        for n, (title, overview) in enumerate(_TEMPLATE_DAYS, start=1)
                    ],
                )
            )

        await session.commit()
        print("Dev seeding complete")


if __name__ == "__main__":
    asyncio.run(seed_dev_data())
