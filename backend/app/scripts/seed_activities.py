"""
Seed script to populate the activities collection with demo data.
Usage: python -m app.scripts.seed_activities
"""
import asyncio

from app.database import init_db
from app.models import Activity

DEMO_ACTIVITIES = [
    dict(
        name="Morning Safari",
        description="Three hour jeep safari through the northern plains",
        location="North Gate",
        duration="3 hours",
        activity_type="Safari",
        price=45.0,
        capacity=20,
        tour_guide_available=True,
        min_participants_for_guide=2,
    ),
    dict(
        name="Wetland Bird Watching",
        description="Guided walk along the wetland boardwalk",
        location="Lake Hide",
        duration="2 hours",
        activity_type="Bird Watching",
        price=15.0,
        capacity=12,
        available_days=[0, 6],  # weekends only
        min_advance_booking_days=2,
    ),
    dict(
        name="Night Photography",
        description="Long-exposure photography session at the watering hole",
        location="Waterhole Blind",
        duration="4 hours",
        activity_type="Photography",
        price=60.0,
        capacity=8,
        max_bookings_per_user=1,
        tour_guide_available=False,
    ),
]


async def main() -> None:
    await init_db()
    for data in DEMO_ACTIVITIES:
        existing = await Activity.find_one(Activity.name == data["name"])
        if existing:
            print(f"[SKIP] Activity '{data['name']}' already exists")
            continue
        activity = Activity(**data)
        await activity.insert()
        print(f"[OK] Created activity '{activity.name}' ({activity.id})")


if __name__ == "__main__":
    asyncio.run(main())
