from datetime import datetime, timedelta, timezone
from decimal import Decimal

from sqlalchemy import select

from src.application.auth_service import hash_password
from src.domain.roles import UserRole
from src.infrastructure.db.models import Base, Event, User
from src.infrastructure.db.session import SessionLocal, engine
from src.infrastructure.repositories.event_repository import EventRepository
from src.infrastructure.repositories.user_repository import UserRepository

DEMO_ORGANIZER_EMAIL = "organizer@example.com"


def _dt(days_from_now: int, hour: int, minute: int) -> datetime:
    now = datetime.now(timezone.utc)
    target = now + timedelta(days=days_from_now)
    return target.replace(hour=hour, minute=minute, second=0, microsecond=0)


def seed_organizer(db) -> User:
    users = UserRepository(db)
    organizer = users.get_by_email(DEMO_ORGANIZER_EMAIL)
    if organizer:
        return organizer

    organizer = users.create_user(
        name="Demo Organizer",
        mobile="9000000001",
        role=UserRole.ORGANIZER,
        email=DEMO_ORGANIZER_EMAIL,
        password_hash=hash_password("organizer123"),
    )
    db.flush()
    return organizer


def seed_events(db, organizer: User) -> None:
    event_defs = [
        {
            "title": "Riverside Jazz Night",
            "category": "music",
            "description": "An evening of live jazz by the river.",
            "event_date": _dt(days_from_now=10, hour=19, minute=30),
            "location": "Riverside Amphitheatre",
            "ticket_price": Decimal("45.00"),
            "total_seats": 300,
        },
        {
            "title": "City Tech Meetup",
            "category": "technology",
            "description": "Talks and demos from local engineering teams.",
            "event_date": _dt(days_from_now=15, hour=18, minute=0),
            "location": "Innovation Hub, Hall B",
            "ticket_price": Decimal("0.00"),
            "total_seats": 120,
        },
    ]

    events = EventRepository(db)
    for item in event_defs:
        existing = db.execute(
            select(Event).where(Event.title == item["title"])
        ).scalar_one_or_none()
        if existing:
            # Refresh details but leave the seat counters to the ledger.
            existing.category = item["category"]
            existing.description = item["description"]
            existing.event_date = item["event_date"]
            existing.location = item["location"]
            existing.ticket_price = item["ticket_price"]
            continue

        events.create_event(organizer_id=organizer.id, **item)


def main() -> None:
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        organizer = seed_organizer(db)
        seed_events(db, organizer)
        db.commit()
        print(f"Seed complete: demo organizer {DEMO_ORGANIZER_EMAIL} and two events added.")
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    main()
