# src/infrastructure/repositories/event_repository.py

from datetime import datetime

from sqlalchemy.orm import Session
from sqlalchemy import select, update, delete, func, literal, or_

from src.infrastructure.db.models import Booking, CheckIn, Event, Payment, User
from src.domain.exceptions import NotFoundError
from src.domain.state_machine import BookingStatus


class EventRepository:

    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, event_id: str) -> Event | None:
        stmt = select(Event).where(Event.id == event_id)
        return self.db.execute(stmt).scalar_one_or_none()

    def lock_event(self, event_id: str) -> Event:
        """
        SELECT ... FOR UPDATE
        Holds the event row for the rest of the transaction.
        """

        stmt = (
            select(Event)
            .where(Event.id == event_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )

        event = self.db.execute(stmt).scalar_one_or_none()

        if not event:
            raise NotFoundError("Event not found")

        return event

    def current_availability(self, event_id: str) -> int:
        stmt = select(Event.available_seats).where(Event.id == event_id)
        return self.db.execute(stmt).scalar_one()

    def apply_delta(self, event_id: str, delta: int) -> bool:
        """
        Moves available_seats by delta in one guarded statement.
        Returns False when the result would leave [0, total_seats].
        """

        stmt = (
            update(Event)
            .where(Event.id == event_id)
            .where(Event.available_seats + delta >= 0)
            .where(Event.available_seats + delta <= Event.total_seats)
            .values(available_seats=Event.available_seats + delta)
            .execution_options(synchronize_session=False)
        )
        result = self.db.execute(stmt)
        return result.rowcount == 1

    def set_capacity(self, event_id: str, total_seats: int) -> bool:
        """
        Sets total_seats and recomputes available_seats from confirmed
        bookings in one statement. Returns False when the new total is
        below the seats already booked.
        """

        booked = (
            select(func.coalesce(func.sum(Booking.number_of_seats), 0))
            .where(Booking.event_id == event_id)
            .where(Booking.status == BookingStatus.CONFIRMED)
            .scalar_subquery()
        )
        stmt = (
            update(Event)
            .where(Event.id == event_id)
            .where(booked <= total_seats)
            .values(total_seats=total_seats, available_seats=literal(total_seats) - booked)
            .execution_options(synchronize_session=False)
        )
        result = self.db.execute(stmt)
        return result.rowcount == 1

    def confirmed_seat_count(self, event_id: str) -> int:
        stmt = (
            select(func.coalesce(func.sum(Booking.number_of_seats), 0))
            .where(Booking.event_id == event_id)
            .where(Booking.status == BookingStatus.CONFIRMED)
        )
        return int(self.db.execute(stmt).scalar_one())

    def create_event(
        self,
        organizer_id: str,
        title: str,
        location: str,
        event_date: datetime,
        ticket_price,
        total_seats: int,
        description: str | None = None,
        category: str | None = None,
        image_url: str | None = None,
    ) -> Event:
        event = Event(
            organizer_id=organizer_id,
            title=title,
            description=description,
            location=location,
            event_date=event_date,
            category=category,
            image_url=image_url,
            ticket_price=ticket_price,
            total_seats=total_seats,
            available_seats=total_seats,
        )
        self.db.add(event)
        return event

    def get_with_organizer(self, event_id: str) -> tuple[Event, str | None, str | None] | None:
        stmt = (
            select(Event, User.name, User.email)
            .outerjoin(User, User.id == Event.organizer_id)
            .where(Event.id == event_id)
        )
        row = self.db.execute(stmt).one_or_none()
        if row is None:
            return None
        return row[0], row[1], row[2]

    def search_upcoming(
        self,
        now: datetime,
        category: str | None = None,
        search: str | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[Event], int]:
        filters = [Event.event_date >= now]
        if category:
            filters.append(Event.category == category)
        if search:
            pattern = f"%{search}%"
            filters.append(
                or_(Event.title.ilike(pattern), Event.description.ilike(pattern))
            )

        count_stmt = select(func.count()).select_from(Event).where(*filters)
        total = self.db.execute(count_stmt).scalar_one()

        stmt = (
            select(Event)
            .where(*filters)
            .order_by(Event.event_date)
            .limit(limit)
            .offset(offset)
        )
        events = list(self.db.execute(stmt).scalars().all())
        return events, total

    def delete_event(self, event_id: str) -> None:
        # Only cancelled bookings remain at this point; drop their dependents first.
        booking_ids = select(Booking.id).where(Booking.event_id == event_id)
        self.db.execute(delete(CheckIn).where(CheckIn.booking_id.in_(booking_ids)))
        self.db.execute(delete(Payment).where(Payment.booking_id.in_(booking_ids)))
        self.db.execute(delete(Booking).where(Booking.event_id == event_id))
        self.db.execute(delete(Event).where(Event.id == event_id))
