# src/infrastructure/repositories/booking_repository.py

from decimal import Decimal

from sqlalchemy.orm import Session
from sqlalchemy.orm.attributes import set_committed_value
from sqlalchemy import select, update

from src.infrastructure.db.models import Booking, CheckIn, Event
from src.domain.exceptions import NotFoundError
from src.domain.state_machine import BookingStatus


class BookingRepository:

    def __init__(self, db: Session):
        self.db = db

    def get_by_id(
        self,
        booking_id: str,
    ) -> Booking | None:

        stmt = select(Booking).where(Booking.id == booking_id)
        return self.db.execute(stmt).scalar_one_or_none()

    def lock_booking(self, booking_id: str) -> Booking:
        stmt = (
            select(Booking)
            .where(Booking.id == booking_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        booking = self.db.execute(stmt).scalar_one_or_none()

        if not booking:
            raise NotFoundError("Booking not found")

        return booking

    def create_booking(
        self,
        user_id: str,
        event_id: str,
        number_of_seats: int,
        total_price: Decimal,
    ) -> Booking:

        booking = Booking(
            user_id=user_id,
            event_id=event_id,
            number_of_seats=number_of_seats,
            total_price=total_price,
            status=BookingStatus.CONFIRMED,
        )

        self.db.add(booking)
        return booking

    def mark_cancelled(self, booking: Booking) -> bool:
        """
        Flips confirmed -> cancelled only if the row is still confirmed.
        Returns False when another transaction got there first.
        """

        stmt = (
            update(Booking)
            .where(Booking.id == booking.id)
            .where(Booking.status == BookingStatus.CONFIRMED)
            .values(status=BookingStatus.CANCELLED)
            .execution_options(synchronize_session=False)
        )
        result = self.db.execute(stmt)
        if result.rowcount != 1:
            return False

        set_committed_value(booking, "status", BookingStatus.CANCELLED)
        return True

    def list_for_user(self, user_id: str) -> list[tuple]:
        stmt = (
            select(
                Booking,
                Event.title,
                Event.event_date,
                Event.location,
                Event.image_url,
            )
            .outerjoin(Event, Event.id == Booking.event_id)
            .where(Booking.user_id == user_id)
            .order_by(Booking.created_at.desc())
        )
        return [tuple(row) for row in self.db.execute(stmt).all()]

    def get_for_user(self, booking_id: str, user_id: str) -> tuple | None:
        stmt = (
            select(
                Booking,
                Event.title,
                Event.event_date,
                Event.location,
                Event.image_url,
            )
            .outerjoin(Event, Event.id == Booking.event_id)
            .where(Booking.id == booking_id)
            .where(Booking.user_id == user_id)
        )
        row = self.db.execute(stmt).one_or_none()
        return tuple(row) if row is not None else None

    def add_checkin(self, booking: Booking, qr_code: str | None) -> CheckIn:
        checkin = CheckIn(booking_id=booking.id, qr_code=qr_code)
        self.db.add(checkin)
        return checkin

    def list_checkins(self, booking_id: str) -> list[CheckIn]:
        stmt = (
            select(CheckIn)
            .where(CheckIn.booking_id == booking_id)
            .order_by(CheckIn.checkin_time.desc())
        )
        return list(self.db.execute(stmt).scalars().all())
