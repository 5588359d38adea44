import logging
import os
import time
from typing import Callable, TypeVar

from sqlalchemy.exc import OperationalError, TimeoutError as SQLAlchemyTimeoutError
from sqlalchemy.orm import Session, sessionmaker

from src.domain.exceptions import (
    AlreadyCancelledError,
    ConflictError,
    InsufficientCapacityError,
    UnauthorizedError,
    ValidationError,
)
from src.domain.state_machine import BookingStateMachine, BookingStatus
from src.infrastructure.db.models import Booking, Event
from src.infrastructure.db.session import get_db_session
from src.infrastructure.repositories.booking_repository import BookingRepository
from src.infrastructure.repositories.event_repository import EventRepository

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SeatLedger:
    """
    Debits and credits an event's available_seats.

    Every operation runs in its own transaction with the event row locked,
    and the decrement itself is a guarded UPDATE, so concurrent callers can
    never jointly overdraw capacity. Lock timeouts, deadlocks and
    serialization failures are retried a bounded number of times.
    """

    def __init__(
        self,
        session_factory: sessionmaker,
        max_attempts: int | None = None,
        retry_delay_seconds: float | None = None,
    ):
        self.session_factory = session_factory
        self.max_attempts = max_attempts or int(os.getenv("LEDGER_MAX_ATTEMPTS", "3"))
        if retry_delay_seconds is None:
            retry_delay_seconds = float(os.getenv("LEDGER_RETRY_DELAY", "0.05"))
        self.retry_delay_seconds = retry_delay_seconds

    def debit(self, event_id: str, requested_seats: int, user_id: str) -> Booking:
        if requested_seats < 1:
            raise ValidationError("At least 1 seat required")

        def _debit(db: Session) -> Booking:
            events = EventRepository(db)
            event = events.lock_event(event_id)

            if event.available_seats < requested_seats:
                raise InsufficientCapacityError(event.available_seats)

            if not events.apply_delta(event_id, -requested_seats):
                # Lost the race on a backend that ignores FOR UPDATE.
                raise InsufficientCapacityError(events.current_availability(event_id))

            booking = BookingRepository(db).create_booking(
                user_id=user_id,
                event_id=event_id,
                number_of_seats=requested_seats,
                total_price=event.ticket_price * requested_seats,
            )
            db.flush()
            db.refresh(booking)
            return booking

        try:
            booking = self._run("debit", _debit)
        except InsufficientCapacityError as exc:
            logger.info(
                "Debit rejected. event_id=%s requested=%s available=%s",
                event_id,
                requested_seats,
                exc.available,
            )
            raise

        logger.info(
            "Seats debited. booking_id=%s event_id=%s seats=%s user_id=%s",
            booking.id,
            event_id,
            requested_seats,
            user_id,
        )
        return booking

    def credit(self, booking_id: str, requesting_user_id: str) -> Booking:
        def _credit(db: Session) -> Booking:
            bookings = BookingRepository(db)
            events = EventRepository(db)
            booking = bookings.lock_booking(booking_id)

            if booking.user_id != requesting_user_id:
                raise UnauthorizedError("Unauthorized")

            if booking.status == BookingStatus.CANCELLED:
                raise AlreadyCancelledError(booking.id)

            BookingStateMachine.validate_transition(booking.status, BookingStatus.CANCELLED)
            events.lock_event(booking.event_id)

            if not bookings.mark_cancelled(booking):
                raise AlreadyCancelledError(booking.id)

            if not events.apply_delta(booking.event_id, booking.number_of_seats):
                raise ConflictError(
                    f"Releasing {booking.number_of_seats} seats would exceed capacity"
                )

            db.flush()
            db.refresh(booking)
            return booking

        booking = self._run("credit", _credit)
        logger.info(
            "Seats credited. booking_id=%s event_id=%s seats=%s",
            booking.id,
            booking.event_id,
            booking.number_of_seats,
        )
        return booking

    @staticmethod
    def rebalance(db: Session, event: Event, new_total_seats: int) -> Event:
        """
        Applies an organizer's capacity edit to a locked event row.
        Keeps booked seats intact and refuses to shrink below them.
        """
        if new_total_seats < 0:
            raise ValidationError("total_seats must be zero or greater")

        events = EventRepository(db)
        db.flush()
        if not events.set_capacity(event.id, new_total_seats):
            booked = events.confirmed_seat_count(event.id)
            raise ValidationError(
                f"total_seats cannot be lower than seats already booked ({booked})"
            )

        db.refresh(event)
        return event

    def _run(self, operation: str, work: Callable[[Session], T]) -> T:
        for attempt in range(1, self.max_attempts + 1):
            try:
                with get_db_session(self.session_factory) as db:
                    return work(db)
            except (OperationalError, SQLAlchemyTimeoutError) as exc:
                if attempt == self.max_attempts:
                    logger.error(
                        "Ledger %s failed after %s attempts: %s",
                        operation,
                        self.max_attempts,
                        exc,
                    )
                    raise ConflictError(
                        "Seat inventory is busy. Please retry."
                    ) from exc
                logger.warning(
                    "Ledger %s conflicted (attempt %s/%s). Retrying in %.2f seconds...",
                    operation,
                    attempt,
                    self.max_attempts,
                    self.retry_delay_seconds * attempt,
                )
                time.sleep(self.retry_delay_seconds * attempt)

        raise ConflictError("Seat inventory is busy. Please retry.")
