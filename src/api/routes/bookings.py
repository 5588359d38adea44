import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from src.api.dependencies import get_current_user, get_db, get_ledger
from src.api.schemas.schemas import (
    BookingCreatedResponse,
    BookingEnvelope,
    BookingListResponse,
    BookingRequest,
    BookingResponse,
    CheckInCreatedResponse,
    CheckInListResponse,
    CheckInRequest,
    CheckInResponse,
    MessageResponse,
)
from src.application.seat_ledger import SeatLedger
from src.domain.exceptions import (
    AlreadyCancelledError,
    ConflictError,
    InsufficientCapacityError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from src.domain.roles import CurrentUser
from src.domain.state_machine import BookingStatus
from src.infrastructure.db.models import Booking, CheckIn
from src.infrastructure.repositories.booking_repository import BookingRepository


router = APIRouter(prefix="/api/bookings", tags=["bookings"])
logger = logging.getLogger(__name__)


def _booking_response(
    booking: Booking,
    title: str | None = None,
    event_date=None,
    location: str | None = None,
    image_url: str | None = None,
) -> BookingResponse:
    return BookingResponse(
        id=booking.id,
        user_id=booking.user_id,
        event_id=booking.event_id,
        number_of_seats=booking.number_of_seats,
        total_price=booking.total_price,
        status=booking.status.value,
        created_at=booking.created_at.isoformat() if booking.created_at else None,
        title=title,
        event_date=event_date.isoformat() if event_date else None,
        location=location,
        image_url=image_url,
    )


def _checkin_response(checkin: CheckIn) -> CheckInResponse:
    return CheckInResponse(
        id=checkin.id,
        booking_id=checkin.booking_id,
        qr_code=checkin.qr_code,
        checkin_time=checkin.checkin_time.isoformat(),
    )


@router.post("", response_model=BookingCreatedResponse, status_code=status.HTTP_201_CREATED)
def create_booking(
    request: BookingRequest,
    current_user: CurrentUser = Depends(get_current_user),
    ledger: SeatLedger = Depends(get_ledger),
):
    try:
        booking = ledger.debit(
            event_id=request.event_id,
            requested_seats=request.number_of_seats,
            user_id=current_user.user_id,
        )
    except (ValidationError, InsufficientCapacityError) as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except NotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        ) from exc
    except ConflictError as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(exc),
        ) from exc

    return BookingCreatedResponse(
        message="Booking created successfully",
        booking=_booking_response(booking),
    )


@router.get("", response_model=BookingListResponse)
def list_bookings(
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    rows = BookingRepository(db).list_for_user(current_user.user_id)
    return BookingListResponse(
        bookings=[_booking_response(*row) for row in rows],
    )


@router.get("/{booking_id}", response_model=BookingEnvelope)
def get_booking(
    booking_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    row = BookingRepository(db).get_for_user(booking_id, current_user.user_id)
    if not row:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Booking not found",
        )
    return BookingEnvelope(booking=_booking_response(*row))


@router.put("/{booking_id}/cancel", response_model=MessageResponse)
def cancel_booking(
    booking_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    ledger: SeatLedger = Depends(get_ledger),
):
    try:
        ledger.credit(booking_id=booking_id, requesting_user_id=current_user.user_id)
    except NotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        ) from exc
    except UnauthorizedError as exc:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=str(exc),
        ) from exc
    except AlreadyCancelledError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except ConflictError as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(exc),
        ) from exc

    return MessageResponse(message="Booking cancelled successfully")


@router.post(
    "/{booking_id}/checkin",
    response_model=CheckInCreatedResponse,
    status_code=status.HTTP_201_CREATED,
)
def check_in(
    booking_id: str,
    request: CheckInRequest,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    repo = BookingRepository(db)
    try:
        booking = repo.lock_booking(booking_id)
    except NotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        ) from exc

    if booking.user_id != current_user.user_id:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Booking not found",
        )

    if booking.status != BookingStatus.CONFIRMED:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cannot check in to a cancelled booking",
        )

    checkin = repo.add_checkin(booking, request.qr_code)
    db.flush()
    db.refresh(checkin)

    logger.info("Checked in. booking_id=%s checkin_id=%s", booking.id, checkin.id)
    return CheckInCreatedResponse(
        message="Check-in successful",
        checkin=_checkin_response(checkin),
    )


@router.get("/{booking_id}/checkins", response_model=CheckInListResponse)
def list_checkins(
    booking_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    repo = BookingRepository(db)
    booking = repo.get_by_id(booking_id)
    if not booking:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Booking not found",
        )

    if booking.user_id != current_user.user_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Unauthorized",
        )

    return CheckInListResponse(
        checkins=[_checkin_response(item) for item in repo.list_checkins(booking.id)],
    )
