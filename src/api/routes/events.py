from datetime import datetime, timezone
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from src.api.dependencies import get_current_user, get_db, require_organizer
from src.api.schemas.schemas import (
    EventCreate,
    EventEnvelope,
    EventListResponse,
    EventMessageResponse,
    EventResponse,
    EventUpdate,
    MessageResponse,
)
from src.application.seat_ledger import SeatLedger
from src.domain.exceptions import NotFoundError, ValidationError
from src.domain.roles import CurrentUser
from src.infrastructure.db.models import Event
from src.infrastructure.repositories.event_repository import EventRepository


router = APIRouter(prefix="/api/events", tags=["events"])
logger = logging.getLogger(__name__)

# Event columns an organizer may reset to null.
_CLEARABLE_FIELDS = {"description", "category", "image_url"}


def _parse_event_date(value: str) -> datetime:
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid event_date format. Use ISO format.",
        ) from exc

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _event_response(
    event: Event,
    organizer_name: str | None = None,
    organizer_email: str | None = None,
) -> EventResponse:
    return EventResponse(
        id=event.id,
        organizer_id=event.organizer_id,
        title=event.title,
        description=event.description,
        location=event.location,
        event_date=event.event_date.isoformat(),
        category=event.category,
        image_url=event.image_url,
        ticket_price=event.ticket_price,
        total_seats=event.total_seats,
        available_seats=event.available_seats,
        organizer_name=organizer_name,
        organizer_email=organizer_email,
    )


def _owned_event_for_update(db: Session, event_id: str, current_user: CurrentUser) -> Event:
    try:
        event = EventRepository(db).lock_event(event_id)
    except NotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        ) from exc

    if event.organizer_id != current_user.user_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Unauthorized",
        )
    return event


@router.post("", response_model=EventMessageResponse, status_code=status.HTTP_201_CREATED)
def create_event(
    request: EventCreate,
    current_user: CurrentUser = Depends(require_organizer),
    db: Session = Depends(get_db),
):
    event = EventRepository(db).create_event(
        organizer_id=current_user.user_id,
        title=request.title,
        description=request.description,
        location=request.location,
        event_date=_parse_event_date(request.event_date),
        category=request.category,
        image_url=request.image_url,
        ticket_price=request.ticket_price,
        total_seats=request.total_seats,
    )
    db.flush()

    logger.info(
        "Event created. event_id=%s organizer_id=%s total_seats=%s",
        event.id,
        current_user.user_id,
        event.total_seats,
    )
    return EventMessageResponse(
        message="Event created successfully",
        event=_event_response(event),
    )


@router.get("", response_model=EventListResponse)
def list_events(
    category: str | None = None,
    search: str | None = None,
    limit: int = 20,
    offset: int = 0,
    db: Session = Depends(get_db),
):
    safe_limit = max(1, min(limit, 100))
    safe_offset = max(0, offset)
    events, total = EventRepository(db).search_upcoming(
        now=datetime.now(timezone.utc),
        category=category,
        search=search,
        limit=safe_limit,
        offset=safe_offset,
    )
    return EventListResponse(
        events=[_event_response(event) for event in events],
        total=total,
    )


@router.get("/{event_id}", response_model=EventEnvelope)
def get_event(event_id: str, db: Session = Depends(get_db)):
    found = EventRepository(db).get_with_organizer(event_id)
    if not found:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Event not found",
        )

    event, organizer_name, organizer_email = found
    return EventEnvelope(
        event=_event_response(event, organizer_name, organizer_email),
    )


@router.put("/{event_id}", response_model=EventMessageResponse)
def update_event(
    event_id: str,
    request: EventUpdate,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    changes = {
        field: value
        for field, value in request.model_dump(exclude_unset=True).items()
        if value is not None or field in _CLEARABLE_FIELDS
    }
    event = _owned_event_for_update(db, event_id, current_user)

    if not changes:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No fields to update",
        )

    total_seats = changes.pop("total_seats", None)
    if "event_date" in changes:
        changes["event_date"] = _parse_event_date(changes["event_date"])

    for field, value in changes.items():
        setattr(event, field, value)

    if total_seats is not None:
        try:
            SeatLedger.rebalance(db, event, total_seats)
        except ValidationError as exc:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=str(exc),
            ) from exc

    db.flush()
    db.refresh(event)
    return EventMessageResponse(
        message="Event updated successfully",
        event=_event_response(event),
    )


@router.delete("/{event_id}", response_model=MessageResponse)
def delete_event(
    event_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    event = _owned_event_for_update(db, event_id, current_user)
    repo = EventRepository(db)

    booked = repo.confirmed_seat_count(event.id)
    if booked:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Event has {booked} booked seats. Cancel bookings first.",
        )

    repo.delete_event(event.id)
    logger.info("Event deleted. event_id=%s", event_id)
    return MessageResponse(message="Event deleted successfully")
