import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from src.api.dependencies import get_current_user, get_db, require_organizer
from src.api.schemas.schemas import (
    OrganizerDetailsEnvelope,
    OrganizerDetailsRequest,
    OrganizerDetailsResponse,
    OrganizerDetailsSavedResponse,
    PaymentCreatedResponse,
    PaymentListResponse,
    PaymentRequest,
    PaymentResponse,
)
from src.domain.roles import CurrentUser
from src.infrastructure.db.models import OrganizerPaymentDetails, Payment
from src.infrastructure.repositories.booking_repository import BookingRepository
from src.infrastructure.repositories.payment_repository import PaymentRepository


router = APIRouter(prefix="/api/payments", tags=["payments"])
logger = logging.getLogger(__name__)


def _payment_response(
    payment: Payment,
    event_id: str | None = None,
    event_title: str | None = None,
) -> PaymentResponse:
    return PaymentResponse(
        id=payment.id,
        booking_id=payment.booking_id,
        amount=payment.amount,
        payment_method=payment.payment_method,
        transaction_id=payment.transaction_id,
        status=payment.status,
        created_at=payment.created_at.isoformat() if payment.created_at else None,
        event_id=event_id,
        event_title=event_title,
    )


def _details_response(details: OrganizerPaymentDetails) -> OrganizerDetailsResponse:
    return OrganizerDetailsResponse(
        organizer_id=details.organizer_id,
        account_holder_name=details.account_holder_name,
        account_number=details.account_number,
        bank_name=details.bank_name,
        ifsc_code=details.ifsc_code,
    )


@router.post("", response_model=PaymentCreatedResponse, status_code=status.HTTP_201_CREATED)
def record_payment(
    request: PaymentRequest,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    booking = BookingRepository(db).get_by_id(request.booking_id)
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

    payment = PaymentRepository(db).record_payment(
        booking_id=booking.id,
        amount=booking.total_price,
        payment_method=request.payment_method,
        transaction_id=request.transaction_id,
    )
    db.flush()
    db.refresh(payment)

    logger.info(
        "Payment recorded. payment_id=%s booking_id=%s amount=%s",
        payment.id,
        booking.id,
        payment.amount,
    )
    return PaymentCreatedResponse(
        message="Payment recorded successfully",
        payment=_payment_response(payment, event_id=booking.event_id),
    )


@router.get("", response_model=PaymentListResponse)
def list_payments(
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    rows = PaymentRepository(db).list_for_user(current_user.user_id)
    return PaymentListResponse(
        payments=[_payment_response(*row) for row in rows],
    )


@router.post(
    "/organizer/details",
    response_model=OrganizerDetailsSavedResponse,
    status_code=status.HTTP_201_CREATED,
)
def save_organizer_details(
    request: OrganizerDetailsRequest,
    current_user: CurrentUser = Depends(require_organizer),
    db: Session = Depends(get_db),
):
    details = PaymentRepository(db).upsert_organizer_details(
        organizer_id=current_user.user_id,
        account_holder_name=request.account_holder_name,
        account_number=request.account_number,
        bank_name=request.bank_name,
        ifsc_code=request.ifsc_code,
    )
    db.flush()

    return OrganizerDetailsSavedResponse(
        message="Payment details saved successfully",
        details=_details_response(details),
    )


@router.get("/organizer/details", response_model=OrganizerDetailsEnvelope)
def get_organizer_details(
    current_user: CurrentUser = Depends(require_organizer),
    db: Session = Depends(get_db),
):
    details = PaymentRepository(db).get_organizer_details(current_user.user_id)
    if not details:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Payment details not found",
        )
    return OrganizerDetailsEnvelope(details=_details_response(details))
