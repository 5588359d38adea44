# src/infrastructure/repositories/payment_repository.py

from decimal import Decimal

from sqlalchemy.orm import Session
from sqlalchemy import select

from src.infrastructure.db.models import Booking, Event, OrganizerPaymentDetails, Payment


class PaymentRepository:

    def __init__(self, db: Session):
        self.db = db

    def record_payment(
        self,
        booking_id: str,
        amount: Decimal,
        payment_method: str,
        transaction_id: str | None,
    ) -> Payment:
        payment = Payment(
            booking_id=booking_id,
            amount=amount,
            payment_method=payment_method,
            transaction_id=transaction_id,
            status="completed",
        )
        self.db.add(payment)
        return payment

    def list_for_user(self, user_id: str) -> list[tuple[Payment, str, str | None]]:
        stmt = (
            select(Payment, Booking.event_id, Event.title)
            .join(Booking, Booking.id == Payment.booking_id)
            .outerjoin(Event, Event.id == Booking.event_id)
            .where(Booking.user_id == user_id)
            .order_by(Payment.created_at.desc())
        )
        return [(row[0], row[1], row[2]) for row in self.db.execute(stmt).all()]

    def get_organizer_details(self, organizer_id: str) -> OrganizerPaymentDetails | None:
        stmt = select(OrganizerPaymentDetails).where(
            OrganizerPaymentDetails.organizer_id == organizer_id
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def upsert_organizer_details(
        self,
        organizer_id: str,
        account_holder_name: str,
        account_number: str,
        bank_name: str,
        ifsc_code: str,
    ) -> OrganizerPaymentDetails:
        details = self.get_organizer_details(organizer_id)

        if details:
            details.account_holder_name = account_holder_name
            details.account_number = account_number
            details.bank_name = bank_name
            details.ifsc_code = ifsc_code
            return details

        details = OrganizerPaymentDetails(
            organizer_id=organizer_id,
            account_holder_name=account_holder_name,
            account_number=account_number,
            bank_name=bank_name,
            ifsc_code=ifsc_code,
        )
        self.db.add(details)
        return details
