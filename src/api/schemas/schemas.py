from decimal import Decimal

from pydantic import BaseModel, Field


class SignupRequest(BaseModel):
    name: str = Field(min_length=1)
    mobile: str
    role: str
    email: str | None = None
    password: str = Field(min_length=1, max_length=72)


class LoginRequest(BaseModel):
    email: str
    password: str


class ProfileUpdateRequest(BaseModel):
    name: str | None = None
    email: str | None = None
    password: str | None = Field(default=None, max_length=72)
    mobile: str | None = None


class UserResponse(BaseModel):
    id: str
    name: str
    mobile: str
    role: str
    email: str | None = None
    created_at: str | None = None


class AuthResponse(BaseModel):
    message: str
    token: str
    user: UserResponse


class UserEnvelope(BaseModel):
    user: UserResponse


class ProfileUpdatedResponse(BaseModel):
    message: str
    user: UserResponse


class EventCreate(BaseModel):
    title: str = Field(min_length=1)
    description: str | None = None
    location: str = Field(min_length=1)
    event_date: str
    ticket_price: Decimal = Field(ge=0)
    total_seats: int = Field(ge=0)
    category: str | None = None
    image_url: str | None = None


class EventUpdate(BaseModel):
    title: str | None = None
    description: str | None = None
    location: str | None = None
    event_date: str | None = None
    ticket_price: Decimal | None = Field(default=None, ge=0)
    total_seats: int | None = Field(default=None, ge=0)
    category: str | None = None
    image_url: str | None = None


class EventResponse(BaseModel):
    id: str
    organizer_id: str
    title: str
    description: str | None = None
    location: str
    event_date: str
    category: str | None = None
    image_url: str | None = None
    ticket_price: Decimal
    total_seats: int
    available_seats: int
    organizer_name: str | None = None
    organizer_email: str | None = None


class EventEnvelope(BaseModel):
    event: EventResponse


class EventMessageResponse(BaseModel):
    message: str
    event: EventResponse


class EventListResponse(BaseModel):
    events: list[EventResponse]
    total: int


class MessageResponse(BaseModel):
    message: str


class BookingRequest(BaseModel):
    event_id: str
    number_of_seats: int


class BookingResponse(BaseModel):
    id: str
    user_id: str
    event_id: str
    number_of_seats: int
    total_price: Decimal
    status: str
    created_at: str | None = None
    title: str | None = None
    event_date: str | None = None
    location: str | None = None
    image_url: str | None = None


class BookingCreatedResponse(BaseModel):
    message: str
    booking: BookingResponse


class BookingEnvelope(BaseModel):
    booking: BookingResponse


class BookingListResponse(BaseModel):
    bookings: list[BookingResponse]


class CheckInRequest(BaseModel):
    qr_code: str | None = None


class CheckInResponse(BaseModel):
    id: str
    booking_id: str
    qr_code: str | None = None
    checkin_time: str


class CheckInCreatedResponse(BaseModel):
    message: str
    checkin: CheckInResponse


class CheckInListResponse(BaseModel):
    checkins: list[CheckInResponse]


class PaymentRequest(BaseModel):
    booking_id: str
    payment_method: str = Field(min_length=1)
    transaction_id: str | None = None


class PaymentResponse(BaseModel):
    id: str
    booking_id: str
    amount: Decimal
    payment_method: str
    transaction_id: str | None = None
    status: str
    created_at: str | None = None
    event_id: str | None = None
    event_title: str | None = None


class PaymentCreatedResponse(BaseModel):
    message: str
    payment: PaymentResponse


class PaymentListResponse(BaseModel):
    payments: list[PaymentResponse]


class OrganizerDetailsRequest(BaseModel):
    account_holder_name: str = Field(min_length=1)
    account_number: str = Field(min_length=1)
    bank_name: str = Field(min_length=1)
    ifsc_code: str = Field(min_length=1)


class OrganizerDetailsResponse(BaseModel):
    organizer_id: str
    account_holder_name: str
    account_number: str
    bank_name: str
    ifsc_code: str


class OrganizerDetailsSavedResponse(BaseModel):
    message: str
    details: OrganizerDetailsResponse


class OrganizerDetailsEnvelope(BaseModel):
    details: OrganizerDetailsResponse
