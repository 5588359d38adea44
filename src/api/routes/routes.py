from fastapi import APIRouter

from src.api.routes import auth, bookings, events, payments


router = APIRouter()
router.include_router(auth.router)
router.include_router(events.router)
router.include_router(bookings.router)
router.include_router(payments.router)


@router.get("/health")
def health():
    return {"message": "Ticketing API is running"}
