from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.orm import sessionmaker

from src.application.auth_service import decode_token
from src.application.seat_ledger import SeatLedger
from src.domain.exceptions import AuthenticationError
from src.domain.roles import CurrentUser
from src.infrastructure.db.session import SessionLocal


def get_session_factory() -> sessionmaker:
    return SessionLocal


def get_db(session_factory: sessionmaker = Depends(get_session_factory)):
    db = session_factory()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def get_ledger(session_factory: sessionmaker = Depends(get_session_factory)) -> SeatLedger:
    return SeatLedger(session_factory)


def get_current_user(authorization: str | None = Header(default=None)) -> CurrentUser:
    token = None
    if authorization:
        parts = authorization.split(" ", 1)
        token = parts[1].strip() if len(parts) == 2 else None

    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="No token provided",
        )

    try:
        return decode_token(token)
    except AuthenticationError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc),
        ) from exc


def require_organizer(
    current_user: CurrentUser = Depends(get_current_user),
) -> CurrentUser:
    if not current_user.is_organizer:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only organizers can perform this action",
        )
    return current_user
