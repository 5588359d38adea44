from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from src.api.dependencies import get_current_user, get_db
from src.api.schemas.schemas import (
    AuthResponse,
    LoginRequest,
    ProfileUpdateRequest,
    ProfileUpdatedResponse,
    SignupRequest,
    UserEnvelope,
    UserResponse,
)
from src.application.auth_service import AuthService
from src.domain.exceptions import (
    AuthenticationError,
    DuplicateUserError,
    NotFoundError,
    ValidationError,
)
from src.domain.roles import CurrentUser
from src.infrastructure.db.models import User


router = APIRouter(prefix="/api/auth", tags=["auth"])


def _user_response(user: User) -> UserResponse:
    return UserResponse(
        id=user.id,
        name=user.name,
        mobile=user.mobile,
        role=user.role.value,
        email=user.email,
        created_at=user.created_at.isoformat() if user.created_at else None,
    )


@router.post("/signup", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def signup(request: SignupRequest, db: Session = Depends(get_db)):
    service = AuthService(db)

    try:
        user, token = service.signup(
            name=request.name,
            mobile=request.mobile,
            role=request.role,
            email=request.email,
            password=request.password,
        )
    except ValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except DuplicateUserError as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(exc),
        ) from exc
    except IntegrityError as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="User already exists",
        ) from exc

    return AuthResponse(
        message="User registered successfully",
        token=token,
        user=_user_response(user),
    )


@router.post("/login", response_model=AuthResponse)
def login(request: LoginRequest, db: Session = Depends(get_db)):
    try:
        user, token = AuthService(db).login(email=request.email, password=request.password)
    except AuthenticationError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc),
        ) from exc

    return AuthResponse(
        message="Login successful",
        token=token,
        user=_user_response(user),
    )


@router.get("/profile", response_model=UserEnvelope)
def get_profile(
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        user = AuthService(db).get_profile(current_user.user_id)
    except NotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        ) from exc

    return UserEnvelope(user=_user_response(user))


@router.put("/profile", response_model=ProfileUpdatedResponse)
def update_profile(
    request: ProfileUpdateRequest,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        user = AuthService(db).update_profile(
            user_id=current_user.user_id,
            name=request.name,
            email=request.email,
            password=request.password,
            mobile=request.mobile,
        )
    except NotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        ) from exc
    except ValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except IntegrityError as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Mobile or email already in use",
        ) from exc

    return ProfileUpdatedResponse(
        message="Profile updated successfully",
        user=_user_response(user),
    )
