import logging
import os
from datetime import datetime, timedelta, timezone

import bcrypt
import jwt
from sqlalchemy.orm import Session

from src.domain.exceptions import (
    AuthenticationError,
    DuplicateUserError,
    NotFoundError,
    ValidationError,
)
from src.domain.roles import CurrentUser, UserRole
from src.infrastructure.db.models import User
from src.infrastructure.repositories.user_repository import UserRepository

logger = logging.getLogger(__name__)

JWT_ALGORITHM = "HS256"
_DEV_SECRET = "dev-only-ticketing-secret-change-me-0123456789"


def _jwt_secret() -> str:
    return os.getenv("JWT_SECRET") or _DEV_SECRET


def hash_password(plain_password: str) -> str:
    salt = bcrypt.gensalt()
    hashed = bcrypt.hashpw(plain_password.encode("utf-8"), salt)
    return hashed.decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return bcrypt.checkpw(
        plain_password.encode("utf-8"),
        hashed_password.encode("utf-8"),
    )


def issue_token(user_id: str, role: UserRole) -> str:
    lifetime = timedelta(days=int(os.getenv("JWT_EXPIRES_DAYS", "7")))
    payload = {
        "user_id": user_id,
        "role": role.value,
        "exp": datetime.now(timezone.utc) + lifetime,
    }
    return jwt.encode(payload, _jwt_secret(), algorithm=JWT_ALGORITHM)


def decode_token(token: str) -> CurrentUser:
    try:
        data = jwt.decode(token, _jwt_secret(), algorithms=[JWT_ALGORITHM])
        return CurrentUser(user_id=str(data["user_id"]), role=UserRole(data["role"]))
    except (jwt.PyJWTError, KeyError, ValueError) as exc:
        raise AuthenticationError("Invalid token") from exc


class AuthService:
    """Signup, login and profile maintenance for the user directory."""

    def __init__(self, db: Session):
        self.db = db
        self.user_repository = UserRepository(db)

    def signup(
        self,
        name: str,
        mobile: str,
        role: str,
        password: str,
        email: str | None = None,
    ) -> tuple[User, str]:
        email = email or None

        if len(mobile) != 10:
            raise ValidationError("Invalid mobile number")

        try:
            user_role = UserRole(role)
        except ValueError as exc:
            raise ValidationError("Invalid role") from exc

        if self.user_repository.exists_with(mobile=mobile, email=email):
            raise DuplicateUserError("User already exists")

        user = self.user_repository.create_user(
            name=name,
            mobile=mobile,
            role=user_role,
            email=email,
            password_hash=hash_password(password),
        )
        self.db.flush()

        logger.info("User registered. user_id=%s role=%s", user.id, user.role.value)
        return user, issue_token(user.id, user.role)

    def login(self, email: str, password: str) -> tuple[User, str]:
        user = self.user_repository.get_by_email(email)

        if not user or not verify_password(password, user.password_hash):
            raise AuthenticationError("Invalid credentials")

        return user, issue_token(user.id, user.role)

    def get_profile(self, user_id: str) -> User:
        user = self.user_repository.get_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")
        return user

    def update_profile(
        self,
        user_id: str,
        name: str | None = None,
        email: str | None = None,
        password: str | None = None,
        mobile: str | None = None,
    ) -> User:
        user = self.get_profile(user_id)

        if mobile is not None and len(mobile) != 10:
            raise ValidationError("Invalid mobile number")

        if name is not None:
            user.name = name
        if email is not None:
            user.email = email or None
        if mobile is not None:
            user.mobile = mobile
        if password:
            user.password_hash = hash_password(password)

        self.db.flush()
        return user
