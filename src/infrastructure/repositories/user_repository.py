# src/infrastructure/repositories/user_repository.py

from sqlalchemy.orm import Session
from sqlalchemy import select, or_

from src.infrastructure.db.models import User
from src.domain.roles import UserRole


class UserRepository:

    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, user_id: str) -> User | None:
        stmt = select(User).where(User.id == user_id)
        return self.db.execute(stmt).scalar_one_or_none()

    def get_by_email(self, email: str) -> User | None:
        stmt = select(User).where(User.email == email)
        return self.db.execute(stmt).scalar_one_or_none()

    def exists_with(self, mobile: str, email: str | None) -> bool:
        clauses = [User.mobile == mobile]
        if email:
            clauses.append(User.email == email)

        stmt = select(User.id).where(or_(*clauses)).limit(1)
        return self.db.execute(stmt).first() is not None

    def create_user(
        self,
        name: str,
        mobile: str,
        role: UserRole,
        email: str | None,
        password_hash: str,
    ) -> User:
        user = User(
            name=name,
            mobile=mobile,
            role=role,
            email=email,
            password_hash=password_hash,
        )
        self.db.add(user)
        return user
