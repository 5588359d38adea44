from dataclasses import dataclass
from enum import Enum


class UserRole(str, Enum):
    ORGANIZER = "organizer"
    EXPLORER = "explorer"


@dataclass(frozen=True)
class CurrentUser:
    """Identity decoded from a bearer token, trusted for the request."""

    user_id: str
    role: UserRole

    @property
    def is_organizer(self) -> bool:
        return self.role == UserRole.ORGANIZER
