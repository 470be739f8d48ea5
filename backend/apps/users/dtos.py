from dataclasses import dataclass
from typing import Optional

from .models import User


@dataclass
class UserDTO:
    id: int
    email: str
    name: str
    role: str
    address: Optional[str] = None
    phone: Optional[str] = None


@dataclass
class UserSummaryDTO:
    id: int
    name: str
    email: str


def user_to_dto(u: User) -> UserDTO:
    return UserDTO(
        id=u.id,
        email=u.email,
        name=u.name,
        role=str(u.role),
        address=getattr(u, "address", None),
        phone=getattr(u, "phone", None),
    )


def user_to_summary(u: User) -> UserSummaryDTO:
    return UserSummaryDTO(id=u.id, name=u.name, email=u.email)
