from dataclasses import dataclass

from apps.users.dtos import UserDTO


@dataclass
class AuthResultDTO:
    token: str
    user: UserDTO
