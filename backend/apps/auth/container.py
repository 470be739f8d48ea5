from __future__ import annotations

from apps.users.repositories import UserRepository

from .services import RegistrationService, SessionService


def build_registration_service() -> RegistrationService:
    return RegistrationService(users=UserRepository())


def build_session_service() -> SessionService:
    return SessionService(users=UserRepository())
