from __future__ import annotations

from typing import Callable

from django.contrib.auth import get_user_model
from django.db import IntegrityError, transaction

from apps.api.exceptions import UnauthorizedError, ValidationError
from apps.common import get_logger
from apps.users.dtos import user_to_dto
from apps.users.models import Role
from apps.users.protocols import UserRepositoryProtocol
from apps.users.validators import normalize_email
from .dtos import AuthResultDTO
from .tokens import issue_access_token

logger = get_logger(__name__).bind(component="auth", layer="service")

TokenIssuer = Callable[[object], str]


class RegistrationService:
    def __init__(
        self,
        users: UserRepositoryProtocol,
        token_issuer: TokenIssuer = issue_access_token,
    ):
        self.users = users
        self.issue_token = token_issuer
        self.logger = logger.bind(service="RegistrationService")

    def register(self, email: str, password: str, name: str) -> AuthResultDTO:
        email = normalize_email(email)
        self.logger.debug("Received registration request", email=email)
        if self.users.email_exists(email):
            self.logger.info("Registration rejected: email already exists", email=email)
            raise ValidationError("User already exists", details={"email": email})
        try:
            with transaction.atomic():
                user = self.users.create_user(
                    email=email,
                    password=password,
                    name=name.strip(),
                    role=Role.USER,
                )
        except IntegrityError as exc:
            # Lost a race with a concurrent registration for the same email
            self.logger.warning(
                "Registration failed on insert", email=email, error=str(exc)
            )
            raise ValidationError(
                "User already exists", details={"email": email}
            ) from exc
        self.logger.info("User registered successfully", user_id=user.id)
        return AuthResultDTO(token=self.issue_token(user), user=user_to_dto(user))


class SessionService:
    def __init__(
        self,
        users: UserRepositoryProtocol,
        token_issuer: TokenIssuer = issue_access_token,
    ):
        self.users = users
        self.issue_token = token_issuer
        self.logger = logger.bind(service="SessionService")

    def login(self, email: str, password: str) -> AuthResultDTO:
        email = normalize_email(email)
        user = self.users.get_by_email(email)
        if user is None:
            # Hash anyway so unknown emails take as long as wrong passwords
            get_user_model()().set_password(password)
            self.logger.info("Login rejected: unknown email", email=email)
            raise UnauthorizedError("Invalid Credentials")
        if not user.is_active or not user.check_password(password):
            self.logger.info("Login rejected: bad credentials", user_id=user.id)
            raise UnauthorizedError("Invalid Credentials")
        self.logger.info("User logged in", user_id=user.id)
        return AuthResultDTO(token=self.issue_token(user), user=user_to_dto(user))
