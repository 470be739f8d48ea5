from apps.common.repository import GenericRepository
from .models import User


class UserRepository(GenericRepository[User]):
    def __init__(self):
        super().__init__(User)

    def get_by_email(self, email: str):
        return self.model.objects.filter(email__iexact=email).first()

    def email_exists(self, email: str) -> bool:
        return self.model.objects.filter(email__iexact=email).exists()

    def create_user(self, **data) -> User:
        return self.model.objects.create_user(**data)
