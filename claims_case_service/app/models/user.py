from enum import Enum

from .base import ApiModel


class UserRole(str, Enum):
    ADMIN = "admin"
    EMPLOYEE = "employee"


class ActingUser(ApiModel): # Resolved from the bearer token on each request
    id: str
    name: str
    role: UserRole = UserRole.EMPLOYEE

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN
