"""Role assignments"""

from typing import Iterable, Optional

from storefront.models import UserRole
from storefront.services.identity import ANONYMOUS_PRINCIPAL


class RoleDatabase:
    """Admin principals; every other signed-in caller is a user"""

    def __init__(self, admin_principals: Optional[Iterable[str]] = None):
        self.admins: set[str] = set(admin_principals or [])

    @property
    def has_admin(self) -> bool:
        return bool(self.admins)

    def is_admin(self, principal: str) -> bool:
        return principal in self.admins

    def grant_admin(self, principal: str) -> None:
        self.admins.add(principal)

    def role_of(self, principal: str) -> UserRole:
        if principal == ANONYMOUS_PRINCIPAL:
            return UserRole.GUEST
        if self.is_admin(principal):
            return UserRole.ADMIN
        return UserRole.USER
