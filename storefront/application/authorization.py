"""Caller identity and the authorization capability handed to the services.

The services never decide *how* a caller is authenticated; they receive a
``Principal`` and ask an ``Authorizer`` yes/no questions.
"""

from dataclasses import dataclass
from typing import Protocol

from storefront.domain.errors import AuthorizationError
from storefront.domain.models import Order

ROLE_ADMIN = "ADMIN"
ROLE_CUSTOMER = "CUSTOMER"


@dataclass(frozen=True)
class Principal:
    user_id: int
    role: str = ROLE_CUSTOMER


class Authorizer(Protocol):
    def is_admin(self, principal: Principal) -> bool: ...

    def owns(self, principal: Principal, order: Order) -> bool: ...


class RoleAuthorizer:
    def is_admin(self, principal: Principal) -> bool:
        return principal.role == ROLE_ADMIN

    def owns(self, principal: Principal, order: Order) -> bool:
        return order.user_id == principal.user_id


def require_admin(authorizer: Authorizer, principal: Principal) -> None:
    if not authorizer.is_admin(principal):
        raise AuthorizationError("Access denied. Admin role required.")


def require_owner(authorizer: Authorizer, principal: Principal, order: Order, message: str) -> None:
    if not authorizer.owns(principal, order):
        raise AuthorizationError(message)


def require_owner_or_admin(authorizer: Authorizer, principal: Principal, order: Order) -> None:
    if not (authorizer.owns(principal, order) or authorizer.is_admin(principal)):
        raise AuthorizationError("Forbidden - You do not have permission to view this order")
