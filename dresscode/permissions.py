"""
Role policy.

Every service that restricts an action calls require_role /
require_store_access with the caller's AuthContext.

ROLES:
- WAREHOUSE_MANAGER: central stock, approvals of raises, bills and returns
- STORE_MANAGER: bound to one store; uploads raises, receives stock, bills
- CUSTOMER: e-commerce orders, returns and coupons
"""

from __future__ import annotations

from dataclasses import dataclass

from .errors import Forbidden
from .models.auth import ROLE_CUSTOMER, ROLE_STORE_MANAGER, ROLE_WAREHOUSE_MANAGER


@dataclass(frozen=True)
class AuthContext:
    """Identity triple yielded by the auth provider."""
    user_id: int
    store_id: int | None
    role: str
    name: str

    @property
    def is_warehouse_manager(self) -> bool:
        return self.role == ROLE_WAREHOUSE_MANAGER

    @property
    def is_store_manager(self) -> bool:
        return self.role == ROLE_STORE_MANAGER

    @property
    def is_customer(self) -> bool:
        return self.role == ROLE_CUSTOMER


def require_role(ctx: AuthContext | None, *roles: str) -> AuthContext:
    if ctx is None or ctx.role not in roles:
        raise Forbidden(
            "Role not permitted",
            {"required_roles": list(roles), "role": ctx.role if ctx else None},
        )
    return ctx


def require_store_access(ctx: AuthContext | None, store_id: int) -> AuthContext:
    """
    Store managers may only act on their own store.

    Warehouse managers may act on any store.
    """
    if ctx is None:
        raise Forbidden("Store access denied")
    if ctx.is_warehouse_manager:
        return ctx
    if ctx.is_store_manager and ctx.store_id is not None and ctx.store_id == store_id:
        return ctx
    raise Forbidden("Store access denied", {"store_id": store_id})
