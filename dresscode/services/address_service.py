# Overview: Customer delivery addresses.

from __future__ import annotations

from ..errors import NotFound
from ..extensions import db
from ..models import Address
from ..models.auth import ROLE_CUSTOMER
from ..permissions import AuthContext, require_role
from ..validation import require_fields
from .concurrency import run_in_transaction


ADDRESS_FIELDS = ("first_name", "last_name", "address", "city", "pin_code", "state", "country", "phone")


def _clear_default(user_id: int) -> None:
    db.session.query(Address).filter_by(user_id=user_id, is_default=True).update(
        {"is_default": False}, synchronize_session=False
    )


def add_address(data: dict, *, actor: AuthContext) -> Address:
    require_role(actor, ROLE_CUSTOMER)
    require_fields(data, ("address", "city", "pin_code", "state"))

    def _op():
        has_any = (
            db.session.query(Address.id).filter_by(user_id=actor.user_id, is_deleted=False).first()
            is not None
        )
        make_default = bool(data.get("is_default")) or not has_any
        if make_default:
            _clear_default(actor.user_id)
        values = {k: data[k] for k in ADDRESS_FIELDS if data.get(k) is not None}
        address = Address(user_id=actor.user_id, is_default=make_default, **values)
        db.session.add(address)
        db.session.flush()
        return address

    return run_in_transaction(_op)


def _own_address(address_id: int, actor: AuthContext) -> Address:
    address = db.session.get(Address, address_id)
    if not address or address.is_deleted or address.user_id != actor.user_id:
        raise NotFound("Address not found")
    return address


def set_default_address(address_id: int, *, actor: AuthContext) -> Address:
    require_role(actor, ROLE_CUSTOMER)

    def _op():
        address = _own_address(address_id, actor)
        _clear_default(actor.user_id)
        db.session.expire(address, ["is_default"])
        address.is_default = True
        return address

    return run_in_transaction(_op)


def delete_address(address_id: int, *, actor: AuthContext) -> None:
    """Soft delete; past orders keep pointing at the row."""
    require_role(actor, ROLE_CUSTOMER)

    def _op():
        address = _own_address(address_id, actor)
        address.is_deleted = True
        address.is_default = False

    run_in_transaction(_op)


def list_addresses(*, actor: AuthContext) -> list[Address]:
    require_role(actor, ROLE_CUSTOMER)
    return (
        db.session.query(Address)
        .filter_by(user_id=actor.user_id, is_deleted=False)
        .order_by(Address.is_default.desc(), Address.id.asc())
        .all()
    )
