# Overview: Store registry; the warehouse plus retail stores.

from __future__ import annotations

from ..errors import BadRequest, Conflict, NotFound
from ..extensions import db
from ..models import Store
from ..models.auth import ROLE_STORE_MANAGER, ROLE_WAREHOUSE_MANAGER
from ..models.stores import STORE_TYPE_STORE, STORE_TYPE_WAREHOUSE
from ..permissions import AuthContext, require_role, require_store_access
from ..validation import parse_percentage
from .concurrency import run_in_transaction


STORE_FIELDS = ("store_address", "city", "pincode", "state", "phone_no", "email_id")


def get_warehouse() -> Store | None:
    return db.session.query(Store).filter_by(store_type=STORE_TYPE_WAREHOUSE).order_by(Store.id).first()


def ensure_warehouse(store_name: str = "Central Warehouse") -> Store:
    """Return the warehouse store, creating it on first use. The caller commits."""
    warehouse = get_warehouse()
    if warehouse:
        return warehouse
    warehouse = Store(store_name=store_name, store_type=STORE_TYPE_WAREHOUSE)
    db.session.add(warehouse)
    db.session.flush()
    return warehouse


def create_store(*, actor: AuthContext, store_name: str, commission_percentage=0, **fields) -> Store:
    require_role(actor, ROLE_WAREHOUSE_MANAGER)
    store_name = (store_name or "").strip()
    if not store_name:
        raise BadRequest("store_name is required")
    commission = parse_percentage(commission_percentage or 0, "commission_percentage")

    def _op():
        if db.session.query(Store.id).filter_by(store_name=store_name).first():
            raise Conflict("A store with this name already exists")
        store = Store(
            store_name=store_name,
            store_type=STORE_TYPE_STORE,
            commission_percentage=commission,
            **{k: fields.get(k) for k in STORE_FIELDS},
        )
        db.session.add(store)
        db.session.flush()
        return store

    return run_in_transaction(_op)


def update_store(store_id: int, *, actor: AuthContext, **changes) -> Store:
    require_role(actor, ROLE_WAREHOUSE_MANAGER)

    def _op():
        store = db.session.get(Store, store_id)
        if not store:
            raise NotFound("Store not found")
        for key in STORE_FIELDS:
            if key in changes:
                setattr(store, key, changes[key])
        if "commission_percentage" in changes:
            store.commission_percentage = parse_percentage(
                changes["commission_percentage"], "commission_percentage"
            )
        if "is_active" in changes:
            if store.is_warehouse and not changes["is_active"]:
                raise BadRequest("The warehouse cannot be deactivated")
            store.is_active = bool(changes["is_active"])
        return store

    return run_in_transaction(_op)


def list_stores(*, actor: AuthContext, include_inactive: bool = False) -> list[Store]:
    require_role(actor, ROLE_WAREHOUSE_MANAGER, ROLE_STORE_MANAGER)
    q = db.session.query(Store)
    if actor.is_store_manager:
        q = q.filter(Store.id == actor.store_id)
    if not include_inactive:
        q = q.filter(Store.is_active.is_(True))
    return q.order_by(Store.id).all()


def get_store(store_id: int, *, actor: AuthContext) -> Store:
    require_role(actor, ROLE_WAREHOUSE_MANAGER, ROLE_STORE_MANAGER)
    require_store_access(actor, store_id)
    store = db.session.get(Store, store_id)
    if not store:
        raise NotFound("Store not found")
    return store
