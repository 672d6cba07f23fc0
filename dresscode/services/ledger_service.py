# Overview: Append-only assignment ledger and per-size history references.

from __future__ import annotations

from sqlalchemy import func

from ..extensions import db
from ..models import AssignedHistory, AssignedInventory, AssignedInventoryLine, Store
from ..models.inventory import ASSIGNED_STATUS_ASSIGNED, ASSIGNED_STATUS_RECEIVED
from ..time_utils import utcnow
from .identifier_service import unique_code

"""
Ledger Invariants (authoritative)

- An AssignedInventory document is written once with its line snapshot and
  total; afterwards only status/received fields change.
- Every stock movement that a ledger document justifies gets one
  AssignedHistory row per variant size, in the same transaction as the
  catalog mutation.
- Ledger documents are never deleted.
"""


def create_assigned_history(
    *,
    store: Store,
    group: str,
    lines: list[dict],
    actor_user_id: int | None = None,
    status: str | None = None,
) -> AssignedInventory:
    """
    Create the ledger document for a batch of stock movement lines.

    Status is RECEIVED when the destination is the warehouse itself (stock
    intake) and ASSIGNED for a push to a store. An explicit status (ADJUSTED
    for a stock correction) overrides both.

    Each line dict carries the catalog snapshot fields, variant_size_id and
    quantity.
    """
    now = utcnow()
    is_intake = store.is_warehouse
    ledger = AssignedInventory(
        assigned_inventory_id=unique_code(AssignedInventory.assigned_inventory_id),
        store_id=store.id,
        group=group,
        status=status or (ASSIGNED_STATUS_RECEIVED if is_intake else ASSIGNED_STATUS_ASSIGNED),
        total_amount_cents=sum(line["quantity"] * line["price_cents"] for line in lines),
        assigned_date=now,
        received_date=now if is_intake else None,
        created_by_user_id=actor_user_id,
        received_by_user_id=actor_user_id if is_intake else None,
    )
    db.session.add(ledger)
    db.session.flush()

    for line in lines:
        db.session.add(
            AssignedInventoryLine(
                assigned_inventory_pk=ledger.id,
                variant_size_id=line["variant_size_id"],
                group=line["group"],
                product_id=line["product_id"],
                variant_id=line.get("variant_id"),
                color_name=line["color_name"],
                hexcode=line.get("hexcode"),
                size=line["size"],
                style_coat=line.get("style_coat"),
                sku=line.get("sku"),
                price_cents=line["price_cents"],
                quantity=line["quantity"],
            )
        )
    db.session.flush()
    return ledger


def record_size_history(
    ledger: AssignedInventory,
    *,
    variant_size_id: int,
    store_id: int,
    quantity: int,
) -> AssignedHistory:
    entry = AssignedHistory(
        variant_size_id=variant_size_id,
        store_id=store_id,
        assigned_inventory_pk=ledger.id,
        quantity_of_assigned=quantity,
    )
    db.session.add(entry)
    return entry


def get_assigned_total(variant_size_id: int, store_id: int | None = None) -> int:
    """Sum of quantity_of_assigned for a size, optionally for one store."""
    q = db.session.query(func.coalesce(func.sum(AssignedHistory.quantity_of_assigned), 0)).filter(
        AssignedHistory.variant_size_id == variant_size_id
    )
    if store_id is not None:
        q = q.filter(AssignedHistory.store_id == store_id)
    return int(q.scalar() or 0)


def list_size_history(variant_size_id: int, store_id: int | None = None) -> list[AssignedHistory]:
    q = db.session.query(AssignedHistory).filter_by(variant_size_id=variant_size_id)
    if store_id is not None:
        q = q.filter_by(store_id=store_id)
    return q.order_by(AssignedHistory.id.asc()).all()
