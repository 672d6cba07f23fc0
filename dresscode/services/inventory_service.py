# Overview: Inventory distribution engine; bulk upload, assignment, raise requests and receipts.

"""
Inventory Distribution Engine

Moves stock between the central warehouse and stores.

ASSIGNED INVENTORY (warehouse -> store push, also the intake ledger):
    ASSIGNED -> RECEIVED
    Intake uploads to the warehouse itself are written directly as RECEIVED.
    Receipt is a confirmation only; stock moved when the assignment was made.

RAISED INVENTORY (store -> warehouse request):
    DRAFT -> PENDING -> APPROVED | REJECTED
    APPROVED --fulfill--> (linked assignment created, stock moves)
    APPROVED (fulfilled) -> RECEIVED

Every upload is one transaction: rows are applied in file order, and any
row failure rolls back every catalog mutation and the ledger document.

CATALOG MAINTENANCE (warehouse manager):
    A counted quantity correction writes an ADJUSTED ledger document with
    the signed difference. Removing a colour or a product is a soft delete;
    a later intake upload of the same product revives it.
"""

from __future__ import annotations

from ..errors import BadRequest, NotFound, ServiceError
from ..extensions import db
from ..models import (
    AssignedInventory,
    Product,
    RaisedInventory,
    RaisedInventoryLine,
    Store,
    StoreQuantity,
    Variant,
    VariantSize,
)
from ..models.auth import ROLE_STORE_MANAGER, ROLE_WAREHOUSE_MANAGER
from ..models.inventory import (
    ASSIGNED_STATUS_ADJUSTED,
    ASSIGNED_STATUS_ASSIGNED,
    ASSIGNED_STATUS_RECEIVED,
    RAISED_STATUS_APPROVED,
    RAISED_STATUS_DRAFT,
    RAISED_STATUS_PENDING,
    RAISED_STATUS_RECEIVED,
    RAISED_STATUS_REJECTED,
)
from ..permissions import AuthContext, require_role, require_store_access
from ..time_utils import utcnow
from ..validation import parse_money_cents, parse_quantity
from . import catalog_service, ledger_service, store_service
from .concurrency import lock_for_update, run_in_transaction
from .identifier_service import unique_code


# Upload headers accepted in either snake_case or the legacy camelCase form
HEADER_ALIASES = {
    "groupName": "group",
    "categoryName": "category",
    "subCategoryName": "sub_category",
    "schoolName": "school_name",
    "productCategory": "product_category",
    "productName": "product_name",
    "productType": "product_type",
    "productId": "product_id",
    "variantColor": "variant_color",
    "variantSize": "variant_size",
    "variantQuantity": "quantity",
    "variant_quantity": "quantity",
    "styleCoat": "style_coat",
    "productDescription": "product_description",
    "sizeChart": "size_chart",
    "variantImages": "variant_images",
}

INTAKE_REQUIRED = ("category", "variant_color", "variant_size", "quantity", "price")
MOVEMENT_REQUIRED = ("variant_color", "variant_size", "quantity")


def _get_store(store_id: int) -> Store:
    store = db.session.get(Store, store_id)
    if not store or not store.is_active:
        raise NotFound("Store not found. Please provide a valid store ID.")
    return store


def normalize_row(row: dict) -> dict:
    """Map aliased headers to canonical names and strip values."""
    out = {}
    for key, value in row.items():
        name = HEADER_ALIASES.get(key.strip(), key.strip())
        out[name] = value.strip() if isinstance(value, str) else value
    return out


def _parse_line(row: dict, required: tuple[str, ...]) -> dict:
    line = normalize_row(row)
    for field in required:
        if not line.get(field):
            raise BadRequest(f"Missing required field: {field}")

    line["quantity"] = parse_quantity(line["quantity"], "quantity")
    if line.get("price"):
        line["price_cents"] = parse_money_cents(line["price"], "price")
    images = line.get("variant_images") or ""
    line["image_urls"] = [url.strip() for url in images.split(";") if url.strip()]
    return line


def _resolve_existing(group: str, line: dict) -> VariantSize:
    if line.get("style_coat"):
        vs = catalog_service.find_by_style_coat(line["style_coat"])
        if vs.variant.product.group != group:
            raise BadRequest(f"Style coat {line['style_coat']} does not belong to {group}")
        return vs
    product_id = line.get("product_id") or catalog_service.derive_product_id(line)
    return catalog_service.find_variant_size(group, product_id, line["variant_color"], line["variant_size"])


def _movement_line(vs: VariantSize, quantity: int, price_cents: int | None = None) -> dict:
    snap = catalog_service.snapshot_of(vs)
    snap["hexcode"] = vs.variant.hexcode
    snap["sku"] = vs.sku
    snap["variant_size_id"] = vs.id
    snap["quantity"] = quantity
    if price_cents is not None:
        snap["price_cents"] = price_cents
    return snap


def _with_row_number(e: ServiceError, row_number: int) -> ServiceError:
    e.message = f"Row {row_number}: {e.message}"
    e.details = {**e.details, "row": row_number}
    return e


def _write_ledger(store: Store, group: str, lines: list[dict], actor: AuthContext) -> AssignedInventory:
    ledger = ledger_service.create_assigned_history(
        store=store, group=group, lines=lines, actor_user_id=actor.user_id
    )
    for line in lines:
        ledger_service.record_size_history(
            ledger, variant_size_id=line["variant_size_id"], store_id=store.id, quantity=line["quantity"]
        )
    return ledger


def _assign_lines(store: Store, group: str, lines: list[dict], actor: AuthContext) -> AssignedInventory:
    """
    Apply already-resolved movement lines to a store and write the ledger.

    Central stock is decremented conditionally per line; the store's present
    quantity is credited. Caller owns the transaction.
    """
    for line in lines:
        catalog_service.decrement_quantity(line["variant_size_id"], line["quantity"])
        catalog_service.increment_store_quantity(store.id, line["variant_size_id"], line["quantity"])
    return _write_ledger(store, group, lines, actor)


def process_csv_file(
    rows: list[dict],
    *,
    group: str,
    destination_store_id: int,
    actor: AuthContext,
) -> AssignedInventory:
    """
    Bulk stock movement upload (warehouse manager).

    Destination = warehouse: stock intake. Products, variants and sizes are
    created as needed and central quantity is incremented. Ledger RECEIVED.

    Destination = store: assignment. Every row must resolve to an existing
    size with enough central stock; central quantity moves to the store's
    present quantity. Ledger ASSIGNED.

    Row numbers in errors count the header as row 1.
    """
    require_role(actor, ROLE_WAREHOUSE_MANAGER)
    group = catalog_service.normalize_group(group)
    if not rows:
        raise BadRequest("Upload contains no rows")

    def _op():
        store = _get_store(destination_store_id)
        lines = []

        for row_number, row in enumerate(rows, start=2):
            try:
                if store.is_warehouse:
                    line = _parse_line(row, INTAKE_REQUIRED)
                    vs = catalog_service.upsert_product_from_line(group, line)
                    catalog_service.increment_quantity(vs.id, line["quantity"])
                    lines.append(_movement_line(vs, line["quantity"], line["price_cents"]))
                else:
                    line = _parse_line(row, MOVEMENT_REQUIRED)
                    vs = _resolve_existing(group, line)
                    moved = _movement_line(vs, line["quantity"], line.get("price_cents"))
                    catalog_service.decrement_quantity(vs.id, line["quantity"])
                    catalog_service.increment_store_quantity(store.id, vs.id, line["quantity"])
                    lines.append(moved)
            except ServiceError as e:
                raise _with_row_number(e, row_number)

        return _write_ledger(store, group, lines, actor)

    return run_in_transaction(_op)


def receive_inventory(assigned_inventory_id: str, *, actor: AuthContext) -> AssignedInventory:
    """Destination store manager confirms physical receipt of an assignment."""
    require_role(actor, ROLE_STORE_MANAGER)

    def _op():
        assignment = lock_for_update(
            db.session.query(AssignedInventory).filter_by(assigned_inventory_id=assigned_inventory_id)
        ).first()
        if not assignment:
            raise NotFound("Assigned inventory not found")
        require_store_access(actor, assignment.store_id)
        if assignment.status != ASSIGNED_STATUS_ASSIGNED:
            raise BadRequest(f"Cannot receive inventory with status {assignment.status}")

        assignment.status = ASSIGNED_STATUS_RECEIVED
        assignment.received_date = utcnow()
        assignment.received_by_user_id = actor.user_id
        return assignment

    return run_in_transaction(_op)


# ---------------------------------------------------------------------------
# Catalog maintenance
# ---------------------------------------------------------------------------

def update_variant_size(
    style_coat: str,
    *,
    actor: AuthContext,
    quantity=None,
    price=None,
) -> VariantSize:
    """
    Correct the central quantity of one size and/or the product price.

    quantity is the new absolute count. price is in rupees and applies to
    the whole product.
    """
    require_role(actor, ROLE_WAREHOUSE_MANAGER)
    if quantity is None and price is None:
        raise BadRequest("quantity or price is required")
    new_quantity = parse_quantity(quantity, "quantity", allow_zero=True) if quantity is not None else None
    price_cents = parse_money_cents(price, "price") if price is not None else None

    def _op():
        vs = catalog_service.find_by_style_coat(style_coat)
        product = vs.variant.product
        if price_cents is not None:
            product.price_cents = price_cents

        if new_quantity is not None:
            current = lock_for_update(
                db.session.query(VariantSize.quantity).filter(VariantSize.id == vs.id)
            ).scalar()
            delta = new_quantity - current
            if delta > 0:
                catalog_service.increment_quantity(vs.id, delta)
            elif delta < 0:
                catalog_service.decrement_quantity(vs.id, -delta)

            if delta:
                warehouse = store_service.get_warehouse()
                if warehouse is None:
                    raise BadRequest("No warehouse is configured")
                ledger = ledger_service.create_assigned_history(
                    store=warehouse,
                    group=product.group,
                    lines=[_movement_line(vs, delta)],
                    actor_user_id=actor.user_id,
                    status=ASSIGNED_STATUS_ADJUSTED,
                )
                ledger_service.record_size_history(
                    ledger, variant_size_id=vs.id, store_id=warehouse.id, quantity=delta
                )

        db.session.flush()
        return vs

    return run_in_transaction(_op)


def remove_variant(group: str, product_id: str, color: str, *, actor: AuthContext) -> Variant:
    """Soft-delete one colour of a product; its sizes can no longer be ordered."""
    require_role(actor, ROLE_WAREHOUSE_MANAGER)

    def _op():
        product = catalog_service.get_product(group, product_id)
        variant = (
            db.session.query(Variant)
            .filter_by(product_pk=product.id, color_name=(color or "").strip().upper(), is_deleted=False)
            .first()
        )
        if not variant:
            raise NotFound("Variant not found")
        variant.is_deleted = True
        return variant

    return run_in_transaction(_op)


def soft_delete_product(group: str, product_id: str, *, actor: AuthContext) -> Product:
    require_role(actor, ROLE_WAREHOUSE_MANAGER)

    def _op():
        product = catalog_service.get_product(group, product_id)
        product.is_deleted = True
        return product

    return run_in_transaction(_op)


# ---------------------------------------------------------------------------
# Raise requests
# ---------------------------------------------------------------------------

def create_raised_inventory(
    rows: list[dict],
    *,
    group: str,
    actor: AuthContext,
    draft: bool = False,
) -> RaisedInventory:
    """Store manager requests replenishment. Lines must exist in the catalog."""
    require_role(actor, ROLE_STORE_MANAGER)
    group = catalog_service.normalize_group(group)
    if not rows:
        raise BadRequest("Upload contains no rows")
    if actor.store_id is None:
        raise BadRequest("Store manager is not bound to a store")

    def _op():
        store = _get_store(actor.store_id)
        lines = []
        for row_number, row in enumerate(rows, start=2):
            try:
                line = _parse_line(row, MOVEMENT_REQUIRED)
                vs = _resolve_existing(group, line)
            except ServiceError as e:
                raise _with_row_number(e, row_number)
            lines.append(_movement_line(vs, line["quantity"]))

        raised = RaisedInventory(
            raised_inventory_id=unique_code(RaisedInventory.raised_inventory_id),
            store_id=store.id,
            group=group,
            status=RAISED_STATUS_DRAFT if draft else RAISED_STATUS_PENDING,
            total_amount_raised_cents=sum(l["quantity"] * l["price_cents"] for l in lines),
            raised_by_user_id=actor.user_id,
        )
        db.session.add(raised)
        db.session.flush()

        for line in lines:
            db.session.add(
                RaisedInventoryLine(
                    raised_inventory_pk=raised.id,
                    variant_size_id=line["variant_size_id"],
                    group=line["group"],
                    product_id=line["product_id"],
                    variant_id=line["variant_id"],
                    color_name=line["color_name"],
                    hexcode=line["hexcode"],
                    size=line["size"],
                    style_coat=line["style_coat"],
                    sku=line["sku"],
                    price_cents=line["price_cents"],
                    quantity=line["quantity"],
                )
            )
        db.session.flush()
        return raised

    return run_in_transaction(_op)


def _locked_raise(raised_inventory_id: str) -> RaisedInventory:
    raised = lock_for_update(
        db.session.query(RaisedInventory).filter_by(raised_inventory_id=raised_inventory_id)
    ).first()
    if not raised:
        raise NotFound("Raised inventory not found")
    return raised


def submit_raised_inventory(raised_inventory_id: str, *, actor: AuthContext) -> RaisedInventory:
    """DRAFT -> PENDING."""
    require_role(actor, ROLE_STORE_MANAGER)

    def _op():
        raised = _locked_raise(raised_inventory_id)
        require_store_access(actor, raised.store_id)
        if raised.status != RAISED_STATUS_DRAFT:
            raise BadRequest(f"Only draft requests can be submitted (status {raised.status})")
        raised.status = RAISED_STATUS_PENDING
        return raised

    return run_in_transaction(_op)


def _decide(raised_inventory_id: str, actor: AuthContext, approve: bool, note: str | None) -> RaisedInventory:
    require_role(actor, ROLE_WAREHOUSE_MANAGER)

    def _op():
        raised = _locked_raise(raised_inventory_id)
        if raised.status not in (RAISED_STATUS_PENDING, RAISED_STATUS_DRAFT):
            raise BadRequest(f"Cannot decide a request with status {raised.status}")

        now = utcnow()
        if approve:
            raised.status = RAISED_STATUS_APPROVED
            raised.approved_date = now
        else:
            raised.status = RAISED_STATUS_REJECTED
            raised.rejected_date = now
        raised.decision_note = note
        raised.decided_by_user_id = actor.user_id
        return raised

    return run_in_transaction(_op)


def approve_inventory(raised_inventory_id: str, *, actor: AuthContext, note: str | None = None) -> RaisedInventory:
    """Approval is a decision only; stock moves in fulfill_raised_inventory."""
    return _decide(raised_inventory_id, actor, True, note)


def reject_inventory(raised_inventory_id: str, *, actor: AuthContext, note: str | None = None) -> RaisedInventory:
    return _decide(raised_inventory_id, actor, False, note)


def fulfill_raised_inventory(raised_inventory_id: str, *, actor: AuthContext) -> AssignedInventory:
    """
    Turn an approved raise into an assignment to the raising store.

    Central stock is decremented per line (all or nothing) and the new
    assignment is linked to the raise.
    """
    require_role(actor, ROLE_WAREHOUSE_MANAGER)

    def _op():
        raised = _locked_raise(raised_inventory_id)
        if raised.status != RAISED_STATUS_APPROVED:
            raise BadRequest(f"Only approved requests can be fulfilled (status {raised.status})")
        if raised.assigned_inventory_pk is not None:
            raise BadRequest("Request has already been fulfilled")

        store = _get_store(raised.store_id)
        lines = []
        for line in raised.lines:
            vs = db.session.get(VariantSize, line.variant_size_id)
            lines.append(_movement_line(vs, line.quantity, line.price_cents))

        assignment = _assign_lines(store, raised.group, lines, actor)
        raised.assigned_inventory_pk = assignment.id
        return assignment

    return run_in_transaction(_op)


def receive_inventory_request(raised_inventory_id: str, *, actor: AuthContext) -> RaisedInventory:
    """Raising store manager confirms receipt: APPROVED (fulfilled) -> RECEIVED."""
    require_role(actor, ROLE_STORE_MANAGER)

    def _op():
        raised = _locked_raise(raised_inventory_id)
        require_store_access(actor, raised.store_id)
        if raised.status != RAISED_STATUS_APPROVED:
            raise BadRequest(f"Only approved requests can be received (status {raised.status})")
        if raised.assigned_inventory_pk is None:
            raise BadRequest("Request has not been fulfilled yet")

        now = utcnow()
        raised.status = RAISED_STATUS_RECEIVED
        raised.received_date = now

        assignment = raised.assigned_inventory
        if assignment.status == ASSIGNED_STATUS_ASSIGNED:
            assignment.status = ASSIGNED_STATUS_RECEIVED
            assignment.received_date = now
            assignment.received_by_user_id = actor.user_id
        return raised

    return run_in_transaction(_op)


# ---------------------------------------------------------------------------
# Read side
# ---------------------------------------------------------------------------

def _scoped(query, model, actor: AuthContext, store_id: int | None):
    require_role(actor, ROLE_WAREHOUSE_MANAGER, ROLE_STORE_MANAGER)
    if actor.is_store_manager:
        return query.filter(model.store_id == actor.store_id)
    if store_id is not None:
        query = query.filter(model.store_id == store_id)
    return query


def list_assigned_inventories(
    *, actor: AuthContext, store_id: int | None = None, status: str | None = None
) -> list[AssignedInventory]:
    q = _scoped(db.session.query(AssignedInventory), AssignedInventory, actor, store_id)
    if status:
        q = q.filter(AssignedInventory.status == status)
    return q.order_by(AssignedInventory.assigned_date.desc(), AssignedInventory.id.desc()).all()


def get_assigned_inventory(assigned_inventory_id: str, *, actor: AuthContext) -> AssignedInventory:
    require_role(actor, ROLE_WAREHOUSE_MANAGER, ROLE_STORE_MANAGER)
    assignment = db.session.query(AssignedInventory).filter_by(assigned_inventory_id=assigned_inventory_id).first()
    if not assignment:
        raise NotFound("Assigned inventory not found")
    require_store_access(actor, assignment.store_id)
    return assignment


def list_raised_inventories(
    *, actor: AuthContext, store_id: int | None = None, status: str | None = None
) -> list[RaisedInventory]:
    q = _scoped(db.session.query(RaisedInventory), RaisedInventory, actor, store_id)
    if status:
        q = q.filter(RaisedInventory.status == status)
    return q.order_by(RaisedInventory.raised_date.desc(), RaisedInventory.id.desc()).all()


def get_raised_inventory(raised_inventory_id: str, *, actor: AuthContext) -> RaisedInventory:
    require_role(actor, ROLE_WAREHOUSE_MANAGER, ROLE_STORE_MANAGER)
    raised = db.session.query(RaisedInventory).filter_by(raised_inventory_id=raised_inventory_id).first()
    if not raised:
        raise NotFound("Raised inventory not found")
    require_store_access(actor, raised.store_id)
    return raised


def get_store_stock(store_id: int, *, actor: AuthContext) -> list[dict]:
    """Present quantity per size held at a store."""
    require_store_access(actor, store_id)
    _get_store(store_id)
    rows = (
        db.session.query(StoreQuantity)
        .filter(StoreQuantity.store_id == store_id)
        .order_by(StoreQuantity.variant_size_id.asc())
        .all()
    )
    result = []
    for sq in rows:
        item = catalog_service.snapshot_of(sq.variant_size)
        item["variant_size_id"] = sq.variant_size_id
        item["present_quantity"] = sq.present_quantity
        item["assigned_total"] = ledger_service.get_assigned_total(sq.variant_size_id, store_id)
        result.append(item)
    return result
