# Overview: Point-of-sale billing and the edit/delete dual-approval workflow.

"""
Billing Workflow

A bill draws on the issuing store's present quantity (StoreQuantity), never
on central stock. Invoice numbers come from the per-store document sequence
(INVOICE-1, INVOICE-2, ...).

DUAL APPROVAL (store manager requests, warehouse manager decides):
- Delete: delete_req_status None/REJECTED -> PENDING -> APPROVED | REJECTED.
  Approval sets is_deleted and returns the billed units to the store.
- Edit: one PENDING BillEditRequest per bill. Approval archives the live
  bill into OldBill, applies the per-size quantity difference to store
  stock atomically and overwrites the bill. Rejection leaves it untouched.
"""

from __future__ import annotations

from collections import defaultdict

from ..errors import BadRequest, InsufficientStock, NotFound
from ..extensions import db
from ..models import Bill, BillEditRequest, BillEditRequestLine, BillLine, Customer, OldBill, Store
from ..models.auth import ROLE_STORE_MANAGER, ROLE_WAREHOUSE_MANAGER
from ..models.billing import (
    MODES_OF_PAYMENT,
    REQUEST_STATUS_APPROVED,
    REQUEST_STATUS_PENDING,
    REQUEST_STATUS_REJECTED,
)
from ..permissions import AuthContext, require_role, require_store_access
from ..time_utils import utcnow
from ..validation import parse_percentage, parse_quantity, percent_of
from . import catalog_service
from .concurrency import lock_for_update, run_in_transaction
from .document_service import DOCUMENT_TYPE_INVOICE, next_document_number
from .identifier_service import unique_code


def _validate_header(discount_percentage, mode_of_payment) -> tuple[int, str]:
    pct = parse_percentage(discount_percentage or 0)
    mode = (mode_of_payment or "").strip().upper()
    if mode not in MODES_OF_PAYMENT:
        raise BadRequest(f"mode_of_payment must be one of {', '.join(MODES_OF_PAYMENT)}")
    return pct, mode


def _find_or_create_customer(name: str | None, phone: str | None, email: str | None = None) -> Customer:
    phone = (phone or "").strip()
    if not phone:
        raise BadRequest("Customer phone is required")
    customer = db.session.query(Customer).filter_by(phone=phone).first()
    if customer:
        return customer
    if not (name or "").strip():
        raise BadRequest("Customer name is required for a new customer")
    customer = Customer(name=name.strip(), phone=phone, email=email)
    db.session.add(customer)
    db.session.flush()
    return customer


def _price_lines(lines: list[dict]) -> list[dict]:
    """Resolve request lines against the catalog and snapshot them."""
    if not lines:
        raise BadRequest("Bill must contain at least one product")
    priced = []
    for raw in lines:
        qty = parse_quantity(raw.get("quantity"), "quantity")
        vs = catalog_service.resolve_line(raw)
        snap = catalog_service.snapshot_of(vs)
        snap["variant_size_id"] = vs.id
        snap["quantity"] = qty
        priced.append(snap)
    return priced


def _totals(priced: list[dict], pct: int) -> tuple[int, int, int]:
    total = sum(p["price_cents"] * p["quantity"] for p in priced)
    discount = percent_of(total, pct)
    return total, discount, total - discount


def _quantities(lines) -> dict[int, int]:
    out: dict[int, int] = defaultdict(int)
    for line in lines:
        if isinstance(line, dict):
            out[line["variant_size_id"]] += line["quantity"]
        else:
            out[line.variant_size_id] += line.quantity
    return out


def _get_bill(bill_id: str, *, lock: bool = False) -> Bill:
    query = db.session.query(Bill).filter_by(bill_id=bill_id)
    if lock:
        query = lock_for_update(query)
    bill = query.first()
    if not bill:
        raise NotFound("Bill not found")
    return bill


def create_bill(
    *,
    actor: AuthContext,
    customer: dict,
    lines: list[dict],
    discount_percentage=0,
    mode_of_payment: str = "CASH",
) -> Bill:
    require_role(actor, ROLE_STORE_MANAGER)
    if actor.store_id is None:
        raise BadRequest("Store manager is not bound to a store")
    pct, mode = _validate_header(discount_percentage, mode_of_payment)
    customer = customer or {}

    def _op():
        store = db.session.get(Store, actor.store_id)
        if not store or not store.is_active:
            raise NotFound("Store not found")

        cust = _find_or_create_customer(customer.get("name"), customer.get("phone"), customer.get("email"))
        priced = _price_lines(lines)
        for p in priced:
            catalog_service.decrement_store_quantity(store.id, p["variant_size_id"], p["quantity"])

        total, discount, after = _totals(priced, pct)
        bill = Bill(
            bill_id=unique_code(Bill.bill_id),
            invoice_no=next_document_number(
                store_id=store.id, document_type=DOCUMENT_TYPE_INVOICE, prefix="INVOICE"
            ),
            store_id=store.id,
            customer_id=cust.id,
            created_by_user_id=actor.user_id,
            total_amount_cents=total,
            discount_percentage=pct,
            discount_amount_cents=discount,
            price_after_discount_cents=after,
            mode_of_payment=mode,
        )
        for p in priced:
            bill.lines.append(BillLine(**p))
        db.session.add(bill)
        db.session.flush()
        return bill

    return run_in_transaction(_op)


def create_bill_delete_request(bill_id: str, *, actor: AuthContext, note: str | None = None) -> Bill:
    require_role(actor, ROLE_STORE_MANAGER)

    def _op():
        bill = _get_bill(bill_id, lock=True)
        require_store_access(actor, bill.store_id)
        if bill.is_deleted:
            raise BadRequest("Bill is already deleted")
        if bill.delete_req_status == REQUEST_STATUS_PENDING:
            raise BadRequest("A delete request is already pending for this bill")
        if bill.edit_status == REQUEST_STATUS_PENDING:
            raise BadRequest("An edit request is pending for this bill")

        bill.delete_req_status = REQUEST_STATUS_PENDING
        bill.delete_req_note = note
        bill.delete_validate_note = None
        bill.delete_requested_at = utcnow()
        bill.delete_validated_at = None
        return bill

    return run_in_transaction(_op)


def validate_bill_delete_request(
    bill_id: str, *, actor: AuthContext, is_approved: bool, note: str | None = None
) -> Bill:
    require_role(actor, ROLE_WAREHOUSE_MANAGER)

    def _op():
        bill = _get_bill(bill_id, lock=True)
        if bill.delete_req_status != REQUEST_STATUS_PENDING:
            raise BadRequest("No pending delete request for this bill")

        if is_approved:
            for line in bill.lines:
                catalog_service.increment_store_quantity(bill.store_id, line.variant_size_id, line.quantity)
            bill.is_deleted = True
            bill.delete_req_status = REQUEST_STATUS_APPROVED
        else:
            bill.delete_req_status = REQUEST_STATUS_REJECTED
        bill.delete_validate_note = note
        bill.delete_validated_at = utcnow()
        return bill

    return run_in_transaction(_op)


def create_bill_edit_request(
    bill_id: str,
    *,
    actor: AuthContext,
    lines: list[dict],
    discount_percentage=0,
    mode_of_payment: str = "CASH",
    customer: dict | None = None,
    note: str | None = None,
) -> BillEditRequest:
    """
    Submit replacement contents for a bill.

    Availability of any extra units is checked here but only enforced when
    the request is approved.
    """
    require_role(actor, ROLE_STORE_MANAGER)
    pct, mode = _validate_header(discount_percentage, mode_of_payment)
    customer = customer or {}

    def _op():
        bill = _get_bill(bill_id, lock=True)
        require_store_access(actor, bill.store_id)
        if bill.is_deleted:
            raise BadRequest("Cannot edit a deleted bill")
        if bill.edit_status == REQUEST_STATUS_PENDING:
            raise BadRequest("An edit request is already pending for this bill")
        if bill.delete_req_status == REQUEST_STATUS_PENDING:
            raise BadRequest("A delete request is pending for this bill")

        priced = _price_lines(lines)
        before = _quantities(bill.lines)
        for vs_id, qty in _quantities(priced).items():
            extra = qty - before.get(vs_id, 0)
            if extra > 0 and catalog_service.get_store_quantity(bill.store_id, vs_id) < extra:
                raise InsufficientStock(
                    "Insufficient stock at store",
                    {"variant_size_id": vs_id, "requested": extra},
                )

        total, discount, after = _totals(priced, pct)
        req = BillEditRequest(
            edit_bill_req_id=unique_code(BillEditRequest.edit_bill_req_id),
            bill_pk=bill.id,
            store_id=bill.store_id,
            requested_by_user_id=actor.user_id,
            status=REQUEST_STATUS_PENDING,
            req_note=note,
            customer_name=customer.get("name") or bill.customer.name,
            customer_phone=customer.get("phone") or bill.customer.phone,
            discount_percentage=pct,
            mode_of_payment=mode,
            total_amount_cents=total,
            discount_amount_cents=discount,
            price_after_discount_cents=after,
        )
        for p in priced:
            req.lines.append(BillEditRequestLine(**p))
        db.session.add(req)
        bill.edit_status = REQUEST_STATUS_PENDING
        db.session.flush()
        return req

    return run_in_transaction(_op)


def validate_bill_edit_request(
    edit_bill_req_id: str, *, actor: AuthContext, is_approved: bool, note: str | None = None
) -> BillEditRequest:
    require_role(actor, ROLE_WAREHOUSE_MANAGER)

    def _op():
        req = lock_for_update(
            db.session.query(BillEditRequest).filter_by(edit_bill_req_id=edit_bill_req_id)
        ).first()
        if not req:
            raise NotFound("Bill edit request not found")
        if req.status != REQUEST_STATUS_PENDING:
            raise BadRequest(f"Edit request already {req.status.lower()}")

        bill = _get_bill(req.bill.bill_id, lock=True)
        now = utcnow()

        if is_approved:
            if bill.is_deleted:
                raise BadRequest("Cannot apply an edit to a deleted bill")
            db.session.add(OldBill(bill_pk=bill.id, edit_request_pk=req.id, snapshot=bill.to_dict()))

            before = _quantities(bill.lines)
            after = _quantities(req.lines)
            for vs_id in sorted(set(before) | set(after)):
                delta = after.get(vs_id, 0) - before.get(vs_id, 0)
                if delta > 0:
                    catalog_service.decrement_store_quantity(bill.store_id, vs_id, delta)
                elif delta < 0:
                    catalog_service.increment_store_quantity(bill.store_id, vs_id, -delta)

            cust = _find_or_create_customer(req.customer_name, req.customer_phone)
            bill.customer_id = cust.id
            bill.discount_percentage = req.discount_percentage
            bill.mode_of_payment = req.mode_of_payment
            bill.total_amount_cents = req.total_amount_cents
            bill.discount_amount_cents = req.discount_amount_cents
            bill.price_after_discount_cents = req.price_after_discount_cents
            bill.lines = [
                BillLine(
                    variant_size_id=line.variant_size_id,
                    group=line.group,
                    product_id=line.product_id,
                    variant_id=line.variant_id,
                    color_name=line.color_name,
                    size=line.size,
                    style_coat=line.style_coat,
                    price_cents=line.price_cents,
                    quantity=line.quantity,
                )
                for line in req.lines
            ]
            bill.edit_status = REQUEST_STATUS_APPROVED
            req.status = REQUEST_STATUS_APPROVED
        else:
            bill.edit_status = REQUEST_STATUS_REJECTED
            req.status = REQUEST_STATUS_REJECTED

        req.validate_note = note
        req.validated_at = now
        req.validated_by_user_id = actor.user_id
        return req

    return run_in_transaction(_op)


def attach_invoice(bill_id: str, data: bytes, *, actor: AuthContext, blob_store) -> Bill:
    """Store the invoice PDF and keep its URL on the bill."""
    require_role(actor, ROLE_STORE_MANAGER, ROLE_WAREHOUSE_MANAGER)
    if not data:
        raise BadRequest("Invoice file is empty")

    def _op():
        bill = _get_bill(bill_id, lock=True)
        require_store_access(actor, bill.store_id)
        key = f"invoices/{bill.store_id}/{bill.invoice_no}-{bill.bill_id}.pdf"
        bill.invoice_url = blob_store.put(data, key, "application/pdf")
        return bill

    return run_in_transaction(_op)


# ---------------------------------------------------------------------------
# Read side
# ---------------------------------------------------------------------------

def list_bills(
    *,
    actor: AuthContext,
    store_id: int | None = None,
    include_deleted: bool = False,
    delete_req_status: str | None = None,
) -> list[Bill]:
    require_role(actor, ROLE_STORE_MANAGER, ROLE_WAREHOUSE_MANAGER)
    q = db.session.query(Bill)
    if actor.is_store_manager:
        q = q.filter(Bill.store_id == actor.store_id)
    elif store_id is not None:
        q = q.filter(Bill.store_id == store_id)
    if not include_deleted:
        q = q.filter(Bill.is_deleted.is_(False))
    if delete_req_status:
        q = q.filter(Bill.delete_req_status == delete_req_status)
    return q.order_by(Bill.created_at.desc(), Bill.id.desc()).all()


def get_bill(bill_id: str, *, actor: AuthContext) -> Bill:
    require_role(actor, ROLE_STORE_MANAGER, ROLE_WAREHOUSE_MANAGER)
    bill = _get_bill(bill_id)
    require_store_access(actor, bill.store_id)
    return bill


def get_bill_history(bill_id: str, *, actor: AuthContext) -> list[OldBill]:
    bill = get_bill(bill_id, actor=actor)
    return db.session.query(OldBill).filter_by(bill_pk=bill.id).order_by(OldBill.id.asc()).all()


def list_bill_edit_requests(*, actor: AuthContext, status: str | None = None) -> list[BillEditRequest]:
    require_role(actor, ROLE_STORE_MANAGER, ROLE_WAREHOUSE_MANAGER)
    q = db.session.query(BillEditRequest)
    if actor.is_store_manager:
        q = q.filter(BillEditRequest.store_id == actor.store_id)
    if status:
        q = q.filter(BillEditRequest.status == status)
    return q.order_by(BillEditRequest.created_at.desc(), BillEditRequest.id.desc()).all()


def get_bill_edit_request(edit_bill_req_id: str, *, actor: AuthContext) -> BillEditRequest:
    require_role(actor, ROLE_STORE_MANAGER, ROLE_WAREHOUSE_MANAGER)
    req = db.session.query(BillEditRequest).filter_by(edit_bill_req_id=edit_bill_req_id).first()
    if not req:
        raise NotFound("Bill edit request not found")
    require_store_access(actor, req.store_id)
    return req
