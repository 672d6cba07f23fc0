# Overview: Pytest coverage for store billing and the delete/edit approval workflow.

import pytest

from conftest import SHIRT_ID
from dresscode.errors import BadRequest, Forbidden, InsufficientStock
from dresscode.models import Bill, Customer, OldBill
from dresscode.models.billing import REQUEST_STATUS_APPROVED, REQUEST_STATUS_PENDING, REQUEST_STATUS_REJECTED
from dresscode.services import billing_service, catalog_service
from dresscode.services.concurrency import run_in_transaction
from dresscode.services.document_service import DOCUMENT_TYPE_INVOICE, next_document_number


CUSTOMER = {"name": "Ravi", "phone": "9876543210"}


def _m(quantity):
    return {"style_coat": "TG-WHT-M", "quantity": quantity}


def _l(quantity):
    return {"style_coat": "TG-WHT-L", "quantity": quantity}


def _store_qty(store, size):
    vs = catalog_service.find_variant_size("TOGS", SHIRT_ID, "WHITE", size)
    return catalog_service.get_store_quantity(store.id, vs.id)


def _bill(ctx, lines=None, **kwargs):
    return billing_service.create_bill(actor=ctx, customer=CUSTOMER, lines=lines or [_m(2)], **kwargs)


class TestCreateBill:

    def test_bill_draws_on_store_stock(self, db_session, stocked_store, sm_ctx):
        bill = _bill(sm_ctx, discount_percentage=10, mode_of_payment="upi")

        assert bill.invoice_no == "INVOICE-1"
        assert bill.total_amount_cents == 20000
        assert bill.discount_amount_cents == 2000
        assert bill.price_after_discount_cents == 18000
        assert bill.mode_of_payment == "UPI"
        assert _store_qty(stocked_store, "M") == 8
        # Central stock is untouched by billing
        assert catalog_service.find_variant_size("TOGS", SHIRT_ID, "WHITE", "M").quantity == 10

    def test_invoice_numbers_increase_and_customer_is_reused(self, db_session, stocked_store, sm_ctx):
        first = _bill(sm_ctx)
        second = _bill(sm_ctx, lines=[_l(1)])

        assert (first.invoice_no, second.invoice_no) == ("INVOICE-1", "INVOICE-2")
        assert first.customer_id == second.customer_id
        assert db_session.query(Customer).count() == 1

    def test_invoice_sequence_is_per_store(self, db_session, store, other_store):
        numbers = run_in_transaction(lambda: [
            next_document_number(store_id=store.id, document_type=DOCUMENT_TYPE_INVOICE, prefix="INVOICE"),
            next_document_number(store_id=other_store.id, document_type=DOCUMENT_TYPE_INVOICE, prefix="INVOICE"),
            next_document_number(store_id=store.id, document_type=DOCUMENT_TYPE_INVOICE, prefix="INVOICE"),
        ])
        assert numbers == ["INVOICE-1", "INVOICE-1", "INVOICE-2"]

    def test_short_store_stock_rolls_back(self, db_session, stocked_store, sm_ctx):
        with pytest.raises(InsufficientStock):
            _bill(sm_ctx, lines=[_m(2), _l(4)])

        assert _store_qty(stocked_store, "M") == 10
        assert db_session.query(Bill).count() == 0
        assert _bill(sm_ctx).invoice_no == "INVOICE-1"

    def test_stock_held_by_another_store_is_not_usable(self, db_session, stocked_store, other_sm_ctx):
        with pytest.raises(InsufficientStock):
            _bill(other_sm_ctx)

    def test_customer_phone_is_required(self, db_session, stocked_store, sm_ctx):
        with pytest.raises(BadRequest):
            billing_service.create_bill(actor=sm_ctx, customer={"name": "Ravi"}, lines=[_m(1)])

    def test_unknown_mode_of_payment(self, db_session, stocked_store, sm_ctx):
        with pytest.raises(BadRequest):
            _bill(sm_ctx, mode_of_payment="CHEQUE")

    def test_warehouse_manager_cannot_bill(self, db_session, stocked_store, wm_ctx):
        with pytest.raises(Forbidden):
            _bill(wm_ctx)

    def test_attach_invoice(self, db_session, stocked_store, sm_ctx, blob_store):
        bill = _bill(sm_ctx)
        updated = billing_service.attach_invoice(bill.bill_id, b"%PDF-1.4", actor=sm_ctx, blob_store=blob_store)

        key = f"invoices/{stocked_store.id}/INVOICE-1-{bill.bill_id}.pdf"
        assert updated.invoice_url == f"https://invoices.test/{key}"
        assert blob_store.objects[key] == (b"%PDF-1.4", "application/pdf")


class TestBillDeletion:

    def test_approved_delete_restores_store_stock(self, db_session, stocked_store, sm_ctx, wm_ctx):
        bill = _bill(sm_ctx)
        requested = billing_service.create_bill_delete_request(bill.bill_id, actor=sm_ctx, note="wrong size")
        assert requested.delete_req_status == REQUEST_STATUS_PENDING
        assert _store_qty(stocked_store, "M") == 8

        approved = billing_service.validate_bill_delete_request(bill.bill_id, actor=wm_ctx, is_approved=True)
        assert approved.delete_req_status == REQUEST_STATUS_APPROVED
        assert approved.is_deleted is True
        assert _store_qty(stocked_store, "M") == 10
        assert billing_service.list_bills(actor=sm_ctx) == []
        assert len(billing_service.list_bills(actor=sm_ctx, include_deleted=True)) == 1

    def test_rejected_delete_keeps_bill(self, db_session, stocked_store, sm_ctx, wm_ctx):
        bill = _bill(sm_ctx)
        billing_service.create_bill_delete_request(bill.bill_id, actor=sm_ctx)
        rejected = billing_service.validate_bill_delete_request(
            bill.bill_id, actor=wm_ctx, is_approved=False, note="keep it"
        )

        assert rejected.delete_req_status == REQUEST_STATUS_REJECTED
        assert rejected.is_deleted is False
        assert _store_qty(stocked_store, "M") == 8
        # A rejected request may be raised again
        again = billing_service.create_bill_delete_request(bill.bill_id, actor=sm_ctx)
        assert again.delete_req_status == REQUEST_STATUS_PENDING

    def test_duplicate_delete_request(self, db_session, stocked_store, sm_ctx):
        bill = _bill(sm_ctx)
        billing_service.create_bill_delete_request(bill.bill_id, actor=sm_ctx)
        with pytest.raises(BadRequest):
            billing_service.create_bill_delete_request(bill.bill_id, actor=sm_ctx)

    def test_validate_without_request(self, db_session, stocked_store, sm_ctx, wm_ctx):
        bill = _bill(sm_ctx)
        with pytest.raises(BadRequest):
            billing_service.validate_bill_delete_request(bill.bill_id, actor=wm_ctx, is_approved=True)

    def test_other_store_cannot_request_delete(self, db_session, stocked_store, sm_ctx, other_sm_ctx):
        bill = _bill(sm_ctx)
        with pytest.raises(Forbidden):
            billing_service.create_bill_delete_request(bill.bill_id, actor=other_sm_ctx)

    def test_store_manager_cannot_validate(self, db_session, stocked_store, sm_ctx):
        bill = _bill(sm_ctx)
        billing_service.create_bill_delete_request(bill.bill_id, actor=sm_ctx)
        with pytest.raises(Forbidden):
            billing_service.validate_bill_delete_request(bill.bill_id, actor=sm_ctx, is_approved=True)


class TestBillEdits:

    def test_approved_edit_applies_deltas_and_archives(self, db_session, stocked_store, sm_ctx, wm_ctx):
        bill = _bill(sm_ctx, lines=[_m(2), _l(1)])
        assert (_store_qty(stocked_store, "M"), _store_qty(stocked_store, "L")) == (8, 2)

        req = billing_service.create_bill_edit_request(
            bill.bill_id, actor=sm_ctx, lines=[_m(5)], discount_percentage=20, mode_of_payment="CARD"
        )
        assert req.status == REQUEST_STATUS_PENDING
        assert req.price_after_discount_cents == 40000
        # Nothing moves until approval
        assert _store_qty(stocked_store, "M") == 8

        billing_service.validate_bill_edit_request(req.edit_bill_req_id, actor=wm_ctx, is_approved=True)

        assert (_store_qty(stocked_store, "M"), _store_qty(stocked_store, "L")) == (5, 3)
        bill = billing_service.get_bill(bill.bill_id, actor=sm_ctx)
        assert [(l.size, l.quantity) for l in bill.lines] == [("M", 5)]
        assert bill.total_amount_cents == 50000
        assert bill.price_after_discount_cents == 40000
        assert bill.mode_of_payment == "CARD"
        assert bill.edit_status == REQUEST_STATUS_APPROVED
        assert bill.invoice_no == "INVOICE-1"

        history = billing_service.get_bill_history(bill.bill_id, actor=sm_ctx)
        assert len(history) == 1
        assert history[0].snapshot["total_amount_cents"] == 30000
        assert len(history[0].snapshot["products"]) == 2

    def test_rejected_edit_leaves_bill(self, db_session, stocked_store, sm_ctx, wm_ctx):
        bill = _bill(sm_ctx)
        req = billing_service.create_bill_edit_request(bill.bill_id, actor=sm_ctx, lines=[_m(4)])
        rejected = billing_service.validate_bill_edit_request(
            req.edit_bill_req_id, actor=wm_ctx, is_approved=False, note="no"
        )

        assert rejected.status == REQUEST_STATUS_REJECTED
        assert rejected.validated_by_user_id == wm_ctx.user_id
        assert _store_qty(stocked_store, "M") == 8
        assert db_session.query(OldBill).count() == 0
        assert billing_service.get_bill(bill.bill_id, actor=sm_ctx).edit_status == REQUEST_STATUS_REJECTED

    def test_edit_beyond_store_stock_is_refused(self, db_session, stocked_store, sm_ctx):
        bill = _bill(sm_ctx)
        with pytest.raises(InsufficientStock):
            billing_service.create_bill_edit_request(bill.bill_id, actor=sm_ctx, lines=[_m(11)])

    def test_stock_is_rechecked_at_approval(self, db_session, stocked_store, sm_ctx, wm_ctx):
        bill = _bill(sm_ctx)
        req = billing_service.create_bill_edit_request(bill.bill_id, actor=sm_ctx, lines=[_m(5)])
        _bill(sm_ctx, lines=[_m(7)])

        with pytest.raises(InsufficientStock):
            billing_service.validate_bill_edit_request(req.edit_bill_req_id, actor=wm_ctx, is_approved=True)

        assert _store_qty(stocked_store, "M") == 1
        pending = billing_service.get_bill_edit_request(req.edit_bill_req_id, actor=wm_ctx)
        assert pending.status == REQUEST_STATUS_PENDING

    def test_pending_edit_blocks_other_requests(self, db_session, stocked_store, sm_ctx):
        bill = _bill(sm_ctx)
        billing_service.create_bill_edit_request(bill.bill_id, actor=sm_ctx, lines=[_m(1)])

        with pytest.raises(BadRequest):
            billing_service.create_bill_edit_request(bill.bill_id, actor=sm_ctx, lines=[_m(3)])
        with pytest.raises(BadRequest):
            billing_service.create_bill_delete_request(bill.bill_id, actor=sm_ctx)

    def test_validated_request_cannot_be_validated_again(self, db_session, stocked_store, sm_ctx, wm_ctx):
        bill = _bill(sm_ctx)
        req = billing_service.create_bill_edit_request(bill.bill_id, actor=sm_ctx, lines=[_m(1)])
        billing_service.validate_bill_edit_request(req.edit_bill_req_id, actor=wm_ctx, is_approved=True)
        with pytest.raises(BadRequest):
            billing_service.validate_bill_edit_request(req.edit_bill_req_id, actor=wm_ctx, is_approved=False)

    def test_store_manager_lists_own_requests(self, db_session, stocked_store, sm_ctx, other_sm_ctx, wm_ctx):
        bill = _bill(sm_ctx)
        billing_service.create_bill_edit_request(bill.bill_id, actor=sm_ctx, lines=[_m(1)])

        assert len(billing_service.list_bill_edit_requests(actor=sm_ctx)) == 1
        assert billing_service.list_bill_edit_requests(actor=other_sm_ctx) == []
        assert len(billing_service.list_bill_edit_requests(actor=wm_ctx, status=REQUEST_STATUS_PENDING)) == 1
