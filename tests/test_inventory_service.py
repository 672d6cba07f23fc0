# Overview: Pytest coverage for stock intake, assignment, raise requests and receipts.

import pytest

from conftest import SHIRT_ID, intake_row
from dresscode.errors import BadRequest, Forbidden, InsufficientStock, NotFound
from dresscode.models import AssignedHistory, AssignedInventory, Product, StoreQuantity
from dresscode.models.inventory import (
    ASSIGNED_STATUS_ADJUSTED,
    ASSIGNED_STATUS_ASSIGNED,
    ASSIGNED_STATUS_RECEIVED,
    RAISED_STATUS_APPROVED,
    RAISED_STATUS_DRAFT,
    RAISED_STATUS_PENDING,
    RAISED_STATUS_RECEIVED,
    RAISED_STATUS_REJECTED,
)
from dresscode.services import catalog_service, inventory_service, ledger_service


def _size(size):
    return catalog_service.find_variant_size("TOGS", SHIRT_ID, "WHITE", size)


class TestWarehouseIntake:

    def test_intake_creates_product_and_received_ledger(self, db_session, wm_ctx, warehouse):
        ledger = inventory_service.process_csv_file(
            [intake_row()], group="TOGS", destination_store_id=warehouse.id, actor=wm_ctx
        )

        product = db_session.query(Product).filter_by(group="TOGS").one()
        assert product.product_id == "SCHOOL_ABC_SHIRT_Formal_BOY_PLAIN"
        assert len(product.variants) == 1
        assert [(s.size, s.quantity) for s in product.variants[0].sizes] == [("M", 10)]

        assert ledger.status == ASSIGNED_STATUS_RECEIVED
        assert ledger.total_amount_cents == 500000
        assert ledger.store_id == warehouse.id

    def test_repeat_intake_adds_to_existing_size(self, db_session, wm_ctx, warehouse):
        for _ in range(2):
            inventory_service.process_csv_file(
                [intake_row(quantity="4")], group="togs", destination_store_id=warehouse.id, actor=wm_ctx
            )
        assert _size("M").quantity == 8
        assert db_session.query(Product).count() == 1

    def test_camel_case_headers_are_accepted(self, db_session, wm_ctx, warehouse):
        row = {
            "category": "SCHOOL",
            "schoolName": "ABC",
            "productCategory": "SHIRT",
            "productName": "Formal",
            "gender": "BOY",
            "pattern": "PLAIN",
            "variantColor": "white",
            "variantSize": "m",
            "variantQuantity": "3",
            "price": "500",
            "styleCoat": "SC-1",
        }
        inventory_service.process_csv_file([row], group="TOGS", destination_store_id=warehouse.id, actor=wm_ctx)
        vs = _size("M")
        assert vs.quantity == 3
        assert vs.style_coat == "SC-1"

    def test_missing_field_reports_row_number_and_rolls_back(self, db_session, wm_ctx, warehouse):
        rows = [intake_row(), intake_row(size="L", quantity="")]
        with pytest.raises(BadRequest) as exc:
            inventory_service.process_csv_file(rows, group="TOGS", destination_store_id=warehouse.id, actor=wm_ctx)

        assert "Missing required field: quantity" in exc.value.message
        assert exc.value.details["row"] == 3
        assert db_session.query(Product).count() == 0

    def test_non_integer_quantity_rejected(self, db_session, wm_ctx, warehouse):
        with pytest.raises(BadRequest):
            inventory_service.process_csv_file(
                [intake_row(quantity="2.5")], group="TOGS", destination_store_id=warehouse.id, actor=wm_ctx
            )

    def test_unknown_group_rejected(self, db_session, wm_ctx, warehouse):
        with pytest.raises(BadRequest):
            inventory_service.process_csv_file(
                [intake_row()], group="NOPE", destination_store_id=warehouse.id, actor=wm_ctx
            )

    def test_store_manager_cannot_upload(self, db_session, sm_ctx, warehouse):
        with pytest.raises(Forbidden):
            inventory_service.process_csv_file(
                [intake_row()], group="TOGS", destination_store_id=warehouse.id, actor=sm_ctx
            )

    def test_unknown_destination_store(self, db_session, wm_ctx, warehouse):
        with pytest.raises(NotFound):
            inventory_service.process_csv_file(
                [intake_row()], group="TOGS", destination_store_id=9999, actor=wm_ctx
            )


class TestAssignment:

    def test_assignment_moves_central_stock_to_store(self, db_session, stocked_store, wm_ctx):
        m, l = _size("M"), _size("L")
        assert m.quantity == 10
        assert l.quantity == 2
        assert catalog_service.get_store_quantity(stocked_store.id, m.id) == 10
        assert catalog_service.get_store_quantity(stocked_store.id, l.id) == 3

        assignments = inventory_service.list_assigned_inventories(actor=wm_ctx, store_id=stocked_store.id)
        assert len(assignments) == 1
        assert assignments[0].status == ASSIGNED_STATUS_ASSIGNED
        assert assignments[0].total_amount_cents == 13 * 10000

    def test_assignment_writes_size_history(self, db_session, stocked_store):
        m = _size("M")
        assert ledger_service.get_assigned_total(m.id, stocked_store.id) == 10
        assert db_session.query(AssignedHistory).filter_by(store_id=stocked_store.id).count() == 2

    def test_over_assignment_is_all_or_nothing(self, db_session, catalog, wm_ctx, store):
        rows = [
            {"style_coat": "TG-WHT-M", "variant_color": "WHITE", "variant_size": "M", "quantity": "5"},
            {"style_coat": "TG-WHT-L", "variant_color": "WHITE", "variant_size": "L", "quantity": "6"},
        ]
        with pytest.raises(InsufficientStock) as exc:
            inventory_service.process_csv_file(rows, group="TOGS", destination_store_id=store.id, actor=wm_ctx)

        assert exc.value.details["row"] == 3
        assert _size("M").quantity == 20
        assert _size("L").quantity == 5
        assert db_session.query(StoreQuantity).count() == 0

    def test_assignment_of_unknown_size_fails(self, db_session, catalog, wm_ctx, store):
        row = intake_row(size="XXL", quantity="1")
        with pytest.raises(NotFound) as exc:
            inventory_service.process_csv_file([row], group="TOGS", destination_store_id=store.id, actor=wm_ctx)
        assert exc.value.message.startswith("Row 2:")

    def test_store_manager_receives_own_assignment(self, db_session, stocked_store, wm_ctx, sm_ctx):
        assignment = inventory_service.list_assigned_inventories(actor=wm_ctx, store_id=stocked_store.id)[0]
        received = inventory_service.receive_inventory(assignment.assigned_inventory_id, actor=sm_ctx)

        assert received.status == ASSIGNED_STATUS_RECEIVED
        assert received.received_date is not None
        # Receipt is a confirmation only
        assert catalog_service.get_store_quantity(stocked_store.id, _size("M").id) == 10

    def test_receive_twice_is_rejected(self, db_session, stocked_store, wm_ctx, sm_ctx):
        assignment = inventory_service.list_assigned_inventories(actor=wm_ctx, store_id=stocked_store.id)[0]
        inventory_service.receive_inventory(assignment.assigned_inventory_id, actor=sm_ctx)
        with pytest.raises(BadRequest):
            inventory_service.receive_inventory(assignment.assigned_inventory_id, actor=sm_ctx)

    def test_other_store_manager_cannot_receive(self, db_session, stocked_store, wm_ctx, other_sm_ctx):
        assignment = inventory_service.list_assigned_inventories(actor=wm_ctx, store_id=stocked_store.id)[0]
        with pytest.raises(Forbidden):
            inventory_service.receive_inventory(assignment.assigned_inventory_id, actor=other_sm_ctx)

    def test_store_manager_only_lists_own_store(self, db_session, stocked_store, other_sm_ctx, sm_ctx):
        assert len(inventory_service.list_assigned_inventories(actor=sm_ctx)) == 1
        assert inventory_service.list_assigned_inventories(actor=other_sm_ctx) == []

    def test_store_stock_view(self, db_session, stocked_store, sm_ctx):
        stock = inventory_service.get_store_stock(stocked_store.id, actor=sm_ctx)
        by_size = {item["size"]: item for item in stock}
        assert by_size["M"]["present_quantity"] == 10
        assert by_size["M"]["assigned_total"] == 10
        assert by_size["L"]["present_quantity"] == 3


class TestRaisedInventory:

    def _raise(self, sm_ctx, quantity="4", draft=False):
        return inventory_service.create_raised_inventory(
            [{"style_coat": "TG-WHT-M", "variant_color": "WHITE", "variant_size": "M", "quantity": quantity}],
            group="TOGS",
            actor=sm_ctx,
            draft=draft,
        )

    def test_raise_records_pending_request_at_catalog_price(self, db_session, catalog, sm_ctx, store):
        raised = self._raise(sm_ctx)
        assert raised.status == RAISED_STATUS_PENDING
        assert raised.store_id == store.id
        assert raised.total_amount_raised_cents == 4 * 10000
        assert [line.quantity for line in raised.lines] == [4]

    def test_draft_then_submit(self, db_session, catalog, sm_ctx):
        raised = self._raise(sm_ctx, draft=True)
        assert raised.status == RAISED_STATUS_DRAFT
        submitted = inventory_service.submit_raised_inventory(raised.raised_inventory_id, actor=sm_ctx)
        assert submitted.status == RAISED_STATUS_PENDING

    def test_full_lifecycle(self, db_session, catalog, sm_ctx, wm_ctx, store):
        raised = self._raise(sm_ctx)
        code = raised.raised_inventory_id

        approved = inventory_service.approve_inventory(code, actor=wm_ctx, note="ok")
        assert approved.status == RAISED_STATUS_APPROVED
        # Approval alone moves nothing
        assert _size("M").quantity == 20

        assignment = inventory_service.fulfill_raised_inventory(code, actor=wm_ctx)
        assert assignment.status == ASSIGNED_STATUS_ASSIGNED
        assert _size("M").quantity == 16
        assert catalog_service.get_store_quantity(store.id, _size("M").id) == 4

        received = inventory_service.receive_inventory_request(code, actor=sm_ctx)
        assert received.status == RAISED_STATUS_RECEIVED
        assert received.assigned_inventory.status == ASSIGNED_STATUS_RECEIVED

    def test_fulfill_twice_is_rejected(self, db_session, catalog, sm_ctx, wm_ctx):
        code = self._raise(sm_ctx).raised_inventory_id
        inventory_service.approve_inventory(code, actor=wm_ctx)
        inventory_service.fulfill_raised_inventory(code, actor=wm_ctx)
        with pytest.raises(BadRequest):
            inventory_service.fulfill_raised_inventory(code, actor=wm_ctx)
        assert _size("M").quantity == 16

    def test_fulfill_without_stock_leaves_request_approved(self, db_session, catalog, sm_ctx, wm_ctx):
        code = self._raise(sm_ctx, quantity="50").raised_inventory_id
        inventory_service.approve_inventory(code, actor=wm_ctx)
        with pytest.raises(InsufficientStock):
            inventory_service.fulfill_raised_inventory(code, actor=wm_ctx)

        raised = inventory_service.get_raised_inventory(code, actor=wm_ctx)
        assert raised.status == RAISED_STATUS_APPROVED
        assert raised.assigned_inventory_pk is None

    def test_reject(self, db_session, catalog, sm_ctx, wm_ctx):
        code = self._raise(sm_ctx).raised_inventory_id
        rejected = inventory_service.reject_inventory(code, actor=wm_ctx, note="not this season")
        assert rejected.status == RAISED_STATUS_REJECTED
        assert rejected.decision_note == "not this season"
        with pytest.raises(BadRequest):
            inventory_service.approve_inventory(code, actor=wm_ctx)

    def test_receive_before_fulfillment_is_rejected(self, db_session, catalog, sm_ctx, wm_ctx):
        code = self._raise(sm_ctx).raised_inventory_id
        inventory_service.approve_inventory(code, actor=wm_ctx)
        with pytest.raises(BadRequest):
            inventory_service.receive_inventory_request(code, actor=sm_ctx)

    def test_store_manager_cannot_approve(self, db_session, catalog, sm_ctx):
        code = self._raise(sm_ctx).raised_inventory_id
        with pytest.raises(Forbidden):
            inventory_service.approve_inventory(code, actor=sm_ctx)

    def test_raise_for_unknown_product_fails(self, db_session, catalog, sm_ctx):
        with pytest.raises(NotFound):
            inventory_service.create_raised_inventory(
                [{"style_coat": "NOPE", "variant_color": "WHITE", "variant_size": "M", "quantity": "1"}],
                group="TOGS",
                actor=sm_ctx,
            )

    def test_other_store_cannot_view_request(self, db_session, catalog, sm_ctx, other_sm_ctx):
        code = self._raise(sm_ctx).raised_inventory_id
        with pytest.raises(Forbidden):
            inventory_service.get_raised_inventory(code, actor=other_sm_ctx)


class TestCatalogMaintenance:

    def test_raising_stock_writes_adjustment_ledger(self, db_session, catalog, wm_ctx, warehouse):
        inventory_service.update_variant_size("TG-WHT-L", actor=wm_ctx, quantity=12)

        assert _size("L").quantity == 12
        ledger = db_session.query(AssignedInventory).filter_by(status=ASSIGNED_STATUS_ADJUSTED).one()
        assert ledger.store_id == warehouse.id
        assert [(l.size, l.quantity) for l in ledger.lines] == [("L", 7)]
        assert ledger.total_amount_cents == 70000
        history = db_session.query(AssignedHistory).filter_by(assigned_inventory_pk=ledger.id).one()
        assert history.quantity_of_assigned == 7

    def test_lowering_stock_records_negative_change(self, db_session, catalog, wm_ctx, warehouse):
        inventory_service.update_variant_size("TG-WHT-M", actor=wm_ctx, quantity=0)

        assert _size("M").quantity == 0
        ledger = db_session.query(AssignedInventory).filter_by(status=ASSIGNED_STATUS_ADJUSTED).one()
        assert ledger.lines[0].quantity == -20
        assert ledger_service.get_assigned_total(_size("M").id, warehouse.id) == 0

    def test_price_only_change_writes_no_ledger(self, db_session, catalog, wm_ctx):
        inventory_service.update_variant_size("TG-WHT-M", actor=wm_ctx, price="149.50")

        assert catalog_service.get_product("TOGS", SHIRT_ID).price_cents == 14950
        assert _size("M").quantity == 20
        assert db_session.query(AssignedInventory).filter_by(status=ASSIGNED_STATUS_ADJUSTED).count() == 0

    def test_same_quantity_is_a_no_op(self, db_session, catalog, wm_ctx):
        inventory_service.update_variant_size("TG-WHT-M", actor=wm_ctx, quantity=20)
        assert db_session.query(AssignedInventory).filter_by(status=ASSIGNED_STATUS_ADJUSTED).count() == 0

    @pytest.mark.parametrize("changes", [{}, {"quantity": -1}, {"quantity": "ten"}, {"price": "abc"}])
    def test_invalid_changes(self, db_session, catalog, wm_ctx, changes):
        with pytest.raises(BadRequest):
            inventory_service.update_variant_size("TG-WHT-M", actor=wm_ctx, **changes)
        assert _size("M").quantity == 20

    def test_store_manager_cannot_correct_stock(self, db_session, catalog, sm_ctx):
        with pytest.raises(Forbidden):
            inventory_service.update_variant_size("TG-WHT-M", actor=sm_ctx, quantity=1)

    def test_unknown_style_coat(self, db_session, catalog, wm_ctx):
        with pytest.raises(NotFound):
            inventory_service.update_variant_size("NOPE", actor=wm_ctx, quantity=1)

    def test_removed_variant_cannot_be_found(self, db_session, catalog, wm_ctx):
        variant = inventory_service.remove_variant("TOGS", SHIRT_ID, "white", actor=wm_ctx)

        assert variant.is_deleted is True
        with pytest.raises(NotFound):
            _size("M")
        with pytest.raises(NotFound, match="Variant not found"):
            inventory_service.remove_variant("TOGS", SHIRT_ID, "WHITE", actor=wm_ctx)

    def test_deleted_product_leaves_search_and_intake_revives_it(self, db_session, catalog, wm_ctx, warehouse):
        inventory_service.soft_delete_product("TOGS", SHIRT_ID, actor=wm_ctx)

        assert catalog_service.search_products("TOGS") == []
        with pytest.raises(NotFound):
            catalog_service.get_product("TOGS", SHIRT_ID)

        inventory_service.process_csv_file(
            [intake_row(size="M", quantity="1", price="100")],
            group="TOGS",
            destination_store_id=warehouse.id,
            actor=wm_ctx,
        )
        assert [p.product_id for p in catalog_service.search_products("TOGS")] == [SHIRT_ID]
        assert _size("M").quantity == 21
