# Overview: Pytest coverage for dashboard counts and store stock exports.

import csv
import io

import pytest

from conftest import SHIRT_ID
from dresscode.errors import Forbidden, NotFound
from dresscode.services import billing_service, inventory_service, order_service, reporting_service


def _rows(text):
    return list(csv.DictReader(io.StringIO(text)))


def _paid_order(customer_ctx, address, gateway, payment_id):
    order = order_service.create_order(
        actor=customer_ctx,
        address_id=address.id,
        lines=[{"group": "TOGS", "product_id": SHIRT_ID, "color": "WHITE", "size": "M", "quantity": 1}],
        gateway=gateway,
    )
    order_service.verify_payment(
        order_id=order.order_id,
        razorpay_order_id=order.gateway_order_id,
        razorpay_payment_id=payment_id,
        razorpay_signature=gateway.sign(order.gateway_order_id, payment_id),
        actor=customer_ctx,
        gateway=gateway,
    )
    return order


class TestOverview:

    def test_counts_per_group(self, db_session, stocked_store, wm_ctx, sm_ctx, customer_ctx, address, gateway):
        _paid_order(customer_ctx, address, gateway, "pay_1")
        cancelled = _paid_order(customer_ctx, address, gateway, "pay_2")
        order_service.cancel_order(cancelled.order_id, actor=customer_ctx)
        # Unpaid orders are not counted
        order_service.create_order(
            actor=customer_ctx,
            address_id=address.id,
            lines=[{"group": "TOGS", "product_id": SHIRT_ID, "color": "WHITE", "size": "L", "quantity": 1}],
            gateway=gateway,
        )
        billing_service.create_bill(
            actor=sm_ctx, customer={"name": "Ravi", "phone": "9876543210"}, lines=[{"style_coat": "TG-WHT-M", "quantity": 2}]
        )

        overview = reporting_service.get_overview(actor=wm_ctx)

        togs = overview["groups"]["TOGS"]
        assert togs["stock_quantity"] == 11
        assert togs["stock_amount_cents"] == 110000
        assert togs["online_orders"] == 2
        assert togs["cancelled_orders"] == 1
        assert togs["offline_orders"] == 1
        assert overview["groups"]["HEAL"]["stock_quantity"] == 0
        assert overview["total"] == {
            "stock_quantity": 11,
            "stock_amount_cents": 110000,
            "online_orders": 2,
            "cancelled_orders": 1,
            "offline_orders": 1,
        }

    def test_deleted_products_are_not_stock(self, db_session, catalog, wm_ctx):
        inventory_service.soft_delete_product("TOGS", SHIRT_ID, actor=wm_ctx)
        assert reporting_service.get_overview(actor=wm_ctx)["total"]["stock_quantity"] == 0

    def test_store_manager_cannot_view(self, db_session, sm_ctx):
        with pytest.raises(Forbidden):
            reporting_service.get_overview(actor=sm_ctx)


class TestStockExport:

    def test_warehouse_exports_central_quantities(self, db_session, stocked_store, wm_ctx, warehouse):
        rows = _rows(reporting_service.export_store_stock(warehouse.id, actor=wm_ctx))

        assert [(r["size"], r["quantity"]) for r in rows] == [("M", "10"), ("L", "2")]
        assert rows[0]["product_id"] == SHIRT_ID
        assert rows[0]["style_coat"] == "TG-WHT-M"
        assert rows[0]["price"] == "100.00"

    def test_store_exports_present_quantities(self, db_session, stocked_store, sm_ctx):
        rows = _rows(reporting_service.export_store_stock(stocked_store.id, actor=sm_ctx))
        assert [(r["size"], r["quantity"]) for r in rows] == [("M", "10"), ("L", "3")]

    def test_store_without_stock_exports_header_only(self, db_session, catalog, wm_ctx, other_store):
        text = reporting_service.export_store_stock(other_store.id, actor=wm_ctx)
        assert text.splitlines() == [",".join(reporting_service.STOCK_EXPORT_HEADERS)]

    def test_other_store_manager_is_refused(self, db_session, stocked_store, other_sm_ctx):
        with pytest.raises(Forbidden):
            reporting_service.export_store_stock(stocked_store.id, actor=other_sm_ctx)

    def test_customer_is_refused(self, db_session, stocked_store, customer_ctx):
        with pytest.raises(Forbidden):
            reporting_service.export_store_stock(stocked_store.id, actor=customer_ctx)

    def test_unknown_store(self, db_session, wm_ctx):
        with pytest.raises(NotFound):
            reporting_service.export_store_stock(99999, actor=wm_ctx)
