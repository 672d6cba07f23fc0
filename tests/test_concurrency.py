# Overview: Pytest coverage for concurrent payment verification against a file-backed database.

"""
Two customers pay for the last units at the same moment.

The shared in-memory database of the other tests lives on one connection,
so this module builds its own application on a SQLite file where each
thread gets a real connection and the write lock decides the winner.
"""

import threading

import pytest

from conftest import PASSWORD_HASH, SHIRT_ID, FakeGateway, ctx_for, intake_row
from dresscode import create_app
from dresscode.errors import InsufficientStock
from dresscode.extensions import db
from dresscode.models import Address, Payment, Store, User
from dresscode.models.auth import ROLE_CUSTOMER, ROLE_WAREHOUSE_MANAGER
from dresscode.models.stores import STORE_TYPE_WAREHOUSE
from dresscode.services import catalog_service, inventory_service, order_service


@pytest.fixture
def file_app(tmp_path):
    gateway = FakeGateway()
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': f"sqlite:///{tmp_path / 'race.db'}",
        'SQLALCHEMY_ENGINE_OPTIONS': {'connect_args': {'timeout': 15}},
        'PAYMENT_GATEWAY': gateway,
    })
    with app.app_context():
        db.create_all()
    yield app
    with app.app_context():
        db.session.remove()
        db.engine.dispose()


def _seed(app):
    """Warehouse with 5 x WHITE L and two unpaid orders for all of them."""
    gateway = app.extensions['payment_gateway']
    with app.app_context():
        warehouse = Store(store_name="Central Warehouse", store_type=STORE_TYPE_WAREHOUSE)
        db.session.add(warehouse)
        db.session.flush()
        manager = User(
            name="Wendy", email="wm@dresscode.test", role=ROLE_WAREHOUSE_MANAGER,
            store_id=warehouse.id, password_hash=PASSWORD_HASH,
        )
        customer = User(name="Chitra", email="customer@dresscode.test", role=ROLE_CUSTOMER, password_hash=PASSWORD_HASH)
        db.session.add_all([manager, customer])
        db.session.flush()
        address = Address(
            user_id=customer.id, address="12 MG Road", city="Bengaluru",
            pin_code="560001", state="Karnataka", is_default=True,
        )
        db.session.add(address)
        db.session.commit()

        inventory_service.process_csv_file(
            [intake_row(size="L", quantity="5", price="100", style_coat="TG-WHT-L")],
            group="TOGS",
            destination_store_id=warehouse.id,
            actor=ctx_for(manager),
        )
        customer_ctx = ctx_for(customer)
        line = {"group": "TOGS", "product_id": SHIRT_ID, "color": "WHITE", "size": "L", "quantity": 5}
        orders = [
            order_service.create_order(actor=customer_ctx, address_id=address.id, lines=[line], gateway=gateway)
            for _ in range(2)
        ]
        return customer_ctx, [(o.order_id, o.gateway_order_id) for o in orders]


class TestLastUnitsRace:

    def test_only_one_concurrent_payment_gets_the_stock(self, file_app):
        gateway = file_app.extensions['payment_gateway']
        customer_ctx, orders = _seed(file_app)
        barrier = threading.Barrier(len(orders))
        results = []

        def pay(order_id, gateway_order_id, payment_id):
            with file_app.app_context():
                barrier.wait()
                try:
                    order_service.verify_payment(
                        order_id=order_id,
                        razorpay_order_id=gateway_order_id,
                        razorpay_payment_id=payment_id,
                        razorpay_signature=gateway.sign(gateway_order_id, payment_id),
                        actor=customer_ctx,
                        gateway=gateway,
                    )
                    results.append("paid")
                except InsufficientStock:
                    results.append("sold out")
                except Exception as e:
                    results.append(repr(e))
                finally:
                    db.session.remove()

        threads = [
            threading.Thread(target=pay, args=(order_id, gateway_order_id, f"pay_{n}"))
            for n, (order_id, gateway_order_id) in enumerate(orders)
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=60)

        assert sorted(results) == ["paid", "sold out"]
        with file_app.app_context():
            assert catalog_service.find_variant_size("TOGS", SHIRT_ID, "WHITE", "L").quantity == 0
            assert db.session.query(Payment).count() == 1
