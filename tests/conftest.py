"""
Pytest fixtures for dresscode backend tests.

Provides an in-memory application, per-test database cleanup, the three
roles (warehouse manager, store manager, customer) and a seeded catalog.
External collaborators (Razorpay, SES, S3) are replaced by in-process fakes.
"""

import pytest

from dresscode import create_app
from dresscode.extensions import db
from dresscode.integrations.payment_gateway import PaymentGatewayError, RazorpayGateway
from dresscode.models import Address, Store, User
from dresscode.models.auth import ROLE_CUSTOMER, ROLE_STORE_MANAGER, ROLE_WAREHOUSE_MANAGER
from dresscode.models.stores import STORE_TYPE_STORE, STORE_TYPE_WAREHOUSE
from dresscode.permissions import AuthContext
from dresscode.services import inventory_service
from dresscode.services.auth_service import hash_password
from dresscode.services.session_service import create_session


PASSWORD = "Password123!"
PASSWORD_HASH = hash_password(PASSWORD)


class FakeGateway(RazorpayGateway):
    """Real signature checks, no network for order intents."""

    def __init__(self):
        super().__init__("rzp_test_key", "rzp_test_secret")
        self.intents = []
        self.fail = False

    def create_order_intent(self, amount_cents, currency, receipt):
        self.intents.append((amount_cents, currency, receipt))
        if self.fail:
            raise PaymentGatewayError("Payment gateway unavailable")
        return {"id": f"order_{receipt}", "amount": amount_cents, "currency": currency}

    def sign(self, gateway_order_id, payment_id):
        return self.expected_signature(gateway_order_id, payment_id)


class FakeNotifier:
    def __init__(self):
        self.sent = []
        self.fail = False

    def send_email(self, to, subject, html_body):
        if self.fail:
            raise RuntimeError("SES unavailable")
        self.sent.append((to, subject))


class FakeBlobStore:
    def __init__(self):
        self.objects = {}

    def put(self, data, key, content_type="application/octet-stream"):
        self.objects[key] = (data, content_type)
        return f"https://invoices.test/{key}"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'COUPON_SECRET_KEY': 'test-coupon-secret',
        'ADMIN_EMAIL': 'admin@dresscode.test',
        'PAYMENT_GATEWAY': FakeGateway(),
        'NOTIFIER': FakeNotifier(),
        'BLOB_STORE': FakeBlobStore(),
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        for table in reversed(db.metadata.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        db.session.rollback()


@pytest.fixture(scope='function')
def gateway(app):
    gw = app.extensions['payment_gateway']
    gw.intents.clear()
    gw.fail = False
    return gw


@pytest.fixture(scope='function')
def notifier(app):
    n = app.extensions['notifier']
    n.sent.clear()
    n.fail = False
    return n


@pytest.fixture(scope='function')
def blob_store(app):
    store = app.extensions['blob_store']
    store.objects.clear()
    return store


# =============================================================================
# STORES AND USERS
# =============================================================================


@pytest.fixture(scope='function')
def warehouse(db_session):
    store = Store(store_name="Central Warehouse", store_type=STORE_TYPE_WAREHOUSE)
    db_session.add(store)
    db_session.commit()
    return store


@pytest.fixture(scope='function')
def store(db_session):
    store = Store(store_name="Indiranagar", store_type=STORE_TYPE_STORE, commission_percentage=10)
    db_session.add(store)
    db_session.commit()
    return store


@pytest.fixture(scope='function')
def other_store(db_session):
    store = Store(store_name="Jayanagar", store_type=STORE_TYPE_STORE)
    db_session.add(store)
    db_session.commit()
    return store


def _user(db_session, name, email, role, store_id=None):
    user = User(name=name, email=email, role=role, store_id=store_id, password_hash=PASSWORD_HASH)
    db_session.add(user)
    db_session.commit()
    return user


def ctx_for(user) -> AuthContext:
    return AuthContext(user_id=user.id, store_id=user.store_id, role=user.role, name=user.name)


@pytest.fixture(scope='function')
def warehouse_manager(db_session, warehouse):
    return _user(db_session, "Wendy", "wm@dresscode.test", ROLE_WAREHOUSE_MANAGER, warehouse.id)


@pytest.fixture(scope='function')
def store_manager(db_session, store):
    return _user(db_session, "Sam", "sm@dresscode.test", ROLE_STORE_MANAGER, store.id)


@pytest.fixture(scope='function')
def other_store_manager(db_session, other_store):
    return _user(db_session, "Omar", "osm@dresscode.test", ROLE_STORE_MANAGER, other_store.id)


@pytest.fixture(scope='function')
def customer(db_session):
    return _user(db_session, "Chitra", "customer@dresscode.test", ROLE_CUSTOMER)


@pytest.fixture(scope='function')
def wm_ctx(warehouse_manager):
    return ctx_for(warehouse_manager)


@pytest.fixture(scope='function')
def sm_ctx(store_manager):
    return ctx_for(store_manager)


@pytest.fixture(scope='function')
def other_sm_ctx(other_store_manager):
    return ctx_for(other_store_manager)


@pytest.fixture(scope='function')
def customer_ctx(customer):
    return ctx_for(customer)


@pytest.fixture(scope='function')
def address(db_session, customer):
    addr = Address(
        user_id=customer.id,
        address="12 MG Road",
        city="Bengaluru",
        pin_code="560001",
        state="Karnataka",
        is_default=True,
    )
    db_session.add(addr)
    db_session.commit()
    return addr


def _headers(db_session, user):
    _, token = create_session(user)
    db_session.commit()
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture(scope='function')
def wm_headers(db_session, warehouse_manager):
    return _headers(db_session, warehouse_manager)


@pytest.fixture(scope='function')
def sm_headers(db_session, store_manager):
    return _headers(db_session, store_manager)


@pytest.fixture(scope='function')
def customer_headers(db_session, customer):
    return _headers(db_session, customer)


# =============================================================================
# CATALOG
# =============================================================================


def intake_row(color="WHITE", size="M", quantity="10", price="500", **overrides):
    row = {
        "category": "SCHOOL",
        "school_name": "ABC",
        "product_category": "SHIRT",
        "product_name": "Formal",
        "gender": "BOY",
        "pattern": "PLAIN",
        "variant_color": color,
        "variant_size": size,
        "quantity": quantity,
        "price": price,
    }
    row.update(overrides)
    return row


SHIRT_ID = "SCHOOL_ABC_SHIRT_Formal_BOY_PLAIN"


@pytest.fixture(scope='function')
def catalog(wm_ctx, warehouse):
    """TOGS shirt in WHITE M (20 units) and WHITE L (5 units) at 100 rupees."""
    inventory_service.process_csv_file(
        [
            intake_row(size="M", quantity="20", price="100", style_coat="TG-WHT-M"),
            intake_row(size="L", quantity="5", price="100", style_coat="TG-WHT-L"),
        ],
        group="TOGS",
        destination_store_id=warehouse.id,
        actor=wm_ctx,
    )
    return SHIRT_ID


@pytest.fixture(scope='function')
def stocked_store(catalog, wm_ctx, store):
    """Push 10 x M and 3 x L from the warehouse to the retail store."""
    inventory_service.process_csv_file(
        [
            {"style_coat": "TG-WHT-M", "variant_color": "WHITE", "variant_size": "M", "quantity": "10"},
            {"style_coat": "TG-WHT-L", "variant_color": "WHITE", "variant_size": "L", "quantity": "3"},
        ],
        group="TOGS",
        destination_store_id=store.id,
        actor=wm_ctx,
    )
    return store
