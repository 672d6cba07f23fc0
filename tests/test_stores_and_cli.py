# Overview: Pytest coverage for the store registry and Flask CLI commands.

from datetime import timedelta

import pytest

from dresscode.errors import BadRequest, Conflict, Forbidden
from dresscode.models import Coupon, Store, User
from dresscode.models.auth import ROLE_WAREHOUSE_MANAGER
from dresscode.models.coupons import COUPON_STATUS_EXPIRED
from dresscode.services import coupon_service, store_service
from dresscode.time_utils import utcnow


class TestStoreRegistry:

    def test_create_and_update(self, db_session, wm_ctx):
        store = store_service.create_store(
            actor=wm_ctx, store_name="  Whitefield ", commission_percentage=8, city="Bengaluru"
        )
        assert store.store_name == "Whitefield"
        assert store.city == "Bengaluru"

        updated = store_service.update_store(store.id, actor=wm_ctx, commission_percentage=15, is_active=False)
        assert updated.commission_percentage == 15
        assert updated.is_active is False
        assert store.id not in [s.id for s in store_service.list_stores(actor=wm_ctx)]
        assert store.id in [s.id for s in store_service.list_stores(actor=wm_ctx, include_inactive=True)]

    def test_duplicate_name(self, db_session, wm_ctx, store):
        with pytest.raises(Conflict):
            store_service.create_store(actor=wm_ctx, store_name="Indiranagar")

    def test_commission_out_of_range(self, db_session, wm_ctx):
        with pytest.raises(BadRequest):
            store_service.create_store(actor=wm_ctx, store_name="X", commission_percentage=120)

    def test_warehouse_stays_active(self, db_session, wm_ctx, warehouse):
        with pytest.raises(BadRequest):
            store_service.update_store(warehouse.id, actor=wm_ctx, is_active=False)

    def test_store_manager_cannot_create(self, db_session, sm_ctx):
        with pytest.raises(Forbidden):
            store_service.create_store(actor=sm_ctx, store_name="Rogue")

    def test_ensure_warehouse_is_idempotent(self, db_session):
        first = store_service.ensure_warehouse()
        db_session.commit()
        assert store_service.ensure_warehouse().id == first.id


class TestCli:

    def test_system_init(self, app, db_session):
        runner = app.test_cli_runner()
        result = runner.invoke(args=["system", "init", "--email", "boss@dresscode.test"])
        assert result.exit_code == 0
        assert "DONE" in result.output

        user = db_session.query(User).filter_by(email="boss@dresscode.test").one()
        assert user.role == ROLE_WAREHOUSE_MANAGER
        assert user.store_id == store_service.get_warehouse().id

        again = runner.invoke(args=["system", "init", "--email", "boss@dresscode.test"])
        assert "already exists" in again.output
        assert db_session.query(Store).count() == 1

    def test_stores_create(self, app, db_session):
        runner = app.test_cli_runner()
        result = runner.invoke(args=["stores", "create", "--name", "Malleshwaram", "--commission", "7"])
        assert "PASS" in result.output
        assert db_session.query(Store).filter_by(store_name="Malleshwaram").one().commission_percentage == 7

    def test_maintenance_sweep(self, app, db_session, wm_ctx):
        coupon = coupon_service.issue_coupon(
            actor=wm_ctx, discount_percentage=5, expiry_date=utcnow() + timedelta(days=1)
        )
        coupon.expiry_date = utcnow() - timedelta(hours=1)
        db_session.commit()

        result = app.test_cli_runner().invoke(args=["maintenance", "sweep", "--ttl-hours", "1"])
        assert "Expired 1 coupons" in result.output
        assert db_session.get(Coupon, coupon.id).status == COUPON_STATUS_EXPIRED
