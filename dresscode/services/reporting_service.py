# Overview: Service-layer reporting; dashboard counts and store stock exports.

from __future__ import annotations

import csv
from io import StringIO

from sqlalchemy import func

from ..errors import NotFound
from ..extensions import db
from ..models import Bill, BillLine, Order, OrderLine, Product, Store, StoreQuantity, Variant, VariantSize
from ..models.auth import ROLE_WAREHOUSE_MANAGER
from ..models.orders import DELIVERY_STATUS_CANCELLED
from ..permissions import AuthContext, require_role, require_store_access
from .catalog_service import BRANDS


STOCK_EXPORT_HEADERS = (
    "product_id",
    "group",
    "category",
    "school_name",
    "product_name",
    "gender",
    "color",
    "size",
    "style_coat",
    "sku",
    "price",
    "quantity",
)


def _rupees(cents: int) -> str:
    return f"{cents // 100}.{cents % 100:02d}"


def _empty_group_counts() -> dict:
    return {
        "stock_quantity": 0,
        "stock_amount_cents": 0,
        "online_orders": 0,
        "cancelled_orders": 0,
        "offline_orders": 0,
    }


def get_overview(*, actor: AuthContext) -> dict:
    """
    Dashboard counts per brand group.

    stock_* come from central quantities of live catalog entries. Order
    counts only include paid orders; an order touching two groups counts
    once in each, so group counts may sum above the total.
    """
    require_role(actor, ROLE_WAREHOUSE_MANAGER)
    groups = {name: _empty_group_counts() for name in BRANDS}

    stock_rows = (
        db.session.query(
            Product.group,
            func.coalesce(func.sum(VariantSize.quantity), 0),
            func.coalesce(func.sum(VariantSize.quantity * Product.price_cents), 0),
        )
        .select_from(Product)
        .join(Variant, Variant.product_pk == Product.id)
        .join(VariantSize, VariantSize.variant_pk == Variant.id)
        .filter(Product.is_deleted.is_(False), Variant.is_deleted.is_(False))
        .group_by(Product.group)
        .all()
    )
    for group, quantity, amount in stock_rows:
        counts = groups.setdefault(group, _empty_group_counts())
        counts["stock_quantity"] = int(quantity)
        counts["stock_amount_cents"] = int(amount)

    paid_orders = (
        db.session.query(OrderLine.group, func.count(func.distinct(Order.id)))
        .join(Order, OrderLine.order_pk == Order.id)
        .filter(Order.order_created.is_(True))
    )
    for group, count in paid_orders.group_by(OrderLine.group).all():
        groups.setdefault(group, _empty_group_counts())["online_orders"] = count
    cancelled = paid_orders.filter(Order.delivery_status == DELIVERY_STATUS_CANCELLED)
    for group, count in cancelled.group_by(OrderLine.group).all():
        groups.setdefault(group, _empty_group_counts())["cancelled_orders"] = count

    bills = (
        db.session.query(BillLine.group, func.count(func.distinct(Bill.id)))
        .join(Bill, BillLine.bill_pk == Bill.id)
        .filter(Bill.is_deleted.is_(False))
        .group_by(BillLine.group)
    )
    for group, count in bills.all():
        groups.setdefault(group, _empty_group_counts())["offline_orders"] = count

    paid = db.session.query(func.count(Order.id)).filter(Order.order_created.is_(True))
    total = {
        "stock_quantity": sum(c["stock_quantity"] for c in groups.values()),
        "stock_amount_cents": sum(c["stock_amount_cents"] for c in groups.values()),
        "online_orders": paid.scalar() or 0,
        "cancelled_orders": paid.filter(Order.delivery_status == DELIVERY_STATUS_CANCELLED).scalar() or 0,
        "offline_orders": db.session.query(func.count(Bill.id)).filter(Bill.is_deleted.is_(False)).scalar() or 0,
    }
    return {"groups": groups, "total": total}


def _live_sizes_query(*columns):
    return (
        db.session.query(*columns)
        .select_from(VariantSize)
        .join(Variant, VariantSize.variant_pk == Variant.id)
        .join(Product, Variant.product_pk == Product.id)
        .filter(Product.is_deleted.is_(False), Variant.is_deleted.is_(False))
        .order_by(Product.group, Product.product_id, Variant.color_name, VariantSize.id)
    )


def export_store_stock(store_id: int, *, actor: AuthContext) -> str:
    """
    Render a store's stock as CSV text.

    The warehouse exports central quantities; a retail store exports its
    present quantities, skipping sizes it has never received.
    """
    require_store_access(actor, store_id)
    store = db.session.get(Store, store_id)
    if not store:
        raise NotFound("Store not found")

    if store.is_warehouse:
        rows = _live_sizes_query(Product, Variant, VariantSize, VariantSize.quantity).all()
    else:
        rows = (
            _live_sizes_query(Product, Variant, VariantSize, StoreQuantity.present_quantity)
            .join(StoreQuantity, StoreQuantity.variant_size_id == VariantSize.id)
            .filter(StoreQuantity.store_id == store.id)
            .all()
        )

    buffer = StringIO()
    writer = csv.writer(buffer)
    writer.writerow(STOCK_EXPORT_HEADERS)
    for product, variant, size, quantity in rows:
        writer.writerow([
            product.product_id,
            product.group,
            product.category,
            product.school_name or "",
            product.product_name or "",
            product.gender or "",
            variant.color_name,
            size.size,
            size.style_coat or "",
            size.sku or "",
            _rupees(product.price_cents),
            quantity,
        ])
    return buffer.getvalue()
