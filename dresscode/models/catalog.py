from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow


class Product(db.Model):
    """
    Catalog product within a brand group.

    product_id is the natural key derived from the category-specific key
    fields at upload time; it is unique per group.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.UniqueConstraint("group", "product_id", name="uq_products_group_product_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    group = db.Column(db.String(64), nullable=False, index=True)
    product_id = db.Column(db.String(255), nullable=False)

    category = db.Column(db.String(64), nullable=False)
    sub_category = db.Column(db.String(64), nullable=True)
    school_name = db.Column(db.String(120), nullable=True)
    product_category = db.Column(db.String(64), nullable=True)
    product_name = db.Column(db.String(120), nullable=True)
    gender = db.Column(db.String(16), nullable=True)
    product_type = db.Column(db.String(64), nullable=True)
    fit = db.Column(db.String(64), nullable=True)
    neckline = db.Column(db.String(64), nullable=True)
    pattern = db.Column(db.String(64), nullable=True)
    sleeves = db.Column(db.String(64), nullable=True)
    material = db.Column(db.String(120), nullable=True)

    price_cents = db.Column(db.Integer, nullable=False, default=0)
    product_description = db.Column(db.Text, nullable=True)
    size_chart = db.Column(db.String(512), nullable=True)

    is_deleted = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    variants = db.relationship(
        "Variant",
        backref="product",
        lazy=True,
        order_by="Variant.id",
    )

    def __repr__(self) -> str:
        return f"<Product {self.group}/{self.product_id}>"

    def to_dict(self, include_variants: bool = True) -> dict:
        data = {
            "group": self.group,
            "product_id": self.product_id,
            "category": self.category,
            "sub_category": self.sub_category,
            "school_name": self.school_name,
            "product_category": self.product_category,
            "product_name": self.product_name,
            "gender": self.gender,
            "product_type": self.product_type,
            "fit": self.fit,
            "neckline": self.neckline,
            "pattern": self.pattern,
            "sleeves": self.sleeves,
            "material": self.material,
            "price_cents": self.price_cents,
            "product_description": self.product_description,
            "size_chart": self.size_chart,
            "is_deleted": self.is_deleted,
            "created_at": to_utc_z(self.created_at),
        }
        if include_variants:
            data["variants"] = [v.to_dict() for v in self.variants if not v.is_deleted]
        return data


class Variant(db.Model):
    """A color line within a product."""
    __tablename__ = "variants"
    __table_args__ = (
        db.UniqueConstraint("variant_id", name="uq_variants_variant_id"),
        db.UniqueConstraint("product_pk", "color_name", name="uq_variants_product_color"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    product_pk = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)
    variant_id = db.Column(db.String(16), nullable=False)

    color_name = db.Column(db.String(64), nullable=False)
    hexcode = db.Column(db.String(16), nullable=True)
    image_urls = db.Column(db.JSON, nullable=False, default=list)

    is_deleted = db.Column(db.Boolean, nullable=False, default=False)

    sizes = db.relationship(
        "VariantSize",
        backref="variant",
        lazy=True,
        order_by="VariantSize.id",
    )

    def to_dict(self) -> dict:
        return {
            "variant_id": self.variant_id,
            "color": {"name": self.color_name, "hexcode": self.hexcode},
            "image_urls": list(self.image_urls or []),
            "is_deleted": self.is_deleted,
            "variant_sizes": [s.to_dict() for s in self.sizes],
        }


class VariantSize(db.Model):
    """
    Size-level stock keeping unit.

    quantity is the central authoritative stock count. It only changes via
    conditional UPDATE statements in catalog_service.
    """
    __tablename__ = "variant_sizes"
    __table_args__ = (
        db.UniqueConstraint("variant_pk", "size", name="uq_variant_sizes_variant_size"),
        db.UniqueConstraint("style_coat", name="uq_variant_sizes_style_coat"),
        db.CheckConstraint("quantity >= 0", name="quantity_non_negative"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    variant_pk = db.Column(db.Integer, db.ForeignKey("variants.id"), nullable=False, index=True)

    size = db.Column(db.String(16), nullable=False)
    quantity = db.Column(db.Integer, nullable=False, default=0)
    style_coat = db.Column(db.String(64), nullable=True)
    sku = db.Column(db.String(64), nullable=True)

    def to_dict(self) -> dict:
        return {
            "variant_size_id": self.id,
            "size": self.size,
            "quantity": self.quantity,
            "style_coat": self.style_coat,
            "sku": self.sku,
        }


class StoreQuantity(db.Model):
    """
    Store-held stock for one variant size (quantityByStores).

    present_quantity is what point-of-sale billing at that store draws from.
    """
    __tablename__ = "store_quantities"
    __table_args__ = (
        db.UniqueConstraint("variant_size_id", "store_id", name="uq_store_quantities_size_store"),
        db.CheckConstraint("present_quantity >= 0", name="present_quantity_non_negative"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    variant_size_id = db.Column(db.Integer, db.ForeignKey("variant_sizes.id"), nullable=False, index=True)
    store_id = db.Column(db.Integer, db.ForeignKey("stores.id"), nullable=False, index=True)
    present_quantity = db.Column(db.Integer, nullable=False, default=0)

    variant_size = db.relationship("VariantSize", backref=db.backref("store_quantities", lazy=True))

    def to_dict(self) -> dict:
        return {
            "store_id": self.store_id,
            "variant_size_id": self.variant_size_id,
            "present_quantity": self.present_quantity,
        }


class AssignedHistory(db.Model):
    """
    Per variant-size reference to the ledger document that moved its stock.

    Append-only. The sum of quantity_of_assigned for a size and store
    reconstructs the stock delivered there.
    """
    __tablename__ = "assigned_history"
    __table_args__ = (
        db.Index("ix_assigned_history_size_store", "variant_size_id", "store_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    variant_size_id = db.Column(db.Integer, db.ForeignKey("variant_sizes.id"), nullable=False)
    store_id = db.Column(db.Integer, db.ForeignKey("stores.id"), nullable=False)
    assigned_inventory_pk = db.Column(
        db.Integer, db.ForeignKey("assigned_inventories.id"), nullable=False, index=True
    )
    quantity_of_assigned = db.Column(db.Integer, nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    assigned_inventory = db.relationship("AssignedInventory")

    def to_dict(self) -> dict:
        return {
            "variant_size_id": self.variant_size_id,
            "store_id": self.store_id,
            "assigned_inventory_id": self.assigned_inventory.assigned_inventory_id,
            "quantity_of_assigned": self.quantity_of_assigned,
            "created_at": to_utc_z(self.created_at),
        }
