# Overview: Catalog store; product lookup, faceted queries and atomic stock mutations.

"""
Catalog Store

Every brand group shares one schema (products -> variants -> variant_sizes).
What differs per brand is only which descriptive attributes are meaningful
for browsing, captured in the BRANDS capability table.

STOCK INVARIANTS:
- VariantSize.quantity and StoreQuantity.present_quantity never go below 0.
- Decrements are single conditional UPDATE statements
  (SET q = q - n WHERE q >= n). Zero affected rows means the stock was not
  there and InsufficientStock is raised; nothing is partially applied.
- Callers run these inside their own transaction together with the ledger
  write that justifies the change.
"""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy import update

from ..errors import BadRequest, InsufficientStock, NotFound
from ..extensions import db
from ..models import Product, Variant, VariantSize, StoreQuantity
from .identifier_service import unique_code


@dataclass(frozen=True)
class BrandCapability:
    name: str
    facets: tuple[str, ...]


_COMMON_FACETS = ("category", "gender", "product_type", "color", "size")

BRANDS: dict[str, BrandCapability] = {
    "HEAL": BrandCapability("HEAL", _COMMON_FACETS + ("sub_category", "fit", "neckline", "sleeves")),
    "ELITE": BrandCapability("ELITE", _COMMON_FACETS + ("sub_category", "fit", "neckline", "sleeves")),
    "TOGS": BrandCapability("TOGS", _COMMON_FACETS + ("school_name", "product_category", "pattern")),
    "SHIELD": BrandCapability("SHIELD", _COMMON_FACETS + ("sub_category", "material")),
    "SPIRIT": BrandCapability("SPIRIT", _COMMON_FACETS + ("sub_category", "fit", "sleeves")),
    "WORK WEAR UNIFORMS": BrandCapability(
        "WORK WEAR UNIFORMS", _COMMON_FACETS + ("sub_category", "fit", "material")
    ),
}

# Facets backed by a products column; color and size live on child tables
_PRODUCT_COLUMN_FACETS = {
    "category", "sub_category", "school_name", "product_category", "gender",
    "product_type", "fit", "neckline", "pattern", "sleeves", "material",
}

PRODUCT_ID_KEYS = {
    "SCHOOL": ("category", "school_name", "product_category", "product_name", "gender", "pattern"),
    "CORPORATE": ("category", "product_category", "product_name", "gender", "pattern"),
}
DEFAULT_PRODUCT_ID_KEYS = ("category", "school_name", "product_category", "product_name", "gender")

# Attributes copied from an upload line onto a new product
_PRODUCT_ATTRIBUTES = (
    "sub_category", "school_name", "product_category", "product_name", "gender",
    "product_type", "fit", "neckline", "pattern", "sleeves", "material",
    "product_description", "size_chart",
)


def normalize_group(group: str | None) -> str:
    """Upper-case and validate a brand group name."""
    name = (group or "").strip().upper()
    if name not in BRANDS:
        raise BadRequest(f"Unknown group: {group}")
    return name


def derive_product_id(line: dict) -> str:
    """
    Deterministic natural key for a product.

    SCHOOL: category, school name, product category, name, gender, pattern.
    CORPORATE: the same without the school name.
    Anything else: the SCHOOL keys without the pattern.
    Blank parts are skipped.
    """
    category = (line.get("category") or "").strip().upper()
    if not category:
        raise BadRequest("category is required to derive a product id")
    keys = PRODUCT_ID_KEYS.get(category, DEFAULT_PRODUCT_ID_KEYS)

    parts = []
    for key in keys:
        value = category if key == "category" else (line.get(key) or "").strip()
        if value:
            parts.append(value)
    return "_".join(parts)


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------

def get_product(group: str, product_id: str) -> Product:
    group = normalize_group(group)
    product = (
        db.session.query(Product)
        .filter_by(group=group, product_id=product_id, is_deleted=False)
        .first()
    )
    if not product:
        raise NotFound(f"Product {product_id} not found in {group}")
    return product


def find_variant_size(group: str, product_id: str, color: str, size: str) -> VariantSize:
    """
    Locate a live size row by (group, product, color, size).

    Colors and sizes compare case-insensitively because uploads store them
    upper-cased.
    """
    group = normalize_group(group)
    vs = (
        db.session.query(VariantSize)
        .join(Variant, VariantSize.variant_pk == Variant.id)
        .join(Product, Variant.product_pk == Product.id)
        .filter(
            Product.group == group,
            Product.product_id == product_id,
            Product.is_deleted.is_(False),
            Variant.is_deleted.is_(False),
            Variant.color_name == (color or "").strip().upper(),
            VariantSize.size == (size or "").strip().upper(),
        )
        .first()
    )
    if not vs:
        raise NotFound(
            "Variant size not found",
            {"group": group, "product_id": product_id, "color": color, "size": size},
        )
    return vs


def find_by_style_coat(style_coat: str) -> VariantSize:
    vs = db.session.query(VariantSize).filter_by(style_coat=(style_coat or "").strip()).first()
    if not vs:
        raise NotFound(f"Style coat {style_coat} not found")
    return vs


def resolve_line(line: dict) -> VariantSize:
    """Resolve a request line by style_coat or by (group, product_id, color, size)."""
    if line.get("style_coat"):
        return find_by_style_coat(line["style_coat"])
    for field in ("group", "product_id", "color", "size"):
        if not line.get(field):
            raise BadRequest(f"Missing required field: {field}")
    return find_variant_size(line["group"], line["product_id"], line["color"], line["size"])


def snapshot_of(vs: VariantSize) -> dict:
    """Product/variant/size fields copied onto ledger, order and bill lines."""
    variant = vs.variant
    product = variant.product
    return {
        "group": product.group,
        "product_id": product.product_id,
        "variant_id": variant.variant_id,
        "color_name": variant.color_name,
        "size": vs.size,
        "style_coat": vs.style_coat,
        "price_cents": product.price_cents,
    }


# ---------------------------------------------------------------------------
# Stock mutations
# ---------------------------------------------------------------------------

def _expire_cached(model, pk: int, attr: str) -> None:
    key = db.session.identity_key(model, pk)
    obj = db.session.identity_map.get(key)
    if obj is not None:
        db.session.expire(obj, [attr])


def _expire_store_row(store_id: int, variant_size_id: int) -> None:
    for obj in list(db.session.identity_map.values()):
        if (
            isinstance(obj, StoreQuantity)
            and obj.store_id == store_id
            and obj.variant_size_id == variant_size_id
        ):
            db.session.expire(obj, ["present_quantity"])


def decrement_quantity(variant_size_id: int, amount: int) -> None:
    """Central stock: quantity -= amount, only if quantity >= amount."""
    if amount <= 0:
        raise BadRequest("amount must be positive")
    stmt = (
        update(VariantSize)
        .where(VariantSize.id == variant_size_id, VariantSize.quantity >= amount)
        .values(quantity=VariantSize.quantity - amount)
        .execution_options(synchronize_session=False)
    )
    result = db.session.execute(stmt)
    _expire_cached(VariantSize, variant_size_id, "quantity")
    if result.rowcount != 1:
        raise InsufficientStock(details={"variant_size_id": variant_size_id, "requested": amount})


def increment_quantity(variant_size_id: int, amount: int) -> None:
    if amount <= 0:
        raise BadRequest("amount must be positive")
    stmt = (
        update(VariantSize)
        .where(VariantSize.id == variant_size_id)
        .values(quantity=VariantSize.quantity + amount)
        .execution_options(synchronize_session=False)
    )
    result = db.session.execute(stmt)
    _expire_cached(VariantSize, variant_size_id, "quantity")
    if result.rowcount != 1:
        raise NotFound(f"Variant size {variant_size_id} not found")


def decrement_store_quantity(store_id: int, variant_size_id: int, amount: int) -> None:
    """Store-held stock: present_quantity -= amount, only if enough is present."""
    if amount <= 0:
        raise BadRequest("amount must be positive")
    stmt = (
        update(StoreQuantity)
        .where(
            StoreQuantity.store_id == store_id,
            StoreQuantity.variant_size_id == variant_size_id,
            StoreQuantity.present_quantity >= amount,
        )
        .values(present_quantity=StoreQuantity.present_quantity - amount)
        .execution_options(synchronize_session=False)
    )
    result = db.session.execute(stmt)
    _expire_store_row(store_id, variant_size_id)
    if result.rowcount != 1:
        raise InsufficientStock(
            "Insufficient stock at store",
            {"store_id": store_id, "variant_size_id": variant_size_id, "requested": amount},
        )


def increment_store_quantity(store_id: int, variant_size_id: int, amount: int) -> None:
    """Credit store-held stock, creating the store row on first delivery."""
    if amount <= 0:
        raise BadRequest("amount must be positive")
    stmt = (
        update(StoreQuantity)
        .where(StoreQuantity.store_id == store_id, StoreQuantity.variant_size_id == variant_size_id)
        .values(present_quantity=StoreQuantity.present_quantity + amount)
        .execution_options(synchronize_session=False)
    )
    result = db.session.execute(stmt)
    if result.rowcount:
        _expire_store_row(store_id, variant_size_id)
        return
    db.session.add(StoreQuantity(store_id=store_id, variant_size_id=variant_size_id, present_quantity=amount))
    db.session.flush()


def get_store_quantity(store_id: int, variant_size_id: int) -> int:
    value = (
        db.session.query(StoreQuantity.present_quantity)
        .filter_by(store_id=store_id, variant_size_id=variant_size_id)
        .scalar()
    )
    return value or 0


def upsert_product_from_line(group: str, line: dict) -> VariantSize:
    """
    Find or create the product, color variant and size row for an upload line.

    Quantity is NOT changed here; callers credit stock with increment_quantity
    in the same transaction as the ledger entry.
    """
    group = normalize_group(group)
    product_id = line.get("product_id") or derive_product_id(line)
    color = (line.get("variant_color") or "").strip().upper()
    size = (line.get("variant_size") or "").strip().upper()
    if not color or not size:
        raise BadRequest("variant_color and variant_size are required")

    product = db.session.query(Product).filter_by(group=group, product_id=product_id).first()
    if product is None:
        product = Product(
            group=group,
            product_id=product_id,
            category=(line.get("category") or "").strip().upper(),
            price_cents=line.get("price_cents", 0),
        )
        for attr in _PRODUCT_ATTRIBUTES:
            value = line.get(attr)
            if isinstance(value, str):
                value = value.strip() or None
            setattr(product, attr, value)
        db.session.add(product)
        db.session.flush()
    elif product.is_deleted:
        product.is_deleted = False

    variant = db.session.query(Variant).filter_by(product_pk=product.id, color_name=color).first()
    if variant is None:
        variant = Variant(
            product_pk=product.id,
            variant_id=unique_code(Variant.variant_id),
            color_name=color,
            hexcode=(line.get("hexcode") or "").strip() or None,
            image_urls=list(line.get("image_urls") or []),
        )
        db.session.add(variant)
        db.session.flush()
    elif variant.is_deleted:
        variant.is_deleted = False

    vs = db.session.query(VariantSize).filter_by(variant_pk=variant.id, size=size).first()
    if vs is None:
        style_coat = (line.get("style_coat") or "").strip() or None
        if style_coat and db.session.query(VariantSize.id).filter_by(style_coat=style_coat).first():
            raise BadRequest(f"Style coat {style_coat} already belongs to another size")
        vs = VariantSize(
            variant_pk=variant.id,
            size=size,
            quantity=0,
            style_coat=style_coat,
            sku=(line.get("sku") or "").strip() or None,
        )
        db.session.add(vs)
        db.session.flush()
    return vs


# ---------------------------------------------------------------------------
# Faceted read side
# ---------------------------------------------------------------------------

def _apply_filters(query, filters: dict | None):
    for facet, value in (filters or {}).items():
        if value in (None, ""):
            continue
        values = value if isinstance(value, (list, tuple)) else [value]
        if facet in _PRODUCT_COLUMN_FACETS:
            query = query.filter(getattr(Product, facet).in_(values))
        elif facet == "color":
            query = query.filter(
                Product.variants.any(
                    db.and_(Variant.color_name.in_([v.upper() for v in values]), Variant.is_deleted.is_(False))
                )
            )
        elif facet == "size":
            query = query.filter(
                Product.variants.any(Variant.sizes.any(VariantSize.size.in_([v.upper() for v in values])))
            )
        else:
            raise BadRequest(f"Unsupported filter: {facet}")
    return query


def search_products(group: str, filters: dict | None = None, *, limit: int = 50, offset: int = 0) -> list[Product]:
    group = normalize_group(group)
    query = db.session.query(Product).filter(Product.group == group, Product.is_deleted.is_(False))
    query = _apply_filters(query, filters)
    return query.order_by(Product.id.asc()).offset(offset).limit(limit).all()


def get_facet_values(group: str, facet: str, filters: dict | None = None) -> list[str]:
    """Distinct values of one facet among products matching the other filters."""
    group = normalize_group(group)
    if facet not in BRANDS[group].facets:
        raise BadRequest(f"Facet {facet} is not available for {group}")

    base = _apply_filters(
        db.session.query(Product.id).filter(Product.group == group, Product.is_deleted.is_(False)),
        {k: v for k, v in (filters or {}).items() if k != facet},
    )
    product_ids = base.subquery()

    if facet in _PRODUCT_COLUMN_FACETS:
        column = getattr(Product, facet)
        query = db.session.query(column).filter(Product.id.in_(db.select(product_ids.c.id)))
    elif facet == "color":
        column = Variant.color_name
        query = db.session.query(column).filter(
            Variant.product_pk.in_(db.select(product_ids.c.id)), Variant.is_deleted.is_(False)
        )
    else:
        column = VariantSize.size
        query = (
            db.session.query(column)
            .join(Variant, VariantSize.variant_pk == Variant.id)
            .filter(Variant.product_pk.in_(db.select(product_ids.c.id)), Variant.is_deleted.is_(False))
        )

    rows = query.filter(column.isnot(None)).distinct().order_by(column).all()
    return [r[0] for r in rows]
