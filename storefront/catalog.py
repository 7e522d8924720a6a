import logging
from decimal import InvalidOperation

from sqlalchemy import select, or_, func

from .errors import ValidationError, NotFoundError
from .models import Product, MAX_ROW_ID, in_id_range
from .pricing import to_decimal, money
from . import media

log = logging.getLogger("shop")

REQUIRED_FIELDS = ("name", "price", "category", "description")
TEXT_FIELDS = ("name", "category", "emoji", "description")


def get_product(db, product_id) -> Product:
    if not in_id_range(product_id):
        raise NotFoundError("product not found")
    p = db.get(Product, product_id)
    if not p:
        raise NotFoundError("product not found")
    return p


def products_by_id(db, ids):
    ids = [i for i in ids if in_id_range(i)]
    if not ids:
        return {}
    rows = db.execute(select(Product).where(Product.id.in_(ids))).scalars().all()
    return {p.id: p for p in rows}


def list_products(db, q=None, category=None):
    stmt = select(Product)
    q = (q or "").strip().lower()
    if q:
        pattern = f"%{q}%"
        stmt = stmt.where(or_(func.lower(Product.name).like(pattern),
                              func.lower(Product.description).like(pattern)))
    if category and category != "all":
        stmt = stmt.where(Product.category == category)
    return db.execute(stmt.order_by(Product.id.desc())).scalars().all()


def list_categories(db):
    return db.execute(select(Product.category).distinct().order_by(Product.category)).scalars().all()


def _parse_price(value):
    try:
        price = to_decimal(value)
    except (InvalidOperation, ValueError, TypeError):
        raise ValidationError("invalid price")
    if not price.is_finite() or price < 0:
        raise ValidationError("invalid price")
    return money(price)


def _parse_stock(value):
    if isinstance(value, bool):
        raise ValidationError("invalid stock")
    try:
        stock = int(value)
        whole = stock == float(value)
    except (ValueError, TypeError, OverflowError):
        raise ValidationError("invalid stock")
    if stock < 0 or stock > MAX_ROW_ID or not whole:
        raise ValidationError("invalid stock")
    return stock


def _clean(data, partial):
    fields = {}
    for key in TEXT_FIELDS:
        if key in data and data[key] is not None:
            fields[key] = str(data[key]).strip()
    if not partial:
        missing = [k for k in REQUIRED_FIELDS if data.get(k) is None or str(data[k]).strip() == ""]
        if missing:
            raise ValidationError("missing product fields")
    else:
        # a partial update may leave fields out, but can't blank a required one
        if any(k in fields and not fields[k] for k in REQUIRED_FIELDS if k != "price"):
            raise ValidationError("missing product fields")

    if data.get("price") is not None:
        fields["price"] = _parse_price(data["price"])
    if data.get("stock") is not None:
        fields["stock"] = _parse_stock(data["stock"])
    elif not partial:
        fields["stock"] = 0

    image_url = data.get("imageUrl", data.get("image_url"))
    if image_url is not None:
        fields["image_url"] = str(image_url).strip()
    return fields


def create_product(db, data) -> Product:
    p = Product(**_clean(data, partial=False))
    db.add(p)
    db.commit()
    log.info(f"Product #{p.id} created: {p.name}")
    return p


def update_product(db, product_id, data) -> Product:
    p = get_product(db, product_id)
    for key, value in _clean(data, partial=True).items():
        setattr(p, key, value)
    db.commit()
    log.info(f"Product #{p.id} updated")
    return p


def delete_product(db, product_id, upload_dir) -> Product:
    p = get_product(db, product_id)
    image_url = p.image_url
    db.delete(p)
    db.commit()
    # orders keep their own snapshot, only the stored image goes with the product
    if image_url:
        media.delete_image(image_url, upload_dir)
    log.info(f"Product #{product_id} deleted")
    return p
