"""Order placement and order administration.

An order is priced from a snapshot of the catalog taken when it is placed.
The snapshot, the order row and the stock decrements commit together or not
at all, and each decrement is a conditional update so two checkouts racing
for the last unit can never drive stock below zero.
"""
import json
import logging
from collections import namedtuple

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError, OperationalError

from . import catalog, pricing
from .errors import StoreError, ValidationError, NotFoundError, ConflictError, StorageError
from .models import Order, Product, in_id_range
from .pricing import money

log = logging.getLogger("shop")

ORDER_STATUSES = ("NEW", "CONFIRMED", "SHIPPED", "DONE", "CANCELED")

OrderLine = namedtuple("OrderLine", "product_id name unit_price quantity")


def _text(value):
    return "" if value is None else str(value).strip()


def _customer_fields(customer):
    customer = customer or {}
    name, phone, address = (_text(customer.get(k)) for k in ("name", "phone", "address"))
    if not (name and phone and address):
        raise ValidationError("missing order fields")
    return name, phone, address, _text(customer.get("notes"))


def _quantity(value):
    if value is None or isinstance(value, bool):
        return 1
    try:
        qty = int(value)
    except (TypeError, ValueError, OverflowError):
        # NaN, Infinity and junk fall back to the default of one
        return 1
    return max(1, qty)


def _product_id(value):
    if isinstance(value, bool) or not isinstance(value, (int, str)):
        raise ValidationError("invalid product")
    try:
        pid = int(value)
    except ValueError:
        raise ValidationError("invalid product")
    if not in_id_range(pid):
        raise ValidationError("invalid product")
    return pid


def requested_quantities(items):
    """Map product id -> quantity, merging repeated lines for the same product."""
    if not isinstance(items, list) or not items:
        raise ValidationError("invalid product")
    wanted = {}
    for it in items:
        if not isinstance(it, dict):
            raise ValidationError("invalid product")
        pid = _product_id(it.get("productId"))
        qty = _quantity(it.get("qty", it.get("quantity")))
        wanted[pid] = wanted.get(pid, 0) + qty
    return wanted


def snapshot_lines(products, wanted):
    lines = []
    for pid, qty in wanted.items():
        p = products.get(pid)
        if p is None:
            raise ValidationError("invalid product")
        lines.append(OrderLine(p.id, p.name, p.price, qty))
    for line in lines:
        if line.quantity > products[line.product_id].stock:
            raise ValidationError(f"out of stock: {line.name}")
    return lines


def take_stock(db, product_id, quantity) -> bool:
    """Decrement stock only if enough is left at write time."""
    res = db.execute(
        update(Product)
        .where(Product.id == product_id, Product.stock >= quantity)
        .values(stock=Product.stock - quantity)
        .execution_options(synchronize_session=False)
    )
    return res.rowcount == 1


def _is_lock_contention(e):
    return "locked" in str(getattr(e, "orig", e)).lower()


def place_order(db, customer, items) -> Order:
    name, phone, address, notes = _customer_fields(customer)
    wanted = requested_quantities(items)

    try:
        products = catalog.products_by_id(db, wanted)
        lines = snapshot_lines(products, wanted)
        totals = pricing.calculate(lines)

        for line in lines:
            if not take_stock(db, line.product_id, line.quantity):
                raise ConflictError(f"out of stock: {line.name}")

        order = Order(
            customer_name=name, phone=phone, address=address, notes=notes,
            items_json=json.dumps([
                {"productId": l.product_id, "name": l.name,
                 "unitPrice": float(money(l.unit_price)), "qty": l.quantity}
                for l in lines
            ]),
            subtotal=totals.subtotal, shipping=totals.shipping, total=totals.total,
            status="NEW",
        )
        db.add(order)
        db.commit()
    except ConflictError as e:
        db.rollback()
        log.warning(f"Order rejected, stock taken concurrently: {e.message}")
        raise
    except StoreError:
        db.rollback()
        raise
    except OperationalError as e:
        db.rollback()
        if _is_lock_contention(e):
            log.warning("Order rejected, store busy with a concurrent checkout")
            raise ConflictError("order conflicted with another checkout, try again") from e
        log.exception("Order placement failed")
        raise StorageError("could not place order") from e
    except SQLAlchemyError as e:
        db.rollback()
        log.exception("Order placement failed")
        raise StorageError("could not place order") from e

    # stock was changed behind the ORM's back
    for p in products.values():
        db.expire(p)
    log.info(f"Order #{order.id} placed, total {money(order.total)}")
    return order


# --------------------------- ADMIN ---------------------------
def list_orders(db):
    return db.execute(select(Order).order_by(Order.id.desc())).scalars().all()


def get_order(db, order_id) -> Order:
    if not in_id_range(order_id):
        raise NotFoundError("order not found")
    o = db.get(Order, order_id)
    if not o:
        raise NotFoundError("order not found")
    return o


def update_order_status(db, order_id, status) -> Order:
    status = _text(status).upper()
    if status not in ORDER_STATUSES:
        raise ValidationError("invalid status")
    o = get_order(db, order_id)
    o.status = status
    db.commit()
    log.info(f"Order #{o.id} -> {status}")
    return o
