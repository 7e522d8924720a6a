import json
from datetime import datetime, timezone
from sqlalchemy import Column, Integer, String, Text, DateTime, Numeric, CheckConstraint
from sqlalchemy.orm import declarative_base

from .pricing import money

Base = declarative_base()

MAX_ROW_ID = 2**63 - 1  # sqlite INTEGER; larger ids can't be bound at all


def in_id_range(value):
    return isinstance(value, int) and 1 <= value <= MAX_ROW_ID


def utcnow():
    return datetime.now(timezone.utc)


def iso(dt):
    return dt.isoformat() if dt else None


class Product(Base):
    __tablename__ = "products"
    __table_args__ = (CheckConstraint("stock >= 0", name="ck_products_stock_nonnegative"),)
    id = Column(Integer, primary_key=True)
    name = Column(String(200), nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    category = Column(String(100), nullable=False, index=True)
    emoji = Column(String(16), nullable=False, default="")
    description = Column(Text, nullable=False)
    stock = Column(Integer, nullable=False, default=0)
    image_url = Column(String(500), nullable=False, default="")
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "price": float(money(self.price)),
            "category": self.category,
            "emoji": self.emoji or "",
            "description": self.description,
            "stock": self.stock,
            "imageUrl": self.image_url or "",
            "createdAt": iso(self.created_at),
        }


class Order(Base):
    __tablename__ = "orders"
    id = Column(Integer, primary_key=True)
    customer_name = Column(String(200), nullable=False)
    phone = Column(String(64), nullable=False)
    address = Column(Text, nullable=False)
    notes = Column(Text, nullable=False, default="")
    items_json = Column(Text, nullable=False)  # frozen OrderLine snapshots, never re-read from products
    subtotal = Column(Numeric(10, 2), nullable=False)
    shipping = Column(Numeric(10, 2), nullable=False)
    total = Column(Numeric(10, 2), nullable=False)
    status = Column(String(20), nullable=False, default="NEW")  # NEW|CONFIRMED|SHIPPED|DONE|CANCELED
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    @property
    def items(self):
        return json.loads(self.items_json or "[]")

    def to_dict(self):
        return {
            "id": self.id,
            "customerName": self.customer_name,
            "phone": self.phone,
            "address": self.address,
            "notes": self.notes or "",
            "items": self.items,
            "subtotal": float(money(self.subtotal)),
            "shipping": float(money(self.shipping)),
            "total": float(money(self.total)),
            "status": self.status,
            "createdAt": iso(self.created_at),
        }


class User(Base):
    __tablename__ = "users"
    id = Column(Integer, primary_key=True)
    full_name = Column(String(200), nullable=False)
    email = Column(String(200), unique=True, nullable=False)  # stored lower-cased
    password_hash = Column(String(200), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    def to_dict(self):
        return {"id": self.id, "fullName": self.full_name, "email": self.email}
