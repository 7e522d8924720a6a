from decimal import Decimal

from sqlalchemy import select, func

from . import config
from .db import make_engine, init_db, make_session_factory
from .models import Product

demo = [
    dict(name="Bluetooth Headphones", price=Decimal("199"), category="Electronics", emoji="🎧",
         description="Clear sound and long battery life.", stock=25),
    dict(name="Smart Watch", price=Decimal("349"), category="Electronics", emoji="⌚",
         description="Step counter and notifications.", stock=12),
    dict(name="Hoodie", price=Decimal("159"), category="Clothing", emoji="🧥",
         description="Comfortable and warm.", stock=30),
    dict(name="Running Shoes", price=Decimal("299"), category="Clothing", emoji="👟",
         description="Comfort and grip.", stock=18),
    dict(name="Coffee Grinder", price=Decimal("149"), category="Home", emoji="☕",
         description="Fast grinding, easy to clean.", stock=10),
]


def seed(session_factory) -> int:
    with session_factory() as db:
        if db.scalar(select(func.count(Product.id))):
            return 0
        db.add_all(Product(**d) for d in demo)
        db.commit()
    return len(demo)


if __name__ == "__main__":
    engine = make_engine(config.DATABASE_URL)
    init_db(engine)
    print("Seeded products:", seed(make_session_factory(engine)))
