from . import config
from .db import make_engine
from .models import Base


def drop_all(engine):
    Base.metadata.drop_all(engine)


if __name__ == "__main__":
    drop_all(make_engine(config.DATABASE_URL))
    print("Dropped products/orders/users tables (if any). They'll be recreated on app start.")
