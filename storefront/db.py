from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from .models import Base


def make_engine(url):
    connect_args = {}
    if url.startswith("sqlite"):
        # concurrent order writers queue on the sqlite write lock instead of failing fast
        connect_args["timeout"] = 15
    return create_engine(url, future=True, connect_args=connect_args)


def init_db(engine):
    Base.metadata.create_all(engine)


def make_session_factory(engine):
    return sessionmaker(bind=engine, future=True, expire_on_commit=False)
