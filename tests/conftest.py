from decimal import Decimal

import pytest

from storefront.app import create_app
from storefront.models import Product

ADMIN_TOKEN = "test-admin-token"


@pytest.fixture()
def app(tmp_path):
    app = create_app({
        "DATABASE_URL": f"sqlite:///{tmp_path / 'store.db'}",
        "APP_SECRET": "test-app-secret",
        "ADMIN_TOKEN": ADMIN_TOKEN,
        "AUTH_TTL_HOURS": 168,
        "UPLOAD_DIR": str(tmp_path / "uploads"),
        "LOG_FILE": "",
        "SLACK_WEBHOOK_URL": None,
        "SMTP_HOST": None,
    })
    app.config["TESTING"] = True
    yield app
    app.extensions["storefront"].engine.dispose()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def admin_headers():
    return {"x-admin-token": ADMIN_TOKEN}


@pytest.fixture()
def sessions(app):
    return app.extensions["storefront"].sessions


@pytest.fixture()
def tokens(app):
    return app.extensions["storefront"].tokens


@pytest.fixture()
def db(sessions):
    with sessions() as s:
        yield s


@pytest.fixture()
def make_product(sessions):
    """Insert a product and return its id."""

    def _make(**overrides):
        fields = {
            "name": "Widget",
            "price": Decimal("10.00"),
            "category": "Misc",
            "description": "A plain widget",
            "stock": 5,
        }
        fields.update(overrides)
        with sessions() as s:
            p = Product(**fields)
            s.add(p)
            s.commit()
            return p.id

    return _make


@pytest.fixture()
def stock_of(sessions):
    def _stock(product_id):
        with sessions() as s:
            return s.get(Product, product_id).stock

    return _stock
