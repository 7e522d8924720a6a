"""Tests for the catalog accessor."""

from decimal import Decimal

import pytest

from storefront import catalog
from storefront.errors import NotFoundError, ValidationError


def _payload(**overrides):
    data = {
        "name": "Desk Lamp",
        "price": 45.5,
        "category": "Home",
        "description": "Warm light",
        "stock": 7,
    }
    data.update(overrides)
    return data


class TestReads:
    def test_get_missing_product(self, db):
        with pytest.raises(NotFoundError):
            catalog.get_product(db, 999)
        with pytest.raises(NotFoundError):
            catalog.get_product(db, 10**20)

    def test_search_matches_name_or_description_case_insensitively(self, db, make_product):
        lamp = make_product(name="Desk LAMP", description="warm")
        mug = make_product(name="Mug", description="Holds a lamp-sized amount of tea")
        make_product(name="Cap", description="Cotton")

        found = [p.id for p in catalog.list_products(db, q="lamp")]
        assert sorted(found) == sorted([lamp, mug])

    def test_category_is_exact_match(self, db, make_product):
        home = make_product(category="Home")
        make_product(category="Home & Garden")

        assert [p.id for p in catalog.list_products(db, category="Home")] == [home]

    def test_all_category_means_no_filter(self, db, make_product):
        make_product(category="A")
        make_product(category="B")
        assert len(catalog.list_products(db, category="all")) == 2

    def test_newest_first(self, db, make_product):
        first, second = make_product(), make_product()
        assert [p.id for p in catalog.list_products(db)] == [second, first]

    def test_categories_distinct_and_sorted(self, db, make_product):
        for c in ("Clothing", "Electronics", "Clothing", "Books"):
            make_product(category=c)
        assert catalog.list_categories(db) == ["Books", "Clothing", "Electronics"]

    def test_products_by_id_batch(self, db, make_product):
        a, b = make_product(), make_product()
        found = catalog.products_by_id(db, [a, b, 12345])
        assert set(found) == {a, b}


class TestWrites:
    def test_create_then_read_back(self, db):
        p = catalog.create_product(db, _payload(imageUrl="/uploads/lamp.jpg"))
        got = catalog.get_product(db, p.id)
        assert got.name == "Desk Lamp"
        assert got.price == Decimal("45.50")
        assert got.category == "Home"
        assert got.stock == 7
        assert got.image_url == "/uploads/lamp.jpg"
        assert got.created_at is not None

    def test_stock_defaults_to_zero(self, db):
        data = _payload()
        del data["stock"]
        assert catalog.create_product(db, data).stock == 0

    @pytest.mark.parametrize("field", ["name", "price", "category", "description"])
    def test_create_requires_fields(self, db, field):
        with pytest.raises(ValidationError, match="missing product fields"):
            catalog.create_product(db, _payload(**{field: "  " if field != "price" else None}))

    @pytest.mark.parametrize("price", [-1, "abc", "NaN"])
    def test_rejects_bad_price(self, db, price):
        with pytest.raises(ValidationError, match="invalid price"):
            catalog.create_product(db, _payload(price=price))

    @pytest.mark.parametrize("stock", [-2, 1.5, "many", True, float("inf"), float("nan"), 10**20])
    def test_rejects_bad_stock(self, db, stock):
        with pytest.raises(ValidationError, match="invalid stock"):
            catalog.create_product(db, _payload(stock=stock))

    def test_partial_update(self, db, make_product):
        pid = make_product(price=Decimal("10"), stock=3)
        p = catalog.update_product(db, pid, {"price": "12.5", "stock": 9})
        assert p.price == Decimal("12.50")
        assert p.stock == 9
        assert p.name == "Widget"

    def test_update_cannot_blank_name(self, db, make_product):
        pid = make_product()
        with pytest.raises(ValidationError):
            catalog.update_product(db, pid, {"name": ""})

    def test_update_missing(self, db):
        with pytest.raises(NotFoundError):
            catalog.update_product(db, 404, {"stock": 1})

    def test_delete_removes_stored_image(self, db, make_product, tmp_path):
        upload_dir = tmp_path / "uploads"
        upload_dir.mkdir()
        (upload_dir / "p_1.png").write_bytes(b"png")
        pid = make_product(image_url="/uploads/p_1.png")

        catalog.delete_product(db, pid, str(upload_dir))

        assert not (upload_dir / "p_1.png").exists()
        with pytest.raises(NotFoundError):
            catalog.get_product(db, pid)

    def test_delete_leaves_external_images_alone(self, db, make_product, tmp_path):
        pid = make_product(image_url="https://cdn.example.com/x.png")
        catalog.delete_product(db, pid, str(tmp_path))

    def test_delete_missing(self, db, tmp_path):
        with pytest.raises(NotFoundError):
            catalog.delete_product(db, 7, str(tmp_path))
