from decimal import Decimal

import pytest
from sqlalchemy import create_engine, select
from sqlalchemy.orm import Session

from storefront.domain.errors import ValidationError
from storefront.domain.models import Base, Category, Product
from storefront.seed import load_catalog, wait_for_table

CATEGORIES = "id,name,tax_rate\n1,Shirts,0.10\n2,Accessories,0.05\n"
PRODUCTS = (
    "id,name,price,stock,category_id\n"
    "1,Basic tee,200000,10,1\n"
    "2,Canvas tote,99999.99,3,2\n"
    "3,Gift card,50000,100,\n"
)

@pytest.fixture
def seed_engine():
    engine = create_engine("sqlite://")
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()

@pytest.fixture
def seed_dir(tmp_path):
    (tmp_path / "categories.csv").write_text(CATEGORIES, encoding="utf-8")
    (tmp_path / "products.csv").write_text(PRODUCTS, encoding="utf-8")
    return tmp_path

def test_load_catalog(seed_engine, seed_dir):
    assert load_catalog(seed_engine, seed_dir, attempts=1) == {"categories": 2, "products": 3}
    with Session(seed_engine) as session:
        tote = session.get(Product, 2)
        assert tote.price == Decimal("99999.99")
        assert tote.category.name == "Accessories"
        assert session.get(Product, 3).category_id is None
        assert session.get(Category, 1).tax_rate == Decimal("0.10")

def test_populated_tables_are_skipped(seed_engine, seed_dir):
    load_catalog(seed_engine, seed_dir, attempts=1)
    assert load_catalog(seed_engine, seed_dir, attempts=1) == {"categories": 0, "products": 0}
    with Session(seed_engine) as session:
        assert len(session.execute(select(Product)).unique().scalars().all()) == 3

def test_missing_file_is_skipped(seed_engine, tmp_path):
    (tmp_path / "categories.csv").write_text(CATEGORIES, encoding="utf-8")
    assert load_catalog(seed_engine, tmp_path, attempts=1) == {"categories": 2}

def test_invalid_tax_rate_rejected(seed_engine, tmp_path):
    (tmp_path / "categories.csv").write_text("id,name,tax_rate\n1,Shirts,1.5\n", encoding="utf-8")
    with pytest.raises(ValidationError) as exc:
        load_catalog(seed_engine, tmp_path, attempts=1)
    assert exc.value.code == "invalid_seed_row"
    assert "categories.csv line 2" in exc.value.message

@pytest.mark.parametrize("categories, products, reason", [
    ("id,name,tax_rate\n1,Shirts,\n", None, "missing tax_rate"),
    ("id,name\n1,Shirts\n", None, "missing tax_rate"),
    ("id,name,tax_rate\n1,Shirts,ten\n", None, "tax_rate 'ten'"),
    (CATEGORIES, "id,name,price,stock,category_id\n1,Basic tee,200000,-1,1\n", "negative stock"),
    (CATEGORIES, "id,name,price,stock,category_id\n1,Basic tee,,5,1\n", "missing price"),
    (CATEGORIES, "id,name,price,stock,category_id\n1,Basic tee,-5,5,1\n", "Unit price must be non-negative"),
])
def test_bad_rows_rejected_before_insert(seed_engine, tmp_path, categories, products, reason):
    (tmp_path / "categories.csv").write_text(categories, encoding="utf-8")
    if products is not None:
        (tmp_path / "products.csv").write_text(products, encoding="utf-8")
    with pytest.raises(ValidationError) as exc:
        load_catalog(seed_engine, tmp_path, attempts=1)
    assert exc.value.code == "invalid_seed_row"
    assert reason in exc.value.message
    with Session(seed_engine) as session:
        assert session.execute(select(Product)).unique().scalars().all() == []

def test_missing_table(tmp_path):
    engine = create_engine("sqlite://")
    assert wait_for_table(engine, "products", attempts=1, delay=0) is False
    (tmp_path / "products.csv").write_text(PRODUCTS, encoding="utf-8")
    with pytest.raises(RuntimeError):
        load_catalog(engine, tmp_path, attempts=1)
