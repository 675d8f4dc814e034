import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["RUN_MIGRATIONS"] = "false"
os.environ.setdefault("JWT_SECRET", "test-secret")

from datetime import datetime, timedelta
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import select

from storefront.application.authorization import ROLE_ADMIN, Principal
from storefront.application.schemas import CartLine
from storefront.auth_local import create_access_token
from storefront.domain.customer import CustomerSnapshot
from storefront.domain.models import Base, Category, Product
from storefront.infrastructure.db import SessionLocal, engine
from storefront.main import app

T0 = datetime(2026, 3, 1, 10, 0, 0)

class FakeClock:
    def __init__(self, now: datetime = T0):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now

@pytest.fixture
def db():
    Base.metadata.drop_all(engine)
    Base.metadata.create_all(engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()

@pytest.fixture
def catalog(db):
    """Two categories and three products; ids are fixed."""
    shirts = Category(id=1, name="Shirts", tax_rate=Decimal("0.10"))
    accessories = Category(id=2, name="Accessories", tax_rate=Decimal("0.05"))
    db.add_all([shirts, accessories])
    db.add_all([
        Product(id=1, name="Basic tee", price=Decimal("200000"), stock=10, category_id=1),
        Product(id=2, name="Canvas tote", price=Decimal("99999.99"), stock=3, category_id=2),
        Product(id=3, name="Denim jacket", price=Decimal("350000"), stock=1, category_id=1),
    ])
    db.commit()
    return {"shirts": 1, "accessories": 2, "tee": 1, "tote": 2, "jacket": 3}

@pytest.fixture
def clock():
    return FakeClock()

@pytest.fixture
def customer():
    return Principal(user_id=1)

@pytest.fixture
def other_customer():
    return Principal(user_id=2)

@pytest.fixture
def admin():
    return Principal(user_id=99, role=ROLE_ADMIN)

@pytest.fixture
def snapshot():
    return CustomerSnapshot.create(
        name="Lan Nguyen",
        email="lan@example.com",
        address="12 Hang Bac, Hanoi",
        phone="0900000000",
    )

@pytest.fixture
def client(db):
    return TestClient(app)

def auth_headers(user_id: int, role: str = "CUSTOMER") -> dict:
    return {"Authorization": f"Bearer {create_access_token(str(user_id), role=role)}"}

def line(product_id: int, quantity: int, **kwargs) -> CartLine:
    return CartLine(product_id=product_id, quantity=quantity, **kwargs)

def stock_of(db, product_id: int) -> int:
    return db.execute(select(Product.stock).where(Product.id == product_id)).scalar_one()
