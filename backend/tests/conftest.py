"""
Pytest configuration and fixtures for backend tests.
"""

import os

# Settings are read at import time
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["ENVIRONMENT"] = "test"
os.environ["SEED_DEMO_DATA"] = "false"
os.environ["CREATE_TABLES_ON_STARTUP"] = "false"
os.environ["RATE_LIMIT_ENABLED"] = "false"

import json

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from rest_api.main import app
from rest_api.models import (
    Base,
    Category,
    InventoryItem,
    MenuItem,
    MenuItemAddOn,
    MenuItemVariant,
    RecipeIngredient,
    Table,
    User,
)
from shared.config.constants import Roles
from shared.infrastructure.db import engine, get_db
from shared.security.password import hash_password


# In-memory SQLite on a StaticPool, shared with the app's engine
TestingSessionLocal = sessionmaker(
    autocommit=False, autoflush=False, expire_on_commit=False, bind=engine
)

PASSWORD = "testpass123"


class FakeRedis:
    """Records publishes instead of talking to Redis."""

    def __init__(self):
        self.published = []

    async def publish(self, channel, message):
        self.published.append((channel, json.loads(message)))
        return 1

    async def ping(self):
        return True

    def events(self, event_type=None):
        """Distinct published events (one per fan-out), optionally by type."""
        seen = {}
        for _, payload in self.published:
            if event_type is None or payload["type"] == event_type:
                key = (payload["type"], json.dumps(payload["entity"], sort_keys=True))
                seen.setdefault(key, payload)
        return list(seen.values())

    def channels(self, event_type):
        return sorted(
            channel for channel, payload in self.published if payload["type"] == event_type
        )


@pytest.fixture(autouse=True)
def fake_redis(monkeypatch):
    """Route every event publish and Redis probe to an in-memory fake."""
    fake = FakeRedis()

    async def get_fake():
        return fake

    monkeypatch.setattr("rest_api.services.events.dispatch.get_redis_client", get_fake)
    monkeypatch.setattr("rest_api.routers.public.health.get_redis_pool", get_fake)
    return fake


@pytest.fixture(scope="function")
def db_session():
    """
    Create a fresh database session for each test.
    Uses SQLite in-memory for isolation.
    """
    Base.metadata.create_all(bind=engine)

    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db_session):
    """
    Create a test client with database session override.
    """
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


# =============================================================================
# Users
# =============================================================================


def make_user(db_session, role, email=None, first_name="Test", **kwargs):
    user = User(
        email=email or f"{role}@test.com",
        password=hash_password(PASSWORD),
        first_name=first_name,
        last_name=role.replace("_", " ").title(),
        role=role,
        **kwargs,
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


def login(client, user):
    """Log `user` in and return bearer headers."""
    response = client.post(
        "/api/auth/login",
        json={"email": user.email, "password": PASSWORD},
    )
    assert response.status_code == 200, f"Login failed: {response.json()}"
    token = response.json()["access_token"]
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_user(db_session):
    return make_user(db_session, Roles.ADMIN)


@pytest.fixture
def manager_user(db_session):
    return make_user(db_session, Roles.MANAGER)


@pytest.fixture
def cashier_user(db_session):
    return make_user(db_session, Roles.CASHIER)


@pytest.fixture
def waiter_user(db_session):
    return make_user(db_session, Roles.WAITER)


@pytest.fixture
def kitchen_user(db_session):
    return make_user(db_session, Roles.KITCHEN_STAFF)


@pytest.fixture
def customer_user(db_session):
    return make_user(db_session, Roles.CUSTOMER)


@pytest.fixture
def auth_headers(client, admin_user):
    """Get authentication headers for API calls (admin)."""
    return login(client, admin_user)


@pytest.fixture
def manager_headers(client, manager_user):
    return login(client, manager_user)


@pytest.fixture
def cashier_headers(client, cashier_user):
    return login(client, cashier_user)


@pytest.fixture
def waiter_headers(client, waiter_user):
    return login(client, waiter_user)


@pytest.fixture
def kitchen_headers(client, kitchen_user):
    return login(client, kitchen_user)


@pytest.fixture
def customer_headers(client, customer_user):
    return login(client, customer_user)


# =============================================================================
# Floor, stock and menu
# =============================================================================


@pytest.fixture
def seed_table(db_session):
    """An available indoor table for four."""
    table = Table(table_number="T1", table_name="Window", capacity=4, location="indoor")
    db_session.add(table)
    db_session.commit()
    db_session.refresh(table)
    return table


@pytest.fixture
def seed_stock(db_session):
    """Ingredients used by the pizza recipe."""
    flour = InventoryItem(
        name="Flour",
        sku="ING-FLOUR",
        category="ingredients",
        unit="kg",
        current_stock=10,
        reorder_level=2,
        cost_price_cents=150,
    )
    cheese = InventoryItem(
        name="Mozzarella",
        sku="ING-CHEESE",
        category="ingredients",
        unit="kg",
        current_stock=1,
        reorder_level=0.5,
        cost_price_cents=900,
    )
    db_session.add_all([flour, cheese])
    db_session.commit()
    return {"flour": flour, "cheese": cheese}


@pytest.fixture
def seed_category(db_session):
    category = Category(name="Mains", sort_order=1)
    db_session.add(category)
    db_session.commit()
    db_session.refresh(category)
    return category


@pytest.fixture
def seed_menu(db_session, seed_category, seed_stock):
    """
    Pizza with Regular/Large variants and a recipe, a burger without one,
    and an extra-cheese add-on offered on the pizza.
    """
    pizza = MenuItem(
        name="Margherita pizza",
        category_id=seed_category.id,
        price_cents=1000,
        preparation_minutes=20,
    )
    burger = MenuItem(
        name="Classic burger",
        category_id=seed_category.id,
        price_cents=1250,
        preparation_minutes=15,
    )
    extra_cheese = MenuItem(
        name="Extra cheese",
        category_id=seed_category.id,
        price_cents=150,
        preparation_minutes=1,
    )
    db_session.add_all([pizza, burger, extra_cheese])
    db_session.flush()

    pizza.variants = [
        MenuItemVariant(name="Regular", price_cents=1000),
        MenuItemVariant(name="Large", price_cents=1400),
    ]
    pizza.add_ons = [MenuItemAddOn(add_on_item_id=extra_cheese.id)]
    pizza.ingredients = [
        RecipeIngredient(inventory_item_id=seed_stock["flour"].id, quantity=0.25),
        RecipeIngredient(inventory_item_id=seed_stock["cheese"].id, quantity=0.2),
    ]
    db_session.commit()
    return {"pizza": pizza, "burger": burger, "extra_cheese": extra_cheese}


@pytest.fixture
def takeaway_payload(seed_menu):
    """Two pizzas (one Large with extra cheese) and a burger, to go."""
    return {
        "order_type": "takeaway",
        "items": [
            {
                "menu_item_id": seed_menu["pizza"].id,
                "quantity": 2,
                "variant": "Large",
                "add_ons": [{"menu_item_id": seed_menu["extra_cheese"].id}],
            },
            {"menu_item_id": seed_menu["burger"].id, "quantity": 1},
        ],
        "customer": {"name": "Ana", "phone": "555-0100"},
    }
