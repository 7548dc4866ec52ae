"""
Seed data for development and testing.
Creates demo staff accounts, the dining floor, stock and a small menu.
"""

from sqlalchemy import select
from sqlalchemy.orm import Session

from shared.config.constants import Roles, TableLocation
from shared.config.logging import get_logger
from shared.security.password import hash_password
from rest_api.models import (
    Category,
    InventoryItem,
    MenuItem,
    MenuItemAddOn,
    MenuItemVariant,
    RecipeIngredient,
    Table,
    User,
)

logger = get_logger(__name__)


# (email, password, first name, last name, role)
DEMO_USERS = [
    ("admin@restaurant.com", "admin123", "Ada", "Admin", Roles.ADMIN),
    ("manager@restaurant.com", "manager123", "Mila", "Manager", Roles.MANAGER),
    ("cashier@restaurant.com", "cashier123", "Carl", "Cashier", Roles.CASHIER),
    ("waiter@restaurant.com", "waiter123", "Walt", "Waiter", Roles.WAITER),
    ("kitchen@restaurant.com", "kitchen123", "Kira", "Cook", Roles.KITCHEN_STAFF),
    ("customer@restaurant.com", "customer123", "Cody", "Customer", Roles.CUSTOMER),
]

# (number, capacity, location)
DEMO_TABLES = [
    ("T1", 2, TableLocation.INDOOR),
    ("T2", 4, TableLocation.INDOOR),
    ("T3", 4, TableLocation.INDOOR),
    ("T4", 6, TableLocation.OUTDOOR),
    ("T5", 8, TableLocation.PRIVATE_ROOM),
    ("B1", 2, TableLocation.BAR),
]

# (sku, name, category, unit, stock, reorder level, cost cents)
DEMO_STOCK = [
    ("ING-FLOUR", "Flour", "ingredients", "kg", 50, 10, 120),
    ("ING-CHEESE", "Mozzarella", "ingredients", "kg", 20, 5, 900),
    ("ING-TOMATO", "Tomato sauce", "ingredients", "l", 15, 4, 300),
    ("ING-BEEF", "Beef patty", "ingredients", "pieces", 80, 20, 250),
    ("BEV-COLA", "Cola can", "beverages", "pieces", 120, 24, 60),
]


def seed(db: Session) -> None:
    """
    Seed the database with initial data.
    Idempotent: only inserts if no user exists yet.
    """
    if db.scalar(select(User.id).limit(1)):
        logger.info("Database already seeded, skipping")
        return

    logger.info("Seeding database")

    # ==========================================================================
    # Users
    # ==========================================================================
    users = {}
    for email, password, first_name, last_name, role in DEMO_USERS:
        user = User(
            email=email,
            password=hash_password(password),
            first_name=first_name,
            last_name=last_name,
            role=role,
        )
        db.add(user)
        users[role] = user
    db.flush()

    # ==========================================================================
    # Tables
    # ==========================================================================
    for number, capacity, location in DEMO_TABLES:
        db.add(Table(table_number=number, capacity=capacity, location=location))

    # ==========================================================================
    # Inventory
    # ==========================================================================
    stock = {}
    for sku, name, category, unit, current, reorder, cost in DEMO_STOCK:
        item = InventoryItem(
            sku=sku,
            name=name,
            category=category,
            unit=unit,
            current_stock=current,
            reorder_level=reorder,
            minimum_stock=reorder / 2,
            cost_price_cents=cost,
        )
        db.add(item)
        stock[sku] = item
    db.flush()

    # ==========================================================================
    # Menu
    # ==========================================================================
    mains = Category(name="Mains", sort_order=1, color="#d32f2f")
    drinks = Category(name="Drinks", sort_order=2, color="#1976d2")
    extras = Category(name="Extras", sort_order=3, color="#388e3c")
    db.add_all([mains, drinks, extras])
    db.flush()

    extra_cheese = MenuItem(
        name="Extra cheese", category_id=extras.id, price_cents=150, preparation_minutes=1,
        is_vegetarian=True,
    )
    pizza = MenuItem(
        name="Margherita pizza",
        description="Tomato, mozzarella and basil",
        category_id=mains.id,
        price_cents=1200,
        cost_price_cents=400,
        preparation_minutes=18,
        is_vegetarian=True,
        variants=[
            MenuItemVariant(name="Regular", price_cents=1200),
            MenuItemVariant(name="Large", price_cents=1600),
        ],
        ingredients=[
            RecipeIngredient(inventory_item_id=stock["ING-FLOUR"].id, quantity=0.25),
            RecipeIngredient(inventory_item_id=stock["ING-CHEESE"].id, quantity=0.15),
            RecipeIngredient(inventory_item_id=stock["ING-TOMATO"].id, quantity=0.1),
        ],
    )
    burger = MenuItem(
        name="Classic burger",
        category_id=mains.id,
        price_cents=1050,
        cost_price_cents=380,
        preparation_minutes=12,
        ingredients=[RecipeIngredient(inventory_item_id=stock["ING-BEEF"].id, quantity=1)],
    )
    cola = MenuItem(
        name="Cola",
        category_id=drinks.id,
        price_cents=300,
        preparation_minutes=1,
        is_vegetarian=True,
        ingredients=[RecipeIngredient(inventory_item_id=stock["BEV-COLA"].id, quantity=1)],
    )
    db.add_all([extra_cheese, pizza, burger, cola])
    db.flush()

    for dish in (pizza, burger):
        db.add(MenuItemAddOn(menu_item_id=dish.id, add_on_item_id=extra_cheese.id))

    db.commit()
    logger.info(
        "Database seeded successfully",
        user_count=len(DEMO_USERS),
        table_count=len(DEMO_TABLES),
        inventory_count=len(DEMO_STOCK),
        menu_item_count=4,
    )
