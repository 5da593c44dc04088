"""
Initialise an empty coffee van database.

Creates tables, the global settings row (Regular / Large options) and a
sample menu. Collections that already hold data are left untouched.

Usage (from the repo root):
    python backend/seed.py
"""

from coffeevan.database import SessionLocal, init_db
from coffeevan.services.document_store import DocumentStore
from coffeevan.services.settings_service import (
    DEFAULT_MAX_ORDERS_PER_SLOT,
    SETTINGS_DOC_ID,
    ProductOption,
    ShopSettings,
    settings_to_doc,
)


# ======================================================
# DEFAULT DATA
# ======================================================

DEFAULT_SETTINGS = ShopSettings(
    max_orders_per_slot=DEFAULT_MAX_ORDERS_PER_SLOT,
    blocked_dates=frozenset(),
    product_options=(
        ProductOption(id="opt1", title="Regular", price=0.0, is_default=True),
        ProductOption(id="opt2", title="Large", price=0.50),
    ),
)

SAMPLE_PRODUCTS = [
    {
        "name": "Espresso",
        "description": "Strong and pure coffee shot",
        "price": 2.50,
        "category": "Coffees",
        "image": "https://images.unsplash.com/photo-1510591509098-f4fdc6d0ff04?w=500",
        "available_options": ["opt1", "opt2"],
        "default_option": "opt1",
    },
    {
        "name": "Cappuccino",
        "description": "Espresso with steamed milk and foam",
        "price": 3.20,
        "category": "Coffees",
        "image": "https://images.unsplash.com/photo-1517701604599-bb29b565090c?w=500",
        "available_options": ["opt1", "opt2"],
        "default_option": "opt1",
    },
    {
        "name": "English Breakfast",
        "description": "Classic black tea blend",
        "price": 2.80,
        "category": "Teas",
        "image": "https://images.unsplash.com/photo-1594631252845-29fc4cc8cde9?w=500",
        "available_options": ["opt1", "opt2"],
        "default_option": "opt1",
    },
    {
        "name": "Carrot Cake",
        "description": "Moist cake with cream cheese frosting",
        "price": 3.50,
        "category": "Cakes",
        "image": "https://images.unsplash.com/photo-1621303837174-89787a7d4729?w=500",
        "available_options": [],
    },
    {
        "name": "Classic Hot Chocolate",
        "description": "Rich and creamy hot chocolate",
        "price": 3.00,
        "category": "Hot Chocolate",
        "image": "https://images.unsplash.com/photo-1542990253-0d0f5be5f0ed?w=500",
        "available_options": ["opt1", "opt2"],
        "default_option": "opt1",
    },
]


# ======================================================
# MAIN
# ======================================================

def main():
    init_db()

    db = SessionLocal()
    try:
        store = DocumentStore(db)

        if store.get("settings", SETTINGS_DOC_ID) is None:
            store.set("settings", SETTINGS_DOC_ID, settings_to_doc(DEFAULT_SETTINGS))
            print("[SEED] Settings created")
        else:
            print("[SEED] Settings already exist, nothing to do")

        if not store.query("products"):
            for product in SAMPLE_PRODUCTS:
                store.add("products", product)
            print(f"[SEED] {len(SAMPLE_PRODUCTS)} sample products created")
        else:
            print("[SEED] Products already exist, nothing to do")

        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    main()
