import os
from decimal import Decimal

from portal.core.database import Base, SessionLocal, engine
from portal.core.security import hash_password
from portal.models import MasterCategory, Product, ProductCategory, User, UserRole


CATALOG = {
    MasterCategory.MTN_FIXED: {
        "Fiber": [
            {"name": "Ljósleiðari 100", "base_price": Decimal("8990"), "group1_price": Decimal("7990"), "group2_price": Decimal("7490")},
            {"name": "Ljósleiðari 1000", "base_price": Decimal("11990"), "group1_price": Decimal("10490"), "group2_price": Decimal("9990")},
        ],
        "Routers": [
            {"name": "Router rental", "base_price": Decimal("990"), "group1_price": Decimal("890"), "group2_price": Decimal("790")},
        ],
    },
    MasterCategory.MTN_GSM: {
        "Mobile": [
            {"name": "GSM 10GB", "base_price": Decimal("2990"), "group1_price": Decimal("2490"), "group2_price": Decimal("2290")},
            {"name": "GSM Unlimited", "base_price": Decimal("5990"), "group1_price": Decimal("4990"), "group2_price": Decimal("4590")},
        ],
    },
}


def _category(db, name: str, master: MasterCategory, parent_id: int | None = None) -> ProductCategory:
    category = (
        db.query(ProductCategory)
        .filter(ProductCategory.name == name, ProductCategory.master_category == master)
        .first()
    )
    if not category:
        category = ProductCategory(name=name, master_category=master, description="", parent_id=parent_id)
        db.add(category)
        db.flush()
    return category


def main():
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        for master, subcategories in CATALOG.items():
            root = _category(db, master.value, master)
            for sub_name, products in subcategories.items():
                sub = _category(db, sub_name, master, parent_id=root.id)
                for product in products:
                    existing = db.query(Product).filter(Product.name == product["name"]).first()
                    if not existing:
                        db.add(Product(category_id=sub.id, **product))

        username = os.getenv("SEED_ADMIN_USERNAME", "admin")
        if not db.query(User).filter(User.username == username).first():
            db.add(
                User(
                    username=username,
                    hashed_password=hash_password(os.getenv("SEED_ADMIN_PASSWORD", "change-me-now")),
                    full_name="Administrator",
                    role=UserRole.ADMIN,
                )
            )
        db.commit()
    finally:
        db.close()


if __name__ == "__main__":
    main()
