import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation

from sqlalchemy.orm import Session

from portal.core.authz import RequestContext, requires_role
from portal.core.errors import NotFound, ValidationError
from portal.models import (
    ClientProduct,
    MasterCategory,
    Product,
    ProductCategory,
    ProductOrder,
    ProductStatus,
    User,
    UserProduct,
    UserRole,
)
from portal.services.pricing import ProRataQuote, price_for_group, prorate

logger = logging.getLogger(__name__)

PRICE_FIELDS = ("base_price", "group1_price", "group2_price")
PRODUCT_FIELDS = PRICE_FIELDS + ("name", "description", "category_id", "status", "api_endpoint", "api_identifier")
CATEGORY_FIELDS = ("name", "master_category", "description", "parent_id", "is_active")


@dataclass
class CategoryNode:
    category: ProductCategory
    children: list["CategoryNode"] = field(default_factory=list)


@dataclass(frozen=True)
class PricedProduct:
    product: Product
    group_price: Decimal
    quote: ProRataQuote


def parse_master_category(value) -> MasterCategory:
    raw = str(getattr(value, "value", value) or "").strip().lower()
    for member in MasterCategory:
        if raw in (member.value.lower(), member.name.lower()):
            return member
    raise ValidationError("Master category must be 'MTN Fixed' or 'MTN GSM'", field="master_category")


def parse_product_status(value) -> ProductStatus:
    raw = str(getattr(value, "value", value) or "").strip().lower().replace("_", "").replace("-", "")
    for member in ProductStatus:
        if raw == member.value:
            return member
    raise ValidationError("Status must be one of active, limited, outofstock", field="status")


def _price(name: str, value) -> Decimal:
    try:
        price = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{name} must be a number", field=name)
    if not price.is_finite() or price < 0:
        raise ValidationError(f"{name} must not be negative", field=name)
    return price.quantize(Decimal("0.01"))


# Categories


def list_categories(db: Session, master_category=None) -> list[ProductCategory]:
    query = db.query(ProductCategory)
    if master_category is not None:
        query = query.filter(ProductCategory.master_category == parse_master_category(master_category))
    return query.order_by(ProductCategory.name.asc()).all()


def category_tree(db: Session, master_category=None) -> list[CategoryNode]:
    categories = list_categories(db, master_category)
    nodes = {c.id: CategoryNode(category=c) for c in categories}
    roots = []
    for c in categories:
        parent = nodes.get(c.parent_id) if c.parent_id else None
        if parent is not None:
            parent.children.append(nodes[c.id])
        else:
            roots.append(nodes[c.id])
    return roots


def _has_children(db: Session, category_id: int) -> bool:
    return db.query(ProductCategory.id).filter(ProductCategory.parent_id == category_id).first() is not None


def _check_parent(db: Session, parent_id, *, category_id=None, master: MasterCategory | None = None) -> None:
    if parent_id is None:
        return
    if category_id is not None and parent_id == category_id:
        raise ValidationError("A category cannot be its own parent", field="parent_id")
    parent = db.get(ProductCategory, parent_id)
    if not parent:
        raise NotFound("Category", parent_id)
    # Two levels only.
    if parent.parent_id is not None:
        raise ValidationError("Parent must be a top-level category", field="parent_id")
    if category_id is not None and _has_children(db, category_id):
        raise ValidationError("A category with subcategories cannot be nested", field="parent_id")
    if master is not None and parent.master_category != master:
        raise ValidationError("Parent belongs to a different master category", field="parent_id")


@requires_role(UserRole.ADMIN)
def create_category(db: Session, ctx: RequestContext, **data) -> ProductCategory:
    name = str(data.get("name") or "").strip()
    if not name:
        raise ValidationError("Category name is required", field="name")
    master = parse_master_category(data.get("master_category") or MasterCategory.MTN_FIXED)
    parent_id = data.get("parent_id")
    _check_parent(db, parent_id, master=master)

    category = ProductCategory(
        name=name,
        master_category=master,
        description=str(data.get("description") or ""),
        parent_id=parent_id,
        is_active=bool(data.get("is_active", True)),
    )
    db.add(category)
    db.commit()
    db.refresh(category)
    logger.info("Category created id=%s master=%s parent_id=%s", category.id, master.value, parent_id)
    return category


@requires_role(UserRole.ADMIN)
def update_category(db: Session, ctx: RequestContext, category_id: int, **changes) -> ProductCategory:
    category = db.get(ProductCategory, category_id)
    if not category:
        raise NotFound("Category", category_id)

    updates = {key: value for key, value in changes.items() if key in CATEGORY_FIELDS}
    if "name" in updates:
        updates["name"] = str(updates["name"] or "").strip()
        if not updates["name"]:
            raise ValidationError("Category name is required", field="name")
    if "master_category" in updates:
        updates["master_category"] = parse_master_category(updates["master_category"])
        if updates["master_category"] != category.master_category and _has_children(db, category.id):
            raise ValidationError(
                "Move or delete the subcategories before changing the master category",
                field="master_category",
            )
    if "parent_id" in updates or "master_category" in updates:
        # A subcategory always shares its parent's master category.
        _check_parent(
            db,
            updates.get("parent_id", category.parent_id),
            category_id=category.id,
            master=updates.get("master_category", category.master_category),
        )

    for key, value in updates.items():
        setattr(category, key, value)
    db.commit()
    db.refresh(category)
    return category


@requires_role(UserRole.ADMIN)
def delete_category(db: Session, ctx: RequestContext, category_id: int) -> None:
    category = db.get(ProductCategory, category_id)
    if not category:
        raise NotFound("Category", category_id)
    if db.query(Product.id).filter(Product.category_id == category_id).first():
        raise ValidationError(
            "Cannot delete category with products. Please move or delete the products first.",
            field="category_id",
        )
    if _has_children(db, category_id):
        raise ValidationError("Cannot delete category with subcategories", field="category_id")
    db.delete(category)
    db.commit()
    logger.info("Category deleted id=%s", category_id)


# Products


def list_products(db: Session, *, master_category=None, category_id: int | None = None) -> list[Product]:
    query = db.query(Product)
    if master_category is not None:
        query = query.join(ProductCategory, Product.category_id == ProductCategory.id).filter(
            ProductCategory.master_category == parse_master_category(master_category)
        )
    if category_id is not None:
        query = query.filter(Product.category_id == category_id)
    return query.order_by(Product.name.asc()).all()


def get_product(db: Session, product_id: int) -> Product:
    product = db.get(Product, product_id)
    if not product:
        raise NotFound("Product", product_id)
    return product


def priced_catalog(db: Session, user: User, reference_date=None, *, master_category=None) -> list[PricedProduct]:
    on_date = reference_date or datetime.now(timezone.utc).date()
    priced = []
    for product in list_products(db, master_category=master_category):
        if product.status == ProductStatus.OUT_OF_STOCK:
            continue
        group_price = price_for_group(product, user.reseller_group)
        priced.append(PricedProduct(product=product, group_price=group_price, quote=prorate(group_price, on_date)))
    return priced


def _apply_product_fields(db: Session, product: Product, updates: dict) -> None:
    for name in PRICE_FIELDS:
        if name in updates:
            updates[name] = _price(name, updates[name])
    if "name" in updates:
        updates["name"] = str(updates["name"] or "").strip()
        if not updates["name"]:
            raise ValidationError("Product name is required", field="name")
    if "status" in updates:
        updates["status"] = parse_product_status(updates["status"])
    if updates.get("category_id") is not None and not db.get(ProductCategory, updates["category_id"]):
        raise NotFound("Category", updates["category_id"])
    for key in ("api_endpoint", "api_identifier"):
        if key in updates:
            updates[key] = str(updates[key] or "").strip()
    for key, value in updates.items():
        setattr(product, key, value)


@requires_role(UserRole.ADMIN)
def create_product(db: Session, ctx: RequestContext, **data) -> Product:
    updates = {key: value for key, value in data.items() if key in PRODUCT_FIELDS}
    for name in PRICE_FIELDS:
        if updates.get(name) is None:
            raise ValidationError(f"{name} is required", field=name)
    updates.setdefault("name", "")
    updates.setdefault("status", ProductStatus.ACTIVE)
    product = Product(api_endpoint="", api_identifier="")
    _apply_product_fields(db, product, updates)
    db.add(product)
    db.commit()
    db.refresh(product)
    logger.info("Product created id=%s name=%s", product.id, product.name)
    return product


@requires_role(UserRole.ADMIN)
def update_product(db: Session, ctx: RequestContext, product_id: int, **changes) -> Product:
    product = get_product(db, product_id)
    updates = {key: value for key, value in changes.items() if key in PRODUCT_FIELDS}
    _apply_product_fields(db, product, updates)
    db.commit()
    db.refresh(product)
    logger.info("Product updated id=%s fields=%s", product.id, ",".join(sorted(updates)))
    return product


def product_is_referenced(db: Session, product_id: int) -> bool:
    for model in (ClientProduct, ProductOrder, UserProduct):
        if db.query(model.id).filter(model.product_id == product_id).first():
            return True
    return False


@requires_role(UserRole.ADMIN)
def delete_product(db: Session, ctx: RequestContext, product_id: int) -> None:
    product = get_product(db, product_id)
    if product_is_referenced(db, product_id):
        raise ValidationError(
            "Product is referenced by subscriptions or orders; set its status to outofstock instead",
            field="product_id",
        )
    db.delete(product)
    db.commit()
    logger.info("Product deleted id=%s", product_id)
