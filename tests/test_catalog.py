from datetime import date
from decimal import Decimal

import pytest

from conftest import ctx_for
from portal.core.errors import NotFound, PermissionDenied, ValidationError
from portal.models import MasterCategory, ProductStatus
from portal.services import catalog
from portal.services.ledger import purchase


def test_create_category_tree(db, admin):
    ctx = ctx_for(admin)
    root = catalog.create_category(db, ctx, name="MTN Fixed", master_category="MTN Fixed")
    fiber = catalog.create_category(db, ctx, name="Fiber", master_category="mtn fixed", parent_id=root.id)
    catalog.create_category(db, ctx, name="Mobile", master_category="MTN GSM")

    tree = catalog.category_tree(db)
    names = {node.category.name: [child.category.name for child in node.children] for node in tree}
    assert names == {"MTN Fixed": ["Fiber"], "Mobile": []}
    assert fiber.master_category == MasterCategory.MTN_FIXED

    fixed_only = catalog.category_tree(db, "MTN Fixed")
    assert [node.category.name for node in fixed_only] == ["MTN Fixed"]


def test_category_tree_is_two_levels(db, admin):
    ctx = ctx_for(admin)
    root = catalog.create_category(db, ctx, name="Root", master_category="MTN GSM")
    child = catalog.create_category(db, ctx, name="Child", master_category="MTN GSM", parent_id=root.id)
    with pytest.raises(ValidationError) as exc:
        catalog.create_category(db, ctx, name="Grandchild", master_category="MTN GSM", parent_id=child.id)
    assert exc.value.field == "parent_id"


def test_category_parent_must_share_master(db, admin):
    ctx = ctx_for(admin)
    root = catalog.create_category(db, ctx, name="Root", master_category="MTN GSM")
    with pytest.raises(ValidationError):
        catalog.create_category(db, ctx, name="Fiber", master_category="MTN Fixed", parent_id=root.id)


def test_root_with_subcategories_keeps_its_master_category(db, admin):
    ctx = ctx_for(admin)
    root = catalog.create_category(db, ctx, name="Root", master_category="MTN GSM")
    catalog.create_category(db, ctx, name="Child", master_category="MTN GSM", parent_id=root.id)

    with pytest.raises(ValidationError) as exc:
        catalog.update_category(db, ctx, root.id, master_category="MTN Fixed")
    assert exc.value.field == "master_category"
    db.refresh(root)
    assert root.master_category == MasterCategory.MTN_GSM


def test_subcategory_cannot_leave_its_parents_master_category(db, admin):
    ctx = ctx_for(admin)
    root = catalog.create_category(db, ctx, name="Root", master_category="MTN GSM")
    child = catalog.create_category(db, ctx, name="Child", master_category="MTN GSM", parent_id=root.id)
    with pytest.raises(ValidationError):
        catalog.update_category(db, ctx, child.id, master_category="MTN Fixed")


def test_empty_root_can_change_master_category(db, admin):
    root = catalog.create_category(db, ctx_for(admin), name="Root", master_category="MTN GSM")
    updated = catalog.update_category(db, ctx_for(admin), root.id, master_category="MTN Fixed")
    assert updated.master_category == MasterCategory.MTN_FIXED


def test_unknown_master_category(db, admin):
    with pytest.raises(ValidationError) as exc:
        catalog.create_category(db, ctx_for(admin), name="X", master_category="Nova")
    assert exc.value.field == "master_category"


def test_category_cannot_be_its_own_parent(db, admin, category):
    with pytest.raises(ValidationError):
        catalog.update_category(db, ctx_for(admin), category.id, parent_id=category.id)


def test_delete_category_with_products_is_blocked(db, admin, category, product):
    with pytest.raises(ValidationError) as exc:
        catalog.delete_category(db, ctx_for(admin), category.id)
    assert "Cannot delete category with products" in exc.value.message


def test_delete_empty_category(db, admin, category):
    catalog.delete_category(db, ctx_for(admin), category.id)
    assert catalog.list_categories(db) == []


def test_catalog_mutations_require_admin(db, reseller, category):
    with pytest.raises(PermissionDenied):
        catalog.create_category(db, ctx_for(reseller), name="Nope", master_category="MTN GSM")
    with pytest.raises(PermissionDenied):
        catalog.delete_category(db, ctx_for(reseller), category.id)


def test_create_and_update_product(db, admin, category):
    ctx = ctx_for(admin)
    product = catalog.create_product(
        db,
        ctx,
        name=" GSM Unlimited ",
        base_price="59.90",
        group1_price=Decimal("49.90"),
        group2_price=45,
        category_id=category.id,
    )
    assert product.name == "GSM Unlimited"
    assert product.status == ProductStatus.ACTIVE
    assert product.group2_price == Decimal("45.00")

    updated = catalog.update_product(db, ctx, product.id, status="outofstock", group1_price="47.50")
    assert updated.status == ProductStatus.OUT_OF_STOCK
    assert updated.group1_price == Decimal("47.50")


def test_product_prices_must_be_non_negative(db, admin, category):
    with pytest.raises(ValidationError) as exc:
        catalog.create_product(db, ctx_for(admin), name="Bad", base_price="-1", group1_price=1, group2_price=1)
    assert exc.value.field == "base_price"


def test_product_requires_every_price_tier(db, admin):
    with pytest.raises(ValidationError) as exc:
        catalog.create_product(db, ctx_for(admin), name="Partial", base_price=10, group1_price=9)
    assert exc.value.field == "group2_price"


def test_product_with_unknown_category(db, admin):
    with pytest.raises(NotFound):
        catalog.create_product(db, ctx_for(admin), name="P", base_price=1, group1_price=1, group2_price=1, category_id=404)


def test_referenced_product_cannot_be_deleted(db, admin, reseller, client_of, product):
    purchase(db, ctx_for(reseller), client_id=client_of.id, product_id=product.id)
    with pytest.raises(ValidationError):
        catalog.delete_product(db, ctx_for(admin), product.id)


def test_unreferenced_product_can_be_deleted(db, admin, product):
    catalog.delete_product(db, ctx_for(admin), product.id)
    with pytest.raises(NotFound):
        catalog.get_product(db, product.id)


def test_priced_catalog_uses_group_price_and_skips_out_of_stock(db, make_user, make_product):
    make_product(name="Available")
    make_product(name="Gone", status=ProductStatus.OUT_OF_STOCK)
    user = make_user(group=2)

    priced = catalog.priced_catalog(db, user, date(2024, 6, 16))
    assert [item.product.name for item in priced] == ["Available"]
    assert priced[0].group_price == Decimal("20.00")
    assert priced[0].quote.final_price == Decimal("10.00")


def test_list_products_by_master_category(db, product):
    assert [p.id for p in catalog.list_products(db, master_category="MTN GSM")] == [product.id]
    assert catalog.list_products(db, master_category="MTN Fixed") == []
