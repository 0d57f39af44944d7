import pytest

from conftest import api_client, auth_headers, ctx_for
from portal.core.errors import NotFound, PermissionDenied, ValidationError
from portal.models import SubscriptionStatus, UserProduct, UserProductEndpoint
from portal.services import provisioning, user_products


@pytest.fixture
def user_product(db, admin, reseller, product):
    return user_products.assign_user_product(
        db, ctx_for(admin), user_id=reseller.id, product_id=product.id, username="acct-1"
    )


def test_assigned_user_product_starts_active(user_product):
    assert user_product.status == SubscriptionStatus.ACTIVE
    assert user_product.username == "acct-1"


@pytest.mark.parametrize(
    "status, expected",
    [
        ("suspended", SubscriptionStatus.SUSPENDED),
        ("CANCELLED", SubscriptionStatus.CANCELLED),
        (SubscriptionStatus.SUSPENDED, SubscriptionStatus.SUSPENDED),
    ],
)
def test_admin_can_change_user_product_status(db, admin, user_product, status, expected):
    updated = user_products.update_user_product(db, ctx_for(admin), user_product.id, status=status)
    assert updated.status == expected


def test_status_update_keeps_account_details(db, admin, user_product):
    updated = user_products.update_user_product(db, ctx_for(admin), user_product.id, status="suspended", msisdn=" 3545551234 ")
    assert updated.status == SubscriptionStatus.SUSPENDED
    assert updated.username == "acct-1"
    assert updated.msisdn == "3545551234"


def test_unknown_user_product_status(db, admin, user_product):
    with pytest.raises(ValidationError) as exc:
        user_products.update_user_product(db, ctx_for(admin), user_product.id, status="paused")
    assert exc.value.field == "status"
    db.refresh(user_product)
    assert user_product.status == SubscriptionStatus.ACTIVE


def test_reseller_cannot_change_status(db, reseller, user_product):
    with pytest.raises(PermissionDenied):
        user_products.update_user_product(db, ctx_for(reseller), user_product.id, status="cancelled")


def test_active_user_product_cannot_be_deleted(db, admin, user_product):
    with pytest.raises(ValidationError) as exc:
        user_products.delete_user_product(db, ctx_for(admin), user_product.id)
    assert exc.value.field == "user_product_id"
    assert db.get(UserProduct, user_product.id) is not None


def test_cancelled_user_product_is_deleted_with_its_endpoints(db, admin, user_product):
    ctx = ctx_for(admin)
    setting = provisioning.save_api_setting(db, ctx, name="Usage", endpoint="/usage", master_category="MTN GSM")
    user_products.add_endpoint(db, ctx, user_product.id, api_setting_id=setting.id)
    user_products.update_user_product(db, ctx, user_product.id, status="cancelled")

    user_products.delete_user_product(db, ctx, user_product.id)

    assert db.query(UserProduct).count() == 0
    assert db.query(UserProductEndpoint).count() == 0
    with pytest.raises(NotFound):
        user_products.get_user_product(db, ctx, user_product.id)


def test_user_product_status_and_delete_over_http(db, admin, user_product):
    with api_client(db) as client:
        blocked = client.delete(f"/api/v1/user-products/{user_product.id}", headers=auth_headers(admin))
        assert blocked.status_code == 400

        patched = client.patch(
            f"/api/v1/user-products/{user_product.id}",
            json={"status": "cancelled"},
            headers=auth_headers(admin),
        )
        assert patched.status_code == 200
        assert patched.json()["status"] == "cancelled"

        deleted = client.delete(f"/api/v1/user-products/{user_product.id}", headers=auth_headers(admin))
        assert deleted.status_code == 204
