import pytest

from conftest import ctx_for
from portal.core.errors import NotFound, PermissionDenied, ValidationError
from portal.models import SubscriptionStatus
from portal.services.clients import create_client, list_client_products, list_clients, update_client_product_status
from portal.services.ledger import purchase


def test_reseller_owns_created_clients(db, reseller, make_user):
    other = make_user()
    client = create_client(db, ctx_for(reseller), name="  Anna  ", email="", reseller_id=other.id)
    assert client.name == "Anna"
    assert client.email is None
    assert client.reseller_id == reseller.id


def test_admin_must_name_a_reseller(db, admin, reseller):
    with pytest.raises(ValidationError):
        create_client(db, ctx_for(admin), name="Anna")
    with pytest.raises(ValidationError):
        create_client(db, ctx_for(admin), name="Anna", reseller_id=admin.id)
    with pytest.raises(NotFound):
        create_client(db, ctx_for(admin), name="Anna", reseller_id=404)

    client = create_client(db, ctx_for(admin), name="Anna", reseller_id=reseller.id)
    assert client.reseller_id == reseller.id


def test_client_name_is_required(db, reseller):
    with pytest.raises(ValidationError) as exc:
        create_client(db, ctx_for(reseller), name=" ")
    assert exc.value.field == "name"


def test_list_clients_is_scoped(db, admin, reseller, make_user, make_client):
    other = make_user()
    mine = make_client(reseller)
    make_client(other)

    assert [c.id for c in list_clients(db, ctx_for(reseller))] == [mine.id]
    assert len(list_clients(db, ctx_for(admin))) == 2


def test_client_products_follow_purchases(db, reseller, client_of, product, make_user):
    purchase(db, ctx_for(reseller), client_id=client_of.id, product_id=product.id)
    rows = list_client_products(db, ctx_for(reseller), client_of.id)
    assert [row.product_id for row in rows] == [product.id]

    with pytest.raises(PermissionDenied):
        list_client_products(db, ctx_for(make_user()), client_of.id)


def test_admin_suspends_client_subscription(db, admin, reseller, client_of, product):
    purchase(db, ctx_for(reseller), client_id=client_of.id, product_id=product.id)
    row = list_client_products(db, ctx_for(reseller), client_of.id)[0]
    assert row.status == SubscriptionStatus.ACTIVE

    updated = update_client_product_status(db, ctx_for(admin), client_of.id, row.id, "suspended")
    assert updated.status == SubscriptionStatus.SUSPENDED

    with pytest.raises(ValidationError) as exc:
        update_client_product_status(db, ctx_for(admin), client_of.id, row.id, "expired")
    assert exc.value.field == "status"


def test_client_subscription_status_is_admin_only(db, reseller, client_of, product):
    purchase(db, ctx_for(reseller), client_id=client_of.id, product_id=product.id)
    row = list_client_products(db, ctx_for(reseller), client_of.id)[0]
    with pytest.raises(PermissionDenied):
        update_client_product_status(db, ctx_for(reseller), client_of.id, row.id, "cancelled")


def test_client_subscription_must_belong_to_client(db, admin, reseller, client_of, product, make_client):
    purchase(db, ctx_for(reseller), client_id=client_of.id, product_id=product.id)
    row = list_client_products(db, ctx_for(reseller), client_of.id)[0]
    other = make_client(reseller, name="Anna")
    with pytest.raises(NotFound):
        update_client_product_status(db, ctx_for(admin), other.id, row.id, "cancelled")
