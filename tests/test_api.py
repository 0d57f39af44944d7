from decimal import Decimal

from conftest import api_client, auth_headers, ctx_for
from portal.core.security import hash_password
from portal.models import OrderStatus, ProductOrder, User, UserRole
from portal.services.orders import OrderDetails, create_order


def test_login_with_username(db):
    user = User(username="anna", hashed_password=hash_password("s3cret-pass"), role=UserRole.RESELLER)
    db.add(user)
    db.commit()

    with api_client(db) as client:
        ok = client.post("/api/v1/auth/login", json={"username": "anna", "password": "s3cret-pass"})
        bad = client.post("/api/v1/auth/login", json={"username": "anna", "password": "wrong"})

    assert ok.status_code == 200
    assert ok.json()["token_type"] == "bearer"
    assert bad.status_code == 401


def test_purchase_endpoint_maps_insufficient_balance_to_402(db, make_user, make_product, make_client):
    user = make_user(balance="5.00")
    client_row = make_client(user)
    product = make_product(base="100.00", group1="90.00", group2="80.00")

    with api_client(db) as client:
        res = client.post(
            f"/api/v1/clients/{client_row.id}/purchase",
            json={"product_id": product.id, "reference_date": "2024-04-01"},
            headers=auth_headers(user),
        )

    assert res.status_code == 402
    detail = res.json()["detail"]
    assert detail["message"] == "Insufficient credit balance"
    assert detail["required"] == "90.00"
    assert detail["available"] == "5.00"


def test_purchase_endpoint_charges_prorated_price(db, reseller, product, client_of):
    with api_client(db) as client:
        res = client.post(
            f"/api/v1/clients/{client_of.id}/purchase",
            json={"product_id": product.id, "reference_date": "2024-06-16"},
            headers={**auth_headers(reseller), "Idempotency-Key": "abc-123"},
        )

    assert res.status_code == 201
    body = res.json()
    assert Decimal(body["amount"]) == Decimal("12.50")
    assert body["reference"] == "abc-123"
    db.refresh(reseller)
    assert reseller.credit_balance == Decimal("87.50")


def test_unknown_client_is_404(db, reseller, product):
    with api_client(db) as client:
        res = client.post(
            "/api/v1/clients/999/purchase",
            json={"product_id": product.id},
            headers=auth_headers(reseller),
        )
    assert res.status_code == 404
    assert res.json()["detail"] == {"message": "Client not found", "entity": "Client", "id": 999}


def test_order_submission_validation_is_400(db, reseller, client_of, product):
    with api_client(db) as client:
        res = client.post(
            "/api/v1/orders",
            json={"client_id": client_of.id, "product_id": product.id, "provision_method": "courier"},
            headers=auth_headers(reseller),
        )
    assert res.status_code == 400
    assert res.json()["detail"]["field"] == "address"


def test_order_lifecycle_over_http(db, admin, reseller, client_of, product):
    with api_client(db) as client:
        submitted = client.post(
            "/api/v1/orders",
            json={"client_id": client_of.id, "product_id": product.id, "provision_method": "self", "sim_number": "8935401"},
            headers=auth_headers(reseller),
        )
        assert submitted.status_code == 201
        order_id = submitted.json()["id"]
        assert submitted.json()["status"] == "pending"

        forbidden = client.post(
            f"/api/v1/orders/{order_id}/decision",
            json={"decision": "active"},
            headers=auth_headers(reseller),
        )
        assert forbidden.status_code == 403

        rejected = client.post(
            f"/api/v1/orders/{order_id}/decision",
            json={"decision": "rejected", "rejection_reason": "Out of stock"},
            headers=auth_headers(admin),
        )
        assert rejected.status_code == 200
        assert rejected.json()["rejection_reason"] == "Out of stock"

        again = client.post(
            f"/api/v1/orders/{order_id}/decision",
            json={"decision": "active"},
            headers=auth_headers(admin),
        )

    assert again.status_code == 409
    assert again.json()["detail"]["current_status"] == "rejected"
    assert again.json()["detail"]["requested_status"] == "active"


def test_admin_credit_adjustment_and_balance_check(db, admin, reseller):
    with api_client(db) as client:
        res = client.post(
            f"/api/v1/users/{reseller.id}/credit",
            json={"amount": "50", "direction": "add"},
            headers=auth_headers(admin),
        )
        check = client.get(f"/api/v1/users/{reseller.id}/balance-check", headers=auth_headers(admin))
        denied = client.post(
            f"/api/v1/users/{reseller.id}/credit",
            json={"amount": "50", "direction": "add"},
            headers=auth_headers(reseller),
        )

    assert res.status_code == 200
    assert res.json()["tx_type"] == "credit"
    assert check.json()["consistent"] is True
    assert Decimal(check.json()["stored"]) == Decimal("150.00")
    assert denied.status_code == 403


def test_admin_stats_counts_pending_orders(db, admin, reseller, client_of, product):
    create_order(
        db,
        ctx_for(reseller),
        client_id=client_of.id,
        product_id=product.id,
        provision_method="self",
        details=OrderDetails(sim_number="8935401"),
    )
    with api_client(db) as client:
        res = client.get("/api/v1/admin/stats", headers=auth_headers(admin))
        denied = client.get("/api/v1/admin/stats", headers=auth_headers(reseller))

    assert res.status_code == 200
    assert res.json()["pending_orders"] == 1
    assert res.json()["total_resellers"] == 1
    assert denied.status_code == 403
    assert db.query(ProductOrder).filter(ProductOrder.status == OrderStatus.PENDING).count() == 1


def test_priced_catalog_over_http(db, make_user, product):
    user = make_user(group=2)
    with api_client(db) as client:
        res = client.get("/api/v1/catalog/priced?reference_date=2024-06-16", headers=auth_headers(user))

    assert res.status_code == 200
    item = res.json()[0]
    assert Decimal(item["group_price"]) == Decimal("20.00")
    assert Decimal(item["prorated_price"]) == Decimal("10.00")


def test_healthz(db):
    with api_client(db) as client:
        res = client.get("/healthz")
    assert res.status_code == 200
    assert res.json()["status"] == "ok"
