import os


def _set_test_env() -> None:
    defaults = {
        "APP_NAME": "Reseller Portal Test",
        "ENVIRONMENT": "test",
        "SECRET_KEY": "test-secret",
        "ACCESS_TOKEN_EXPIRE_MINUTES": "30",
        "REFRESH_TOKEN_EXPIRE_DAYS": "7",
        "PASSWORD_BCRYPT_ROUNDS": "4",
        "AUTO_CREATE_TABLES": "false",
        "DATABASE_URL": "sqlite://",
        "PROVISIONING_BASE_URL": "https://www.broadband.is/api",
        "MTN_FIXED_USERNAME": "fixed_user",
        "MTN_FIXED_PASSWORD": "fixed_pass",
        "MTN_GSM_USERNAME": "gsm_user",
        "MTN_GSM_PASSWORD": "gsm_pass",
        "PROVISIONING_TIMEOUT_SECONDS": "5",
        "PROVISIONING_RETRY_COUNT": "2",
        "PROVISIONING_TEST_MODE": "true",
        "CORS_ORIGINS": "http://localhost:5173,http://localhost:3000",
    }
    for key, value in defaults.items():
        os.environ.setdefault(key, value)


_set_test_env()

from contextlib import contextmanager  # noqa: E402
from decimal import Decimal  # noqa: E402

import pytest  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from portal.core.authz import RequestContext  # noqa: E402
from portal.core.database import Base  # noqa: E402
from portal.models import (  # noqa: E402
    Client,
    MasterCategory,
    PaymentMode,
    Product,
    ProductCategory,
    ProductStatus,
    User,
    UserRole,
)


@pytest.fixture
def db():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def _make(
        *,
        role=UserRole.RESELLER,
        payment_mode=PaymentMode.CREDIT,
        balance="0",
        group=1,
        is_active=True,
        username=None,
    ) -> User:
        counter["n"] += 1
        opening = Decimal(balance)
        user = User(
            username=username or f"user{counter['n']}",
            hashed_password="not-a-real-hash",
            role=role,
            payment_mode=payment_mode,
            opening_balance=opening,
            credit_balance=opening,
            reseller_group=group,
            is_active=is_active,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture
def admin(make_user):
    return make_user(role=UserRole.ADMIN, username="admin")


@pytest.fixture
def reseller(make_user):
    return make_user(balance="100.00", username="reseller")


@pytest.fixture
def category(db):
    category = ProductCategory(name="Mobile", master_category=MasterCategory.MTN_GSM, description="")
    db.add(category)
    db.commit()
    db.refresh(category)
    return category


@pytest.fixture
def make_product(db, category):
    def _make(*, base="30.00", group1="25.00", group2="20.00", status=ProductStatus.ACTIVE, name="GSM 10GB") -> Product:
        product = Product(
            name=name,
            base_price=Decimal(base),
            group1_price=Decimal(group1),
            group2_price=Decimal(group2),
            category_id=category.id,
            status=status,
        )
        db.add(product)
        db.commit()
        db.refresh(product)
        return product

    return _make


@pytest.fixture
def product(make_product):
    return make_product()


@pytest.fixture
def make_client(db):
    def _make(owner: User, name="Jon Jonsson") -> Client:
        client = Client(name=name, reseller_id=owner.id)
        db.add(client)
        db.commit()
        db.refresh(client)
        return client

    return _make


@pytest.fixture
def client_of(make_client, reseller):
    return make_client(reseller)


def ctx_for(user: User) -> RequestContext:
    return RequestContext(principal=user)


@contextmanager
def api_client(session):
    from fastapi.testclient import TestClient

    from portal.core.database import get_db
    from portal.main import app

    app.dependency_overrides.clear()

    def _override_get_db():
        yield session

    app.dependency_overrides[get_db] = _override_get_db
    try:
        with TestClient(app) as client:
            yield client
    finally:
        app.dependency_overrides.clear()


def auth_headers(user: User) -> dict:
    from portal.core.security import create_access_token

    return {"Authorization": f"Bearer {create_access_token(str(user.id), user.role.value)}"}
