"""
Pytest fixtures for SlipSync backend tests.

Provides test database setup, two tenants with stores and users, bearer
token helpers and the Flask test client.
"""

from datetime import datetime, timedelta

import pytest

from slipsync import create_app
from slipsync.extensions import db
from slipsync.models import Merchant, Store, StoreAccessGrant, User
from slipsync.permissions import RoleName
from slipsync.services import catalog_service, identity_service, order_service, user_service


TEST_CONFIG = {
    'TESTING': True,
    'SECRET_KEY': 'test-secret-key',
    'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
    'SQLALCHEMY_TRACK_MODIFICATIONS': False,
    'UNASSIGNED_ROLE_SEES_ALL_STORES': True,
}

BASE_TIME = datetime(2024, 1, 1, 9, 0, 0)


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app(TEST_CONFIG)

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def setup_roles(db_session):
    """Create the ADMIN and EMPLOYEE roles."""
    user_service.ensure_role(RoleName.ADMIN)
    user_service.ensure_role(RoleName.EMPLOYEE)
    db_session.commit()


def make_store(session, merchant, name: str, minutes: int = 0) -> Store:
    """Create a store with a deterministic created_at (ordering matters for the default store)."""
    store = Store(
        merchant_id=merchant.id,
        name=name,
        address=f"{name} Road",
        created_at=BASE_TIME + timedelta(minutes=minutes),
    )
    session.add(store)
    session.commit()
    return store


def make_user(session, merchant, subject: str, role: RoleName | None, *, full_name: str | None = None) -> User:
    user = User(
        external_user_id=subject,
        email=f"{subject}@example.com",
        full_name=full_name,
        merchant_id=merchant.id,
    )
    if role is not None:
        user.role = user_service.ensure_role(role)
    session.add(user)
    session.commit()
    return user


def grant_stores(session, user, *stores) -> None:
    for store in stores:
        session.add(StoreAccessGrant(user_id=user.id, store_id=store.id))
    session.commit()


@pytest.fixture(scope='function')
def merchant_a(db_session):
    """Merchant A (first tenant)."""
    merchant = Merchant(id="org_acme", name="Acme Traders", currency="PKR")
    db_session.add(merchant)
    db_session.commit()
    return merchant


@pytest.fixture(scope='function')
def merchant_b(db_session):
    """Merchant B (second tenant)."""
    merchant = Merchant(id="org_beta", name="Beta Mart", currency="USD")
    db_session.add(merchant)
    db_session.commit()
    return merchant


@pytest.fixture(scope='function')
def stores_a(db_session, merchant_a):
    """Three stores in Merchant A, created in order S1, S2, S3."""
    return [
        make_store(db_session, merchant_a, "Acme S1", minutes=0),
        make_store(db_session, merchant_a, "Acme S2", minutes=1),
        make_store(db_session, merchant_a, "Acme S3", minutes=2),
    ]


@pytest.fixture(scope='function')
def store_b(db_session, merchant_b):
    return make_store(db_session, merchant_b, "Beta B1")


@pytest.fixture(scope='function')
def admin_a(db_session, merchant_a, stores_a, setup_roles):
    return make_user(db_session, merchant_a, "user_admin_a", RoleName.ADMIN, full_name="Ada Admin")


@pytest.fixture(scope='function')
def employee_a(db_session, merchant_a, stores_a, setup_roles):
    """Employee of Merchant A with access to S1 and S3."""
    user = make_user(db_session, merchant_a, "user_emp_a", RoleName.EMPLOYEE, full_name="Eve Employee")
    grant_stores(db_session, user, stores_a[0], stores_a[2])
    return user


@pytest.fixture(scope='function')
def admin_b(db_session, merchant_b, store_b, setup_roles):
    return make_user(db_session, merchant_b, "user_admin_b", RoleName.ADMIN, full_name="Bob Admin")


def bearer_token(subject: str, email: str | None = None, full_name: str | None = None) -> str:
    """Signed identity token accepted by the built-in verifier."""
    return identity_service.issue_identity_token(subject, email=email, full_name=full_name)


def auth_headers(subject: str, **extra) -> dict:
    """Authorization header for subject plus any extra headers (e.g. X-Store-Id)."""
    headers = {'Authorization': f'Bearer {bearer_token(subject)}'}
    headers.update(extra)
    return headers


def device_headers(secret: str) -> dict:
    return {'X-Device-Secret': secret}


def make_product(store, name: str = "Chai", price: str = "150.00", stock: int = 10, sku: str | None = None):
    """Product with a default variant and stock in store. Returns the variant."""
    product = catalog_service.create_product(store, name=name, price=price, sku=sku, initial_stock=stock)
    return product.variants[0]


def make_order(store, user, variant, quantity: int = 1):
    return order_service.create_order(
        store,
        items=[{'productVariantId': variant.id, 'quantity': quantity}],
        placed_by_user_id=user.id,
    )
