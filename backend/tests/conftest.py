"""
Pytest fixtures for Nutopiano backend tests.

Provides test database setup, two-tenant fixtures (business A and B),
users for every role, and a test client.
"""

import pytest
from nutopiano import create_app
from nutopiano.extensions import db
from nutopiano.models import Business, User, Customer, Category, Product, Setting
from nutopiano.services.auth_service import hash_password
from nutopiano.services import order_status_service, tenant_service

PASSWORD = "Password123!"


@pytest.fixture(scope='session')
def app(tmp_path_factory):
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'JWT_SECRET': 'test-jwt-secret-at-least-32-bytes-long',
        'JWT_EXPIRES_IN_SECONDS': 3600,
        'BCRYPT_ROUNDS': 4,
        'PUBLIC_BUSINESS_ID': None,
        'SITE_URL': 'http://shop.test',
        'API_BASE_URL': '',
        'SMTP_HOST': None,
        'UPLOADS_DIR': str(tmp_path_factory.mktemp('uploads')),
    })

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
        tenant_service.reset_public_business_cache()

        yield db.session

        # Cleanup after test
        db.session.rollback()
        tenant_service.reset_public_business_cache()


@pytest.fixture(scope='function')
def business_a(db_session):
    """Business A (first tenant, lowest id, so also the public storefront)."""
    business = Business(name="Business A - Nut Shop")
    db_session.add(business)
    db_session.commit()
    return business


@pytest.fixture(scope='function')
def business_b(db_session, business_a):
    """Business B (second tenant)."""
    business = Business(name="Business B - Bakery")
    db_session.add(business)
    db_session.commit()
    return business


@pytest.fixture(scope='function')
def statuses_a(db_session, business_a):
    return order_status_service.create_default_statuses(business_a.id)


@pytest.fixture(scope='function')
def statuses_b(db_session, business_b):
    return order_status_service.create_default_statuses(business_b.id)


def make_user(db_session, business, *, name, phone, role, email=None, password=PASSWORD, is_active=True):
    user = User(
        business_id=business.id,
        name=name,
        phone=phone,
        email=email,
        password_hash=hash_password(password) if password else None,
        role=role,
        is_active=is_active,
    )
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture(scope='function')
def admin_a(db_session, business_a):
    return make_user(db_session, business_a, name="Admin A", phone="5550000001", role="ADMIN", email="admin_a@nut.test")


@pytest.fixture(scope='function')
def staff_a(db_session, business_a):
    return make_user(db_session, business_a, name="Staff A", phone="5550000002", role="STAFF", email="staff_a@nut.test")


@pytest.fixture(scope='function')
def staff_a2(db_session, business_a):
    return make_user(db_session, business_a, name="Staff A2", phone="5550000003", role="STAFF", email="staff_a2@nut.test")


@pytest.fixture(scope='function')
def customer_user_a(db_session, business_a):
    return make_user(db_session, business_a, name="Customer A", phone="5550000004", role="CUSTOMER", email="cust_a@nut.test")


@pytest.fixture(scope='function')
def admin_b(db_session, business_b):
    return make_user(db_session, business_b, name="Admin B", phone="5559999001", role="ADMIN", email="admin_b@bakery.test")


@pytest.fixture(scope='function')
def staff_b(db_session, business_b):
    return make_user(db_session, business_b, name="Staff B", phone="5559999002", role="STAFF", email="staff_b@bakery.test")


@pytest.fixture(scope='function')
def product_a(db_session, business_a, admin_a):
    product = Product(
        business_id=business_a.id,
        created_by_user_id=admin_a.id,
        name="Hazelnut Paste",
        price_cents=1000,
    )
    db_session.add(product)
    db_session.commit()
    return product


@pytest.fixture(scope='function')
def product_b(db_session, business_b, admin_b):
    product = Product(
        business_id=business_b.id,
        created_by_user_id=admin_b.id,
        name="Sourdough",
        price_cents=2000,
    )
    db_session.add(product)
    db_session.commit()
    return product


@pytest.fixture(scope='function')
def category_a(db_session, business_a, admin_a):
    category = Category(
        business_id=business_a.id,
        created_by_user_id=admin_a.id,
        name="Spreads",
        slug="spreads",
    )
    db_session.add(category)
    db_session.commit()
    return category


@pytest.fixture(scope='function')
def customer_a(db_session, business_a, admin_a):
    """Customer created by the business A admin."""
    customer = Customer(business_id=business_a.id, created_by_user_id=admin_a.id, name="Walk-in", phone="5551000001")
    db_session.add(customer)
    db_session.commit()
    return customer


@pytest.fixture(scope='function')
def customer_b(db_session, business_b, admin_b):
    customer = Customer(business_id=business_b.id, created_by_user_id=admin_b.id, name="Regular", phone="5552000001")
    db_session.add(customer)
    db_session.commit()
    return customer


def set_setting(db_session, business, key, value):
    setting = Setting(business_id=business.id, key=key, value=value)
    db_session.add(setting)
    db_session.commit()
    return setting


def get_auth_token(client, identifier: str, password: str = PASSWORD) -> str:
    """Helper to get auth token for a user (phone or email)."""
    response = client.post('/api/auth/login', json={
        'identifier': identifier,
        'password': password
    })
    if response.status_code == 200:
        return response.json['data'].get('access_token')
    return None


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


def login_headers(client, user) -> dict:
    return auth_headers(get_auth_token(client, user.phone))
