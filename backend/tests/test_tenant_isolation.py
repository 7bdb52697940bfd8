# Overview: Pytest coverage for tenant isolation behavior.

"""
Multi-Tenant Isolation Tests

SECURITY TESTS: Prove that cross-tenant access is indistinguishable from a
missing record.

For every resource addressed by id, a valid id that belongs to another
business must produce the same 404 envelope as an id that does not exist,
so tenant boundaries cannot be probed.
"""

import pytest

from nutopiano.models import Appointment, Order
from nutopiano.services import access_policy
from nutopiano.services.token_service import Identity
from nutopiano.errors import NotFoundError
from nutopiano.time_utils import utcnow

from conftest import login_headers

MISSING_ID = 999999


@pytest.fixture
def order_b(db_session, business_b, admin_b, customer_b, statuses_b):
    order = Order(
        business_id=business_b.id,
        customer_id=customer_b.id,
        created_by_user_id=admin_b.id,
        status_id=statuses_b[0].id,
        total_amount_cents=0,
        source="POS",
    )
    db_session.add(order)
    db_session.commit()
    return order


@pytest.fixture
def appointment_b(db_session, business_b, admin_b, staff_b, customer_b):
    now = utcnow()
    appointment = Appointment(
        business_id=business_b.id,
        customer_id=customer_b.id,
        staff_user_id=staff_b.id,
        created_by_user_id=admin_b.id,
        start_at=now,
        end_at=now,
        status="SCHEDULED",
        service_name="Tasting",
    )
    db_session.add(appointment)
    db_session.commit()
    return appointment


def _assert_same_not_found(client, headers, method, foreign_path, missing_path, json=None):
    foreign = client.open(foreign_path, method=method, headers=headers, json=json)
    missing = client.open(missing_path, method=method, headers=headers, json=json)
    assert foreign.status_code == 404
    assert missing.status_code == 404
    assert foreign.json == missing.json
    assert foreign.json['success'] is False


class TestCrossTenantById:
    """Admin of business A addressing business B rows by id."""

    def test_customer(self, client, admin_a, customer_b):
        headers = login_headers(client, admin_a)
        _assert_same_not_found(
            client, headers, 'GET',
            f'/api/customers/{customer_b.id}', f'/api/customers/{MISSING_ID}',
        )
        _assert_same_not_found(
            client, headers, 'PATCH',
            f'/api/customers/{customer_b.id}', f'/api/customers/{MISSING_ID}',
            json={'name': 'Hijacked'},
        )
        _assert_same_not_found(
            client, headers, 'DELETE',
            f'/api/customers/{customer_b.id}', f'/api/customers/{MISSING_ID}',
        )

    def test_order(self, client, admin_a, order_b):
        headers = login_headers(client, admin_a)
        _assert_same_not_found(
            client, headers, 'GET',
            f'/api/orders/{order_b.id}', f'/api/orders/{MISSING_ID}',
        )
        _assert_same_not_found(
            client, headers, 'GET',
            f'/api/orders/{order_b.id}/payments', f'/api/orders/{MISSING_ID}/payments',
        )
        _assert_same_not_found(
            client, headers, 'POST',
            f'/api/orders/{order_b.id}/payments', f'/api/orders/{MISSING_ID}/payments',
            json={'amount': '100', 'method': 'CASH'},
        )

    def test_appointment(self, client, admin_a, appointment_b):
        headers = login_headers(client, admin_a)
        _assert_same_not_found(
            client, headers, 'GET',
            f'/api/appointments/{appointment_b.id}', f'/api/appointments/{MISSING_ID}',
        )
        _assert_same_not_found(
            client, headers, 'PATCH',
            f'/api/appointments/{appointment_b.id}', f'/api/appointments/{MISSING_ID}',
            json={'notes': 'peek'},
        )

    def test_product(self, client, admin_a, product_b):
        headers = login_headers(client, admin_a)
        _assert_same_not_found(
            client, headers, 'PATCH',
            f'/api/products/{product_b.id}', f'/api/products/{MISSING_ID}',
            json={'name': 'Hijacked'},
        )
        _assert_same_not_found(
            client, headers, 'DELETE',
            f'/api/products/{product_b.id}', f'/api/products/{MISSING_ID}',
        )

    def test_category(self, client, db_session, admin_a, admin_b):
        from nutopiano.models import Category
        category_b = Category(business_id=admin_b.business_id, created_by_user_id=admin_b.id, name="Bread", slug="bread")
        db_session.add(category_b)
        db_session.commit()

        headers = login_headers(client, admin_a)
        _assert_same_not_found(
            client, headers, 'PATCH',
            f'/api/categories/{category_b.id}', f'/api/categories/{MISSING_ID}',
            json={'name': 'Hijacked'},
        )
        _assert_same_not_found(
            client, headers, 'DELETE',
            f'/api/categories/{category_b.id}', f'/api/categories/{MISSING_ID}',
        )

    def test_order_status(self, client, admin_a, statuses_b):
        headers = login_headers(client, admin_a)
        _assert_same_not_found(
            client, headers, 'GET',
            f'/api/order-status/{statuses_b[0].id}', f'/api/order-status/{MISSING_ID}',
        )
        _assert_same_not_found(
            client, headers, 'PATCH',
            f'/api/order-status/{statuses_b[0].id}', f'/api/order-status/{MISSING_ID}',
            json={'label': 'Hijacked'},
        )

    def test_user(self, client, admin_a, admin_b):
        headers = login_headers(client, admin_a)
        _assert_same_not_found(
            client, headers, 'GET',
            f'/api/users/{admin_b.id}', f'/api/users/{MISSING_ID}',
        )
        _assert_same_not_found(
            client, headers, 'GET',
            f'/api/users/by-phone/{admin_b.phone}', '/api/users/by-phone/0000000000',
        )


class TestCrossTenantWrites:
    """Foreign ids inside request bodies are rejected as missing."""

    def test_order_for_foreign_customer(self, client, admin_a, statuses_a, product_a, customer_b):
        headers = login_headers(client, admin_a)
        response = client.post('/api/orders', headers=headers, json={
            'customer_id': customer_b.id,
            'items': [{'product_id': product_a.id, 'quantity': 1}],
        })
        assert response.status_code == 404
        assert response.json['message'] == 'Customer not found'

    def test_product_with_foreign_category(self, client, db_session, admin_a, admin_b):
        from nutopiano.models import Category
        category_b = Category(business_id=admin_b.business_id, created_by_user_id=admin_b.id, name="Bread", slug="bread")
        db_session.add(category_b)
        db_session.commit()

        headers = login_headers(client, admin_a)
        response = client.post('/api/products', headers=headers, json={
            'name': 'Smuggled',
            'price': '100',
            'category_id': category_b.id,
        })
        assert response.status_code == 404
        assert response.json['message'] == 'Category not found'

    def test_appointment_for_foreign_staff(self, client, admin_a, customer_a, staff_b):
        headers = login_headers(client, admin_a)
        response = client.post('/api/appointments', headers=headers, json={
            'customer_id': customer_a.id,
            'staff_user_id': staff_b.id,
            'service_name': 'Tasting',
            'start_at': '2026-03-01T10:00:00Z',
        })
        assert response.status_code == 404
        assert response.json['message'] == 'Staff user not found'


class TestListsAreTenantScoped:

    def test_customer_list(self, client, admin_a, customer_a, customer_b):
        headers = login_headers(client, admin_a)
        response = client.get('/api/customers', headers=headers)
        assert response.status_code == 200
        assert [c['id'] for c in response.json['data']] == [customer_a.id]

    def test_order_list(self, client, admin_a, order_b):
        headers = login_headers(client, admin_a)
        response = client.get('/api/orders', headers=headers)
        assert response.status_code == 200
        assert response.json['data'] == []

    def test_settings_are_per_business(self, client, admin_a, admin_b):
        client.post('/api/settings/order.defaultStatusKey', headers=login_headers(client, admin_b), json={'value': 'IN_PROGRESS'})
        response = client.get('/api/settings/order.defaultStatusKey', headers=login_headers(client, admin_a))
        assert response.status_code == 404


class TestFindAccessible:
    """Service-level tenant lookups."""

    def test_foreign_row_raises_not_found(self, db_session, admin_a, customer_b):
        identity = Identity(user_id=admin_a.id, role="ADMIN", business_id=admin_a.business_id)
        with pytest.raises(NotFoundError) as exc_info:
            access_policy.find_accessible("customer", identity, customer_b.id)
        assert exc_info.value.message == "Customer not found"

    def test_scoped_query_never_leaks(self, db_session, admin_a, customer_a, customer_b):
        identity = Identity(user_id=admin_a.id, role="ADMIN", business_id=admin_a.business_id)
        ids = [c.id for c in access_policy.scoped_query("customer", identity)]
        assert ids == [customer_a.id]
