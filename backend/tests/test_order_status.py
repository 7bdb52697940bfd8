# Overview: Pytest coverage for order status management and the single-default rule.

"""
Order Status Tests

Exactly one status per business may be the default. Setting is_default on
any status clears every other default of that business in the same
transaction, no matter how many were set before.
"""

import pytest

from nutopiano.models import OrderStatus, Order
from nutopiano.services import order_status_service
from nutopiano.errors import BadRequestError, NotFoundError

from conftest import login_headers


def _defaults(db_session, business_id):
    return db_session.query(OrderStatus).filter_by(business_id=business_id, is_default=True).all()


class TestSingleDefault:

    def test_second_default_replaces_first(self, client, db_session, admin_a, business_a):
        """Create A (default) then B (default): only B stays default."""
        headers = login_headers(client, admin_a)
        a = client.post('/api/order-status', headers=headers, json={'key': 'A', 'label': 'A', 'is_default': True})
        b = client.post('/api/order-status', headers=headers, json={'key': 'B', 'label': 'B', 'is_default': True})
        assert a.status_code == 201
        assert b.status_code == 201

        listing = client.get('/api/order-status', headers=headers).json['data']
        by_key = {s['key']: s for s in listing}
        assert by_key['A']['is_default'] is False
        assert by_key['B']['is_default'] is True
        assert [s['key'] for s in listing if s['is_default']] == ['B']

    def test_update_to_default(self, client, db_session, admin_a, statuses_a, business_a):
        headers = login_headers(client, admin_a)
        completed = next(s for s in statuses_a if s.key == 'COMPLETED')

        response = client.patch(f'/api/order-status/{completed.id}', headers=headers, json={'is_default': True})
        assert response.status_code == 200
        assert response.json['data']['is_default'] is True

        defaults = _defaults(db_session, business_a.id)
        assert [s.key for s in defaults] == ['COMPLETED']

    def test_repeated_default_is_idempotent(self, db_session, business_a, statuses_a):
        target = statuses_a[1]
        for _ in range(3):
            order_status_service.update_status(business_a.id, target.id, {'is_default': True})
        defaults = _defaults(db_session, business_a.id)
        assert [s.id for s in defaults] == [target.id]

    def test_default_is_per_business(self, db_session, business_a, business_b, statuses_a, statuses_b):
        order_status_service.create_status(business_a.id, {'key': 'NEW', 'label': 'New', 'is_default': True})
        assert [s.key for s in _defaults(db_session, business_a.id)] == ['NEW']
        assert [s.key for s in _defaults(db_session, business_b.id)] == ['CREATED']

    def test_non_default_create_keeps_existing(self, db_session, business_a, statuses_a):
        order_status_service.create_status(business_a.id, {'key': 'HOLD', 'label': 'On hold'})
        assert [s.key for s in _defaults(db_session, business_a.id)] == ['CREATED']


class TestOrderStatusCrud:

    def test_default_statuses_seeded_once(self, db_session, business_a):
        first = order_status_service.create_default_statuses(business_a.id)
        second = order_status_service.create_default_statuses(business_a.id)
        assert [s.key for s in first] == ['CREATED', 'IN_PROGRESS', 'COMPLETED']
        assert second == []
        completed = order_status_service.get_status_by_key(business_a.id, 'COMPLETED')
        assert completed.is_final is True

    def test_order_index_defaults_to_next(self, db_session, business_a, statuses_a):
        status = order_status_service.create_status(business_a.id, {'key': 'SHIPPED', 'label': 'Shipped'})
        assert status.order_index == 4

    def test_list_is_ordered(self, db_session, business_a, statuses_a):
        order_status_service.create_status(business_a.id, {'key': 'FIRST', 'label': 'First', 'order_index': 0})
        keys = [s.key for s in order_status_service.list_statuses(business_a.id)]
        assert keys == ['FIRST', 'CREATED', 'IN_PROGRESS', 'COMPLETED']

    def test_duplicate_key_rejected(self, client, admin_a, statuses_a):
        response = client.post('/api/order-status', headers=login_headers(client, admin_a), json={
            'key': 'CREATED', 'label': 'Again',
        })
        assert response.status_code == 400
        assert response.json['message'] == 'Order status key already exists'

    def test_same_key_allowed_in_other_business(self, db_session, business_b, statuses_a):
        status = order_status_service.create_status(business_b.id, {'key': 'CREATED', 'label': 'Created'})
        assert status.business_id == business_b.id

    def test_missing_label_rejected(self, db_session, business_a):
        with pytest.raises(BadRequestError):
            order_status_service.create_status(business_a.id, {'key': 'NOLABEL'})

    def test_delete_unused(self, client, db_session, admin_a, statuses_a):
        target = statuses_a[1]
        response = client.delete(f'/api/order-status/{target.id}', headers=login_headers(client, admin_a))
        assert response.status_code == 200
        assert response.json['data']['key'] == 'IN_PROGRESS'
        assert db_session.get(OrderStatus, target.id) is None

    def test_delete_in_use_rejected(self, client, db_session, admin_a, customer_a, statuses_a):
        db_session.add(Order(
            business_id=admin_a.business_id,
            customer_id=customer_a.id,
            created_by_user_id=admin_a.id,
            status_id=statuses_a[0].id,
            total_amount_cents=0,
            source="POS",
        ))
        db_session.commit()
        response = client.delete(f'/api/order-status/{statuses_a[0].id}', headers=login_headers(client, admin_a))
        assert response.status_code == 400

    def test_get_missing(self, db_session, business_a):
        with pytest.raises(NotFoundError):
            order_status_service.get_status(business_a.id, 424242)

    def test_staff_can_read(self, client, staff_a, statuses_a):
        response = client.get('/api/order-status', headers=login_headers(client, staff_a))
        assert response.status_code == 200
        assert len(response.json['data']) == 3
