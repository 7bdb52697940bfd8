# Overview: Pytest coverage for login, registration, password reset and profile flows.

"""
Authentication Tests

SECURITY TESTS:
1. Login accepts phone or email and fails uniformly with "Invalid credentials"
2. Tokens carry the tenant and role; tampered or expired tokens are 401
3. Password reset tokens are single use, and expired tokens fail exactly
   like unknown ones
4. forgot-password never reveals whether an email is registered
"""

from datetime import datetime, timedelta, timezone
import os

import jwt
import pytest

from nutopiano.config import Config
from nutopiano.models import User, SecurityEvent
from nutopiano.services import auth_service, email_service, token_service
from nutopiano.time_utils import utcnow

from conftest import PASSWORD, auth_headers, get_auth_token, make_user


class TestLogin:
    """POST /api/auth/login"""

    def test_login_with_phone(self, client, admin_a):
        response = client.post('/api/auth/login', json={'phone': admin_a.phone, 'password': PASSWORD})
        assert response.status_code == 200
        assert response.json['success'] is True
        assert response.json['message'] is None
        assert response.json['data']['access_token']

    def test_login_with_email_is_case_insensitive(self, client, admin_a):
        response = client.post('/api/auth/login', json={'email': 'ADMIN_A@nut.test', 'password': PASSWORD})
        assert response.status_code == 200

    def test_token_carries_identity(self, app, client, staff_a, business_a):
        token = get_auth_token(client, staff_a.phone)
        identity = token_service.decode_access_token(token)
        assert identity.user_id == staff_a.id
        assert identity.business_id == business_a.id
        assert identity.role == "STAFF"
        assert identity.phone == staff_a.phone

    def test_wrong_password(self, client, admin_a):
        response = client.post('/api/auth/login', json={'phone': admin_a.phone, 'password': 'wrong-pass1'})
        assert response.status_code == 401
        assert response.json == {'success': False, 'message': 'Invalid credentials', 'errors': []}

    def test_unknown_user_fails_like_wrong_password(self, client, db_session, business_a):
        response = client.post('/api/auth/login', json={'phone': '0000000000', 'password': PASSWORD})
        assert response.status_code == 401
        assert response.json['message'] == 'Invalid credentials'

    def test_inactive_user_cannot_login(self, client, db_session, business_a):
        user = make_user(db_session, business_a, name="Gone", phone="5557770000", role="STAFF", is_active=False)
        response = client.post('/api/auth/login', json={'phone': user.phone, 'password': PASSWORD})
        assert response.status_code == 401

    def test_passwordless_user_cannot_login(self, client, db_session, business_a):
        user = make_user(db_session, business_a, name="Phone only", phone="5557770001", role="STAFF", password=None)
        response = client.post('/api/auth/login', json={'phone': user.phone, 'password': PASSWORD})
        assert response.status_code == 401

    def test_failed_login_is_logged(self, client, db_session, admin_a):
        client.post('/api/auth/login', json={'phone': admin_a.phone, 'password': 'wrong-pass1'})
        events = db_session.query(SecurityEvent).filter_by(event_type="LOGIN_FAILED", user_id=admin_a.id).all()
        assert len(events) == 1
        assert events[0].success is False


class TestTokens:
    """Bearer token validation on protected routes."""

    def test_missing_token(self, client, db_session):
        response = client.get('/api/auth/profile')
        assert response.status_code == 401
        assert response.json['success'] is False

    def test_garbage_token(self, client, db_session):
        response = client.get('/api/auth/profile', headers=auth_headers('not-a-jwt'))
        assert response.status_code == 401
        assert response.json['message'] == 'Invalid token'

    def test_expired_token(self, app, client, admin_a):
        past = datetime.now(timezone.utc) - timedelta(hours=2)
        token = jwt.encode({
            'sub': str(admin_a.id),
            'userId': str(admin_a.id),
            'role': 'ADMIN',
            'businessId': str(admin_a.business_id),
            'iat': past,
            'exp': past + timedelta(minutes=5),
        }, app.config['JWT_SECRET'], algorithm='HS256')
        response = client.get('/api/auth/profile', headers=auth_headers(token))
        assert response.status_code == 401
        assert response.json['message'] == 'Token expired'

    def test_wrong_secret(self, app, client, admin_a):
        token = jwt.encode({
            'userId': str(admin_a.id),
            'role': 'ADMIN',
            'businessId': str(admin_a.business_id),
        }, 'another-secret-that-is-32-bytes-long', algorithm='HS256')
        response = client.get('/api/auth/profile', headers=auth_headers(token))
        assert response.status_code == 401

    def test_unparseable_identity(self, app, client, admin_a):
        token = jwt.encode({
            'userId': 'abc',
            'role': 'ADMIN',
            'businessId': str(admin_a.business_id),
        }, app.config['JWT_SECRET'], algorithm='HS256')
        response = client.get('/api/auth/profile', headers=auth_headers(token))
        assert response.status_code == 401
        assert response.json['message'] == 'Invalid token'

    @pytest.mark.skipif('SECRET_KEY' in os.environ or 'JWT_SECRET' in os.environ, reason="secret set in environment")
    def test_default_secret_is_long_enough_for_hs256(self):
        assert len(Config.JWT_SECRET.encode()) >= 32


class TestRegister:
    """POST /api/auth/register"""

    def test_register_creates_customer_in_public_business(self, client, db_session, business_a, business_b):
        response = client.post('/api/auth/register', json={
            'name': '  Ayse  ',
            'phone': '5553334444',
            'email': 'Ayse@Example.com',
            'password': 'secret123',
        })
        assert response.status_code == 201
        token = response.json['data']['access_token']
        identity = token_service.decode_access_token(token)
        assert identity.role == 'CUSTOMER'
        assert identity.business_id == business_a.id

        user = db_session.query(User).filter_by(phone='5553334444').one()
        assert user.name == 'Ayse'
        assert user.email == 'ayse@example.com'
        assert user.is_active is True

    def test_register_explicit_business(self, client, db_session, business_a, business_b):
        response = client.post('/api/auth/register', json={
            'name': 'Baker fan',
            'phone': '5553334445',
            'email': 'fan@example.com',
            'password': 'secret123',
            'business_id': business_b.id,
        })
        assert response.status_code == 201
        identity = token_service.decode_access_token(response.json['data']['access_token'])
        assert identity.business_id == business_b.id

    def test_register_uses_configured_public_business(self, app, client, db_session, business_a, business_b):
        app.config['PUBLIC_BUSINESS_ID'] = business_b.id
        try:
            response = client.post('/api/auth/register', json={
                'name': 'Configured',
                'phone': '5553334446',
                'email': 'configured@example.com',
                'password': 'secret123',
            })
        finally:
            app.config['PUBLIC_BUSINESS_ID'] = None
        assert response.status_code == 201
        identity = token_service.decode_access_token(response.json['data']['access_token'])
        assert identity.business_id == business_b.id

    def test_register_without_any_business(self, client, db_session):
        response = client.post('/api/auth/register', json={
            'name': 'Nobody',
            'phone': '5553334447',
            'email': 'nobody@example.com',
            'password': 'secret123',
        })
        assert response.status_code == 404

    def test_register_missing_fields(self, client, db_session, business_a):
        response = client.post('/api/auth/register', json={'name': 'No phone', 'password': 'secret123'})
        assert response.status_code == 400

    def test_register_duplicate_email(self, client, admin_a):
        response = client.post('/api/auth/register', json={
            'name': 'Copy',
            'phone': '5553334448',
            'email': admin_a.email,
            'password': 'secret123',
        })
        assert response.status_code == 400
        assert response.json['message'] == 'Email already in use'

    def test_register_duplicate_phone(self, client, admin_a):
        response = client.post('/api/auth/register', json={
            'name': 'Copy',
            'phone': admin_a.phone,
            'email': 'fresh@example.com',
            'password': 'secret123',
        })
        assert response.status_code == 400
        assert response.json['message'] == 'Phone already in use'

    def test_register_weak_password(self, client, db_session, business_a):
        response = client.post('/api/auth/register', json={
            'name': 'Weak',
            'phone': '5553334449',
            'email': 'weak@example.com',
            'password': 'short',
        })
        assert response.status_code == 400


class TestPasswordReset:
    """forgot-password / reset-password token lifecycle."""

    @pytest.fixture
    def sent_urls(self, monkeypatch):
        urls = []

        def fake_send(to_email, reset_url):
            urls.append((to_email, reset_url))
            return True

        monkeypatch.setattr(email_service, 'send_password_reset_email', fake_send)
        return urls

    def _request_token(self, client, sent_urls, email):
        response = client.post('/api/auth/forgot-password', json={'email': email})
        assert response.status_code == 200
        assert response.json['data'] == {'ok': True}
        _, url = sent_urls[-1]
        return url.split('token=', 1)[1]

    def test_unknown_email_still_ok(self, client, db_session, sent_urls):
        response = client.post('/api/auth/forgot-password', json={'email': 'ghost@example.com'})
        assert response.status_code == 200
        assert response.json['data'] == {'ok': True}
        assert sent_urls == []

    def test_reset_url_and_stored_hash(self, client, db_session, admin_a, sent_urls):
        token = self._request_token(client, sent_urls, admin_a.email)
        to_email, url = sent_urls[-1]
        assert to_email == admin_a.email
        assert url == f'http://shop.test/reset-password?token={token}'
        assert len(token) == 64

        user = db_session.get(User, admin_a.id)
        assert user.reset_password_token_hash == auth_service.hash_token(token)
        assert user.reset_password_token_hash != token
        assert user.reset_password_expires_at > utcnow() + timedelta(minutes=29)

    def test_reset_is_single_use(self, client, db_session, admin_a, sent_urls):
        token = self._request_token(client, sent_urls, admin_a.email)

        response = client.post('/api/auth/reset-password', json={'token': token, 'new_password': 'NewPass456'})
        assert response.status_code == 200

        user = db_session.get(User, admin_a.id)
        assert user.reset_password_token_hash is None
        assert user.reset_password_expires_at is None
        assert get_auth_token(client, admin_a.phone, 'NewPass456')
        assert get_auth_token(client, admin_a.phone) is None

        replay = client.post('/api/auth/reset-password', json={'token': token, 'new_password': 'Other789x'})
        assert replay.status_code == 400
        assert replay.json['message'] == 'Invalid or expired token'

    def test_expired_token_fails_like_unknown(self, client, db_session, admin_a, sent_urls):
        token = self._request_token(client, sent_urls, admin_a.email)
        user = db_session.get(User, admin_a.id)
        user.reset_password_expires_at = utcnow() - timedelta(minutes=1)
        db_session.commit()

        expired = client.post('/api/auth/reset-password', json={'token': token, 'new_password': 'NewPass456'})
        unknown = client.post('/api/auth/reset-password', json={'token': 'f' * 64, 'new_password': 'NewPass456'})

        assert expired.status_code == unknown.status_code == 400
        assert expired.json == unknown.json
        assert get_auth_token(client, admin_a.phone) is not None


class TestProfile:
    """GET/PATCH /api/auth/profile and POST /api/auth/change-password"""

    def test_get_profile(self, client, staff_a, business_a):
        headers = auth_headers(get_auth_token(client, staff_a.phone))
        response = client.get('/api/auth/profile', headers=headers)
        assert response.status_code == 200
        assert response.json['data'] == {
            'user_id': staff_a.id,
            'name': 'Staff A',
            'phone': staff_a.phone,
            'email': staff_a.email,
            'role': 'STAFF',
            'business_id': business_a.id,
        }

    def test_update_profile(self, client, staff_a):
        headers = auth_headers(get_auth_token(client, staff_a.phone))
        response = client.patch('/api/auth/profile', headers=headers, json={'name': 'Renamed', 'email': 'NEW@nut.test'})
        assert response.status_code == 200
        assert response.json['data']['name'] == 'Renamed'
        assert response.json['data']['email'] == 'new@nut.test'

    def test_update_profile_conflict_is_generic(self, client, staff_a, admin_a):
        headers = auth_headers(get_auth_token(client, staff_a.phone))
        response = client.patch('/api/auth/profile', headers=headers, json={'phone': admin_a.phone})
        assert response.status_code == 400
        assert response.json['message'] == 'Profile could not be updated'

    def test_update_profile_rejects_role(self, client, staff_a):
        headers = auth_headers(get_auth_token(client, staff_a.phone))
        response = client.patch('/api/auth/profile', headers=headers, json={'role': 'ADMIN'})
        assert response.status_code == 400

    def test_deactivated_user_token_is_rejected(self, client, db_session, staff_a):
        headers = auth_headers(get_auth_token(client, staff_a.phone))
        staff_a.is_active = False
        db_session.commit()
        response = client.get('/api/auth/profile', headers=headers)
        assert response.status_code == 401

    def test_change_password(self, client, staff_a):
        headers = auth_headers(get_auth_token(client, staff_a.phone))
        response = client.post('/api/auth/change-password', headers=headers, json={
            'current_password': PASSWORD,
            'new_password': 'Changed999',
        })
        assert response.status_code == 200
        assert get_auth_token(client, staff_a.phone, 'Changed999')

    def test_change_password_wrong_current(self, client, staff_a):
        headers = auth_headers(get_auth_token(client, staff_a.phone))
        response = client.post('/api/auth/change-password', headers=headers, json={
            'current_password': 'not-it-123',
            'new_password': 'Changed999',
        })
        assert response.status_code == 400
        assert response.json['message'] == 'Current password is incorrect'
