# Overview: Pytest coverage for onboarding sync, current-user lookup and identity verification.

import pytest

from slipsync.errors import UnauthenticatedError
from slipsync.models import Merchant, SecurityEvent, User
from slipsync.services import identity_service

from conftest import bearer_token


def sync(client, subject, *, email=None, full_name=None, org_id=None, org_role=None):
    headers = {'Authorization': f'Bearer {bearer_token(subject, email=email, full_name=full_name)}'}
    if org_id:
        headers['X-Clerk-Org-Id'] = org_id
    if org_role:
        headers['X-Clerk-Org-Role'] = org_role
    return client.post('/api/auth/sync', headers=headers)


class TestIdentityTokens:

    def test_round_trip(self, app):
        token = identity_service.issue_identity_token("user_1", email="a@b.c", full_name="Ada")
        identity = identity_service.verify_bearer_token(token)
        assert identity.subject == "user_1"
        assert identity.email == "a@b.c"
        assert identity.full_name == "Ada"

    def test_tampered_token_rejected(self, app):
        token = identity_service.issue_identity_token("user_1")
        with pytest.raises(UnauthenticatedError):
            identity_service.verify_bearer_token(token[:-2] + "xx")

    def test_missing_token_rejected(self, app):
        with pytest.raises(UnauthenticatedError):
            identity_service.verify_bearer_token(None)

    def test_expired_token_rejected(self, app):
        token = identity_service.issue_identity_token("user_1")
        app.config['IDENTITY_TOKEN_MAX_AGE_SECONDS'] = -1
        try:
            with pytest.raises(UnauthenticatedError, match="expired"):
                identity_service.verify_bearer_token(token)
        finally:
            app.config['IDENTITY_TOKEN_MAX_AGE_SECONDS'] = 3600

    def test_pluggable_verifier(self, app):
        def verifier(token):
            if token != "provider-token":
                raise UnauthenticatedError("Invalid token")
            return identity_service.VerifiedIdentity(subject="provider_user")

        app.config['IDENTITY_VERIFIER'] = verifier
        try:
            assert identity_service.verify_bearer_token("provider-token").subject == "provider_user"
            with pytest.raises(UnauthenticatedError):
                identity_service.verify_bearer_token("other")
        finally:
            app.config['IDENTITY_VERIFIER'] = None


class TestSync:

    def test_onboarding_with_org_admin_role(self, client, db_session):
        """New user with an org id and org:admin hint becomes ADMIN of a new merchant with that id."""
        response = sync(client, "user_new", email="new@example.com", full_name="Nadia",
                        org_id="org_new", org_role="org:admin")
        assert response.status_code == 200
        body = response.json
        assert body["roleName"] == "ADMIN"
        assert body["merchantId"] == "org_new"
        assert body["externalUserId"] == "user_new"
        assert body["email"] == "new@example.com"

        merchant = db_session.get(Merchant, "org_new")
        assert merchant.name == "Nadia's Business"

        me = client.get('/api/auth/me', headers={'Authorization': f'Bearer {bearer_token("user_new")}'})
        assert me.status_code == 200
        assert me.json["roleName"] == "ADMIN"
        assert me.json["id"] == body["id"]

    def test_existing_merchant_is_reused(self, client, db_session, merchant_a, admin_a):
        response = sync(client, "user_joiner", org_id=merchant_a.id)
        assert response.status_code == 200
        assert response.json["merchantId"] == merchant_a.id
        # Not the first user of the merchant: falls back to EMPLOYEE
        assert response.json["roleName"] == "EMPLOYEE"

    def test_first_user_without_org_becomes_admin(self, client, db_session):
        response = sync(client, "user_solo")
        assert response.status_code == 200
        assert response.json["roleName"] == "ADMIN"
        merchant = db_session.get(Merchant, response.json["merchantId"])
        assert merchant.name == "New Merchant's Business"
        assert merchant.currency == "PKR"
        assert response.json["email"] == "no-email"

    def test_employee_hint(self, client, db_session):
        response = sync(client, "user_staff", org_id="org_staff", org_role="staff")
        assert response.json["roleName"] == "EMPLOYEE"

    def test_resync_is_idempotent(self, client, db_session):
        first = sync(client, "user_twice", org_id="org_twice", org_role="org:admin")
        second = sync(client, "user_twice", org_id="org_twice")
        assert first.json["id"] == second.json["id"]
        assert second.json["roleName"] == "ADMIN"
        assert db_session.query(User).filter_by(external_user_id="user_twice").count() == 1

    def test_role_updated_from_header(self, client, db_session, admin_a):
        response = sync(client, admin_a.external_user_id, org_role="org:employee")
        assert response.status_code == 200
        assert response.json["roleName"] == "EMPLOYEE"

        event = db_session.query(SecurityEvent).filter_by(event_type="ROLE_CHANGED").one()
        assert event.user_id == admin_a.id
        assert "ADMIN" in event.reason and "EMPLOYEE" in event.reason

    def test_unknown_header_role_keeps_stored_role(self, client, db_session, admin_a):
        response = sync(client, admin_a.external_user_id, org_role="org:member")
        assert response.json["roleName"] == "ADMIN"
        assert db_session.query(SecurityEvent).filter_by(event_type="ROLE_CHANGED").count() == 0

    def test_existing_user_never_changes_merchant(self, client, db_session, admin_a, merchant_b):
        response = sync(client, admin_a.external_user_id, org_id=merchant_b.id)
        assert response.json["merchantId"] == admin_a.merchant_id

    def test_roles_provisioned_once(self, client, db_session):
        from slipsync.models import Role

        sync(client, "user_r1", org_id="org_r", org_role="admin")
        sync(client, "user_r2", org_id="org_r", org_role="ADMIN")
        assert db_session.query(Role).filter_by(name="ADMIN").count() == 1

    def test_sync_requires_token(self, client, db_session):
        assert client.post('/api/auth/sync').status_code == 401

    def test_sync_rejects_bad_token(self, client, db_session):
        response = client.post('/api/auth/sync', headers={'Authorization': 'Bearer nope'})
        assert response.status_code == 401
        assert response.json["error"] == "Invalid token"


class TestMe:

    def test_unsynced_user(self, client, db_session):
        response = client.get('/api/auth/me', headers={'Authorization': f'Bearer {bearer_token("ghost")}'})
        assert response.status_code == 404
        assert response.json["error"] == "User not found. Please sync your account first."

    def test_protected_route_requires_sync(self, client, db_session):
        response = client.get('/api/stores', headers={'Authorization': f'Bearer {bearer_token("ghost")}'})
        assert response.status_code == 401
