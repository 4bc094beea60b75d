# Overview: Pytest coverage for the Flask CLI command groups.

from datetime import timedelta

from slipsync.models import Merchant, Role, Store
from slipsync.services import identity_service, print_device_service, security_service
from slipsync.time_utils import utcnow


class TestSystemCommands:

    def test_init_roles(self, app, db_session):
        result = app.test_cli_runner().invoke(args=['system', 'init-roles'])
        assert result.exit_code == 0
        assert "PASS" in result.output
        assert {role.name for role in db_session.query(Role).all()} == {"ADMIN", "EMPLOYEE"}

    def test_init_roles_is_idempotent(self, app, db_session):
        runner = app.test_cli_runner()
        runner.invoke(args=['system', 'init-roles'])
        runner.invoke(args=['system', 'init-roles'])
        assert db_session.query(Role).count() == 2

    def test_permissions_for_one_role(self, app):
        result = app.test_cli_runner().invoke(args=['system', 'permissions', '--role', 'org:employee'])
        assert result.exit_code == 0
        assert "EMPLOYEE" in result.output
        assert "process_sales" in result.output
        assert "manage_stores" not in result.output

    def test_permissions_unknown_role(self, app):
        result = app.test_cli_runner().invoke(args=['system', 'permissions', '--role', 'cashier'])
        assert "FAIL Unknown role: cashier" in result.output


class TestMerchantCommands:

    def test_create_merchant_and_store(self, app, db_session):
        runner = app.test_cli_runner()
        result = runner.invoke(args=['merchants', 'create', '--name', 'Acme', '--id', 'org_cli', '--currency', 'usd'])
        assert result.exit_code == 0
        assert db_session.get(Merchant, 'org_cli').currency == "USD"

        result = runner.invoke(args=['merchants', 'add-store', '--merchant-id', 'org_cli', '--name', 'Main'])
        assert "PASS Created store: Main" in result.output
        assert db_session.query(Store).filter_by(merchant_id='org_cli').count() == 1

    def test_duplicate_merchant(self, app, db_session, merchant_a):
        result = app.test_cli_runner().invoke(args=['merchants', 'create', '--name', 'Again', '--id', merchant_a.id])
        assert "FAIL" in result.output

    def test_add_store_unknown_merchant(self, app, db_session):
        result = app.test_cli_runner().invoke(args=['merchants', 'add-store', '--merchant-id', 'org_none', '--name', 'X'])
        assert "FAIL" in result.output

    def test_list_merchants(self, app, db_session, merchant_a, stores_a):
        result = app.test_cli_runner().invoke(args=['merchants', 'list'])
        assert merchant_a.id in result.output


class TestIdentityCommands:

    def test_issue_token(self, app, db_session):
        result = app.test_cli_runner().invoke(args=['identity', 'issue-token', '--subject', 'user_cli', '--email', 'cli@example.com'])
        assert result.exit_code == 0
        identity = identity_service.verify_bearer_token(result.output.strip())
        assert identity.subject == "user_cli"
        assert identity.email == "cli@example.com"


class TestDeviceCommands:

    def test_list_and_online(self, app, db_session, admin_a):
        online = print_device_service.register_device(admin_a, "agent-online", "Online")
        stale = print_device_service.register_device(admin_a, "agent-stale", "Stale")
        stale.last_seen = utcnow() - timedelta(minutes=5)
        db_session.commit()
        runner = app.test_cli_runner()

        listed = runner.invoke(args=['devices', 'list', '--merchant-id', admin_a.merchant_id])
        assert "agent-online" in listed.output
        assert "agent-stale" in listed.output
        assert online.api_secret not in listed.output
        lines = {line.split()[0]: line for line in listed.output.splitlines() if line.strip()}
        assert " online " in lines["agent-online"]
        assert " offline " in lines["agent-stale"]

        result = runner.invoke(args=['devices', 'online', '--merchant-id', admin_a.merchant_id])
        assert "1 device(s) online" in result.output
        assert "agent-online" in result.output


class TestSecurityCommands:

    def test_no_events(self, app, db_session, merchant_a):
        result = app.test_cli_runner().invoke(args=['security', 'events', '--merchant-id', merchant_a.id])
        assert "No security events found." in result.output

    def test_events_filtered_by_type(self, app, db_session, merchant_a):
        security_service.log_security_event(
            security_service.DEVICE_AUTH_FAILED, False,
            merchant_id=merchant_a.id, device_identifier="agent-x", reason="Bad secret",
        )
        security_service.log_security_event(
            security_service.ROLE_CHANGED, True, merchant_id=merchant_a.id, reason="Promoted",
        )
        runner = app.test_cli_runner()

        result = runner.invoke(args=['security', 'events', '--merchant-id', merchant_a.id])
        assert "DEVICE_AUTH_FAILED" in result.output
        assert "ROLE_CHANGED" in result.output

        result = runner.invoke(args=[
            'security', 'events', '--merchant-id', merchant_a.id, '--type', 'DEVICE_AUTH_FAILED',
        ])
        assert "FAIL DEVICE_AUTH_FAILED" in result.output
        assert "agent-x" in result.output
        assert "Bad secret" in result.output
        assert "ROLE_CHANGED" not in result.output
