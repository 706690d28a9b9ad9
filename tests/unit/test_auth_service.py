import re

import pytest

from granjapro.auth.password import verify_password
from granjapro.models.audit import AuditAction, EntityType
from granjapro.models.user import UserRole
from granjapro.utils.helpers.exceptions import (
    INVALID_CREDENTIALS_MESSAGE,
    AccountInactiveError,
    AuthenticationError,
    AuthorizationError,
    DuplicateNameError,
    NotFoundError,
    ValidationError,
)


class TestLogin:
    def test_login_starts_session(self, auth_service, admin):
        identity = auth_service.login("admin", "admin123")

        assert identity.user_id == admin.user_id
        assert auth_service.is_authenticated()
        assert auth_service.is_admin()
        assert not auth_service.is_operator()

    def test_unknown_name_and_wrong_password_share_message(self, auth_service, admin):
        with pytest.raises(AuthenticationError) as unknown:
            auth_service.login("nobody", "admin123")
        with pytest.raises(AuthenticationError) as wrong:
            auth_service.login("admin", "not-the-password")

        assert str(unknown.value) == INVALID_CREDENTIALS_MESSAGE
        assert str(wrong.value) == str(unknown.value)
        assert not auth_service.is_authenticated()

    @pytest.mark.parametrize("name,password", [("", "admin123"), ("   ", "admin123"),
                                               ("admin", ""), ("admin", "   ")])
    def test_blank_input_is_validation_error(self, auth_service, admin, name, password):
        with pytest.raises(ValidationError):
            auth_service.login(name, password)

    def test_inactive_identity_never_authenticates(self, auth_service, admin_session, operator):
        auth_service.deactivate(operator.user_id)
        auth_service.logout()

        with pytest.raises(AccountInactiveError):
            auth_service.login("carla", "operator1")
        assert not auth_service.is_authenticated()

    def test_logout_clears_session(self, auth_service, session, admin_session):
        auth_service.logout()

        assert not auth_service.is_authenticated()
        assert auth_service.current_identity() is None
        assert session.display_name() == "unauthenticated"

    def test_role_queries_without_session_do_not_raise(self, auth_service):
        assert auth_service.is_authenticated() is False
        assert auth_service.is_admin() is False
        assert auth_service.is_operator() is False

    def test_password_never_reaches_security_log(self, auth_service, admin, security_log):
        auth_service.login("admin", "admin123")
        auth_service.logout()
        with pytest.raises(AuthenticationError):
            auth_service.login("admin", "wrong-secret")

        text = security_log.read_text(encoding="utf-8")
        assert "login_succeeded" in text
        assert "login_failed" in text
        assert "admin123" not in text
        assert "wrong-secret" not in text


class TestIdentityManagement:
    def test_alice_scenario(self, auth_service, admin_session):
        auth_service.create_identity("alice", "secret1", UserRole.OPERATOR)
        auth_service.logout()

        alice = auth_service.login("alice", "secret1")
        assert alice.role is UserRole.OPERATOR
        assert auth_service.is_admin() is False

        auth_service.logout()
        with pytest.raises(AuthenticationError) as exc:
            auth_service.login("alice", "wrong")
        assert str(exc.value) == INVALID_CREDENTIALS_MESSAGE

    def test_stored_digest_is_hex_not_plaintext(self, auth_service, user_repository, admin_session):
        auth_service.create_identity("alice", "secret1", "operator")

        stored = user_repository.find_by_name("alice")
        assert re.fullmatch(r"[0-9a-f]{64}", stored.password_hash)
        assert "secret1" not in stored.password_hash
        assert verify_password("secret1", stored.password_hash)

    def test_operator_session_cannot_manage_identities(self, auth_service, admin, operator):
        auth_service.login("carla", "operator1")

        with pytest.raises(AuthorizationError):
            auth_service.create_identity("alice", "secret1", UserRole.OPERATOR)
        with pytest.raises(AuthorizationError):
            auth_service.deactivate(admin.user_id)
        with pytest.raises(AuthorizationError):
            auth_service.list_identities()

    def test_no_session_cannot_create(self, auth_service, admin):
        with pytest.raises(AuthorizationError):
            auth_service.create_identity("alice", "secret1", UserRole.OPERATOR)

    @pytest.mark.parametrize("name,password,role", [
        ("al", "secret1", "OPERATOR"),
        ("   ", "secret1", "OPERATOR"),
        ("alice", "12345", "OPERATOR"),
        ("alice", "      ", "OPERATOR"),
        ("alice", "secret1", "SUPERVISOR"),
    ])
    def test_create_rejects_invalid_input(self, auth_service, user_repository, admin_session,
                                          name, password, role):
        with pytest.raises(ValidationError):
            auth_service.create_identity(name, password, role)
        assert user_repository.count() == 1

    def test_duplicate_name_rejected(self, auth_service, admin_session):
        auth_service.create_identity("alice", "secret1", UserRole.OPERATOR)

        with pytest.raises(DuplicateNameError):
            auth_service.create_identity("alice", "another1", UserRole.ADMIN)

    def test_create_is_audited(self, auth_service, audit_repository, admin_session):
        alice = auth_service.create_identity("alice", "secret1", UserRole.OPERATOR)

        entries = audit_repository.find_by_entity(alice.user_id)
        assert len(entries) == 1
        assert entries[0].action is AuditAction.CREATE
        assert entries[0].entity_type is EntityType.USER
        assert entries[0].actor_id == admin_session.user_id

    def test_deactivate_is_soft_and_audited(self, auth_service, user_repository,
                                            audit_repository, admin_session, operator):
        auth_service.deactivate(operator.user_id)

        stored = user_repository.find_by_id(operator.user_id)
        assert stored is not None
        assert stored.is_active is False

        entries = audit_repository.find_by_entity(operator.user_id)
        assert [(e.field_name, e.old_value, e.new_value) for e in entries] == [
            ("is_active", "true", "false")
        ]

    def test_deactivate_twice_writes_one_entry(self, auth_service, audit_repository,
                                               admin_session, operator):
        auth_service.deactivate(operator.user_id)
        auth_service.deactivate(operator.user_id)

        assert audit_repository.count_for_entity(operator.user_id) == 1

    def test_deactivate_unknown_id(self, auth_service, admin_session):
        with pytest.raises(NotFoundError):
            auth_service.deactivate("missing")

    def test_admin_cannot_deactivate_self(self, auth_service, user_repository,
                                          audit_repository, admin_session):
        with pytest.raises(ValidationError):
            auth_service.deactivate(admin_session.user_id)

        assert user_repository.find_by_id(admin_session.user_id).is_active is True
        assert audit_repository.count_for_entity(admin_session.user_id) == 0
        assert auth_service.is_admin()

    def test_long_name_is_accepted(self, auth_service, user_repository, admin_session):
        identity = auth_service.create_identity("a" * 101, "secret1", UserRole.OPERATOR)

        assert user_repository.find_by_name("a" * 101).user_id == identity.user_id

    def test_list_identities_sorted_by_name(self, auth_service, admin_session, operator):
        auth_service.create_identity("bruno", "secret1", UserRole.OPERATOR)

        names = [identity.name for identity in auth_service.list_identities()]
        assert names == ["admin", "bruno", "carla"]


class TestBootstrap:
    def test_first_admin_on_empty_store(self, auth_service):
        identity = auth_service.bootstrap_admin("root", "rootpass")

        assert identity.role is UserRole.ADMIN
        assert auth_service.has_identities()
        auth_service.login("root", "rootpass")
        assert auth_service.is_admin()

    def test_refused_once_users_exist(self, auth_service, admin):
        with pytest.raises(AuthorizationError):
            auth_service.bootstrap_admin("root", "rootpass")

    def test_long_admin_name(self, auth_service):
        identity = auth_service.bootstrap_admin("farm-" * 30, "rootpass")

        assert identity.name == "farm-" * 30
