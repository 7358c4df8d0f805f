"""
Admin tests for internal users and roles.

Verifies:
- master users and the master role are protected
- password changes and deactivation end open sessions
- deleting a role leaves its users without a role
"""

import pytest

from conftest import CASHIER_PASSWORD, MASTER_PASSWORD, get_auth_token, role_named
from pdv.errors import Forbidden, NotFound, ValidationError
from pdv.models import InternalPermission, InternalSession, InternalUser
from pdv.services import auth_service, role_service, session_service


class TestUsers:

    def test_create_user_normalizes_and_hashes(self, db_session, cashier_role):
        user = auth_service.create_user("  Joao ", "1234", "João Silva", role_id=cashier_role.id)

        assert user.username == "joao"
        assert user.password_hash != "1234"
        assert auth_service.verify_password("1234", user.password_hash)

    def test_duplicate_username(self, db_session, cashier_user):
        with pytest.raises(ValidationError):
            auth_service.create_user("CAIXA", "1234", "Outra Pessoa")

    def test_password_too_long(self, db_session):
        with pytest.raises(ValidationError):
            auth_service.create_user("novo", "123456789", "Novo")

    def test_unknown_role(self, db_session):
        with pytest.raises(NotFound):
            auth_service.create_user("novo", "1234", "Novo", role_id=9999)

    def test_password_change_revokes_sessions(self, db_session, cashier_user):
        _, token = session_service.create_session(cashier_user.id)

        auth_service.update_user(cashier_user.id, {"password": "nova12"})

        assert not session_service.validate_session(token).valid
        assert auth_service.authenticate("caixa", "nova12").id == cashier_user.id

    def test_deactivation_revokes_sessions(self, db_session, cashier_user):
        session_service.create_session(cashier_user.id)

        auth_service.update_user(cashier_user.id, {"is_active": False})

        assert db_session.query(InternalSession).filter_by(user_id=cashier_user.id).count() == 0

    def test_unknown_field(self, db_session, cashier_user):
        with pytest.raises(ValidationError):
            auth_service.update_user(cashier_user.id, {"is_master": True})

    def test_master_cannot_be_deactivated(self, db_session, master_user):
        with pytest.raises(Forbidden):
            auth_service.update_user(master_user.id, {"is_active": False})

    def test_master_cannot_leave_master_role(self, db_session, master_user, cashier_role):
        with pytest.raises(Forbidden):
            auth_service.update_user(master_user.id, {"role_id": cashier_role.id})

    def test_master_cannot_be_deleted(self, db_session, master_user):
        with pytest.raises(Forbidden):
            auth_service.delete_user(master_user.id)

    def test_delete_user_removes_sessions(self, db_session, cashier_user):
        session_service.create_session(cashier_user.id)
        user_id = cashier_user.id

        auth_service.delete_user(user_id)

        assert db_session.get(InternalUser, user_id) is None
        assert db_session.query(InternalSession).count() == 0


class TestRoles:

    def test_master_role_is_singleton(self, db_session, master_role):
        assert role_service.create_master_role().id == master_role.id

    def test_duplicate_role_name(self, db_session, cashier_role):
        with pytest.raises(ValidationError):
            role_service.create_role("caixa")

    def test_master_role_cannot_be_deleted(self, db_session, master_role):
        with pytest.raises(Forbidden):
            role_service.delete_role(master_role.id)

    def test_master_role_cannot_be_deactivated(self, db_session, master_role):
        with pytest.raises(Forbidden):
            role_service.update_role(master_role.id, {"is_active": False})

    def test_delete_role_detaches_users(self, db_session, cashier_role, cashier_user):
        role_id = cashier_role.id

        role_service.delete_role(role_id)

        db_session.expire_all()
        assert db_session.get(InternalUser, cashier_user.id).role_id is None
        assert db_session.query(InternalPermission).filter_by(role_id=role_id).count() == 0
        assert role_named("Caixa") is None


class TestAdminRoutes:

    def test_master_lists_users(self, client, master_headers, cashier_user):
        resp = client.get("/api/admin/users", headers=master_headers)

        assert resp.status_code == 200
        assert {u["username"] for u in resp.json["users"]} == {"admin", "caixa"}
        assert all("password_hash" not in u for u in resp.json["users"])

    def test_cashier_cannot_list_users(self, client, cashier_headers):
        assert client.get("/api/admin/users", headers=cashier_headers).status_code == 403

    def test_create_role_returns_seeded_permissions(self, client, master_headers):
        resp = client.post("/api/admin/roles", json={"name": "Estoquista"}, headers=master_headers)

        assert resp.status_code == 201
        assert resp.json["permissions"]
        assert not any(resp.json["permissions"].values())

    def test_delete_master_user_route(self, client, master_headers, master_user):
        resp = client.delete(f"/api/admin/users/{master_user.id}", headers=master_headers)

        assert resp.status_code == 403

    def test_permission_catalog(self, client, master_headers):
        resp = client.get("/api/admin/permissions", headers=master_headers)

        categories = [c["category"] for c in resp.json["categories"]]
        assert categories == [
            "Produtos", "Entradas", "Fornecedores", "Vendas", "Relatórios",
            "Clientes", "Usuários", "Cargos", "Sistema",
        ]

    def test_deactivated_user_loses_access(self, client, master_headers, cashier_user):
        token = get_auth_token(client, "caixa", CASHIER_PASSWORD)

        client.patch(f"/api/admin/users/{cashier_user.id}", json={"is_active": False}, headers=master_headers)

        resp = client.get("/api/sales", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 401
        assert get_auth_token(client, "admin", MASTER_PASSWORD)
