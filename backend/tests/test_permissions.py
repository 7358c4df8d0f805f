"""
Permission resolver tests.

Verifies:
- Master role passes every check, including keys that were never stored
- Other roles get exactly the stored value, False when absent
- Role creation seeds the whole catalog as False
- Updates are partial upserts; the master role cannot be edited
"""

import pytest

from pdv.errors import Forbidden, NotFound, ValidationError
from pdv.extensions import db
from pdv.models import InternalPermission, InternalUser, SecurityEvent
from pdv.permissions import PERMISSION_DEFINITIONS, get_all_permission_keys
from pdv.services import permission_service, role_service


class TestCatalog:

    def test_catalog_keys_are_unique(self):
        keys = get_all_permission_keys()
        assert len(keys) == len(set(keys))

    def test_catalog_contains_manage_key(self):
        assert "permissions.manage" in get_all_permission_keys()
        assert all(len(definition) == 3 for definition in PERMISSION_DEFINITIONS)


class TestMasterBypass:

    @pytest.mark.parametrize("key", ["sales.cancel", "permissions.manage", "never.stored.anywhere"])
    def test_master_has_every_key(self, db_session, master_user, key):
        assert permission_service.has_permission(master_user, key) is True

    def test_master_role_has_no_stored_rows(self, db_session, master_role):
        assert db_session.query(InternalPermission).filter_by(role_id=master_role.id).count() == 0


class TestStandardRoles:

    def test_has_permission_matches_stored_value(self, db_session, cashier_user):
        stored = permission_service.resolve_permissions(cashier_user.role_id)

        for key in get_all_permission_keys():
            assert permission_service.has_permission(cashier_user, key) == stored[key]

    def test_unknown_key_is_false(self, db_session, cashier_user):
        assert permission_service.has_permission(cashier_user, "not.a.key") is False

    def test_user_without_role_has_nothing(self, db_session):
        user = InternalUser(username="semcargo", password_hash="x", full_name="Sem Cargo")
        db_session.add(user)
        db_session.commit()

        assert permission_service.has_permission(user, "sales.view") is False

    def test_missing_row_defaults_to_false(self, db_session, cashier_role, cashier_user):
        db_session.query(InternalPermission).filter_by(
            role_id=cashier_role.id, permission_key="sales.view"
        ).delete()
        db_session.commit()

        assert permission_service.has_permission(cashier_user, "sales.view") is False

    def test_denial_is_logged(self, db_session, cashier_user):
        with pytest.raises(Forbidden):
            permission_service.require_permission(cashier_user, "sales.cancel", resource="/api/sales/1/cancel")

        event = db_session.query(SecurityEvent).filter_by(event_type="PERMISSION_DENIED").one()
        assert event.user_id == cashier_user.id
        assert event.action == "sales.cancel"


class TestRoleSeeding:

    def test_new_role_seeds_all_keys_false(self, db_session):
        role = role_service.create_role("Estoquista")

        permissions = permission_service.resolve_permissions(role.id)

        assert set(permissions) == set(get_all_permission_keys())
        assert not any(permissions.values())

    def test_seeding_is_idempotent(self, db_session):
        role = role_service.create_role("Gerente")

        assert permission_service.seed_role_permissions(role.id) == 0


class TestSetPermissions:

    def test_partial_update_keeps_other_keys(self, db_session, cashier_role):
        before = permission_service.resolve_permissions(cashier_role.id)

        after = permission_service.set_permissions(cashier_role.id, {"sales.cancel": True})

        assert after["sales.cancel"] is True
        for key, value in before.items():
            if key != "sales.cancel":
                assert after[key] == value

    def test_inserts_missing_rows(self, db_session, cashier_role):
        db_session.query(InternalPermission).filter_by(role_id=cashier_role.id).delete()
        db_session.commit()

        after = permission_service.set_permissions(cashier_role.id, {"reports.view": True})

        assert after == {"reports.view": True}

    def test_master_role_is_immutable(self, db_session, master_role):
        with pytest.raises(Forbidden):
            permission_service.set_permissions(master_role.id, {"sales.view": False})

    def test_unknown_role(self, db_session):
        with pytest.raises(NotFound):
            permission_service.set_permissions(9999, {"sales.view": True})

    @pytest.mark.parametrize("updates", [
        {"not.a.key": True},
        {"sales.view": "yes"},
        ["sales.view"],
    ])
    def test_rejects_bad_updates(self, db_session, cashier_role, updates):
        with pytest.raises(ValidationError):
            permission_service.set_permissions(cashier_role.id, updates)

    def test_rejected_update_writes_nothing(self, db_session, cashier_role):
        before = permission_service.resolve_permissions(cashier_role.id)

        with pytest.raises(ValidationError):
            permission_service.set_permissions(cashier_role.id, {"sales.cancel": True, "bogus": True})

        db.session.expire_all()
        assert permission_service.resolve_permissions(cashier_role.id) == before
