"""Tests du service RBAC (catalogue, résolution et assignation des permissions)."""

from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy import func, select

from app.core.exceptions import NotFoundError, ValidationError
from app.core.permissions_master import get_all_permissions_flat
from app.models.rbac import Permission, Profile, Role, RolePermission
from app.services import permission_service
from app.services.permission_service import (
    assign_role_permissions,
    get_user_permissions,
    has_permission,
    sync_permissions_catalog,
)


@pytest.fixture
def mock_publish():
    with patch("app.services.permission_service.publish", new_callable=AsyncMock) as mocked:
        yield mocked


@pytest.fixture
async def roles(db_session):
    await sync_permissions_catalog(db_session)
    db_session.add_all(
        [
            Role(id="role-commercial", name="commercial"),
            Role(id="role-rh", name="rh"),
            Profile(id="user-1", username="agent", role="commercial", role_id="role-commercial"),
            Profile(id="user-2", username="legacy", role="rh"),
            Profile(id="user-3", username="nobody"),
        ]
    )
    await db_session.commit()


class TestHasPermission:
    def test_admin_role_has_everything(self):
        assert has_permission("admin", ["commercialisation.prospects.creer"], []) is True

    def test_wildcard(self):
        assert has_permission("commercial", ["x.y.z"], ["*"]) is True

    def test_any_of_required(self):
        granted = ["commercialisation.prospects.voir"]

        assert has_permission(
            "commercial",
            ["commercialisation.prospects.voir_tous", "commercialisation.prospects.voir"],
            granted,
        )

    def test_missing_permission(self):
        assert has_permission("commercial", ["commercialisation.prospects.creer"], []) is False


class TestSyncPermissionsCatalog:
    async def test_first_sync_creates_everything(self, db_session):
        stats = await sync_permissions_catalog(db_session)

        assert stats == {"created": len(get_all_permissions_flat()), "updated": 0}

    async def test_second_sync_is_idempotent(self, db_session):
        await sync_permissions_catalog(db_session)

        stats = await sync_permissions_catalog(db_session)

        assert stats == {"created": 0, "updated": 0}

    async def test_changed_label_is_updated(self, db_session):
        await sync_permissions_catalog(db_session)
        permission = await db_session.scalar(
            select(Permission).where(Permission.code == "commercialisation.prospects.creer")
        )
        permission.label = "Ancien libellé"
        await db_session.commit()

        stats = await sync_permissions_catalog(db_session)

        assert stats == {"created": 0, "updated": 1}
        assert permission.label == "Creer un prospect"

    async def test_unknown_codes_are_kept(self, db_session):
        db_session.add(
            Permission(code="ancien.code.voir", label="Ancien", module="ancien", menu="code")
        )
        await db_session.commit()

        await sync_permissions_catalog(db_session)

        count = await db_session.scalar(
            select(func.count())
            .select_from(Permission)
            .where(Permission.code == "ancien.code.voir")
        )
        assert count == 1


class TestGetUserPermissions:
    async def test_permissions_via_role_id(self, db_session, roles, mock_publish):
        await assign_role_permissions(
            db_session,
            "role-commercial",
            ["commercialisation.prospects.voir", "commercialisation.prospects.creer"],
        )

        permissions = await get_user_permissions(db_session, "user-1")

        assert permissions == [
            "commercialisation.prospects.creer",
            "commercialisation.prospects.voir",
        ]

    async def test_fallback_on_role_name(self, db_session, roles, mock_publish):
        await assign_role_permissions(
            db_session, "role-rh", ["ressources_humaines.gestion_horaires.voir"]
        )

        permissions = await get_user_permissions(db_session, "user-2")

        assert permissions == ["ressources_humaines.gestion_horaires.voir"]

    async def test_legacy_codes_are_normalized(self, db_session, roles):
        legacy = Permission(
            code="accounting.segments.create", label="Legacy", module="accounting", menu="segments"
        )
        db_session.add(legacy)
        await db_session.flush()
        db_session.add(RolePermission(role_id="role-commercial", permission_id=legacy.id))
        await db_session.commit()

        permissions = await get_user_permissions(db_session, "user-1")

        assert permissions == ["gestion_comptable.segments.creer"]

    async def test_profile_without_role(self, db_session, roles):
        assert await get_user_permissions(db_session, "user-3") == []

    async def test_unknown_profile(self, db_session, roles):
        assert await get_user_permissions(db_session, "ghost") == []

    async def test_cached_value_is_returned(self, db_session):
        with patch.object(
            permission_service, "cache_get", AsyncMock(return_value='["formation.acces"]')
        ):
            permissions = await get_user_permissions(db_session, "user-1")

        assert permissions == ["formation.acces"]


class TestAssignRolePermissions:
    async def test_replaces_role_permissions(self, db_session, roles, mock_publish):
        await assign_role_permissions(
            db_session, "role-commercial", ["commercialisation.prospects.voir"]
        )

        result = await assign_role_permissions(
            db_session,
            "role-commercial",
            ["commercialisation.prospects.creer", "commercialisation.prospects.reinject"],
        )

        assert result == {
            "role_id": "role-commercial",
            "permissions": [
                "commercialisation.prospects.creer",
                "commercialisation.prospects.reinjecter",
            ],
        }
        count = await db_session.scalar(
            select(func.count())
            .select_from(RolePermission)
            .where(RolePermission.role_id == "role-commercial")
        )
        assert count == 2

    async def test_publishes_affected_profiles(self, db_session, roles, mock_publish):
        await assign_role_permissions(
            db_session, "role-commercial", ["commercialisation.prospects.voir"]
        )

        subject, payload = mock_publish.await_args.args
        assert subject == "gestion.role.permissions_updated"
        assert payload["role_id"] == "role-commercial"
        assert payload["profile_ids"] == ["user-1"]

    async def test_unknown_role(self, db_session, roles, mock_publish):
        with pytest.raises(NotFoundError):
            await assign_role_permissions(db_session, "role-404", [])

    async def test_unknown_code(self, db_session, roles, mock_publish):
        with pytest.raises(ValidationError) as exc_info:
            await assign_role_permissions(
                db_session, "role-commercial", ["commercialisation.prospects.voler"]
            )

        assert exc_info.value.code == "UNKNOWN_PERMISSION"
        assert exc_info.value.details == ["commercialisation.prospects.voler"]
        mock_publish.assert_not_awaited()

    async def test_publish_failure_does_not_undo_assignment(self, db_session, roles):
        with patch(
            "app.services.permission_service.publish",
            new=AsyncMock(side_effect=ConnectionError("Redis indisponible")),
        ):
            result = await assign_role_permissions(
                db_session, "role-commercial", ["commercialisation.prospects.voir"]
            )

        assert result["permissions"] == ["commercialisation.prospects.voir"]
        count = await db_session.scalar(
            select(func.count())
            .select_from(RolePermission)
            .where(RolePermission.role_id == "role-commercial")
        )
        assert count == 1
