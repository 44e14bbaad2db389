"""Tests unitaires pour le module de securite.

Ce module teste la vérification des JWT, la reconstruction de l'utilisateur
courant, le contrôle de périmètre segment/ville et les permissions RBAC.
"""

from datetime import timedelta
from unittest.mock import AsyncMock, patch

import pytest
from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient

from app.core.database import get_session
from app.core.exceptions import ForbiddenError, UnauthorizedError, setup_exception_handlers
from app.core.security import (
    CurrentUser,
    create_access_token,
    get_current_user,
    require_permission,
    verify_token,
)

# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def agent():
    return CurrentUser(
        id="user-1",
        username="agent",
        role="commercial",
        segment_ids=["seg-1"],
        city_ids=["city-1", "city-2"],
    )


@pytest.fixture
def protected_client():
    """Application minimale protégée par require_permission."""
    app = FastAPI()
    setup_exception_handlers(app)

    async def override_session():
        yield None

    app.dependency_overrides[get_session] = override_session

    @app.get("/holidays")
    async def create_holiday(
        user: CurrentUser = Depends(require_permission("hr.holidays.create")),
    ):
        return {"user": user.id}

    return TestClient(app)


# =============================================================================
# Périmètre segment / ville
# =============================================================================


class TestScope:
    def test_segment_and_city_in_scope(self, agent):
        assert agent.can_access_scope("seg-1", "city-2") is True

    def test_missing_city_does_not_restrict(self, agent):
        assert agent.can_access_scope("seg-1", None) is True

    def test_required_city_must_be_given(self, agent):
        assert agent.can_access_scope("seg-1", None, require_city=True) is False
        assert agent.can_access_scope("seg-1", "city-1", require_city=True) is True

    def test_admin_without_city_when_required(self):
        admin = CurrentUser(id="admin-1", username="admin", role="admin")

        assert admin.can_access_scope("seg-1", None, require_city=True) is True

    def test_segment_out_of_scope(self, agent):
        assert agent.can_access_scope("seg-2", "city-1") is False

    def test_city_out_of_scope(self, agent):
        assert agent.can_access_scope("seg-1", "city-9") is False

    def test_admin_has_full_scope(self):
        admin = CurrentUser(id="admin-1", username="admin", role="admin")

        assert admin.is_admin is True
        assert admin.can_access_scope("seg-9", "city-9") is True

    def test_ensure_scope_raises_out_of_scope(self, agent):
        with pytest.raises(ForbiddenError) as exc_info:
            agent.ensure_scope("seg-2", error="Prospect hors de votre scope")

        assert exc_info.value.code == "OUT_OF_SCOPE"
        assert exc_info.value.error == "Prospect hors de votre scope"


# =============================================================================
# Tokens
# =============================================================================


class TestVerifyToken:
    def test_valid_token(self, make_token):
        claims = verify_token(make_token())

        assert claims["id"] == "user-1"
        assert claims["segment_ids"] == ["seg-1"]

    def test_expired_token(self):
        token = create_access_token({"id": "user-1"}, expires_delta=timedelta(seconds=-10))

        with pytest.raises(UnauthorizedError) as exc_info:
            verify_token(token)

        assert exc_info.value.code == "TOKEN_EXPIRED"

    def test_bad_signature(self, make_token):
        header, payload, _ = make_token().split(".")

        with pytest.raises(ForbiddenError) as exc_info:
            verify_token(f"{header}.{payload}.invalidsignature")

        assert exc_info.value.code == "INVALID_TOKEN"

    def test_garbage_token(self):
        with pytest.raises(ForbiddenError):
            verify_token("not-a-jwt")


class TestGetCurrentUser:
    async def test_user_from_claims(self, make_token):
        user = await get_current_user(make_token(full_name="Sara Alami", city_ids=[7]))

        assert user.id == "user-1"
        assert user.username == "agent"
        assert user.role_id == "role-commercial"
        assert user.full_name == "Sara Alami"
        assert user.city_ids == ["7"]

    async def test_missing_username(self):
        token = create_access_token({"id": "user-1"})

        with pytest.raises(ForbiddenError) as exc_info:
            await get_current_user(token)

        assert exc_info.value.code == "INVALID_TOKEN"


# =============================================================================
# Permissions
# =============================================================================


class TestRequirePermission:
    def test_no_token(self, protected_client):
        response = protected_client.get("/holidays")

        assert response.status_code == 401
        assert response.json()["code"] == "NO_TOKEN"

    def test_permission_granted(self, protected_client, make_token):
        with patch(
            "app.core.security.permission_service.get_user_permissions",
            AsyncMock(return_value=["ressources_humaines.gestion_horaires.jours_feries.creer"]),
        ):
            response = protected_client.get(
                "/holidays", headers={"Authorization": f"Bearer {make_token()}"}
            )

        assert response.status_code == 200
        assert response.json() == {"user": "user-1"}

    def test_permission_denied(self, protected_client, make_token):
        with patch(
            "app.core.security.permission_service.get_user_permissions",
            AsyncMock(return_value=["ressources_humaines.gestion_horaires.voir"]),
        ):
            response = protected_client.get(
                "/holidays", headers={"Authorization": f"Bearer {make_token()}"}
            )

        assert response.status_code == 403
        body = response.json()
        assert body["code"] == "INSUFFICIENT_PERMISSION"
        assert "ressources_humaines.gestion_horaires.jours_feries.creer" in body["error"]

    def test_admin_bypass(self, protected_client, make_token):
        lookup = AsyncMock(return_value=[])
        with patch("app.core.security.permission_service.get_user_permissions", lookup):
            response = protected_client.get(
                "/holidays", headers={"Authorization": f"Bearer {make_token(role='admin')}"}
            )

        assert response.status_code == 200
        lookup.assert_not_awaited()

    def test_token_in_query_parameter(self, protected_client, make_token):
        with patch(
            "app.core.security.permission_service.get_user_permissions",
            AsyncMock(return_value=["*"]),
        ):
            response = protected_client.get(f"/holidays?token={make_token()}")

        assert response.status_code == 200
