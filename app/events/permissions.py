"""Handlers des événements RBAC."""

from typing import Any

from app.core.cache import cache_delete, cache_key_user_permissions
from app.core.events import subscribe
from app.events.base import BaseEventHandler

ROLE_PERMISSIONS_UPDATED = "gestion.role.permissions_updated"


class RolePermissionsUpdatedHandler(BaseEventHandler):
    """Invalide le cache des permissions des utilisateurs d'un rôle modifié."""

    async def handle_event(self, payload: dict[str, Any]):
        profile_ids = payload.get("profile_ids") or []
        for profile_id in profile_ids:
            await cache_delete(cache_key_user_permissions(profile_id))
        self.logger.info(
            f"Cache permissions invalidé pour {len(profile_ids)} utilisateur(s) "
            f"du rôle {payload.get('role_id')}"
        )


role_permissions_updated_handler = RolePermissionsUpdatedHandler(ROLE_PERMISSIONS_UPDATED)


@subscribe(ROLE_PERMISSIONS_UPDATED)
async def on_role_permissions_updated(payload: dict[str, Any]):
    await role_permissions_updated_handler.on_event(payload)
