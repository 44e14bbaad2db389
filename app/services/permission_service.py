"""Service RBAC: synchronisation du catalogue, résolution et vérification des permissions.

Les codes de permission d'un utilisateur sont résolus via son rôle:
1. profiles.role_id -> role_permissions
2. à défaut, correspondance sur le nom du rôle (profiles.role == roles.name)

Le résultat est mis en cache Redis (clé gestion:permissions:user:{id}).
"""

import json
import logging
from datetime import UTC, datetime

from opentelemetry import trace
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.cache import cache_get, cache_key_user_permissions, cache_set
from app.core.config import settings
from app.core.events import publish
from app.core.exceptions import NotFoundError, ValidationError
from app.core.permissions_master import get_all_permissions_flat, normalize_permission_code
from app.models.rbac import Permission, Profile, Role, RolePermission

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

WILDCARD_PERMISSION = "*"

__all__ = [
    "assign_role_permissions",
    "get_user_permissions",
    "has_permission",
    "normalize_permission_code",
    "sync_permissions_catalog",
]


def has_permission(role: str | None, required: list[str], granted: list[str]) -> bool:
    """
    Vérifie qu'un utilisateur possède au moins une des permissions requises.

    Args:
        role: Nom du rôle de l'utilisateur
        required: Codes requis (déjà normalisés)
        granted: Codes accordés à l'utilisateur

    Returns:
        True pour le rôle admin, la permission "*", ou si un code requis est accordé
    """
    if role == settings.ADMIN_ROLE_NAME:
        return True
    if WILDCARD_PERMISSION in granted:
        return True
    return any(code in granted for code in required)


async def sync_permissions_catalog(db: AsyncSession) -> dict[str, int]:
    """
    Synchronise le catalogue déclaratif dans la table permissions.

    Les codes absents sont créés, les libellés des codes existants mis à jour.
    Aucune permission n'est supprimée (les rôles peuvent encore y faire référence).

    Returns:
        {"created": n, "updated": n}
    """
    with tracer.start_as_current_span("sync_permissions_catalog") as span:
        result = await db.execute(select(Permission))
        existing = {permission.code: permission for permission in result.scalars().all()}

        created = 0
        updated = 0
        for entry in get_all_permissions_flat():
            permission = existing.get(entry["code"])
            if permission is None:
                db.add(Permission(**entry))
                created += 1
                continue

            changed = False
            for field in ("label", "description", "module", "menu", "sort_order"):
                if getattr(permission, field) != entry[field]:
                    setattr(permission, field, entry[field])
                    changed = True
            if changed:
                updated += 1

        await db.commit()

        span.set_attribute("permissions.created", created)
        span.set_attribute("permissions.updated", updated)
        logger.info(f"Catalogue des permissions synchronisé: {created} créées, {updated} mises à jour")
        return {"created": created, "updated": updated}


async def _codes_for_role_id(db: AsyncSession, role_id: str) -> list[str]:
    result = await db.execute(
        select(Permission.code)
        .join(RolePermission, RolePermission.permission_id == Permission.id)
        .where(RolePermission.role_id == role_id)
    )
    return list(result.scalars().all())


async def _codes_for_role_name(db: AsyncSession, role_name: str) -> list[str]:
    result = await db.execute(
        select(Permission.code)
        .join(RolePermission, RolePermission.permission_id == Permission.id)
        .join(Role, Role.id == RolePermission.role_id)
        .where(Role.name == role_name)
    )
    return list(result.scalars().all())


async def get_user_permissions(db: AsyncSession, profile_id: str) -> list[str]:
    """
    Retourne les codes de permission (français) d'un utilisateur.

    Args:
        db: Session de base de données
        profile_id: ID du profil

    Returns:
        Liste triée et dédoublonnée des codes; liste vide si le profil est inconnu
    """
    cache_key = cache_key_user_permissions(profile_id)
    cached = await cache_get(cache_key)
    if cached:
        return json.loads(cached)

    with tracer.start_as_current_span("get_user_permissions") as span:
        span.set_attribute("profile.id", profile_id)

        profile = await db.get(Profile, profile_id)
        if profile is None:
            logger.warning(f"Profil {profile_id} introuvable lors de la résolution des permissions")
            return []

        codes: list[str] = []
        if profile.role_id:
            codes = await _codes_for_role_id(db, profile.role_id)

        if not codes and profile.role:
            codes = await _codes_for_role_name(db, profile.role)
            if codes:
                logger.warning(
                    f"Permissions de {profile_id} chargées via le nom du rôle, role_id à synchroniser"
                )

        permissions = sorted({normalize_permission_code(code) for code in codes})
        span.set_attribute("permissions.count", len(permissions))

    await cache_set(cache_key, json.dumps(permissions), ttl=settings.CACHE_TTL_PERMISSIONS)
    return permissions


async def assign_role_permissions(db: AsyncSession, role_id: str, codes: list[str]) -> dict:
    """
    Remplace l'ensemble des permissions d'un rôle (transaction unique).

    Args:
        db: Session de base de données
        role_id: ID du rôle
        codes: Codes de permission (anglais hérités acceptés)

    Returns:
        {"role_id": ..., "permissions": [codes]}

    Raises:
        NotFoundError: Rôle introuvable
        ValidationError: Codes inconnus du catalogue (details = codes)
    """
    with tracer.start_as_current_span("assign_role_permissions") as span:
        span.set_attribute("role.id", role_id)

        role = await db.get(Role, role_id)
        if role is None:
            raise NotFoundError(error=f"Rôle {role_id} introuvable")

        normalized = sorted({normalize_permission_code(code) for code in codes})
        result = await db.execute(select(Permission).where(Permission.code.in_(normalized)))
        permissions = {permission.code: permission for permission in result.scalars().all()}

        unknown = [code for code in normalized if code not in permissions]
        if unknown:
            raise ValidationError(
                error="Codes de permission inconnus", code="UNKNOWN_PERMISSION", details=unknown
            )

        try:
            await db.execute(delete(RolePermission).where(RolePermission.role_id == role_id))
            db.add_all(
                RolePermission(role_id=role_id, permission_id=permission.id)
                for permission in permissions.values()
            )
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        profiles = await db.execute(select(Profile.id).where(Profile.role_id == role_id))
        profile_ids = list(profiles.scalars().all())

        span.set_attribute("permissions.count", len(normalized))
        logger.info(f"Rôle {role.name}: {len(normalized)} permission(s) assignée(s)")

        payload = {
            "role_id": role_id,
            "profile_ids": profile_ids,
            "permissions": normalized,
            "timestamp": datetime.now(UTC).isoformat(),
        }
        try:
            await publish("gestion.role.permissions_updated", payload)
        except Exception as e:
            # Permissions déjà commitées: le cache expirera par TTL
            logger.error(f"Événement de mise à jour du rôle {role_id} non publié: {e}")
            span.record_exception(e)

        return {"role_id": role_id, "permissions": normalized}
