"""Endpoints RBAC: catalogue des permissions et affectation aux rôles."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_session
from app.core.permissions_master import get_all_permissions_flat, get_permissions_tree
from app.core.security import CurrentUser, get_current_user, require_permission
from app.schemas.permission import (
    MyPermissions,
    PermissionItem,
    PermissionsTree,
    RolePermissionsResult,
    RolePermissionsUpdate,
)
from app.schemas.responses import SuccessResponse, build_responses
from app.services import permission_service

router = APIRouter()

_view_roles = require_permission("gestion_comptable.roles_permissions.voir")


@router.get(
    "/",
    response_model=SuccessResponse[list[PermissionItem]],
    summary="Catalogue des permissions (liste à plat)",
    dependencies=[Depends(_view_roles)],
)
async def list_permissions():
    return SuccessResponse(data=get_all_permissions_flat())


@router.get(
    "/tree",
    response_model=SuccessResponse[PermissionsTree],
    summary="Catalogue des permissions par section et menu",
    dependencies=[Depends(_view_roles)],
)
async def permissions_tree():
    return SuccessResponse(data=get_permissions_tree())


@router.get(
    "/me",
    response_model=SuccessResponse[MyPermissions],
    summary="Permissions de l'utilisateur connecté",
)
async def my_permissions(
    db: AsyncSession = Depends(get_session),
    current_user: CurrentUser = Depends(get_current_user),
):
    permissions = await permission_service.get_user_permissions(db, current_user.id)
    return SuccessResponse(
        data=MyPermissions(
            user_id=current_user.id,
            username=current_user.username,
            role=current_user.role,
            is_admin=current_user.is_admin,
            permissions=permissions,
        )
    )


@router.put(
    "/roles/{role_id}",
    response_model=SuccessResponse[RolePermissionsResult],
    summary="Remplacer les permissions d'un rôle",
    dependencies=[Depends(require_permission("gestion_comptable.roles_permissions.modifier"))],
    responses=build_responses(404),
)
async def update_role_permissions(
    role_id: str,
    payload: RolePermissionsUpdate,
    db: AsyncSession = Depends(get_session),
):
    """
    Remplace l'ensemble des permissions d'un rôle en une transaction.

    Les codes anglais hérités sont convertis; un code inconnu renvoie 400.
    """
    result = await permission_service.assign_role_permissions(
        db, role_id, payload.permission_codes
    )
    return SuccessResponse(
        data=RolePermissionsResult(**result), message="Permissions du rôle mises à jour"
    )
