"""Schémas RBAC."""

from typing import Any

from pydantic import BaseModel, Field


class PermissionItem(BaseModel):
    code: str = Field(..., examples=["commercialisation.prospects.creer"])
    label: str
    description: str | None = None
    module: str
    menu: str
    sort_order: int


class MyPermissions(BaseModel):
    user_id: str
    username: str
    role: str | None = None
    is_admin: bool
    permissions: list[str]


class RolePermissionsUpdate(BaseModel):
    permission_codes: list[str] = Field(
        ...,
        description="Nouvel ensemble complet de permissions du rôle",
        examples=[["commercialisation.prospects.voir", "commercialisation.prospects.creer"]],
    )


class RolePermissionsResult(BaseModel):
    role_id: str
    permissions: list[str]


PermissionsTree = dict[str, Any]
