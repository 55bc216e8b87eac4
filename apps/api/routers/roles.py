"""
Role administration router: CRUD, assignment and dashboard preview.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from routers.auth_scope import AuthContext, require_permission
from services.permissions import Permission
from services.roles import (
    RoleError,
    assign_role,
    create_role,
    delete_role,
    list_roles,
    preview_role_layout,
    serialize_role,
    update_role,
)

router = APIRouter()
logger = logging.getLogger(__name__)


class RoleRequest(BaseModel):
    role_name: str = Field(max_length=120)
    permissions: List[str] = []


class AssignRoleRequest(BaseModel):
    user_id: str


def _raise_http(exc: RoleError) -> None:
    raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc


@router.get("/permissions")
async def available_permissions(
    _auth: AuthContext = Depends(require_permission(Permission.VIEW_ROLES)),
):
    """Closed permission vocabulary, in editor order."""
    return {"permissions": [p.value for p in Permission]}


@router.get("")
async def get_roles(
    auth: AuthContext = Depends(require_permission(Permission.VIEW_ROLES)),
    db: AsyncSession = Depends(get_db),
):
    roles = await list_roles(operator_id=auth.user_id, db=db)
    return {"roles": [serialize_role(role) for role in roles]}


@router.post("")
async def post_role(
    request: RoleRequest,
    auth: AuthContext = Depends(require_permission(Permission.ADD_ROLE)),
    db: AsyncSession = Depends(get_db),
):
    try:
        role = await create_role(
            created_by=auth.user_id,
            role_name=request.role_name,
            permissions=request.permissions,
            db=db,
        )
    except RoleError as exc:
        _raise_http(exc)
    return serialize_role(role)


@router.put("/{role_id}")
async def put_role(
    role_id: str,
    request: RoleRequest,
    auth: AuthContext = Depends(require_permission(Permission.EDIT_ROLE)),
    db: AsyncSession = Depends(get_db),
):
    try:
        role = await update_role(
            role_id=role_id,
            operator_id=auth.user_id,
            role_name=request.role_name,
            permissions=request.permissions,
            db=db,
        )
    except RoleError as exc:
        _raise_http(exc)
    return serialize_role(role)


@router.delete("/{role_id}")
async def remove_role(
    role_id: str,
    auth: AuthContext = Depends(require_permission(Permission.DELETE_ROLE)),
    db: AsyncSession = Depends(get_db),
):
    try:
        await delete_role(role_id=role_id, operator_id=auth.user_id, db=db)
    except RoleError as exc:
        _raise_http(exc)
    return {"role_id": role_id, "deleted": True}


@router.post("/{role_id}/assign")
async def post_role_assignment(
    role_id: str,
    request: AssignRoleRequest,
    auth: AuthContext = Depends(require_permission(Permission.EDIT_USER)),
    db: AsyncSession = Depends(get_db),
):
    """Copy the role's name onto a user profile; effective from their next session."""
    try:
        user = await assign_role(
            role_id=role_id,
            user_id=request.user_id,
            operator_id=auth.user_id,
            db=db,
        )
    except RoleError as exc:
        _raise_http(exc)
    logger.info("Role %s assigned to user %s by %s", role_id, user.id, auth.user_id)
    return {"user_id": user.id, "role": user.role}


@router.get("/{role_id}/preview")
async def get_role_preview(
    role_id: str,
    auth: AuthContext = Depends(require_permission(Permission.VIEW_ROLES)),
    db: AsyncSession = Depends(get_db),
):
    """Dashboard widgets and sidebar a holder of this role would see."""
    try:
        return await preview_role_layout(role_id=role_id, operator_id=auth.user_id, db=db)
    except RoleError as exc:
        _raise_http(exc)
