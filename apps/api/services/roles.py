"""Role administration and session permission loading."""

from __future__ import annotations

import logging
import uuid
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from models.role import Role
from models.user import User
from services.permissions import (
    InvalidPermission,
    Permission,
    dashboard_layout,
    normalize_permissions,
    parse_permissions,
)

logger = logging.getLogger(__name__)


class RoleError(Exception):
    status_code = 400
    default_detail = "Role request failed."

    def __init__(self, detail: Optional[str] = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class RoleNotFound(RoleError):
    status_code = 404
    default_detail = "Role not found."


class RoleForbidden(RoleError):
    status_code = 403
    default_detail = "Only the administrator who created this role can change it."


class DuplicateRole(RoleError):
    status_code = 409
    default_detail = "A role with this name already exists."


class InvalidRole(RoleError):
    status_code = 422
    default_detail = "Role name is required."


class UserNotFound(RoleError):
    status_code = 404
    default_detail = "User not found."


def serialize_role(role: Role) -> Dict[str, Any]:
    return {
        "id": role.id,
        "role_name": role.role_name,
        "permissions": list(role.permissions or []),
        "is_active": bool(role.is_active),
        "created_by": role.created_by,
        "created_at": role.created_at.isoformat() if role.created_at else None,
    }


def _validate(role_name: str, permissions: Iterable[str]) -> Tuple[str, List[str]]:
    name = str(role_name or "").strip()
    if not name:
        raise InvalidRole()
    try:
        parsed = parse_permissions(permissions)
    except InvalidPermission as exc:
        raise InvalidRole(str(exc)) from exc
    return name, [p.value for p in parsed]


async def _name_taken(
    created_by: str,
    role_name: str,
    db: AsyncSession,
    exclude_id: Optional[str] = None,
) -> bool:
    query = select(Role.id).where(Role.created_by == created_by, Role.role_name == role_name)
    if exclude_id:
        query = query.where(Role.id != exclude_id)
    result = await db.execute(query)
    return result.first() is not None


async def _get_owned_role(role_id: str, operator_id: str, db: AsyncSession) -> Role:
    result = await db.execute(select(Role).where(Role.id == role_id))
    role = result.scalar_one_or_none()
    if not role:
        raise RoleNotFound()
    if role.created_by != operator_id:
        raise RoleForbidden()
    return role


async def create_role(
    *,
    created_by: str,
    role_name: str,
    permissions: Iterable[str],
    db: AsyncSession,
) -> Role:
    name, values = _validate(role_name, permissions)
    if await _name_taken(created_by, name, db):
        raise DuplicateRole()

    role = Role(
        id=str(uuid.uuid4()),
        created_by=created_by,
        role_name=name,
        permissions=values,
        is_active=True,
    )
    db.add(role)
    await db.commit()
    await db.refresh(role)
    logger.info("Role %s (%s) created by %s with %d permissions", role.id, name, created_by, len(values))
    return role


async def update_role(
    *,
    role_id: str,
    operator_id: str,
    role_name: str,
    permissions: Iterable[str],
    db: AsyncSession,
) -> Role:
    """Rename and/or re-permission a role.

    Users already assigned keep their stored role label, and active sessions
    keep the permission list captured when they started.
    """
    role = await _get_owned_role(role_id, operator_id, db)
    name, values = _validate(role_name, permissions)
    if await _name_taken(operator_id, name, db, exclude_id=role.id):
        raise DuplicateRole()

    role.role_name = name
    role.permissions = values
    await db.commit()
    await db.refresh(role)
    return role


async def delete_role(*, role_id: str, operator_id: str, db: AsyncSession) -> None:
    role = await _get_owned_role(role_id, operator_id, db)
    await db.delete(role)
    await db.commit()
    logger.info("Role %s deleted by %s", role_id, operator_id)


async def list_roles(*, operator_id: str, db: AsyncSession) -> List[Role]:
    result = await db.execute(
        select(Role)
        .where(Role.created_by == operator_id, Role.is_active.is_(True))
        .order_by(Role.created_at.desc())
    )
    return list(result.scalars().all())


async def assign_role(*, role_id: str, user_id: str, operator_id: str, db: AsyncSession) -> User:
    """Copy the role's name onto the user's profile."""
    role = await _get_owned_role(role_id, operator_id, db)
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user:
        raise UserNotFound()

    user.role = role.role_name
    await db.commit()
    return user


async def load_session_permissions(
    user_id: str,
    db: AsyncSession,
) -> Tuple[Optional[str], FrozenSet[Permission]]:
    """Role label and permissions for a session that is starting now.

    Resolves the profile's role label to the most recently created active
    role carrying that name. Any gap (no profile, no label, no matching role)
    yields an empty permission set.
    """
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user:
        logger.warning("No profile found for user %s", user_id)
        return None, frozenset()
    if not user.role:
        return None, frozenset()

    role_result = await db.execute(
        select(Role)
        .where(Role.role_name == user.role, Role.is_active.is_(True))
        .order_by(Role.created_at.desc())
        .limit(1)
    )
    role = role_result.scalar_one_or_none()
    if not role:
        logger.warning("Role '%s' for user %s is missing or inactive", user.role, user_id)
        return user.role, frozenset()
    return user.role, normalize_permissions(role.permissions)


async def preview_role_layout(*, role_id: str, operator_id: str, db: AsyncSession) -> Dict[str, Any]:
    """How a user holding this role would see the dashboard."""
    role = await _get_owned_role(role_id, operator_id, db)
    layout = dashboard_layout(role.permissions)
    layout["role"] = serialize_role(role)
    return layout
