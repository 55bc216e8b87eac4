"""
Authentication router for session refresh and current-user retrieval.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from database import get_db
from models.user import User
from routers.auth_scope import AuthContext, get_auth_context
from services.roles import load_session_permissions
from services.session_token import create_session_token

router = APIRouter()


class SessionResponse(BaseModel):
    user_id: str
    session_token: str
    session_expires_at: int
    role: Optional[str] = None
    permissions: List[str] = []


class CurrentUserResponse(BaseModel):
    user_id: str
    email: str
    full_name: Optional[str] = None
    role: Optional[str] = None
    permissions: List[str] = []


@router.get("/me", response_model=CurrentUserResponse)
async def get_current_user(
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    """Current profile plus the permission snapshot held by this session."""
    result = await db.execute(select(User).where(User.id == auth.user_id))
    user = result.scalar_one_or_none()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")

    return CurrentUserResponse(
        user_id=user.id,
        email=user.email,
        full_name=user.full_name,
        role=auth.role,
        permissions=sorted(p.value for p in auth.permissions),
    )


@router.post("/session/refresh", response_model=SessionResponse)
async def refresh_session(
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    """
    Start a new session with freshly loaded role permissions.

    Role edits made since the previous session start become visible here and
    nowhere else.
    """
    result = await db.execute(select(User).where(User.id == auth.user_id))
    user = result.scalar_one_or_none()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")

    role_name, permissions = await load_session_permissions(user.id, db)
    values = sorted(p.value for p in permissions)
    session = create_session_token(
        user.id,
        user.email,
        role=role_name,
        permissions=values,
    )
    return SessionResponse(
        user_id=user.id,
        session_token=session["token"],
        session_expires_at=session["expires_at"],
        role=role_name,
        permissions=values,
    )


@router.post("/logout")
async def logout(_auth: AuthContext = Depends(get_auth_context)):
    """Frontend-managed logout acknowledgment endpoint."""
    return {"message": "Logged out successfully"}
