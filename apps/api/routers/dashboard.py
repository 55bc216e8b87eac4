"""
Dashboard composition for the signed-in user.
"""

from fastapi import APIRouter, Depends

from routers.auth_scope import AuthContext, get_auth_context
from services.permissions import dashboard_layout, has_capability

router = APIRouter()


@router.get("/layout")
async def get_dashboard_layout(auth: AuthContext = Depends(get_auth_context)):
    """Widgets and sidebar entries for the permissions captured at session start."""
    layout = dashboard_layout(auth.permissions)
    layout["role"] = auth.role
    return layout


@router.get("/capabilities/{action}")
async def check_capability(action: str, auth: AuthContext = Depends(get_auth_context)):
    """Whether the current session may perform ``action`` (e.g. ``add_expense``)."""
    return {"action": action, "allowed": has_capability(auth.permissions, action)}
