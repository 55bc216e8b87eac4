"""Authentication dependencies for API user scoping."""

from dataclasses import dataclass, field
from typing import Callable, FrozenSet, Optional

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from services.permissions import Permission, has_capability, normalize_permissions
from services.session_token import decode_session_token


auth_scheme = HTTPBearer(auto_error=False)

# Role label that bypasses per-permission checks on administrative routes.
ADMIN_ROLE_NAME = "Admin"


@dataclass
class AuthContext:
    user_id: str
    email: Optional[str] = None
    role: Optional[str] = None
    permissions: FrozenSet[Permission] = field(default_factory=frozenset)

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN_ROLE_NAME


async def get_auth_context(
    credentials: HTTPAuthorizationCredentials = Depends(auth_scheme),
) -> AuthContext:
    """Resolve authenticated user from Bearer session token."""
    if not credentials or credentials.scheme.lower() != "bearer":
        raise HTTPException(status_code=401, detail="Missing Bearer session token.")

    try:
        payload = decode_session_token(credentials.credentials)
    except ValueError as exc:
        raise HTTPException(status_code=401, detail=str(exc)) from exc

    return AuthContext(
        user_id=str(payload.get("sub", "")),
        email=str(payload.get("email", "")) or None,
        role=str(payload.get("role", "")) or None,
        permissions=normalize_permissions(payload.get("permissions")),
    )


def require_permission(permission: Permission) -> Callable:
    """Return a dependency that rejects sessions lacking ``permission``."""

    async def _dependency(auth: AuthContext = Depends(get_auth_context)) -> AuthContext:
        if auth.is_admin or has_capability(auth.permissions, permission):
            return auth
        raise HTTPException(
            status_code=403,
            detail=f"Missing permission: {permission.value}",
        )

    return _dependency
