"""
Permission gate for dashboard widgets, sidebar navigation and action buttons.

Pure functions over a permission set: no database access, no FastAPI imports.
Malformed input never raises; it degrades to "nothing visible" so every role
still gets an (empty) dashboard.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Dict, FrozenSet, Iterable, List, Optional


class Permission(str, Enum):
    """Closed vocabulary of assignable permissions."""

    # Dashboard
    VIEW_DASHBOARD = "view_dashboard"

    # Projects
    VIEW_PROJECTS = "view_projects"
    ADD_PROJECT = "add_project"
    EDIT_PROJECT = "edit_project"
    DELETE_PROJECT = "delete_project"

    # Phases
    VIEW_PHASES = "view_phases"
    ADD_PHASE = "add_phase"
    EDIT_PHASE = "edit_phase"
    DELETE_PHASE = "delete_phase"
    UPDATE_PROGRESS = "update_progress"
    UPLOAD_SITE_UPDATES = "upload_site_updates"

    # Expenses and income
    VIEW_EXPENSES = "view_expenses"
    ADD_INCOME = "add_income"
    ADD_EXPENSE = "add_expense"
    EDIT_EXPENSE = "edit_expense"
    DELETE_EXPENSE = "delete_expense"

    # Materials
    VIEW_MATERIALS = "view_materials"
    ADD_MATERIAL = "add_material"
    EDIT_MATERIAL = "edit_material"
    DELETE_MATERIAL = "delete_material"

    # Reports
    VIEW_REPORTS = "view_reports"
    GENERATE_REPORTS = "generate_reports"
    EXPORT_REPORTS = "export_reports"

    # Calendar
    VIEW_CALENDAR = "view_calendar"
    ADD_EVENT = "add_event"
    EDIT_EVENT = "edit_event"

    # Documents
    VIEW_DOCUMENTS = "view_documents"
    UPLOAD_DOCUMENTS = "upload_documents"
    DELETE_DOCUMENTS = "delete_documents"

    # Users
    VIEW_USERS = "view_users"
    ADD_USER = "add_user"
    EDIT_USER = "edit_user"
    DELETE_USER = "delete_user"

    # Roles
    VIEW_ROLES = "view_roles"
    ADD_ROLE = "add_role"
    EDIT_ROLE = "edit_role"
    DELETE_ROLE = "delete_role"

    # Settings
    VIEW_SETTINGS = "view_settings"
    EDIT_SETTINGS = "edit_settings"


_KNOWN_PERMISSIONS = {p.value: p for p in Permission}


class InvalidPermission(ValueError):
    """Raised by :func:`parse_permissions` when unknown strings are supplied."""

    def __init__(self, unknown: List[str]):
        self.unknown = unknown
        super().__init__(f"Unknown permissions: {', '.join(unknown)}")


@dataclass(frozen=True)
class WidgetDescriptor:
    name: str
    description: str
    color: str
    permission: Permission

    def as_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["permission"] = self.permission.value
        return data


@dataclass(frozen=True)
class NavigationItem:
    name: str
    href: str
    permission: Optional[Permission] = None
    always_visible: bool = False

    def as_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["permission"] = self.permission.value if self.permission else None
        return data


# Declared order is display order.
DASHBOARD_WIDGETS: tuple = (
    WidgetDescriptor("Projects Overview", "View total projects, status breakdown", "blue", Permission.VIEW_PROJECTS),
    WidgetDescriptor("Phases Progress", "Track active phases and completion", "purple", Permission.VIEW_PHASES),
    WidgetDescriptor("Expenses & Income", "Financial overview and trends", "green", Permission.VIEW_EXPENSES),
    WidgetDescriptor("Materials Inventory", "Stock levels and material tracking", "orange", Permission.VIEW_MATERIALS),
    WidgetDescriptor("Reports Dashboard", "Generate and view reports", "indigo", Permission.VIEW_REPORTS),
    WidgetDescriptor("Calendar Events", "Upcoming tasks and deadlines", "pink", Permission.VIEW_CALENDAR),
)

SIDEBAR_ITEMS: tuple = (
    NavigationItem("Dashboard", "/dashboard", Permission.VIEW_DASHBOARD),
    NavigationItem("Projects", "/projects", Permission.VIEW_PROJECTS),
    NavigationItem("Phases", "/phases", Permission.VIEW_PHASES),
    NavigationItem("Expenses", "/expenses", Permission.VIEW_EXPENSES),
    NavigationItem("Materials", "/materials", Permission.VIEW_MATERIALS),
    NavigationItem("Reports", "/reports", Permission.VIEW_REPORTS),
    NavigationItem("Calendar", "/calendar", Permission.VIEW_CALENDAR),
    NavigationItem("Document Archive", "/documents", Permission.VIEW_DOCUMENTS),
    NavigationItem("Profile", "/profile", None, always_visible=True),
    NavigationItem("Users", "/users", Permission.VIEW_USERS),
    NavigationItem("Role Management", "/roles", Permission.VIEW_ROLES),
    NavigationItem("Dashboard Builder", "/dashboard-builder", Permission.VIEW_ROLES),
    NavigationItem("Settings", "/settings", Permission.VIEW_SETTINGS),
)


def normalize_permissions(permissions: Any) -> FrozenSet[Permission]:
    """Coerce arbitrary input into the set of known permissions.

    ``None``, non-iterables, and unknown or non-string members are dropped.
    """
    if permissions is None or isinstance(permissions, (str, bytes)):
        return frozenset()
    try:
        items = list(permissions)
    except TypeError:
        return frozenset()

    known = set()
    for item in items:
        if isinstance(item, Permission):
            known.add(item)
        elif isinstance(item, str) and item.strip() in _KNOWN_PERMISSIONS:
            known.add(_KNOWN_PERMISSIONS[item.strip()])
    return frozenset(known)


def parse_permissions(values: Iterable[str]) -> List[Permission]:
    """Strictly validate a permission list for storage on a role.

    Returns the permissions de-duplicated in enum declaration order.
    """
    requested = set()
    unknown = []
    for value in values or []:
        key = value.value if isinstance(value, Permission) else str(value).strip()
        if key in _KNOWN_PERMISSIONS:
            requested.add(_KNOWN_PERMISSIONS[key])
        elif key not in unknown:
            unknown.append(key)
    if unknown:
        raise InvalidPermission(unknown)
    return [p for p in Permission if p in requested]


def widgets_for(permissions: Any) -> List[WidgetDescriptor]:
    """Dashboard widgets visible for ``permissions``, in table order."""
    granted = normalize_permissions(permissions)
    return [widget for widget in DASHBOARD_WIDGETS if widget.permission in granted]


def sidebar_for(permissions: Any) -> List[NavigationItem]:
    """Sidebar entries visible for ``permissions``; Profile is always present."""
    granted = normalize_permissions(permissions)
    return [
        item for item in SIDEBAR_ITEMS
        if item.always_visible or item.permission in granted
    ]


def has_capability(permissions: Any, action: Any) -> bool:
    """Gate a single action button (add/edit/delete)."""
    if isinstance(action, Permission):
        wanted = action
    elif isinstance(action, str) and action.strip() in _KNOWN_PERMISSIONS:
        wanted = _KNOWN_PERMISSIONS[action.strip()]
    else:
        return False
    return wanted in normalize_permissions(permissions)


def dashboard_layout(permissions: Any) -> Dict[str, Any]:
    """Serializable widgets + sidebar payload for a permission set."""
    widgets = widgets_for(permissions)
    return {
        "widgets": [w.as_dict() for w in widgets],
        "sidebar": [item.as_dict() for item in sidebar_for(permissions)],
        "has_dashboard_access": bool(widgets),
        "permissions": sorted(p.value for p in normalize_permissions(permissions)),
    }
