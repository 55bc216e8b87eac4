"""Share-link lifecycle for projects: create, resolve, revoke, comment."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict, List, Mapping, Optional

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from config import settings
from models.ledger_entry import LedgerEntry
from models.material import Material
from models.phase import Phase
from models.phase_photo import PhasePhoto
from models.project import Project
from models.project_member import ProjectMember
from models.project_share import ProjectShare
from services.crypto import decrypt_secret, encrypt_secret, secrets_match

logger = logging.getLogger(__name__)

SHARE_TYPES = ("public", "private")
EXPIRY_UNITS = ("minutes", "hours")

STATE_ACTIVE = "active"
STATE_EXPIRED = "expired"


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

class ShareLinkError(Exception):
    """Base for recoverable share-link failures; routers map ``status_code``."""

    status_code = 400
    default_detail = "Share link request failed."

    def __init__(self, detail: Optional[str] = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class ShareLinkNotFound(ShareLinkError):
    status_code = 404
    default_detail = "Share link not found."


class ShareLinkExpired(ShareLinkError):
    status_code = 410
    default_detail = "This share link has expired."


class ShareLinkUnauthorized(ShareLinkError):
    status_code = 401
    default_detail = "Incorrect password."


class ShareLinkForbidden(ShareLinkError):
    status_code = 403
    default_detail = "Only the creator of this link can do that."


class CommentsDisabled(ShareLinkError):
    status_code = 403
    default_detail = "Comments are disabled for this link."


class InvalidShareOptions(ShareLinkError):
    status_code = 422
    default_detail = "Select at least one detail to share."


class MissingSharePassword(ShareLinkError):
    status_code = 422
    default_detail = "Private links require a password."


class InvalidShareExpiry(ShareLinkError):
    status_code = 422
    default_detail = "Expiry must be a positive number of minutes or hours."


class InvalidComment(ShareLinkError):
    status_code = 422
    default_detail = "Name and comment are both required."


class ProjectNotFound(ShareLinkError):
    status_code = 404
    default_detail = "Project not found."


# ---------------------------------------------------------------------------
# Request objects
# ---------------------------------------------------------------------------

# (attribute, wire key, projection key)
_OPTION_FIELDS = (
    ("phase_details", "phaseDetails", "phases"),
    ("expense_details", "expenseDetails", "expenses"),
    ("income_details", "incomeDetails", "income"),
    ("materials_details", "materialsDetails", "materials"),
    ("phase_photos", "phasePhotos", "phase_photos"),
    ("team_members", "teamMembers", "team_members"),
)

SHARE_OPTION_KEYS = tuple(wire for _, wire, _ in _OPTION_FIELDS)


@dataclass(frozen=True)
class ShareOptions:
    """Which project data categories a link exposes."""

    phase_details: bool = False
    expense_details: bool = False
    income_details: bool = False
    materials_details: bool = False
    phase_photos: bool = False
    team_members: bool = False

    @classmethod
    def all_selected(cls) -> "ShareOptions":
        return cls(**{attr: True for attr, _, _ in _OPTION_FIELDS})

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]]) -> "ShareOptions":
        """Build from stored/wire JSON; accepts camelCase or snake_case keys."""
        data = data or {}
        values = {}
        for attr, wire, _ in _OPTION_FIELDS:
            values[attr] = bool(data.get(wire, data.get(attr, False)))
        return cls(**values)

    def as_mapping(self) -> Dict[str, bool]:
        return {wire: bool(getattr(self, attr)) for attr, wire, _ in _OPTION_FIELDS}

    def any_selected(self) -> bool:
        return any(self.as_mapping().values())


@dataclass(frozen=True)
class ShareExpiry:
    amount: int
    unit: str = "hours"

    def to_timedelta(self) -> timedelta:
        if isinstance(self.amount, bool) or not isinstance(self.amount, int) or self.amount <= 0:
            raise InvalidShareExpiry()
        if self.unit not in EXPIRY_UNITS:
            raise InvalidShareExpiry(f"Unknown expiry unit '{self.unit}'. Use minutes or hours.")

        # Bound the raw amount first; timedelta overflows on huge integers.
        max_hours = max(int(settings.SHARE_LINK_MAX_EXPIRY_HOURS), 1)
        limit = max_hours * 60 if self.unit == "minutes" else max_hours
        if self.amount > limit:
            raise InvalidShareExpiry(f"Expiry cannot exceed {max_hours} hours.")

        if self.unit == "minutes":
            return timedelta(minutes=self.amount)
        return timedelta(hours=self.amount)


@dataclass(frozen=True)
class ShareLinkRequest:
    """Everything the operator chose in the share dialog."""

    share_type: str
    options: ShareOptions
    expiry: ShareExpiry
    password: Optional[str] = None
    allow_comments: bool = True


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _aware(value: Optional[datetime]) -> Optional[datetime]:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _current_time(now: Optional[datetime]) -> datetime:
    """Injected clock (naive means UTC) or wall clock, always in UTC."""
    if now is None:
        return _utcnow()
    return _aware(now).astimezone(timezone.utc)


def _iso(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return _aware(value).isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


def _is_uuid(value: str) -> bool:
    try:
        uuid.UUID(value)
    except (ValueError, AttributeError, TypeError):
        return False
    return True


def build_share_url(origin: str, share_id: str) -> str:
    """Public viewer URL; the path segment is the raw share id."""
    return f"{origin.rstrip('/')}/shared/{share_id}"


def share_link_state(share: ProjectShare, now: Optional[datetime] = None) -> str:
    """``active`` while usable, ``expired`` once past ``expires_at`` or deactivated."""
    current = _current_time(now)
    expires_at = _aware(share.expires_at)
    if not share.is_active or expires_at is None or current > expires_at:
        return STATE_EXPIRED
    return STATE_ACTIVE


def _stored_password(share: ProjectShare) -> Optional[str]:
    if not share.password_encrypted:
        return None
    return decrypt_secret(share.password_encrypted)


def _check_password(share: ProjectShare, supplied: Optional[str]) -> None:
    if share.share_type != "private":
        return
    if not supplied:
        raise ShareLinkUnauthorized("This link is password protected.")
    try:
        expected = _stored_password(share)
    except ValueError:
        logger.error("Share %s has an undecryptable password; check ENCRYPTION_KEY", share.id)
        raise ShareLinkUnauthorized()
    if expected is None or not secrets_match(supplied, expected):
        raise ShareLinkUnauthorized()


async def _get_share(share_id: str, db: AsyncSession) -> ProjectShare:
    token = str(share_id or "").strip()
    if not token or not _is_uuid(token):
        raise ShareLinkNotFound()
    result = await db.execute(
        select(ProjectShare)
        .where(ProjectShare.id == token)
        .execution_options(populate_existing=True)
    )
    share = result.scalar_one_or_none()
    if not share:
        raise ShareLinkNotFound()
    return share


async def _get_usable_share(
    share_id: str,
    password: Optional[str],
    db: AsyncSession,
    now: Optional[datetime],
) -> ProjectShare:
    share = await _get_share(share_id, db)
    if share_link_state(share, now) != STATE_ACTIVE:
        raise ShareLinkExpired()
    _check_password(share, password)
    return share


def _sorted_comments(comments: Optional[List[Dict[str, Any]]]) -> List[Dict[str, Any]]:
    indexed = list(enumerate(comments or []))
    indexed.sort(key=lambda pair: (str(pair[1].get("created_at") or ""), pair[0]), reverse=True)
    return [dict(comment) for _, comment in indexed]


def serialize_share(
    share: ProjectShare,
    now: Optional[datetime] = None,
    include_password: bool = False,
) -> Dict[str, Any]:
    """Owner-facing view of a share record."""
    payload = {
        "share_id": share.id,
        "project_id": share.project_id,
        "created_by": share.created_by,
        "share_type": share.share_type,
        "share_options": ShareOptions.from_mapping(share.share_options).as_mapping(),
        "allow_comments": bool(share.allow_comments),
        "expires_at": _iso(share.expires_at),
        "created_at": _iso(share.created_at),
        "is_active": bool(share.is_active),
        "status": share_link_state(share, now),
        "view_count": int(share.view_count or 0),
        "comment_count": len(share.comments or []),
    }
    if include_password and share.share_type == "private":
        try:
            payload["password"] = _stored_password(share)
        except ValueError:
            logger.error("Share %s has an undecryptable password; check ENCRYPTION_KEY", share.id)
            payload["password"] = None
    return payload


# ---------------------------------------------------------------------------
# Projection loaders
# ---------------------------------------------------------------------------

def _project_summary(project: Project) -> Dict[str, Any]:
    return {
        "id": project.id,
        "name": project.name,
        "description": project.description,
        "status": project.status,
        "location": project.location,
        "start_date": _iso(project.start_date),
        "end_date": _iso(project.end_date),
        "created_at": _iso(project.created_at),
    }


async def _load_phases(project_id: str, db: AsyncSession) -> List[Dict[str, Any]]:
    result = await db.execute(
        select(Phase).where(Phase.project_id == project_id).order_by(Phase.start_date)
    )
    return [
        {
            "id": phase.id,
            "name": phase.name,
            "start_date": _iso(phase.start_date),
            "end_date": _iso(phase.end_date),
            "status": phase.status,
            "estimated_cost": phase.estimated_cost,
            "contractor_name": phase.contractor_name,
        }
        for phase in result.scalars().all()
    ]


async def _load_ledger(project_id: str, entry_type: str, db: AsyncSession) -> List[Dict[str, Any]]:
    result = await db.execute(
        select(LedgerEntry, Phase)
        .outerjoin(Phase, LedgerEntry.phase_id == Phase.id)
        .where(LedgerEntry.project_id == project_id, LedgerEntry.entry_type == entry_type)
        .order_by(LedgerEntry.date)
    )
    rows = []
    for entry, phase in result.all():
        rows.append(
            {
                "id": entry.id,
                "amount": entry.amount,
                "gst_amount": entry.gst_amount,
                "category": entry.category,
                "date": _iso(entry.date),
                "phase": {"id": phase.id, "name": phase.name} if phase else None,
            }
        )
    return rows


async def _load_expenses(project_id: str, db: AsyncSession) -> List[Dict[str, Any]]:
    return await _load_ledger(project_id, "expense", db)


async def _load_income(project_id: str, db: AsyncSession) -> List[Dict[str, Any]]:
    return await _load_ledger(project_id, "income", db)


async def _load_materials(project_id: str, db: AsyncSession) -> List[Dict[str, Any]]:
    result = await db.execute(
        select(Material).where(Material.project_id == project_id).order_by(Material.name)
    )
    return [
        {
            "id": material.id,
            "name": material.name,
            "unit_cost": material.unit_cost,
            "qty_required": material.qty_required,
            "status": material.status,
        }
        for material in result.scalars().all()
    ]


async def _load_phase_photos(project_id: str, db: AsyncSession) -> List[Dict[str, Any]]:
    result = await db.execute(
        select(PhasePhoto, Phase)
        .outerjoin(Phase, PhasePhoto.phase_id == Phase.id)
        .where(PhasePhoto.project_id == project_id)
        .order_by(PhasePhoto.created_at)
    )
    return [
        {
            "id": photo.id,
            "photo_url": photo.photo_url,
            "created_at": _iso(photo.created_at),
            "phase": {"id": phase.id, "name": phase.name} if phase else None,
        }
        for photo, phase in result.all()
    ]


async def _load_team_members(project_id: str, db: AsyncSession) -> List[Dict[str, Any]]:
    result = await db.execute(
        select(ProjectMember).where(ProjectMember.project_id == project_id).order_by(ProjectMember.name)
    )
    return [
        {
            "id": member.id,
            "name": member.name,
            "email": member.email,
            "role_name": member.role_name,
            "status": member.status,
            "active": bool(member.active),
        }
        for member in result.scalars().all()
    ]


_CATEGORY_LOADERS = {
    "phases": _load_phases,
    "expenses": _load_expenses,
    "income": _load_income,
    "materials": _load_materials,
    "phase_photos": _load_phase_photos,
    "team_members": _load_team_members,
}


async def build_project_projection(
    project_id: str,
    options: ShareOptions,
    db: AsyncSession,
) -> Dict[str, Any]:
    """Project summary plus only the categories flagged in ``options``.

    Unflagged categories are omitted entirely, not returned empty.
    """
    result = await db.execute(select(Project).where(Project.id == project_id))
    project = result.scalar_one_or_none()
    if not project:
        raise ProjectNotFound()

    payload: Dict[str, Any] = {"project": _project_summary(project)}
    flags = options.as_mapping()
    for _, wire, key in _OPTION_FIELDS:
        if flags[wire]:
            payload[key] = await _CATEGORY_LOADERS[key](project_id, db)
    return payload


# ---------------------------------------------------------------------------
# Lifecycle operations
# ---------------------------------------------------------------------------

async def create_share_link(
    *,
    operator_id: str,
    project_id: str,
    request: ShareLinkRequest,
    db: AsyncSession,
    now: Optional[datetime] = None,
) -> ProjectShare:
    if not request.options.any_selected():
        raise InvalidShareOptions()
    if request.share_type not in SHARE_TYPES:
        raise InvalidShareOptions(f"share_type must be one of: {', '.join(SHARE_TYPES)}")

    password = request.password or ""
    if request.share_type == "private" and not password.strip():
        raise MissingSharePassword()

    ttl = request.expiry.to_timedelta()

    project_result = await db.execute(
        select(Project).where(
            Project.id == project_id,
            Project.created_by == operator_id,
        )
    )
    if not project_result.scalar_one_or_none():
        raise ProjectNotFound()

    created_at = _current_time(now)
    share = ProjectShare(
        id=str(uuid.uuid4()),
        project_id=project_id,
        created_by=operator_id,
        share_type=request.share_type,
        password_encrypted=encrypt_secret(password) if request.share_type == "private" else None,
        share_options=request.options.as_mapping(),
        allow_comments=bool(request.allow_comments),
        expires_at=created_at + ttl,
        is_active=True,
        view_count=0,
        comments=[],
        created_at=created_at,
    )
    db.add(share)
    await db.commit()

    logger.info(
        "Created %s share %s for project %s (expires %s)",
        share.share_type,
        share.id,
        project_id,
        share.expires_at.isoformat(),
    )
    return share


async def resolve_share_link(
    *,
    share_id: str,
    db: AsyncSession,
    password: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Validate a link for an anonymous viewer and return its filtered projection."""
    share = await _get_usable_share(share_id, password, db, now)
    options = ShareOptions.from_mapping(share.share_options)
    project_id = share.project_id
    share_meta = {
        "share_id": share.id,
        "share_type": share.share_type,
        "share_options": options.as_mapping(),
        "allow_comments": bool(share.allow_comments),
        "expires_at": _iso(share.expires_at),
        "view_count": int(share.view_count or 0),
    }
    comments = _sorted_comments(share.comments)

    try:
        await db.execute(
            update(ProjectShare)
            .where(ProjectShare.id == share_meta["share_id"])
            .values(view_count=ProjectShare.view_count + 1)
            .execution_options(synchronize_session=False)
        )
        await db.commit()
        share_meta["view_count"] += 1
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.warning("Could not increment view count for share %s: %s", share_meta["share_id"], exc)

    payload = await build_project_projection(project_id, options, db)
    payload["share"] = share_meta
    payload["comments"] = comments
    return payload


async def revoke_share_link(*, share_id: str, operator_id: str, db: AsyncSession) -> None:
    """Hard-delete a link. A retry after success sees ``ShareLinkNotFound``."""
    share = await _get_share(share_id, db)
    if share.created_by != operator_id:
        raise ShareLinkForbidden()
    project_id = share.project_id
    await db.delete(share)
    await db.commit()
    logger.info("Revoked share %s for project %s", share_id, project_id)


async def add_share_comment(
    *,
    share_id: str,
    author_name: str,
    comment: str,
    db: AsyncSession,
    password: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    share = await _get_usable_share(share_id, password, db, now)
    if not share.allow_comments:
        raise CommentsDisabled()

    author = str(author_name or "").strip()
    text = str(comment or "").strip()
    if not author or not text:
        raise InvalidComment()

    entry = {
        "id": str(uuid.uuid4()),
        "author_name": author,
        "comment": text,
        "created_at": _current_time(now).isoformat(),
    }
    # Reassign so the JSON column is flagged dirty.
    share.comments = [*(share.comments or []), entry]
    await db.commit()
    return entry


async def list_share_comments(*, share_id: str, operator_id: str, db: AsyncSession) -> List[Dict[str, Any]]:
    """Owner-only comment list, most recent first."""
    share = await _get_share(share_id, db)
    if share.created_by != operator_id:
        raise ShareLinkForbidden()
    return _sorted_comments(share.comments)


async def list_project_share_links(
    *,
    project_id: str,
    operator_id: str,
    db: AsyncSession,
    now: Optional[datetime] = None,
) -> List[Dict[str, Any]]:
    """Operator's links for a project, newest first. Expired links stay listed."""
    result = await db.execute(
        select(ProjectShare)
        .where(
            ProjectShare.project_id == project_id,
            ProjectShare.created_by == operator_id,
        )
        .order_by(ProjectShare.created_at.desc())
    )
    return [
        serialize_share(share, now=now, include_password=True)
        for share in result.scalars().all()
    ]
