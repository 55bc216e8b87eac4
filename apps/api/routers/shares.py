"""
Router for project share links: owner management and public viewer access.
"""

import logging
from typing import Literal, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Header, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from config import public_app_origin, settings
from database import get_db
from models.project import Project
from routers.auth_scope import AuthContext, get_auth_context
from routers.rate_limit import rate_limit
from services.notifications import send_share_link_email
from services.share_links import (
    ShareExpiry,
    ShareLinkError,
    ShareLinkRequest,
    ShareOptions,
    add_share_comment,
    build_share_url,
    create_share_link,
    list_project_share_links,
    list_share_comments,
    resolve_share_link,
    revoke_share_link,
    serialize_share,
)

router = APIRouter()
logger = logging.getLogger(__name__)

_resolve_limit = rate_limit(
    "share_resolve",
    limit=settings.SHARE_RESOLVE_RATE_LIMIT,
    window_seconds=settings.SHARE_RATE_LIMIT_WINDOW_SECONDS,
)
_comment_limit = rate_limit(
    "share_comment",
    limit=settings.SHARE_COMMENT_RATE_LIMIT,
    window_seconds=settings.SHARE_RATE_LIMIT_WINDOW_SECONDS,
)


class ShareOptionsPayload(BaseModel):
    phaseDetails: bool = True
    expenseDetails: bool = True
    incomeDetails: bool = True
    materialsDetails: bool = True
    phasePhotos: bool = True
    teamMembers: bool = True


class CreateShareRequest(BaseModel):
    share_type: Literal["public", "private"] = "public"
    password: Optional[str] = None
    share_options: ShareOptionsPayload = Field(default_factory=ShareOptionsPayload)
    expiry_amount: int = 24
    expiry_unit: Literal["minutes", "hours"] = "hours"
    allow_comments: bool = True
    notify_email: Optional[str] = Field(default=None, max_length=320)


class AccessShareRequest(BaseModel):
    password: Optional[str] = None


class ShareCommentRequest(BaseModel):
    author_name: str = Field(max_length=120)
    comment: str = Field(max_length=4000)
    password: Optional[str] = None


def _raise_http(exc: ShareLinkError) -> None:
    raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc


@router.post("/projects/{project_id}/shares")
async def create_project_share(
    project_id: str,
    request: CreateShareRequest,
    background_tasks: BackgroundTasks,
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    """Create a share link for a project the caller owns."""
    share_request = ShareLinkRequest(
        share_type=request.share_type,
        options=ShareOptions.from_mapping(request.share_options.model_dump()),
        expiry=ShareExpiry(amount=request.expiry_amount, unit=request.expiry_unit),
        password=request.password,
        allow_comments=request.allow_comments,
    )
    try:
        share = await create_share_link(
            operator_id=auth.user_id,
            project_id=project_id,
            request=share_request,
            db=db,
        )
    except ShareLinkError as exc:
        _raise_http(exc)
    except Exception:
        logger.exception("Failed to create share link for project=%s", project_id)
        raise HTTPException(status_code=500, detail="Failed to create share link.")

    payload = serialize_share(share, include_password=True)
    payload["share_url"] = build_share_url(public_app_origin(), share.id)

    if request.notify_email:
        project_result = await db.execute(select(Project.name).where(Project.id == project_id))
        background_tasks.add_task(
            send_share_link_email,
            recipient=str(request.notify_email),
            project_name=project_result.scalar_one_or_none() or "Project",
            share_url=payload["share_url"],
            expires_at=share.expires_at,
            shared_by=auth.email,
            password_protected=share.share_type == "private",
        )
        payload["notification_scheduled"] = True
    return payload


@router.get("/projects/{project_id}/shares")
async def list_project_shares(
    project_id: str,
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    """Links the caller created for this project, including expired ones."""
    links = await list_project_share_links(project_id=project_id, operator_id=auth.user_id, db=db)
    origin = public_app_origin()
    for link in links:
        link["share_url"] = build_share_url(origin, link["share_id"])
    return {"project_id": project_id, "links": links}


@router.delete("/shares/{share_id}")
async def revoke_share(
    share_id: str,
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    """Permanently revoke a link."""
    try:
        await revoke_share_link(share_id=share_id, operator_id=auth.user_id, db=db)
    except ShareLinkError as exc:
        _raise_http(exc)
    except Exception:
        logger.exception("Failed to revoke share=%s", share_id)
        raise HTTPException(status_code=500, detail="Failed to revoke share link.")
    return {"share_id": share_id, "revoked": True}


@router.get("/shares/{share_id}/comments")
async def get_share_comments(
    share_id: str,
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    """Viewer comments on a link, newest first. Creator only."""
    try:
        comments = await list_share_comments(share_id=share_id, operator_id=auth.user_id, db=db)
    except ShareLinkError as exc:
        _raise_http(exc)
    except Exception:
        logger.exception("Failed to list comments for share=%s", share_id)
        raise HTTPException(status_code=500, detail="Failed to load comments.")
    return {"share_id": share_id, "comments": comments}


async def _resolve(share_id: str, password: Optional[str], db: AsyncSession):
    try:
        return await resolve_share_link(share_id=share_id, password=password, db=db)
    except ShareLinkError as exc:
        _raise_http(exc)
    except Exception:
        logger.exception("Failed to resolve shared project share=%s", share_id)
        raise HTTPException(status_code=500, detail="Failed to load shared project.")


@router.get("/shared/{share_id}")
async def get_shared_project(
    share_id: str,
    x_share_password: Optional[str] = Header(default=None),
    _rate_limit: None = Depends(_resolve_limit),
    db: AsyncSession = Depends(get_db),
):
    """Public project view via share link."""
    return await _resolve(share_id, x_share_password, db)


@router.post("/shared/{share_id}/access")
async def access_shared_project(
    share_id: str,
    request: AccessShareRequest,
    _rate_limit: None = Depends(_resolve_limit),
    db: AsyncSession = Depends(get_db),
):
    """Public project view for password-protected links."""
    return await _resolve(share_id, request.password, db)


@router.post("/shared/{share_id}/comments")
async def post_shared_comment(
    share_id: str,
    request: ShareCommentRequest,
    _rate_limit: None = Depends(_comment_limit),
    db: AsyncSession = Depends(get_db),
):
    """Append a viewer comment to a live link."""
    try:
        entry = await add_share_comment(
            share_id=share_id,
            author_name=request.author_name,
            comment=request.comment,
            password=request.password,
            db=db,
        )
    except ShareLinkError as exc:
        _raise_http(exc)
    except Exception:
        logger.exception("Failed to add comment to share=%s", share_id)
        raise HTTPException(status_code=500, detail="Failed to submit comment.")
    return entry
