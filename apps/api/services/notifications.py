"""Outbound email notifications, delivered through a webhook.

Fire-and-forget: callers schedule these as background tasks and never branch
on the result beyond logging.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, Optional

import httpx

from config import settings

logger = logging.getLogger(__name__)


async def _post_notification(payload: Dict[str, Any]) -> bool:
    url = (settings.NOTIFICATION_WEBHOOK_URL or "").strip()
    if not url:
        logger.debug("Notification webhook not configured; skipping %s", payload.get("template"))
        return False

    headers = {"Content-Type": "application/json"}
    if settings.NOTIFICATION_API_KEY:
        headers["Authorization"] = f"Bearer {settings.NOTIFICATION_API_KEY}"

    try:
        async with httpx.AsyncClient(timeout=settings.NOTIFICATION_TIMEOUT_SECONDS) as client:
            response = await client.post(url, json=payload, headers=headers)
            response.raise_for_status()
    except httpx.HTTPError as exc:
        logger.warning("Notification %s to %s failed: %s", payload.get("template"), payload.get("to"), exc)
        return False
    return True


async def send_share_link_email(
    *,
    recipient: str,
    project_name: str,
    share_url: str,
    expires_at: Optional[datetime] = None,
    shared_by: Optional[str] = None,
    password_protected: bool = False,
) -> bool:
    """Tell ``recipient`` a project was shared with them. Returns delivery success."""
    return await _post_notification(
        {
            "template": "project_share_link",
            "to": recipient,
            "data": {
                "project_name": project_name,
                "share_url": share_url,
                "expires_at": expires_at.isoformat() if expires_at else None,
                "shared_by": shared_by,
                "password_protected": password_protected,
            },
        }
    )
