"""
Request dependencies.

Authentication happens upstream; the gateway forwards the verified
user id in the X-User-ID header.
"""

from typing import Optional

from fastapi import Depends, Header, HTTPException, status

from ..services.notification_service import Notifier, get_notifier
from .logging_config import user_id_var


def get_acting_user_id(x_user_id: Optional[str] = Header(None, alias="X-User-ID")) -> Optional[str]:
    """Acting user id, or None for anonymous calls"""
    user_id = x_user_id.strip() if x_user_id else None
    if user_id:
        user_id_var.set(user_id)
    return user_id or None


def require_user_id(user_id: Optional[str] = Depends(get_acting_user_id)) -> str:
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing X-User-ID header"
        )
    return user_id


def get_notifier_dependency() -> Notifier:
    return get_notifier()
