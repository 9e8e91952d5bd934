# app/api/deps.py
from __future__ import annotations

from typing import Optional

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from app.db.deps import get_db
from app.models.user import User
from app.services.shipping_fee.types import parse_id


# ---------------------------
# Current user
# ---------------------------


def get_current_user(
    x_user_id: Optional[str] = Header(default=None, alias="X-User-Id"),
    db: Session = Depends(get_db),
) -> User:
    """
    Identity arrives from the upstream gateway as X-User-Id:

    - header missing / not an id -> 401
    - no such user               -> 401
    """
    uid = parse_id(x_user_id)
    if uid is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")

    user = db.get(User, uid)
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unknown user")
    return user


def require_vendor(user: User = Depends(get_current_user)) -> User:
    if not user.is_vendor:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Vendor role required")
    return user


def require_vendor_or_super_admin(user: User = Depends(get_current_user)) -> User:
    if not (user.is_vendor or user.is_super_admin):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not authorized")
    return user


def require_super_admin(user: User = Depends(get_current_user)) -> User:
    if not user.is_super_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Super admin role required")
    return user


__all__ = (
    "get_current_user",
    "require_super_admin",
    "require_vendor",
    "require_vendor_or_super_admin",
)
