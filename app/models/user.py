# app/models/user.py
from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base, JSONType

ROLE_USER = "user"
ROLE_VENDOR = "admin"
ROLE_SUPER_ADMIN = "superAdmin"


class User(Base):
    """
    Platform account, users table.

    Vendors are users with role="admin"; they own shipping zones and carry
    their fallback shipping preferences embedded as JSON:
      {"default_base_rate": 40, "default_out_of_region_rate": 70, "enable_regional_rates": true}
    """

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_name: Mapped[str] = mapped_column(String(64), nullable=False)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True, unique=True)
    role: Mapped[str] = mapped_column(
        String(16), nullable=False, default=ROLE_USER, server_default=ROLE_USER
    )

    shop_name: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)

    # vendor home location (free text, e.g. "Greater Accra")
    base_region: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    base_city: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)

    shipping_preferences: Mapped[Optional[dict]] = mapped_column(JSONType, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )

    @property
    def is_vendor(self) -> bool:
        return self.role == ROLE_VENDOR

    @property
    def is_super_admin(self) -> bool:
        return self.role == ROLE_SUPER_ADMIN

    def __repr__(self) -> str:
        return f"<User id={self.id} user_name={self.user_name!r} role={self.role}>"
