from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import Boolean, DateTime, Enum, ForeignKey, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base
from app.utils.constants import Plan

if TYPE_CHECKING:
    from app.models.publication import Publication
    from app.models.user import User


class Client(Base):
    """Tenant account. A login User owns at most one."""

    __tablename__ = "clients"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )

    plan: Mapped[Plan] = mapped_column(Enum(Plan, native_enum=False, length=20), default=Plan.BASIC, nullable=False)
    # false blocks login and API access; data is kept
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    company_name: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    contact_name: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    contact_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    contact_phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    user: Mapped["User"] = relationship(back_populates="client")
    publications: Mapped[list["Publication"]] = relationship(
        back_populates="client",
        cascade="all, delete-orphan",
    )
