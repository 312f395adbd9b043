from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import DateTime, Enum, Float, ForeignKey, Index, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base
from app.utils.constants import ContentType, PublicationStatus

if TYPE_CHECKING:
    from app.models.client import Client
    from app.models.comment import Comment
    from app.models.media import Media


class Publication(Base):
    __tablename__ = "publications"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    # client_id and content_type never change after creation
    client_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("clients.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    title: Mapped[str] = mapped_column(String(300), nullable=False)
    content_type: Mapped[ContentType] = mapped_column(Enum(ContentType, native_enum=False, length=20), nullable=False)
    status: Mapped[PublicationStatus] = mapped_column(
        Enum(PublicationStatus, native_enum=False, length=20),
        default=PublicationStatus.DRAFT,
        nullable=False,
    )

    publish_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    engagement_score: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    client: Mapped["Client"] = relationship(back_populates="publications")
    media: Mapped[list["Media"]] = relationship(
        back_populates="publication",
        cascade="all, delete-orphan",
        order_by="Media.id",
    )
    comments: Mapped[list["Comment"]] = relationship(
        back_populates="publication",
        cascade="all, delete-orphan",
    )


Index("ix_publications_client_type", Publication.client_id, Publication.content_type)
Index("ix_publications_status_date", Publication.status, Publication.publish_date)
