from __future__ import annotations

from datetime import datetime
from typing import Any, Optional, Sequence

from sqlalchemy import desc, exists, func, select, update
from sqlalchemy.orm import Session, selectinload

from app.models.media import Media
from app.models.publication import Publication
from app.utils.constants import ContentType, PublicationStatus, Role

# fields an admin may edit after creation; client_id and content_type are fixed
MUTABLE_FIELDS = {"title", "publish_date", "engagement_score"}


class PublicationRepository:
    def __init__(self, db: Session):
        self.db = db

    def create(
        self,
        *,
        client_id: int,
        title: str,
        content_type: ContentType,
        publish_date: Optional[datetime],
        status: PublicationStatus = PublicationStatus.DRAFT,
    ) -> Publication:
        pub = Publication(
            client_id=client_id,
            title=title,
            content_type=content_type,
            publish_date=publish_date,
            status=status,
        )
        self.db.add(pub)
        self.db.commit()
        self.db.refresh(pub)
        return pub

    def find_by_id(self, publication_id: int) -> Optional[Publication]:
        """None means the record does not exist; access rules are the caller's business."""
        return self.db.get(Publication, publication_id)

    def list_all(self) -> Sequence[Publication]:
        q = (
            select(Publication)
            .options(selectinload(Publication.media), selectinload(Publication.client))
            .order_by(desc(Publication.created_at), desc(Publication.id))
        )
        return self.db.execute(q).scalars().all()

    def find_all_by_client(
        self,
        client_id: int,
        *,
        viewer_role: Role,
        status: Optional[PublicationStatus] = None,
    ) -> Sequence[Publication]:
        q = select(Publication).where(Publication.client_id == client_id)

        if viewer_role != Role.ADMIN:
            # tenants only ever see published content, whatever they ask for
            q = q.where(Publication.status == PublicationStatus.PUBLISHED)
        elif status is not None:
            q = q.where(Publication.status == status)

        q = q.options(selectinload(Publication.media)).order_by(
            desc(Publication.publish_date), desc(Publication.id)
        )
        return self.db.execute(q).scalars().all()

    def count_by_type(self, client_id: int, content_type: ContentType) -> int:
        q = (
            select(func.count(Publication.id))
            .where(Publication.client_id == client_id)
            .where(Publication.content_type == content_type)
        )
        return int(self.db.execute(q).scalar_one())

    def update_status(
        self,
        pub: Publication,
        status: PublicationStatus,
        *,
        publish_date: Optional[datetime] = None,
    ) -> Publication:
        pub.status = status
        if publish_date is not None:
            pub.publish_date = publish_date
        self.db.commit()
        self.db.refresh(pub)
        return pub

    def update_fields(self, pub: Publication, fields: dict[str, Any]) -> Publication:
        unknown = set(fields) - MUTABLE_FIELDS
        if unknown:
            raise ValueError(f"Fields cannot be updated: {', '.join(sorted(unknown))}")
        for key, value in fields.items():
            setattr(pub, key, value)
        self.db.commit()
        self.db.refresh(pub)
        return pub

    def delete(self, pub: Publication) -> None:
        # media and comments go with it (relationship cascade)
        self.db.delete(pub)
        self.db.commit()

    def find_due_ids(self, now: datetime) -> list[int]:
        """SCHEDULED, publish_date reached, and at least one media record attached."""
        has_media = exists().where(Media.publication_id == Publication.id)
        q = (
            select(Publication.id)
            .where(Publication.status == PublicationStatus.SCHEDULED)
            .where(Publication.publish_date.isnot(None))
            .where(Publication.publish_date <= now)
            .where(has_media)
            .order_by(Publication.publish_date)
        )
        return list(self.db.execute(q).scalars().all())

    def bulk_publish(self, ids: Sequence[int]) -> int:
        if not ids:
            return 0
        q = (
            update(Publication)
            .where(Publication.id.in_(ids))
            # a manual edit that landed after the query wins
            .where(Publication.status == PublicationStatus.SCHEDULED)
            .values(status=PublicationStatus.PUBLISHED)
            .execution_options(synchronize_session=False)
        )
        result = self.db.execute(q)
        self.db.commit()
        return result.rowcount or 0

    def count_by_status(self, client_id: Optional[int] = None) -> dict[str, int]:
        q = select(Publication.status, func.count(Publication.id)).group_by(Publication.status)
        if client_id is not None:
            q = q.where(Publication.client_id == client_id)
        return {PublicationStatus(s).value: int(n) for s, n in self.db.execute(q).all()}

    def count_all(self, client_id: Optional[int] = None) -> int:
        q = select(func.count(Publication.id))
        if client_id is not None:
            q = q.where(Publication.client_id == client_id)
        return int(self.db.execute(q).scalar_one())

    def top_by_engagement(self, client_id: int, limit: int = 5) -> Sequence[Publication]:
        q = (
            select(Publication)
            .where(Publication.client_id == client_id)
            .order_by(desc(func.coalesce(Publication.engagement_score, 0)), desc(Publication.id))
            .limit(limit)
        )
        return self.db.execute(q).scalars().all()
