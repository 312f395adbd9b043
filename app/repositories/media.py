from __future__ import annotations

from typing import Optional, Sequence

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.models.media import Media
from app.models.publication import Publication


class MediaRepository:
    def __init__(self, db: Session):
        self.db = db

    def create(self, *, publication_id: int, media_type: str, url: str) -> Media:
        media = Media(publication_id=publication_id, media_type=media_type, url=url)
        self.db.add(media)
        self.db.commit()
        self.db.refresh(media)
        return media

    def find(self, publication_id: int, media_id: int) -> Optional[Media]:
        q = select(Media).where(Media.id == media_id).where(Media.publication_id == publication_id)
        return self.db.execute(q).scalars().first()

    def list_by_publication(self, publication_id: int) -> Sequence[Media]:
        q = select(Media).where(Media.publication_id == publication_id).order_by(Media.id)
        return self.db.execute(q).scalars().all()

    def count_by_publication(self, publication_id: int) -> int:
        q = select(func.count(Media.id)).where(Media.publication_id == publication_id)
        return int(self.db.execute(q).scalar_one())

    def delete(self, media: Media) -> None:
        self.db.delete(media)
        self.db.commit()

    def filenames_for_publication(self, publication_id: int) -> list[str]:
        q = select(Media.url).where(Media.publication_id == publication_id)
        return list(self.db.execute(q).scalars().all())

    def filenames_for_client(self, client_id: int) -> list[str]:
        q = (
            select(Media.url)
            .join(Publication, Publication.id == Media.publication_id)
            .where(Publication.client_id == client_id)
        )
        return list(self.db.execute(q).scalars().all())
