from __future__ import annotations

from typing import Optional, Sequence

from sqlalchemy import desc, select
from sqlalchemy.orm import Session, selectinload

from app.models.comment import Comment


class CommentRepository:
    def __init__(self, db: Session):
        self.db = db

    def create(self, *, publication_id: int, user_id: int, text: str) -> Comment:
        row = Comment(publication_id=publication_id, user_id=user_id, comment=text)
        self.db.add(row)
        self.db.commit()
        self.db.refresh(row)
        return row

    def find_by_id(self, comment_id: int) -> Optional[Comment]:
        return self.db.get(Comment, comment_id)

    def list_by_publication(self, publication_id: int) -> Sequence[Comment]:
        q = (
            select(Comment)
            .where(Comment.publication_id == publication_id)
            .options(selectinload(Comment.user))
            .order_by(desc(Comment.created_at), desc(Comment.id))
        )
        return self.db.execute(q).scalars().all()

    def delete(self, row: Comment) -> None:
        self.db.delete(row)
        self.db.commit()
