from __future__ import annotations

import logging
from typing import Callable, Optional, Sequence

from sqlalchemy.orm import Session

from app.errors import NotFoundError, ValidationError
from app.models.comment import Comment
from app.repositories.comments import CommentRepository
from app.repositories.publications import PublicationRepository
from app.services.authz import ensure_can_view
from app.services.notifications import CommentEvent
from app.services.tokens import Identity
from app.utils.timeutil import as_utc, utcnow

logger = logging.getLogger(__name__)


class CommentService:
    """
    ``notify`` receives one CommentEvent per comment written by a
    non-admin. It is expected to hand the event off (e.g. to a background
    task) and return; whatever it raises is logged and dropped.
    """

    def __init__(self, db: Session, notify: Optional[Callable[[CommentEvent], None]] = None):
        self.db = db
        self.notify = notify
        self.comments = CommentRepository(db)
        self.publications = PublicationRepository(db)

    def _visible_publication(self, identity: Identity, publication_id: int):
        pub = self.publications.find_by_id(publication_id)
        if pub is None:
            raise NotFoundError("Publication not found")
        ensure_can_view(identity, pub)
        return pub

    def create(self, identity: Identity, publication_id: int, text: Optional[str]) -> Comment:
        text = (text or "").strip()
        if not text:
            raise ValidationError("Comment text is required")

        pub = self._visible_publication(identity, publication_id)
        row = self.comments.create(publication_id=pub.id, user_id=identity.user_id, text=text)
        logger.info("Comment %s added to publication %s by user %s", row.id, pub.id, identity.user_id)

        if not identity.is_admin and self.notify is not None:
            event = CommentEvent(
                comment_id=row.id,
                publication_id=pub.id,
                commenter_name=identity.name or identity.email,
                message=row.comment,
                timestamp=as_utc(row.created_at) if row.created_at else utcnow(),
            )
            try:
                self.notify(event)
            except Exception:
                logger.exception("Could not queue notification for comment %s", row.id)
        return row

    def list(self, identity: Identity, publication_id: int) -> Sequence[Comment]:
        pub = self._visible_publication(identity, publication_id)
        return self.comments.list_by_publication(pub.id)

    def delete(self, publication_id: int, comment_id: int) -> None:
        row = self.comments.find_by_id(comment_id)
        if row is None:
            raise NotFoundError("Comment not found")
        if row.publication_id != publication_id:
            raise ValidationError("Comment does not belong to this publication")
        self.comments.delete(row)
        logger.info("Comment %s deleted", comment_id)
