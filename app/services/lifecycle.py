"""
Publication lifecycle.

Owns every status change a publication goes through apart from the scheduler
sweep: creation under the client's plan quota, media attach (with optional
publish-on-upload), media removal (with reversion to DRAFT once the last
asset is gone), admin status overrides and deletion.

Multi-step operations are not one database transaction. When a later step
fails, earlier steps are undone explicitly (stored file removed, media row
deleted) before the error is re-raised.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Optional, Union

from sqlalchemy.orm import Session

from app.errors import MediaTypeMismatchError, NotFoundError, QuotaExceededError, ValidationError
from app.models.media import Media
from app.models.publication import Publication
from app.repositories.clients import ClientRepository
from app.repositories.media import MediaRepository
from app.repositories.publications import PublicationRepository
from app.services.quota import check_quota, plan_limit
from app.services.state_machine import Trigger, can_transition, ensure_transition, parse_status
from app.services.storage import LocalMediaStore, StoredFile
from app.utils.constants import MIME_TYPES_BY_CONTENT_TYPE, ContentType, PublicationStatus
from app.utils.timeutil import as_utc, utcnow

logger = logging.getLogger(__name__)

IMMUTABLE_FIELDS = {"client_id", "content_type"}


class PublishOutcome(str, enum.Enum):
    NOT_REQUESTED = "not_requested"
    PUBLISHED = "published"
    LEFT_SCHEDULED = "left_scheduled"      # the scheduler will pick it up
    ALREADY_PUBLISHED = "already_published"


OUTCOME_MESSAGES = {
    PublishOutcome.NOT_REQUESTED: "Media uploaded.",
    PublishOutcome.PUBLISHED: "Media uploaded and publication published.",
    PublishOutcome.LEFT_SCHEDULED: "Media uploaded. The publication is scheduled and stays SCHEDULED until its publish date.",
    PublishOutcome.ALREADY_PUBLISHED: "Media uploaded. The publication was already published.",
}


@dataclass
class AttachResult:
    media: Media
    publication: Publication
    outcome: PublishOutcome

    @property
    def published(self) -> bool:
        return self.outcome == PublishOutcome.PUBLISHED

    @property
    def message(self) -> str:
        return OUTCOME_MESSAGES[self.outcome]


@dataclass
class RemoveResult:
    media: Media
    publication: Optional[Publication]
    reverted: bool


class PublicationLifecycle:
    def __init__(
        self,
        db: Session,
        store: LocalMediaStore,
        *,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.db = db
        self.store = store
        self.clock = clock
        self.publications = PublicationRepository(db)
        self.media = MediaRepository(db)
        self.clients = ClientRepository(db)

    # ---------- reads ----------

    def get(self, publication_id: int) -> Publication:
        pub = self.publications.find_by_id(publication_id)
        if pub is None:
            raise NotFoundError("Publication not found")
        return pub

    # ---------- creation ----------

    def create(
        self,
        client_id: int,
        *,
        title: str,
        content_type: Union[ContentType, str],
        publish_date: Optional[datetime] = None,
        status: Optional[Union[PublicationStatus, str]] = None,
    ) -> Publication:
        try:
            content_type = ContentType(content_type)
        except ValueError:
            raise ValidationError("Invalid content type. Only POST or REEL are allowed.")

        target = parse_status(status) if status is not None else PublicationStatus.DRAFT
        ensure_transition(None, target, Trigger.CREATE)

        if target == PublicationStatus.SCHEDULED and publish_date is None:
            raise ValidationError("publish_date is required for a SCHEDULED publication")

        client = self.clients.find_by_id(client_id)
        if client is None:
            raise NotFoundError("Client not found")

        current = self.publications.count_by_type(client.id, content_type)
        if not check_quota(client.plan, content_type, current):
            limit = plan_limit(client.plan, content_type)
            raise QuotaExceededError(
                f"Limit reached for {content_type.value}. "
                f"Plan {client.plan.value} allows at most {limit} {content_type.value}s."
            )

        pub = self.publications.create(
            client_id=client.id,
            title=title,
            content_type=content_type,
            publish_date=as_utc(publish_date) if publish_date else None,
            status=target,
        )
        logger.info("Publication %s created for client %s (%s, %s)", pub.id, client.id, content_type.value, target.value)
        return pub

    # ---------- media ----------

    def attach_media(self, publication_id: int, stored: StoredFile, *, publish_now: bool = False) -> AttachResult:
        """
        Record an already-stored file against a publication.
        Any failure before the media row is saved removes the stored file, so nothing is left orphaned on disk.
        """
        try:
            pub = self.publications.find_by_id(publication_id)
            if pub is None:
                raise NotFoundError("Publication not found")

            mime = (stored.mime_type or "").lower()
            if mime not in MIME_TYPES_BY_CONTENT_TYPE[pub.content_type]:
                wanted = "an image" if pub.content_type == ContentType.POST else "a video"
                raise MediaTypeMismatchError(f"This publication ({pub.content_type.value}) requires {wanted}.")

            media = self.media.create(publication_id=pub.id, media_type=mime, url=stored.filename)
        except Exception as e:
            self.db.rollback()
            self._discard(stored, f"media not recorded for publication {publication_id} ({type(e).__name__})")
            raise

        if not publish_now:
            return AttachResult(media=media, publication=pub, outcome=PublishOutcome.NOT_REQUESTED)

        if pub.status == PublicationStatus.SCHEDULED:
            logger.info("publishNow ignored for publication %s: SCHEDULED, left for the scheduler", pub.id)
            return AttachResult(media=media, publication=pub, outcome=PublishOutcome.LEFT_SCHEDULED)
        if pub.status == PublicationStatus.PUBLISHED:
            return AttachResult(media=media, publication=pub, outcome=PublishOutcome.ALREADY_PUBLISHED)

        media_id, filename = media.id, media.url
        try:
            ensure_transition(pub.status, PublicationStatus.PUBLISHED, Trigger.PUBLISH_NOW)
            pub = self.publications.update_status(pub, PublicationStatus.PUBLISHED, publish_date=self.clock())
        except Exception:
            logger.error("Publish-on-upload failed for publication %s; rolling back media %s", publication_id, media_id)
            self.db.rollback()
            self._rollback_media(publication_id, media_id, filename)
            raise

        logger.info("Publication %s published on upload", pub.id)
        return AttachResult(media=media, publication=pub, outcome=PublishOutcome.PUBLISHED)

    def remove_media(self, publication_id: int, media_id: int) -> RemoveResult:
        media = self.media.find(publication_id, media_id)
        if media is None:
            raise NotFoundError("Media not found")

        self._remove_file(media.url)
        self.media.delete(media)

        pub = self.publications.find_by_id(publication_id)
        reverted = False
        if pub is not None and self.media.count_by_publication(publication_id) == 0:
            if can_transition(pub.status, PublicationStatus.DRAFT, Trigger.MEDIA_EMPTIED):
                previous = pub.status
                pub = self.publications.update_status(pub, PublicationStatus.DRAFT)
                reverted = True
                logger.info("Publication %s reverted %s -> DRAFT: last media removed", pub.id, previous.value)

        return RemoveResult(media=media, publication=pub, reverted=reverted)

    # ---------- admin edits ----------

    def update_status(self, publication_id: int, new_status: Union[PublicationStatus, str]) -> Publication:
        target = parse_status(new_status)
        pub = self.get(publication_id)
        ensure_transition(pub.status, target, Trigger.ADMIN_OVERRIDE)
        return self.publications.update_status(pub, target)

    def update_fields(self, publication_id: int, fields: dict[str, Any]) -> Publication:
        fixed = IMMUTABLE_FIELDS & set(fields)
        if fixed:
            raise ValidationError(f"{', '.join(sorted(fixed))} cannot be changed after creation")
        if "status" in fields:
            raise ValidationError("Use the status endpoint to change a publication's status")

        pub = self.get(publication_id)
        if not fields:
            return pub
        if fields.get("publish_date") is not None:
            fields = {**fields, "publish_date": as_utc(fields["publish_date"])}
        try:
            return self.publications.update_fields(pub, fields)
        except ValueError as e:
            raise ValidationError(str(e))

    def delete(self, publication_id: int) -> None:
        pub = self.get(publication_id)
        filenames = self.media.filenames_for_publication(pub.id)
        self.publications.delete(pub)
        # files go after the rows; a failed delete leaves them untouched
        removed = self.store.remove_many(filenames)
        logger.info("Publication %s deleted (%d/%d media files removed)", publication_id, removed, len(filenames))

    # ---------- compensation ----------

    def _discard(self, stored: StoredFile, reason: str) -> None:
        logger.info("Discarding uploaded file %s: %s", stored.filename, reason)
        self._remove_file(stored.filename)

    def _remove_file(self, filename: str) -> None:
        try:
            self.store.remove(filename)
        except (OSError, ValueError) as e:
            logger.error("Error removing media file %s from disk: %s", filename, e)

    def _rollback_media(self, publication_id: int, media_id: int, filename: str) -> None:
        try:
            row = self.media.find(publication_id, media_id)
            if row is not None:
                self.media.delete(row)
        except Exception:
            self.db.rollback()
            logger.exception("Could not delete media %s while rolling back publish-on-upload", media_id)
        self._remove_file(filename)
