from fastapi import Depends, Request
from sqlalchemy.orm import Session

from app.database import get_db
from app.services.lifecycle import PublicationLifecycle
from app.services.notifications import NotificationChannel
from app.services.storage import LocalMediaStore


def get_media_store(request: Request) -> LocalMediaStore:
    return request.app.state.media_store


def get_channel(request: Request) -> NotificationChannel:
    return request.app.state.channel


def get_lifecycle(
    db: Session = Depends(get_db),
    store: LocalMediaStore = Depends(get_media_store),
) -> PublicationLifecycle:
    return PublicationLifecycle(db, store)
