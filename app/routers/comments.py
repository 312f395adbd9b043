from functools import partial
from typing import List

from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.orm import Session

from app.database import get_db
from app.deps import get_channel
from app.schemas.comment import CommentCreate, CommentOut
from app.services.authz import get_current_identity, require_admin
from app.services.comments import CommentService
from app.services.notifications import NotificationChannel
from app.services.tokens import Identity

router = APIRouter(prefix="/publications/{publication_id}/comments", tags=["comments"])


@router.post("", response_model=CommentOut, status_code=201)
def create_comment(
    publication_id: int,
    payload: CommentCreate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    channel: NotificationChannel = Depends(get_channel),
    identity: Identity = Depends(get_current_identity),
):
    # the broadcast runs after the response has been sent
    notify = partial(background_tasks.add_task, channel.notify_comment)
    return CommentService(db, notify).create(identity, publication_id, payload.body)


@router.get("", response_model=List[CommentOut])
def list_comments(
    publication_id: int,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    return CommentService(db).list(identity, publication_id)


@router.delete("/{comment_id}")
def delete_comment(
    publication_id: int,
    comment_id: int,
    db: Session = Depends(get_db),
    _: Identity = Depends(require_admin),
):
    CommentService(db).delete(publication_id, comment_id)
    return {"message": "Comment deleted"}
