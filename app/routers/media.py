from typing import List

from fastapi import APIRouter, Depends, File, UploadFile

from app.deps import get_lifecycle, get_media_store
from app.errors import ValidationError
from app.schemas.media import MediaDeleteOut, MediaOut, MediaUploadOut
from app.services.authz import ensure_can_view, get_current_identity, require_admin
from app.services.lifecycle import PublicationLifecycle
from app.services.storage import LocalMediaStore
from app.services.tokens import Identity
from app.utils.constants import ALLOWED_MIME_TYPES

router = APIRouter(prefix="/publications/{publication_id}/media", tags=["media"])


@router.post("", response_model=MediaUploadOut, status_code=201)
def upload_media(
    publication_id: int,
    mediaFile: UploadFile = File(...),
    publishNow: bool = False,
    lifecycle: PublicationLifecycle = Depends(get_lifecycle),
    store: LocalMediaStore = Depends(get_media_store),
    _: Identity = Depends(require_admin),
):
    mime = (mediaFile.content_type or "").lower()
    if mime not in ALLOWED_MIME_TYPES:
        allowed = ", ".join(sorted(ALLOWED_MIME_TYPES))
        raise ValidationError(f"Unsupported file type {mime or '(none)'}. Allowed: {allowed}")

    data = mediaFile.file.read()
    if not data:
        raise ValidationError("Uploaded file is empty")

    stored = store.store(data=data, mime_type=mime, original_filename=mediaFile.filename)
    result = lifecycle.attach_media(publication_id, stored, publish_now=publishNow)
    return {
        "message": result.message,
        "published": result.published,
        "outcome": result.outcome.value,
        "media": result.media,
        "publication": result.publication,
    }


@router.get("", response_model=List[MediaOut])
def list_media(
    publication_id: int,
    lifecycle: PublicationLifecycle = Depends(get_lifecycle),
    identity: Identity = Depends(get_current_identity),
):
    pub = lifecycle.get(publication_id)
    ensure_can_view(identity, pub)
    return lifecycle.media.list_by_publication(pub.id)


@router.delete("/{media_id}", response_model=MediaDeleteOut)
def delete_media(
    publication_id: int,
    media_id: int,
    lifecycle: PublicationLifecycle = Depends(get_lifecycle),
    _: Identity = Depends(require_admin),
):
    result = lifecycle.remove_media(publication_id, media_id)
    message = "Media deleted"
    if result.reverted:
        message += ". No media left; publication reverted to DRAFT"
    return {"message": message, "reverted": result.reverted, "publication": result.publication}
