from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict

from app.schemas.publication import PublicationOut


class MediaOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    publication_id: int
    media_type: str
    url: str  # stored filename, served from /uploads
    created_at: Optional[datetime] = None


class MediaUploadOut(BaseModel):
    message: str
    published: bool
    outcome: str  # not_requested | published | left_scheduled | already_published
    media: MediaOut
    publication: PublicationOut


class MediaDeleteOut(BaseModel):
    message: str
    reverted: bool
    publication: Optional[PublicationOut] = None
