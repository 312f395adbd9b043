from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.utils.constants import ContentType, PublicationStatus


class PublicationCreate(BaseModel):
    title: str = Field(min_length=1, max_length=300)
    content_type: ContentType
    publish_date: Optional[datetime] = None
    status: Optional[PublicationStatus] = None  # DRAFT (default) or SCHEDULED


class PublicationUpdate(BaseModel):
    # client_id and content_type are fixed at creation; naming them is rejected
    model_config = ConfigDict(extra="forbid")

    title: Optional[str] = Field(default=None, min_length=1, max_length=300)
    publish_date: Optional[datetime] = None
    engagement_score: Optional[float] = None


class PublicationStatusUpdate(BaseModel):
    status: str


class PublicationMediaOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    media_type: str
    url: str


class PublicationOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    client_id: int
    title: str
    content_type: ContentType
    status: PublicationStatus
    publish_date: Optional[datetime] = None
    engagement_score: Optional[float] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    media: List[PublicationMediaOut] = []


class PublicationSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    content_type: ContentType
    status: PublicationStatus
    publish_date: Optional[datetime] = None
    engagement_score: Optional[float] = None
