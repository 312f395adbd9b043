from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict

from app.utils.constants import Role


class CommentCreate(BaseModel):
    # either key is accepted
    comment: Optional[str] = None
    text: Optional[str] = None

    @property
    def body(self) -> Optional[str]:
        return self.comment if self.comment is not None else self.text


class CommentAuthor(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: Optional[str] = None
    role: Role


class CommentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    publication_id: int
    user_id: int
    comment: str
    created_at: Optional[datetime] = None
    user: Optional[CommentAuthor] = None
