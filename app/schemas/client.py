from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict

from app.utils.constants import Plan


class ClientOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    plan: Plan
    is_active: bool
    company_name: Optional[str] = None
    contact_name: Optional[str] = None
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None
    created_at: Optional[datetime] = None
