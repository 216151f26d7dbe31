from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional
from ..models.models import PrizeRequestStatus


class PrizeRequestCreate(BaseModel):
    contest_id: int
    request_message: Optional[str] = None
    contact_info: str = Field(min_length=1)


class PrizeRequestUpdate(BaseModel):
    status: PrizeRequestStatus
    admin_notes: Optional[str] = None


class PrizeRequestResponse(BaseModel):
    id: int
    contest_id: int
    model_id: int
    user_id: int
    request_message: Optional[str] = None
    contact_info: str
    status: PrizeRequestStatus
    admin_notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PrizeRequestMutation(BaseModel):
    message: str
    request: PrizeRequestResponse
