from pydantic import BaseModel, EmailStr, Field
from datetime import datetime
from typing import List, Literal, Optional
from ..models.models import ComplaintPriority, ComplaintStatus


class ContactRequest(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    email: EmailStr
    subject: Optional[str] = Field(default=None, max_length=200)
    message: str = Field(min_length=1)


class ComplaintCreate(BaseModel):
    reporter_name: str = Field(min_length=1, max_length=100)
    reporter_email: EmailStr
    type: Literal["inappropriate_content", "harassment", "spam", "other"]
    subject: str = Field(min_length=1, max_length=200)
    description: str = Field(min_length=1)
    target_type: Literal["submission", "user", "contest", "general"]
    target_id: str = Field(min_length=1, max_length=50)
    target_name: Optional[str] = None
    priority: ComplaintPriority = ComplaintPriority.MEDIUM


class ComplaintUpdate(BaseModel):
    status: ComplaintStatus
    admin_notes: Optional[str] = None


class ComplaintResponse(BaseModel):
    id: int
    reporter_name: str
    reporter_email: str
    type: str
    subject: str
    description: str
    target_type: str
    target_id: str
    target_name: Optional[str] = None
    status: ComplaintStatus
    priority: ComplaintPriority
    admin_notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ComplaintPage(BaseModel):
    complaints: List[ComplaintResponse]
    total: int
    page: int
    total_pages: int


class ComplaintCreated(BaseModel):
    message: str
    complaint_id: int
