from pydantic import BaseModel
from datetime import datetime
from typing import List, Optional
from ..models.models import EntryStatus


class EntryModel(BaseModel):
    id: int
    name: str
    stage_name: Optional[str] = None
    profile_image: Optional[str] = None

    class Config:
        from_attributes = True


class EntryResponse(BaseModel):
    id: int
    contest_id: int
    model_id: int
    title: str
    description: Optional[str] = None
    photo_url: str
    votes: int = 0
    ranking: Optional[int] = None
    status: EntryStatus
    submitted_at: Optional[datetime] = None
    approved_at: Optional[datetime] = None
    model: Optional[EntryModel] = None

    class Config:
        from_attributes = True


class EntrySubmitResponse(BaseModel):
    message: str
    entry: EntryResponse


class EntryModeration(BaseModel):
    status: EntryStatus


class ModerationResponse(BaseModel):
    message: str
    submission: EntryResponse


class MySubmission(BaseModel):
    id: int
    contest_id: int
    contest_title: str
    photo_url: str
    caption: str
    votes: int
    ranking: Optional[int] = None
    status: EntryStatus
    submitted_at: Optional[datetime] = None
    approved_at: Optional[datetime] = None
    contest_end_date: datetime


class MySubmissionPage(BaseModel):
    submissions: List[MySubmission]
    total: int
    page: int
    total_pages: int


class AdminSubmission(BaseModel):
    id: int
    model_id: int
    model_name: str
    contest_id: int
    contest_title: str
    photo_url: str
    title: str
    description: Optional[str] = None
    status: EntryStatus
    submitted_at: Optional[datetime] = None


class AdminSubmissionPage(BaseModel):
    submissions: List[AdminSubmission]
    total: int
    page: int
    total_pages: int
