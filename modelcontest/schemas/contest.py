from pydantic import BaseModel, Field, model_validator
from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from ..models.models import ContestStatus
from .submission import EntryResponse


class ContestCreate(BaseModel):
    title: str = Field(min_length=3, max_length=200)
    description: str = Field(min_length=10)
    start_date: datetime
    end_date: datetime
    prize_amount: Decimal = Field(ge=0)
    prize_currency: str = "USD"
    banner_image: Optional[str] = None
    max_participants: Optional[int] = Field(default=None, ge=1)
    status: ContestStatus = ContestStatus.UPCOMING

    @model_validator(mode="after")
    def end_after_start(self):
        if self.end_date <= self.start_date:
            raise ValueError("End date must be after start date")
        return self


class ContestUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=3, max_length=200)
    description: Optional[str] = Field(default=None, min_length=10)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    prize_amount: Optional[Decimal] = Field(default=None, ge=0)
    prize_currency: Optional[str] = None
    banner_image: Optional[str] = None
    max_participants: Optional[int] = Field(default=None, ge=1)
    status: Optional[ContestStatus] = None


class ContestResponse(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    start_date: datetime
    end_date: datetime
    prize_amount: Decimal
    prize_currency: str
    banner_image: Optional[str] = None
    status: ContestStatus
    max_participants: Optional[int] = None
    winner_model_id: Optional[int] = None
    winner_entry_id: Optional[int] = None
    winning_votes: int
    winner_announced: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ContestSummary(ContestResponse):
    entry_count: int = 0
    total_votes: int = 0


class ContestDetail(BaseModel):
    contest: ContestResponse
    entries: List[EntryResponse]


class ContestMutationResponse(BaseModel):
    message: str
    contest: ContestResponse


class WinnerCandidate(BaseModel):
    model_id: int
    entry_id: int
    title: str
    photo_url: str
    votes: int

    class Config:
        from_attributes = True


class WinnerResult(BaseModel):
    contest_id: int
    winner: Optional[WinnerCandidate] = None
    candidates: List[WinnerCandidate] = []

    class Config:
        from_attributes = True


class SetWinnerRequest(BaseModel):
    entry_id: Optional[int] = None


class WinnerOverview(BaseModel):
    contest_id: int
    contest_title: str
    status: ContestStatus
    winner_announced: bool
    winner: Optional[WinnerCandidate] = None
    candidates: List[WinnerCandidate] = []


class ContestWinnerResponse(BaseModel):
    contest: ContestResponse
    winner_name: Optional[str] = None
    winner_stage_name: Optional[str] = None
    winner_profile_image: Optional[str] = None
    winning_entry: Optional[EntryResponse] = None


class WinningResponse(BaseModel):
    contest_id: int
    contest_title: str
    prize_amount: Decimal
    prize_currency: str
    winning_votes: int
    contest_end_date: datetime
    winning_photo: Optional[str] = None
    winning_photo_title: Optional[str] = None
    prize_request_id: Optional[int] = None
    prize_request_status: Optional[str] = None
