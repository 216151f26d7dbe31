from pydantic import BaseModel
from datetime import datetime
from typing import Optional
from ..models.models import VoteType


class VoteCreate(BaseModel):
    contest_id: int
    model_id: int


class VoteResponse(BaseModel):
    id: int
    entry_id: int
    contest_id: int
    vote_type: VoteType
    weight: int
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class VoteCastResponse(BaseModel):
    message: str
    vote: VoteResponse


class VoteStatus(BaseModel):
    has_voted: bool
    voted_model_id: Optional[int] = None


class LeaderboardEntry(BaseModel):
    id: int
    name: str
    stage_name: Optional[str] = None
    profile_image: Optional[str] = None
    location: Optional[str] = None
    bio: Optional[str] = None
    contests_won: int
    contests_joined: int
    total_votes: int
    active_contests: Optional[int] = None
    latest_contest_title: Optional[str] = None
