from pydantic import BaseModel


class AdminStats(BaseModel):
    total_contests: int
    active_contests: int
    total_submissions: int
    pending_submissions: int
    approved_submissions: int
    rejected_submissions: int
    total_models: int
    total_votes: int


class MessageResponse(BaseModel):
    message: str
