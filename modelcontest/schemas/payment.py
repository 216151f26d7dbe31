from pydantic import BaseModel
from decimal import Decimal
from typing import Optional


class VotePackageResponse(BaseModel):
    id: int
    code: str
    name: str
    price: Decimal
    currency: str
    vote_count: int
    bonus_votes: int
    total_votes: int
    description: Optional[str] = None

    class Config:
        from_attributes = True


class CheckoutRequest(BaseModel):
    package_id: str


class CheckoutResponse(BaseModel):
    url: str
