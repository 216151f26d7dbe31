from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from ..database import get_db
from ..dependencies import get_voter_key
from ..schemas.vote import VoteCastResponse, VoteCreate
from ..services.tally_service import TallyService

router = APIRouter(prefix="/api/votes", tags=["Votes"])


@router.post("", response_model=VoteCastResponse, status_code=201)
def cast_vote(
    vote: VoteCreate,
    voter_key: str = Depends(get_voter_key),
    db: Session = Depends(get_db),
):
    """Cast a free vote for a model's entry in a contest"""
    ballot = TallyService(db).cast_vote(
        vote.contest_id, vote.model_id, voter_key
    )
    return {"message": "Vote cast successfully", "vote": ballot}
