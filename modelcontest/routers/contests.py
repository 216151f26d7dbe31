from fastapi import APIRouter, Depends
from sqlalchemy import func
from sqlalchemy.orm import Session
from typing import List, Optional
from ..database import get_db
from ..dependencies import get_voter_key
from ..exceptions import NotFoundError
from ..models.models import (
    Contest,
    ContestEntry,
    ContestStatus,
    EntryStatus,
    Vote,
)
from ..schemas.contest import (
    ContestDetail,
    ContestSummary,
    ContestWinnerResponse,
)
from ..schemas.vote import VoteStatus
from ..services.contest_lifecycle import ContestLifecycle
from ..services.tally_service import TallyService

router = APIRouter(prefix="/api/contests", tags=["Contests"])


def contest_summaries(db: Session, contests: List[Contest]) -> List[dict]:
    """Attach approved entry counts and ballot totals to contests"""
    ids = [c.id for c in contests]
    entry_counts = dict(
        db.query(ContestEntry.contest_id, func.count(ContestEntry.id))
        .filter(
            ContestEntry.contest_id.in_(ids),
            ContestEntry.status == EntryStatus.APPROVED,
        )
        .group_by(ContestEntry.contest_id)
        .all()
    )
    vote_totals = dict(
        db.query(Vote.contest_id, func.sum(Vote.weight))
        .filter(Vote.contest_id.in_(ids))
        .group_by(Vote.contest_id)
        .all()
    )
    return [
        ContestSummary.model_validate(contest).model_copy(
            update={
                "entry_count": int(entry_counts.get(contest.id, 0)),
                "total_votes": int(vote_totals.get(contest.id) or 0),
            }
        )
        for contest in contests
    ]


@router.get("", response_model=List[ContestSummary])
def get_contests(
    status: Optional[ContestStatus] = None, db: Session = Depends(get_db)
):
    """Get all contests, optionally filtered by status"""
    query = db.query(Contest)
    if status is not None:
        query = query.filter(Contest.status == status)
    contests = query.order_by(Contest.start_date.desc(), Contest.id).all()
    return contest_summaries(db, contests)


@router.get("/{contest_id}", response_model=ContestDetail)
def get_contest(contest_id: int, db: Session = Depends(get_db)):
    """Get a contest with its approved entries"""
    contest = ContestLifecycle(db).get(contest_id)
    entries = (
        db.query(ContestEntry)
        .filter(
            ContestEntry.contest_id == contest.id,
            ContestEntry.status == EntryStatus.APPROVED,
        )
        .order_by(ContestEntry.votes.desc(), ContestEntry.id)
        .all()
    )
    return {"contest": contest, "entries": entries}


@router.get("/{contest_id}/winner", response_model=ContestWinnerResponse)
def get_contest_winner(contest_id: int, db: Session = Depends(get_db)):
    contest = ContestLifecycle(db).get(contest_id)
    if contest.winner_model_id is None:
        raise NotFoundError("Winner not found")

    winner = contest.winner
    entry = (
        db.get(ContestEntry, contest.winner_entry_id)
        if contest.winner_entry_id
        else None
    )
    return {
        "contest": contest,
        "winner_name": winner.name if winner else None,
        "winner_stage_name": winner.stage_name if winner else None,
        "winner_profile_image": winner.profile_image if winner else None,
        "winning_entry": entry,
    }


@router.get("/{contest_id}/vote-status", response_model=VoteStatus)
def get_vote_status(
    contest_id: int,
    voter_key: str = Depends(get_voter_key),
    db: Session = Depends(get_db),
):
    """Check whether the caller already voted in a contest"""
    has_voted, model_id = TallyService(db).vote_status(contest_id, voter_key)
    return {"has_voted": has_voted, "voted_model_id": model_id}
