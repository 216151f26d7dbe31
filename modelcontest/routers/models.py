from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Optional
from ..database import get_db
from ..dependencies import get_current_model
from ..exceptions import NotFoundError
from ..models.models import (
    Contest,
    ContestEntry,
    EntryStatus,
    Model,
    PrizeRequest,
)
from ..schemas.contest import WinningResponse
from ..schemas.submission import MySubmissionPage
from ..schemas.user import ModelResponse, ProfileUpdate
from ..services.tally_service import TallyService
from ..utils.pagination import paginate

router = APIRouter(prefix="/api", tags=["Models"])


@router.put("/profile/update")
def update_profile(
    data: ProfileUpdate,
    model: Model = Depends(get_current_model),
    db: Session = Depends(get_db),
):
    """Update the signed-in model's profile"""
    for name, value in data.model_dump(exclude_unset=True).items():
        setattr(model, name, value)
    db.commit()
    db.refresh(model)
    return {
        "message": "Profile updated successfully",
        "model": ModelResponse.model_validate(model),
    }


@router.get("/models/top", response_model=List[ModelResponse])
def top_models(
    limit: int = Query(10, ge=1, le=100), db: Session = Depends(get_db)
):
    """Get the models with the most votes overall"""
    return TallyService(db).top_models(limit)


@router.get("/models/{model_id}", response_model=ModelResponse)
def get_model(model_id: int, db: Session = Depends(get_db)):
    model = db.get(Model, model_id)
    if not model or not model.is_active:
        raise NotFoundError("Model not found")
    return model


@router.get("/my-submissions", response_model=MySubmissionPage)
def my_submissions(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    status: Optional[EntryStatus] = None,
    model: Model = Depends(get_current_model),
    db: Session = Depends(get_db),
):
    """Get the signed-in model's entries, newest first"""
    query = db.query(ContestEntry).filter(ContestEntry.model_id == model.id)
    if status is not None:
        query = query.filter(ContestEntry.status == status)
    query = query.order_by(
        ContestEntry.submitted_at.desc(), ContestEntry.id.desc()
    )

    result = paginate(query, page, limit)
    return {
        "submissions": [
            {
                "id": entry.id,
                "contest_id": entry.contest_id,
                "contest_title": entry.contest.title,
                "photo_url": entry.photo_url,
                "caption": entry.title,
                "votes": entry.votes,
                "ranking": entry.ranking,
                "status": entry.status,
                "submitted_at": entry.submitted_at,
                "approved_at": entry.approved_at,
                "contest_end_date": entry.contest.end_date,
            }
            for entry in result["items"]
        ],
        "total": result["total"],
        "page": result["page"],
        "total_pages": result["total_pages"],
    }


@router.get("/my-winnings", response_model=List[WinningResponse])
def my_winnings(
    model: Model = Depends(get_current_model), db: Session = Depends(get_db)
):
    """Get the contests won by the signed-in model"""
    contests = (
        db.query(Contest)
        .filter(Contest.winner_model_id == model.id)
        .order_by(Contest.end_date.desc())
        .all()
    )
    winnings = []
    for contest in contests:
        entry = (
            db.get(ContestEntry, contest.winner_entry_id)
            if contest.winner_entry_id
            else None
        )
        request = (
            db.query(PrizeRequest)
            .filter(
                PrizeRequest.contest_id == contest.id,
                PrizeRequest.model_id == model.id,
            )
            .first()
        )
        winnings.append(
            {
                "contest_id": contest.id,
                "contest_title": contest.title,
                "prize_amount": contest.prize_amount,
                "prize_currency": contest.prize_currency,
                "winning_votes": contest.winning_votes,
                "contest_end_date": contest.end_date,
                "winning_photo": entry.photo_url if entry else None,
                "winning_photo_title": entry.title if entry else None,
                "prize_request_id": request.id if request else None,
                "prize_request_status": (
                    request.status.value if request else None
                ),
            }
        )
    return winnings
