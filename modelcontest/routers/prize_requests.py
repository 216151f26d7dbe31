import logging
from fastapi import APIRouter, Depends
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from typing import List
from ..database import get_db
from ..dependencies import get_current_model
from ..exceptions import AuthorizationError, ConflictError, NotFoundError
from ..models.models import Contest, Model, PrizeRequest
from ..schemas.prize import (
    PrizeRequestCreate,
    PrizeRequestMutation,
    PrizeRequestResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Prize Requests"])


@router.post(
    "/prize-requests", response_model=PrizeRequestMutation, status_code=201
)
def create_prize_request(
    data: PrizeRequestCreate,
    model: Model = Depends(get_current_model),
    db: Session = Depends(get_db),
):
    """Request the prize of a contest the caller won"""
    contest = db.get(Contest, data.contest_id)
    if not contest:
        raise NotFoundError("Contest not found")
    if contest.winner_model_id != model.id:
        raise AuthorizationError(
            "Only the contest winner can request the prize"
        )

    existing = (
        db.query(PrizeRequest)
        .filter(
            PrizeRequest.contest_id == contest.id,
            PrizeRequest.model_id == model.id,
        )
        .first()
    )
    if existing:
        raise ConflictError("Prize request already submitted for this contest")

    request = PrizeRequest(
        contest_id=contest.id,
        model_id=model.id,
        user_id=model.user_id,
        request_message=data.request_message,
        contact_info=data.contact_info,
    )
    db.add(request)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("Prize request already submitted for this contest")
    db.refresh(request)

    logger.info(
        "Prize request %s created for contest %s by model %s",
        request.id,
        contest.id,
        model.id,
    )
    return {
        "message": "Prize request submitted successfully",
        "request": request,
    }


@router.get("/my-prize-requests", response_model=List[PrizeRequestResponse])
def my_prize_requests(
    model: Model = Depends(get_current_model), db: Session = Depends(get_db)
):
    return (
        db.query(PrizeRequest)
        .filter(PrizeRequest.model_id == model.id)
        .order_by(PrizeRequest.created_at.desc(), PrizeRequest.id.desc())
        .all()
    )
