from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List
from ..database import get_db
from ..schemas.vote import LeaderboardEntry
from ..services.tally_service import TallyService

router = APIRouter(prefix="/api/leaderboard", tags=["Leaderboard"])


@router.get("", response_model=List[LeaderboardEntry])
def get_leaderboard(db: Session = Depends(get_db)):
    """Get all active models ranked by their active-contest votes"""
    return TallyService(db).overall_leaderboard(limit=50)


@router.get("/active", response_model=List[LeaderboardEntry])
def get_active_leaderboard(db: Session = Depends(get_db)):
    """Get the top 3 models of the active contest"""
    return TallyService(db).active_contest_leaderboard(limit=3)
