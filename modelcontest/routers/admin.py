import logging
from fastapi import APIRouter, Depends, Query
from sqlalchemy import func
from sqlalchemy.orm import Session
from typing import List, Optional
from ..database import get_db
from ..dependencies import get_current_admin
from ..exceptions import (
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from ..models.models import (
    Complaint,
    ComplaintPriority,
    ComplaintStatus,
    Contest,
    ContestEntry,
    EntryStatus,
    Model,
    PrizeRequest,
    PrizeRequestStatus,
    User,
    Vote,
)
from ..schemas.admin import AdminStats, MessageResponse
from ..schemas.complaint import (
    ComplaintPage,
    ComplaintResponse,
    ComplaintUpdate,
)
from ..schemas.contest import (
    ContestCreate,
    ContestMutationResponse,
    ContestSummary,
    ContestUpdate,
    SetWinnerRequest,
    WinnerOverview,
    WinnerResult,
)
from ..schemas.prize import (
    PrizeRequestMutation,
    PrizeRequestResponse,
    PrizeRequestUpdate,
)
from ..schemas.submission import (
    AdminSubmission,
    AdminSubmissionPage,
    EntryModeration,
    ModerationResponse,
)
from ..schemas.user import PasswordChange
from ..services.contest_lifecycle import ContestLifecycle
from ..services.entry_service import moderate_entry
from ..utils.file_handler import delete_file
from ..utils.pagination import paginate
from ..utils.security import get_password_hash, verify_password
from .contests import contest_summaries

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/admin",
    tags=["Admin"],
    dependencies=[Depends(get_current_admin)],
)

PRIZE_TRANSITIONS = {
    PrizeRequestStatus.PENDING: {
        PrizeRequestStatus.PROCESSING,
        PrizeRequestStatus.COMPLETED,
        PrizeRequestStatus.REJECTED,
    },
    PrizeRequestStatus.PROCESSING: {
        PrizeRequestStatus.COMPLETED,
        PrizeRequestStatus.REJECTED,
    },
    PrizeRequestStatus.COMPLETED: set(),
    PrizeRequestStatus.REJECTED: set(),
}


@router.get("/stats", response_model=AdminStats)
def get_stats(db: Session = Depends(get_db)):
    stats = ContestLifecycle(db).stats()
    stats["total_models"] = db.query(func.count(Model.id)).scalar() or 0
    stats["total_votes"] = int(
        db.query(func.coalesce(func.sum(Vote.weight), 0)).scalar() or 0
    )
    return stats


# Contests


@router.get("/contests", response_model=List[ContestSummary])
def list_contests(db: Session = Depends(get_db)):
    contests = (
        db.query(Contest)
        .order_by(Contest.created_at.desc(), Contest.id.desc())
        .all()
    )
    return contest_summaries(db, contests)


@router.post(
    "/contests", response_model=ContestMutationResponse, status_code=201
)
def create_contest(data: ContestCreate, db: Session = Depends(get_db)):
    """Create a contest; creating it active completes the current one"""
    contest = ContestLifecycle(db).create(**data.model_dump())
    return {"message": "Contest created successfully", "contest": contest}


@router.put("/contests/{contest_id}", response_model=ContestMutationResponse)
def update_contest(
    contest_id: int, data: ContestUpdate, db: Session = Depends(get_db)
):
    """Edit a contest, including its status"""
    contest = ContestLifecycle(db).update(
        contest_id, **data.model_dump(exclude_unset=True)
    )
    return {"message": "Contest updated successfully", "contest": contest}


@router.delete("/contests/{contest_id}", response_model=MessageResponse)
def delete_contest(contest_id: int, db: Session = Depends(get_db)):
    lifecycle = ContestLifecycle(db)
    contest = lifecycle.get(contest_id)
    files = [contest.banner_image] + [e.photo_url for e in contest.entries]

    lifecycle.delete(contest_id)
    for file_url in files:
        delete_file(file_url)
    return {"message": "Contest deleted successfully"}


@router.post(
    "/contests/{contest_id}/activate", response_model=ContestMutationResponse
)
def activate_contest(contest_id: int, db: Session = Depends(get_db)):
    contest = ContestLifecycle(db).activate(contest_id)
    return {"message": "Contest activated", "contest": contest}


@router.post(
    "/contests/{contest_id}/complete", response_model=ContestMutationResponse
)
def complete_contest(contest_id: int, db: Session = Depends(get_db)):
    contest = ContestLifecycle(db).complete(contest_id)
    return {"message": "Contest completed", "contest": contest}


@router.post("/contests/{contest_id}/set-winner", response_model=WinnerResult)
def set_winner(
    contest_id: int,
    data: Optional[SetWinnerRequest] = None,
    db: Session = Depends(get_db),
):
    """Record a contest's winner; ties require choosing the entry"""
    entry_id = data.entry_id if data else None
    return ContestLifecycle(db).set_winner(contest_id, entry_id)


# Submissions


def _admin_submission(entry: ContestEntry) -> dict:
    return {
        "id": entry.id,
        "model_id": entry.model_id,
        "model_name": entry.model.name,
        "contest_id": entry.contest_id,
        "contest_title": entry.contest.title,
        "photo_url": entry.photo_url,
        "title": entry.title,
        "description": entry.description,
        "status": entry.status,
        "submitted_at": entry.submitted_at,
    }


@router.get("/submissions", response_model=AdminSubmissionPage)
def list_submissions(
    status: Optional[EntryStatus] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
):
    query = db.query(ContestEntry)
    if status is not None:
        query = query.filter(ContestEntry.status == status)
    query = query.order_by(
        ContestEntry.submitted_at.desc(), ContestEntry.id.desc()
    )

    result = paginate(query, page, limit)
    return {
        "submissions": [_admin_submission(e) for e in result["items"]],
        "total": result["total"],
        "page": result["page"],
        "total_pages": result["total_pages"],
    }


@router.get("/submissions/pending", response_model=List[AdminSubmission])
def list_pending_submissions(db: Session = Depends(get_db)):
    entries = (
        db.query(ContestEntry)
        .filter(ContestEntry.status == EntryStatus.PENDING)
        .order_by(ContestEntry.submitted_at, ContestEntry.id)
        .all()
    )
    return [_admin_submission(e) for e in entries]


@router.put("/submissions/{entry_id}", response_model=ModerationResponse)
def update_submission(
    entry_id: int, data: EntryModeration, db: Session = Depends(get_db)
):
    entry = moderate_entry(db, entry_id, data.status)
    return {
        "message": f"Submission {data.status.value} successfully",
        "submission": entry,
    }


@router.post(
    "/submissions/{entry_id}/approve", response_model=ModerationResponse
)
def approve_submission(entry_id: int, db: Session = Depends(get_db)):
    entry = moderate_entry(db, entry_id, EntryStatus.APPROVED)
    return {"message": "Submission approved", "submission": entry}


@router.post(
    "/submissions/{entry_id}/reject", response_model=ModerationResponse
)
def reject_submission(entry_id: int, db: Session = Depends(get_db)):
    entry = moderate_entry(db, entry_id, EntryStatus.REJECTED)
    return {"message": "Submission rejected", "submission": entry}


# Winners


@router.get("/winners", response_model=List[WinnerOverview])
def list_winners(db: Session = Depends(get_db)):
    """Completed contests with their winner, deciding any missing ones"""
    return ContestLifecycle(db).winner_overview()


@router.delete("/winners/{contest_id}", response_model=MessageResponse)
def delete_winner(contest_id: int, db: Session = Depends(get_db)):
    ContestLifecycle(db).remove_winner(contest_id)
    return {"message": "Winner record deleted successfully"}


# Prize requests


@router.get("/prize-requests", response_model=List[PrizeRequestResponse])
def list_prize_requests(
    status: Optional[PrizeRequestStatus] = None,
    db: Session = Depends(get_db),
):
    query = db.query(PrizeRequest)
    if status is not None:
        query = query.filter(PrizeRequest.status == status)
    return query.order_by(
        PrizeRequest.created_at.desc(), PrizeRequest.id.desc()
    ).all()


@router.put(
    "/prize-requests/{request_id}", response_model=PrizeRequestMutation
)
def update_prize_request(
    request_id: int, data: PrizeRequestUpdate, db: Session = Depends(get_db)
):
    request = db.get(PrizeRequest, request_id)
    if not request:
        raise NotFoundError("Prize request not found")

    if data.status != request.status:
        if data.status not in PRIZE_TRANSITIONS[request.status]:
            raise InvalidTransitionError(
                "prize request", request.status, data.status
            )
        request.status = data.status
    if data.admin_notes is not None:
        request.admin_notes = data.admin_notes
    db.commit()
    db.refresh(request)

    logger.info("Prize request %s is %s", request.id, request.status.value)
    return {"message": "Prize request updated", "request": request}


# Complaints


@router.get("/complaints", response_model=ComplaintPage)
def list_complaints(
    status: Optional[ComplaintStatus] = None,
    priority: Optional[ComplaintPriority] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
):
    query = db.query(Complaint)
    if status is not None:
        query = query.filter(Complaint.status == status)
    if priority is not None:
        query = query.filter(Complaint.priority == priority)
    query = query.order_by(Complaint.created_at.desc(), Complaint.id.desc())

    result = paginate(query, page, limit)
    return {
        "complaints": result["items"],
        "total": result["total"],
        "page": result["page"],
        "total_pages": result["total_pages"],
    }


@router.put("/complaints/{complaint_id}", response_model=ComplaintResponse)
def update_complaint(
    complaint_id: int, data: ComplaintUpdate, db: Session = Depends(get_db)
):
    complaint = db.get(Complaint, complaint_id)
    if not complaint:
        raise NotFoundError("Complaint not found")

    complaint.status = data.status
    if data.admin_notes is not None:
        complaint.admin_notes = data.admin_notes
    db.commit()
    db.refresh(complaint)
    return complaint


# Account


@router.put("/password", response_model=MessageResponse)
def change_password(
    data: PasswordChange,
    admin: User = Depends(get_current_admin),
    db: Session = Depends(get_db),
):
    if not verify_password(data.current_password, admin.password_hash):
        raise ValidationError("Current password is incorrect")

    admin.password_hash = get_password_hash(data.new_password)
    db.commit()
    logger.info("Admin %s changed their password", admin.id)
    return {"message": "Password updated successfully"}
