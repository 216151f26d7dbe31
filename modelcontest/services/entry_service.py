"""Contest entry submission and moderation."""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..exceptions import ConflictError, NotFoundError, ValidationError
from ..models.models import (
    Contest,
    ContestEntry,
    ContestStatus,
    EntryStatus,
    Model,
)
from .tally_service import TallyService

logger = logging.getLogger(__name__)


def submit_entry(
    db: Session,
    model: Model,
    contest_id: int,
    title: str,
    photo_url: str,
    description: Optional[str] = None,
) -> ContestEntry:
    """Create a pending entry for a model in an open contest"""
    contest = db.get(Contest, contest_id)
    if contest is None:
        raise NotFoundError("Contest not found")
    if contest.status == ContestStatus.COMPLETED:
        raise ValidationError("Contest is no longer accepting entries")

    existing = (
        db.query(ContestEntry)
        .filter(
            ContestEntry.contest_id == contest_id,
            ContestEntry.model_id == model.id,
        )
        .first()
    )
    if existing:
        raise ConflictError("Already submitted to this contest")

    if contest.max_participants:
        taken = (
            db.query(func.count(ContestEntry.id))
            .filter(
                ContestEntry.contest_id == contest_id,
                ContestEntry.status != EntryStatus.REJECTED,
            )
            .scalar()
        )
        if taken >= contest.max_participants:
            raise ValidationError("Contest is full")

    entry = ContestEntry(
        contest_id=contest_id,
        model_id=model.id,
        title=title,
        description=description,
        photo_url=photo_url,
        status=EntryStatus.PENDING,
    )
    db.add(entry)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("Already submitted to this contest")
    db.refresh(entry)
    logger.info(
        "Entry %s submitted to contest %s by model %s",
        entry.id,
        contest_id,
        model.id,
    )
    return entry


def moderate_entry(
    db: Session, entry_id: int, status: EntryStatus
) -> ContestEntry:
    """Approve or reject an entry and bring the tallies up to date"""
    if status not in (EntryStatus.APPROVED, EntryStatus.REJECTED):
        raise ValidationError("Invalid status")

    entry = db.get(ContestEntry, entry_id)
    if entry is None:
        raise NotFoundError("Submission not found")
    if entry.status == status:
        return entry

    first_approval = status == EntryStatus.APPROVED and not entry.approved_at
    entry.status = status
    if status == EntryStatus.APPROVED:
        if first_approval:
            entry.approved_at = datetime.utcnow()
            entry.model.contests_joined = (
                entry.model.contests_joined or 0
            ) + 1
    db.flush()

    tally = TallyService(db)
    if entry.contest.status == ContestStatus.ACTIVE:
        tally.recompute_contest_tallies(entry.contest_id, commit=False)
    else:
        # Entry votes of finished contests are archival; only the
        # model's all-time counters follow the approved set
        if status != EntryStatus.APPROVED:
            entry.votes = 0
            entry.ranking = None
        tally.refresh_model_counters(entry.model_id)
    db.commit()
    db.refresh(entry)

    logger.info("Entry %s %s", entry.id, status.value)
    return entry
