"""Contest lifecycle manager.

Owns every contest status change. At most one contest may be ``active``
at a time: activating a contest completes the previously active ones
in the same transaction, with the active rows locked where the
database supports ``SELECT ... FOR UPDATE``.
"""

import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from ..exceptions import (
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
    WinnerTieError,
)
from ..models.models import (
    Contest,
    ContestEntry,
    ContestStatus,
    EntryStatus,
    Model,
    Vote,
)
from .tally_service import TallyService

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS = {
    ContestStatus.UPCOMING: {ContestStatus.ACTIVE, ContestStatus.COMPLETED},
    ContestStatus.ACTIVE: {ContestStatus.COMPLETED},
    ContestStatus.COMPLETED: set(),
}


@dataclass
class WinnerCandidate:
    model_id: int
    entry_id: int
    title: str
    photo_url: str
    votes: int


@dataclass
class WinnerResult:
    contest_id: int
    winner: Optional[WinnerCandidate] = None
    candidates: List[WinnerCandidate] = field(default_factory=list)

    @property
    def is_tie(self) -> bool:
        return self.winner is None and len(self.candidates) > 1


def utcnow() -> datetime:
    # Contest dates are stored as naive UTC
    return datetime.utcnow()


class ContestLifecycle:
    def __init__(self, db: Session):
        self.db = db

    def get(self, contest_id: int) -> Contest:
        contest = self.db.get(Contest, contest_id)
        if contest is None:
            raise NotFoundError("Contest not found")
        return contest

    # ------------------------------------------------------------------
    # Status transitions
    # ------------------------------------------------------------------

    def create(self, **fields) -> Contest:
        """Create a contest; creating it as active applies activation"""
        status = ContestStatus(fields.pop("status", ContestStatus.UPCOMING))
        _check_dates(fields["start_date"], fields["end_date"])

        contest = Contest(status=ContestStatus.UPCOMING, **fields)
        self.db.add(contest)
        self.db.flush()

        if status == ContestStatus.ACTIVE:
            self._activate(contest)
        elif status == ContestStatus.COMPLETED:
            self._transition(contest, ContestStatus.COMPLETED)

        self.db.commit()
        self.db.refresh(contest)
        logger.info(
            "Created contest %s (%s)", contest.id, contest.status.value
        )
        return contest

    def update(self, contest_id: int, **fields) -> Contest:
        """Edit contest fields and apply a status change if requested"""
        contest = self.get(contest_id)
        status = fields.pop("status", None)

        for name, value in fields.items():
            setattr(contest, name, value)
        _check_dates(contest.start_date, contest.end_date)

        if status is not None:
            status = ContestStatus(status)
            if status == ContestStatus.ACTIVE:
                self._activate(contest)
            else:
                self._transition(contest, status)

        self.db.commit()
        self.db.refresh(contest)
        return contest

    def activate(self, contest_id: int) -> Contest:
        """Make a contest the single active one"""
        contest = self.get(contest_id)
        self._activate(contest)
        self.db.commit()
        self.db.refresh(contest)
        return contest

    def complete(self, contest_id: int) -> Contest:
        contest = self.get(contest_id)
        self._transition(contest, ContestStatus.COMPLETED)
        self.db.commit()
        self.db.refresh(contest)
        return contest

    def complete_expired(self, now: Optional[datetime] = None) -> List[int]:
        """Complete every unfinished contest whose end date has passed"""
        now = now or utcnow()
        expired = (
            self.db.query(Contest)
            .filter(
                Contest.status != ContestStatus.COMPLETED,
                Contest.end_date <= now,
            )
            .order_by(Contest.id)
            .with_for_update()
            .all()
        )
        for contest in expired:
            self._transition(contest, ContestStatus.COMPLETED)
        self.db.commit()

        completed = [c.id for c in expired]
        if completed:
            logger.info("Completed expired contests: %s", completed)
        return completed

    def delete(self, contest_id: int) -> None:
        """Delete a contest with its entries, ballots and prize requests"""
        contest = self.get(contest_id)
        model_ids = {e.model_id for e in contest.entries}
        self.db.delete(contest)
        self.db.flush()

        tally = TallyService(self.db)
        for model_id in sorted(model_ids):
            tally.refresh_model_counters(model_id)
        self.db.commit()
        logger.info("Deleted contest %s", contest_id)

    def _activate(self, contest: Contest) -> None:
        if contest.status == ContestStatus.ACTIVE:
            return
        _check_transition(contest.status, ContestStatus.ACTIVE)

        others = (
            self.db.query(Contest)
            .filter(
                Contest.status == ContestStatus.ACTIVE,
                Contest.id != contest.id,
            )
            .with_for_update()
            .all()
        )
        for other in others:
            self._transition(other, ContestStatus.COMPLETED)

        contest.status = ContestStatus.ACTIVE
        self.db.flush()
        self._refresh_counters(contest)
        logger.info(
            "Activated contest %s, completed %s",
            contest.id,
            [o.id for o in others],
        )

    def _transition(self, contest: Contest, target: ContestStatus) -> None:
        if contest.status == target:
            return
        if target == ContestStatus.ACTIVE:
            self._activate(contest)
            return
        _check_transition(contest.status, target)
        was_active = contest.status == ContestStatus.ACTIVE
        contest.status = target
        self.db.flush()
        if was_active:
            self._refresh_counters(contest)

    def _refresh_counters(self, contest: Contest) -> None:
        # Active-contest counters depend on which contest is active
        tally = TallyService(self.db)
        for model_id in sorted({e.model_id for e in contest.entries}):
            tally.refresh_model_counters(model_id)

    # ------------------------------------------------------------------
    # Winners
    # ------------------------------------------------------------------

    def determine_winner(self, contest_id: int) -> Optional[WinnerResult]:
        """Attach the sole top-voted entry of a completed contest.

        Ties attach nothing and surface the tied entries as candidates.
        A contest that already has a winner returns it unchanged.
        """
        contest = self.get(contest_id)
        if contest.status != ContestStatus.COMPLETED:
            raise InvalidTransitionError(
                "contest", contest.status, "winner determination"
            )

        if contest.winner_entry_id is not None:
            entry = self.db.get(ContestEntry, contest.winner_entry_id)
            if entry is not None:
                winner = _candidate(entry, votes=contest.winning_votes)
                return WinnerResult(contest.id, winner, [winner])

        candidates = self.top_candidates(contest.id)
        if not candidates:
            return None
        if len(candidates) > 1:
            logger.info(
                "Contest %s is tied between entries %s",
                contest.id,
                [c.entry_id for c in candidates],
            )
            return WinnerResult(contest.id, None, candidates)

        winner = candidates[0]
        self._attach_winner(contest, winner)
        self.db.commit()
        return WinnerResult(contest.id, winner, candidates)

    def set_winner(
        self, contest_id: int, entry_id: Optional[int] = None
    ) -> WinnerResult:
        """Record the winner manually and archive the contest's tallies.

        Nothing is changed unless a winner can be chosen; the contest is
        completed in the same commit that records the winner.
        """
        contest = self.get(contest_id)
        if contest.winner_entry_id is not None and entry_id is None:
            return self.determine_winner(contest.id)
        if contest.status != ContestStatus.COMPLETED:
            _check_transition(contest.status, ContestStatus.COMPLETED)

        candidates = self.top_candidates(contest.id)
        if not candidates:
            raise ValidationError("No approved entries for this contest")

        if entry_id is None:
            if len(candidates) > 1:
                raise WinnerTieError([asdict(c) for c in candidates])
            winner = candidates[0]
        else:
            matches = [c for c in candidates if c.entry_id == entry_id]
            if not matches:
                raise ValidationError(
                    "Entry is not among the top-voted entries",
                    entry_id=entry_id,
                )
            winner = matches[0]

        self._transition(contest, ContestStatus.COMPLETED)
        if contest.winner_entry_id is not None:
            self._detach_winner(contest)
        self._attach_winner(contest, winner)
        contest.winner_announced = True

        # Archive: the contest's entry tallies start from zero again
        for entry in contest.entries:
            entry.votes = 0

        self.db.commit()
        logger.info(
            "Winner of contest %s set to model %s (entry %s, %d votes)",
            contest.id,
            winner.model_id,
            winner.entry_id,
            winner.votes,
        )
        return WinnerResult(contest.id, winner, candidates)

    def remove_winner(self, contest_id: int) -> Contest:
        contest = self.get(contest_id)
        if contest.winner_model_id is None:
            raise NotFoundError("Winner not found")
        self._detach_winner(contest)
        self.db.commit()
        self.db.refresh(contest)
        return contest

    def top_candidates(self, contest_id: int) -> List[WinnerCandidate]:
        """Approved entries sharing the highest ballot total.

        Totals come from the ballot rows, so they are unaffected by the
        archival reset of the entries' vote counters.
        """
        total = func.coalesce(func.sum(Vote.weight), 0)
        rows = (
            self.db.query(ContestEntry, total.label("ballots"))
            .outerjoin(Vote, Vote.entry_id == ContestEntry.id)
            .filter(
                ContestEntry.contest_id == contest_id,
                ContestEntry.status == EntryStatus.APPROVED,
            )
            .group_by(ContestEntry.id)
            .order_by(total.desc(), ContestEntry.id)
            .all()
        )
        if not rows:
            return []
        top = int(rows[0][1])
        return [
            _candidate(entry, votes=int(votes))
            for entry, votes in rows
            if int(votes) == top
        ]

    def _attach_winner(self, contest: Contest, winner: WinnerCandidate):
        contest.winner_model_id = winner.model_id
        contest.winner_entry_id = winner.entry_id
        contest.winning_votes = winner.votes

        model = self.db.get(Model, winner.model_id)
        model.contests_won = (model.contests_won or 0) + 1
        model.active_contest_votes = 0
        self.db.flush()

    def _detach_winner(self, contest: Contest) -> None:
        model = self.db.get(Model, contest.winner_model_id)
        if model is not None:
            model.contests_won = max((model.contests_won or 0) - 1, 0)
        contest.winner_model_id = None
        contest.winner_entry_id = None
        contest.winning_votes = 0
        contest.winner_announced = False
        self.db.flush()

    def winner_overview(self) -> List[dict]:
        """Completed contests with their winner or tied candidates"""
        contests = (
            self.db.query(Contest)
            .filter(Contest.status == ContestStatus.COMPLETED)
            .order_by(Contest.end_date.desc(), Contest.id.desc())
            .all()
        )
        overview = []
        for contest in contests:
            result = self.determine_winner(contest.id)
            overview.append(
                {
                    "contest_id": contest.id,
                    "contest_title": contest.title,
                    "status": contest.status,
                    "winner_announced": contest.winner_announced,
                    "winner": result.winner if result else None,
                    "candidates": result.candidates if result else [],
                }
            )
        return overview

    def stats(self) -> dict:
        def count(query):
            return query.scalar() or 0

        entries = self.db.query(func.count(ContestEntry.id))
        return {
            "total_contests": count(self.db.query(func.count(Contest.id))),
            "active_contests": count(
                self.db.query(func.count(Contest.id)).filter(
                    Contest.status == ContestStatus.ACTIVE
                )
            ),
            "total_submissions": count(entries),
            "pending_submissions": count(
                entries.filter(ContestEntry.status == EntryStatus.PENDING)
            ),
            "approved_submissions": count(
                entries.filter(ContestEntry.status == EntryStatus.APPROVED)
            ),
            "rejected_submissions": count(
                entries.filter(ContestEntry.status == EntryStatus.REJECTED)
            ),
        }


def _candidate(entry: ContestEntry, votes: Optional[int] = None):
    return WinnerCandidate(
        model_id=entry.model_id,
        entry_id=entry.id,
        title=entry.title,
        photo_url=entry.photo_url,
        votes=entry.votes if votes is None else votes,
    )


def _check_transition(current: ContestStatus, target: ContestStatus):
    if target not in ALLOWED_TRANSITIONS[current]:
        raise InvalidTransitionError("contest", current, target)


def _check_dates(start: datetime, end: datetime) -> None:
    if end <= start:
        raise ValidationError(
            "End date must be after start date", field="end_date"
        )
