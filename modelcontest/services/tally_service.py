"""Vote ledger and tally engine.

Ballots are stored one row per vote. Every aggregate shown to users
(entry votes, entry ranking, model counters, leaderboards) is derived
from those rows by ``recompute_contest_tallies`` rather than by
incrementing cached counters, so recomputation is idempotent and
concurrent passes converge on the same result.
"""

import logging
from typing import List, Optional, Tuple

from sqlalchemy import and_, case, distinct, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..exceptions import (
    ContestNotActiveError,
    DuplicateVoteError,
    EntryNotFoundError,
    NotFoundError,
    ValidationError,
)
from ..models.models import (
    Contest,
    ContestEntry,
    ContestStatus,
    EntryStatus,
    Model,
    Vote,
    VoteType,
)

logger = logging.getLogger(__name__)


class TallyService:
    def __init__(self, db: Session):
        self.db = db

    # ------------------------------------------------------------------
    # Ballots
    # ------------------------------------------------------------------

    def cast_vote(
        self,
        contest_id: int,
        model_id: int,
        voter_key: str,
        vote_type: VoteType = VoteType.FREE,
        weight: int = 1,
        package_id: Optional[int] = None,
    ) -> Vote:
        """Record one ballot for a model's entry and refresh the tallies.

        A voter key may hold a single ballot per contest, whichever
        entry it targets. The ballot insert and the recomputation are
        committed together.
        """
        if weight < 1:
            raise ValidationError("Vote weight must be at least 1")

        contest = self.db.get(Contest, contest_id)
        if contest is None:
            raise NotFoundError("Contest not found")
        if contest.status != ContestStatus.ACTIVE:
            raise ContestNotActiveError(contest_id)

        existing = self.get_voter_ballot(contest_id, voter_key)
        if existing is not None:
            raise DuplicateVoteError(
                same_target=existing.entry.model_id == model_id
            )

        entry = self._approved_entry(contest_id, model_id)
        if entry is None:
            raise EntryNotFoundError()

        vote = Vote(
            entry_id=entry.id,
            contest_id=contest_id,
            voter_key=voter_key,
            vote_type=vote_type,
            weight=weight,
            package_id=package_id,
        )
        self.db.add(vote)
        try:
            self.db.flush()
        except IntegrityError:
            # Another request from the same voter won the race
            self.db.rollback()
            existing = self.get_voter_ballot(contest_id, voter_key)
            same_target = (
                existing is not None and existing.entry.model_id == model_id
            )
            raise DuplicateVoteError(same_target=same_target)

        self.recompute_contest_tallies(contest_id, commit=False)
        self.db.commit()
        self.db.refresh(vote)

        logger.info(
            "Vote %s cast in contest %s for entry %s (%s x%d) by %s",
            vote.id,
            contest_id,
            entry.id,
            vote.vote_type.value,
            weight,
            voter_key,
        )
        return vote

    def get_voter_ballot(
        self, contest_id: int, voter_key: str
    ) -> Optional[Vote]:
        """The ballot a voter key already holds in a contest, if any"""
        return (
            self.db.query(Vote)
            .join(ContestEntry, Vote.entry_id == ContestEntry.id)
            .filter(
                ContestEntry.contest_id == contest_id,
                Vote.voter_key == voter_key,
            )
            .first()
        )

    def vote_status(
        self, contest_id: int, voter_key: str
    ) -> Tuple[bool, Optional[int]]:
        ballot = self.get_voter_ballot(contest_id, voter_key)
        if ballot is None:
            return False, None
        return True, ballot.entry.model_id

    # ------------------------------------------------------------------
    # Aggregation
    # ------------------------------------------------------------------

    def recompute_contest_tallies(self, contest_id: int, commit: bool = True):
        """Rewrite entry votes, rankings and model counters for a contest"""
        entries = (
            self.db.query(ContestEntry)
            .filter(ContestEntry.contest_id == contest_id)
            .order_by(ContestEntry.id)
            .all()
        )
        approved = [e for e in entries if e.status == EntryStatus.APPROVED]

        counts = {}
        if approved:
            counts = dict(
                self.db.query(
                    Vote.entry_id, func.coalesce(func.sum(Vote.weight), 0)
                )
                .filter(Vote.entry_id.in_([e.id for e in approved]))
                .group_by(Vote.entry_id)
                .all()
            )

        for entry in entries:
            if entry.status == EntryStatus.APPROVED:
                entry.votes = int(counts.get(entry.id, 0))
            else:
                entry.votes = 0
                entry.ranking = None

        ordered = sorted(approved, key=lambda e: (-e.votes, e.id))
        for position, entry in enumerate(ordered, start=1):
            entry.ranking = position

        self.db.flush()
        for model_id in sorted({e.model_id for e in entries}):
            self.refresh_model_counters(model_id)

        if commit:
            self.db.commit()
        logger.debug(
            "Recomputed tallies for contest %s (%d approved entries)",
            contest_id,
            len(approved),
        )

    def refresh_model_counters(self, model_id: int) -> None:
        """Derive a model's vote counters from ballot rows"""
        model = self.db.get(Model, model_id)
        if model is None:
            return

        weight_sum = func.coalesce(func.sum(Vote.weight), 0)
        base = (
            self.db.query(weight_sum)
            .join(ContestEntry, Vote.entry_id == ContestEntry.id)
            .filter(
                ContestEntry.model_id == model_id,
                ContestEntry.status == EntryStatus.APPROVED,
            )
        )
        model.total_votes = int(base.scalar() or 0)
        model.active_contest_votes = int(
            base.join(Contest, ContestEntry.contest_id == Contest.id)
            .filter(Contest.status == ContestStatus.ACTIVE)
            .scalar()
            or 0
        )

    def contest_total_votes(self, contest_id: int) -> int:
        return int(
            self.db.query(func.coalesce(func.sum(Vote.weight), 0))
            .filter(Vote.contest_id == contest_id)
            .scalar()
            or 0
        )

    # ------------------------------------------------------------------
    # Leaderboards
    # ------------------------------------------------------------------

    def active_contest_leaderboard(self, limit: int = 3) -> List[dict]:
        """Top models by approved entry votes in active contests"""
        total = func.coalesce(func.sum(ContestEntry.votes), 0)
        rows = (
            self.db.query(
                Model,
                total.label("total_votes"),
                func.count(distinct(ContestEntry.contest_id)).label(
                    "active_contests"
                ),
                func.max(Contest.title).label("latest_contest_title"),
            )
            .join(
                ContestEntry,
                and_(
                    ContestEntry.model_id == Model.id,
                    ContestEntry.status == EntryStatus.APPROVED,
                ),
            )
            .join(
                Contest,
                and_(
                    Contest.id == ContestEntry.contest_id,
                    Contest.status == ContestStatus.ACTIVE,
                ),
            )
            .filter(Model.is_active.is_(True))
            .group_by(Model.id)
            .having(total > 0)
            .order_by(total.desc(), Model.id)
            .limit(limit)
            .all()
        )
        return [
            _leaderboard_row(
                model,
                votes,
                active_contests=active_contests,
                latest_contest_title=title,
            )
            for model, votes, active_contests, title in rows
        ]

    def overall_leaderboard(self, limit: int = 50) -> List[dict]:
        """All active models ranked by their active-contest votes"""
        active_votes = func.coalesce(
            func.sum(
                case((Contest.id.isnot(None), ContestEntry.votes), else_=0)
            ),
            0,
        )
        rows = (
            self.db.query(Model, active_votes.label("total_votes"))
            .outerjoin(
                ContestEntry,
                and_(
                    ContestEntry.model_id == Model.id,
                    ContestEntry.status == EntryStatus.APPROVED,
                ),
            )
            .outerjoin(
                Contest,
                and_(
                    Contest.id == ContestEntry.contest_id,
                    Contest.status == ContestStatus.ACTIVE,
                ),
            )
            .filter(Model.is_active.is_(True))
            .group_by(Model.id)
            .order_by(active_votes.desc(), Model.id)
            .limit(limit)
            .all()
        )
        return [_leaderboard_row(model, votes) for model, votes in rows]

    def top_models(self, limit: int = 10) -> List[Model]:
        return (
            self.db.query(Model)
            .filter(Model.is_active.is_(True))
            .order_by(Model.total_votes.desc(), Model.id)
            .limit(limit)
            .all()
        )

    def _approved_entry(
        self, contest_id: int, model_id: int
    ) -> Optional[ContestEntry]:
        return (
            self.db.query(ContestEntry)
            .filter(
                ContestEntry.contest_id == contest_id,
                ContestEntry.model_id == model_id,
                ContestEntry.status == EntryStatus.APPROVED,
            )
            .first()
        )


def _leaderboard_row(model: Model, votes, **extra) -> dict:
    row = {
        "id": model.id,
        "name": model.name,
        "stage_name": model.stage_name,
        "profile_image": model.profile_image,
        "location": model.location,
        "bio": model.bio,
        "contests_won": model.contests_won,
        "contests_joined": model.contests_joined,
        "total_votes": int(votes or 0),
    }
    row.update(extra)
    return row
