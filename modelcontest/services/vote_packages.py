from decimal import Decimal
from typing import List, Optional
from sqlalchemy.orm import Session
from ..models.models import VotePackage

# code -> (name, price, base votes, bonus votes)
CATALOG = {
    "bronze": ("Bronze Package", Decimal("9.99"), 50, 5),
    "silver": ("Silver Package", Decimal("19.99"), 120, 15),
    "gold": ("Gold Package", Decimal("39.99"), 300, 50),
    "diamond": ("Diamond Package", Decimal("79.99"), 750, 150),
    "platinum": ("Platinum Package", Decimal("149.99"), 1500, 400),
}


def seed_vote_packages(db: Session) -> None:
    """Insert any catalog package missing from the table"""
    existing = {code for (code,) in db.query(VotePackage.code).all()}
    for code, (name, price, votes, bonus) in CATALOG.items():
        if code in existing:
            continue
        db.add(
            VotePackage(
                code=code,
                name=name,
                price=price,
                vote_count=votes,
                bonus_votes=bonus,
                description=f"{votes} votes + {bonus} bonus votes",
            )
        )
    db.commit()


def list_packages(db: Session) -> List[VotePackage]:
    return (
        db.query(VotePackage)
        .filter(VotePackage.is_active.is_(True))
        .order_by(VotePackage.price)
        .all()
    )


def get_package(db: Session, code: str) -> Optional[VotePackage]:
    return (
        db.query(VotePackage)
        .filter(VotePackage.code == code, VotePackage.is_active.is_(True))
        .first()
    )
