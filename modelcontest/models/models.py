import enum
from sqlalchemy import (
    Boolean,
    Column,
    Integer,
    Numeric,
    String,
    Text,
    DateTime,
    Enum,
    ForeignKey,
    UniqueConstraint,
)
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from ..database import Base


class UserRole(str, enum.Enum):
    MODEL = "model"
    ADMIN = "admin"


class ContestStatus(str, enum.Enum):
    UPCOMING = "upcoming"
    ACTIVE = "active"
    COMPLETED = "completed"


class EntryStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class VoteType(str, enum.Enum):
    FREE = "free"
    PREMIUM = "premium"
    PACKAGE = "package"


class PrizeRequestStatus(str, enum.Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    REJECTED = "rejected"


class ComplaintStatus(str, enum.Enum):
    NEW = "new"
    INVESTIGATING = "investigating"
    RESOLVED = "resolved"
    DISMISSED = "dismissed"


class ComplaintPriority(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


def _enum_column(enum_cls, default):
    # Store the lowercase values rather than the member names
    return Column(
        Enum(
            enum_cls,
            native_enum=False,
            length=20,
            values_callable=lambda e: [m.value for m in e],
            validate_strings=True,
        ),
        nullable=False,
        default=default,
    )


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), unique=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    role = _enum_column(UserRole, UserRole.MODEL)
    is_verified = Column(Boolean, default=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(
        DateTime, server_default=func.now(), onupdate=func.now()
    )

    model = relationship("Model", back_populates="user", uselist=False)


class Model(Base):
    __tablename__ = "models"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(
        Integer, ForeignKey("users.id"), unique=True, nullable=False
    )
    name = Column(String(100), nullable=False)
    stage_name = Column(String(100))
    bio = Column(Text)
    profile_image = Column(String(500))
    instagram_handle = Column(String(100))
    location = Column(String(100))
    date_of_birth = Column(DateTime)
    total_votes = Column(Integer, nullable=False, default=0)
    active_contest_votes = Column(Integer, nullable=False, default=0)
    contests_won = Column(Integer, nullable=False, default=0)
    contests_joined = Column(Integer, nullable=False, default=0)
    current_ranking = Column(Integer)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(
        DateTime, server_default=func.now(), onupdate=func.now()
    )

    user = relationship("User", back_populates="model")
    entries = relationship("ContestEntry", back_populates="model")


class Contest(Base):
    __tablename__ = "contests"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(200), nullable=False)
    description = Column(Text)
    start_date = Column(DateTime, nullable=False)
    end_date = Column(DateTime, nullable=False)
    prize_amount = Column(Numeric(10, 2), nullable=False, default=0)
    prize_currency = Column(String(10), nullable=False, default="USD")
    banner_image = Column(String(500))
    status = _enum_column(ContestStatus, ContestStatus.UPCOMING)
    max_participants = Column(Integer)
    winner_model_id = Column(Integer, ForeignKey("models.id"))
    winner_entry_id = Column(Integer)
    winning_votes = Column(Integer, nullable=False, default=0)
    winner_announced = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(
        DateTime, server_default=func.now(), onupdate=func.now()
    )

    entries = relationship(
        "ContestEntry", back_populates="contest", cascade="all, delete-orphan"
    )
    prize_requests = relationship(
        "PrizeRequest", back_populates="contest", cascade="all, delete-orphan"
    )
    winner = relationship("Model")


class ContestEntry(Base):
    __tablename__ = "contest_entries"

    id = Column(Integer, primary_key=True, autoincrement=True)
    contest_id = Column(
        Integer, ForeignKey("contests.id", ondelete="CASCADE"), nullable=False
    )
    model_id = Column(Integer, ForeignKey("models.id"), nullable=False)
    title = Column(String(200), nullable=False)
    description = Column(Text)
    photo_url = Column(String(500), nullable=False)
    votes = Column(Integer, nullable=False, default=0)
    ranking = Column(Integer)
    status = _enum_column(EntryStatus, EntryStatus.PENDING)
    submitted_at = Column(DateTime, server_default=func.now())
    approved_at = Column(DateTime)

    contest = relationship("Contest", back_populates="entries")
    model = relationship("Model", back_populates="entries")
    ballots = relationship(
        "Vote", back_populates="entry", cascade="all, delete-orphan"
    )

    __table_args__ = (
        UniqueConstraint("contest_id", "model_id", name="unique_model_entry"),
    )


class Vote(Base):
    __tablename__ = "votes"

    id = Column(Integer, primary_key=True, autoincrement=True)
    entry_id = Column(
        Integer,
        ForeignKey("contest_entries.id", ondelete="CASCADE"),
        nullable=False,
    )
    contest_id = Column(
        Integer, ForeignKey("contests.id", ondelete="CASCADE"), nullable=False
    )
    voter_key = Column(String(128), nullable=False)
    vote_type = _enum_column(VoteType, VoteType.FREE)
    weight = Column(Integer, nullable=False, default=1)
    package_id = Column(Integer, ForeignKey("vote_packages.id"))
    created_at = Column(DateTime, server_default=func.now())

    entry = relationship("ContestEntry", back_populates="ballots")
    package = relationship("VotePackage")

    __table_args__ = (
        UniqueConstraint(
            "contest_id", "voter_key", name="unique_voter_contest"
        ),
    )


class VotePackage(Base):
    __tablename__ = "vote_packages"

    id = Column(Integer, primary_key=True, autoincrement=True)
    code = Column(String(20), unique=True, nullable=False)
    name = Column(String(100), nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    currency = Column(String(10), nullable=False, default="USD")
    vote_count = Column(Integer, nullable=False)
    bonus_votes = Column(Integer, nullable=False, default=0)
    description = Column(Text)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, server_default=func.now())

    @property
    def total_votes(self) -> int:
        return self.vote_count + self.bonus_votes


class PrizeRequest(Base):
    __tablename__ = "prize_requests"

    id = Column(Integer, primary_key=True, autoincrement=True)
    contest_id = Column(
        Integer, ForeignKey("contests.id", ondelete="CASCADE"), nullable=False
    )
    model_id = Column(
        Integer, ForeignKey("models.id", ondelete="CASCADE"), nullable=False
    )
    user_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    request_message = Column(Text)
    contact_info = Column(Text, nullable=False)
    status = _enum_column(PrizeRequestStatus, PrizeRequestStatus.PENDING)
    admin_notes = Column(Text)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(
        DateTime, server_default=func.now(), onupdate=func.now()
    )

    contest = relationship("Contest", back_populates="prize_requests")
    model = relationship("Model")
    user = relationship("User")

    __table_args__ = (
        UniqueConstraint(
            "contest_id", "model_id", name="unique_contest_prize_request"
        ),
    )


class Complaint(Base):
    __tablename__ = "complaints"

    id = Column(Integer, primary_key=True, autoincrement=True)
    reporter_name = Column(String(100), nullable=False)
    reporter_email = Column(String(255), nullable=False)
    type = Column(String(50), nullable=False)
    subject = Column(String(200), nullable=False)
    description = Column(Text, nullable=False)
    target_type = Column(String(20), nullable=False)
    target_id = Column(String(50), nullable=False)
    target_name = Column(String(200))
    status = _enum_column(ComplaintStatus, ComplaintStatus.NEW)
    priority = _enum_column(ComplaintPriority, ComplaintPriority.MEDIUM)
    admin_notes = Column(Text)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(
        DateTime, server_default=func.now(), onupdate=func.now()
    )
