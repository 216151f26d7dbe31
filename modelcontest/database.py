import logging
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool
from .config import settings

logger = logging.getLogger(__name__)


def _engine_kwargs(url: str) -> dict:
    if not url.startswith("sqlite"):
        return {"pool_pre_ping": True}
    kwargs = {"connect_args": {"check_same_thread": False}}
    # In-memory databases only exist on a single connection
    if url in ("sqlite://", "sqlite:///:memory:"):
        kwargs["poolclass"] = StaticPool
    return kwargs


engine = create_engine(
    settings.database_url, **_engine_kwargs(settings.database_url)
)
SessionLocal = sessionmaker(
    bind=engine, autoflush=False, expire_on_commit=False
)

Base = declarative_base()


# Dependency for FastAPI routes
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db():
    """Create tables, seed the vote package catalog and the admin account"""
    from .models import models  # noqa: F401  registers the tables
    from .services.vote_packages import seed_vote_packages
    from .utils.security import ensure_admin

    Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        seed_vote_packages(db)
        if settings.admin_email and settings.admin_password:
            ensure_admin(db, settings.admin_email, settings.admin_password)
    finally:
        db.close()
    logger.info("Database initialised")
