import os
import tempfile

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["SCHEDULER_ENABLED"] = "false"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["STRIPE_SECRET_KEY"] = "sk_test_dummy"
os.environ["STRIPE_WEBHOOK_SECRET"] = "whsec_test"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="modelcontest-uploads-")

from datetime import datetime, timedelta  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from modelcontest.config import settings  # noqa: E402
from modelcontest.database import (  # noqa: E402
    Base,
    SessionLocal,
    engine,
    init_db,
)
from modelcontest.main import app  # noqa: E402
from modelcontest.models.models import (  # noqa: E402
    Contest,
    ContestEntry,
    ContestStatus,
    EntryStatus,
    Model,
    User,
    UserRole,
)
from modelcontest.utils.security import (  # noqa: E402
    create_access_token,
    get_password_hash,
)

PASSWORD = "password123"


@pytest.fixture(autouse=True)
def reset_db(monkeypatch):
    Base.metadata.drop_all(bind=engine)
    init_db()
    monkeypatch.setattr(settings, "trust_proxy_headers", True)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    return TestClient(app)


def auth_headers(user: User) -> dict:
    token = create_access_token({"sub": str(user.id)})
    return {"Authorization": f"Bearer {token}"}


def make_user(db, email, role=UserRole.MODEL) -> User:
    user = User(
        email=email,
        password_hash=get_password_hash(PASSWORD),
        role=role,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def make_model(db, name="Model") -> Model:
    user = make_user(db, f"{name.lower().replace(' ', '.')}@example.com")
    model = Model(user_id=user.id, name=name)
    db.add(model)
    db.commit()
    db.refresh(model)
    return model


def make_contest(db, status=ContestStatus.ACTIVE, **fields) -> Contest:
    now = datetime.utcnow()
    values = {
        "title": "Summer Contest",
        "description": "Summer photo contest",
        "start_date": now - timedelta(days=1),
        "end_date": now + timedelta(days=7),
        "prize_amount": 100,
    }
    values.update(fields)
    contest = Contest(status=status, **values)
    db.add(contest)
    db.commit()
    db.refresh(contest)
    return contest


def make_entry(
    db, contest, model, status=EntryStatus.APPROVED
) -> ContestEntry:
    entry = ContestEntry(
        contest_id=contest.id,
        model_id=model.id,
        title=f"{model.name} entry",
        photo_url=f"/uploads/entries/{model.id}.jpg",
        status=status,
    )
    db.add(entry)
    db.commit()
    db.refresh(entry)
    return entry


@pytest.fixture
def admin(db):
    return make_user(db, "admin@example.com", role=UserRole.ADMIN)


@pytest.fixture
def admin_headers(admin):
    return auth_headers(admin)
