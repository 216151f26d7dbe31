from datetime import datetime, timedelta

from modelcontest.models.models import ContestStatus
from modelcontest.services.tally_service import TallyService

from conftest import (
    PASSWORD,
    auth_headers,
    make_contest,
    make_entry,
    make_model,
)


def contest_body(**overrides):
    start = datetime.utcnow()
    body = {
        "title": "Autumn Contest",
        "description": "Autumn photo contest",
        "start_date": start.isoformat(),
        "end_date": (start + timedelta(days=14)).isoformat(),
        "prize_amount": "500.00",
    }
    body.update(overrides)
    return body


def cast(db, contest, model, count, prefix):
    tally = TallyService(db)
    for i in range(count):
        tally.cast_vote(contest.id, model.id, f"{prefix}-{i}")


def test_admin_routes_require_admin(client, db):
    model = make_model(db, "Alice")
    assert client.get("/api/admin/stats").status_code == 401
    response = client.get(
        "/api/admin/stats", headers=auth_headers(model.user)
    )
    assert response.status_code == 403


def test_create_active_contest_completes_current(client, db, admin_headers):
    current = make_contest(db)

    response = client.post(
        "/api/admin/contests",
        json=contest_body(status="active"),
        headers=admin_headers,
    )

    assert response.status_code == 201
    assert response.json()["contest"]["status"] == "active"
    db.refresh(current)
    assert current.status == ContestStatus.COMPLETED
    active = client.get("/api/contests?status=active").json()
    assert len(active) == 1


def test_create_contest_rejects_inverted_dates(client, admin_headers):
    start = datetime.utcnow()
    response = client.post(
        "/api/admin/contests",
        json=contest_body(
            end_date=(start - timedelta(days=1)).isoformat()
        ),
        headers=admin_headers,
    )
    assert response.status_code == 422


def test_update_contest_invalid_transition(client, db, admin_headers):
    contest = make_contest(db, status=ContestStatus.COMPLETED)

    response = client.put(
        f"/api/admin/contests/{contest.id}",
        json={"status": "active"},
        headers=admin_headers,
    )

    assert response.status_code == 400
    assert response.json()["current"] == "completed"
    assert response.json()["requested"] == "active"


def test_update_contest_fields(client, db, admin_headers):
    contest = make_contest(db, status=ContestStatus.UPCOMING)

    response = client.put(
        f"/api/admin/contests/{contest.id}",
        json={"title": "Renamed contest", "status": "active"},
        headers=admin_headers,
    )

    assert response.status_code == 200
    assert response.json()["contest"]["title"] == "Renamed contest"
    assert response.json()["contest"]["status"] == "active"


def test_activate_and_complete_endpoints(client, db, admin_headers):
    first = make_contest(db)
    second = make_contest(db, status=ContestStatus.UPCOMING)

    activated = client.post(
        f"/api/admin/contests/{second.id}/activate", headers=admin_headers
    )
    completed = client.post(
        f"/api/admin/contests/{second.id}/complete", headers=admin_headers
    )

    assert activated.json()["contest"]["status"] == "active"
    assert completed.json()["contest"]["status"] == "completed"
    db.refresh(first)
    assert first.status == ContestStatus.COMPLETED


def test_set_winner_tie_then_choice(client, db, admin_headers):
    contest = make_contest(db)
    alice = make_model(db, "Alice")
    bob = make_model(db, "Bob")
    make_entry(db, contest, alice)
    entry_b = make_entry(db, contest, bob)
    cast(db, contest, alice, 4, "a")
    cast(db, contest, bob, 4, "b")
    url = f"/api/admin/contests/{contest.id}/set-winner"

    tie = client.post(url, headers=admin_headers)
    chosen = client.post(
        url, json={"entry_id": entry_b.id}, headers=admin_headers
    )

    assert tie.status_code == 409
    assert len(tie.json()["candidates"]) == 2
    assert chosen.status_code == 200
    assert chosen.json()["winner"]["model_id"] == bob.id
    assert chosen.json()["winner"]["votes"] == 4

    public = client.get(f"/api/contests/{contest.id}/winner").json()
    assert public["winner_name"] == "Bob"
    assert public["contest"]["winning_votes"] == 4


def test_winners_overview_decides_sole_leaders(client, db, admin_headers):
    contest = make_contest(db)
    alice = make_model(db, "Alice")
    bob = make_model(db, "Bob")
    make_entry(db, contest, alice)
    make_entry(db, contest, bob)
    cast(db, contest, alice, 5, "a")
    cast(db, contest, bob, 3, "b")
    contest.status = ContestStatus.COMPLETED
    db.commit()

    overview = client.get("/api/admin/winners", headers=admin_headers).json()

    assert overview[0]["winner"]["model_id"] == alice.id
    db.refresh(alice)
    assert alice.contests_won == 1

    removed = client.delete(
        f"/api/admin/winners/{contest.id}", headers=admin_headers
    )
    assert removed.status_code == 200
    db.refresh(alice)
    assert alice.contests_won == 0


def test_delete_contest(client, db, admin_headers):
    contest = make_contest(db)
    model = make_model(db, "Alice")
    make_entry(db, contest, model)

    response = client.delete(
        f"/api/admin/contests/{contest.id}", headers=admin_headers
    )

    assert response.status_code == 200
    assert client.get(f"/api/contests/{contest.id}").status_code == 404


def test_stats_and_submissions(client, db, admin_headers):
    contest = make_contest(db)
    model = make_model(db, "Alice")
    make_entry(db, contest, model)
    cast(db, contest, model, 2, "a")

    stats = client.get("/api/admin/stats", headers=admin_headers).json()
    submissions = client.get(
        "/api/admin/submissions?status=approved", headers=admin_headers
    ).json()
    pending = client.get(
        "/api/admin/submissions/pending", headers=admin_headers
    ).json()

    assert stats["total_contests"] == 1
    assert stats["active_contests"] == 1
    assert stats["approved_submissions"] == 1
    assert stats["total_models"] == 1
    assert stats["total_votes"] == 2
    assert submissions["total"] == 1
    assert submissions["submissions"][0]["model_name"] == "Alice"
    assert pending == []


def test_change_password(client, admin, admin_headers):
    wrong = client.put(
        "/api/admin/password",
        json={"current_password": "nope12345", "new_password": "newpass123"},
        headers=admin_headers,
    )
    changed = client.put(
        "/api/admin/password",
        json={"current_password": PASSWORD, "new_password": "newpass123"},
        headers=admin_headers,
    )
    login = client.post(
        "/api/auth/login",
        json={"email": admin.email, "password": "newpass123"},
    )

    assert wrong.status_code == 400
    assert changed.status_code == 200
    assert login.status_code == 200
    assert login.json()["model"] is None
