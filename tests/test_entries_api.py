import io
import os

from modelcontest.config import settings
from modelcontest.models.models import ContestStatus, EntryStatus

from conftest import auth_headers, make_contest, make_entry, make_model


def submit(
    client,
    headers,
    contest_id,
    filename="photo.jpg",
    data=None,
    content_type="image/jpeg",
):
    file_data = io.BytesIO(data if data is not None else b"fakeimagebytes")
    return client.post(
        "/api/contest-entries",
        data={"contest_id": str(contest_id), "title": "My best shot"},
        files={"image": (filename, file_data, content_type)},
        headers=headers,
    )


def test_submit_valid_image(client, db):
    contest = make_contest(db)
    model = make_model(db, "Alice")

    response = submit(client, auth_headers(model.user), contest.id)

    assert response.status_code == 201
    entry = response.json()["entry"]
    assert entry["status"] == "pending"
    assert entry["photo_url"].startswith("/uploads/entries/")
    stored = entry["photo_url"][len("/uploads/"):]
    assert os.path.exists(os.path.join(settings.upload_dir, stored))


def test_submit_invalid_format(client, db):
    contest = make_contest(db)
    model = make_model(db, "Alice")

    response = submit(
        client,
        auth_headers(model.user),
        contest.id,
        filename="notes.txt",
        content_type="text/plain",
    )

    assert response.status_code == 400
    assert response.json()["detail"] == "Only image files are allowed!"


def test_submit_oversized_file(client, db):
    contest = make_contest(db)
    model = make_model(db, "Alice")

    response = submit(
        client,
        auth_headers(model.user),
        contest.id,
        data=b"0" * (settings.max_file_size + 1),
    )

    assert response.status_code == 413
    assert response.json()["detail"] == "File too large"


def test_submit_twice_to_same_contest(client, db):
    contest = make_contest(db)
    model = make_model(db, "Alice")
    headers = auth_headers(model.user)
    submit(client, headers, contest.id)

    response = submit(client, headers, contest.id)

    assert response.status_code == 409
    assert response.json()["detail"] == "Already submitted to this contest"


def test_submit_to_completed_contest(client, db):
    contest = make_contest(db, status=ContestStatus.COMPLETED)
    model = make_model(db, "Alice")

    response = submit(client, auth_headers(model.user), contest.id)

    assert response.status_code == 400


def test_submit_requires_login(client, db):
    contest = make_contest(db)
    assert submit(client, {}, contest.id).status_code == 401


def test_approve_counts_contest_joined_once(client, db, admin_headers):
    contest = make_contest(db)
    model = make_model(db, "Alice")
    entry = make_entry(db, contest, model, status=EntryStatus.PENDING)
    url = f"/api/admin/submissions/{entry.id}"

    first = client.post(f"{url}/approve", headers=admin_headers)
    client.post(f"{url}/reject", headers=admin_headers)
    again = client.put(url, json={"status": "approved"}, headers=admin_headers)

    assert first.status_code == 200
    assert first.json()["submission"]["status"] == "approved"
    assert again.json()["message"] == "Submission approved successfully"
    db.refresh(model)
    assert model.contests_joined == 1


def test_rejecting_entry_in_active_contest_reruns_tally(
    client, db, admin_headers
):
    contest = make_contest(db)
    alice = make_model(db, "Alice")
    bob = make_model(db, "Bob")
    entry_a = make_entry(db, contest, alice)
    entry_b = make_entry(db, contest, bob)
    ballots = [("1.1.1.1", alice), ("1.1.1.2", alice), ("1.1.1.3", bob)]
    for ip, model in ballots:
        client.post(
            "/api/votes",
            json={"contest_id": contest.id, "model_id": model.id},
            headers={"X-Forwarded-For": ip},
        )

    response = client.post(
        f"/api/admin/submissions/{entry_a.id}/reject", headers=admin_headers
    )

    assert response.status_code == 200
    db.refresh(entry_a)
    db.refresh(entry_b)
    db.refresh(alice)
    assert entry_a.votes == 0
    assert entry_a.ranking is None
    assert entry_b.ranking == 1
    assert alice.total_votes == 0


def test_moderation_requires_admin(client, db):
    contest = make_contest(db)
    model = make_model(db, "Alice")
    entry = make_entry(db, contest, model, status=EntryStatus.PENDING)

    response = client.post(
        f"/api/admin/submissions/{entry.id}/approve",
        headers=auth_headers(model.user),
    )

    assert response.status_code == 403


def test_contest_detail_lists_approved_entries(client, db):
    contest = make_contest(db)
    alice = make_model(db, "Alice")
    bob = make_model(db, "Bob")
    make_entry(db, contest, alice)
    make_entry(db, contest, bob, status=EntryStatus.PENDING)

    response = client.get(f"/api/contests/{contest.id}")
    listing = client.get("/api/contests?status=active")

    assert response.status_code == 200
    entries = response.json()["entries"]
    assert [e["model_id"] for e in entries] == [alice.id]
    assert entries[0]["model"]["name"] == "Alice"
    assert listing.json()[0]["entry_count"] == 1
    assert client.get("/api/contests?status=completed").json() == []
    assert client.get("/api/contests/9999").status_code == 404


def test_upload_profile_image(client, db):
    model = make_model(db, "Alice")

    response = client.post(
        "/api/upload/profile",
        files={"image": ("me.png", io.BytesIO(b"png"), "image/png")},
        headers=auth_headers(model.user),
    )

    assert response.status_code == 200
    assert response.json()["url"].startswith("/uploads/profiles/")
