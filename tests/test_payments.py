import hashlib
import hmac
import json
import time
from types import SimpleNamespace

import stripe

from modelcontest.config import settings
from modelcontest.models.models import Vote, VoteType

from conftest import auth_headers, make_contest, make_entry, make_model


def sign(payload: str, secret=None):
    timestamp = int(time.time())
    signature = hmac.new(
        (secret or settings.stripe_webhook_secret).encode(),
        f"{timestamp}.{payload}".encode(),
        hashlib.sha256,
    ).hexdigest()
    return f"t={timestamp},v1={signature}"


def signed_event(event: dict, secret=None):
    payload = json.dumps(event)
    return payload, sign(payload, secret)


def checkout_completed(user_id, package="bronze", session_id="cs_test_1"):
    return {
        "id": "evt_1",
        "type": "checkout.session.completed",
        "data": {
            "object": {
                "id": session_id,
                "metadata": {"userId": str(user_id), "packageId": package},
            }
        },
    }


def post_webhook(client, payload, signature):
    headers = {"Content-Type": "application/json"}
    if signature is not None:
        headers["Stripe-Signature"] = signature
    return client.post("/webhook", content=payload, headers=headers)


def test_list_vote_packages(client):
    response = client.get("/api/vote-packages")

    assert response.status_code == 200
    packages = response.json()
    assert [p["code"] for p in packages] == [
        "bronze",
        "silver",
        "gold",
        "diamond",
        "platinum",
    ]
    assert packages[0]["total_votes"] == 55


def test_checkout_requires_active_entry(client, db):
    model = make_model(db, "Alice")

    response = client.post(
        "/api/create-checkout-session",
        json={"package_id": "gold"},
        headers=auth_headers(model.user),
    )

    assert response.status_code == 403


def test_checkout_session(client, db, monkeypatch):
    contest = make_contest(db)
    model = make_model(db, "Alice")
    make_entry(db, contest, model)
    calls = []

    def fake_create(**kwargs):
        calls.append(kwargs)
        return SimpleNamespace(id="cs_test_1", url="https://pay.test/cs")

    monkeypatch.setattr(stripe.checkout.Session, "create", fake_create)

    response = client.post(
        "/api/create-checkout-session",
        json={"package_id": "gold"},
        headers=auth_headers(model.user),
    )

    assert response.status_code == 200
    assert response.json() == {"url": "https://pay.test/cs"}
    assert calls[0]["metadata"] == {
        "userId": str(model.user_id),
        "packageId": "gold",
    }
    assert calls[0]["line_items"][0]["price_data"]["unit_amount"] == 3999


def test_checkout_unknown_package(client, db):
    contest = make_contest(db)
    model = make_model(db, "Alice")
    make_entry(db, contest, model)

    response = client.post(
        "/api/create-checkout-session",
        json={"package_id": "unobtainium"},
        headers=auth_headers(model.user),
    )

    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid package selected"


def test_webhook_credits_package_votes(client, db):
    contest = make_contest(db)
    model = make_model(db, "Alice")
    entry = make_entry(db, contest, model)
    payload, signature = signed_event(checkout_completed(model.user_id))

    response = post_webhook(client, payload, signature)

    assert response.status_code == 200
    assert response.json() == {"received": True, "votes_added": 55}
    db.refresh(entry)
    db.refresh(model)
    assert entry.votes == 55
    assert model.total_votes == 55
    ballot = db.query(Vote).filter(Vote.entry_id == entry.id).one()
    assert ballot.vote_type == VoteType.PACKAGE
    assert ballot.voter_key == "checkout:cs_test_1"


def test_webhook_redelivery_is_idempotent(client, db):
    contest = make_contest(db)
    model = make_model(db, "Alice")
    entry = make_entry(db, contest, model)
    payload, signature = signed_event(checkout_completed(model.user_id))

    post_webhook(client, payload, signature)
    response = post_webhook(client, payload, signature)

    assert response.status_code == 200
    assert response.json()["duplicate"] is True
    db.refresh(entry)
    assert entry.votes == 55


def test_purchased_votes_survive_recount(client, db):
    contest = make_contest(db)
    model = make_model(db, "Alice")
    entry = make_entry(db, contest, model)
    payload, signature = signed_event(checkout_completed(model.user_id))
    post_webhook(client, payload, signature)

    client.post(
        "/api/votes",
        json={"contest_id": contest.id, "model_id": model.id},
        headers={"X-Forwarded-For": "1.1.1.1"},
    )

    db.refresh(entry)
    assert entry.votes == 56


def test_webhook_rejects_bad_signature(client, db):
    contest = make_contest(db)
    model = make_model(db, "Alice")
    entry = make_entry(db, contest, model)
    payload, signature = signed_event(
        checkout_completed(model.user_id), secret="whsec_wrong"
    )

    response = post_webhook(client, payload, signature)

    assert response.status_code == 400
    assert response.json()["detail"].startswith("Webhook Error")
    db.refresh(entry)
    assert entry.votes == 0


def test_webhook_rejects_missing_signature(client, db):
    payload = json.dumps(checkout_completed(1))
    response = post_webhook(client, payload, None)
    assert response.status_code == 400


def test_webhook_ignores_other_events(client):
    payload, signature = signed_event(
        {"id": "evt_2", "type": "payment_intent.created", "data": {}}
    )

    response = post_webhook(client, payload, signature)

    assert response.status_code == 200
    assert response.json() == {"received": True}


def test_webhook_rejects_missing_session_id(client, db):
    contest = make_contest(db)
    model = make_model(db, "Alice")
    entry = make_entry(db, contest, model)
    event = checkout_completed(model.user_id)
    del event["data"]["object"]["id"]
    payload, signature = signed_event(event)

    response = post_webhook(client, payload, signature)

    assert response.status_code == 400
    assert response.json()["detail"] == "Checkout session id is missing"
    db.refresh(entry)
    assert entry.votes == 0


def test_webhook_rejects_malformed_payload(client):
    payload = "not json"

    response = post_webhook(client, payload, sign(payload))

    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid webhook payload"
