"""Payment bridge between the hosted checkout and the vote ledger.

A purchase starts as a checkout session carrying the buyer and the
package in its metadata. The provider later reports the completed
session through a signed webhook; only then is the package credited,
as a single weighted ballot on the buyer's entry in the active
contest. The ballot's voter key is derived from the checkout session,
so a redelivered event cannot credit the same purchase twice.
"""

import logging
from typing import Optional

import stripe
from sqlalchemy.orm import Session

from ..config import settings
from ..exceptions import (
    AuthorizationError,
    DuplicateVoteError,
    ExternalServiceError,
    NotFoundError,
    ValidationError,
    WebhookSignatureError,
)
from ..models.models import (
    Contest,
    ContestEntry,
    ContestStatus,
    EntryStatus,
    Model,
    VotePackage,
    VoteType,
)
from .tally_service import TallyService
from .vote_packages import get_package

logger = logging.getLogger(__name__)

CHECKOUT_COMPLETED = "checkout.session.completed"


def active_contest_entry(db: Session, model_id: int) -> Optional[ContestEntry]:
    """The model's approved entry in the currently active contest"""
    return (
        db.query(ContestEntry)
        .join(Contest, ContestEntry.contest_id == Contest.id)
        .filter(
            ContestEntry.model_id == model_id,
            ContestEntry.status == EntryStatus.APPROVED,
            Contest.status == ContestStatus.ACTIVE,
        )
        .first()
    )


class PaymentService:
    def __init__(self, db: Session):
        self.db = db

    def create_checkout_session(self, model: Model, package_code: str):
        """Open a hosted checkout for a vote package; returns its URL"""
        entry = active_contest_entry(self.db, model.id)
        if entry is None:
            raise AuthorizationError(
                "You must be actively participating in an ongoing contest "
                "to purchase vote packages"
            )

        package = get_package(self.db, package_code)
        if package is None:
            raise ValidationError("Invalid package selected")

        try:
            session = stripe.checkout.Session.create(
                api_key=settings.stripe_secret_key,
                payment_method_types=["card"],
                mode="payment",
                line_items=[
                    {
                        "price_data": {
                            "currency": package.currency.lower(),
                            "unit_amount": int(package.price * 100),
                            "product_data": {"name": package.name},
                        },
                        "quantity": 1,
                    }
                ],
                metadata={
                    "userId": str(model.user_id),
                    "packageId": package.code,
                },
                success_url=(
                    f"{settings.frontend_url}/dashboard/success"
                    "?session_id={CHECKOUT_SESSION_ID}"
                ),
                cancel_url=f"{settings.frontend_url}/dashboard/fail",
            )
        except stripe.StripeError as e:
            logger.error("Checkout session creation failed: %s", e)
            raise ExternalServiceError("Payment provider error")

        logger.info(
            "Checkout session %s created for model %s (%s)",
            session.id,
            model.id,
            package.code,
        )
        return session.url

    def handle_webhook(self, payload: bytes, signature: Optional[str]):
        """Verify a provider callback and credit completed purchases"""
        event = verify_event(payload, signature)
        try:
            event_type = event["type"]
        except KeyError:
            event_type = None
        if event_type != CHECKOUT_COMPLETED:
            logger.info("Ignoring webhook event %s", event_type)
            return {"received": True}

        try:
            session = event["data"]["object"]
            session_id = session["id"]
        except (KeyError, TypeError):
            raise ValidationError("Checkout session id is missing")
        if not session_id:
            raise ValidationError("Checkout session id is missing")

        try:
            metadata = session["metadata"]
        except KeyError:
            metadata = None
        if not metadata:
            raise ValidationError("Session metadata is missing")

        try:
            user_id = int(metadata["userId"])
        except (KeyError, TypeError, ValueError):
            raise ValidationError("Session metadata is missing the buyer")

        model = self.db.query(Model).filter(Model.user_id == user_id).first()
        if model is None:
            raise NotFoundError("Model not found")

        try:
            package_code = metadata["packageId"]
        except KeyError:
            package_code = ""
        package = get_package(self.db, package_code)
        if package is None:
            raise ValidationError("Invalid package ID")

        entry = active_contest_entry(self.db, model.id)
        if entry is None:
            raise NotFoundError("Active contest entry not found")

        return self._credit(session_id, model, entry, package)

    def _credit(
        self,
        session_id: str,
        model: Model,
        entry: ContestEntry,
        package: VotePackage,
    ) -> dict:
        try:
            TallyService(self.db).cast_vote(
                entry.contest_id,
                model.id,
                voter_key=f"checkout:{session_id}",
                vote_type=VoteType.PACKAGE,
                weight=package.total_votes,
                package_id=package.id,
            )
        except DuplicateVoteError:
            logger.info("Checkout session %s already credited", session_id)
            return {"received": True, "duplicate": True}

        logger.info(
            "Credited %d votes to model %s (entry %s) for session %s",
            package.total_votes,
            model.id,
            entry.id,
            session_id,
        )
        return {"received": True, "votes_added": package.total_votes}


def verify_event(payload: bytes, signature: Optional[str]) -> stripe.Event:
    """Check the webhook signature and decode the event.

    Fails closed: an unsigned or mis-signed payload is never parsed.
    """
    if not signature:
        raise WebhookSignatureError(
            "Missing or invalid Stripe signature header"
        )
    if not settings.stripe_webhook_secret:
        raise ExternalServiceError("Webhook secret is not configured")

    try:
        return stripe.Webhook.construct_event(
            payload,
            signature,
            settings.stripe_webhook_secret,
            tolerance=settings.stripe_webhook_tolerance,
        )
    except stripe.SignatureVerificationError as e:
        logger.warning("Webhook signature verification failed: %s", e)
        raise WebhookSignatureError(f"Webhook Error: {e}")
    except ValueError:
        raise ValidationError("Invalid webhook payload")
