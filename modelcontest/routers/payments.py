import logging
from fastapi import APIRouter, Depends, Header, Request
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool
from typing import List, Optional
from ..database import get_db
from ..dependencies import get_current_model
from ..models.models import Model
from ..schemas.payment import (
    CheckoutRequest,
    CheckoutResponse,
    VotePackageResponse,
)
from ..services.payment_service import PaymentService
from ..services.vote_packages import list_packages

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Payments"])


@router.get("/api/vote-packages", response_model=List[VotePackageResponse])
def get_vote_packages(db: Session = Depends(get_db)):
    """Get the purchasable vote packages"""
    return list_packages(db)


@router.post("/api/create-checkout-session", response_model=CheckoutResponse)
def create_checkout_session(
    data: CheckoutRequest,
    model: Model = Depends(get_current_model),
    db: Session = Depends(get_db),
):
    """Start a hosted checkout for a vote package"""
    url = PaymentService(db).create_checkout_session(model, data.package_id)
    return {"url": url}


@router.post("/webhook")
async def payment_webhook(
    request: Request,
    stripe_signature: Optional[str] = Header(default=None),
    db: Session = Depends(get_db),
):
    """Receive payment provider events"""
    # Signatures are computed over the raw body
    payload = await request.body()
    logger.info("Webhook received (%d bytes)", len(payload))
    return await run_in_threadpool(
        PaymentService(db).handle_webhook, payload, stripe_signature
    )
