"""
Stripe checkout, customer portal and webhook endpoints.
"""
import asyncio
from typing import Optional

import stripe
from fastapi import APIRouter, Depends, Header, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from report_buddy.api.v1.deps import get_current_user
from report_buddy.core.logger import logger
from report_buddy.db.database import get_db
from report_buddy.db.models import User
from report_buddy.db.schemas import CheckoutRequest
from report_buddy.services.subscription_service import subscription_service

router = APIRouter()
webhook_router = APIRouter()


@router.post("/create-checkout-session")
def create_checkout_session(
    body: Optional[CheckoutRequest] = None,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    tier = body.tier if body else "basic"
    url = subscription_service.create_checkout_session(db, current_user, tier)
    return {"url": url}


@router.post("/create-portal-session")
def create_portal_session(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    url = subscription_service.create_portal_session(db, current_user)
    return {"url": url}


@webhook_router.post("/webhook")
async def stripe_webhook(
    request: Request,
    stripe_signature: str = Header(default="", alias="Stripe-Signature"),
    db: Session = Depends(get_db),
):
    """
    Stripe retries anything that is not 2xx, so only a bad signature is
    rejected; processing failures are logged and acknowledged.
    """
    payload = await request.body()
    try:
        event = subscription_service.verify_event(payload, stripe_signature)
    except (ValueError, stripe.SignatureVerificationError) as e:
        logger.warning("Stripe webhook rejected: %s", e)
        return JSONResponse(status_code=400, content={"error": "Webhook signature verification failed"})

    try:
        outcome = await asyncio.to_thread(subscription_service.process_event, db, event)
    except Exception:
        await asyncio.to_thread(db.rollback)
        logger.exception("Stripe webhook processing failed for event %s", event.get("id"))
        return {"received": True, "error": "Webhook processing failed"}

    return {"received": True, "status": outcome}
