"""
Subscription & billing business logic (Stripe).

Local subscription fields on User are a mirror of Stripe, written only by
webhook events. Two rules keep the mirror consistent under redelivery and
reordering:

- an event id already recorded in billing_events is acknowledged and skipped
- an event created before the user's subscription_event_at is ignored, so a
  late `customer.subscription.updated` cannot undo a newer state
"""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any, Callable, Dict, Optional

import stripe
from sqlalchemy.orm import Session

from report_buddy.core.config import settings
from report_buddy.core.logger import logger
from report_buddy.db.models import BillingEvent, SubscriptionTier, User
from report_buddy.utils.exceptions import BadRequestError, BillingError

WEBHOOK_TOLERANCE_SECONDS = 300


def _timestamp(value: Any) -> Optional[datetime]:
    if not value:
        return None
    return datetime.utcfromtimestamp(int(value))


def _first_item(subscription: Dict[str, Any]) -> Dict[str, Any]:
    items = (subscription.get("items") or {}).get("data") or []
    return items[0] if items else {}


def period_end(subscription: Dict[str, Any]) -> Optional[datetime]:
    """Newer API versions carry current_period_end on the item, older ones on the subscription."""
    return _timestamp(
        subscription.get("current_period_end") or _first_item(subscription).get("current_period_end")
    )


def tier_for_subscription(subscription: Dict[str, Any]) -> str:
    price_id = (_first_item(subscription).get("price") or {}).get("id")
    if price_id and price_id == settings.STRIPE_PRO_PRICE_ID:
        return SubscriptionTier.pro.value
    return SubscriptionTier.basic.value


class SubscriptionService:

    def __init__(self) -> None:
        stripe.api_key = settings.STRIPE_SECRET_KEY
        self._handlers: Dict[str, Callable[[User, Dict[str, Any]], None]] = {
            "checkout.session.completed": self._on_checkout_completed,
            "customer.subscription.updated": self._on_subscription_updated,
            "customer.subscription.deleted": self._on_subscription_deleted,
            "invoice.payment_failed": self._on_payment_failed,
        }

    # ------------------------------------------------------------------
    # Checkout & portal
    # ------------------------------------------------------------------

    def price_for_tier(self, tier: str) -> str:
        if tier == SubscriptionTier.pro.value:
            return settings.STRIPE_PRO_PRICE_ID
        return settings.STRIPE_PRICE_ID

    def ensure_customer(self, db: Session, user: User) -> str:
        if user.stripe_customer_id:
            return user.stripe_customer_id
        customer = stripe.Customer.create(
            email=user.email,
            name=user.name,
            metadata={"firebase_uid": user.id},
        )
        user.stripe_customer_id = customer.id
        db.commit()
        logger.info("Created Stripe customer %s for user %s", customer.id, user.id)
        return customer.id

    def create_checkout_session(self, db: Session, user: User, tier: str = "basic") -> str:
        if user.subscription_status == "active":
            raise BadRequestError("You already have an active subscription")

        price = self.price_for_tier(tier)
        if not price:
            logger.error("No Stripe price configured for tier %s", tier)
            raise BillingError("create checkout session")

        try:
            customer_id = self.ensure_customer(db, user)
            session = stripe.checkout.Session.create(
                customer=customer_id,
                mode="subscription",
                line_items=[{"price": price, "quantity": 1}],
                client_reference_id=user.id,
                metadata={"firebase_uid": user.id, "tier": tier},
                success_url=f"{settings.APP_BASE_URL}/?checkout=success",
                cancel_url=f"{settings.APP_BASE_URL}/?checkout=canceled",
            )
        except stripe.StripeError:
            logger.exception("Stripe checkout session failed for user %s", user.id)
            raise BillingError("create checkout session")
        return session.url

    def create_portal_session(self, db: Session, user: User) -> str:
        if not user.stripe_customer_id:
            raise BadRequestError("No billing account found")
        try:
            session = stripe.billing_portal.Session.create(
                customer=user.stripe_customer_id,
                return_url=f"{settings.APP_BASE_URL}/",
            )
        except stripe.StripeError:
            logger.exception("Stripe portal session failed for user %s", user.id)
            raise BillingError("create portal session")
        return session.url

    # ------------------------------------------------------------------
    # Webhooks
    # ------------------------------------------------------------------

    def verify_event(self, payload: bytes, signature: str) -> Dict[str, Any]:
        """
        Check the Stripe-Signature header and decode the event.
        Raises stripe.SignatureVerificationError or ValueError.
        """
        text = payload.decode("utf-8")
        stripe.WebhookSignature.verify_header(
            text, signature, settings.STRIPE_WEBHOOK_SECRET, WEBHOOK_TOLERANCE_SECONDS
        )
        event = json.loads(text)
        if not isinstance(event, dict):
            raise ValueError("Webhook payload is not an object")
        return event

    def retrieve_subscription(self, subscription_id: str) -> Dict[str, Any]:
        return stripe.Subscription.retrieve(subscription_id).to_dict()

    def process_event(self, db: Session, event: Dict[str, Any]) -> str:
        """
        Apply one verified event. Returns processed, duplicate, stale or ignored.
        """
        event_id = event.get("id")
        event_type = event.get("type", "")
        created = _timestamp(event.get("created")) or datetime.utcnow()

        if event_id and db.get(BillingEvent, event_id) is not None:
            logger.info("Stripe event %s already processed", event_id)
            return "duplicate"

        handler = self._handlers.get(event_type)
        if handler is None:
            return "ignored"

        obj = (event.get("data") or {}).get("object") or {}
        user = self._user_for_customer(db, obj.get("customer"))
        outcome = "ignored"
        if user is None:
            logger.info("Stripe event %s (%s) for unknown customer %s", event_id, event_type, obj.get("customer"))
        elif user.subscription_event_at is not None and created < user.subscription_event_at:
            logger.info(
                "Skipping stale Stripe event %s (%s) for user %s: created %s < %s",
                event_id, event_type, user.id, created, user.subscription_event_at,
            )
            outcome = "stale"
        else:
            handler(user, obj)
            user.subscription_event_at = created
            outcome = "processed"
            logger.info("Applied Stripe event %s (%s) to user %s -> %s", event_id, event_type, user.id, user.subscription_status)

        if event_id:
            db.add(BillingEvent(id=event_id, event_type=event_type, event_created_at=created))
        db.commit()
        return outcome

    # ------------------------------------------------------------------
    # Event handlers
    # ------------------------------------------------------------------

    def _user_for_customer(self, db: Session, customer_id: Optional[str]) -> Optional[User]:
        if not customer_id:
            return None
        return db.query(User).filter(User.stripe_customer_id == customer_id).first()

    def _on_checkout_completed(self, user: User, checkout: Dict[str, Any]) -> None:
        subscription_id = checkout.get("subscription")
        user.subscription_status = "active"
        user.subscription_id = subscription_id
        if subscription_id:
            subscription = self.retrieve_subscription(subscription_id)
            user.subscription_current_period_end = period_end(subscription)
            user.subscription_tier = tier_for_subscription(subscription)

    def _on_subscription_updated(self, user: User, subscription: Dict[str, Any]) -> None:
        user.subscription_status = subscription.get("status")
        user.subscription_id = subscription.get("id")
        user.subscription_current_period_end = period_end(subscription)
        user.subscription_tier = tier_for_subscription(subscription)

    def _on_subscription_deleted(self, user: User, subscription: Dict[str, Any]) -> None:
        user.subscription_status = "canceled"
        user.subscription_id = None
        user.subscription_current_period_end = None
        user.subscription_tier = None

    def _on_payment_failed(self, user: User, invoice: Dict[str, Any]) -> None:
        if user.subscription_status != "past_due":
            user.subscription_status = "past_due"


subscription_service = SubscriptionService()
