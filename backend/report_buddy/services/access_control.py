"""
Subscription access rules.

Pure functions over a User row; nothing here touches the database or Stripe.
"""
from datetime import datetime, timedelta
from typing import Optional

from report_buddy.db.models import SubscriptionTier, User

TRIAL_PERIOD = timedelta(days=7)

PAID_STATUSES = ("active", "past_due")

SUBSCRIPTION_REQUIRED = "SUBSCRIPTION_REQUIRED"
PRO_REQUIRED = "PRO_REQUIRED"


def trial_end(user: User) -> Optional[datetime]:
    """
    trialing rows use trial_ends_at when set. Legacy rows with no status
    always get seven days from signup.
    """
    if user.subscription_status == "trialing" and user.trial_ends_at is not None:
        return user.trial_ends_at
    if user.created_at is not None:
        return user.created_at + TRIAL_PERIOD
    return None


def in_trial(user: User, now: Optional[datetime] = None) -> bool:
    if user.subscription_status not in (None, "trialing"):
        return False
    ends = trial_end(user)
    if ends is None:
        return False
    now = now or datetime.utcnow()
    return now < ends


def has_access(user: User, now: Optional[datetime] = None) -> bool:
    """
    active and past_due always pass (Stripe is still retrying payment for
    past_due). trialing, or no status at all, passes inside the trial window.
    """
    if user.subscription_status in PAID_STATUSES:
        return True
    return in_trial(user, now)


def has_pro_access(user: User, now: Optional[datetime] = None) -> bool:
    """Paying users need the pro tier; trial users get pro features while the trial lasts."""
    if user.subscription_status in PAID_STATUSES:
        return user.subscription_tier == SubscriptionTier.pro.value
    return in_trial(user, now)


def access_denial_code(user: User, pro: bool = False, now: Optional[datetime] = None) -> Optional[str]:
    if not has_access(user, now):
        return SUBSCRIPTION_REQUIRED
    if pro and not has_pro_access(user, now):
        return PRO_REQUIRED
    return None
