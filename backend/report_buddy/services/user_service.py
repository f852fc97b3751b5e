"""
User accounts: lazy creation from a verified identity, trial backfill and
profile edits.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from report_buddy.core.identity import VerifiedIdentity
from report_buddy.core.logger import logger
from report_buddy.db.models import ReportType, StyleProfile, User
from report_buddy.db.seed import seed_user_case_law
from report_buddy.services.access_control import TRIAL_PERIOD, has_access, has_pro_access
from report_buddy.utils.exceptions import BadRequestError

UPDATABLE_PROFILE_FIELDS = ("name", "jurisdiction_state", "jurisdiction_county")


class UserService:

    def get_user(self, db: Session, uid: str) -> Optional[User]:
        return db.query(User).filter(User.id == uid).first()

    def get_or_create_user(self, db: Session, identity: VerifiedIdentity) -> User:
        """
        Return the user for *identity*, creating it on first sight.

        A new account starts trialing with default style profiles for every
        report type and its own copy of the default case law.
        """
        user = self.get_user(db, identity.uid)
        if user is not None:
            return user

        if not identity.email:
            raise BadRequestError("Email is required to create an account")

        now = datetime.utcnow()
        user = User(
            id=identity.uid,
            email=identity.email,
            name=identity.name or identity.email.split("@")[0],
            caselaw_initialized=False,
            subscription_status="trialing",
            trial_ends_at=now + TRIAL_PERIOD,
            created_at=now,
            updated_at=now,
        )
        db.add(user)
        for report_type in ReportType:
            db.add(StyleProfile(
                user_id=user.id,
                report_type=report_type,
                voice="first_person",
                detail_level="medium",
                common_phrases=[],
                vocabulary_preferences={},
            ))
        try:
            db.flush()
            seed_user_case_law(db, user)
            db.commit()
        except IntegrityError:
            # Another request created the same account first.
            db.rollback()
            existing = self.get_user(db, identity.uid)
            if existing is None:
                raise
            return existing
        db.refresh(user)
        logger.info("Created user %s (%s)", user.id, user.email)
        return user

    def backfill_subscription(self, db: Session, user: User) -> User:
        """Accounts from before billing existed get a trial dated from signup."""
        changed = False
        if user.subscription_status is None:
            user.subscription_status = "trialing"
            user.trial_ends_at = user.created_at + TRIAL_PERIOD
            changed = True
        if user.subscription_status == "trialing" and user.trial_ends_at is None:
            user.trial_ends_at = user.created_at + TRIAL_PERIOD
            changed = True
        if not user.caselaw_initialized:
            seed_user_case_law(db, user)
            changed = True
        if changed:
            db.commit()
            db.refresh(user)
            logger.info("Backfilled subscription fields for user %s", user.id)
        return user

    def update_profile(self, db: Session, user: User, updates: Dict[str, Any]) -> User:
        """Apply whitelisted profile fields; other keys are ignored."""
        allowed = {k: v for k, v in updates.items() if k in UPDATABLE_PROFILE_FIELDS}
        if not allowed:
            raise BadRequestError("No updates provided")
        if "name" in allowed and not (allowed["name"] or "").strip():
            raise BadRequestError("Name cannot be empty")

        for key, value in allowed.items():
            if isinstance(value, str):
                value = value.strip() or None
            setattr(user, key, value)
        db.commit()
        db.refresh(user)
        return user

    def to_response(self, user: User) -> Dict[str, Any]:
        return {
            "id": user.id,
            "email": user.email,
            "name": user.name,
            "jurisdiction_state": user.jurisdiction_state,
            "jurisdiction_county": user.jurisdiction_county,
            "subscription_status": user.subscription_status,
            "subscription_tier": user.subscription_tier,
            "subscription_current_period_end": user.subscription_current_period_end,
            "trial_ends_at": user.trial_ends_at,
            "has_subscription": has_access(user),
            "has_pro": has_pro_access(user),
            "created_at": user.created_at,
        }


user_service = UserService()
