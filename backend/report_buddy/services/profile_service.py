"""
Style profiles and example reports.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from report_buddy.core.logger import logger
from report_buddy.db.models import ExampleReport, ReportType, StyleProfile, User
from report_buddy.utils.exceptions import BadRequestError, ResourceNotFoundError

MAX_EXAMPLES_PER_TYPE = 5
STYLE_EXAMPLES_USED = 3
PREVIEW_CHARS = 200

STYLE_FIELDS = ("voice", "detail_level", "common_phrases", "vocabulary_preferences")


class ProfileService:

    # ------------------------------------------------------------------
    # Style profiles
    # ------------------------------------------------------------------

    def get_style_profile(self, db: Session, user_id: str, report_type: ReportType) -> Optional[StyleProfile]:
        return (
            db.query(StyleProfile)
            .filter(StyleProfile.user_id == user_id, StyleProfile.report_type == report_type)
            .first()
        )

    def list_style_profiles(self, db: Session, user_id: str) -> List[StyleProfile]:
        return (
            db.query(StyleProfile)
            .filter(StyleProfile.user_id == user_id)
            .order_by(StyleProfile.report_type)
            .all()
        )

    def update_style_profile(
        self, db: Session, user: User, report_type: ReportType, updates: Dict[str, Any]
    ) -> StyleProfile:
        changes = {k: v for k, v in updates.items() if k in STYLE_FIELDS and v is not None}
        if not changes:
            raise BadRequestError("No updates provided")

        profile = self.get_style_profile(db, user.id, report_type)
        if profile is None:
            profile = StyleProfile(user_id=user.id, report_type=report_type)
            db.add(profile)
        for key, value in changes.items():
            setattr(profile, key, value)
        db.commit()
        db.refresh(profile)
        logger.info("Updated %s style profile for user %s", report_type.value, user.id)
        return profile

    def get_style_data(self, db: Session, user_id: str, report_type: ReportType) -> Dict[str, Any]:
        """Profile plus up to three example texts, shaped for the report prompt."""
        profile = self.get_style_profile(db, user_id, report_type)
        examples = (
            db.query(ExampleReport)
            .filter(ExampleReport.user_id == user_id, ExampleReport.report_type == report_type)
            .order_by(ExampleReport.created_at.desc())
            .limit(STYLE_EXAMPLES_USED)
            .all()
        )
        return {
            "profile": {
                "voice": profile.voice,
                "detail_level": profile.detail_level,
                "common_phrases": profile.common_phrases or [],
                "vocabulary_preferences": profile.vocabulary_preferences or {},
            } if profile else {},
            "examples": [e.content for e in examples],
        }

    # ------------------------------------------------------------------
    # Example reports
    # ------------------------------------------------------------------

    def count_examples(self, db: Session, user_id: str, report_type: ReportType) -> int:
        return (
            db.query(func.count(ExampleReport.id))
            .filter(ExampleReport.user_id == user_id, ExampleReport.report_type == report_type)
            .scalar()
        )

    def example_counts(self, db: Session, user_id: str) -> List[Dict[str, Any]]:
        rows = dict(
            db.query(ExampleReport.report_type, func.count(ExampleReport.id))
            .filter(ExampleReport.user_id == user_id)
            .group_by(ExampleReport.report_type)
            .all()
        )
        return [{"report_type": t, "count": rows.get(t, 0)} for t in ReportType]

    def add_example(self, db: Session, user: User, report_type: ReportType, content: str) -> ExampleReport:
        # Check-then-insert; two concurrent uploads can both pass the check.
        if self.count_examples(db, user.id, report_type) >= MAX_EXAMPLES_PER_TYPE:
            raise BadRequestError(
                f"Maximum {MAX_EXAMPLES_PER_TYPE} examples per report type. Delete one first."
            )
        example = ExampleReport(user_id=user.id, report_type=report_type, content=content)
        db.add(example)
        db.commit()
        db.refresh(example)
        return example

    def list_examples(
        self, db: Session, user_id: str, report_type: Optional[ReportType] = None
    ) -> List[Dict[str, Any]]:
        query = db.query(ExampleReport).filter(ExampleReport.user_id == user_id)
        if report_type is not None:
            query = query.filter(ExampleReport.report_type == report_type)
        return [
            {
                "id": e.id,
                "report_type": e.report_type,
                "preview": e.content[:PREVIEW_CHARS],
                "created_at": e.created_at,
            }
            for e in query.order_by(ExampleReport.created_at.desc()).all()
        ]

    def delete_example(self, db: Session, user_id: str, example_id: str) -> None:
        example = (
            db.query(ExampleReport)
            .filter(ExampleReport.id == example_id, ExampleReport.user_id == user_id)
            .first()
        )
        if example is None:
            raise ResourceNotFoundError("Example")
        db.delete(example)
        db.commit()


profile_service = ProfileService()
