"""
Report storage: CRUD over reports owned by one user.

Every lookup is scoped by user id, so another user's report id behaves
exactly like a missing one (404).
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from report_buddy.core.logger import logger
from report_buddy.db.models import (
    CourtPrepMessage,
    CourtPrepSession,
    LegalReference,
    Report,
    ReportStatus,
    ReportType,
    User,
)
from report_buddy.utils.exceptions import BadRequestError, NoReportContentError, ReportNotFoundError

DEFAULT_PAGE_SIZE = 25
MAX_PAGE_SIZE = 100

UPDATABLE_FIELDS = ("title", "transcript", "generated_content", "final_content", "case_number", "status")


class ReportService:

    def get_report(self, db: Session, user_id: str, report_id: str) -> Report:
        report = (
            db.query(Report)
            .filter(Report.id == report_id, Report.user_id == user_id)
            .first()
        )
        if report is None:
            raise ReportNotFoundError()
        return report

    def get_report_content(self, db: Session, user_id: str, report_id: str) -> Tuple[Report, str]:
        """The report and its current content; 400 when there is nothing to analyze."""
        report = self.get_report(db, user_id, report_id)
        content = report.current_content
        if not content:
            raise NoReportContentError()
        return report, content

    def create_report(
        self, db: Session, user: User, report_type: ReportType, title: Optional[str] = None
    ) -> Report:
        title = (title or "").strip() or f"New {report_type.value} report"
        report = Report(
            user_id=user.id,
            report_type=report_type,
            status=ReportStatus.draft,
            title=title,
        )
        db.add(report)
        db.commit()
        db.refresh(report)
        logger.info("Created %s report %s for user %s", report_type.value, report.id, user.id)
        return report

    def list_reports(
        self,
        db: Session,
        user_id: str,
        page: int = 1,
        limit: int = DEFAULT_PAGE_SIZE,
        status: Optional[ReportStatus] = None,
    ) -> Tuple[List[Report], int]:
        """Newest-updated first. Returns (page of reports, total matching)."""
        limit = max(1, min(limit, MAX_PAGE_SIZE))
        page = max(1, page)

        query = db.query(Report).filter(Report.user_id == user_id)
        if status is not None:
            query = query.filter(Report.status == status)

        total = query.count()
        reports = (
            query.order_by(Report.updated_at.desc(), Report.id)
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return reports, total

    def update_report(self, db: Session, user_id: str, report_id: str, updates: Dict[str, Any]) -> Report:
        changes = {k: v for k, v in updates.items() if k in UPDATABLE_FIELDS}
        if not changes:
            raise BadRequestError("No updates provided")
        if "title" in changes and not (changes["title"] or "").strip():
            raise BadRequestError("Title cannot be empty")
        if "status" in changes and changes["status"] is None:
            raise BadRequestError("Status cannot be empty")

        report = self.get_report(db, user_id, report_id)
        for key, value in changes.items():
            setattr(report, key, value)
        db.commit()
        db.refresh(report)
        return report

    def save_generated(
        self, db: Session, report: Report, transcript: str, generated: str, title: Optional[str]
    ) -> Report:
        report.transcript = transcript
        report.generated_content = generated
        if title:
            report.title = title[:200]
        db.commit()
        db.refresh(report)
        return report

    def save_refined(self, db: Session, report: Report, refined: str) -> Report:
        """Refined text becomes the new draft; officer edits are superseded."""
        report.generated_content = refined
        report.final_content = None
        db.commit()
        db.refresh(report)
        return report

    def delete_report(self, db: Session, user_id: str, report_id: str) -> None:
        """
        Delete the report with its legal references and court prep sessions
        and messages, children first, in a single transaction.
        """
        report = self.get_report(db, user_id, report_id)

        session_ids = [
            sid for (sid,) in
            db.query(CourtPrepSession.id).filter(CourtPrepSession.report_id == report.id).all()
        ]
        db.query(LegalReference).filter(LegalReference.report_id == report.id).delete(
            synchronize_session=False
        )
        if session_ids:
            db.query(CourtPrepMessage).filter(CourtPrepMessage.session_id.in_(session_ids)).delete(
                synchronize_session=False
            )
            db.query(CourtPrepSession).filter(CourtPrepSession.id.in_(session_ids)).delete(
                synchronize_session=False
            )
        db.delete(report)
        db.commit()
        logger.info(
            "Deleted report %s for user %s (%d court prep sessions)",
            report_id, user_id, len(session_ids),
        )


report_service = ReportService()
