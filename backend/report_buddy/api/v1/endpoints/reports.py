"""
api/v1/endpoints/reports.py

Endpoints
---------
POST   /reports                          → create a draft
GET    /reports                          → paginated list (?page, ?limit, ?status)
GET    /reports/{report_id}              → report with its legal references
PUT    /reports/{report_id}              → partial update
DELETE /reports/{report_id}              → delete with legal refs and court prep data
POST   /reports/{report_id}/suggest-charges
POST   /reports/{report_id}/check-elements
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from report_buddy.agent.prompts import jurisdiction_label
from report_buddy.api.v1.deps import get_current_user, require_subscription
from report_buddy.db.database import get_db
from report_buddy.db.models import Report, ReportStatus, User
from report_buddy.db.schemas import (
    ChargesRequest,
    LegalReferenceResponse,
    ReportCreate,
    ReportDetailResponse,
    ReportListResponse,
    ReportResponse,
    ReportSummary,
    ReportUpdate,
)
from report_buddy.services.ai_service import ai_service
from report_buddy.services.legal_service import legal_service
from report_buddy.services.report_service import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, report_service

router = APIRouter()


# ============================================================================
# Helpers
# ============================================================================

def _detail_response(db: Session, report: Report) -> ReportDetailResponse:
    refs = legal_service.list_references(db, report.id)
    return ReportDetailResponse(
        **ReportResponse.model_validate(report).model_dump(),
        legal_references=[
            LegalReferenceResponse(
                id=r.id,
                reference_type=r.reference_type.value,
                title=r.title,
                citation=r.citation,
                content=r.content,
                action_validated=r.action_validated,
                created_at=r.created_at,
            )
            for r in refs
        ],
    )


# ============================================================================
# CRUD
# ============================================================================

@router.post("", response_model=ReportResponse, status_code=201)
def create_report(
    body: ReportCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return report_service.create_report(db, current_user, body.report_type, body.title)


@router.get("", response_model=ReportListResponse)
def list_reports(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=DEFAULT_PAGE_SIZE, ge=1),
    status: Optional[ReportStatus] = Query(default=None),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    limit = min(limit, MAX_PAGE_SIZE)
    reports, total = report_service.list_reports(db, current_user.id, page=page, limit=limit, status=status)
    return ReportListResponse(
        reports=[ReportSummary.model_validate(r) for r in reports],
        total=total,
        page=page,
        limit=limit,
    )


@router.get("/{report_id}", response_model=ReportDetailResponse)
def get_report(
    report_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    report = report_service.get_report(db, current_user.id, report_id)
    return _detail_response(db, report)


@router.put("/{report_id}", response_model=ReportResponse)
def update_report(
    report_id: str,
    body: ReportUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return report_service.update_report(
        db, current_user.id, report_id, body.model_dump(exclude_unset=True)
    )


@router.delete("/{report_id}")
def delete_report(
    report_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    report_service.delete_report(db, current_user.id, report_id)
    return {"message": "Report deleted"}


# ============================================================================
# Charge analysis
# ============================================================================

@router.post("/{report_id}/suggest-charges")
def suggest_charges(
    report_id: str,
    current_user: User = Depends(require_subscription),
    db: Session = Depends(get_db),
):
    _, content = report_service.get_report_content(db, current_user.id, report_id)
    jurisdiction = jurisdiction_label(current_user.jurisdiction_state, current_user.jurisdiction_county)
    return ai_service.suggest_charges(content, jurisdiction)


@router.post("/{report_id}/check-elements")
def check_elements(
    report_id: str,
    body: ChargesRequest,
    current_user: User = Depends(require_subscription),
    db: Session = Depends(get_db),
):
    _, content = report_service.get_report_content(db, current_user.id, report_id)
    legal = legal_service.get_policies_and_case_law(db, current_user.id)
    jurisdiction = jurisdiction_label(current_user.jurisdiction_state, current_user.jurisdiction_county)
    return ai_service.check_elements(content, body.charges, legal, jurisdiction)
