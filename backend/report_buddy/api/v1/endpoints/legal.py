"""
Legal analysis of reports and management of policy / case-law documents.
"""
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from report_buddy.api.v1.deps import require_subscription
from report_buddy.db.database import get_db
from report_buddy.db.models import User
from report_buddy.db.schemas import PolicyCreate, PolicyResponse
from report_buddy.services.legal_service import legal_service
from report_buddy.services.report_service import report_service

router = APIRouter()


@router.post("/analyze/{report_id}")
def analyze_report(
    report_id: str,
    current_user: User = Depends(require_subscription),
    db: Session = Depends(get_db),
):
    """Analyze the report's current content and replace its stored references."""
    report, content = report_service.get_report_content(db, current_user.id, report_id)
    analysis = legal_service.analyze_report(db, current_user, content, report.report_type.value)
    legal_service.save_legal_references(db, report.id, analysis)
    return analysis


@router.post("/policy", response_model=PolicyResponse, status_code=201)
def add_policy(
    body: PolicyCreate,
    current_user: User = Depends(require_subscription),
    db: Session = Depends(get_db),
):
    return legal_service.add_policy(db, current_user, body.filename, body.content, body.is_caselaw)


@router.get("/policies", response_model=List[PolicyResponse])
def list_policies(
    current_user: User = Depends(require_subscription),
    db: Session = Depends(get_db),
):
    return legal_service.list_policies(db, current_user.id)


@router.delete("/policy/{policy_id}")
def delete_policy(
    policy_id: str,
    current_user: User = Depends(require_subscription),
    db: Session = Depends(get_db),
):
    legal_service.delete_policy(db, current_user.id, policy_id)
    return {"message": "Policy deleted"}
