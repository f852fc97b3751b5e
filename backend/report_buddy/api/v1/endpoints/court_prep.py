"""
api/v1/endpoints/court_prep.py

Mock cross-examination over a report.

Endpoints
---------
POST /court-prep/start                      → {session_id, vulnerability_assessment, first_question}
POST /court-prep/message                    → {response}
POST /court-prep/debrief                    → {debrief}; completes the session
POST /court-prep/end                        → {success}; completes without debrief
GET  /court-prep/reports/{report_id}/sessions
GET  /court-prep/sessions/{session_id}?report_id=
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from report_buddy.api.v1.deps import require_pro
from report_buddy.db.database import get_db
from report_buddy.db.models import User
from report_buddy.db.schemas import (
    CourtPrepMessageRequest,
    CourtPrepSessionRequest,
    CourtPrepSessionResponse,
    CourtPrepStartRequest,
)
from report_buddy.services.court_prep_service import court_prep_service

router = APIRouter()


@router.post("/start")
def start_session(
    body: CourtPrepStartRequest,
    current_user: User = Depends(require_pro),
    db: Session = Depends(get_db),
):
    return court_prep_service.start_session(db, current_user, body.report_id)


@router.post("/message")
def send_message(
    body: CourtPrepMessageRequest,
    current_user: User = Depends(require_pro),
    db: Session = Depends(get_db),
):
    return court_prep_service.send_message(
        db, current_user, body.report_id, body.session_id, body.message
    )


@router.post("/debrief")
def debrief(
    body: CourtPrepSessionRequest,
    current_user: User = Depends(require_pro),
    db: Session = Depends(get_db),
):
    return court_prep_service.debrief(db, current_user, body.report_id, body.session_id)


@router.post("/end")
def end_session(
    body: CourtPrepSessionRequest,
    current_user: User = Depends(require_pro),
    db: Session = Depends(get_db),
):
    return court_prep_service.end_session(db, current_user, body.report_id, body.session_id)


@router.get("/reports/{report_id}/sessions")
def list_sessions(
    report_id: str,
    current_user: User = Depends(require_pro),
    db: Session = Depends(get_db),
):
    return court_prep_service.list_sessions(db, current_user, report_id)


@router.get("/sessions/{session_id}", response_model=CourtPrepSessionResponse)
def get_session(
    session_id: str,
    report_id: str = Query(...),
    current_user: User = Depends(require_pro),
    db: Session = Depends(get_db),
):
    return court_prep_service.get_session(db, current_user, report_id, session_id)
