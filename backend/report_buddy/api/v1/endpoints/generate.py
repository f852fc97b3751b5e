"""
api/v1/endpoints/generate.py

AI drafting from an officer's spoken transcript.

Endpoints
---------
POST /generate/check   → is the transcript complete enough? {ready, questions?}
POST /generate/report  → draft + suggested title, saved on the report
POST /generate/refine  → apply requested edits to the current content
"""

import asyncio

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from report_buddy.agent.prompts import jurisdiction_label
from report_buddy.api.v1.deps import require_subscription
from report_buddy.core.logger import logger
from report_buddy.db.database import get_db
from report_buddy.db.models import User
from report_buddy.db.schemas import GenerateCheckRequest, GenerateReportRequest, RefineRequest
from report_buddy.services.ai_service import ai_service
from report_buddy.services.legal_service import legal_service
from report_buddy.services.profile_service import profile_service
from report_buddy.services.report_service import report_service
from report_buddy.utils.exceptions import NoReportContentError

router = APIRouter()


@router.post("/check")
def check_transcript(
    body: GenerateCheckRequest,
    current_user: User = Depends(require_subscription),
):
    return ai_service.check_transcript(body.report_type.value, body.transcript)


def _load_generation_context(db: Session, user: User, report_id: str) -> dict:
    report = report_service.get_report(db, user.id, report_id)
    return {
        "report": report,
        "report_type": report.report_type.value,
        "style": profile_service.get_style_data(db, user.id, report.report_type),
        "legal": legal_service.get_policies_and_case_law(db, user.id),
        "jurisdiction": jurisdiction_label(user.jurisdiction_state, user.jurisdiction_county),
    }


@router.post("/report")
async def generate_report(
    body: GenerateReportRequest,
    current_user: User = Depends(require_subscription),
    db: Session = Depends(get_db),
):
    """
    Draft the report and its title concurrently. Style and legal context are
    read first; database work and both model calls run in worker threads,
    one database step at a time.
    """
    ctx = await asyncio.to_thread(_load_generation_context, db, current_user, body.report_id)
    report_type = ctx["report_type"]

    generated, title = await asyncio.gather(
        asyncio.to_thread(
            ai_service.generate_report,
            ctx["style"], ctx["legal"], report_type, body.transcript, ctx["jurisdiction"], body.incomplete,
        ),
        asyncio.to_thread(ai_service.generate_title, report_type, body.transcript),
    )

    report = await asyncio.to_thread(
        report_service.save_generated, db, ctx["report"], body.transcript, generated, title
    )
    logger.info("Generated %s report %s for user %s", report_type, report.id, current_user.id)
    return {
        "report_id": report.id,
        "generated_content": generated,
        "suggested_title": title,
    }


@router.post("/refine")
def refine_report(
    body: RefineRequest,
    current_user: User = Depends(require_subscription),
    db: Session = Depends(get_db),
):
    report = report_service.get_report(db, current_user.id, body.report_id)
    current = report.current_content
    if not current:
        raise NoReportContentError()

    refined = ai_service.refine_report(current, body.refinement)
    report = report_service.save_refined(db, report, refined)
    return {"report_id": report.id, "generated_content": refined}
