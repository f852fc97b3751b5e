"""
services/court_prep_service.py

Court prep: a mock defense cross-examination of the officer over their own
report.

Session lifecycle
-----------------
    analyzing -> active -> completed

start    vulnerability analysis, then the opening question; the session is
         only persisted once both calls have succeeded
message  one officer answer in, one attorney question out; both turns are
         committed together after the model replies
debrief  performance summary over the full transcript; completes the session
end      completes the session without a debrief

Long sessions are sent to the model through `compact_history`, which keeps
the last 10 turns verbatim and summarises the rest. Stored messages are
never rewritten.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List

from sqlalchemy.orm import Session

from report_buddy.agent.court_prep_prompts import (
    DEBRIEF_REQUEST,
    cross_examination_system_prompt,
    debrief_system_prompt,
    vulnerability_system_prompt,
)
from report_buddy.agent.prompts import user_content
from report_buddy.core.config import settings
from report_buddy.core.logger import logger
from report_buddy.db.models import (
    CourtPrepMessage,
    CourtPrepSession,
    CourtPrepStatus,
    MessageRole,
    User,
)
from report_buddy.services.bedrock_client import bedrock_client
from report_buddy.services.legal_service import legal_service
from report_buddy.services.report_service import report_service
from report_buddy.utils.exceptions import BadRequestError, SessionNotFoundError


# ---------------------------------------------------------------------------
# Context compaction
# ---------------------------------------------------------------------------

COMPACTION_THRESHOLD = 30
RECENT_TURNS_KEPT = 10
SUMMARY_SNIPPET_CHARS = 300
COMPACTION_HEADER = "CONTEXT - Summary of earlier exchanges in this cross-examination session:\n"
ROLE_LABELS = {"assistant": "Defense Attorney", "user": "Officer"}


def compact_history(history: List[Dict[str, str]]) -> List[Dict[str, str]]:
    """
    Return the history to send to the model.

    Up to COMPACTION_THRESHOLD entries pass through unchanged. Beyond that,
    everything but the last RECENT_TURNS_KEPT entries is folded into a single
    "system" entry, one line per turn, each turn cut to SUMMARY_SNIPPET_CHARS
    characters. The input list is not modified.
    """
    if len(history) <= COMPACTION_THRESHOLD:
        return [dict(m) for m in history]

    cutoff = len(history) - RECENT_TURNS_KEPT
    summary = COMPACTION_HEADER
    for m in history[:cutoff]:
        label = ROLE_LABELS.get(m["role"], "Officer")
        text = m["content"]
        if len(text) > SUMMARY_SNIPPET_CHARS:
            text = text[:SUMMARY_SNIPPET_CHARS] + "..."
        summary += f"{label}: {text}\n"

    return [{"role": "system", "content": summary}] + [dict(m) for m in history[cutoff:]]


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------

def _role_value(role) -> str:
    return role.value if isinstance(role, MessageRole) else str(role)


class CourtPrepService:

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _get_session(self, db: Session, user_id: str, report_id: str, session_id: str) -> CourtPrepSession:
        """Load a session of the user's report; 404 when report or session don't match."""
        report_service.get_report(db, user_id, report_id)
        session = (
            db.query(CourtPrepSession)
            .filter(
                CourtPrepSession.id == session_id,
                CourtPrepSession.report_id == report_id,
                CourtPrepSession.user_id == user_id,
            )
            .first()
        )
        if session is None:
            raise SessionNotFoundError()
        return session

    def _history(self, db: Session, session_id: str) -> List[Dict[str, str]]:
        messages = (
            db.query(CourtPrepMessage)
            .filter(CourtPrepMessage.session_id == session_id)
            .order_by(CourtPrepMessage.created_at, CourtPrepMessage.id)
            .all()
        )
        return [{"role": _role_value(m.role), "content": m.content} for m in messages]

    def _ask(self, system: str, history: List[Dict[str, str]], max_tokens: int, temperature: float) -> str:
        return bedrock_client.complete(
            system,
            history,
            max_tokens=max_tokens,
            temperature=temperature,
            model_id=settings.court_prep_model_id,
        )

    def _cross_examine(self, report_content: str, vulnerabilities: str, history: List[Dict[str, str]]) -> str:
        return self._ask(
            cross_examination_system_prompt(report_content, vulnerabilities),
            compact_history(history),
            max_tokens=500,
            temperature=0.4,
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start_session(self, db: Session, user: User, report_id: str) -> Dict[str, Any]:
        report, content = report_service.get_report_content(db, user.id, report_id)
        legal = legal_service.get_policies_and_case_law(db, user.id)

        session = CourtPrepSession(
            report_id=report.id,
            user_id=user.id,
            status=CourtPrepStatus.analyzing,
            message_count=0,
        )
        vulnerabilities = self._ask(
            vulnerability_system_prompt(report.report_type.value, legal),
            [{"role": "user", "content": user_content(content)}],
            max_tokens=2000,
            temperature=0.3,
        )
        session.vulnerability_assessment = vulnerabilities
        session.status = CourtPrepStatus.active

        first_question = self._cross_examine(content, vulnerabilities, [])

        db.add(session)
        db.flush()
        db.add(CourtPrepMessage(
            session_id=session.id,
            role=MessageRole.assistant,
            content=first_question,
        ))
        session.message_count = 1
        db.commit()
        db.refresh(session)

        logger.info("Court prep session %s started for report %s", session.id, report.id)
        return {
            "session_id": session.id,
            "vulnerability_assessment": vulnerabilities,
            "first_question": first_question,
        }

    def send_message(
        self, db: Session, user: User, report_id: str, session_id: str, message: str
    ) -> Dict[str, str]:
        session = self._get_session(db, user.id, report_id, session_id)
        if session.status != CourtPrepStatus.active:
            raise BadRequestError("Session is not active")
        _, content = report_service.get_report_content(db, user.id, report_id)

        history = self._history(db, session.id)
        history.append({"role": "user", "content": message})

        # Nothing is written until the reply exists, so a failed call leaves
        # neither the answer nor a phantom question behind.
        reply = self._cross_examine(content, session.vulnerability_assessment or "", history)

        now = datetime.utcnow()
        db.add(CourtPrepMessage(session_id=session.id, role=MessageRole.user, content=message, created_at=now))
        db.flush()
        db.add(CourtPrepMessage(session_id=session.id, role=MessageRole.assistant, content=reply, created_at=now))
        session.message_count = CourtPrepSession.message_count + 2
        db.commit()

        logger.info("Court prep session %s: turn recorded (%d prior messages)", session.id, len(history) - 1)
        return {"response": reply}

    def debrief(self, db: Session, user: User, report_id: str, session_id: str) -> Dict[str, str]:
        session = self._get_session(db, user.id, report_id, session_id)
        if session.status == CourtPrepStatus.completed:
            raise BadRequestError("Session already completed")
        _, content = report_service.get_report_content(db, user.id, report_id)

        history = self._history(db, session.id)
        history.append({"role": "user", "content": DEBRIEF_REQUEST})
        text = self._ask(
            debrief_system_prompt(content, session.vulnerability_assessment or ""),
            history,
            max_tokens=2000,
            temperature=0.3,
        )

        session.debrief = text
        session.status = CourtPrepStatus.completed
        db.commit()
        logger.info("Court prep session %s completed with debrief", session.id)
        return {"debrief": text}

    def end_session(self, db: Session, user: User, report_id: str, session_id: str) -> Dict[str, bool]:
        session = self._get_session(db, user.id, report_id, session_id)
        if session.status == CourtPrepStatus.completed:
            raise BadRequestError("Session already completed")
        session.status = CourtPrepStatus.completed
        db.commit()
        logger.info("Court prep session %s ended", session.id)
        return {"success": True}

    # ------------------------------------------------------------------
    # Read views
    # ------------------------------------------------------------------

    def get_session(self, db: Session, user: User, report_id: str, session_id: str) -> Dict[str, Any]:
        session = self._get_session(db, user.id, report_id, session_id)
        messages = (
            db.query(CourtPrepMessage)
            .filter(CourtPrepMessage.session_id == session.id)
            .order_by(CourtPrepMessage.created_at, CourtPrepMessage.id)
            .all()
        )
        return {
            "id": session.id,
            "report_id": session.report_id,
            "status": session.status.value,
            "vulnerability_assessment": session.vulnerability_assessment,
            "debrief": session.debrief,
            "message_count": session.message_count,
            "messages": [
                {"role": _role_value(m.role), "content": m.content, "created_at": m.created_at}
                for m in messages
            ],
            "created_at": session.created_at,
            "updated_at": session.updated_at,
        }

    def list_sessions(self, db: Session, user: User, report_id: str) -> List[Dict[str, Any]]:
        report_service.get_report(db, user.id, report_id)
        sessions = (
            db.query(CourtPrepSession)
            .filter(CourtPrepSession.report_id == report_id, CourtPrepSession.user_id == user.id)
            .order_by(CourtPrepSession.created_at.desc())
            .all()
        )
        return [
            {
                "id": s.id,
                "status": s.status.value,
                "message_count": s.message_count,
                "created_at": s.created_at,
                "updated_at": s.updated_at,
            }
            for s in sessions
        ]


court_prep_service = CourtPrepService()
