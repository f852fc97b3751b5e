"""
Legal cross-referencing for reports, plus the policy / case-law documents
it draws on.
"""

from __future__ import annotations

import json
from typing import Any, Dict, List

from sqlalchemy.orm import Session

from report_buddy.agent.prompts import (
    jurisdiction_label,
    legal_analysis_system_prompt,
    legal_analysis_user_prompt,
)
from report_buddy.core.logger import logger
from report_buddy.db.models import LegalReference, PolicyDocument, ReferenceType, User
from report_buddy.services.bedrock_client import bedrock_client
from report_buddy.utils.exceptions import ResourceNotFoundError

ANALYSIS_KEYS = ("validations", "clarifications", "relevant_references")


def _text(value: Any):
    if value is None or isinstance(value, str):
        return value
    return json.dumps(value)


def normalize_analysis(parsed: Dict[str, Any]) -> Dict[str, List[dict]]:
    """Keep the three expected lists, dropping anything that is not a JSON object."""
    out: Dict[str, List[dict]] = {}
    for key in ANALYSIS_KEYS:
        items = parsed.get(key)
        out[key] = [i for i in items if isinstance(i, dict)] if isinstance(items, list) else []
    return out


class LegalService:

    # ------------------------------------------------------------------
    # Policy documents
    # ------------------------------------------------------------------

    def add_policy(
        self, db: Session, user: User, filename: str, content: str, is_caselaw: bool = False
    ) -> PolicyDocument:
        doc = PolicyDocument(
            user_id=user.id,
            filename=filename.strip(),
            content=content,
            is_caselaw=is_caselaw,
        )
        db.add(doc)
        db.commit()
        db.refresh(doc)
        logger.info("Stored policy %s for user %s (caselaw=%s)", doc.id, user.id, is_caselaw)
        return doc

    def list_policies(self, db: Session, user_id: str) -> List[PolicyDocument]:
        return (
            db.query(PolicyDocument)
            .filter(PolicyDocument.user_id == user_id)
            .order_by(PolicyDocument.created_at.desc())
            .all()
        )

    def delete_policy(self, db: Session, user_id: str, policy_id: str) -> None:
        doc = (
            db.query(PolicyDocument)
            .filter(PolicyDocument.id == policy_id, PolicyDocument.user_id == user_id)
            .first()
        )
        if doc is None:
            raise ResourceNotFoundError("Policy")
        db.delete(doc)
        db.commit()

    def get_policies_and_case_law(self, db: Session, user_id: str) -> Dict[str, List[dict]]:
        docs = self.list_policies(db, user_id)
        return {
            "policies": [
                {"filename": d.filename, "content": d.content} for d in docs if not d.is_caselaw
            ],
            "case_law": [
                {"filename": d.filename, "content": d.content} for d in docs if d.is_caselaw
            ],
        }

    # ------------------------------------------------------------------
    # Analysis
    # ------------------------------------------------------------------

    def analyze_report(
        self, db: Session, user: User, report_content: str, report_type: str
    ) -> Dict[str, List[dict]]:
        """
        One model call that returns validations, clarifications and relevant
        references for the report. An unparseable reply raises AIResponseError.
        """
        legal = self.get_policies_and_case_law(db, user.id)
        jurisdiction = jurisdiction_label(user.jurisdiction_state, user.jurisdiction_county)

        parsed = bedrock_client.complete_json(
            legal_analysis_system_prompt(jurisdiction, legal["policies"]),
            legal_analysis_user_prompt(report_type, report_content),
            max_tokens=2000,
            temperature=0.2,
        )
        analysis = normalize_analysis(parsed)
        logger.info(
            "Legal analysis for user %s: %d validations, %d clarifications, %d references",
            user.id,
            len(analysis["validations"]),
            len(analysis["clarifications"]),
            len(analysis["relevant_references"]),
        )
        return analysis

    def save_legal_references(self, db: Session, report_id: str, analysis: Dict[str, List[dict]]) -> int:
        """
        Replace every stored reference for the report with *analysis*, in one
        transaction. Returns the number of rows written.
        """
        db.query(LegalReference).filter(LegalReference.report_id == report_id).delete(
            synchronize_session=False
        )

        rows: List[LegalReference] = []
        for v in analysis.get("validations", []):
            rows.append(LegalReference(
                report_id=report_id,
                reference_type=ReferenceType.validation,
                title=_text(v.get("case_law")) or "Policy Support",
                citation=_text(v.get("policy")),
                content=_text(v.get("support")),
                action_validated=_text(v.get("action")),
            ))
        for c in analysis.get("clarifications", []):
            rows.append(LegalReference(
                report_id=report_id,
                reference_type=ReferenceType.clarification,
                title=_text(c.get("issue")),
                content=json.dumps({"reason": c.get("reason"), "suggestion": c.get("suggestion")}),
            ))
        for r in analysis.get("relevant_references", []):
            rows.append(LegalReference(
                report_id=report_id,
                reference_type=ReferenceType.case_law,
                title=_text(r.get("title")),
                citation=_text(r.get("citation")),
                content=_text(r.get("relevance")),
            ))

        db.add_all(rows)
        db.commit()
        return len(rows)

    def list_references(self, db: Session, report_id: str) -> List[LegalReference]:
        return (
            db.query(LegalReference)
            .filter(LegalReference.report_id == report_id)
            .order_by(LegalReference.created_at, LegalReference.id)
            .all()
        )


legal_service = LegalService()
