"""
Report-writing AI: follow-up checks, generation, refinement, titles, charge
suggestions and statutory element checks.

Methods take plain data (style dicts, legal dicts, strings) rather than a DB
session so they can run in worker threads.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from report_buddy.agent.prompts import (
    REFINE_SYSTEM_PROMPT,
    TITLE_SYSTEM_PROMPT,
    build_report_system_prompt,
    build_report_user_prompt,
    check_elements_system_prompt,
    check_elements_user_prompt,
    follow_up_system_prompt,
    refine_user_prompt,
    suggest_charges_system_prompt,
    user_content,
)
from report_buddy.core.logger import logger
from report_buddy.services.bedrock_client import bedrock_client
from report_buddy.utils.exceptions import AIResponseError

MAX_FOLLOW_UP_QUESTIONS = 2
MAX_SUGGESTED_CHARGES = 3

ELEMENT_STATUSES = ("met", "weak", "missing")
OVERALL_VALUES = ("ready", "needs_work", "insufficient")


class AIService:

    def check_transcript(self, report_type: str, transcript: str) -> Dict[str, Any]:
        parsed = bedrock_client.complete_json(
            follow_up_system_prompt(report_type),
            user_content(transcript),
            max_tokens=500,
            temperature=0.2,
        )
        if "ready" not in parsed:
            raise AIResponseError(str(parsed))

        questions = [q for q in parsed.get("questions") or [] if isinstance(q, str) and q.strip()]
        if parsed.get("ready") is True or not questions:
            return {"ready": True}
        return {"ready": False, "questions": questions[:MAX_FOLLOW_UP_QUESTIONS]}

    def generate_report(
        self,
        style: Dict[str, Any],
        legal: Dict[str, Any],
        report_type: str,
        transcript: str,
        jurisdiction: str,
        incomplete: bool = False,
    ) -> str:
        return bedrock_client.complete_text(
            build_report_system_prompt(style, report_type, legal, jurisdiction),
            build_report_user_prompt(report_type, transcript, incomplete),
            max_tokens=2000,
            temperature=0.3,
        )

    def generate_title(self, report_type: str, transcript: str) -> str:
        title = bedrock_client.complete_text(
            TITLE_SYSTEM_PROMPT,
            f"Report type: {report_type}\n\nTranscript:\n{user_content(transcript)}",
            max_tokens=60,
            temperature=0.2,
        )
        return title.strip().strip('"').strip()

    def refine_report(self, current_report: str, refinement: str) -> str:
        return bedrock_client.complete_text(
            REFINE_SYSTEM_PROMPT,
            refine_user_prompt(current_report, refinement),
            max_tokens=2000,
            temperature=0.3,
        )

    def suggest_charges(self, report_content: str, jurisdiction: str) -> Dict[str, List[dict]]:
        parsed = bedrock_client.complete_json(
            suggest_charges_system_prompt(jurisdiction),
            user_content(report_content),
            max_tokens=500,
            temperature=0.2,
        )
        charges = parsed.get("charges")
        if not isinstance(charges, list):
            raise AIResponseError(str(parsed))
        cleaned = [
            {
                "charge": c.get("charge"),
                "statute": c.get("statute"),
                "level": c.get("level"),
                "confidence": c.get("confidence"),
            }
            for c in charges
            if isinstance(c, dict) and c.get("charge")
        ]
        return {"charges": cleaned[:MAX_SUGGESTED_CHARGES]}

    def check_elements(
        self,
        report_content: str,
        charges: List[str],
        legal: Optional[Dict[str, Any]],
        jurisdiction: str,
    ) -> Dict[str, List[dict]]:
        parsed = bedrock_client.complete_json(
            check_elements_system_prompt(jurisdiction, legal),
            check_elements_user_prompt(charges, report_content),
            max_tokens=2000,
            temperature=0.2,
        )
        analysis = parsed.get("analysis")
        if not isinstance(analysis, list):
            raise AIResponseError(str(parsed))

        out = []
        for item in analysis:
            if not isinstance(item, dict):
                continue
            elements = [
                e for e in item.get("elements") or []
                if isinstance(e, dict) and e.get("status") in ELEMENT_STATUSES
            ]
            overall = item.get("overall")
            if overall not in OVERALL_VALUES:
                logger.warning("Element check returned unknown overall value %r", overall)
                overall = "needs_work"
            out.append({
                "charge": item.get("charge"),
                "elements": elements,
                "overall": overall,
                "summary": item.get("summary"),
            })
        return {"analysis": out}


ai_service = AIService()
