# backend/report_buddy/db/seed.py

"""
Default Case Law

Landmark US Supreme Court decisions every new account starts with. The
dataset is immutable; per-user copies are written to policy_documents the
first time an account is seen.
"""

from dataclasses import dataclass
from typing import Tuple

from sqlalchemy.orm import Session

from report_buddy.core.logger import logger
from report_buddy.db.models import PolicyDocument, User


@dataclass(frozen=True)
class CaseLawEntry:
    case_name: str
    filename: str
    content: str


# ============================================================================
# Seed Data
# ============================================================================

DEFAULT_CASE_LAW: Tuple[CaseLawEntry, ...] = (
    CaseLawEntry(
        case_name="Terry v. Ohio (1968)",
        filename="Terry v. Ohio",
        content=(
            "Terry v. Ohio, 392 U.S. 1 (1968)\n\n"
            "Holding: An officer may briefly detain a person on reasonable suspicion that "
            "criminal activity is afoot, and may pat down outer clothing for weapons when "
            "there is reason to believe the person is armed and dangerous.\n\n"
            "Report writing:\n"
            "- State the specific, articulable facts behind the suspicion\n"
            "- Describe the totality of the circumstances that led to the stop\n"
            "- If a frisk occurred, explain why you believed the person was armed\n"
            "- Note that the frisk was limited to outer clothing for weapons"
        ),
    ),
    CaseLawEntry(
        case_name="Graham v. Connor (1989)",
        filename="Graham v. Connor",
        content=(
            "Graham v. Connor, 490 U.S. 386 (1989)\n\n"
            "Holding: Excessive force claims arising from a seizure are judged under the "
            "Fourth Amendment objective reasonableness standard, from the perspective of a "
            "reasonable officer on scene rather than with hindsight.\n\n"
            "Graham factors:\n"
            "1. Severity of the crime at issue\n"
            "2. Whether the suspect posed an immediate threat to officers or others\n"
            "3. Whether the suspect was actively resisting or attempting to flee\n\n"
            "Report writing:\n"
            "- Address each Graham factor in any use of force narrative\n"
            "- Describe the threat as it was perceived at the time\n"
            "- Detail the suspect actions that made force necessary\n"
            "- Explain why the force used was proportional to the threat"
        ),
    ),
    CaseLawEntry(
        case_name="Tennessee v. Garner (1985)",
        filename="Tennessee v. Garner",
        content=(
            "Tennessee v. Garner, 471 U.S. 1 (1985)\n\n"
            "Holding: Deadly force may not be used to stop a fleeing suspect unless the "
            "officer has probable cause to believe the suspect poses a significant threat "
            "of death or serious physical injury to the officer or others.\n\n"
            "Requirements:\n"
            "1. Probable cause that the suspect committed a crime involving serious physical harm\n"
            "2. Deadly force is necessary to prevent escape\n"
            "3. A warning was given where feasible\n\n"
            "Report writing:\n"
            "- Document the specific threat posed by the fleeing suspect\n"
            "- Record whether a warning was given\n"
            "- Explain why lesser means of apprehension were not feasible"
        ),
    ),
    CaseLawEntry(
        case_name="Mapp v. Ohio (1961)",
        filename="Mapp v. Ohio",
        content=(
            "Mapp v. Ohio, 367 U.S. 643 (1961)\n\n"
            "Holding: Evidence obtained through an unreasonable search or seizure is "
            "inadmissible in state court; the exclusionary rule applies to the states.\n\n"
            "Report writing:\n"
            "- Document the legal basis for every search\n"
            "- Identify consent, warrant authority or the exception relied on (search "
            "incident to arrest, plain view, exigency, automobile, inventory)\n"
            "- For consent searches, record who consented and that it was voluntary\n"
            "- Note the scope of the search and how it matched the authority"
        ),
    ),
    CaseLawEntry(
        case_name="Miranda v. Arizona (1966)",
        filename="Miranda v. Arizona",
        content=(
            "Miranda v. Arizona, 384 U.S. 436 (1966)\n\n"
            "Holding: Before custodial interrogation a suspect must be advised of the right "
            "to remain silent, that statements may be used against them, the right to an "
            "attorney, and that one will be appointed if they cannot afford one.\n\n"
            "Applies when the suspect is both in custody and being interrogated.\n\n"
            "Report writing:\n"
            "- Record when warnings were given and the suspect's response\n"
            "- Note whether rights were waived or invoked\n"
            "- If invoked, document that questioning stopped\n"
            "- Identify spontaneous statements as such"
        ),
    ),
    CaseLawEntry(
        case_name="Carroll v. United States (1925)",
        filename="Carroll v. United States",
        content=(
            "Carroll v. United States, 267 U.S. 132 (1925)\n\n"
            "Holding: A vehicle may be searched without a warrant when there is probable "
            "cause to believe it contains contraband or evidence of a crime (automobile "
            "exception).\n\n"
            "Report writing:\n"
            "- Document the facts establishing probable cause to search the vehicle\n"
            "- Note the areas and containers searched\n"
            "- Record what was found and where in the vehicle"
        ),
    ),
)


# ============================================================================
# Per-user copy
# ============================================================================

def seed_user_case_law(db: Session, user: User) -> int:
    """
    Copy DEFAULT_CASE_LAW into the user's policy documents once.

    Flushes but does not commit; the caller owns the transaction. Returns the
    number of documents written.
    """
    if user.caselaw_initialized:
        return 0

    for entry in DEFAULT_CASE_LAW:
        db.add(PolicyDocument(
            user_id=user.id,
            filename=entry.filename,
            content=entry.content,
            is_caselaw=True,
        ))
    user.caselaw_initialized = True
    db.flush()
    logger.info("Seeded %d case law documents for user %s", len(DEFAULT_CASE_LAW), user.id)
    return len(DEFAULT_CASE_LAW)
