"""
SQLAlchemy ORM Models
"""

from __future__ import annotations

import enum
import uuid
from datetime import datetime

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Enum as SQLEnum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    TIMESTAMP,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from report_buddy.db.database import Base


def _uuid() -> str:
    return str(uuid.uuid4())


# ============================================================================
# Enums
# ============================================================================

class ReportType(str, enum.Enum):
    """Kinds of police report"""
    incident = "incident"
    arrest = "arrest"
    supplemental = "supplemental"

class ReportStatus(str, enum.Enum):
    """Report lifecycle"""
    draft = "draft"
    completed = "completed"

class ReferenceType(str, enum.Enum):
    """Legal reference categories produced by legal analysis"""
    validation = "validation"
    clarification = "clarification"
    case_law = "case_law"

class CourtPrepStatus(str, enum.Enum):
    """Court prep session state machine"""
    analyzing = "analyzing"
    active = "active"
    completed = "completed"

class MessageRole(str, enum.Enum):
    user = "user"
    assistant = "assistant"

class SubscriptionTier(str, enum.Enum):
    basic = "basic"
    pro = "pro"


# ============================================================================
# Users
# ============================================================================

class User(Base):
    """
    An officer account. The primary key is the identity provider's UID, so
    the row is created lazily on the first verified token.

    Subscription fields mirror Stripe; subscription_event_at records the
    creation time of the newest webhook event applied to this row.
    """
    __tablename__ = "users"

    id = Column(String(128), primary_key=True)
    email = Column(String(255), nullable=False, index=True)
    name = Column(String(100), nullable=True)
    jurisdiction_state = Column(String(50), nullable=True)
    jurisdiction_county = Column(String(100), nullable=True)
    caselaw_initialized = Column(Boolean, nullable=False, default=False)

    stripe_customer_id = Column(String(255), nullable=True, index=True)
    subscription_status = Column(String(32), nullable=True)
    subscription_tier = Column(String(16), nullable=True)
    subscription_id = Column(String(255), nullable=True)
    subscription_current_period_end = Column(TIMESTAMP, nullable=True)
    subscription_event_at = Column(TIMESTAMP, nullable=True)
    trial_ends_at = Column(TIMESTAMP, nullable=True)

    created_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow)
    updated_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    reports = relationship("Report", back_populates="user")
    style_profiles = relationship("StyleProfile", back_populates="user")
    example_reports = relationship("ExampleReport", back_populates="user")
    policy_documents = relationship("PolicyDocument", back_populates="user")


class StyleProfile(Base):
    __tablename__ = "style_profiles"

    id = Column(String(36), primary_key=True, default=_uuid)
    user_id = Column(String(128), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    report_type = Column(SQLEnum(ReportType), nullable=False)
    voice = Column(String(32), nullable=False, default="first_person")
    detail_level = Column(String(32), nullable=False, default="medium")
    common_phrases = Column(JSON, nullable=False, default=list)
    vocabulary_preferences = Column(JSON, nullable=False, default=dict)

    created_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow)
    updated_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship("User", back_populates="style_profiles")

    __table_args__ = (
        UniqueConstraint("user_id", "report_type", name="uq_style_profile_user_type"),
    )


class ExampleReport(Base):
    """User-supplied exemplar report used to steer writing style."""
    __tablename__ = "example_reports"

    id = Column(String(36), primary_key=True, default=_uuid)
    user_id = Column(String(128), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    report_type = Column(SQLEnum(ReportType), nullable=False)
    content = Column(Text, nullable=False)
    created_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow)

    user = relationship("User", back_populates="example_reports")

    __table_args__ = (
        Index("ix_example_reports_user_type", "user_id", "report_type"),
    )


class PolicyDocument(Base):
    """Department policy text or case-law summary owned by one user."""
    __tablename__ = "policy_documents"

    id = Column(String(36), primary_key=True, default=_uuid)
    user_id = Column(String(128), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    filename = Column(String(200), nullable=False)
    content = Column(Text, nullable=False)
    is_caselaw = Column(Boolean, nullable=False, default=False)
    created_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow)

    user = relationship("User", back_populates="policy_documents")


# ============================================================================
# Reports
# ============================================================================

class Report(Base):
    __tablename__ = "reports"

    id = Column(String(36), primary_key=True, default=_uuid)
    user_id = Column(String(128), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    report_type = Column(SQLEnum(ReportType), nullable=False)
    status = Column(SQLEnum(ReportStatus), nullable=False, default=ReportStatus.draft)
    title = Column(String(200), nullable=False)
    transcript = Column(Text, nullable=True)
    generated_content = Column(Text, nullable=True)
    final_content = Column(Text, nullable=True)
    case_number = Column(String(50), nullable=True)

    created_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow)
    updated_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship("User", back_populates="reports")
    legal_references = relationship("LegalReference", back_populates="report")
    court_prep_sessions = relationship("CourtPrepSession", back_populates="report")

    __table_args__ = (
        Index("ix_reports_user_updated", "user_id", "updated_at"),
    )

    @property
    def current_content(self):
        """Officer edits win over the last AI draft."""
        return self.final_content or self.generated_content


class LegalReference(Base):
    __tablename__ = "legal_references"

    id = Column(String(36), primary_key=True, default=_uuid)
    report_id = Column(String(36), ForeignKey("reports.id", ondelete="CASCADE"), nullable=False, index=True)
    reference_type = Column(SQLEnum(ReferenceType), nullable=False)
    title = Column(Text, nullable=True)
    citation = Column(Text, nullable=True)
    content = Column(Text, nullable=True)
    action_validated = Column(Text, nullable=True)
    created_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow)

    report = relationship("Report", back_populates="legal_references")


# ============================================================================
# Court prep
# ============================================================================

class CourtPrepSession(Base):
    """
    A simulated defense cross-examination over one report.

    The vulnerability assessment is produced once when the session starts and
    is used as fixed context for every later turn.
    """
    __tablename__ = "court_prep_sessions"

    id = Column(String(36), primary_key=True, default=_uuid)
    report_id = Column(String(36), ForeignKey("reports.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String(128), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(SQLEnum(CourtPrepStatus), nullable=False, default=CourtPrepStatus.analyzing)
    vulnerability_assessment = Column(Text, nullable=True)
    debrief = Column(Text, nullable=True)
    message_count = Column(Integer, nullable=False, default=0)

    created_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow)
    updated_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    report = relationship("Report", back_populates="court_prep_sessions")
    messages = relationship(
        "CourtPrepMessage",
        back_populates="session",
        order_by="CourtPrepMessage.id",
    )


class CourtPrepMessage(Base):
    __tablename__ = "court_prep_messages"

    id = Column(Integer, primary_key=True, autoincrement=True)
    session_id = Column(String(36), ForeignKey("court_prep_sessions.id", ondelete="CASCADE"), nullable=False, index=True)
    role = Column(SQLEnum(MessageRole), nullable=False)
    content = Column(Text, nullable=False)
    created_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow)

    session = relationship("CourtPrepSession", back_populates="messages")


# ============================================================================
# Billing
# ============================================================================

class BillingEvent(Base):
    """Stripe webhook events already applied, keyed by Stripe event id."""
    __tablename__ = "billing_events"

    id = Column(String(255), primary_key=True)
    event_type = Column(String(100), nullable=False)
    event_created_at = Column(TIMESTAMP, nullable=False)
    processed_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow)
