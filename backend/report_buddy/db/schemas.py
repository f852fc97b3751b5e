"""
Pydantic validation schemas
"""
from pydantic import AfterValidator, BaseModel, Field, field_validator
from typing import Annotated, Optional, List, Dict, Literal
from datetime import datetime

from report_buddy.db.models import ReportStatus, ReportType

Voice = Literal["first_person", "third_person"]
DetailLevel = Literal["brief", "medium", "detailed"]


def _not_blank(value: Optional[str]) -> Optional[str]:
    if value is not None and not value.strip():
        raise ValueError("must not be blank")
    return value


NonBlankStr = Annotated[str, AfterValidator(_not_blank)]


# ============================================================================
# User Schemas
# ============================================================================

class UserResponse(BaseModel):
    id: str
    email: str
    name: Optional[str] = None
    jurisdiction_state: Optional[str] = None
    jurisdiction_county: Optional[str] = None
    subscription_status: Optional[str] = None
    subscription_tier: Optional[str] = None
    subscription_current_period_end: Optional[datetime] = None
    trial_ends_at: Optional[datetime] = None
    has_subscription: bool = False
    has_pro: bool = False
    created_at: datetime

    class Config:
        from_attributes = True


class AuthProfileUpdate(BaseModel):
    name: NonBlankStr = Field(..., min_length=1, max_length=100)


class ProfileUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    jurisdiction_state: Optional[str] = Field(None, max_length=50)
    jurisdiction_county: Optional[str] = Field(None, max_length=100)


# ============================================================================
# Style Profile & Example Schemas
# ============================================================================

class StyleProfileResponse(BaseModel):
    report_type: ReportType
    voice: str
    detail_level: str
    common_phrases: List[str] = []
    vocabulary_preferences: Dict[str, str] = {}
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class StyleProfileUpdate(BaseModel):
    voice: Optional[Voice] = None
    detail_level: Optional[DetailLevel] = None
    common_phrases: Optional[List[str]] = Field(None, max_length=50)
    vocabulary_preferences: Optional[Dict[str, str]] = None


class ExampleReportCreate(BaseModel):
    report_type: ReportType
    content: NonBlankStr = Field(..., min_length=1, max_length=50000)


class ExampleReportResponse(BaseModel):
    id: str
    report_type: ReportType
    preview: str
    created_at: datetime


class ExampleCount(BaseModel):
    report_type: ReportType
    count: int


class ProfileResponse(BaseModel):
    user: UserResponse
    style_profiles: List[StyleProfileResponse]
    example_counts: List[ExampleCount]


# ============================================================================
# Report Schemas
# ============================================================================

class ReportCreate(BaseModel):
    report_type: ReportType
    title: Optional[str] = Field(None, max_length=200)


class ReportUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    transcript: Optional[str] = Field(None, max_length=50000)
    generated_content: Optional[str] = Field(None, max_length=100000)
    final_content: Optional[str] = Field(None, max_length=100000)
    case_number: Optional[str] = Field(None, max_length=50)
    status: Optional[ReportStatus] = None


class LegalReferenceResponse(BaseModel):
    id: str
    reference_type: str
    title: Optional[str] = None
    citation: Optional[str] = None
    content: Optional[str] = None
    action_validated: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class ReportResponse(BaseModel):
    id: str
    report_type: ReportType
    status: ReportStatus
    title: str
    transcript: Optional[str] = None
    generated_content: Optional[str] = None
    final_content: Optional[str] = None
    case_number: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ReportSummary(BaseModel):
    id: str
    report_type: ReportType
    status: ReportStatus
    title: str
    case_number: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ReportDetailResponse(ReportResponse):
    legal_references: List[LegalReferenceResponse] = []


class ReportListResponse(BaseModel):
    reports: List[ReportSummary]
    total: int
    page: int
    limit: int


class ChargesRequest(BaseModel):
    charges: List[str] = Field(..., min_length=1, max_length=10)

    @field_validator("charges")
    @classmethod
    def validate_charges(cls, v: List[str]) -> List[str]:
        cleaned = []
        for charge in v:
            if not isinstance(charge, str) or not charge.strip():
                raise ValueError("Each charge must be a non-empty string")
            if len(charge) > 200:
                raise ValueError("Each charge must be 200 characters or fewer")
            cleaned.append(charge.strip())
        return cleaned


# ============================================================================
# Generation Schemas
# ============================================================================

class GenerateCheckRequest(BaseModel):
    report_type: ReportType
    transcript: NonBlankStr = Field(..., min_length=1, max_length=50000)


class GenerateReportRequest(BaseModel):
    report_id: str
    transcript: NonBlankStr = Field(..., min_length=1, max_length=50000)
    incomplete: bool = False


class RefineRequest(BaseModel):
    report_id: str
    refinement: NonBlankStr = Field(..., min_length=1, max_length=10000)


# ============================================================================
# Legal Schemas
# ============================================================================

class PolicyCreate(BaseModel):
    filename: NonBlankStr = Field(..., min_length=1, max_length=200)
    content: str = Field(..., min_length=1, max_length=100000)
    is_caselaw: bool = False


class PolicyResponse(BaseModel):
    id: str
    filename: str
    is_caselaw: bool
    created_at: datetime

    class Config:
        from_attributes = True


# ============================================================================
# Court Prep Schemas
# ============================================================================

class CourtPrepStartRequest(BaseModel):
    report_id: str


class CourtPrepSessionRequest(BaseModel):
    report_id: str
    session_id: str


class CourtPrepMessageRequest(CourtPrepSessionRequest):
    message: NonBlankStr = Field(..., min_length=1, max_length=5000)


class CourtPrepMessageResponse(BaseModel):
    role: str
    content: str
    created_at: datetime

    class Config:
        from_attributes = True


class CourtPrepSessionResponse(BaseModel):
    id: str
    report_id: str
    status: str
    vulnerability_assessment: Optional[str] = None
    debrief: Optional[str] = None
    message_count: int
    messages: List[CourtPrepMessageResponse] = []
    created_at: datetime
    updated_at: datetime


# ============================================================================
# Billing Schemas
# ============================================================================

class CheckoutRequest(BaseModel):
    tier: Literal["basic", "pro"] = "basic"
