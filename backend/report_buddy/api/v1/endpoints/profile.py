"""
api/v1/endpoints/profile.py

Endpoints
---------
GET    /profile                        → user, style profiles, example counts
PUT    /profile                        → name / jurisdiction
PUT    /profile/style/{report_type}    → style profile for one report type
POST   /profile/examples               → upload an example report (max 5 per type)
GET    /profile/examples               → previews (?report_type)
DELETE /profile/examples/{example_id}
"""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from report_buddy.api.v1.deps import get_current_user
from report_buddy.db.database import get_db
from report_buddy.db.models import ReportType, User
from report_buddy.db.schemas import (
    ExampleReportCreate,
    ExampleReportResponse,
    ProfileResponse,
    ProfileUpdate,
    StyleProfileResponse,
    StyleProfileUpdate,
    UserResponse,
)
from report_buddy.services.profile_service import profile_service
from report_buddy.services.user_service import user_service

router = APIRouter()


@router.get("", response_model=ProfileResponse)
def get_profile(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return ProfileResponse(
        user=UserResponse(**user_service.to_response(current_user)),
        style_profiles=[
            StyleProfileResponse.model_validate(p)
            for p in profile_service.list_style_profiles(db, current_user.id)
        ],
        example_counts=profile_service.example_counts(db, current_user.id),
    )


@router.put("", response_model=UserResponse)
def update_profile(
    body: ProfileUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    user = user_service.update_profile(db, current_user, body.model_dump(exclude_unset=True))
    return user_service.to_response(user)


@router.put("/style/{report_type}", response_model=StyleProfileResponse)
def update_style(
    report_type: ReportType,
    body: StyleProfileUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return profile_service.update_style_profile(
        db, current_user, report_type, body.model_dump(exclude_unset=True)
    )


@router.post("/examples", status_code=201)
def add_example(
    body: ExampleReportCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    example = profile_service.add_example(db, current_user, body.report_type, body.content)
    return {
        "id": example.id,
        "report_type": example.report_type.value,
        "message": "Example report added",
    }


@router.get("/examples", response_model=List[ExampleReportResponse])
def list_examples(
    report_type: Optional[ReportType] = Query(default=None),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return profile_service.list_examples(db, current_user.id, report_type)


@router.delete("/examples/{example_id}")
def delete_example(
    example_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    profile_service.delete_example(db, current_user.id, example_id)
    return {"message": "Example deleted"}
