"""
Account bootstrap for the identity-provider session.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from report_buddy.api.v1.deps import get_current_user
from report_buddy.db.database import get_db
from report_buddy.db.models import User
from report_buddy.db.schemas import AuthProfileUpdate, UserResponse
from report_buddy.services.user_service import user_service

router = APIRouter()


@router.post("/verify")
def verify(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Called by the client after sign-in. Creates the account on first sight and
    backfills trial fields for accounts that predate billing.
    """
    user = user_service.backfill_subscription(db, current_user)
    return {
        "message": "Authenticated",
        "user": UserResponse(**user_service.to_response(user)),
    }


@router.put("/profile", response_model=UserResponse)
def update_name(
    body: AuthProfileUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    user = user_service.update_profile(db, current_user, {"name": body.name})
    return user_service.to_response(user)
