# report_buddy/api/v1/deps.py

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
import jwt

from report_buddy.core.identity import identity_verifier
from report_buddy.core.logger import logger
from report_buddy.db.database import get_db
from report_buddy.db.models import User
from report_buddy.services.access_control import (
    PRO_REQUIRED,
    SUBSCRIPTION_REQUIRED,
    access_denial_code,
)
from report_buddy.services.user_service import user_service
from report_buddy.utils.exceptions import ProRequiredError, SubscriptionRequiredError

security = HTTPBearer(auto_error=False)

# ============================================================================
# Identity Dependency
# ============================================================================

def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db)
) -> User:
    """
    Verify the Firebase ID token and return the matching user, creating the
    account on first sight.
    """
    if credentials is None or not credentials.credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="No token provided"
        )

    try:
        identity = identity_verifier.verify(credentials.credentials)
    except jwt.ExpiredSignatureError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token expired"
        )
    except jwt.PyJWKClientError as e:
        logger.warning("Identity key lookup failed: %s", e)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Authentication failed"
        )
    except jwt.InvalidTokenError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token"
        )

    return user_service.get_or_create_user(db, identity)


# ============================================================================
# Subscription Gates
# ============================================================================

def require_subscription(current_user: User = Depends(get_current_user)) -> User:
    if access_denial_code(current_user) == SUBSCRIPTION_REQUIRED:
        raise SubscriptionRequiredError()
    return current_user


def require_pro(current_user: User = Depends(get_current_user)) -> User:
    code = access_denial_code(current_user, pro=True)
    if code == SUBSCRIPTION_REQUIRED:
        raise SubscriptionRequiredError()
    if code == PRO_REQUIRED:
        raise ProRequiredError()
    return current_user
