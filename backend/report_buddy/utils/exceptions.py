"""
Custom exception classes
"""
from typing import Optional

from fastapi import HTTPException


class ReportNotFoundError(HTTPException):
    """Raised when a report doesn't exist or belongs to someone else"""
    def __init__(self):
        super().__init__(
            status_code=404,
            detail="Report not found"
        )


class SessionNotFoundError(HTTPException):
    """Raised when a court prep session doesn't exist for the report"""
    def __init__(self):
        super().__init__(
            status_code=404,
            detail="Session not found"
        )


class ResourceNotFoundError(HTTPException):
    def __init__(self, what: str):
        super().__init__(
            status_code=404,
            detail=f"{what} not found"
        )


class BadRequestError(HTTPException):
    def __init__(self, message: str):
        super().__init__(
            status_code=400,
            detail=message
        )


class NoReportContentError(BadRequestError):
    """Raised when an analysis path finds neither final nor generated content"""
    def __init__(self):
        super().__init__("No report content to analyze")


class SubscriptionRequiredError(HTTPException):
    """Raised when the trial has lapsed and there is no paying subscription"""
    def __init__(self):
        super().__init__(
            status_code=403,
            detail={
                "error": "An active subscription is required to use this feature",
                "code": "SUBSCRIPTION_REQUIRED",
            },
        )


class ProRequiredError(HTTPException):
    """Raised when a base-tier subscriber calls a pro feature"""
    def __init__(self):
        super().__init__(
            status_code=403,
            detail={
                "error": "This feature requires a Pro subscription",
                "code": "PRO_REQUIRED",
            },
        )


class AIServiceError(HTTPException):
    """Raised when the Bedrock call itself fails; *reason* is for logs only"""
    def __init__(self, reason: Optional[str] = None):
        super().__init__(
            status_code=503,
            detail={
                "error": "AI service unavailable, please try again",
                "code": "AI_UNAVAILABLE",
                "retryable": True,
            },
        )
        self.reason = reason


class AIResponseError(HTTPException):
    """Raised when the model answered but the answer could not be parsed"""
    def __init__(self, raw: Optional[str] = None):
        super().__init__(
            status_code=502,
            detail={
                "error": "AI returned an unreadable response, please try again",
                "code": "AI_INVALID_RESPONSE",
                "retryable": True,
            },
        )
        self.raw = raw


class BillingError(HTTPException):
    """Raised when a Stripe API call fails"""
    def __init__(self, action: str):
        super().__init__(
            status_code=500,
            detail=f"Failed to {action}"
        )
