# report_buddy/core/config.py
"""
Application configuration using Pydantic Settings
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List
import json
from pydantic import field_validator


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables
    """

    # Application
    APP_NAME: str = "Report Buddy"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"
    APP_BASE_URL: str = "http://localhost:3000"

    # Database
    DATABASE_URL: str = "sqlite:///./report_buddy.db"
    AUTO_CREATE_TABLES: bool = True

    # Firebase identity (ID tokens are RS256 JWTs signed by Google)
    FIREBASE_PROJECT_ID: str = ""
    FIREBASE_JWKS_URL: str = (
        "https://www.googleapis.com/service_accounts/v1/jwk/"
        "securetoken@system.gserviceaccount.com"
    )

    # AWS Configuration
    AWS_ACCESS_KEY_ID: str = ""
    AWS_SECRET_ACCESS_KEY: str = ""
    AWS_REGION: str = "us-east-1"
    BEDROCK_MODEL_ID: str = "anthropic.claude-3-haiku-20240307-v1:0"
    # Cross-examination is latency sensitive; keep it on its own knob.
    COURT_PREP_MODEL_ID: str = ""
    BEDROCK_READ_TIMEOUT_SECONDS: int = 300

    @field_validator("BEDROCK_MODEL_ID", "COURT_PREP_MODEL_ID", mode="before")
    @classmethod
    def strip_model_id(cls, v: str) -> str:
        if isinstance(v, str):
            return v.strip()
        return v

    # Stripe
    STRIPE_SECRET_KEY: str = ""
    STRIPE_WEBHOOK_SECRET: str = ""
    STRIPE_PRICE_ID: str = ""
    STRIPE_PRO_PRICE_ID: str = ""

    # Rate limiting (fixed windows, per client address)
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_GENERAL_REQUESTS: int = 100
    RATE_LIMIT_GENERAL_WINDOW_SECONDS: int = 15 * 60
    RATE_LIMIT_AI_REQUESTS: int = 10
    RATE_LIMIT_AI_WINDOW_SECONDS: int = 60
    RATE_LIMIT_AUTH_REQUESTS: int = 10
    RATE_LIMIT_AUTH_WINDOW_SECONDS: int = 60

    # CORS
    CORS_ORIGINS: str = '["http://localhost:3000"]'

    # Pydantic v2 configuration
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"
    )

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins from string to list"""
        try:
            if isinstance(self.CORS_ORIGINS, str):
                return json.loads(self.CORS_ORIGINS)
            return self.CORS_ORIGINS
        except json.JSONDecodeError:
            return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

    @property
    def court_prep_model_id(self) -> str:
        return self.COURT_PREP_MODEL_ID or self.BEDROCK_MODEL_ID

    @property
    def firebase_issuer(self) -> str:
        return f"https://securetoken.google.com/{self.FIREBASE_PROJECT_ID}"


# Create settings instance
settings = Settings()
