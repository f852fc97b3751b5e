"""
Firebase ID token verification.

Firebase issues RS256 JWTs signed with rotating Google keys. We fetch the
published JWKs (PyJWKClient caches them) and check signature, expiry,
audience (the Firebase project id) and issuer.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import jwt
from jwt import PyJWKClient

from report_buddy.core.config import settings
from report_buddy.core.logger import logger


@dataclass
class VerifiedIdentity:
    uid: str
    email: Optional[str]
    name: Optional[str]


class IdentityVerifier:
    def __init__(self, jwks_url: str, project_id: str) -> None:
        self.jwks_url = jwks_url
        self.project_id = project_id
        self._jwk_client: Optional[PyJWKClient] = None

    @property
    def jwk_client(self) -> PyJWKClient:
        if self._jwk_client is None:
            self._jwk_client = PyJWKClient(self.jwks_url, cache_keys=True)
        return self._jwk_client

    def verify(self, token: str) -> VerifiedIdentity:
        """
        Verify *token* and return the identity it asserts.

        Raises jwt.ExpiredSignatureError, jwt.InvalidTokenError or
        jwt.PyJWKClientError; the API layer maps these to HTTP errors.
        """
        signing_key = self.jwk_client.get_signing_key_from_jwt(token)
        payload = jwt.decode(
            token,
            signing_key.key,
            algorithms=["RS256"],
            audience=self.project_id,
            issuer=f"https://securetoken.google.com/{self.project_id}",
            options={"require": ["exp", "iat", "sub"]},
        )

        uid = payload.get("user_id") or payload.get("sub")
        if not uid:
            raise jwt.InvalidTokenError("Token has no subject")

        logger.debug("Verified identity token for uid=%s", uid)
        return VerifiedIdentity(
            uid=uid,
            email=payload.get("email"),
            name=payload.get("name"),
        )


identity_verifier = IdentityVerifier(settings.FIREBASE_JWKS_URL, settings.FIREBASE_PROJECT_ID)
