# supplyhub/identity.py
"""
Verification of identity-provider ID tokens.

Production tokens are RS256-signed; their keys come from the provider's JWKS
endpoint and are cached by ``PyJWKClient``. With a shared secret configured
the verifier switches to HS256, which is what local runs and tests use.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import jwt

from supplyhub.app_config import Settings
from supplyhub.errors import Unauthenticated

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Identity:
    uid: str
    email: Optional[str] = None
    claims: Dict[str, Any] = field(default_factory=dict, compare=False, repr=False)


class IdentityVerifier:
    def __init__(
        self,
        project_id: str = "",
        issuer: str = "",
        shared_secret: str = "",
        jwks_url: str = "",
        leeway: int = 10,
    ):
        self.project_id = project_id
        self.issuer = issuer
        self.shared_secret = shared_secret
        self.leeway = leeway
        self._jwks = None if shared_secret else jwt.PyJWKClient(jwks_url)

    @classmethod
    def from_settings(cls, settings: Settings) -> "IdentityVerifier":
        return cls(
            project_id=settings.identity_project_id,
            issuer=settings.identity_issuer,
            shared_secret=settings.identity_shared_secret,
            jwks_url=settings.identity_jwks_url,
        )

    def _key(self, token: str):
        if self.shared_secret:
            return self.shared_secret, ["HS256"]
        return self._jwks.get_signing_key_from_jwt(token).key, ["RS256"]

    def decode(self, token: str) -> Dict[str, Any]:
        try:
            key, algorithms = self._key(token)
            return jwt.decode(
                token,
                key,
                algorithms=algorithms,
                audience=self.project_id or None,
                issuer=self.issuer or None,
                leeway=self.leeway,
                options={"verify_aud": bool(self.project_id), "require": ["exp", "iat"]},
            )
        except jwt.ExpiredSignatureError:
            raise Unauthenticated("Token expired")
        except jwt.PyJWTError as e:
            logger.info("Token rejected: %s", e)
            raise Unauthenticated("Invalid token")

    def verify(self, token: str) -> Identity:
        if not token:
            raise Unauthenticated("No token provided")
        payload = self.decode(token)
        uid = payload.get("user_id") or payload.get("sub")
        if not uid or not isinstance(uid, str):
            raise Unauthenticated("Invalid token payload")
        return Identity(uid=uid, email=payload.get("email"), claims=payload)
