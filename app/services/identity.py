"""
Identity verification
Checks bearer ID tokens with python-jose. Verification never raises:
a bad or unverifiable token simply leaves the caller anonymous.
"""
from __future__ import annotations

import json
from typing import List, Optional

import structlog
from jose import jwt
from jose.exceptions import JOSEError

logger = structlog.get_logger()


class IdentityVerifier:
    def __init__(
        self,
        key: str,
        algorithms: Optional[List[str]] = None,
        audience: Optional[str] = None,
        issuer: Optional[str] = None,
    ):
        self.key = key
        self.algorithms = algorithms or ["HS256"]
        self.audience = audience
        self.issuer = issuer

    @classmethod
    def from_credentials(cls, blob: str) -> Optional["IdentityVerifier"]:
        """Build a verifier from the JSON credential blob, or None if absent/invalid."""
        if not blob or not blob.strip():
            return None
        try:
            data = json.loads(blob)
            algorithms = data.get("algorithms") or ["HS256"]
            if isinstance(algorithms, str):
                algorithms = [algorithms]
            return cls(
                key=data["key"],
                algorithms=list(algorithms),
                audience=data.get("audience"),
                issuer=data.get("issuer"),
            )
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            logger.error("Failed to initialise identity verifier", error=str(e))
            return None

    def verify(self, token: str) -> Optional[str]:
        """Return the token's subject uid, or None when it does not verify."""
        try:
            claims = jwt.decode(
                token,
                self.key,
                algorithms=self.algorithms,
                audience=self.audience,
                issuer=self.issuer,
                options={"verify_aud": self.audience is not None},
            )
        except JOSEError as e:
            logger.warning("Invalid identity token", error=str(e))
            return None

        uid = claims.get("sub") or claims.get("uid") or claims.get("user_id")
        return str(uid) if uid else None
