"""Access token verification.

Access tokens are HS256 JWTs issued by the hosted auth provider. They are
taken from the ``Authorization: Bearer`` header, or from the session cookie
when no header is sent.
"""
import logging
from dataclasses import dataclass
from typing import Optional

import jwt
from starlette.requests import Request

from api.shared.exceptions import AuthError, ConfigurationError

logger = logging.getLogger("continuum.auth")


@dataclass(frozen=True)
class CurrentUser:
    id: str
    email: Optional[str] = None


class TokenVerifier:
    """Verifies access tokens against the shared JWT secret."""

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        audience: Optional[str] = "authenticated",
        cookie_name: str = "sb-access-token",
    ):
        self.secret = secret
        self.algorithm = algorithm
        self.audience = audience
        self.cookie_name = cookie_name

    def verify(self, token: str) -> CurrentUser:
        if not self.secret:
            raise ConfigurationError("SUPABASE_JWT_SECRET is not configured")
        try:
            claims = jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                audience=self.audience,
                options={"require": ["sub", "exp"]},
            )
        except jwt.PyJWTError as exc:
            logger.info("Rejected access token: %s", exc)
            raise AuthError(details={"reason": str(exc)}) from exc

        subject = claims.get("sub")
        if not subject:
            raise AuthError(details={"reason": "missing subject"})
        return CurrentUser(id=str(subject), email=claims.get("email"))

    def extract_token(self, request: Request) -> Optional[str]:
        """Bearer header first, then the session cookie."""
        authorization = request.headers.get("Authorization")
        if authorization:
            scheme, _, value = authorization.partition(" ")
            if scheme.lower() == "bearer" and value.strip():
                return value.strip()
        return request.cookies.get(self.cookie_name) or None
