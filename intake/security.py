"""Signed bearer tokens and the request guards built on them."""
from __future__ import annotations

import time
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Optional

from fastapi import Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from .errors import AccessDenied, InvalidToken, MissingToken
from .models import ADMIN_ROLE, AdminAccount, Principal

ALGORITHM = "HS256"
DEFAULT_TOKEN_TTL = timedelta(hours=24)


class TokenIssuer:
    """Issue and verify HS256 tokens carrying ``{id, email, role}``."""

    def __init__(self, secret: str, *, ttl: timedelta = DEFAULT_TOKEN_TTL) -> None:
        if not secret:
            raise ValueError("A signing secret must be provided")
        self._secret = secret
        self._ttl = ttl

    def issue(self, account: AdminAccount) -> tuple[str, datetime]:
        now = int(time.time())
        expires = now + int(self._ttl.total_seconds())
        claims: Dict[str, Any] = {
            "id": account.id,
            "email": account.email,
            "role": account.role,
            "iat": now,
            "exp": expires,
        }
        token = jwt.encode(claims, self._secret, algorithm=ALGORITHM)
        return token, datetime.fromtimestamp(expires, tz=timezone.utc)

    def verify(self, token: Optional[str]) -> Principal:
        """Return the principal embedded in ``token`` or raise."""

        if token is None or not token.strip():
            raise MissingToken()
        try:
            payload = jwt.decode(token.strip(), self._secret, algorithms=[ALGORITHM])
        except JWTError as exc:
            raise InvalidToken() from exc

        try:
            return Principal(
                id=int(payload["id"]),
                email=str(payload["email"]),
                role=str(payload["role"]),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise InvalidToken() from exc


class BearerAuth:
    """FastAPI dependency resolving the request's bearer token to a principal."""

    def __init__(self, issuer: TokenIssuer) -> None:
        self._issuer = issuer
        self._bearer = HTTPBearer(auto_error=False)

    async def __call__(self, request: Request) -> Principal:
        credentials: HTTPAuthorizationCredentials | None = await self._bearer(request)  # type: ignore[assignment]
        if credentials is None or credentials.scheme.lower() != "bearer":
            raise MissingToken()
        return self._issuer.verify(credentials.credentials)


def ensure_role(principal: Principal, role: str = ADMIN_ROLE) -> Principal:
    if principal.role != role:
        raise AccessDenied()
    return principal


def require_role(auth: BearerAuth, role: str = ADMIN_ROLE) -> Callable[..., Any]:
    """Build a dependency that authenticates and then checks ``role``."""

    async def _role_checker(request: Request) -> Principal:
        principal = await auth(request)
        return ensure_role(principal, role)

    return _role_checker


__all__ = [
    "ALGORITHM",
    "BearerAuth",
    "DEFAULT_TOKEN_TTL",
    "TokenIssuer",
    "ensure_role",
    "require_role",
]
