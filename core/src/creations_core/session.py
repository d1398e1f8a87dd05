from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Final

from fastapi import Request
from jose import JWTError, jwt

SESSION_COOKIE: Final[str] = "creations_session"
ALGORITHM: Final[str] = "HS256"
AUTHORIZATION_HEADER: Final[str] = "Authorization"


@dataclass(frozen=True)
class Session:
    subject: str
    access_token: str
    expires_at: datetime


def issue_session(
    *,
    secret: str,
    access_token: str,
    subject: str = "admin",
    max_age_s: int,
    now: datetime | None = None,
) -> str:
    """Sign a session carrying the backend bearer credential."""

    issued = now or datetime.now(UTC)
    claims = {
        "sub": subject,
        "access_token": access_token,
        "iat": int(issued.timestamp()),
        "exp": int((issued + timedelta(seconds=max_age_s)).timestamp()),
    }
    return jwt.encode(claims, secret, algorithm=ALGORITHM)


def decode_session(token: str | None, *, secret: str) -> Session | None:
    """Verify a session token. Missing, tampered and expired tokens all give None."""

    if not token:
        return None
    try:
        claims = jwt.decode(token, secret, algorithms=[ALGORITHM])
    except JWTError:
        return None

    access_token = claims.get("access_token")
    exp = claims.get("exp")
    if not isinstance(access_token, str) or not access_token or not isinstance(exp, int):
        return None

    return Session(
        subject=str(claims.get("sub") or ""),
        access_token=access_token,
        expires_at=datetime.fromtimestamp(exp, UTC),
    )


def extract_session_token(request: Request) -> str | None:
    cookie_token = request.cookies.get(SESSION_COOKIE)
    if cookie_token:
        return cookie_token

    auth = request.headers.get(AUTHORIZATION_HEADER)
    if not auth:
        return None

    prefix = "Bearer "
    if auth.startswith(prefix):
        return auth[len(prefix) :].strip() or None
    return None


def session_from_request(request: Request) -> Session | None:
    config = getattr(request.app.state, "creations_config", None)
    secret = getattr(getattr(config, "auth", None), "secret", None)
    if not secret:
        return None
    return decode_session(extract_session_token(request), secret=secret)
