"""Shared-secret session gate for the dashboard API."""

from __future__ import annotations

import hmac

from fastapi import HTTPException, Request, status

SESSION_FLAG = "is_authenticated"


def password_matches(candidate: str, expected: str) -> bool:
    return hmac.compare_digest(candidate.encode("utf-8"), expected.encode("utf-8"))


def is_authenticated(request: Request) -> bool:
    return bool(request.session.get(SESSION_FLAG))


def require_session(request: Request) -> None:
    """FastAPI dependency for protected routes."""

    if not is_authenticated(request):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
