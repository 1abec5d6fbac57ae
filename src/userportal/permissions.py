# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from fastapi import HTTPException, Request

from userportal.auth.session import flash
from userportal.auth.tokens import TOKEN_COOKIE, TOKEN_MAX_AGE_SECONDS, verify_token

MSG_LOGIN_REQUIRED = "Please log in to view this page."


@dataclass(frozen=True)
class CurrentUser:
    id: int
    username: str
    email: str


def load_user_from_request(
    request: Request, *, secret: str, max_age: int = TOKEN_MAX_AGE_SECONDS
) -> Tuple[Optional[CurrentUser], bool]:
    """Resolve identity from the token cookie.

    Returns (user, reject). `reject` is True when a cookie was present but
    did not verify, so the caller should clear it.
    """
    token = request.cookies.get(TOKEN_COOKIE, "")
    if not token:
        return None, False
    claims = verify_token(token, secret=secret, max_age=max_age)
    if not claims:
        return None, True
    return CurrentUser(id=claims.id, username=claims.username, email=claims.email), False


def current_user_optional(request: Request) -> Optional[CurrentUser]:
    return getattr(request.state, "user", None)


def require_user(request: Request) -> CurrentUser:
    u = current_user_optional(request)
    if u:
        return u
    flash(request, "error", MSG_LOGIN_REQUIRED)
    raise HTTPException(status_code=303, headers={"Location": "/login"})
