# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Stateless credential tokens carried in the `token` cookie.

A token is the claim set {id, username, email} signed with the token secret.
The signer embeds the issue timestamp, so expiry is checked on verification
against `max_age` and nothing is stored server side. The format is an
itsdangerous timed signature, not a JOSE JWT.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from itsdangerous import BadData, URLSafeTimedSerializer

from userportal.log import logger

TOKEN_COOKIE = "token"
TOKEN_MAX_AGE_SECONDS = 24 * 60 * 60
_SALT = "userportal.token.v1"


@dataclass(frozen=True)
class TokenClaims:
    id: int
    username: str
    email: str


def _serializer(secret: str) -> URLSafeTimedSerializer:
    if not secret:
        raise RuntimeError("Missing token secret")
    return URLSafeTimedSerializer(secret_key=secret, salt=_SALT)


def issue_token(claims: TokenClaims, *, secret: str) -> str:
    return _serializer(secret).dumps({"id": claims.id, "username": claims.username, "email": claims.email})


def verify_token(token: str, *, secret: str, max_age: int = TOKEN_MAX_AGE_SECONDS) -> Optional[TokenClaims]:
    """Return the claims of a valid, unexpired token, else None."""
    if not token:
        return None
    try:
        data = _serializer(secret).loads(token, max_age=max_age)
    except BadData as e:
        # SignatureExpired is a BadData too
        logger.debug("token rejected: {}", type(e).__name__)
        return None

    if not isinstance(data, dict):
        return None
    try:
        uid = int(data["id"])
        username = str(data["username"]).strip()
        email = str(data["email"]).strip()
    except (KeyError, TypeError, ValueError):
        logger.debug("token rejected: malformed claims")
        return None
    if not username:
        return None
    return TokenClaims(id=uid, username=username, email=email)
