# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import secrets
from functools import lru_cache

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from userportal.auth.passwords import DEFAULT_COST, hash_password, verify_password
from userportal.auth.tokens import TokenClaims, issue_token
from userportal.core.outcome import Outcome, denied, failed, invalid, success
from userportal.infra.user_store import UserStore
from userportal.log import logger

MIN_PASSWORD_LENGTH = 8

MSG_PASSWORD_TOO_SHORT = f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"
MSG_MISSING_FIELDS = "Username and email are required"
MSG_TAKEN = "Username or email already taken"
MSG_REGISTERED = "Registration successful! Please log in."
MSG_BAD_CREDENTIALS = "Username or password incorrect"
MSG_LOGGED_IN = "Logged in successfully!"
MSG_USERS_FAILED = "Could not load users"


@lru_cache(maxsize=1)
def _dummy_hash() -> str:
    return hash_password(secrets.token_urlsafe(16))


def register_user(
    store: UserStore,
    *,
    username: str,
    email: str,
    password: str,
    name: str = "",
    hash_cost: int = DEFAULT_COST,
) -> Outcome:
    """Create a user row.

    The password length check runs before the store is touched. `name`
    falls back to the username when left blank.
    """
    username = (username or "").strip()
    email = (email or "").strip()
    name = (name or "").strip() or username
    password = password or ""

    if len(password) < MIN_PASSWORD_LENGTH:
        return invalid(MSG_PASSWORD_TOO_SHORT)
    if not username or not email:
        return invalid(MSG_MISSING_FIELDS)

    try:
        new_id = store.create_user(
            username=username,
            name=name,
            email=email,
            password_hash=lambda: hash_password(password, cost=hash_cost),
        )
    except IntegrityError:
        # lost a race against a concurrent registration
        logger.info("registration rejected for {!r}: unique constraint", username)
        return invalid(MSG_TAKEN)
    except SQLAlchemyError:
        logger.exception("registration failed for {!r}", username)
        return failed()

    if new_id is None:
        logger.info("registration rejected for {!r}: username or email taken", username)
        return invalid(MSG_TAKEN)

    logger.info("registered user {!r} (id={})", username, new_id)
    return success(MSG_REGISTERED, new_id)


def authenticate(store: UserStore, *, username: str, password: str, token_secret: str) -> Outcome:
    """Check credentials and issue a credential token.

    An unknown username and a wrong password produce the same outcome.
    On success `value` is the signed token.
    """
    username = (username or "").strip()
    try:
        user = store.find_by_username(username) if username else None
    except SQLAlchemyError:
        logger.exception("login lookup failed for {!r}", username)
        return failed()

    if user is None:
        # unknown users still cost one argon2 verify
        verify_password(_dummy_hash(), password or "")
        logger.info("login failed for {!r}", username)
        return denied(MSG_BAD_CREDENTIALS)
    if not verify_password(user.password_hash, password or ""):
        logger.info("login failed for {!r}", username)
        return denied(MSG_BAD_CREDENTIALS)

    token = issue_token(
        TokenClaims(id=user.id, username=user.username, email=user.email),
        secret=token_secret,
    )
    logger.info("login ok for {!r}", username)
    return success(MSG_LOGGED_IN, token)


def list_users(store: UserStore) -> Outcome:
    try:
        users = store.list_users()
    except SQLAlchemyError:
        logger.exception("loading users failed")
        return failed(MSG_USERS_FAILED)
    return success(value=users)
