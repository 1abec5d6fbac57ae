# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

from functools import lru_cache

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError

DEFAULT_COST = 12


@lru_cache(maxsize=None)
def _hasher(cost: int) -> PasswordHasher:
    return PasswordHasher(time_cost=cost)


def hash_password(plain: str, *, cost: int = DEFAULT_COST) -> str:
    if not plain:
        raise ValueError("Empty password")
    return _hasher(cost).hash(plain)


def verify_password(hash_value: str, plain: str) -> bool:
    """Check `plain` against a stored hash. The cost is read from the hash itself."""
    if not hash_value or not plain:
        return False
    try:
        return _hasher(DEFAULT_COST).verify(hash_value, plain)
    except (VerificationError, InvalidHashError):
        return False
