# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Result values returned by the account services.

Routes never inspect exceptions from the store directly: a service returns an
`Outcome` and a single response step turns it into a flash + redirect.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

OK = "ok"
VALIDATION = "validation"
AUTHENTICATION = "authentication"
INFRASTRUCTURE = "infrastructure"

GENERIC_ERROR = "An error occurred. Please try again later."


@dataclass(frozen=True)
class Outcome:
    kind: str
    message: str = ""
    value: Optional[Any] = None

    @property
    def ok(self) -> bool:
        return self.kind == OK

    @property
    def flash_category(self) -> str:
        return "success" if self.ok else "error"


def success(message: str = "", value: Any = None) -> Outcome:
    return Outcome(OK, message, value)


def invalid(message: str) -> Outcome:
    return Outcome(VALIDATION, message)


def denied(message: str) -> Outcome:
    return Outcome(AUTHENTICATION, message)


def failed(message: str = GENERIC_ERROR) -> Outcome:
    return Outcome(INFRASTRUCTURE, message)
