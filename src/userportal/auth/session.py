# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Server-side sessions and one-shot flash messages.

The client only holds a random session id signed with the session secret.
Session data lives in a `SessionStore` and expires after `max_age` seconds
without access. Empty sessions are never stored and get no cookie.
"""

from __future__ import annotations

import copy
import secrets
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

from fastapi import Request
from itsdangerous import BadSignature, Signer
from starlette.responses import Response

SESSION_COOKIE = "session"
DEFAULT_MAX_AGE_SECONDS = 60 * 60
_SALT = "userportal.session.v1"
_FLASH_KEY = "_flashes"

FLASH_CATEGORIES = ("success", "error")


class SessionStore:
    """In-process session storage with an inactivity deadline per entry."""

    def __init__(self, max_age: int = DEFAULT_MAX_AGE_SECONDS, clock: Callable[[], float] = time.monotonic):
        self.max_age = max_age
        self._clock = clock
        self._lock = threading.Lock()
        self._items: Dict[str, Tuple[float, Dict[str, Any]]] = {}

    def get(self, sid: str) -> Optional[Dict[str, Any]]:
        now = self._clock()
        with self._lock:
            self._purge(now)
            item = self._items.get(sid)
            if item is None:
                return None
            _, data = item
            # touching refreshes the inactivity window
            self._items[sid] = (now + self.max_age, data)
            return copy.deepcopy(data)

    def set(self, sid: str, data: Dict[str, Any]) -> None:
        with self._lock:
            self._items[sid] = (self._clock() + self.max_age, copy.deepcopy(data))

    def delete(self, sid: str) -> None:
        with self._lock:
            self._items.pop(sid, None)

    def __len__(self) -> int:
        with self._lock:
            self._purge(self._clock())
            return len(self._items)

    def _purge(self, now: float) -> None:
        expired = [sid for sid, (deadline, _) in self._items.items() if deadline <= now]
        for sid in expired:
            del self._items[sid]


@dataclass
class Session:
    sid: str
    data: Dict[str, Any] = field(default_factory=dict)
    stored: bool = False
    modified: bool = False

    def flash(self, category: str, message: str) -> None:
        if category not in FLASH_CATEGORIES:
            raise ValueError(f"Unknown flash category: {category}")
        pending = self.data.setdefault(_FLASH_KEY, {})
        pending.setdefault(category, []).append(message)
        self.modified = True

    def pop_flashes(self) -> Dict[str, List[str]]:
        pending = self.data.pop(_FLASH_KEY, None) or {}
        if pending:
            self.modified = True
        return {c: list(pending.get(c, [])) for c in FLASH_CATEGORIES}


class SessionManager:
    """Loads the session for a request and writes it back onto the response."""

    def __init__(self, secret: str, store: SessionStore, *, cookie_settings: Optional[dict] = None):
        if not secret:
            raise RuntimeError("Missing session secret")
        self.store = store
        self._signer = Signer(secret, salt=_SALT)
        self._cookie_settings = cookie_settings or {"httponly": True, "samesite": "lax", "secure": False}

    def open(self, cookie_value: Optional[str]) -> Session:
        sid = self._unsign(cookie_value)
        if sid:
            data = self.store.get(sid)
            if data is not None:
                return Session(sid=sid, data=data, stored=True)
        return Session(sid=secrets.token_urlsafe(32))

    def commit(self, session: Session, response: Response) -> None:
        if session.data:
            self.store.set(session.sid, session.data)
            response.set_cookie(
                SESSION_COOKIE,
                self._signer.sign(session.sid).decode("ascii"),
                max_age=self.store.max_age,
                **self._cookie_settings,
            )
        elif session.stored:
            self.store.delete(session.sid)
            response.delete_cookie(SESSION_COOKIE)

    def _unsign(self, cookie_value: Optional[str]) -> str:
        if not cookie_value:
            return ""
        try:
            return self._signer.unsign(cookie_value).decode("ascii")
        except BadSignature:
            return ""


def get_session(request: Request) -> Session:
    return request.state.session


def flash(request: Request, category: str, message: str) -> None:
    get_session(request).flash(category, message)
