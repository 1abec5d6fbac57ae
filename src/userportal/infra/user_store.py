# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Credential store: the relational `user` table behind a pooled engine.

Every method checks a connection out of the pool for the duration of its
statements only; the `with` block returns it on every exit path.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional

from sqlalchemy import (
    Column,
    DateTime,
    Integer,
    MetaData,
    String,
    Table,
    create_engine,
    func,
    or_,
    select,
)
from sqlalchemy.engine import Engine, make_url

from userportal.log import logger

metadata = MetaData()

user_table = Table(
    "user",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("username", String(64), nullable=False, unique=True),
    Column("name", String(128), nullable=False),
    Column("email", String(255), nullable=False, unique=True),
    Column("password_hash", String(255), nullable=False),
    Column("created_at", DateTime, nullable=False, server_default=func.now()),
)


@dataclass(frozen=True)
class UserRecord:
    id: int
    username: str
    name: str
    email: str
    password_hash: str
    created_at: Optional[datetime]


@dataclass(frozen=True)
class UserSummary:
    """A user row without its password hash, safe to render."""

    id: int
    username: str
    name: str
    email: str
    created_at: Optional[datetime]


def create_store_engine(url: str) -> Engine:
    u = make_url(url)
    connect_args: dict[str, object] = {}
    if u.drivername.startswith("sqlite"):
        # handlers run in the threadpool, connections move between threads
        connect_args = {"check_same_thread": False}
        if u.database and u.database != ":memory:":
            Path(u.database).parent.mkdir(parents=True, exist_ok=True)
    return create_engine(url, pool_pre_ping=True, connect_args=connect_args)


class UserStore:
    def __init__(self, engine: Engine):
        self.engine = engine

    @classmethod
    def from_url(cls, url: str) -> "UserStore":
        return cls(create_store_engine(url))

    def init_schema(self) -> None:
        metadata.create_all(self.engine)
        logger.info("user table ensured on {}", self.engine.url.render_as_string(hide_password=True))

    def dispose(self) -> None:
        self.engine.dispose()

    def find_by_username(self, username: str) -> Optional[UserRecord]:
        stmt = select(user_table).where(user_table.c.username == username)
        with self.engine.connect() as conn:
            row = conn.execute(stmt).mappings().first()
        if row is None:
            return None
        return UserRecord(
            id=int(row["id"]),
            username=row["username"],
            name=row["name"],
            email=row["email"],
            password_hash=row["password_hash"],
            created_at=row["created_at"],
        )

    def create_user(
        self, *, username: str, name: str, email: str, password_hash: Callable[[], str]
    ) -> Optional[int]:
        """Insert a user unless the username or email is taken.

        Lookup and insert share one pooled connection. `password_hash` is only
        called once the lookup found no conflict. Returns the new id, or None
        when taken.
        """
        c = user_table.c
        lookup = select(c.id).where(or_(c.username == username, c.email == email)).limit(1)
        with self.engine.begin() as conn:
            if conn.execute(lookup).first() is not None:
                return None
            result = conn.execute(
                user_table.insert().values(
                    username=username,
                    name=name,
                    email=email,
                    password_hash=password_hash(),
                )
            )
            return int(result.inserted_primary_key[0])

    def list_users(self) -> List[UserSummary]:
        c = user_table.c
        stmt = select(c.id, c.username, c.name, c.email, c.created_at).order_by(c.id)
        with self.engine.connect() as conn:
            rows = conn.execute(stmt).mappings().all()
        return [
            UserSummary(
                id=int(r["id"]),
                username=r["username"],
                name=r["name"],
                email=r["email"],
                created_at=r["created_at"],
            )
            for r in rows
        ]
