from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Iterator, Optional

from domain.models import DEFAULT_STARTING_CHIPS, Profile
from domain.repositories import ProfileRepository, RepositoryError


class SqliteProfileRepository(ProfileRepository):
    """
    SQLite-backed implementation of `ProfileRepository`.

    Owns the `profiles` table. Balance changes run as one UPDATE inside a
    write transaction, so two processes settling for the same client
    serialise on SQLite's write lock instead of overwriting each other.
    """

    def __init__(self, db_path: str, starting_chips: int = DEFAULT_STARTING_CHIPS) -> None:
        self._db_path = db_path
        self._starting_chips = starting_chips
        self._ensure_table()

    @contextmanager
    def _connection(self) -> Iterator[sqlite3.Connection]:
        try:
            conn = sqlite3.connect(self._db_path)
        except sqlite3.Error as e:
            raise RepositoryError(str(e)) from e
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise RepositoryError(str(e)) from e
        finally:
            conn.close()

    def _ensure_table(self) -> None:
        with self._connection() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS profiles (
                    id TEXT PRIMARY KEY,
                    chips INTEGER NOT NULL DEFAULT 500,
                    created_at TEXT NOT NULL
                )
                """
            )

    def get_profile(self, user_id: str) -> Optional[Profile]:
        with self._connection() as conn:
            row = conn.execute(
                "SELECT id, chips FROM profiles WHERE id = ?",
                (user_id,),
            ).fetchone()
            if not row:
                return None
            return Profile(id=str(row[0]), chips=int(row[1]))

    def ensure_profile(self, user_id: str) -> None:
        with self._connection() as conn:
            conn.execute(
                """
                INSERT OR IGNORE INTO profiles (id, chips, created_at)
                VALUES (?, ?, ?)
                """,
                (user_id, self._starting_chips, datetime.now(timezone.utc).isoformat()),
            )

    def increment_chips(self, user_id: str, delta: int) -> int:
        with self._connection() as conn:
            cur = conn.execute(
                "UPDATE profiles SET chips = chips + ? WHERE id = ?",
                (delta, user_id),
            )
            if cur.rowcount == 0:
                raise RepositoryError(f"No profile for {user_id}")
            # Same transaction as the UPDATE: the write lock is still held.
            row = conn.execute(
                "SELECT chips FROM profiles WHERE id = ?",
                (user_id,),
            ).fetchone()
            return int(row[0])
