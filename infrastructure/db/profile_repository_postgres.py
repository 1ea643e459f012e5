from __future__ import annotations

from contextlib import contextmanager
from typing import Optional

import psycopg2

from domain.models import DEFAULT_STARTING_CHIPS, Profile
from domain.repositories import ProfileRepository, RepositoryError


class PostgresProfileRepository(ProfileRepository):
    """
    Postgres-backed implementation of `ProfileRepository`.

    The balance is changed with `UPDATE ... SET chips = chips + %s
    RETURNING chips`, a single statement that Postgres applies under a row
    lock, so concurrent settlements for one client cannot lose updates.
    """

    def __init__(self, db_params: dict, starting_chips: int = DEFAULT_STARTING_CHIPS) -> None:
        self._db_params = db_params
        self._starting_chips = starting_chips
        self._ensure_table()

    @contextmanager
    def _cursor(self):
        try:
            conn = psycopg2.connect(**self._db_params)
        except psycopg2.Error as e:
            raise RepositoryError(str(e)) from e
        try:
            with conn:
                with conn.cursor() as cur:
                    yield cur
        except psycopg2.Error as e:
            raise RepositoryError(str(e)) from e
        finally:
            conn.close()

    def _ensure_table(self) -> None:
        with self._cursor() as cur:
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS profiles (
                    id TEXT PRIMARY KEY,
                    chips INTEGER NOT NULL DEFAULT 500,
                    created_at TIMESTAMPTZ NOT NULL DEFAULT now()
                )
                """
            )

    def get_profile(self, user_id: str) -> Optional[Profile]:
        with self._cursor() as cur:
            cur.execute("SELECT id, chips FROM profiles WHERE id = %s", (user_id,))
            row = cur.fetchone()
            if not row:
                return None
            return Profile(id=str(row[0]), chips=int(row[1]))

    def ensure_profile(self, user_id: str) -> None:
        with self._cursor() as cur:
            cur.execute(
                """
                INSERT INTO profiles (id, chips)
                VALUES (%s, %s)
                ON CONFLICT (id) DO NOTHING
                """,
                (user_id, self._starting_chips),
            )

    def increment_chips(self, user_id: str, delta: int) -> int:
        with self._cursor() as cur:
            cur.execute(
                """
                UPDATE profiles
                SET chips = chips + %s
                WHERE id = %s
                RETURNING chips
                """,
                (delta, user_id),
            )
            row = cur.fetchone()
            if not row:
                raise RepositoryError(f"No profile for {user_id}")
            return int(row[0])
