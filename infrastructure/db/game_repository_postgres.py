from __future__ import annotations

from contextlib import contextmanager
from dataclasses import replace
from typing import List

import psycopg2

from domain.models import GameRecord, GameResult
from domain.repositories import GameRepository, RepositoryError


class PostgresGameRepository(GameRepository):
    """
    Postgres-backed implementation of `GameRepository`.

    `id` and `created_at` are assigned by the database on insert.
    """

    def __init__(self, db_params: dict) -> None:
        self._db_params = db_params
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
                CREATE TABLE IF NOT EXISTS games (
                    id BIGSERIAL PRIMARY KEY,
                    user_id TEXT NOT NULL,
                    bet INTEGER NOT NULL,
                    result TEXT NOT NULL CHECK (result IN ('win', 'loss', 'push')),
                    delta INTEGER NOT NULL,
                    player_total INTEGER NOT NULL,
                    dealer_total INTEGER NOT NULL,
                    created_at TIMESTAMPTZ NOT NULL DEFAULT now()
                )
                """
            )
            cur.execute(
                "CREATE INDEX IF NOT EXISTS games_user_created ON games (user_id, created_at DESC)"
            )

    @staticmethod
    def _to_domain(row: tuple) -> GameRecord:
        return GameRecord(
            id=int(row[0]),
            user_id=str(row[1]),
            bet=int(row[2]),
            result=GameResult(row[3]),
            delta=int(row[4]),
            player_total=int(row[5]),
            dealer_total=int(row[6]),
            created_at=row[7],
        )

    def add_game(self, record: GameRecord) -> GameRecord:
        with self._cursor() as cur:
            cur.execute(
                """
                INSERT INTO games (user_id, bet, result, delta, player_total, dealer_total)
                VALUES (%s, %s, %s, %s, %s, %s)
                RETURNING id, created_at
                """,
                (
                    record.user_id,
                    record.bet,
                    GameResult(record.result).value,
                    record.delta,
                    record.player_total,
                    record.dealer_total,
                ),
            )
            game_id, created_at = cur.fetchone()
            return replace(record, id=int(game_id), created_at=created_at)

    def list_games(self, user_id: str, limit: int = 50) -> List[GameRecord]:
        with self._cursor() as cur:
            cur.execute(
                """
                SELECT id, user_id, bet, result, delta, player_total, dealer_total, created_at
                FROM games
                WHERE user_id = %s
                ORDER BY created_at DESC, id DESC
                LIMIT %s
                """,
                (user_id, limit),
            )
            return [self._to_domain(row) for row in cur.fetchall()]
