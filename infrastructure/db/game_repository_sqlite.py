from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from dataclasses import replace
from datetime import datetime, timezone
from typing import Iterator, List

from domain.models import GameRecord, GameResult
from domain.repositories import GameRepository, RepositoryError


class SqliteGameRepository(GameRepository):
    """
    SQLite-backed implementation of `GameRepository`.

    Owns the `games` table. Rows are only ever inserted.
    """

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path
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
                CREATE TABLE IF NOT EXISTS games (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id TEXT NOT NULL,
                    bet INTEGER NOT NULL,
                    result TEXT NOT NULL CHECK (result IN ('win', 'loss', 'push')),
                    delta INTEGER NOT NULL,
                    player_total INTEGER NOT NULL,
                    dealer_total INTEGER NOT NULL,
                    created_at TEXT NOT NULL
                )
                """
            )
            conn.execute(
                "CREATE INDEX IF NOT EXISTS games_user_created ON games (user_id, created_at)"
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
            created_at=datetime.fromisoformat(row[7]),
        )

    def add_game(self, record: GameRecord) -> GameRecord:
        created_at = datetime.now(timezone.utc)
        with self._connection() as conn:
            cur = conn.execute(
                """
                INSERT INTO games (
                    user_id, bet, result, delta, player_total, dealer_total, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    record.user_id,
                    record.bet,
                    GameResult(record.result).value,
                    record.delta,
                    record.player_total,
                    record.dealer_total,
                    created_at.isoformat(),
                ),
            )
            return replace(record, id=cur.lastrowid, created_at=created_at)

    def list_games(self, user_id: str, limit: int = 50) -> List[GameRecord]:
        with self._connection() as conn:
            rows = conn.execute(
                """
                SELECT id, user_id, bet, result, delta, player_total, dealer_total, created_at
                FROM games
                WHERE user_id = ?
                ORDER BY created_at DESC, id DESC
                LIMIT ?
                """,
                (user_id, limit),
            ).fetchall()
            return [self._to_domain(row) for row in rows]
