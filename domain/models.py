from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

DEFAULT_STARTING_CHIPS = 500

# Largest chip amount a column can hold (Postgres INTEGER).
MAX_CHIPS = 2**31 - 1


class GameResult(str, Enum):
    WIN = "win"
    LOSS = "loss"
    PUSH = "push"


@dataclass
class Profile:
    """
    Chip balance for a single client identifier.

    The balance is only ever changed through an atomic increment in the
    repository layer; this model is a read snapshot.
    """

    id: str
    chips: int


@dataclass
class GameRecord:
    """
    A settled blackjack round.

    Records are written exactly once per round and never updated. `id` and
    `created_at` are assigned by the repository on insert.
    """

    user_id: str
    bet: int
    result: GameResult
    delta: int
    player_total: int
    dealer_total: int
    id: Optional[int] = None
    created_at: Optional[datetime] = None
