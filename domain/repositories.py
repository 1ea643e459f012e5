from __future__ import annotations

from typing import List, Optional, Protocol

from .models import GameRecord, Profile


class RepositoryError(Exception):
    """Raised by repository implementations when the backing store fails."""


class ProfileRepository(Protocol):
    """
    Abstraction over chip balances, one profile per client identifier.

    Implementations are responsible for:
    - Creating a profile with the default balance on first use.
    - Applying balance changes atomically, never read-modify-write.
    """

    def get_profile(self, user_id: str) -> Optional[Profile]:
        """Return the profile for the given client ID, or None if not found."""

        ...

    def ensure_profile(self, user_id: str) -> None:
        """Create a profile with the default balance if none exists yet."""

        ...

    def increment_chips(self, user_id: str, delta: int) -> int:
        """
        Add `delta` to the user's balance and return the new balance.

        Implementations must apply the delta in a single atomic statement
        so concurrent settlements for the same user never lose an update.
        """

        ...


class GameRepository(Protocol):
    """
    Append-only store of settled rounds.
    """

    def add_game(self, record: GameRecord) -> GameRecord:
        """Persist a new record and return it with `id` and `created_at` set."""

        ...

    def list_games(self, user_id: str, limit: int = 50) -> List[GameRecord]:
        """Return the user's games, newest first."""

        ...
