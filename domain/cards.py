from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Optional

SUITS = ("♠", "♥", "♦", "♣")
RANKS = ("A", "2", "3", "4", "5", "6", "7", "8", "9", "10", "J", "Q", "K")


@dataclass(frozen=True)
class Card:
    """
    A single playing card.

    Cards are immutable once drawn; a hand is just a list of them.
    """

    rank: str
    suit: str

    def __str__(self) -> str:
        return f"{self.rank}{self.suit}"

    def to_dict(self) -> dict:
        return {"rank": self.rank, "suit": self.suit}


def card_from_dict(data: dict) -> Card:
    """Build a `Card` from its JSON form, rejecting unknown ranks or suits."""

    if not isinstance(data, dict):
        raise ValueError(f"Invalid card: {data!r}")

    rank = str(data.get("rank", ""))
    suit = str(data.get("suit", ""))
    if rank not in RANKS or suit not in SUITS:
        raise ValueError(f"Invalid card: {data!r}")
    return Card(rank=rank, suit=suit)


def draw_card(rng: Optional[random.Random] = None) -> Card:
    """
    Draw one card uniformly from the 52 rank/suit combinations.

    Draws are with replacement (an infinite shoe), so there is no deck
    state to share or deplete between rounds.
    """

    source = rng or random
    return Card(rank=source.choice(RANKS), suit=source.choice(SUITS))
