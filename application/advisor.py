from __future__ import annotations

import re
from typing import Any, Optional, Protocol, Sequence, Tuple

from domain.cards import Card

_ACTION_RE = re.compile(r"recommendation\s*:\s*\**\s*(hit|stand)\b", re.IGNORECASE)
_FALLBACK_RE = re.compile(r"\b(hit|stand)\b", re.IGNORECASE)


class StrategyAdvisor(Protocol):
    """
    Source of Hit/Stand hints for the player.

    Advice carries no authority over the round: callers must treat any
    failure as "no hint" and carry on.
    """

    def recommend(
        self,
        player_cards: Sequence[Any],
        dealer_up_card: Any,
        player_total: int,
    ) -> str:
        ...


def _card_label(card: Any) -> str:
    if isinstance(card, Card):
        return str(card)
    return f"{card.get('rank', '?')}{card.get('suit', '')}"


def build_prompt(player_cards: Sequence[Any], dealer_up_card: Any, player_total: int) -> str:
    cards = ", ".join(_card_label(c) for c in player_cards)
    return (
        "You are a professional blackjack strategy advisor. Given the current game state, "
        "provide a brief recommendation (Hit or Stand) with a short explanation.\n\n"
        "Current situation:\n"
        f"- Your cards: {cards}\n"
        f"- Your total: {player_total}\n"
        f"- Dealer's up card: {_card_label(dealer_up_card)}\n\n"
        "Provide a recommendation in this exact format:\n"
        '"Recommendation: [Hit/Stand]. \\n[Brief 1-sentence explanation based on basic strategy. '
        "Don't do Explanation: ... format. Just give me the explanation.]\"\n\n"
        "Keep the response under 50 words and focus on optimal blackjack strategy."
    )


def parse_recommendation(text: str) -> Tuple[Optional[str], str]:
    """
    Split a model reply into (action, explanation).

    `action` is "Hit", "Stand" or None when the reply names neither.
    """

    text = (text or "").strip().strip('"').strip()
    match = _ACTION_RE.search(text)
    if match:
        explanation = text[match.end():].lstrip(" .*\n").strip()
        return match.group(1).capitalize(), explanation

    # Free-form reply: take the first action word, keep the whole text.
    match = _FALLBACK_RE.search(text)
    if match:
        return match.group(1).capitalize(), text
    return None, text
