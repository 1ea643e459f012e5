from __future__ import annotations

from typing import Callable, List, NamedTuple, Sequence

from .cards import Card, draw_card
from .models import GameResult

BLACKJACK = 21
DEALER_STANDS_ON = 17

FACE_RANKS = ("J", "Q", "K")


class HandTotal(NamedTuple):
    total: int
    soft: bool


def calc_hand_total(hand: Sequence[Card]) -> HandTotal:
    """
    Best total for a hand under blackjack ace rules.

    Every ace starts at 11 and is demoted to 1, one at a time, while the
    hand is over 21. `soft` is True when an ace is still counted as 11.
    """

    total = 0
    soft_aces = 0
    for card in hand:
        if card.rank == "A":
            soft_aces += 1
            total += 11
        elif card.rank in FACE_RANKS:
            total += 10
        else:
            total += int(card.rank)

    while total > BLACKJACK and soft_aces > 0:
        total -= 10
        soft_aces -= 1

    return HandTotal(total=total, soft=soft_aces > 0)


def is_bust(hand: Sequence[Card]) -> bool:
    return calc_hand_total(hand).total > BLACKJACK


def is_natural(hand: Sequence[Card]) -> bool:
    """Two-card 21. Display only: naturals pay the same as any other win."""
    return len(hand) == 2 and calc_hand_total(hand).total == BLACKJACK


def dealer_auto_play(
    dealer_hand: Sequence[Card],
    draw: Callable[[], Card] = draw_card,
) -> List[Card]:
    """
    Play out the dealer's hand: draw on 16 or less, stand on any 17.

    Soft 17 is not distinguished. The input is left untouched and the
    extended hand is returned as a new list.
    """

    hand = list(dealer_hand)
    while calc_hand_total(hand).total < DEALER_STANDS_ON:
        hand.append(draw())
    return hand


def resolve_result(player_hand: Sequence[Card], dealer_hand: Sequence[Card]) -> GameResult:
    player = calc_hand_total(player_hand).total
    dealer = calc_hand_total(dealer_hand).total

    # A player bust loses even when the dealer also busts.
    if player > BLACKJACK:
        return GameResult.LOSS
    if dealer > BLACKJACK:
        return GameResult.WIN
    if player > dealer:
        return GameResult.WIN
    if player < dealer:
        return GameResult.LOSS
    return GameResult.PUSH


def settlement_delta(bet: int, result: GameResult) -> int:
    """Chip change for a settled round: +bet, -bet or 0."""

    if result == GameResult.WIN:
        return bet
    if result == GameResult.LOSS:
        return -bet
    return 0
