import itertools
import random
import unittest

from domain.cards import RANKS, SUITS, Card, card_from_dict, draw_card
from domain.models import GameResult
from domain.rules import (
    HandTotal,
    calc_hand_total,
    dealer_auto_play,
    is_bust,
    is_natural,
    resolve_result,
    settlement_delta,
)
from fakes import ScriptedDraw, hand


def _hard_value(rank: str) -> int:
    if rank == "A":
        return 1
    if rank in ("J", "Q", "K"):
        return 10
    return int(rank)


class CardTests(unittest.TestCase):
    def test_draw_card_covers_all_52_cards(self):
        rng = random.Random(1234)
        seen = {draw_card(rng) for _ in range(5000)}
        self.assertEqual(len(seen), 52)
        for card in seen:
            self.assertIn(card.rank, RANKS)
            self.assertIn(card.suit, SUITS)

    def test_card_is_immutable_and_renders_rank_then_suit(self):
        card = Card("10", "♥")
        self.assertEqual(str(card), "10♥")
        with self.assertRaises(AttributeError):
            card.rank = "J"

    def test_card_from_dict_rejects_unknown_values(self):
        self.assertEqual(card_from_dict({"rank": "Q", "suit": "♣"}), Card("Q", "♣"))
        with self.assertRaises(ValueError):
            card_from_dict({"rank": "1", "suit": "♣"})
        with self.assertRaises(ValueError):
            card_from_dict({"rank": "Q", "suit": "x"})
        with self.assertRaises(ValueError):
            card_from_dict("Q♣")


class HandTotalTests(unittest.TestCase):
    def test_pair_of_aces_is_soft_twelve(self):
        self.assertEqual(calc_hand_total(hand("A", "A")), HandTotal(12, True))

    def test_two_aces_and_nine_is_soft_twenty_one(self):
        self.assertEqual(calc_hand_total(hand("A", "A", "9")), HandTotal(21, True))

    def test_bust_without_aces_is_not_corrected(self):
        self.assertEqual(calc_hand_total(hand("K", "Q", "5")), HandTotal(25, False))

    def test_all_aces_demoted(self):
        self.assertEqual(calc_hand_total(hand("A", "K", "Q")), HandTotal(21, False))
        self.assertEqual(calc_hand_total(hand("A", "A", "K", "Q")), HandTotal(22, False))

    def test_empty_hand(self):
        self.assertEqual(calc_hand_total([]), HandTotal(0, False))

    def test_matches_hard_count_for_every_three_card_hand(self):
        # Soft iff an ace can still count as 11 without busting.
        for ranks in itertools.product(RANKS, repeat=3):
            hard = sum(_hard_value(r) for r in ranks)
            can_be_soft = "A" in ranks and hard + 10 <= 21
            expected = HandTotal(hard + 10 if can_be_soft else hard, can_be_soft)
            self.assertEqual(calc_hand_total(hand(*ranks)), expected, ranks)
            self.assertGreaterEqual(expected.total, 3)
            self.assertLessEqual(expected.total, 33)

    def test_is_pure(self):
        cards = hand("A", "6", "9")
        self.assertEqual(calc_hand_total(cards), calc_hand_total(cards))
        self.assertEqual(cards, hand("A", "6", "9"))

    def test_bust_and_natural(self):
        self.assertTrue(is_bust(hand("K", "Q", "2")))
        self.assertFalse(is_bust(hand("K", "A")))
        self.assertTrue(is_natural(hand("A", "J")))
        self.assertFalse(is_natural(hand("7", "7", "7")))


class DealerPolicyTests(unittest.TestCase):
    def test_draws_until_seventeen_without_mutating_input(self):
        initial = hand("5", "6")
        final = dealer_auto_play(initial, ScriptedDraw("2", "4", "9"))
        self.assertEqual([c.rank for c in final], ["5", "6", "2", "4"])
        self.assertEqual(calc_hand_total(final).total, 17)
        self.assertEqual(len(initial), 2)

    def test_stands_on_soft_seventeen(self):
        draw = ScriptedDraw("K")
        final = dealer_auto_play(hand("A", "6"), draw)
        self.assertEqual(len(final), 2)
        self.assertEqual(draw.drawn, 0)

    def test_always_finishes_at_seventeen_or_more(self):
        rng = random.Random(7)
        for _ in range(500):
            start = [draw_card(rng), draw_card(rng)]
            final = dealer_auto_play(start, lambda: draw_card(rng))
            self.assertGreaterEqual(calc_hand_total(final).total, 17)
            self.assertEqual(final[:2], start)


class ResolveResultTests(unittest.TestCase):
    def test_decision_order(self):
        self.assertEqual(resolve_result(hand("K", "Q", "5"), hand("K", "Q", "6")), GameResult.LOSS)
        self.assertEqual(resolve_result(hand("K", "2"), hand("K", "Q", "6")), GameResult.WIN)
        self.assertEqual(resolve_result(hand("K", "Q"), hand("K", "9")), GameResult.WIN)
        self.assertEqual(resolve_result(hand("K", "8"), hand("K", "9")), GameResult.LOSS)
        self.assertEqual(resolve_result(hand("K", "9"), hand("Q", "9")), GameResult.PUSH)

    def test_natural_is_not_special(self):
        self.assertEqual(resolve_result(hand("A", "K"), hand("7", "7", "7")), GameResult.PUSH)

    def test_never_wins_both_ways(self):
        hands = [hand("K", "Q", "5"), hand("K", "7"), hand("K", "9"), hand("A", "K"), hand("9", "9")]
        for a, b in itertools.product(hands, repeat=2):
            forward = resolve_result(a, b)
            backward = resolve_result(b, a)
            self.assertFalse(forward == GameResult.WIN and backward == GameResult.WIN)

    def test_settlement_delta(self):
        self.assertEqual(settlement_delta(25, GameResult.WIN), 25)
        self.assertEqual(settlement_delta(25, GameResult.LOSS), -25)
        self.assertEqual(settlement_delta(25, GameResult.PUSH), 0)


if __name__ == "__main__":
    unittest.main()
