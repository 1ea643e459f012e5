import unittest

from application.game import (
    GameController,
    GameSession,
    Phase,
    ServiceSettlementGateway,
    SettlementError,
)
from application.services import ClientContext, get_game_history
from domain.models import GameResult
from fakes import (
    FailingProfileRepository,
    InMemoryGameRepository,
    InMemoryProfileRepository,
    ScriptedDraw,
)


class RecordingGateway:
    def __init__(self, chips=500, error=None):
        self.chips = chips
        self.error = error
        self.calls = []

    def settle(self, client_id, bet, result, delta, player_total, dealer_total):
        self.calls.append((client_id, bet, result, delta, player_total, dealer_total))
        if self.error:
            raise self.error
        self.chips += delta
        return self.chips

    def get_chips(self, client_id):
        return self.chips


class StubAdvisor:
    def __init__(self, reply=None, error=None):
        self.reply = reply
        self.error = error

    def recommend(self, player_cards, dealer_up_card, player_total):
        if self.error:
            raise self.error
        return self.reply


class GameControllerTests(unittest.TestCase):
    def _controller(self, draw, gateway=None, chips=500, advisor=None):
        gateway = gateway or RecordingGateway(chips)
        session = GameSession(client_id="client-1", chips=chips)
        return GameController(session, gateway, draw=draw, advisor=advisor), gateway

    def test_stand_win_settles_once_and_updates_balance(self):
        # Player K Q = 20, dealer 9 K = 19.
        game, gateway = self._controller(ScriptedDraw("K", "Q", "9", "K"))
        self.assertTrue(game.place_bet(10))
        self.assertTrue(game.deal())
        self.assertEqual(game.phase, Phase.PLAYER)

        self.assertTrue(game.stand())
        self.assertEqual(game.phase, Phase.FINISHED)
        self.assertEqual(game.result, GameResult.WIN)
        self.assertEqual(game.session.chips, 510)
        self.assertEqual(gateway.calls, [("client-1", 10, GameResult.WIN, 10, 20, 19)])
        self.assertEqual(game.message, "You win!")

    def test_hit_to_bust_is_an_immediate_loss(self):
        # Player 10 3, dealer 5 6, player hits K = 23.
        game, gateway = self._controller(ScriptedDraw("10", "3", "5", "6", "K"))
        game.place_bet(25)
        game.deal()
        self.assertTrue(game.hit())

        self.assertEqual(game.phase, Phase.FINISHED)
        self.assertEqual(game.result, GameResult.LOSS)
        self.assertEqual(game.message, "Bust! Dealer wins.")
        self.assertEqual(len(gateway.calls), 1)
        self.assertEqual(gateway.calls[0][2:4], (GameResult.LOSS, -25))
        self.assertEqual(gateway.calls[0][4], 23)
        self.assertEqual(game.session.chips, 475)

        # Further actions are ignored and never settle again.
        self.assertFalse(game.hit())
        self.assertFalse(game.stand())
        self.assertEqual(len(gateway.calls), 1)

    def test_dealer_plays_out_and_push(self):
        # Player 10 8 = 18, dealer 6 2 then draws K = 18.
        game, gateway = self._controller(ScriptedDraw("10", "8", "6", "2", "K"))
        game.deal()
        game.stand()
        self.assertEqual(game.result, GameResult.PUSH)
        self.assertEqual(len(game.dealer), 3)
        self.assertEqual(game.session.chips, 500)
        self.assertEqual(gateway.calls[0][3], 0)

    def test_natural_pays_even_money(self):
        game, _ = self._controller(ScriptedDraw("A", "K", "10", "7"))
        game.deal()
        game.stand()
        self.assertEqual(game.result, GameResult.WIN)
        self.assertEqual(game.message, "Blackjack! You win!")
        self.assertEqual(game.session.chips, 510)

    def test_hole_card_hidden_during_player_turn(self):
        game, _ = self._controller(ScriptedDraw("9", "7", "Q", "5", "2", "K"))
        game.deal()
        visible = game.visible_dealer_cards()
        self.assertIsNone(visible[0])
        self.assertEqual(str(visible[1]), "5♣")
        self.assertIsNone(game.dealer_total())

        game.stand()
        self.assertNotIn(None, game.visible_dealer_cards())
        self.assertEqual(game.dealer_total(), 17)

    def test_bet_out_of_range_is_rejected_without_state_change(self):
        draw = ScriptedDraw("K", "Q", "9", "K")
        game, gateway = self._controller(draw, chips=50)
        self.assertFalse(game.place_bet(0))
        self.assertEqual(game.message, "Bet must be at least 1.")
        self.assertFalse(game.place_bet(51))
        self.assertEqual(game.message, "Bet exceeds your chip balance.")
        self.assertEqual(game.bet, 10)
        self.assertEqual(game.phase, Phase.BETTING)
        self.assertEqual(draw.drawn, 0)

    def test_deal_rechecks_bet_against_current_balance(self):
        draw = ScriptedDraw("K", "Q", "9", "K")
        game, _ = self._controller(draw, chips=5)
        self.assertFalse(game.deal())
        self.assertEqual(game.phase, Phase.BETTING)
        self.assertEqual(draw.drawn, 0)

    def test_actions_out_of_phase_are_ignored(self):
        game, _ = self._controller(ScriptedDraw("K", "Q", "9", "K"))
        self.assertFalse(game.hit())
        self.assertFalse(game.stand())
        self.assertFalse(game.new_game())
        game.deal()
        self.assertFalse(game.deal())
        self.assertFalse(game.place_bet(20))

    def test_new_game_resets_table(self):
        game, _ = self._controller(ScriptedDraw("K", "Q", "9", "K"))
        game.deal()
        game.stand()
        self.assertTrue(game.new_game())
        self.assertEqual(game.phase, Phase.BETTING)
        self.assertEqual(game.player, [])
        self.assertEqual(game.dealer, [])
        self.assertIsNone(game.result)

    def test_settlement_failure_keeps_balance_and_finishes_round(self):
        gateway = RecordingGateway(error=SettlementError("boom"))
        game, _ = self._controller(ScriptedDraw("K", "Q", "9", "K"), gateway=gateway)
        game.deal()
        with self.assertLogs("application.game", level="ERROR"):
            game.stand()
        self.assertEqual(game.phase, Phase.FINISHED)
        self.assertEqual(game.result, GameResult.WIN)
        self.assertEqual(game.message, "You win!")
        self.assertEqual(game.session.chips, 500)
        self.assertEqual(len(gateway.calls), 1)

    def test_network_style_failure_is_logged_not_raised(self):
        gateway = RecordingGateway(error=ConnectionError("unreachable"))
        game, _ = self._controller(ScriptedDraw("10", "3", "5", "6", "K"), gateway=gateway)
        game.deal()
        with self.assertLogs("application.game", level="ERROR"):
            game.hit()
        self.assertEqual(game.phase, Phase.FINISHED)
        self.assertEqual(game.session.chips, 500)

    def test_hint_uses_visible_card_and_never_changes_round(self):
        advisor = StubAdvisor("Recommendation: Hit. \nAlways hit 12 against a 7.")
        game, gateway = self._controller(ScriptedDraw("10", "2", "Q", "7"), advisor=advisor)
        self.assertIsNone(game.hint())
        game.deal()

        hint = game.hint()
        self.assertEqual(hint.action, "Hit")
        self.assertEqual(game.phase, Phase.PLAYER)
        self.assertEqual(gateway.calls, [])

    def test_failing_hint_returns_none(self):
        advisor = StubAdvisor(error=RuntimeError("down"))
        game, _ = self._controller(ScriptedDraw("10", "2", "Q", "7"), advisor=advisor)
        game.deal()
        with self.assertLogs("application.services", level="ERROR"):
            self.assertIsNone(game.hint())
        self.assertEqual(game.phase, Phase.PLAYER)


class ServiceGatewayEndToEndTests(unittest.TestCase):
    def setUp(self) -> None:
        self.profile_repo = InMemoryProfileRepository()
        self.game_repo = InMemoryGameRepository()
        self.gateway = ServiceSettlementGateway(self.profile_repo, self.game_repo)

    def test_win_round_persists_history_and_balance(self):
        session = GameSession("client-1")
        game = GameController(session, self.gateway, draw=ScriptedDraw("K", "Q", "9", "K"))
        self.assertTrue(game.refresh_chips())
        self.assertEqual(session.chips, 500)

        game.place_bet(10)
        game.deal()
        game.stand()

        self.assertEqual(session.chips, 510)
        self.assertEqual(self.profile_repo.chips["client-1"], 510)
        history = get_game_history(ClientContext("client-1"), self.game_repo)
        self.assertEqual(len(history.games), 1)
        self.assertEqual(history.games[0].result, GameResult.WIN)
        self.assertEqual(history.games[0].delta, 10)

    def test_storage_failure_leaves_local_balance(self):
        gateway = ServiceSettlementGateway(FailingProfileRepository(), self.game_repo)
        session = GameSession("client-1", chips=500)
        game = GameController(session, gateway, draw=ScriptedDraw("10", "3", "5", "6", "K"))
        game.deal()
        with self.assertLogs("application.game", level="ERROR"):
            game.hit()
        self.assertEqual(session.chips, 500)
        self.assertEqual(game.phase, Phase.FINISHED)

    def test_rejected_settlement_raises_settlement_error(self):
        with self.assertRaises(SettlementError):
            self.gateway.settle("client-1", 10, GameResult.WIN, -10, 20, 19)


if __name__ == "__main__":
    unittest.main()
