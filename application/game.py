from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Protocol

from application.advisor import StrategyAdvisor
from application.services import (
    ChipsResult,
    ClientContext,
    RecommendationResult,
    buy_chips,
    recommend_action,
    settle_game,
)
from domain.cards import Card, draw_card
from domain.models import GameResult
from domain.repositories import GameRepository, ProfileRepository
from domain.rules import (
    calc_hand_total,
    dealer_auto_play,
    is_natural,
    resolve_result,
    settlement_delta,
)

log = logging.getLogger(__name__)

DEFAULT_BET = 10


class SettlementError(Exception):
    """The settlement backend rejected the call or could not be reached."""


class Phase(str, Enum):
    BETTING = "BETTING"
    PLAYER = "PLAYER"
    DEALER = "DEALER"
    FINISHED = "FINISHED"


class SettlementGateway(Protocol):
    """
    What the controller needs from the settlement backend.

    Implementations raise `SettlementError` for rejected or failed calls.
    """

    def settle(
        self,
        client_id: str,
        bet: int,
        result: GameResult,
        delta: int,
        player_total: int,
        dealer_total: int,
    ) -> int:
        """Persist the round and return the new chip balance."""

        ...

    def get_chips(self, client_id: str) -> int:
        ...


class ServiceSettlementGateway(SettlementGateway):
    """
    In-process gateway that calls the application services directly.

    Used by surfaces (the Discord bot) that live next to the database.
    """

    def __init__(self, profile_repo: ProfileRepository, game_repo: GameRepository) -> None:
        self._profile_repo = profile_repo
        self._game_repo = game_repo

    @staticmethod
    def _unwrap(result: ChipsResult) -> int:
        if not result.success:
            raise SettlementError(result.error_message or "settlement failed")
        return result.chips

    def settle(self, client_id, bet, result, delta, player_total, dealer_total) -> int:
        return self._unwrap(
            settle_game(
                ClientContext(client_id),
                bet,
                result,
                delta,
                player_total,
                dealer_total,
                self._profile_repo,
                self._game_repo,
            )
        )

    def get_chips(self, client_id: str) -> int:
        return self._unwrap(buy_chips(ClientContext(client_id), 0, self._profile_repo))


@dataclass
class GameSession:
    """Per-player context passed to the controller instead of global state."""

    client_id: str
    chips: int = 0


class GameController:
    """
    Drives one player's rounds: BETTING -> PLAYER -> DEALER -> FINISHED.

    Actions called in the wrong phase are ignored and return False. The
    dealer's first card is the hole card and stays hidden until the
    player stands or busts.
    """

    def __init__(
        self,
        session: GameSession,
        gateway: SettlementGateway,
        draw: Callable[[], Card] = draw_card,
        advisor: Optional[StrategyAdvisor] = None,
        default_bet: int = DEFAULT_BET,
    ) -> None:
        self.session = session
        self._gateway = gateway
        self._draw = draw
        self._advisor = advisor

        self.phase = Phase.BETTING
        self.bet = default_bet
        self.player: List[Card] = []
        self.dealer: List[Card] = []
        self.result: Optional[GameResult] = None
        self.message = "Place a bet and deal to start."

    # ---- Queries ----

    def player_total(self) -> int:
        return calc_hand_total(self.player).total

    def dealer_total(self) -> Optional[int]:
        """Dealer total, or None while the hole card is hidden."""
        if self.phase == Phase.PLAYER:
            return None
        return calc_hand_total(self.dealer).total

    def visible_dealer_cards(self) -> List[Optional[Card]]:
        if self.phase != Phase.PLAYER:
            return list(self.dealer)
        return [None if i == 0 else card for i, card in enumerate(self.dealer)]

    def refresh_chips(self) -> bool:
        try:
            self.session.chips = self._gateway.get_chips(self.session.client_id)
        except Exception:
            log.exception("Failed to load chips")
            return False
        return True

    # ---- Actions ----

    def place_bet(self, amount: int) -> bool:
        if self.phase != Phase.BETTING:
            return False

        error = self._validate_bet(amount)
        if error:
            self.message = error
            return False

        self.bet = amount
        return True

    def deal(self) -> bool:
        if self.phase != Phase.BETTING:
            return False

        error = self._validate_bet(self.bet)
        if error:
            self.message = error
            return False

        self.result = None
        self.player = [self._draw(), self._draw()]
        self.dealer = [self._draw(), self._draw()]
        self.phase = Phase.PLAYER
        self.message = "Your turn. Hit or Stand?"
        return True

    def hit(self) -> bool:
        if self.phase != Phase.PLAYER:
            return False

        self.player = self.player + [self._draw()]
        if self.player_total() > 21:
            self.message = "Bust! Dealer wins."
            self._settle(GameResult.LOSS)
        return True

    def stand(self) -> bool:
        if self.phase != Phase.PLAYER:
            return False

        self.phase = Phase.DEALER
        self.dealer = dealer_auto_play(self.dealer, self._draw)
        result = resolve_result(self.player, self.dealer)

        if result == GameResult.WIN:
            self.message = "Blackjack! You win!" if is_natural(self.player) else "You win!"
        elif result == GameResult.LOSS:
            self.message = "You lose."
        else:
            self.message = "Push."

        self._settle(result)
        return True

    def new_game(self) -> bool:
        if self.phase != Phase.FINISHED:
            return False

        self.player = []
        self.dealer = []
        self.result = None
        self.phase = Phase.BETTING
        self.message = "Place a bet and deal to start."
        return True

    def hint(self) -> Optional[RecommendationResult]:
        """Ask the advisor for a hint. Returns None when no hint is available."""

        if self.phase != Phase.PLAYER or self._advisor is None:
            return None

        result = recommend_action(self.player, self.dealer[1], self.player_total(), self._advisor)
        if not result.success:
            return None
        return result

    # ---- Internals ----

    def _validate_bet(self, amount: int) -> Optional[str]:
        if amount < 1:
            return "Bet must be at least 1."
        if amount > self.session.chips:
            return "Bet exceeds your chip balance."
        return None

    def _settle(self, result: GameResult) -> None:
        self.result = result
        delta = settlement_delta(self.bet, result)
        try:
            self.session.chips = self._gateway.settle(
                self.session.client_id,
                self.bet,
                result,
                delta,
                calc_hand_total(self.player).total,
                calc_hand_total(self.dealer).total,
            )
        except SettlementError as e:
            log.error("Settlement rejected: %s", e)
        except Exception:
            log.exception("Settlement failed")
        finally:
            self.phase = Phase.FINISHED
