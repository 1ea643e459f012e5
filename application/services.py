from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, List, Optional

from application.advisor import StrategyAdvisor, parse_recommendation
from domain.models import MAX_CHIPS, GameRecord, GameResult
from domain.repositories import GameRepository, ProfileRepository
from domain.rules import settlement_delta

log = logging.getLogger(__name__)

HISTORY_LIMIT = 50


@dataclass
class ClientContext:
    """
    The caller's identity for a single request.

    `client_id` is a random identifier generated once per client and used
    as a capability token: whoever holds it acts on that balance. The
    application layer never reads it from ambient state.
    """

    client_id: str


@dataclass
class ChipsResult:
    """Result of an operation that ends with a known chip balance."""

    success: bool
    error_message: Optional[str] = None
    chips: Optional[int] = None


@dataclass
class HistorySummary:
    total_games: int = 0
    wins: int = 0
    losses: int = 0
    pushes: int = 0
    net_delta: int = 0

    @property
    def win_rate(self) -> float:
        if not self.total_games:
            return 0.0
        return self.wins / self.total_games


@dataclass
class HistoryResult:
    success: bool
    error_message: Optional[str] = None
    games: List[GameRecord] = field(default_factory=list)
    summary: HistorySummary = field(default_factory=HistorySummary)


@dataclass
class RecommendationResult:
    success: bool
    error_message: Optional[str] = None
    recommendation: Optional[str] = None
    action: Optional[str] = None
    explanation: Optional[str] = None


def _is_int(value: Any) -> bool:
    # bool is an int subclass; a JSON `true` is not a bet.
    if not isinstance(value, int) or isinstance(value, bool):
        return False
    return -MAX_CHIPS <= value <= MAX_CHIPS


def _validate_client(ctx: ClientContext) -> Optional[str]:
    if not ctx.client_id or not str(ctx.client_id).strip():
        return "clientId required"
    return None


def _parse_result(value: Any) -> Optional[GameResult]:
    try:
        return GameResult(value)
    except ValueError:
        return None


def settle_game(
    ctx: ClientContext,
    bet: Any,
    result: Any,
    delta: Any,
    player_total: Any,
    dealer_total: Any,
    profile_repo: ProfileRepository,
    game_repo: GameRepository,
) -> ChipsResult:
    """
    Record a finished round and apply its chip delta.

    - The game record is inserted first and never touched again.
    - The balance is then changed by a single atomic increment.
    - `delta` must match the bet and result, so the record and the
      balance change always agree.
    """

    error = _validate_client(ctx)
    if error:
        return ChipsResult(success=False, error_message=error)

    if not _is_int(bet) or bet < 1:
        return ChipsResult(success=False, error_message=f"Bet must be an integer from 1 to {MAX_CHIPS}.")

    game_result = _parse_result(result)
    if game_result is None:
        return ChipsResult(success=False, error_message="Result must be win, loss or push.")

    if not _is_int(delta) or delta != settlement_delta(bet, game_result):
        return ChipsResult(success=False, error_message="Delta does not match bet and result.")

    for total in (player_total, dealer_total):
        if not _is_int(total) or total < 0:
            return ChipsResult(success=False, error_message=f"Hand totals must be integers from 0 to {MAX_CHIPS}.")

    profile_repo.ensure_profile(ctx.client_id)
    record = game_repo.add_game(
        GameRecord(
            user_id=ctx.client_id,
            bet=bet,
            result=game_result,
            delta=delta,
            player_total=player_total,
            dealer_total=dealer_total,
        )
    )
    chips = profile_repo.increment_chips(ctx.client_id, delta)

    log.info(
        "Settled game %s: %s %+d (%d vs %d), balance %d",
        record.id,
        game_result.value,
        delta,
        player_total,
        dealer_total,
        chips,
    )
    return ChipsResult(success=True, chips=chips)


def buy_chips(
    ctx: ClientContext,
    amount: Any,
    profile_repo: ProfileRepository,
) -> ChipsResult:
    """
    Add `amount` chips to the caller's balance.

    An amount of zero reads the current balance without changing it,
    creating the default profile on first use.
    """

    error = _validate_client(ctx)
    if error:
        return ChipsResult(success=False, error_message=error)

    if not _is_int(amount) or amount < 0:
        return ChipsResult(success=False, error_message=f"Amount must be an integer from 0 to {MAX_CHIPS}.")

    profile_repo.ensure_profile(ctx.client_id)
    if amount:
        profile = profile_repo.get_profile(ctx.client_id)
        if profile is not None and profile.chips + amount > MAX_CHIPS:
            return ChipsResult(success=False, error_message=f"Balance cannot exceed {MAX_CHIPS} chips.")
    chips = profile_repo.increment_chips(ctx.client_id, amount)
    if amount:
        log.info("Bought %d chips, balance %d", amount, chips)
    return ChipsResult(success=True, chips=chips)


def get_game_history(
    ctx: ClientContext,
    game_repo: GameRepository,
    limit: int = HISTORY_LIMIT,
) -> HistoryResult:
    """Return the caller's most recent games, newest first, with totals."""

    error = _validate_client(ctx)
    if error:
        return HistoryResult(success=False, error_message=error)

    games = game_repo.list_games(ctx.client_id, limit)

    summary = HistorySummary(total_games=len(games))
    for game in games:
        if game.result == GameResult.WIN:
            summary.wins += 1
        elif game.result == GameResult.LOSS:
            summary.losses += 1
        else:
            summary.pushes += 1
        summary.net_delta += game.delta

    return HistoryResult(success=True, games=games, summary=summary)


def recommend_action(
    player_cards: Any,
    dealer_up_card: Any,
    player_total: Any,
    advisor: StrategyAdvisor,
) -> RecommendationResult:
    """
    Ask the advisor whether to hit or stand.

    Purely advisory: nothing here reads or writes game state, and a
    failing advisor only produces an error result.
    """

    if not player_cards or not dealer_up_card or player_total is None:
        return RecommendationResult(
            success=False,
            error_message="Missing required game state information",
        )

    try:
        text = advisor.recommend(player_cards, dealer_up_card, player_total)
    except Exception:
        log.exception("AI recommendation error")
        return RecommendationResult(
            success=False,
            error_message="Failed to generate recommendation",
        )

    action, explanation = parse_recommendation(text)
    return RecommendationResult(
        success=True,
        recommendation=text,
        action=action,
        explanation=explanation,
    )
