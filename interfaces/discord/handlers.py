from __future__ import annotations

import asyncio
import logging
from typing import Callable, Dict, List, Optional

import discord
from discord.ext import commands

from application.advisor import StrategyAdvisor
from application.game import GameController, GameSession, Phase, SettlementGateway
from application.services import (
    ClientContext,
    RecommendationResult,
    buy_chips,
    get_game_history,
)
from domain.cards import Card
from domain.repositories import GameRepository, ProfileRepository

log = logging.getLogger(__name__)


def client_id_for(user: discord.abc.User) -> str:
    """Discord users are keyed by their account ID instead of a browser ID."""

    return f"discord:{user.id}"


def _format_cards(cards: List[Optional[Card]]) -> str:
    return " ".join("🂠" if c is None else str(c) for c in cards) or "-"


async def fetch_hint(game: GameController) -> Optional[RecommendationResult]:
    """Ask for a hint on a worker thread; the model call can take seconds."""

    return await asyncio.to_thread(game.hint)


class TableRegistry:
    """
    Live tables keyed by client ID.

    Only tables with a round in play are kept between commands; idle ones
    are released and rebuilt from the stored balance on the next command.
    """

    def __init__(self, factory: Callable[[str], GameController]) -> None:
        self._factory = factory
        self._tables: Dict[str, GameController] = {}

    def __len__(self) -> int:
        return len(self._tables)

    def get(self, client_id: str) -> GameController:
        game = self._tables.get(client_id)
        if game is None:
            game = self._factory(client_id)
            self._tables[client_id] = game
        return game

    def release_idle(self, client_id: str) -> bool:
        game = self._tables.get(client_id)
        if game is None or game.phase in (Phase.PLAYER, Phase.DEALER):
            return False
        del self._tables[client_id]
        return True


def render_table(game: GameController) -> str:
    """Text view of the current round, hiding the dealer's hole card."""

    dealer_total = game.dealer_total()
    dealer_label = "Dealer" if dealer_total is None else f"Dealer ({dealer_total})"
    lines = [
        f"{dealer_label}: {_format_cards(game.visible_dealer_cards())}",
        f"You ({game.player_total()}): {_format_cards(game.player)}",
        f"Bet: {game.bet} | Chips: {game.session.chips}",
        game.message,
    ]
    return "\n".join(lines)


def create_discord_bot(
    gateway: SettlementGateway,
    profile_repo: ProfileRepository,
    game_repo: GameRepository,
    advisor: Optional[StrategyAdvisor] = None,
    draw: Optional[Callable[[], Card]] = None,
) -> commands.Bot:
    """
    Configure and return a Discord bot that deals blackjack to each user.

    Every Discord user gets their own `GameController`; rounds settle
    through `gateway` exactly like any other client.
    """

    intents = discord.Intents.default()
    intents.message_content = True

    # Disable the default help command so we can provide our own `!help`.
    bot = commands.Bot(command_prefix="!", intents=intents, help_command=None)

    def _new_table(client_id: str) -> GameController:
        kwargs = {"draw": draw} if draw is not None else {}
        game = GameController(GameSession(client_id), gateway, advisor=advisor, **kwargs)
        game.refresh_chips()
        return game

    tables = TableRegistry(_new_table)

    def _game_for(user: discord.abc.User) -> GameController:
        return tables.get(client_id_for(user))

    @bot.after_invoke
    async def release_idle_table(ctx: commands.Context):
        tables.release_idle(client_id_for(ctx.author))

    @bot.event
    async def on_ready():
        log.info("Discord bot logged in as %s (id=%s)", bot.user, bot.user.id)

    @bot.command(name="start")
    async def start_cmd(ctx: commands.Context):
        game = _game_for(ctx.author)
        await ctx.send(
            "Welcome to the blackjack table!\n"
            f"You have {game.session.chips} chips. Use !deal <bet> to play.\n"
            "Type !help to see available commands."
        )

    @bot.command(name="help")
    async def help_cmd(ctx: commands.Context):
        await ctx.send(
            "!deal [bet]     - place a bet and deal a new round\n"
            "!hit            - draw another card\n"
            "!stand          - stand and let the dealer play\n"
            "!hint           - ask the AI advisor for a hint\n"
            "!new            - clear the table for the next round\n"
            "!chips          - show your chip balance\n"
            "!buy <amount>   - buy <amount> chips\n"
            "!history        - show your recent games\n"
        )

    @bot.command(name="chips")
    async def chips_cmd(ctx: commands.Context):
        game = _game_for(ctx.author)
        if not game.refresh_chips():
            await ctx.send("Could not load your chips. Try again later.")
            return
        await ctx.send(f"You have {game.session.chips} chips.")

    @bot.command(name="buy")
    async def buy_cmd(ctx: commands.Context, amount: int):
        game = _game_for(ctx.author)
        if amount <= 0:
            await ctx.send("Amount must be greater than zero.")
            return

        result = buy_chips(ClientContext(game.session.client_id), amount, profile_repo)
        if not result.success:
            await ctx.send(result.error_message or "Buy failed.")
            return

        game.session.chips = result.chips
        await ctx.send(f"Bought {amount} chips. You now have {result.chips}.")

    @bot.command(name="deal")
    async def deal_cmd(ctx: commands.Context, bet: Optional[int] = None):
        game = _game_for(ctx.author)
        if game.phase == Phase.FINISHED:
            game.new_game()
        if game.phase != Phase.BETTING:
            await ctx.send("Finish the current round first (!hit or !stand).")
            return

        if bet is not None and not game.place_bet(bet):
            await ctx.send(game.message)
            return
        if not game.deal():
            await ctx.send(game.message)
            return
        await ctx.send(render_table(game))

    @bot.command(name="hit")
    async def hit_cmd(ctx: commands.Context):
        game = _game_for(ctx.author)
        if not game.hit():
            await ctx.send("No round in play. Use !deal to start one.")
            return
        await ctx.send(render_table(game))

    @bot.command(name="stand")
    async def stand_cmd(ctx: commands.Context):
        game = _game_for(ctx.author)
        if not game.stand():
            await ctx.send("No round in play. Use !deal to start one.")
            return
        await ctx.send(render_table(game))

    @bot.command(name="new")
    async def new_cmd(ctx: commands.Context):
        game = _game_for(ctx.author)
        if game.phase == Phase.PLAYER:
            await ctx.send("Finish the current round first (!hit or !stand).")
            return
        await ctx.send("Table cleared. Use !deal <bet> to play.")

    @bot.command(name="hint")
    async def hint_cmd(ctx: commands.Context):
        game = _game_for(ctx.author)
        if game.phase != Phase.PLAYER:
            await ctx.send("Hints are only available during your turn.")
            return

        hint = await fetch_hint(game)
        if hint is None:
            await ctx.send("No hint available right now.")
            return
        await ctx.send(hint.recommendation)

    @bot.command(name="history")
    async def history_cmd(ctx: commands.Context):
        result = get_game_history(ClientContext(client_id_for(ctx.author)), game_repo, limit=10)
        if not result.success:
            await ctx.send(result.error_message or "Could not load history.")
            return
        if not result.games:
            await ctx.send("No games played yet.")
            return

        lines = [
            f"{g.result.value:<5} bet {g.bet:<5} {g.delta:+d}  ({g.player_total} vs {g.dealer_total})"
            for g in result.games
        ]
        summary = result.summary
        lines.append(
            f"W/L/P: {summary.wins}/{summary.losses}/{summary.pushes}, net {summary.net_delta:+d}"
        )
        await ctx.send("\n".join(lines))

    return bot
