from __future__ import annotations

from typing import Callable, List, Optional

from application.game import GameController, Phase
from domain.cards import Card


def _format_cards(cards: List[Optional[Card]]) -> str:
    return " ".join("[??]" if c is None else f"[{c}]" for c in cards)


def render(game: GameController) -> str:
    dealer_total = game.dealer_total()
    dealer = _format_cards(game.visible_dealer_cards())
    if dealer_total is not None:
        dealer += f"  = {dealer_total}"
    return (
        f"Dealer: {dealer}\n"
        f"You:    {_format_cards(game.player)}  = {game.player_total()}\n"
        f"{game.message}"
    )


def run_game_loop(
    game: GameController,
    read: Callable[[str], str] = input,
    write: Callable[[str], None] = print,
) -> None:
    """
    Play rounds until the player quits or input runs out.

    Betting: a number places that bet and deals, an empty line deals the
    current bet. In play: h(it), s(tand), ?(hint). Anywhere: q(uit).
    """

    game.refresh_chips()
    write(f"Chips: {game.session.chips}")

    while True:
        if game.phase == Phase.BETTING:
            prompt = f"Bet [{game.bet}] (q to quit): "
        elif game.phase == Phase.PLAYER:
            prompt = "(h)it, (s)tand, (?) hint: "
        else:
            prompt = "Enter for a new round (q to quit): "

        try:
            line = read(prompt).strip().lower()
        except EOFError:
            return
        if line in ("q", "quit"):
            return

        if game.phase == Phase.BETTING:
            if line:
                if not line.isdigit():
                    write("Enter a whole number of chips.")
                    continue
                if not game.place_bet(int(line)):
                    write(game.message)
                    continue
            if not game.deal():
                write(game.message)
                continue
            write(render(game))

        elif game.phase == Phase.PLAYER:
            if line in ("h", "hit"):
                game.hit()
                write(render(game))
            elif line in ("s", "stand"):
                game.stand()
                write(render(game))
            elif line == "?":
                hint = game.hint()
                write(hint.recommendation if hint else "No hint available.")
            else:
                write("Unknown action.")

            if game.phase == Phase.FINISHED:
                write(f"Chips: {game.session.chips}")

        else:
            game.new_game()
