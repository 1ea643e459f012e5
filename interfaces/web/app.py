from __future__ import annotations

import logging
from typing import Optional

from flask import Flask, jsonify, request
from werkzeug.exceptions import HTTPException

from application.advisor import StrategyAdvisor
from application.services import (
    ClientContext,
    HistoryResult,
    buy_chips,
    get_game_history,
    recommend_action,
    settle_game,
)
from domain.cards import card_from_dict
from domain.models import GameRecord
from domain.repositories import GameRepository, ProfileRepository, RepositoryError

log = logging.getLogger(__name__)


def _game_to_json(game: GameRecord) -> dict:
    created_at = game.created_at.isoformat() if game.created_at else None
    return {
        "id": game.id,
        "bet": game.bet,
        "result": game.result.value,
        "delta": game.delta,
        "playerTotal": game.player_total,
        "dealerTotal": game.dealer_total,
        "createdAt": created_at,
        # Older clients read `timestamp`.
        "timestamp": created_at,
    }


def _history_to_json(history: HistoryResult) -> dict:
    summary = history.summary
    return {
        "games": [_game_to_json(g) for g in history.games],
        "total": len(history.games),
        "summary": {
            "totalGames": summary.total_games,
            "wins": summary.wins,
            "losses": summary.losses,
            "pushes": summary.pushes,
            "netDelta": summary.net_delta,
            "winRate": round(summary.win_rate, 4),
        },
    }


def create_app(
    profile_repo: ProfileRepository,
    game_repo: GameRepository,
    advisor: Optional[StrategyAdvisor] = None,
) -> Flask:
    """
    Configure and return the Flask app exposing the game API.

    Only HTTP concerns live here: parsing JSON bodies, mapping result
    objects to status codes and keeping storage errors out of responses.
    """

    app = Flask(__name__)

    @app.after_request
    def add_cors_headers(resp):
        resp.headers["Access-Control-Allow-Origin"] = "*"
        resp.headers["Access-Control-Allow-Methods"] = "GET, POST, OPTIONS"
        resp.headers["Access-Control-Allow-Headers"] = "Content-Type"
        return resp

    @app.errorhandler(RepositoryError)
    def handle_repository_error(e):
        log.exception("Database error: %s", e)
        return jsonify({"error": "Database error"}), 500

    @app.errorhandler(Exception)
    def handle_unexpected(e):
        if isinstance(e, HTTPException):
            return e
        log.exception("Unexpected error")
        return jsonify({"error": "Internal server error"}), 500

    @app.route("/health")
    def health():
        return jsonify({
            "status": "healthy",
            "service": "blackjack-api",
            "ai": advisor is not None,
        })

    @app.route("/games/settle", methods=["POST"])
    def settle():
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return jsonify({"error": "Request body must be JSON"}), 400

        result = settle_game(
            ClientContext(data.get("clientId") or ""),
            data.get("bet"),
            data.get("result"),
            data.get("delta"),
            data.get("playerTotal"),
            data.get("dealerTotal"),
            profile_repo,
            game_repo,
        )
        if not result.success:
            return jsonify({"error": result.error_message}), 400
        return jsonify({"chips": result.chips})

    @app.route("/games/history", methods=["GET"])
    def history():
        client_id = request.args.get("clientId", "")
        if not client_id:
            return jsonify({"error": "Client ID is required"}), 400

        result = get_game_history(ClientContext(client_id), game_repo)
        if not result.success:
            return jsonify({"error": result.error_message}), 400
        return jsonify(_history_to_json(result))

    @app.route("/chips/buy", methods=["POST"])
    def buy():
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return jsonify({"error": "Request body must be JSON"}), 400

        result = buy_chips(
            ClientContext(data.get("clientId") or ""),
            data.get("amount", 0),
            profile_repo,
        )
        if not result.success:
            return jsonify({"error": result.error_message}), 400
        return jsonify({"chips": result.chips})

    @app.route("/ai/recommendation", methods=["POST"])
    def recommendation():
        if advisor is None:
            return jsonify({"error": "AI recommendations are not configured"}), 503

        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return jsonify({"error": "Request body must be JSON"}), 400

        player_total = data.get("playerTotal")
        if not data.get("playerCards") or not data.get("dealerUpCard") or player_total is None:
            return jsonify({"error": "Missing required game state information"}), 400

        try:
            player_cards = [card_from_dict(c) for c in data["playerCards"]]
            dealer_up_card = card_from_dict(data["dealerUpCard"])
        except (TypeError, ValueError):
            return jsonify({"error": "Invalid card in game state"}), 400

        result = recommend_action(player_cards, dealer_up_card, player_total, advisor)
        if not result.success:
            return jsonify({"error": result.error_message}), 500
        return jsonify({
            "recommendation": result.recommendation,
            "action": result.action,
            "explanation": result.explanation,
        })

    return app
