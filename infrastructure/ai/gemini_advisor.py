from __future__ import annotations

import logging
from typing import Any, Sequence

from google import genai

from application.advisor import StrategyAdvisor, build_prompt

log = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-2.5-flash"


class GeminiAdvisor(StrategyAdvisor):
    """
    `StrategyAdvisor` backed by Google's Gemini text generation API.
    """

    def __init__(self, api_key: str, model_name: str = DEFAULT_MODEL, client: Any = None) -> None:
        self._model_name = model_name
        self._client = client or genai.Client(api_key=api_key)

    def recommend(
        self,
        player_cards: Sequence[Any],
        dealer_up_card: Any,
        player_total: int,
    ) -> str:
        prompt = build_prompt(player_cards, dealer_up_card, player_total)
        response = self._client.models.generate_content(
            model=self._model_name,
            contents=prompt,
        )
        text = (response.text or "").strip()
        if not text:
            raise RuntimeError("Empty response from model")

        log.debug("Gemini recommendation for total %s: %s", player_total, text)
        return text
