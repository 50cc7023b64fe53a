# advisor.py
# Advisory AI collaborator: move hints and end-of-game commentary.
# Works on a copy of the board matrix only and never raises into callers.

from typing import Any, List, NamedTuple, Optional
import json
import logging

from openai import OpenAI

import config

logger = logging.getLogger(__name__)

FALLBACK_HINT_DIRECTION = "UP"
FALLBACK_HINT_REASON = "AI is resting... try any move!"
FALLBACK_WIN_COMMENT = "You are a legend!"
FALLBACK_LOSS_COMMENT = "Good effort, try again!"


class Hint(NamedTuple):
    """Advisory move suggestion. Display only; never applied to the board."""
    direction: str
    reason: str


class AdvisorError(Exception):
    """Raised internally when the model gives no usable answer."""


def get_hint_tool_schema():
    """Returns the tool schema used to ask the model for a move."""
    return {
        "type": "function",
        "function": {
            "name": "suggest_move",
            "description": "Suggest the single best move for the current 2048 board",
            "parameters": {
                "type": "object",
                "properties": {
                    "direction": {
                        "type": "string",
                        "enum": ["UP", "DOWN", "LEFT", "RIGHT"],
                        "description": "The optimal direction to move.",
                    },
                    "reason": {
                        "type": "string",
                        "description": "A very short explanation of why this move is best.",
                    },
                },
                "required": ["direction", "reason"],
            },
        },
    }


def build_hint_prompt(matrix: List[List[int]]) -> str:
    size = len(matrix)
    return f"""You are an expert at the game 2048.
Here is the current board as a {size}x{size} matrix (0 represents empty):
{json.dumps(matrix)}

Analyze the board. Determine the single best move (UP, DOWN, LEFT, RIGHT) to maximize score and keep the board organized.
Answer with the suggest_move function and a short strategic reason (max 15 words)."""


def build_commentary_prompt(score: int, won: bool) -> str:
    style = "celebratory and epic" if won else "witty, slightly sarcastic but encouraging"
    result = "WON (reached the win tile!)" if won else "Game Over"
    return f"""I just finished playing a game of 2048.
My score: {score}.
Result: {result}.

Give me a one-sentence reaction to my performance. Make it {style}."""


class Advisor:
    """
    Thin wrapper around an OpenAI-compatible chat client.

    When disabled or missing an API key, every call returns the fallback
    answer without touching the network.
    """

    def __init__(
        self,
        client: Optional[Any] = None,
        model: Optional[str] = None,
        enabled: Optional[bool] = None,
    ):
        self.model = model or config.ADVISOR_MODEL
        self.enabled = config.ADVISOR_ENABLED if enabled is None else enabled
        if client is None and self.enabled and config.ADVISOR_API_KEY:
            client = OpenAI(
                api_key=config.ADVISOR_API_KEY,
                base_url=config.ADVISOR_BASE_URL,
                timeout=config.ADVISOR_TIMEOUT,
                max_retries=0,
            )
        self.client = client

    @property
    def available(self) -> bool:
        return self.enabled and self.client is not None

    def hint(self, matrix: List[List[int]]) -> Hint:
        """
        Asks the model for the best next move.
        Args:
            matrix (List[List[int]]): Board values, 0 for empty. Copied before use.
        Returns:
            Hint: The model's suggestion, or the fallback hint on any failure.
        """
        board = [list(row) for row in matrix]
        if not self.available:
            return Hint(FALLBACK_HINT_DIRECTION, FALLBACK_HINT_REASON)
        try:
            return self._request_hint(board)
        except Exception as e:
            logger.warning("Hint request failed, using fallback: %s", e)
            return Hint(FALLBACK_HINT_DIRECTION, FALLBACK_HINT_REASON)

    def _request_hint(self, board: List[List[int]]) -> Hint:
        response = self.client.chat.completions.create(
            model=self.model,
            messages=[{"role": "user", "content": build_hint_prompt(board)}],
            tools=[get_hint_tool_schema()],
            tool_choice={"type": "function", "function": {"name": "suggest_move"}},
        )
        message = response.choices[0].message
        if not message.tool_calls:
            raise AdvisorError("No tool call in response")

        args = json.loads(message.tool_calls[0].function.arguments)
        if "direction" not in args:
            raise AdvisorError(f"Missing direction in {args!r}")
        return Hint(str(args["direction"]), str(args.get("reason", "")))

    def commentary(self, score: int, won: bool) -> str:
        """One-sentence reaction to a finished game; never raises."""
        fallback = FALLBACK_WIN_COMMENT if won else FALLBACK_LOSS_COMMENT
        if not self.available:
            return fallback
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": build_commentary_prompt(score, won)}],
            )
            text = response.choices[0].message.content
        except Exception as e:
            logger.warning("Commentary request failed, using fallback: %s", e)
            return fallback
        return text.strip() if text and text.strip() else fallback
