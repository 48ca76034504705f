"""AI Agents package."""

from trackit.agents.advice import (
    ADVICE_UNAVAILABLE_MESSAGE,
    EMPTY_ADVICE_MESSAGE,
    AdviceClient,
    build_prompt,
    category_breakdown,
)

__all__ = [
    "ADVICE_UNAVAILABLE_MESSAGE",
    "EMPTY_ADVICE_MESSAGE",
    "AdviceClient",
    "build_prompt",
    "category_breakdown",
]
