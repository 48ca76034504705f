"""
Financial Advice Agent

Turns the user's current expenses and budgets into a short plain-text
summary and asks Gemini for three practical tips.

CRITICAL BOUNDARIES:
- The model only sees the numbers we computed; it is never asked to
  invent figures.
- This call NEVER raises. Missing API key, network failure, timeout,
  a blocked or empty response: all become a fixed fallback message.
- The call is bounded by `request_timeout_seconds`.

The advice reflects the snapshot passed in. If the user edits their data
while a request is pending, the answer is for the older data.
"""

import asyncio
from collections.abc import Sequence
from typing import Any, Optional

import google.generativeai as genai
import structlog

from trackit.analytics.aggregation import spent_in_category
from trackit.audit import AuditLogger
from trackit.config import GeminiSettings, get_settings
from trackit.models.finance import Category, Expense


EMPTY_ADVICE_MESSAGE = "I couldn't generate advice at this moment."
ADVICE_UNAVAILABLE_MESSAGE = (
    "Sorry, I'm having trouble connecting to the financial brain right now. "
    "Please try again later."
)


logger = structlog.get_logger(__name__)


def format_amount(value: float) -> str:
    """Plain number for the prompt: 570 -> '570', 12.5 -> '12.5'."""
    return f"{value:.2f}".rstrip("0").rstrip(".")


def category_breakdown(
    expenses: Sequence[Expense],
    categories: Sequence[Category],
) -> list[str]:
    """One 'Name: Spent $x / Budget $y' line per category."""
    return [
        f"{cat.name}: Spent ${format_amount(spent_in_category(expenses, cat.id))}"
        f" / Budget ${format_amount(cat.budget)}"
        for cat in categories
    ]


def build_prompt(
    expenses: Sequence[Expense],
    categories: Sequence[Category],
    user_name: str,
) -> str:
    """Build the advice prompt from the current dataset."""
    total_spent = sum((e.amount for e in expenses), 0.0)
    breakdown = "\n".join(category_breakdown(expenses, categories)) or "No categories yet"

    return f"""You are a helpful, professional, and concise financial advisor for a user named {user_name}.
Analyze the following financial data:

Total Spent: ${format_amount(total_spent)}

Category Breakdown:
{breakdown}

Please provide exactly 3 personalized, actionable tips or insights based on this data.
Focus on where they are over budget or doing well.
Keep the tone encouraging but practical.
Format the output as a clean plain list. Do not use markdown bolding too aggressively."""


class AdviceClient:
    """
    Requests narrative financial advice from Gemini.

    A second request while one is pending is prevented by the caller
    (the dashboard), not here.
    """

    def __init__(
        self,
        settings: Optional[GeminiSettings] = None,
        model: Optional[Any] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        """
        Args:
            settings: Gemini configuration. Loaded from the environment
                      on first use when omitted.
            model: Anything with an async `generate_content_async(prompt, ...)`.
                   Built from settings on first use when omitted.
            audit_logger: Receives external service errors.
        """
        self._settings = settings
        self._model = model
        self._audit_logger = audit_logger

    def _get_settings(self) -> GeminiSettings:
        if self._settings is None:
            self._settings = get_settings().gemini
        return self._settings

    def _get_model(self) -> Any:
        """Configure Google Generative AI (lazily, so a missing key is a soft failure)."""
        if self._model is None:
            settings = self._get_settings()
            genai.configure(api_key=settings.api_key)
            self._model = genai.GenerativeModel(
                model_name=settings.model_name,
                generation_config={
                    "temperature": settings.temperature,
                    "max_output_tokens": settings.max_tokens,
                },
            )
        return self._model

    def _timeout(self) -> float:
        if self._settings is not None:
            return self._settings.request_timeout_seconds
        return GeminiSettings.model_fields["request_timeout_seconds"].default

    async def get_advice(
        self,
        expenses: Sequence[Expense],
        categories: Sequence[Category],
        user_name: str,
    ) -> str:
        """
        Ask for three tips about the given dataset.

        Returns the model's text verbatim, or a fixed fallback message.
        """
        prompt = build_prompt(expenses, categories, user_name)

        try:
            model = self._get_model()
            timeout = self._timeout()
            response = await asyncio.wait_for(
                model.generate_content_async(
                    prompt,
                    request_options={"timeout": timeout},
                ),
                timeout=timeout,
            )
            # .text raises ValueError when the response has no usable candidate
            text = response.text
        except Exception as e:
            logger.error(
                "advice_request_failed",
                error_type=type(e).__name__,
                error=str(e),
            )
            if self._audit_logger:
                self._audit_logger.log_external_service_error(
                    service="gemini",
                    error_message=f"{type(e).__name__}: {e}",
                )
            return ADVICE_UNAVAILABLE_MESSAGE

        if not isinstance(text, str) or not text.strip():
            return EMPTY_ADVICE_MESSAGE

        return text
