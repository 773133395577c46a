"""Portfolio analysis via the OpenAI chat completions API."""

import json
import logging
from typing import Any, Dict, List, Optional

import openai

from ..config import Settings
from ..errors import ConfigurationError, Err, Ok, Result, UpstreamAnalysisError
from ..models import PortfolioItem, PriceMap

logger = logging.getLogger(__name__)

FALLBACK_ANALYSIS = "No analysis available."

SYSTEM_PROMPT = (
    "You are a financial analyst providing educational, general-purpose portfolio "
    "commentary. You do not give personalized investment advice, and you do not "
    "tell the reader to buy or sell specific securities. Stay within portfolio "
    "analysis and note when data such as a price is missing."
)

USER_PROMPT_TEMPLATE = """Analyze the following portfolio for educational purposes.

Portfolio (JSON):
{portfolio}

Latest prices by symbol (JSON, null means unavailable):
{prices}

Provide:
1. Risk analysis: concentration, volatility exposure, and single-name risk.
2. Diversification insights across sectors, asset classes, and geographies.
3. A brief, balanced market outlook relevant to these holdings.

Keep the tone neutral and close with a one-line reminder that this is not personalized financial advice."""


def build_prompt(portfolio: List[PortfolioItem], prices: Optional[PriceMap]) -> str:
    """Deterministic user prompt for a portfolio and its price map."""
    return USER_PROMPT_TEMPLATE.format(
        portfolio=json.dumps([item.prompt_view() for item in portfolio]),
        prices=json.dumps(prices or {}, sort_keys=True),
    )


class AnalysisService:
    """Requests a portfolio analysis from the completion provider."""

    def __init__(self, settings: Settings, client: Optional[Any] = None):
        self.settings = settings
        self._client = client

    @property
    def client(self) -> Any:
        if self._client is None:
            self._client = openai.AsyncOpenAI(
                api_key=self.settings.require("OPEN_AI_KEY"),
                base_url=self.settings.openai_base_url,
            )
        return self._client

    async def aclose(self) -> None:
        if self._client is not None and hasattr(self._client, "close"):
            await self._client.close()
        self._client = None

    def _get_generation_config(self) -> Dict[str, Any]:
        return {
            "model": self.settings.openai_model,
            "temperature": self.settings.openai_temperature,
            "max_tokens": self.settings.openai_max_tokens,
        }

    async def analyze(
        self,
        portfolio: List[PortfolioItem],
        prices: Optional[PriceMap] = None,
    ) -> Result:
        """Return ``Ok(analysis_text)`` or ``Err`` describing the provider failure."""
        try:
            client = self.client
        except ConfigurationError as e:
            return Err(e)

        prompt = build_prompt(portfolio, prices)
        generation_config = self._get_generation_config()
        logger.info(
            f"Calling {generation_config['model']} for {len(portfolio)} holdings "
            f"({len(prices or {})} prices)"
        )

        try:
            response = await client.chat.completions.create(
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
                **generation_config,
            )
        except openai.APIStatusError as e:
            logger.error(f"Completion provider returned {e.status_code}: {e.message}")
            return Err(UpstreamAnalysisError(e.message, e.status_code))
        except openai.OpenAIError as e:
            logger.error(f"Completion request failed: {e}")
            return Err(UpstreamAnalysisError(str(e)))

        content = None
        choices = getattr(response, "choices", None) or []
        if choices:
            message = getattr(choices[0], "message", None)
            content = getattr(message, "content", None)

        if not content:
            logger.warning("Completion provider returned no content")
            return Ok(FALLBACK_ANALYSIS)

        logger.debug(f"Analysis received: {len(content)} chars")
        return Ok(content)
