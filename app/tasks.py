"""Portfolio analysis orchestration."""

import logging
from typing import Any, Dict

from .config import Settings
from .errors import ConfigurationError, Err, Ok, Result
from .models import AnalysisResult
from .services.llm import AnalysisService
from .services.quotes import QuoteService
from .services.validation import parse_portfolio

logger = logging.getLogger(__name__)


def wants_prices(body: Dict[str, Any]) -> bool:
    # Only an explicit false opts out
    return body.get("includePrices") is not False


class PortfolioAnalysisOrchestrator:
    """Runs validate -> (price) -> analyze for one request.

    Every step yields ``Ok``/``Err``; conversion to HTTP happens in the router.
    """

    def __init__(
        self,
        settings: Settings,
        quote_service: QuoteService,
        analysis_service: AnalysisService,
    ):
        self.settings = settings
        self.quote_service = quote_service
        self.analysis_service = analysis_service

    async def run(self, body: Dict[str, Any]) -> Result:
        # Step 1: Validate the portfolio payload
        parsed = parse_portfolio(body.get("portfolio"), self.settings.max_symbols)
        if isinstance(parsed, Err):
            return parsed
        portfolio = parsed.value

        # Step 2: Fetch prices unless the caller opted out
        prices = None
        if wants_prices(body):
            try:
                prices = await self.quote_service.get_latest_prices(
                    [item.symbol for item in portfolio]
                )
            except ConfigurationError as e:
                logger.error(str(e))
                return Err(e)

        # Step 3: Ask the completion provider for the analysis
        analysis = await self.analysis_service.analyze(portfolio, prices)
        if isinstance(analysis, Err):
            return analysis

        logger.info(
            f"Analysis complete for {len(portfolio)} holdings "
            f"(prices {'included' if prices is not None else 'skipped'})"
        )
        return Ok(AnalysisResult(analysis=analysis.value, prices=prices))
