"""Tests for the analysis orchestrator."""

import pytest

from app.errors import Err, Ok
from app.models import AnalysisResult
from app.services.llm import AnalysisService
from app.services.quotes import QuoteService
from app.tasks import PortfolioAnalysisOrchestrator, wants_prices

from .conftest import FakeChatClient, make_settings


@pytest.mark.parametrize(
    "body,expected",
    [({}, True), ({"includePrices": True}, True), ({"includePrices": "no"}, True),
     ({"includePrices": None}, True), ({"includePrices": False}, False)],
)
def test_wants_prices(body, expected):
    assert wants_prices(body) is expected


def _orchestrator(quote_provider, chat_client, **env):
    settings = make_settings(**env)
    return PortfolioAnalysisOrchestrator(
        settings,
        QuoteService(settings, client=quote_provider.client()),
        AnalysisService(settings, client=chat_client),
    )


@pytest.mark.asyncio
async def test_run_with_prices(quote_provider):
    chat_client = FakeChatClient(content="Well diversified.")
    orchestrator = _orchestrator(quote_provider, chat_client)

    outcome = await orchestrator.run({"portfolio": [{"symbol": "msft", "quantity": 3}]})

    assert outcome == Ok(AnalysisResult(analysis="Well diversified.", prices={"MSFT": 410.25}))
    assert outcome.value.to_payload() == {"analysis": "Well diversified.", "prices": {"MSFT": 410.25}}


@pytest.mark.asyncio
async def test_run_stops_at_validation(quote_provider, chat_client):
    orchestrator = _orchestrator(quote_provider, chat_client)

    outcome = await orchestrator.run({"portfolio": [{"symbol": "AAPL", "quantity": "ten"}]})

    assert isinstance(outcome, Err)
    assert outcome.error.status_code == 400
    assert quote_provider.requests == []
    assert chat_client.completions.calls == []


@pytest.mark.asyncio
async def test_run_reports_missing_quote_key(quote_provider, chat_client):
    orchestrator = _orchestrator(quote_provider, chat_client, FINNHUB_API_KEY=None)

    outcome = await orchestrator.run({"portfolio": [{"symbol": "AAPL"}]})

    assert isinstance(outcome, Err)
    assert outcome.error.message == "Missing required env: FINNHUB_API_KEY"
    assert chat_client.completions.calls == []
