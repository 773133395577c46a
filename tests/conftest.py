"""
Pytest configuration and fixtures for the portfolio analysis service tests.
"""

from types import SimpleNamespace
from typing import Dict, List, Optional

import httpx
import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

from app.config import Settings
from app.main import create_app
from app.services.llm import AnalysisService
from app.services.quotes import QuoteService


API_KEY = "test-service-key"

TEST_ENV = {
    "OPEN_AI_KEY": "sk-test-openai",
    "FINNHUB_API_KEY": "fh-test-token",
    "AI_SERVICE_KEY": API_KEY,
}

FINNHUB_BASE_URL = "https://finnhub.test/api/v1"


class FakeCompletions:
    """Stands in for ``client.chat.completions`` of the OpenAI SDK."""

    def __init__(self, content: Optional[str] = "Educational analysis text.", error: Exception = None):
        self.content = content
        self.error = error
        self.calls: List[Dict] = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        if self.content is None:
            return SimpleNamespace(choices=[])
        message = SimpleNamespace(role="assistant", content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(index=0, message=message)])


class FakeChatClient:
    def __init__(self, **kwargs):
        self.completions = FakeCompletions(**kwargs)
        self.chat = SimpleNamespace(completions=self.completions)


class QuoteProvider:
    """In-memory Finnhub ``/quote`` endpoint served through ``httpx.MockTransport``."""

    def __init__(self, prices: Dict[str, object]):
        self.prices = prices
        self.requests: List[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        symbol = request.url.params.get("symbol")
        if symbol not in self.prices:
            return httpx.Response(404, json={"error": "unknown symbol"})
        return httpx.Response(200, json={"c": self.prices[symbol], "pc": 1.0})

    @property
    def queried_symbols(self) -> List[str]:
        return [request.url.params.get("symbol") for request in self.requests]

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            transport=httpx.MockTransport(self.handler),
            base_url=FINNHUB_BASE_URL,
            follow_redirects=True,
        )


def make_settings(**overrides: Optional[str]) -> Settings:
    """Settings built from the test environment; ``None`` removes a variable."""
    env = dict(TEST_ENV, FINNHUB_BASE_URL=FINNHUB_BASE_URL)
    for name, value in overrides.items():
        if value is None:
            env.pop(name, None)
        else:
            env[name] = value
    return Settings(environ=env)


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def quote_provider() -> QuoteProvider:
    return QuoteProvider({"AAPL": 189.5, "MSFT": 410.25})


@pytest.fixture
def chat_client() -> FakeChatClient:
    return FakeChatClient()


@pytest.fixture
def build_client(quote_provider, chat_client):
    """Factory returning an ASGI test client for the given settings."""
    def _build(app_settings: Settings = None, analysis_service: AnalysisService = None) -> AsyncClient:
        app_settings = app_settings or make_settings()
        app = create_app(
            app_settings,
            quote_service=QuoteService(app_settings, client=quote_provider.client()),
            analysis_service=analysis_service or AnalysisService(app_settings, client=chat_client),
        )
        test_client = AsyncClient(transport=ASGITransport(app=app), base_url="http://test")
        return test_client

    return _build


@pytest_asyncio.fixture
async def client(build_client, settings):
    """Test client wired to the fake quote provider and chat client."""
    async with build_client(settings) as test_client:
        yield test_client


@pytest.fixture
def auth_headers() -> Dict[str, str]:
    return {"x-api-key": API_KEY}
