"""Pydantic schemas for the portfolio analysis service."""

from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field

# Uppercased symbol -> last price, or None when the lookup failed
PriceMap = Dict[str, Optional[float]]


class PortfolioItem(BaseModel):
    """A single validated holding."""
    symbol: str = Field(min_length=1)
    quantity: Optional[Union[int, float]] = None

    def prompt_view(self) -> Dict[str, Any]:
        """Shape embedded in the analysis prompt; omitted quantity stays omitted."""
        data: Dict[str, Any] = {"symbol": self.symbol}
        if self.quantity is not None:
            data["quantity"] = self.quantity
        return data


class AnalysisResult(BaseModel):
    analysis: str
    prices: Optional[PriceMap] = None

    def to_payload(self) -> Dict[str, Any]:
        """Response body; ``prices`` is left out when it was not requested."""
        payload: Dict[str, Any] = {"analysis": self.analysis}
        if self.prices is not None:
            payload["prices"] = dict(self.prices)
        return payload


class EnvReport(BaseModel):
    """Which secrets are configured (booleans only) plus CORS settings."""
    OPEN_AI_KEY: bool
    FINNHUB_API_KEY: bool
    AI_SERVICE_KEY: bool
    ALLOWED_ORIGINS: List[str]
    node_env: Optional[str] = None


class HealthReport(BaseModel):
    status: str
    service: str
    env: EnvReport


class ErrorResponse(BaseModel):
    error: str
