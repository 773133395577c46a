"""Portfolio analysis API endpoint."""

from typing import Any, Dict

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from ..config import Settings
from ..errors import Err, ServiceError
from ..models import ErrorResponse
from ..security import get_settings, read_json_body, require_api_key
from ..services.llm import AnalysisService
from ..services.quotes import QuoteService
from ..tasks import PortfolioAnalysisOrchestrator

router = APIRouter(tags=["portfolio"])


def error_response(error: ServiceError) -> JSONResponse:
    return JSONResponse({"error": str(error.message)}, status_code=error.status_code)


def get_quote_service(request: Request) -> QuoteService:
    return request.app.state.quote_service


def get_analysis_service(request: Request) -> AnalysisService:
    return request.app.state.analysis_service


def get_orchestrator(
    settings: Settings = Depends(get_settings),
    quote_service: QuoteService = Depends(get_quote_service),
    analysis_service: AnalysisService = Depends(get_analysis_service),
) -> PortfolioAnalysisOrchestrator:
    return PortfolioAnalysisOrchestrator(settings, quote_service, analysis_service)


@router.post(
    "/analyze-portfolio",
    dependencies=[Depends(require_api_key)],
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        413: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def analyze_portfolio(
    body: Dict[str, Any] = Depends(read_json_body),
    orchestrator: PortfolioAnalysisOrchestrator = Depends(get_orchestrator),
):
    """Analyze a portfolio, optionally with live quotes."""

    outcome = await orchestrator.run(body)
    if isinstance(outcome, Err):
        return error_response(outcome.error)

    return outcome.value.to_payload()
