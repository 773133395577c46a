"""Request gates: origin allow-list, shared-secret header and body parsing."""

import json
import logging
import secrets
from typing import Any, Dict, Optional, Sequence

from fastapi import Depends, Header, Request
from starlette.datastructures import Headers
from starlette.responses import JSONResponse
from starlette.types import ASGIApp, Receive, Scope, Send

from .config import Settings
from .errors import AuthError, CorsError, PayloadTooLargeError, ValidationError

logger = logging.getLogger(__name__)


def origin_allowed(origin: Optional[str], allowed_origins: Sequence[str]) -> bool:
    """No Origin header or an empty allow-list means the request is allowed."""
    if not origin or not allowed_origins:
        return True
    return origin in allowed_origins


class OriginGateMiddleware:
    """Rejects cross-origin requests whose Origin is not in the allow-list.

    Response headers for allowed origins are left to Starlette's CORSMiddleware.
    """

    def __init__(self, app: ASGIApp, allowed_origins: Sequence[str] = ()) -> None:
        self.app = app
        self.allowed_origins = list(allowed_origins)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "http":
            origin = Headers(scope=scope).get("origin")
            if not origin_allowed(origin, self.allowed_origins):
                error = CorsError()
                logger.warning(f"Blocked request from origin {origin!r}")
                response = JSONResponse({"error": error.message}, status_code=error.status_code)
                await response(scope, receive, send)
                return
        await self.app(scope, receive, send)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


async def require_api_key(
    x_api_key: Optional[str] = Header(default=None, alias="x-api-key"),
    settings: Settings = Depends(get_settings),
) -> None:
    """Exact match between ``x-api-key`` and the configured shared secret."""
    expected = settings.require("AI_SERVICE_KEY")
    if x_api_key is None or not secrets.compare_digest(
        x_api_key.encode("utf-8"), expected.encode("utf-8")
    ):
        logger.warning("Rejected request with missing or invalid API key")
        raise AuthError()


async def read_json_body(
    request: Request,
    settings: Settings = Depends(get_settings),
) -> Dict[str, Any]:
    """Parse the JSON body, enforcing the configured size cap first.

    An empty body reads as ``{}``; a JSON value that is not an object also
    reads as ``{}`` so downstream validation reports the missing portfolio.
    """
    limit = settings.max_body_bytes

    declared = request.headers.get("content-length")
    if declared is not None and declared.isdigit() and int(declared) > limit:
        raise PayloadTooLargeError()

    chunks = []
    received = 0
    async for chunk in request.stream():
        received += len(chunk)
        if received > limit:
            raise PayloadTooLargeError()
        chunks.append(chunk)

    raw = b"".join(chunks)
    if not raw.strip():
        return {}

    try:
        body = json.loads(raw)
    except ValueError as e:
        logger.info(f"Invalid JSON body: {e}")
        raise ValidationError("Invalid JSON body") from e

    return body if isinstance(body, dict) else {}
