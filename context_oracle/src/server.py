"""HTTP API for the signed context oracle.

Endpoints:
    GET  /          health check, returns "ok"
    GET  /context   signed context with the feed price as-is
    POST /context   ABI-encoded (OrderV4, inputIOIndex, outputIOIndex, counterparty);
                    returns the signed context with the price directed for the order
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from .errors import InvalidInputError, OracleError, UpstreamUnavailableError
from .fetchers import BaseFetcher
from .OracleService import OracleService
from .TokenPair import PriceDirection, TokenPairConfig, decode_oracle_request

logger = logging.getLogger(__name__)


def _error_response(status_code: int, error: OracleError) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": error.code, "detail": str(error)},
    )


def create_app(service: OracleService, token_pair: TokenPairConfig) -> FastAPI:
    """Build the FastAPI application.

    :param service: Oracle service producing signed contexts.
    :param token_pair: Token pair used to direct POST requests.
    :returns: Configured FastAPI app.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        await BaseFetcher.close_shared_client()

    app = FastAPI(
        title="Signed Context Oracle",
        description="Signed Pyth price context for Rain orders",
        lifespan=lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(InvalidInputError)
    async def invalid_input_handler(request: Request, exc: InvalidInputError):
        logger.warning(f"Bad request: {exc}")
        return _error_response(400, exc)

    @app.exception_handler(UpstreamUnavailableError)
    async def upstream_handler(request: Request, exc: UpstreamUnavailableError):
        logger.warning(f"Upstream unavailable: {exc}")
        return _error_response(502, exc)

    @app.exception_handler(OracleError)
    async def internal_handler(request: Request, exc: OracleError):
        logger.error(f"Internal error: {exc!r}")
        return JSONResponse(
            status_code=500,
            content={"error": "internal_error", "detail": str(exc)},
        )

    @app.get("/", response_class=PlainTextResponse)
    async def health() -> str:
        return "ok"

    @app.get("/context")
    async def get_signed_context():
        signed = await service.produce(PriceDirection.AS_IS)
        return signed.to_json()

    @app.post("/context")
    async def post_signed_context(request: Request):
        body = await request.body()
        input_token, output_token = decode_oracle_request(body)
        direction = token_pair.price_direction(input_token, output_token)
        logger.debug(
            f"Oracle request: input={input_token} output={output_token} "
            f"direction={direction.value}"
        )
        signed = await service.produce(direction)
        return signed.to_json()

    return app
