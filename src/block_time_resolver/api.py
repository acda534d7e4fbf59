#!/usr/bin/env python3
"""HTTP surface for the block time resolver.

Exposes ``GET /api`` which accepts either a comma-separated ``timestamps``
list or a single ``blockNumber``, plus a ``chain`` selector defaulting to
``evm``.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Query, Request, status
from fastapi.responses import JSONResponse, PlainTextResponse

from .config import ResolverConfig
from .errors import BadInput
from .models import Chain
from .resolver import BlockTimeResolver

logger = logging.getLogger(__name__)

NO_INPUT_MESSAGE = "No timestamps or block number provided"


def create_app(
    config: ResolverConfig | None = None,
    resolver: BlockTimeResolver | None = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        config: Configuration used to build a resolver at startup
        resolver: Prebuilt resolver (takes precedence over ``config``)

    Returns:
        The application instance
    """
    if config is None and resolver is None:
        raise ValueError("Either config or resolver is required")

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        app.state.resolver = resolver or BlockTimeResolver.from_config(config)
        try:
            yield
        finally:
            app.state.resolver.log_metrics()
            await app.state.resolver.aclose()

    app = FastAPI(title="Block Time Resolver", lifespan=lifespan)

    @app.get("/", response_class=PlainTextResponse)
    async def index() -> str:
        return "Hello from the block time resolver!"

    @app.get("/api")
    async def resolve(
        request: Request,
        timestamps: str | None = Query(None),
        block_number: str | None = Query(None, alias="blockNumber"),
        chain: str = Query(Chain.EVM.value),
    ):
        """
        Resolve timestamps to indexes, or one index to its timestamp.

        A failed timestamp maps to null and the batch still succeeds; a
        failed block lookup fails the whole request.
        """
        service: BlockTimeResolver = request.app.state.resolver

        try:
            service.resolver_for(chain)
        except BadInput as e:
            return JSONResponse({"error": str(e)}, status_code=status.HTTP_400_BAD_REQUEST)

        if timestamps:
            items = timestamps.split(",")
            return await service.resolve_timestamps(chain, items)

        if block_number:
            try:
                index = _parse_index(block_number)
                return await service.resolve_block(chain, index, key=block_number)
            except Exception as e:
                logger.error(
                    f"Error fetching timestamp for block number {block_number} "
                    f"on chain {chain}: {e}"
                )
                return PlainTextResponse(
                    f"Error: {e}", status_code=status.HTTP_500_INTERNAL_SERVER_ERROR
                )

        return JSONResponse(
            {"error": NO_INPUT_MESSAGE}, status_code=status.HTTP_400_BAD_REQUEST
        )

    return app


def _parse_index(raw: str) -> int:
    try:
        return int(raw.strip())
    except ValueError:
        raise BadInput(f"Invalid block number: {raw!r}") from None
