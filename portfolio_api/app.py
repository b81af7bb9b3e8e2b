"""
FastAPI application entry point for the portfolio backend.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from portfolio_api.config import Settings, get_settings
from portfolio_api.db import build_store
from portfolio_api.errors import PortfolioError
from portfolio_api.routes import router

logger = logging.getLogger(__name__)


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(PortfolioError)
    async def portfolio_error(request: Request, exc: PortfolioError):
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "message": exc.message},
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_error(request: Request, exc: RequestValidationError):
        # The rejected input is not echoed: it may be a non-finite float.
        errors = [
            {key: value for key, value in error.items() if key != "input"}
            for error in exc.errors()
        ]
        return JSONResponse(
            status_code=400,
            content={
                "success": False,
                "message": "Invalid request",
                "errors": jsonable_encoder(errors),
            },
        )

    @app.exception_handler(Exception)
    async def unhandled_error(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=500,
            content={"success": False, "message": "Internal server error"},
        )


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app = FastAPI(title="Portfolio Backend (FastAPI)", version="0.1.0")
    app.state.settings = settings
    app.state.store = build_store(settings)
    _register_error_handlers(app)
    app.include_router(router, prefix=settings.api_prefix)

    def status() -> dict:
        return {"status": "ok", "store": app.state.store.backend}

    app.add_api_route("/", status, methods=["GET"], tags=["health"])
    app.add_api_route(f"{settings.api_prefix}/health", status, methods=["GET"], tags=["health"])
    logger.info("Portfolio API ready (store=%s)", app.state.store.backend)
    return app


app = create_app()
