import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from claimledger.api import ledger as ledger_api
from claimledger.core.config import Settings, settings, validate_config
from claimledger.core.errors import (
    AppError,
    app_error_handler,
    http_error_handler,
    unhandled_exception_handler,
)
from claimledger.core.logging import configure_logging
from claimledger.core.middleware.request_id import RequestIdMiddleware
from claimledger.features.ledger.service import ClaimLedger
from claimledger.features.ledger.store import build_store


def create_app(ledger: Optional[ClaimLedger] = None, settings_obj: Optional[Settings] = None) -> FastAPI:
    """Build the local API. Without an explicit ledger one is loaded on startup."""
    cfg = settings_obj or settings
    configure_logging(cfg.ENV, cfg.LOG_LEVEL)
    validate_config(settings_obj=cfg)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger = logging.getLogger("claimledger")
        if getattr(app.state, "ledger", None) is None:
            app.state.ledger = ClaimLedger.load(build_store(cfg), tz=cfg.timezone)
        logger.info("Starting claimledger API...")
        try:
            yield
        finally:
            logger.info("Stopping claimledger API...")

    app = FastAPI(title="claimledger", lifespan=lifespan)
    app.state.settings = cfg
    app.state.ledger = ledger

    app.add_middleware(RequestIdMiddleware)
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(HTTPException, http_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    # Local single-user UI only
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:3000", "http://127.0.0.1:3000"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(ledger_api.router)

    @app.get("/healthz")
    def healthz():
        return {"status": "ok", "env": cfg.ENV}

    return app


app = create_app()
