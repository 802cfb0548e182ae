from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from starlette.responses import JSONResponse

from api.router import api_router
from core.config import settings
from core.logging import setup_logging
from solver.calendar_grid import BlockKeyError


logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    setup_logging(environment=settings.environment, solver_debug=settings.solver_debug)
    is_production = settings.environment.lower() == "production"
    app = FastAPI(
        title="Timetable Slot Allocation API",
        version="0.1.0",
        docs_url=None if is_production else "/docs",
        redoc_url=None if is_production else "/redoc",
        openapi_url=None if is_production else "/openapi.json",
    )

    @app.exception_handler(BlockKeyError)
    def _block_key_error(_request: Request, exc: BlockKeyError):
        logger.warning("Unresolvable calendar reference (422): %s", exc)
        return JSONResponse(
            status_code=422,
            content={
                "code": "INVALID_CALENDAR_REFERENCE",
                "message": str(exc),
            },
        )

    allow_origins = [settings.frontend_origin]
    allow_origin_regex = None
    if not is_production:
        # Dev-friendly: allow the configured origin and any localhost port.
        allow_origins.extend(["http://localhost:5173", "http://127.0.0.1:5173"])
        allow_origin_regex = r"^https?://(localhost|127\.0\.0\.1)(:\d+)?$"

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allow_origins,
        allow_origin_regex=allow_origin_regex,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health")
    def health() -> dict:
        return {"app": "ok"}

    app.include_router(api_router, prefix="/api")
    return app


app = create_app()
