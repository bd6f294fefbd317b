# -*- coding: utf-8 -*-
"""
fittrack API

Meal photo logging with nutrition analysis, exercise log and weight progress.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .app_db import AppDB
from .auth.api import router as auth_router
from .auth.security import get_current_user_from_request
from .config import Settings
from .errors import FitTrackError
from .exercise.api import router as exercise_router
from .meals.api import barcode_router
from .meals.api import router as meals_router
from .meals.barcode import OpenFoodFactsClient
from .meals.resolver import NutritionResolver
from .meals.vision import OpenAIVisionClient, VisionAnalyzer
from .progress.api import router as progress_router
from .users.api import router as users_router

logger = logging.getLogger(__name__)

_AUTH_EXEMPT_PREFIXES = (
    "/api/auth/login",
    "/api/auth/register",
    "/api/docs",
    "/api/redoc",
    "/api/openapi.json",
)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def create_app(
    settings: Optional[Settings] = None,
    *,
    vision: Optional[VisionAnalyzer] = None,
    barcode_client: Optional[OpenFoodFactsClient] = None,
) -> FastAPI:
    settings = settings or Settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="fittrack",
        description="Meal photo nutrition logging, exercise log and weight progress",
        version="1.0.0",
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        openapi_url="/api/openapi.json",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    db = AppDB(settings.app_db_path)
    db.init()

    app.state.settings = settings
    app.state.db = db
    app.state.resolver = NutritionResolver(vision or OpenAIVisionClient.from_settings(settings))
    app.state.barcode_client = barcode_client or OpenFoodFactsClient.from_settings(settings)

    @app.middleware("http")
    async def _auth_gate(request: Request, call_next):
        path = request.url.path
        if path.startswith("/api") and path != "/api/health" and not any(path.startswith(p) for p in _AUTH_EXEMPT_PREFIXES):
            try:
                request.state.user = get_current_user_from_request(request)
            except HTTPException as exc:
                return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})
        return await call_next(request)

    @app.exception_handler(FitTrackError)
    async def _fittrack_error_handler(request: Request, exc: FitTrackError):
        if exc.http_status >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc)
        else:
            logger.info("%s %s rejected: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=exc.http_status, content={"detail": exc.to_dict()})

    app.include_router(auth_router)
    app.include_router(users_router)
    app.include_router(meals_router)
    app.include_router(barcode_router)
    app.include_router(exercise_router)
    app.include_router(progress_router)

    @app.get("/api/health")
    def health_check():
        return {"status": "ok", "vision_configured": bool(settings.vision_api_key)}

    logger.info("fittrack app created (db=%s)", settings.app_db_path)
    return app


def run() -> None:
    """Console entry point (used by pyproject [project.scripts])."""
    import uvicorn

    settings = Settings()
    uvicorn.run("fittrack.api:create_app", factory=True, host=settings.host, port=settings.port, reload=False)
