"""
FastAPI application entrypoint for the LBK points service.

This module wires together:
- Settings loaded once from the environment
- Logging configuration (rotating file under LOG_DIR)
- The database and the service components, kept on app.state
- Error mapping from service failures to HTTP responses
- Routers under lbk_points.api (auth, users, points, health)
"""

from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.requests import Request

from lbk_points.api import auth_router, health_router, points_router, users_router
from lbk_points.config import Settings, load_settings
from lbk_points.db.session import Database
from lbk_points.errors import PointsError
from lbk_points.logging_config import get_logger, setup_logging
from lbk_points.services import Services

logger = get_logger("lbk_points")


def _describe_validation_error(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request body"
    first = errors[0]
    field = ".".join(str(p) for p in first.get("loc", ()) if p not in ("body", "query"))
    msg = first.get("msg", "invalid value")
    return f"{field}: {msg}" if field else msg


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or load_settings()
    setup_logging(settings.log_dir, settings.log_level)

    if settings.uses_default_secret:
        logger.warning("JWT_SECRET not set; using the built-in development secret")

    db = Database.from_settings(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Points service starting up db=%s", settings.effective_database_url)
        await db.create_all()
        yield
        try:
            await db.dispose()
        except Exception:
            logger.exception("Error disposing engine on shutdown")
        logger.info("Points service shutting down")

    app = FastAPI(title=settings.app_name, version="1.0.0", lifespan=lifespan)
    app.state.services = Services.build(settings, db)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        logger.info(
            "HTTP %s %s from %s",
            request.method,
            request.url.path,
            request.client.host if request.client else "?",
        )
        return await call_next(request)

    @app.exception_handler(PointsError)
    async def handle_points_error(request: Request, exc: PointsError):
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError):
        message = _describe_validation_error(exc)
        logger.warning("Request validation failed %s %s: %s", request.method, request.url.path, message)
        return JSONResponse(status_code=400, content={"error": message})

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"error": "internal server error"})

    app.include_router(health_router)
    app.include_router(auth_router)
    app.include_router(users_router)
    app.include_router(points_router)
    return app


def main() -> None:
    settings = load_settings()
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port, log_level="info")


if __name__ == "__main__":
    main()
