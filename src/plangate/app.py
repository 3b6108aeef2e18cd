"""FastAPI application factory for PlanGate."""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from plangate.common.config import get_settings
from plangate.common.exceptions import PlanGateError
from plangate.common.logging import get_logger, setup_logging
from plangate.common.schemas import ErrorResponse, HealthResponse

logger = get_logger("app")


def create_app() -> FastAPI:
    settings = get_settings()
    setup_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        # Shutdown
        from plangate.deps import close_clients
        await close_clients()

    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(PlanGateError)
    async def plangate_error_handler(request: Request, exc: PlanGateError):
        logger.error("Unhandled gate error: %s", exc.message)
        return JSONResponse(
            status_code=500,
            content=ErrorResponse(error=exc.message, code=exc.code).model_dump(),
        )

    @app.get("/health", response_model=HealthResponse)
    async def health():
        return HealthResponse(version=settings.api_version)

    from plangate.gating.router import router as gating_router

    app.include_router(gating_router, prefix=settings.api_prefix, tags=["gating"])

    return app
