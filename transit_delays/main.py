"""FastAPI application for the transit delay tracker."""
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from typing import Optional
import logging

from .config import Settings, get_settings
from .models import ApiResponse, HealthResponse
from .mutation_service import DelayMutationService
from .query_service import DelayQueryService
from .routes import delays_router
from .store import DelayStore, InMemoryDelayStore
from .supabase_store import SupabaseDelayStore

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

HEALTH_MESSAGE = "Transport Analytics API is running"


def build_store(settings: Settings) -> DelayStore:
    """Create the store selected by DELAY_STORE."""
    backend = settings.delay_store.lower()

    if backend == "memory":
        return InMemoryDelayStore()
    if backend == "supabase":
        return SupabaseDelayStore.from_settings(settings)

    raise ValueError(f"Unknown DELAY_STORE '{settings.delay_store}', expected 'supabase' or 'memory'")


def attach_store(app: FastAPI, store: DelayStore) -> None:
    """Inject the store handle and the services built on it."""
    app.state.store = store
    app.state.query_service = DelayQueryService(store)
    app.state.mutation_service = DelayMutationService(store)


def format_validation_errors(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors():
        location = ".".join(str(p) for p in err.get("loc", ()) if p != "body") or "body"
        parts.append(f"{location}: {err.get('msg')}")
    return "; ".join(parts)


def create_app(store: Optional[DelayStore] = None, app_settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the API application.

    Args:
        store: Store handle to use. When omitted, one is created from the
            settings on startup.
        app_settings: Settings override, defaults to the cached settings
    """
    app_settings = app_settings or settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan manager."""
        logger.info("Starting delay tracker API...")

        if getattr(app.state, "store", None) is None:
            attach_store(app, build_store(app_settings))

        store = app.state.store
        if await store.test_connection():
            logger.info(f"Using {store.name} delay store")
        else:
            logger.warning(f"{store.name} delay store is not reachable yet")

        yield

        logger.info("Shutting down delay tracker API...")

    app = FastAPI(
        title="Transit Delay Tracker API",
        description="Report, track and aggregate public-transit delays per neighborhood",
        version="1.0.0",
        lifespan=lifespan
    )
    app.state.settings = app_settings
    app.state.store = None

    if store is not None:
        attach_store(app, store)

    # CORS middleware for the dashboard
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.allowed_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        """Malformed requests get the error envelope with a 400."""
        body = ApiResponse(
            success=False,
            message="Invalid request parameters",
            error=format_validation_errors(exc)
        )
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=body.model_dump(exclude_none=True))

    app.include_router(delays_router, prefix="/api", tags=["Delays"])

    @app.get("/api/health", response_model=HealthResponse)
    async def health_check():
        """Health check endpoint."""
        return HealthResponse(status="OK", message=HEALTH_MESSAGE)

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {
            "service": "Transit Delay Tracker API",
            "version": "1.0.0",
            "status": "running",
            "endpoints": {
                "health": "/api/health",
                "delays": "/api/delays",
                "aggregate": "/api/delays/aggregate/by-neighborhood",
                "docs": "/docs"
            }
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "transit_delays.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug,
        log_level="info"
    )
