from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

# Routers
from .routers.nearby import router as nearby_router

# Core modules
from .core.config import settings
from .core.errors import InvalidCoordinate, StoreQueryError, StoreUnavailable
from .core.logging import configure_logging, CorrelationIdMiddleware
from .core.metrics import PromMiddleware, metrics_endpoint

def create_app() -> FastAPI:
    """
    App factory so tests and ASGI servers can instantiate cleanly.
    """
    configure_logging()  # Set up JSON logs + correlation-id filter

    app = FastAPI(
        title="Geo-Proximity Listing Search",
        version="1.0.0",
        description="Nearby property discovery with radius escalation and region fallback.",
    )

    # CORS: allow the mobile/web client to call the API.
    allow_origins = [o.strip() for o in settings.ALLOW_ORIGINS.split(",")] if settings.ALLOW_ORIGINS else ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-Id"],
    )

    # Observability middlewares
    app.add_middleware(CorrelationIdMiddleware)  # Adds/propagates X-Request-Id
    if settings.PROMETHEUS_ENABLED:
        app.add_middleware(PromMiddleware)       # Records req/latency metrics

    # Error mapping
    @app.exception_handler(InvalidCoordinate)
    async def invalid_coordinate(request: Request, exc: InvalidCoordinate):
        return JSONResponse(status_code=422, content={"detail": str(exc), "code": "invalid_coordinate"})

    @app.exception_handler(StoreUnavailable)
    async def store_unavailable(request: Request, exc: StoreUnavailable):
        return JSONResponse(status_code=503, content={"detail": str(exc), "code": "store_unavailable"})

    @app.exception_handler(StoreQueryError)
    async def store_query_error(request: Request, exc: StoreQueryError):
        return JSONResponse(status_code=502, content={"detail": str(exc), "code": "store_query_error"})

    # Meta routes
    @app.get("/v1/health", tags=["meta"])
    def health():
        return {"status": "ok"}

    @app.get("/v1/ping", tags=["meta"])
    def ping():
        return {"pong": True}

    if settings.PROMETHEUS_ENABLED:
        # Standard Prometheus scrape endpoint
        app.add_route("/v1/metrics", metrics_endpoint, methods=["GET"])

    # Business routes
    app.include_router(nearby_router, prefix="/v1", tags=["nearby"])

    return app

app = create_app()
