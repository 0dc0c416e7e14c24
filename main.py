"""
FastAPI Application Entry Point

Integrates:
  - Model management and diagnostics routes
  - Text enhancement routes
  - Health checks
  - Middleware for logging & error handling

Run: uvicorn main:app --reload --host 0.0.0.0 --port 8000
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware

from api import enhance_router, router as models_router
from config import Config
from infra import InfraBootstrap

# Setup logging
logging.basicConfig(
    level=Config.log_level(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan: startup and shutdown handlers.
    """
    # Startup
    infra = InfraBootstrap()
    app.state.infra = infra
    logger.info("=" * 60)
    logger.info("Note Editor enhancement service starting up...")
    logger.info(f"Environment: {Config.ENVIRONMENT}")
    logger.info(f"Infrastructure: {infra!r}")
    logger.info("=" * 60)

    yield

    # Shutdown
    logger.info("Note Editor enhancement service shutting down...")
    await infra.aclose()


# Create FastAPI app
app = FastAPI(
    title="Note Editor Enhancement API",
    description="On-device model provisioning and text enhancement with rule-based fallback",
    version="1.0.0",
    lifespan=lifespan,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=Config.cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Middleware for logging
@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log all requests."""
    logger.debug(f"{request.method} {request.url.path}")
    try:
        response = await call_next(request)
        return response
    except Exception as e:
        logger.error(f"Request error: {str(e)}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error"},
        )


# Include routers
app.include_router(models_router)
app.include_router(enhance_router)


# Health check endpoints
@app.get("/health/live")
async def health_live():
    """Live health check (Kubernetes liveness probe)."""
    return {"status": "alive"}


@app.get("/health/ready")
async def health_ready(request: Request):
    """Readiness health check: reports the enhancement readiness state."""
    infra = getattr(request.app.state, "infra", None)
    if infra is None:
        return {"status": "not_ready", "reason": "infrastructure not initialized"}
    return {"status": "ready", "enhancement": infra.orchestrator.state.value}


@app.get("/")
async def root():
    """Root endpoint with API info."""
    return {
        "name": "Note Editor Enhancement API",
        "version": "1.0.0",
        "status": "running",
        "endpoints": {
            "catalog": "GET /models/catalog",
            "installed": "GET /models/installed",
            "status": "GET /models/status",
            "diagnostics": "GET /models/diagnostics",
            "acquire": "POST /models/{model_id}/acquire",
            "select": "POST /models/{model_id}/select",
            "remove": "DELETE /models/{model_id}",
            "validate": "GET /models/{model_id}/validation",
            "repair": "POST /models/{model_id}/repair",
            "style": "PUT /enhance/style",
            "enhance": "POST /enhance",
            "health_live": "GET /health/live",
            "health_ready": "GET /health/ready",
        },
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        app,
        host="0.0.0.0",
        port=Config.APP_PORT,
        reload=Config.ENVIRONMENT == "development",
    )
