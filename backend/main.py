"""
Main FastAPI application entry point
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import HTTPException as FastAPIHTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from footsteps.api.routes import (catalog, companion, connectivity, health,
                                  metrics, speech)
from footsteps.core.config import get_settings
from footsteps.core.connectivity import ConnectivityProbe
from footsteps.core.genai_client import GenAIClient
from footsteps.core.logging_config import LoggingConfig
from footsteps.core.middleware import (LoggingContextMiddleware,
                                       MetricsMiddleware)
from footsteps.core.playback import BufferedAudioSink, PlaybackController
from footsteps.services.companion_service import CompanionService

# Configure logging first
LoggingConfig.configure()

logger = LoggingConfig.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan events for FastAPI app"""
    settings = get_settings()
    logger.info(f"Starting {settings.app_name} in {settings.app_env} mode...")
    if not settings.gemini_api_key:
        logger.warning("GEMINI_API_KEY is not set; features will answer from local core responses")

    client = GenAIClient(settings)
    probe = ConnectivityProbe(online=not settings.offline_mode)
    app.state.probe = probe
    app.state.companion = CompanionService(client, probe, settings)
    app.state.playback = PlaybackController(BufferedAudioSink())

    yield

    logger.info(f"Shutting down {settings.app_name}...")
    app.state.playback.stop_current()
    await client.close()


_settings = get_settings()
app = FastAPI(
    title=_settings.app_name,
    description="Recovery companion: reflections, counselor chat, art and speech with offline fallbacks",
    version="0.1.0",
    lifespan=lifespan,
)

# Logging context first so every request carries an id
app.add_middleware(LoggingContextMiddleware)
app.add_middleware(MetricsMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.allowed_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler to log all unhandled errors"""
    if isinstance(exc, FastAPIHTTPException):
        raise exc

    logger.error(
        "Unhandled exception",
        exc_info=True,
        extra={
            "error": str(exc),
            "error_type": type(exc).__name__,
            "path": request.url.path,
            "method": request.method,
        }
    )

    return JSONResponse(
        status_code=500,
        content={
            "detail": str(exc),
            "type": type(exc).__name__
        }
    )


app.include_router(health.router)
app.include_router(metrics.router)
app.include_router(connectivity.router)
app.include_router(catalog.router)
app.include_router(companion.router)
app.include_router(speech.router)


@app.get("/api")
async def root():
    """Root API endpoint"""
    settings = get_settings()
    return {
        "name": settings.app_name,
        "version": "0.1.0",
        "status": "running",
        "environment": settings.app_env,
    }


if __name__ == "__main__":
    import uvicorn
    settings = get_settings()
    uvicorn.run(
        "main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.app_env == "development",
    )
