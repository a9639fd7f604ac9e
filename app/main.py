# app/main.py
"""
Call debrief API: deal lookup, voice interview sessions and structured call reports.
"""

import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request

from app.config import settings
from app.dependencies import services
from app.infrastructure.observability.logging import get_logger, log_request, setup_logging
from app.middleware import CORSMiddleware, RequestContextMiddleware
from app.routes import deals, health, interview, report

# Setup logging before creating the app
setup_logging(log_level=settings.LOG_LEVEL)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle application startup and shutdown with proper resource management."""
    logger.info(
        "Application starting",
        environment=settings.environment,
        debug=settings.debug,
        session_store=settings.session_store_backend(),
    )

    try:
        await services.initialize(settings)
    except Exception as e:
        logger.error("Failed to initialize services", error=str(e))
        await services.close()
        raise

    yield

    logger.info("Application shutting down")
    await services.close()


app = FastAPI(
    title="Call Debrief Assistant",
    description="Voice debrief interviews that produce structured sales call reports",
    version="0.1.0",
    lifespan=lifespan,
)

# Include routers
app.include_router(health.router)
app.include_router(deals.router)
app.include_router(interview.router)
app.include_router(report.router)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log HTTP requests with timing."""
    start_time = time.time()
    response = await call_next(request)
    process_time = (time.time() - start_time) * 1000

    log_request(request.method, request.url.path, response.status_code, round(process_time, 2))
    return response


# Added last so they wrap the request logger: request_id is bound before it logs
app.add_middleware(CORSMiddleware, allowed_origins=settings.CORS_ALLOWED_ORIGINS)
app.add_middleware(RequestContextMiddleware)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=settings.HOST, port=settings.PORT)
