"""
Account Events - Main Application Entry Point
"""
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from account_events.api import accounts
from account_events.application.dispatcher import DomainEventDispatcher
from account_events.application.listeners import build_listener_registry
from account_events.config import settings
from account_events.db import init_db, close_db
from account_events.version import __version__
import httpx
import logging
import re


# Custom logging filter to redact personal data
class SensitiveDataFilter(logging.Filter):
    """Filter to mask email addresses in logs (keeps first char and domain)"""

    _email_pattern = re.compile(r'\b([A-Za-z0-9._%+-])[A-Za-z0-9._%+-]*@([A-Za-z0-9.-]+)')

    def filter(self, record):
        if isinstance(record.msg, str) and '@' in record.msg:
            record.msg = self._email_pattern.sub(r'\1***@\2', record.msg)
        return True


# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level, logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

# Add filter to all loggers
for handler in logging.root.handlers:
    handler.addFilter(SensitiveDataFilter())

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager - handles startup and shutdown"""
    # Startup
    logger.info("🚀 Starting Account Events")
    logger.info(f"📦 Version: {__version__}")
    logger.info(f"📝 Environment: {settings.environment}")

    await init_db()

    # Listener registry is built once and shared read-only by every request
    http_client = httpx.AsyncClient()
    registry = build_listener_registry(settings, http_client)
    app.state.dispatcher = DomainEventDispatcher.from_registry(registry)
    if settings.integration_webhook_url:
        logger.info(f"🔗 Integration events forwarded to {settings.integration_webhook_url}")
    logger.info("✅ Domain event dispatcher ready")

    yield

    # Shutdown
    logger.info("Shutting down...")
    await http_client.aclose()
    await close_db()


app = FastAPI(
    title="Account Events",
    description="Accounts API raising domain events that are dispatched when the unit of work commits",
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs",  # Enable auto-generated Swagger UI
    redoc_url="/redoc",
    openapi_url="/openapi.json"
)


# Add validation error handler for debugging
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Log validation errors for debugging"""
    logger.error(f"Validation error for {request.method} {request.url.path}")
    logger.error(f"Validation errors: {exc.errors()}")

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": exc.errors()}
    )


# Register account routes
app.include_router(accounts.router, prefix="/api/v1", tags=["accounts"])


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "app": "Account Events",
        "version": __version__,
        "status": "running",
        "environment": settings.environment,
    }


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": settings.environment
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("account_events.main:app", host=settings.host, port=settings.port)
