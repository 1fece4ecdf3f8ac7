import logging
import time
from contextlib import asynccontextmanager
from datetime import UTC, datetime

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_fastapi_instrumentator import Instrumentator
from starlette.middleware.base import BaseHTTPMiddleware

from toolhub.api.router import api_router
from toolhub.core.config import settings
from toolhub.core.database import close_mongo_connection, connect_to_mongo
from toolhub.core.error_handlers import register_exception_handlers
from toolhub.core.logging import setup_logging
from toolhub.core.notification_scheduler import notification_scheduler
from toolhub.core.security import RateLimitMiddleware, add_security_headers
from toolhub.services.integrations.payment.razorpay_service import close_razorpay_service

SERVICE_VERSION = "1.0.0"


# Lifespan event handler
@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    await connect_to_mongo()
    notification_scheduler.start()
    logger = logging.getLogger(__name__)
    logger.info("ToolHub Marketplace API started")
    yield
    # Shutdown
    notification_scheduler.shutdown()
    await close_razorpay_service()
    await close_mongo_connection()
    logger.info("ToolHub Marketplace API shutting down")


# Initialize FastAPI app
app = FastAPI(
    title=settings.PROJECT_NAME,
    description="AI tool marketplace with plan purchases",
    version=SERVICE_VERSION,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
    lifespan=lifespan,
)

# Set up logging
setup_logging()
logger = logging.getLogger(__name__)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Add rate limiting middleware
app.add_middleware(RateLimitMiddleware)

# Add security headers middleware
app.add_middleware(BaseHTTPMiddleware, dispatch=add_security_headers)


# Request timing middleware
class TimingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request, call_next):
        start_time = time.time()
        response = await call_next(request)
        process_time = time.time() - start_time
        response.headers["X-Process-Time"] = str(process_time)
        return response


# Client IP logging middleware
class ClientIPMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request, call_next):
        client_ip = request.client.host if request.client else "unknown"
        request.state.client_ip = client_ip

        old_factory = logging.getLogRecordFactory()

        def record_factory(*args, **kwargs):
            record = old_factory(*args, **kwargs)
            record.client_ip = client_ip
            return record

        logging.setLogRecordFactory(record_factory)

        try:
            response = await call_next(request)
            return response
        finally:
            logging.setLogRecordFactory(old_factory)


app.add_middleware(ClientIPMiddleware)
app.add_middleware(TimingMiddleware)

# Include API routers
app.include_router(api_router, prefix=settings.API_V1_STR)

# Add Prometheus metrics instrumentation
instrumentator = Instrumentator()
instrumentator.instrument(app).expose(app, endpoint="/metrics")


# Health check endpoint
@app.get("/api/health", tags=["Health"])
async def health_check():
    """Health check endpoint for deployment verification"""
    return {
        "status": "healthy",
        "service": "toolhub-marketplace",
        "version": SERVICE_VERSION,
        "environment": settings.ENVIRONMENT,
        "timestamp": datetime.now(UTC).isoformat(),
    }


# Register exception handlers
register_exception_handlers(app)
