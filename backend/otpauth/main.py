from fastapi import FastAPI, Request, Depends
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from sqlalchemy import text
from sqlalchemy.orm import Session
import logging
import time
from contextlib import asynccontextmanager

from .config import settings
from .core.logger import setup_logging
from .database import create_tables, get_db
from .exceptions import EXCEPTION_HANDLERS
from . import APP_INFO

# Import routers
from .auth.routes import router as auth_router

logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    logger.info(f"Starting {settings.app_name}...")

    try:
        create_tables()
        logger.info("Database tables created successfully")
    except Exception as e:
        logger.error(f"Failed to create database tables: {e}")
        raise

    logger.info(f"{settings.app_name} started successfully")

    yield

    logger.info(f"{settings.app_name} shutdown complete")

def create_app() -> FastAPI:
    """Build the FastAPI application"""

    setup_logging(settings)

    app = FastAPI(
        title=APP_INFO["title"],
        description=APP_INFO["description"],
        version=APP_INFO["version"],
        license_info=APP_INFO["license_info"],
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan
    )

    # Add exception handlers
    for exception_type, handler in EXCEPTION_HANDLERS.items():
        app.add_exception_handler(exception_type, handler)

    # Add middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )
    app.add_middleware(TrustedHostMiddleware, allowed_hosts=settings.allowed_hosts)

    # Request logging middleware
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Log all HTTP requests"""
        start_time = time.time()

        response = await call_next(request)

        process_time = time.time() - start_time
        logger.info(
            f"{request.method} {request.url.path} -> {response.status_code} ({process_time:.3f}s)"
        )
        response.headers["X-Process-Time"] = str(process_time)

        return response

    # Security headers middleware
    @app.middleware("http")
    async def add_security_headers(request: Request, call_next):
        """Add security headers to all responses"""
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"

        if not settings.debug:
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"

        return response

    # Include routers
    app.include_router(
        auth_router,
        prefix=settings.auth_route_prefix,
        tags=["Authentication"]
    )

    # Root endpoint
    @app.get("/", include_in_schema=False)
    def root():
        """Root endpoint"""
        return {
            "success": True,
            "message": f"{settings.app_name} API is running",
            "data": {
                "app_name": settings.app_name,
                "version": settings.app_version
            }
        }

    # Health check endpoint
    @app.get("/health", tags=["Health"])
    def health_check(db: Session = Depends(get_db)):
        """Health check endpoint"""
        try:
            db.execute(text("SELECT 1"))
            db_status = "healthy"
        except Exception as e:
            logger.error(f"Database health check failed: {e}")
            db_status = "unhealthy"

        return {
            "success": db_status == "healthy",
            "message": "Health check completed",
            "data": {
                "status": db_status,
                "database": db_status,
                "timestamp": time.time()
            }
        }

    return app

# Create FastAPI application
app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "otpauth.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
        log_level="info"
    )
