from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from contextlib import asynccontextmanager

from careerguide import __version__
from careerguide.core.config import settings
from careerguide.core.exceptions import CareerGuideError, ProviderError, error_response
from careerguide.core.logging_config import logger
from careerguide.core.middleware import (
    RequestLoggingMiddleware,
    SecurityHeadersMiddleware,
    RequestSizeLimitMiddleware,
)
from careerguide.api.v1.router import api_router, root_router


def validate_config() -> bool:
    """Log configuration gaps at startup; missing credentials fall back to ADC"""
    warnings = []

    if not settings.FIREBASE_PROJECT_ID:
        warnings.append("FIREBASE_PROJECT_ID not set - project inferred from credentials")

    if not settings.firebase_configured:
        warnings.append(
            "FIREBASE_SERVICE_ACCOUNT / FIREBASE_CREDENTIALS_PATH not set - "
            "using Application Default Credentials"
        )

    if not settings.FIREBASE_STORAGE_BUCKET:
        warnings.append("FIREBASE_STORAGE_BUCKET not set - profile photo uploads will fail")

    if not settings.FIREBASE_WEB_API_KEY:
        warnings.append("FIREBASE_WEB_API_KEY not set - /config will hand clients an empty web config")

    for warn in warnings:
        logger.warning(f"[Startup] WARNING: {warn}")

    if not warnings:
        logger.info("[Startup] Configuration validated")
    return not warnings


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan event handler for startup and shutdown"""
    logger.info("=" * 60)
    logger.info(f"Starting {settings.APP_NAME}...")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info("=" * 60)

    validate_config()

    yield

    logger.info(f"Shutting down {settings.APP_NAME}...")


# Create FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    description="Role-based career guidance platform for students, institutions and companies",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
    redirect_slashes=False  # Prevent 307 redirects that break CORS
)

# Add middleware (order matters - last added runs first)
# 1. Request logging
app.add_middleware(RequestLoggingMiddleware)

# 2. Security headers
app.add_middleware(SecurityHeadersMiddleware)

# 3. Request size limit
app.add_middleware(RequestSizeLimitMiddleware, max_size=settings.MAX_REQUEST_SIZE)

# 4. CORS - Origins from CORS_ORIGINS_STR in .env
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID", "X-Response-Time"],
)


# Exception handlers
@app.exception_handler(CareerGuideError)
async def career_guide_exception_handler(request: Request, exc: CareerGuideError):
    if isinstance(exc, ProviderError) and exc.status_code >= 500:
        logger.error(f"Provider error on {request.url.path}: {exc.provider_message or exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content=error_response(exc, include_provider_message=settings.DEBUG)
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = [
        {"field": ".".join(str(part) for part in err.get("loc", ()) if part != "body"), "message": err.get("msg")}
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=400,
        content={
            "success": False,
            "message": errors[0]["message"] if len(errors) == 1 else "Invalid request",
            "code": "VALIDATION_ERROR",
            "details": {"errors": errors},
        }
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "success": False,
            "message": exc.detail if isinstance(exc.detail, str) else "Request failed",
            "code": f"HTTP_{exc.status_code}",
        },
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Global exception: {exc}", exc_info=True)
    content = {
        "success": False,
        "message": "Internal server error",
        "code": "INTERNAL_ERROR",
    }
    if settings.DEBUG:
        content["error"] = str(exc)
    return JSONResponse(status_code=500, content=content)


# Root endpoint
@app.get("/", tags=["Root"])
async def root():
    """Root endpoint"""
    return {
        "success": True,
        "message": f"Welcome to {settings.APP_NAME}",
        "version": __version__,
        "docs": "/docs",
        "health": "/health",
        "config": "/config",
    }


# Include API routers
app.include_router(root_router)
app.include_router(api_router, prefix=settings.API_PREFIX)


def run() -> None:
    """Console entry point"""
    import uvicorn
    uvicorn.run(
        "careerguide.main:app",
        host=settings.SERVER_HOST,
        port=settings.SERVER_PORT,
        reload=settings.DEBUG
    )


if __name__ == "__main__":
    run()
