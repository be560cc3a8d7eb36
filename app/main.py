"""
Main FastAPI application
Exam platform: accounts, question banks, exam lifecycle, submissions and grading
"""
from fastapi import FastAPI, Request, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
import logging
import time

from app.config import settings
from app.database import init_db
from app.api import auth, users, questions, exams, submissions, practice, public
from app.exceptions import DomainError
from app.services.error_log_service import error_log_service
from app.utils.rate_limiter import rate_limiter

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Exam authoring, timed exam taking and grading backend",
    docs_url="/docs",
    redoc_url="/redoc"
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

UNLIMITED_PATHS = {"/health", "/docs", "/redoc", "/openapi.json"}


def error_response(status_code: int, message: str) -> JSONResponse:
    """Failure envelope: {success: false, error}"""
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})


# Rate limiting middleware
@app.middleware("http")
async def rate_limit_middleware(request: Request, call_next):
    """Apply rate limiting to API requests"""
    if request.url.path in UNLIMITED_PATHS:
        return await call_next(request)

    try:
        await rate_limiter.check_rate_limit(request)
    except HTTPException as e:
        return error_response(e.status_code, e.detail)

    return await call_next(request)


# Request logging middleware
@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log all requests with timing"""
    start_time = time.time()

    response = await call_next(request)

    duration = time.time() - start_time
    logger.info(
        f"{request.method} {request.url.path} - "
        f"Status: {response.status_code} - "
        f"Duration: {duration:.3f}s"
    )

    return response


# Domain error handler
@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError):
    """Map service/guard failures to their status code"""
    if exc.status_code >= 500:
        error_log_service.log_5xx(request, exc.status_code, exc)
    else:
        logger.debug(f"{request.method} {request.url.path} - {exc.kind.value}: {exc.message}")

    return error_response(exc.status_code, exc.message)


# Validation error handler
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Malformed input is a 400, not FastAPI's default 422"""
    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{field}: {first.get('msg')}" if field else first.get("msg")
    else:
        message = "Invalid parameters"

    return error_response(400, message)


# HTTP exception handler
@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Format HTTP exceptions consistently"""
    if exc.status_code >= 500:
        error_log_service.log_5xx(request, exc.status_code, exc)

    return error_response(exc.status_code, str(exc.detail))


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle unexpected errors gracefully"""
    logger.error(f"Unhandled exception: {str(exc)}", exc_info=True)
    error_log_service.log_5xx(request, 500, exc)

    message = str(exc) if settings.DEBUG else "An unexpected error occurred. Please try again later."
    return error_response(500, message)


# Health check endpoint
@app.get("/health")
async def health_check():
    """
    Health check endpoint for monitoring

    Returns service status and version
    """
    return {
        "status": "healthy",
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "timestamp": time.time()
    }


# Root endpoint
@app.get("/")
async def root():
    """Root endpoint with API information"""
    return {
        "message": "Exam Platform API",
        "version": settings.APP_VERSION,
        "docs": "/docs",
        "health": "/health"
    }


# Include routers
app.include_router(auth.router)
app.include_router(users.router)
app.include_router(questions.router)
app.include_router(exams.router)
app.include_router(submissions.router)
app.include_router(practice.router)
app.include_router(public.router)


# Startup event
@app.on_event("startup")
async def startup_event():
    """Initialize database on startup"""
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")

    try:
        init_db()
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error(f"Failed to initialize database: {str(e)}")
        raise

    if not settings.JWT_SECRET:
        logger.warning("JWT_SECRET is not set; register, login and authenticated routes will fail")

    logger.info("Application startup complete")


# Shutdown event
@app.on_event("shutdown")
async def shutdown_event():
    """Cleanup on shutdown"""
    logger.info("Shutting down application")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG
    )
