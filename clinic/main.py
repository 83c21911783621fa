from contextlib import asynccontextmanager
from datetime import timedelta
from typing import Optional
from fastapi import FastAPI, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import time
import logging

from .api.v1.appointments import router as appointments_router
from .api.v1.auth import router as auth_router
from .api.v1.doctors import router as doctors_router
from .api.v1.patients import router as patients_router
from .api.v1.setup import router as setup_router
from .api.v1.staff import router as staff_router
from .core.config import Settings, settings as default_settings
from .core.database import STORE_UNAVAILABLE_ERRORS, create_db_engine, create_session_factory, init_db
from .core.middleware import AuthenticationMiddleware
from .core.principal import PrincipalResolver
from .core.security import Clock, SecretVerifier, TokenService

logger = logging.getLogger(__name__)

def create_app(settings: Optional[Settings] = None, clock: Optional[Clock] = None) -> FastAPI:
    """Build the application and wire its collaborators explicitly.

    Everything placed on ``app.state`` is created here once and only read
    afterwards.
    """
    settings = settings or default_settings
    clock = clock or Clock()

    # Configure logging
    logging.basicConfig(level=settings.LOG_LEVEL)

    engine = create_db_engine(settings)
    session_factory = create_session_factory(engine)
    token_service = TokenService(
        secret_key=settings.SECRET_KEY,
        ttl=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
        algorithm=settings.ALGORITHM,
        clock=clock,
    )
    secret_verifier = SecretVerifier(rounds=settings.BCRYPT_ROUNDS)
    principal_resolver = PrincipalResolver(session_factory)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Initialize application on startup."""
        logger.info(f"Starting {settings.APP_NAME}...")
        try:
            init_db(engine)
        except Exception as e:
            logger.error(f"Failed to initialize database: {str(e)}")
            raise
        logger.info("Application startup complete")
        yield
        logger.info(f"Shutting down {settings.APP_NAME}...")
        engine.dispose()

    # Create FastAPI application
    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.VERSION,
        description="Clinic management backend with role-based access and appointment scheduling",
        openapi_url="/api/v1/openapi.json",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.clock = clock
    app.state.engine = engine
    app.state.session_factory = session_factory
    app.state.token_service = token_service
    app.state.secret_verifier = secret_verifier

    # Middleware setup; the last one added runs first
    app.add_middleware(
        AuthenticationMiddleware,
        token_service=token_service,
        principal_resolver=principal_resolver,
        public_prefixes=settings.PUBLIC_PATH_PREFIXES,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Custom middleware for request logging and timing
    @app.middleware("http")
    async def add_process_time_header(request: Request, call_next):
        start_time = time.time()
        response = await call_next(request)
        process_time = time.time() - start_time
        response.headers["X-Process-Time"] = str(process_time)

        # Log request
        logger.info(
            f"{request.method} {request.url.path} - "
            f"Status: {response.status_code} - "
            f"Time: {process_time:.4f}s"
        )

        return response

    # Exception handlers
    @app.exception_handler(404)
    async def not_found_handler(request: Request, exc: HTTPException):
        detail = getattr(exc, "detail", None)
        return JSONResponse(
            status_code=404,
            content={
                "error": "Not Found",
                "detail": detail if detail and detail != "Not Found" else "The requested resource was not found",
                "path": str(request.url.path)
            }
        )

    # Only transient storage failures invite a retry; the rest fall through to the 500 handler
    async def store_unavailable_handler(request: Request, exc: Exception):
        logger.error(f"Database unavailable: {exc.__class__.__name__}: {exc}")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "error": "Service Unavailable",
                "detail": "Service temporarily unavailable, please retry"
            },
            headers={"Retry-After": "1"},
        )

    for error_class in STORE_UNAVAILABLE_ERRORS:
        app.add_exception_handler(error_class, store_unavailable_handler)

    @app.exception_handler(500)
    async def internal_error_handler(request: Request, exc: Exception):
        logger.error(f"Internal server error: {str(exc)}")
        return JSONResponse(
            status_code=500,
            content={
                "error": "Internal Server Error",
                "detail": "An unexpected error occurred"
            }
        )

    # Include routers
    app.include_router(auth_router, prefix="/api/v1")
    app.include_router(setup_router, prefix="/api/v1")
    app.include_router(doctors_router, prefix="/api/v1")
    app.include_router(patients_router, prefix="/api/v1")
    app.include_router(staff_router, prefix="/api/v1")
    app.include_router(appointments_router, prefix="/api/v1")

    # Health check endpoint
    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "timestamp": time.time(),
            "version": settings.VERSION
        }

    # Root endpoint
    @app.get("/")
    async def root():
        """Root endpoint with API information."""
        return {
            "message": f"Welcome to {settings.APP_NAME} API",
            "version": settings.VERSION,
            "docs": "/docs",
            "redoc": "/redoc",
            "health": "/health"
        }

    # API Info endpoint
    @app.get("/api/v1/info")
    async def api_info():
        """API information endpoint."""
        return {
            "name": settings.APP_NAME,
            "version": settings.VERSION,
            "endpoints": {
                "authentication": "/api/v1/auth",
                "setup": "/api/v1/setup",
                "doctors": "/api/v1/doctors",
                "patients": "/api/v1/patients",
                "staff": "/api/v1/staff",
                "appointments": "/api/v1/appointments",
                "docs": "/docs",
                "openapi": "/api/v1/openapi.json"
            }
        }

    return app

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "clinic.main:create_app",
        factory=True,
        host="0.0.0.0",
        port=8000,
        reload=default_settings.DEBUG,
        log_level="info"
    )
