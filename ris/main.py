# ris/main.py
import structlog
from fastapi import Depends, FastAPI, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

# Core Application Imports
from ris.core.config import settings
from ris.core.correlation import get_correlation_id
from ris.core.logging_config import configure_json_logging
from ris.core.middleware.correlation import CorrelationMiddleware
from ris.core.result import ErrorKind
from ris.api.deps import get_db
from ris.api.api_v1.api import api_router
from ris.db.base import Base
from ris.db.session import engine

# --- Configure logging ---
configure_json_logging("ris-api")
logger = structlog.get_logger(__name__)


# --- Database Table Creation Function ---
def create_tables():
    """Ensures all tables defined in models are created in the DB if they don't exist."""
    from ris.db import models  # noqa F401

    logger.info("DB_CREATE_TABLES_START")
    try:
        Base.metadata.create_all(bind=engine)
        logger.info("DB_CREATE_TABLES_COMPLETE")
    except SQLAlchemyError as e:
        logger.error("DB_CREATE_TABLES_FAILED", error=str(e), exc_info=True)


# --- Initialize FastAPI App ---
app = FastAPI(
    title=settings.PROJECT_NAME,
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
    docs_url=f"{settings.API_V1_STR}/docs",
    redoc_url=f"{settings.API_V1_STR}/redoc",
    version=settings.PROJECT_VERSION,
    description="Radiology order lifecycle and identifier generation",
    debug=settings.DEBUG,
)


# --- Middleware ---
app.add_middleware(CorrelationMiddleware)

if settings.BACKEND_CORS_ORIGINS:
    origins = [str(origin) for origin in settings.BACKEND_CORS_ORIGINS]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    logger.info("CORS_ENABLED", origins=origins)
else:
    logger.warning("CORS_NOT_CONFIGURED")


# --- Exception Handlers ---
@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    """Last resort: log the fault with context, answer 500 without driver text."""
    logger.error(
        "UNHANDLED_EXCEPTION",
        method=request.method,
        path=request.url.path,
        error_type=type(exc).__name__,
        correlation_id=get_correlation_id(),
        exc_info=True,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": {"kind": ErrorKind.INTERNAL.value, "message": "Internal server error"}},
    )


# --- API Routers ---
@app.get("/", tags=["Root"], summary="Root Endpoint")
async def read_root():
    """ Root endpoint providing basic application information. """
    return {
        "message": f"Welcome to {settings.PROJECT_NAME}",
        "docs_url": app.docs_url,
        "api_prefix": settings.API_V1_STR,
        "project_version": app.version,
    }


@app.get("/health", tags=["Health"], status_code=status.HTTP_200_OK, summary="Health Check")
def health_check(db: Session = Depends(get_db)):
    """ Basic health check, including database connectivity. """
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error("HEALTH_CHECK_DB_FAILED", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database connection error",
        )
    return {"status": "ok", "components": {"database": {"status": "ok"}}}


app.include_router(api_router, prefix=settings.API_V1_STR)


# --- Startup Event Handler ---
@app.on_event("startup")
async def startup_event():
    logger.info("APPLICATION_STARTUP", environment=settings.ENVIRONMENT, version=settings.PROJECT_VERSION)
    create_tables()
    logger.info("APPLICATION_STARTUP_COMPLETE")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "ris.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower(),
    )
