from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from timetrack.routers import auth_router, employee_router, timesheet_router
from timetrack.database import init_db
from timetrack.errors import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    StorageError,
    TimetrackError,
    UnauthorizedError,
    ValidationError,
)
from timetrack.schemas import ErrorDto
from timetrack.utils.logging_config import cleanup_old_logs, setup_logging, get_log_files_info
from timetrack.config import get_settings
import logging

# Setup comprehensive logging
logs_dir = setup_logging()
logger = logging.getLogger(__name__)

settings = get_settings()

STATUS_BY_ERROR = {
    NotFoundError: 404,
    UnauthorizedError: 401,
    ForbiddenError: 403,
    ValidationError: 400,
    ConflictError: 409,
    StorageError: 503,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info("Starting Timesheet service...")
    init_db()
    cleanup_old_logs(settings.log_retention_days)
    logger.info("Application started successfully")

    yield

    # Shutdown
    logger.info("Application stopped")


app = FastAPI(
    title="Timesheet Service",
    description="Weekly employee timesheets with token-based access",
    version="1.0.0",
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(TimetrackError)
async def timetrack_error_handler(request: Request, exc: TimetrackError):
    status_code = STATUS_BY_ERROR.get(type(exc), 500)
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    body = ErrorDto(message=exc.message, violations=getattr(exc, "violations", []))
    headers = {"WWW-Authenticate": "Bearer"} if status_code == 401 else None
    return JSONResponse(status_code=status_code, content=body.model_dump(), headers=headers)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    violations = [
        f"{'.'.join(str(p) for p in err['loc'] if p != 'body')}: {err['msg']}"
        for err in exc.errors()
    ]
    body = ErrorDto(message="Malformed request", violations=violations)
    return JSONResponse(status_code=400, content=body.model_dump())


# Include routers
app.include_router(auth_router.router)
app.include_router(timesheet_router.router)
app.include_router(employee_router.router)


@app.get("/")
async def root():
    return {
        "message": "Timesheet Service API",
        "status": "running",
        "version": "1.0.0"
    }


@app.get("/health")
async def health_check():
    return {
        "status": "healthy",
        "environment": settings.app_env
    }


@app.get("/logs/info")
async def logs_info():
    """Get information about current log files."""
    return {
        "logs_directory": str(logs_dir.absolute()),
        "log_files": get_log_files_info()
    }
