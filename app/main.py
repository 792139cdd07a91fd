import logging
from contextlib import asynccontextmanager
from typing import Optional, Dict, Any

from fastapi import FastAPI, Request, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from app.config import get_settings
from app.core.exceptions import (
    InvalidDateRangeError,
    ResourceNotFoundError,
    PermissionDeniedError,
    DuplicateResourceError,
)
from app.api.v1.router import api_router
from app.schemas.common import ErrorResponse
from app.db.session import init_db

settings = get_settings()

# Configure logging - suppress noisy third-party loggers
logging.basicConfig(level=logging.DEBUG if settings.DEBUG else logging.INFO)
logger = logging.getLogger(__name__)

logging.getLogger("urllib3").setLevel(logging.WARNING)
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)
logging.getLogger("google").setLevel(logging.WARNING)
logging.getLogger("firebase_admin").setLevel(logging.WARNING)
logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting {settings.APP_NAME}...")
    await init_db()
    yield
    logger.info(f"Shutting down {settings.APP_NAME}...")


app = FastAPI(
    title=settings.APP_NAME,
    version="1.0.0",
    description="""
## PocketLedger API

Personal income and expense tracking.

### Features
- **Categories & Sources**: Group expenses by category and incomes by source
- **Expenses & Incomes**: Record, search, edit and delete entries; export them to Excel
- **Analytics**: Totals by category/source, net balance, a unified transaction feed and detailed summaries

Analytics endpoints take optional `fromDate` / `toDate` (YYYY-MM-DD) and default to the current month.

### Authentication
All endpoints require Firebase Authentication. Include the ID token in the Authorization header:
```
Authorization: Bearer <firebase_id_token>
```
""",
    lifespan=lifespan,
    openapi_tags=[
        {"name": "analytics", "description": "Income and expense analytics"},
        {"name": "categories", "description": "Expense categories"},
        {"name": "sources", "description": "Income sources"},
        {"name": "expenses", "description": "Expense records"},
        {"name": "incomes", "description": "Income records"},
        {"name": "health", "description": "Health checks"},
    ],
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def error_response(
    status_code: int,
    error: str,
    message: str,
    details: Optional[Dict[str, Any]] = None,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    """Every error body has the ErrorResponse shape; `details` only when set."""
    body = ErrorResponse(error=error, message=message, details=details)
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(exclude_none=True),
        headers=headers,
    )


# Exception handlers
@app.exception_handler(InvalidDateRangeError)
async def invalid_date_range_exception_handler(
    request: Request, exc: InvalidDateRangeError
):
    logger.warning(f"Invalid date range on {request.url.path}: {exc.message}")
    return error_response(400, "invalid_date_range", exc.message, exc.details)


@app.exception_handler(ResourceNotFoundError)
async def not_found_exception_handler(request: Request, exc: ResourceNotFoundError):
    return error_response(404, "not_found", exc.message)


@app.exception_handler(PermissionDeniedError)
async def permission_denied_exception_handler(
    request: Request, exc: PermissionDeniedError
):
    return error_response(403, "permission_denied", exc.message)


@app.exception_handler(DuplicateResourceError)
async def duplicate_resource_exception_handler(
    request: Request, exc: DuplicateResourceError
):
    return error_response(409, "duplicate_resource", exc.message)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Report invalid request bodies and query params as 400."""
    return error_response(
        400,
        "validation_error",
        "Invalid request",
        {
            "errors": [
                {
                    "field": ".".join(str(loc) for loc in err["loc"]),
                    "message": err["msg"],
                }
                for err in exc.errors()
            ]
        },
    )


@app.exception_handler(SQLAlchemyError)
async def database_exception_handler(request: Request, exc: SQLAlchemyError):
    logger.exception(f"Database error on {request.method} {request.url.path}")
    return error_response(500, "database_error", str(exc))


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    """Handle FastAPI HTTPExceptions with consistent format."""
    error_type = {
        400: "bad_request",
        401: "unauthorized",
        403: "forbidden",
        404: "not_found",
        422: "validation_error",
    }.get(exc.status_code, "http_error")

    return error_response(
        exc.status_code,
        error_type,
        exc.detail if isinstance(exc.detail, str) else str(exc.detail),
        headers=exc.headers,
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unexpected error on {request.method} {request.url.path}")
    return error_response(500, "internal_error", "An unexpected error occurred")


app.include_router(
    api_router,
    prefix=settings.API_V1_PREFIX,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)


# Root health check
@app.get("/health")
async def health_check():
    return {"status": "healthy", "service": settings.APP_NAME}
