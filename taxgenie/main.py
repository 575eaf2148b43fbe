"""
main.py: TaxGenie FastAPI application.

Run with: uvicorn taxgenie.main:app --reload --port 8000
"""
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from taxgenie.config import settings
from taxgenie.errors import TaxEngineError

logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Load the rule book (a bad table stops startup), then the audit table."""
    from taxgenie.database import async_engine, create_tables
    from taxgenie.rules.loader import get_rule_book

    book = get_rule_book()
    app.state.rule_book = book
    logger.info("Rule tables loaded: %s", ", ".join(book.supported_years))

    if settings.persist_calculations:
        await create_tables()
        logger.info("Audit table ready")

    logger.info("TaxGenie v%s started", settings.app_version)
    yield

    await async_engine.dispose()
    logger.info("TaxGenie stopped")


app = FastAPI(
    title="TaxGenie API",
    version=settings.app_version,
    description=(
        "Deterministic Indian income-tax computation: Old vs New regime with rebate, "
        "surcharge and cess, capital gains with indexation, and interest reconciliation."
    ),
    lifespan=lifespan,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Error envelope: {"error": {"code", "message", "details": [{field, issue}]}}
# ---------------------------------------------------------------------------
def _error(
    code: str,
    message: str,
    status_code: int,
    details: Optional[list[dict[str, Any]]] = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": {"code": code, "message": message, "details": details or []}},
    )


_HTTP_CODES = {404: "NOT_FOUND", 405: "METHOD_NOT_ALLOWED"}


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Every field violation in one response, paths in dot notation without 'body'."""
    details = [
        {
            "field": ".".join(str(loc) for loc in err["loc"] if loc != "body") or None,
            "issue": err["msg"],
        }
        for err in exc.errors()
    ]
    return _error("VALIDATION_ERROR", "Request validation failed", 422, details)


@app.exception_handler(TaxEngineError)
async def tax_engine_error_handler(request: Request, exc: TaxEngineError) -> JSONResponse:
    logger.info("Rejected %s %s: %s", request.method, request.url.path, exc.code)
    return _error(
        exc.code,
        exc.message,
        exc.status_code,
        [{"field": exc.field, "issue": exc.message}],
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    code = _HTTP_CODES.get(exc.status_code, f"HTTP_{exc.status_code}")
    return _error(code, str(exc.detail), exc.status_code)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """500 INTERNAL_ERROR. The exception type is only echoed back when DEBUG is on."""
    logger.error("Unhandled exception on %s %s", request.method, request.url.path, exc_info=True)
    details = [{"issue": f"{type(exc).__name__}: {exc}"}] if settings.debug else []
    return _error("INTERNAL_ERROR", "An unexpected error occurred", 500, details)


@app.get("/api/health", tags=["System"])
async def health_check() -> dict:
    """Service status and the loaded assessment years."""
    from taxgenie.rules.loader import get_rule_book

    return {
        "status": "ok",
        "version": settings.app_version,
        "assessmentYears": get_rule_book().supported_years,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


from taxgenie.calculator.routes import router as calculator_router  # noqa: E402

app.include_router(calculator_router)
