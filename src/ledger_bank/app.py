"""
ledger_bank/app.py

FastAPI application entrypoint for the ledger-bank service.

This module wires together:
- Logging configuration (file-based under LOG_DIR)
- CORS and request logging middleware
- Mapping of ledger errors to JSON responses
- Domain routers under ledger_bank/api/ (auth, bank, accounts)
"""

import time

from fastapi import FastAPI
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.requests import Request

from . import __version__
from .api.accounts import router as accounts_router
from .api.auth import router as auth_router
from .api.bank import router as bank_router
from .config import get_settings
from .db.session import engine, init_models
from .logging_config import get_logger, setup_logging
from .services.errors import LedgerError, LedgerInternalError, MalformedTransferRequest

# Configure logging before creating the app
setup_logging()
logger = get_logger("ledger_bank")

settings = get_settings()

TRANSFER_PATH = "/api/bank/transfer"

app = FastAPI(title="Ledger Bank API", version=__version__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
    allow_credentials=True,
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """
    Request logger. Bodies are not logged: they carry passwords.
    """
    started = time.perf_counter()
    response = await call_next(request)
    logger.info(
        "HTTP %s %s from %s -> %s (%.1f ms)",
        request.method,
        request.url.path,
        request.client.host if request.client else "?",
        response.status_code,
        (time.perf_counter() - started) * 1000,
    )
    return response


@app.exception_handler(LedgerError)
async def ledger_error_handler(request: Request, exc: LedgerError):
    if isinstance(exc, LedgerInternalError):
        logger.error("Internal ledger failure on %s: %s", request.url.path, exc.detail)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    """
    Transfer clients always get the {error, message} shape; other routes keep
    FastAPI's default 422.
    """
    if request.url.path == TRANSFER_PATH:
        logger.warning("Malformed transfer request: %s", exc.errors())
        error = MalformedTransferRequest()
        return JSONResponse(status_code=error.status_code, content=error.to_dict())
    return await request_validation_exception_handler(request, exc)


@app.get("/api/health")
async def health():
    return {"status": "healthy", "service": "ledger-bank"}


app.include_router(auth_router, prefix="/api")
app.include_router(bank_router, prefix="/api")
app.include_router(accounts_router, prefix="/api")


@app.on_event("startup")
async def on_startup():
    await init_models(engine)
    logger.info("Ledger-bank starting up (db dialect=%s)", engine.dialect.name)


@app.on_event("shutdown")
async def on_shutdown():
    try:
        await engine.dispose()
    except Exception:
        logger.exception("Error disposing engine on shutdown")
    logger.info("Ledger-bank shutting down")
