import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import InterfaceError, OperationalError

from stockledger.config import Settings, get_settings
from stockledger.core.errors import (
    BusinessRuleViolation,
    ConcurrencyConflict,
    LedgerError,
    NotFound,
    StorageUnavailable,
    ValidationError,
)
from stockledger.core.logging import setup_logging
from stockledger.database import create_schema
from stockledger.routers import (
    adjustments_router,
    audit_router,
    channel_router,
    health_router,
    inventory_router,
    movements_router,
    products_router,
    snapshots_router,
    stocktakes_router,
    stores_router,
    transactions_router,
)

logger = logging.getLogger(__name__)

setup_logging()
settings: Settings = get_settings()

_STATUS_BY_ERROR = (
    (ValidationError, 422),
    (NotFound, 404),
    (BusinessRuleViolation, 409),
    (ConcurrencyConflict, 409),
    (StorageUnavailable, 503),
)


def status_for(exc: LedgerError) -> int:
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status_code
    return 400


@asynccontextmanager
async def lifespan(_app: FastAPI):
    create_schema()
    yield


app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)


@app.exception_handler(LedgerError)
async def ledger_error_handler(_request: Request, exc: LedgerError):
    status_code = status_for(exc)
    if status_code >= 500:
        logger.error("Ledger storage failure: %s", exc.message)
    return JSONResponse(
        status_code=status_code,
        content={"detail": exc.message, "code": exc.code},
    )


@app.exception_handler(OperationalError)
@app.exception_handler(InterfaceError)
async def storage_error_handler(request: Request, exc: Exception):
    logger.error("Storage error on %s", request.url.path, exc_info=exc)
    return await ledger_error_handler(request, StorageUnavailable("Storage is unavailable"))


app.include_router(health_router)
app.include_router(stores_router)
app.include_router(products_router)
app.include_router(inventory_router)
app.include_router(movements_router)
app.include_router(transactions_router)
app.include_router(adjustments_router)
app.include_router(stocktakes_router)
app.include_router(snapshots_router)
app.include_router(channel_router)
app.include_router(audit_router)


__all__ = ["app", "status_for"]
