# bizledger/main.py
"""
FastAPI application.

Domain errors are turned into the standard error envelope here so routes can
let them propagate:

  DocumentValidationError, InvalidAmountError, ValueError -> 422
  DraftNotFoundError, LineNotFoundError, unknown kind     -> 404
  RecordNotFoundError (missing or another company's row)  -> 404
  BackendError                                            -> 502
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from bizledger.api.routes.health import router as health_router
from bizledger.api.v1 import v1_router
from bizledger.api.v1.envelope import error
from bizledger.core.config import settings
from bizledger.core.logging_config import setup_logging
from bizledger.domain.services.document_editor import LineNotFoundError, UnknownDocumentKindError
from bizledger.domain.services.document_service import DocumentValidationError, DraftNotFoundError
from bizledger.domain.services.tax_engine import InvalidAmountError
from bizledger.infrastructure.external.backend_client import BackendError, RecordNotFoundError

setup_logging()
logger = logging.getLogger("main")

app = FastAPI(title=settings.APP_NAME, debug=settings.DEBUG)


@app.exception_handler(DocumentValidationError)
async def _document_invalid(request: Request, exc: DocumentValidationError):
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=error("Document cannot be submitted", errors=[{"message": m} for m in exc.errors]),
    )


@app.exception_handler(InvalidAmountError)
async def _invalid_amount(request: Request, exc: InvalidAmountError):
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=error(str(exc)),
    )


@app.exception_handler(DraftNotFoundError)
async def _draft_not_found(request: Request, exc: DraftNotFoundError):
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content=error(f"Draft {exc.args[0] if exc.args else ''} not found"),
    )


@app.exception_handler(LineNotFoundError)
async def _line_not_found(request: Request, exc: LineNotFoundError):
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content=error(f"Line {exc.args[0] if exc.args else ''} not found"),
    )


@app.exception_handler(RecordNotFoundError)
async def _record_not_found(request: Request, exc: RecordNotFoundError):
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content=error(str(exc)),
    )


@app.exception_handler(UnknownDocumentKindError)
async def _unknown_kind(request: Request, exc: UnknownDocumentKindError):
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content=error(f"Unknown document kind: {exc}"),
    )


@app.exception_handler(BackendError)
async def _backend_failed(request: Request, exc: BackendError):
    logger.warning("Backend call failed on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=status.HTTP_502_BAD_GATEWAY,
        content=error(str(exc), errors=[{"status_code": exc.status_code}]),
    )


@app.exception_handler(ValueError)
async def _bad_value(request: Request, exc: ValueError):
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=error(str(exc)),
    )


app.include_router(health_router, tags=["health"])
app.include_router(v1_router)
