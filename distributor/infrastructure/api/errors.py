"""Map domain errors onto HTTP status codes."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from distributor.domain.errors import (
    CapacityInvariantViolation,
    DistributorError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR: dict[type[DistributorError], int] = {
    ValidationError: 400,
    NotFoundError: 404,
    InvalidStateError: 409,
    CapacityInvariantViolation: 500,
}


async def _handle_distributor_error(request: Request, exc: DistributorError) -> JSONResponse:
    status_code = next(
        (code for cls, code in _STATUS_BY_ERROR.items() if isinstance(exc, cls)),
        500,
    )
    if status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DistributorError, _handle_distributor_error)
