"""FastAPI middleware for request tracing, error handling, and CORS.

Middleware stack (applied bottom-up):
    1. RequestIDMiddleware — injects X-Request-ID into every request/response
    2. ErrorHandlerMiddleware — maps domain exceptions to structured JSON errors
    3. CORSMiddleware — browser clients
"""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

import structlog
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from confidential_swap.domain.exceptions import (
    AlreadyDelegatedError,
    DuplicateRecordError,
    InvalidSwapStatusError,
    SwapError,
    SwapNotExecutedError,
    SwapNotFoundError,
    UnauthorizedError,
    ValidatorNotAllowedError,
)

if TYPE_CHECKING:
    from fastapi import FastAPI, Request, Response

logger = structlog.get_logger(__name__)

# Checked in order; first match wins. Anything else derived from SwapError is 400.
_STATUS_CODES: tuple[tuple[type[SwapError], int], ...] = (
    (SwapNotFoundError, 404),
    (UnauthorizedError, 403),
    (ValidatorNotAllowedError, 403),
    (InvalidSwapStatusError, 409),
    (SwapNotExecutedError, 409),
    (DuplicateRecordError, 409),
    (AlreadyDelegatedError, 409),
)


def status_code_for(exc: SwapError) -> int:
    for exc_type, status_code in _STATUS_CODES:
        if isinstance(exc, exc_type):
            return status_code
    return 400


# ---------------------------------------------------------------------------
# 1. Request ID Middleware
# ---------------------------------------------------------------------------
class RequestIDMiddleware(BaseHTTPMiddleware):
    """Inject a unique X-Request-ID into every request for log correlation."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request_id = request.headers.get("X-Request-ID", str(uuid.uuid4()))

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)

        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response


# ---------------------------------------------------------------------------
# 2. Error Handler Middleware
# ---------------------------------------------------------------------------
class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """Catch domain exceptions and return structured JSON error responses."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        try:
            return await call_next(request)
        except SwapError as exc:
            status_code = status_code_for(exc)
            log = logger.warning if status_code < 500 else logger.error
            log("swap.rejected", code=exc.code, error=exc.message, status_code=status_code)
            return JSONResponse(
                status_code=status_code,
                content={"error": exc.code, "message": exc.message},
            )
        except ValueError as exc:
            logger.warning("request.invalid_input", error=str(exc))
            return JSONResponse(
                status_code=400,
                content={"error": "INVALID_INPUT", "message": str(exc)},
            )
        except Exception as exc:
            logger.exception("unhandled.error", error=str(exc))
            return JSONResponse(
                status_code=500,
                content={
                    "error": "INTERNAL_ERROR",
                    "message": "An unexpected error occurred",
                },
            )


# ---------------------------------------------------------------------------
# Setup function
# ---------------------------------------------------------------------------
def setup_middleware(app: FastAPI) -> None:
    """Register all middleware on the FastAPI application.

    The last middleware added runs first.
    """
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )
    app.add_middleware(ErrorHandlerMiddleware)
    app.add_middleware(RequestIDMiddleware)
