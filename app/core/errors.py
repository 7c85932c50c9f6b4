"""Expense Bridge — Error Envelope.

Every failure leaves the service as ``{code, message, error}`` with the HTTP
status mirroring ``code``.
"""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.core.logging import get_logger

logger = get_logger("errors")


class ServiceError(Exception):
    """Raised by route handlers to answer with a non-zero error envelope."""

    def __init__(self, code: int, message: str, error: str = ""):
        self.code = code
        self.message = message
        self.error = error
        super().__init__(message)

    def to_dict(self) -> dict:
        return {"code": self.code, "message": self.message, "error": self.error}


class SignatureError(ServiceError):
    """Raised when a supplied request signature does not match."""

    def __init__(self, error: str = "Signature verification failed"):
        super().__init__(401, "Invalid signature", error)


class StorageError(ServiceError):
    """Raised when the flat-file store could not persist its state."""

    def __init__(self, message: str, error: str = ""):
        super().__init__(500, message, error)


async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    return JSONResponse(status_code=exc.code, content=exc.to_dict())


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={"code": 400, "message": "Invalid request", "error": str(exc.errors())},
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        f"Unhandled error on {request.method} {request.url.path}: {exc}",
        exc_info=exc,
        extra={"endpoint": request.url.path, "method": request.method},
    )
    return JSONResponse(
        status_code=500,
        content={"code": 500, "message": "Internal server error", "error": str(exc)},
    )


def register_error_handlers(app: FastAPI) -> None:
    """Attach the envelope handlers to the application."""
    app.add_exception_handler(ServiceError, service_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
