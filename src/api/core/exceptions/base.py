"""Global exception handlers for the FastAPI application."""

import traceback

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from ..messages import MessageCode, get_default_message
from src.modules.map.projection import ProjectionError
from src.utils.logger import get_logger

logger = get_logger(__name__)


class MatchMapException(Exception):
    """Base exception for the map API with unified message codes."""

    def __init__(
        self,
        message_code: MessageCode,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: dict | None = None,
        headers: dict | None = None,
    ):
        self.message_code = message_code
        self.status_code = status_code
        self.message: str = get_default_message(message_code)
        self.details = details or {}
        self.headers = headers or {}
        super().__init__(self.message)

    def to_response_dict(self) -> dict:
        """Convert exception to API response format."""
        return {
            "message_code": self.message_code,
            "message": self.message,
            "details": self.details,
        }


def _serializable_errors(exc: RequestValidationError | ValidationError) -> list[dict]:
    try:
        errors = []
        for error in exc.errors():
            error_dict = dict(error)
            # ctx may hold the raw exception object
            error_dict.pop("ctx", None)
            if "input" in error_dict and hasattr(error_dict["input"], "isoformat"):
                error_dict["input"] = error_dict["input"].isoformat()
            errors.append(error_dict)
        return errors
    except Exception:
        return [{"msg": "Validation error occurred", "type": "validation_error"}]


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI app."""

    @app.exception_handler(MatchMapException)
    async def matchmap_exception_handler(
        request: Request, exc: MatchMapException
    ) -> JSONResponse:
        """Handle custom map API exceptions."""
        logger.error(
            f"MatchMap exception: {exc.message_code.value}",
            path=request.url.path,
            method=request.method,
            message_code=exc.message_code.value,
            details=exc.details,
        )

        return JSONResponse(
            status_code=exc.status_code,
            content=exc.to_response_dict(),
            headers=exc.headers,
        )

    @app.exception_handler(ProjectionError)
    async def projection_exception_handler(
        request: Request, exc: ProjectionError
    ) -> JSONResponse:
        """Camera that cannot be projected (zero-size container, bad center)."""
        logger.warning(
            "Projection unavailable",
            path=request.url.path,
            error=str(exc),
        )

        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={
                "message_code": MessageCode.PROJECTION_UNAVAILABLE,
                "message": get_default_message(MessageCode.PROJECTION_UNAVAILABLE),
                "details": {"description": str(exc)},
            },
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(
        request: Request, exc: HTTPException
    ) -> JSONResponse:
        """Handle FastAPI HTTP exceptions."""
        logger.warning(
            f"HTTP exception {exc.status_code}: {exc.detail}",
            path=request.url.path,
            method=request.method,
        )

        return JSONResponse(
            status_code=exc.status_code,
            content={
                "message_code": MessageCode.NOT_FOUND
                if exc.status_code == status.HTTP_404_NOT_FOUND
                else MessageCode.BAD_REQUEST,
                "message": str(exc.detail),
                "details": {"description": "HTTP exception occurred"},
            },
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Handle request validation errors."""
        logger.warning(
            "Validation error occurred",
            path=request.url.path,
            method=request.method,
        )

        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={
                "message_code": MessageCode.INVALID_INPUT,
                "message": get_default_message(MessageCode.INVALID_INPUT),
                "details": {
                    "description": "Request validation failed",
                    "validation_errors": _serializable_errors(exc),
                },
            },
        )

    @app.exception_handler(ValidationError)
    async def pydantic_validation_exception_handler(
        request: Request, exc: ValidationError
    ) -> JSONResponse:
        """Handle Pydantic validation errors."""
        logger.warning(
            "Pydantic validation error occurred",
            path=request.url.path,
            method=request.method,
        )

        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={
                "message_code": MessageCode.VALIDATION_ERROR,
                "message": get_default_message(MessageCode.VALIDATION_ERROR),
                "details": {"validation_errors": _serializable_errors(exc)},
            },
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        """Handle all other unhandled exceptions."""
        if isinstance(exc, MatchMapException):
            return await matchmap_exception_handler(request, exc)

        logger.error(
            f"Unhandled exception: {str(exc)}",
            path=request.url.path,
            method=request.method,
            exception_type=type(exc).__name__,
            traceback=traceback.format_exc(),
        )

        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "message_code": MessageCode.INTERNAL_ERROR,
                "message": get_default_message(MessageCode.INTERNAL_ERROR),
                "details": {"error_type": type(exc).__name__},
            },
        )
