import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

SERVER_ERROR_MESSAGE = "Server error"


class AnswerlyError(Exception):
    """Base class for errors that map onto a client-visible status code."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = SERVER_ERROR_MESSAGE

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(AnswerlyError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid request"


class NotFoundError(AnswerlyError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Question set not found"


class ForbiddenError(AnswerlyError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Not allowed"


class ConflictError(AnswerlyError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Respondent already submitted"


class SlugExhaustionError(AnswerlyError):
    default_message = "Could not allocate a unique slug"


def _message(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"message": message})


async def answerly_error_handler(request: Request, exc: AnswerlyError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return _message(exc.status_code, SERVER_ERROR_MESSAGE)
    return _message(exc.status_code, exc.message)


async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


async def request_validation_handler(request: Request, exc: RequestValidationError):
    parts = []
    for error in exc.errors():
        location = ".".join(str(p) for p in error.get("loc", ()) if p != "body")
        parts.append(f"{location}: {error.get('msg')}" if location else error.get("msg"))
    return _message(status.HTTP_400_BAD_REQUEST, "; ".join(parts) or "Invalid request")


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return _message(status.HTTP_500_INTERNAL_SERVER_ERROR, SERVER_ERROR_MESSAGE)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AnswerlyError, answerly_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
