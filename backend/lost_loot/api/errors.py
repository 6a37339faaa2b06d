"""Turns failures into RFC 7807 problem-detail responses."""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from lost_loot.core.errors import GameError, PersistenceFailure

logger = logging.getLogger(__name__)

PROBLEM_MEDIA_TYPE = "application/problem+json"


def problem_response(
    request: Request,
    *,
    status_code: int,
    title: str,
    detail: str,
    **extra: object,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        media_type=PROBLEM_MEDIA_TYPE,
        content={
            "type": "about:blank",
            "title": title,
            "status": status_code,
            "detail": detail,
            "instance": request.url.path,
            **extra,
        },
    )


def _param_name(loc: tuple) -> str:
    # ("body", "teamId") -> "teamId"; a missing body reports just ("body",).
    names = [str(item) for item in loc[1:]]
    return ".".join(names) if names else str(loc[0])


async def handle_game_error(request: Request, exc: GameError) -> JSONResponse:
    if isinstance(exc, PersistenceFailure):
        logger.error("Persistence failure while handling %s", request.url.path)
    return problem_response(
        request,
        status_code=exc.status_code,
        title=exc.title,
        detail=exc.detail,
    )


async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {
            "param": _param_name(tuple(item.get("loc", ()))),
            "message": item.get("msg", "Invalid value"),
            "location": str(item["loc"][0]) if item.get("loc") else "body",
        }
        for item in exc.errors()
    ]
    logger.info("Request validation failed: %s", errors)
    return problem_response(
        request,
        status_code=status.HTTP_400_BAD_REQUEST,
        title="Validation Failed",
        detail="One or more parameters failed validation.",
        errors=errors,
    )


async def handle_http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    title = "Not Found" if exc.status_code == status.HTTP_404_NOT_FOUND else "Request Failed"
    detail = (
        "The requested resource was not found on this server."
        if exc.status_code == status.HTTP_404_NOT_FOUND
        else str(exc.detail)
    )
    return problem_response(request, status_code=exc.status_code, title=title, detail=detail)


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error while handling %s", request.url.path)
    return problem_response(
        request,
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        title="Internal Server Error",
        detail="An unexpected internal server error occurred.",
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(GameError, handle_game_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(StarletteHTTPException, handle_http_error)
    app.add_exception_handler(Exception, handle_unexpected_error)
