"""
FastAPI application entry point for the quiz backend.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse

from quizboard.config import get_settings
from quizboard.errors import NotFoundError, StoreError, ValidationError
from quizboard.routes import router

logger = logging.getLogger(__name__)

INTERNAL_SERVER_ERROR = "Internal Server Error"


async def _not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={"message": exc.message})


async def _validation_handler(request: Request, exc: ValidationError):
    return JSONResponse(status_code=400, content={"message": exc.message})


async def _request_validation_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content={
            "message": "Invalid request body",
            "errors": [
                {"loc": list(error["loc"]), "msg": error["msg"]}
                for error in exc.errors()
            ],
        },
    )


async def _internal_error_handler(request: Request, exc: Exception):
    # Details stay in the log; clients get a generic body.
    logger.exception(
        "Error handling %s %s", request.method, request.url.path, exc_info=exc
    )
    return PlainTextResponse(INTERNAL_SERVER_ERROR, status_code=500)


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(title="Quizboard Backend (FastAPI)", version="0.1.0")
    app.include_router(router, prefix=settings.api_prefix)
    app.add_exception_handler(NotFoundError, _not_found_handler)
    app.add_exception_handler(ValidationError, _validation_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
    app.add_exception_handler(StoreError, _internal_error_handler)
    app.add_exception_handler(Exception, _internal_error_handler)
    return app


app = create_app()
