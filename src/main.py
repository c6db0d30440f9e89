"""FastAPI application entrypoint."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from src.config import get_settings
from src.db.session import dispose_engine
from src.errors import (
    BoardingBeeError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from src.web.router import router

settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

_ERROR_STATUS: dict[type[BoardingBeeError], int] = {
    NotFoundError: status.HTTP_404_NOT_FOUND,
    ForbiddenError: status.HTTP_403_FORBIDDEN,
    ValidationError: status.HTTP_422_UNPROCESSABLE_CONTENT,
    ConflictError: status.HTTP_409_CONFLICT,
}


@asynccontextmanager
async def lifespan(_: FastAPI):
    """Release pooled database connections on shutdown."""

    yield
    await dispose_engine()


app = FastAPI(title=settings.app_name, lifespan=lifespan)
app.include_router(router)


@app.exception_handler(BoardingBeeError)
async def domain_error_handler(_: Request, exc: BoardingBeeError) -> JSONResponse:
    """Map domain errors to HTTP status codes."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    for error_type, code in _ERROR_STATUS.items():
        if isinstance(exc, error_type):
            status_code = code
            break
    return JSONResponse(
        status_code=status_code,
        content={"error": type(exc).__name__, "detail": str(exc)},
    )


@app.get("/health")
async def health() -> dict[str, str]:
    """Basic health endpoint."""

    return {"status": "ok"}
