"""Application entrypoint: `uvicorn schoolshelf.main:app`."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from schoolshelf.api.v1.router import get_api_router
from schoolshelf.core.config import get_config
from schoolshelf.core.enums import ErrorCode
from schoolshelf.core.exceptions import SchoolShelfError
from schoolshelf.core.startup import bootstrap
from schoolshelf.schemas import ErrorEnvelope

logger = logging.getLogger(__name__)

GENERIC_SERVER_ERROR = "Something went wrong. Please try again later."


def _envelope(status_code: int, code: ErrorCode, detail: str) -> JSONResponse:
    body = ErrorEnvelope(error_code=code.value, detail=detail)
    return JSONResponse(status_code=status_code, content=body.model_dump())


async def handle_domain_error(request: Request, exc: SchoolShelfError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(
            "request.server_error",
            exc_info=exc,
            extra={"event": "request.server_error", "path": request.url.path, "error_code": exc.code.value},
        )
        return _envelope(exc.status_code, exc.code, GENERIC_SERVER_ERROR)
    return _envelope(exc.status_code, exc.code, exc.message)


async def handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        messages.append(f"{location}: {error.get('msg')}" if location else str(error.get("msg")))
    return _envelope(422, ErrorCode.VALIDATION, "; ".join(messages) or "Invalid request.")


async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(
        "request.unhandled_error",
        extra={"event": "request.unhandled_error", "path": request.url.path},
    )
    return _envelope(500, ErrorCode.SERVER_ERROR, GENERIC_SERVER_ERROR)


@asynccontextmanager
async def lifespan(app: FastAPI):
    bootstrap()
    yield


def create_app() -> FastAPI:
    cfg = get_config()
    app = FastAPI(title=cfg.APP_NAME, version=cfg.APP_VERSION, lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(cfg.CORS_ORIGINS),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["Authorization", "Content-Type", "X-School-Id"],
    )
    app.add_exception_handler(SchoolShelfError, handle_domain_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation)
    app.add_exception_handler(Exception, handle_unexpected)

    app.include_router(get_api_router())
    app.mount(cfg.UPLOAD_URL_PREFIX, StaticFiles(directory=cfg.UPLOAD_DIR, check_dir=False), name="uploads")

    @app.get("/")
    def root() -> dict:
        return {"service": cfg.APP_NAME, "version": cfg.APP_VERSION, "api_prefix": cfg.API_PREFIX}

    return app


# Expose ASGI app for `uvicorn schoolshelf.main:app`.
app = create_app()


def run() -> None:
    """Serve the app on API_HOST:API_PORT."""
    cfg = get_config()
    uvicorn.run("schoolshelf.main:app", host=cfg.API_HOST, port=cfg.API_PORT, log_config=None)


if __name__ == "__main__":
    run()
