from __future__ import annotations

import logging

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from eventhub.api.routers import events, realtime
from eventhub.core.config import settings
from eventhub.core.logging import configure_logging
from eventhub.db.session import Base, engine
from eventhub.services.realtime import RealtimeHub

log = logging.getLogger(__name__)


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse({"message": exc.detail}, status_code=exc.status_code, headers=exc.headers)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        {"message": "Validation failed", "errors": jsonable_errors(exc)},
        status_code=422,
    )


async def server_error_handler(request: Request, exc: Exception) -> JSONResponse:
    log.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse({"message": "Server error", "error": str(exc)}, status_code=500)


def jsonable_errors(exc: RequestValidationError) -> list[dict]:
    return [{"loc": list(err["loc"]), "msg": err["msg"], "type": err["type"]} for err in exc.errors()]


def create_app() -> FastAPI:
    configure_logging(settings.log_level)

    app = FastAPI(title=settings.app_name)
    app.state.hub = RealtimeHub()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, server_error_handler)

    @app.on_event("startup")
    def on_startup() -> None:
        try:
            Base.metadata.create_all(bind=engine)
        except SQLAlchemyError:
            log.critical("Event store connection failed; shutting down")
            raise
        log.info("Connected to event store")

    @app.get("/health")
    def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    app.include_router(events.router)
    app.include_router(realtime.router)
    return app


app = create_app()


def run() -> None:
    uvicorn.run("eventhub.main:app", host=settings.host, port=settings.port, log_level=settings.log_level.lower())
