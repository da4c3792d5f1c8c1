from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.cors import CORSMiddleware

from careers_mailer.api.router import api_router
from careers_mailer.core.config import Settings, settings as default_settings
from careers_mailer.core.datetime_utils import iso_timestamp
from careers_mailer.core.errors import DispatchError, SubmissionError
from careers_mailer.middleware.body_limit import BodySizeLimitMiddleware
from careers_mailer.middleware.logging import RequestLoggingMiddleware
from careers_mailer.services.email import MailTransport, build_transport

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("careers")

AVAILABLE_ENDPOINTS = {
    "GET /": "Health check",
    "POST /send-email": "Submit job application",
    "POST /api/send-email": "Submit job application (alternative)",
}


def _error_detail(app_settings: Settings, detail: str | None) -> str | None:
    if app_settings.is_development:
        return detail
    return "Internal server error"


def _register_exception_handlers(app: FastAPI, app_settings: Settings) -> None:
    @app.exception_handler(SubmissionError)
    async def _submission_error(request: Request, exc: SubmissionError):
        content: dict = {"success": False, "message": exc.message}
        if isinstance(exc, DispatchError):
            content["error"] = _error_detail(app_settings, exc.detail)
        return JSONResponse(status_code=exc.status_code, content=content)

    @app.exception_handler(StarletteHTTPException)
    async def _http_error(request: Request, exc: StarletteHTTPException):
        if exc.status_code == status.HTTP_404_NOT_FOUND:
            logger.info("route_not_found", extra={"method": request.method, "path": request.url.path})
            return JSONResponse(
                status_code=status.HTTP_404_NOT_FOUND,
                content={
                    "success": False,
                    "message": f"Endpoint not found: {request.method} {request.url.path}",
                    "availableEndpoints": AVAILABLE_ENDPOINTS,
                    "timestamp": iso_timestamp(),
                },
            )
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "message": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def _request_validation_error(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"success": False, "message": "Invalid request. Please check the submitted form."},
        )

    @app.exception_handler(Exception)
    async def _unhandled_error(request: Request, exc: Exception):
        logger.exception("unhandled_error", extra={"method": request.method, "path": request.url.path})
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "success": False,
                "message": "Internal server error. Please try again later.",
                "error": _error_detail(app_settings, str(exc)),
                "timestamp": iso_timestamp(),
            },
        )


def create_app(app_settings: Settings | None = None, transport: MailTransport | None = None) -> FastAPI:
    app_settings = app_settings or default_settings

    app = FastAPI(
        title=app_settings.app_name,
        version=app_settings.version,
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.settings = app_settings
    app.state.mail_transport = transport or build_transport(app_settings)

    app.add_middleware(BodySizeLimitMiddleware, max_bytes=app_settings.max_request_bytes)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origins,
        allow_origin_regex=app_settings.allowed_origin_regex or None,
        allow_credentials=False,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    _register_exception_handlers(app, app_settings)
    app.include_router(api_router)
    return app


app = create_app()


def run() -> None:
    import uvicorn

    logger.info(
        "server_starting",
        extra={
            "host": default_settings.host,
            "port": default_settings.port,
            "environment": default_settings.environment,
            "mail_transport": default_settings.mail_transport,
        },
    )
    uvicorn.run(app, host=default_settings.host, port=default_settings.port)
