# app/utils/logger.py

import uuid
import sys
import logging
from typing import Optional, Dict, Any, List
from datetime import datetime, timezone
from contextvars import ContextVar

import structlog
from fastapi import Request, FastAPI
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware


REQUEST_ID_HEADER = "X-Request-ID"

# Path parameters copied onto the access log line
TRACKED_PATH_PARAMS = ("lease_id", "application_id", "property_id")

# Context variable for request ID tracking
request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)


class LogConfig:
    """Process wide logging state, set once by setup_logging."""

    LOG_LEVEL = "INFO"
    USE_JSON = False
    LOG_FILE: Optional[str] = None
    APP_NAME = "NYC Rentals Lease Service"
    ENVIRONMENT = "development"


def add_request_id(logger: logging.Logger, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Add request ID to log context."""
    request_id = request_id_var.get()
    if request_id:
        event_dict["request_id"] = request_id
    return event_dict


def add_app_context(logger: logging.Logger, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Add application context to logs."""
    event_dict["app"] = LogConfig.APP_NAME
    event_dict["environment"] = LogConfig.ENVIRONMENT
    return event_dict


def shared_processors() -> List[Any]:
    """Processors applied to structlog events and to plain stdlib records alike"""
    return [
        structlog.contextvars.merge_contextvars,
        add_request_id,
        add_app_context,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]


def _handler(handler: logging.Handler, level: int, renderer: Any) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                renderer,
            ],
            foreign_pre_chain=shared_processors(),
        )
    )
    return handler


def setup_logging(
    log_level: str = "INFO",
    use_json: bool = True,
    log_file: Optional[str] = None,
    app_name: str = "NYC Rentals Lease Service",
    environment: str = "development",
) -> None:
    """
    Route structlog and stdlib logging through one set of handlers.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        use_json: JSON lines on stdout (True) or plain console output (False)
        log_file: Optional path to log file, always written as JSON
        app_name: Application name for log context
        environment: Environment name (development, staging, production)
    """
    LogConfig.LOG_LEVEL = log_level.upper()
    LogConfig.USE_JSON = use_json
    LogConfig.LOG_FILE = log_file
    LogConfig.APP_NAME = app_name
    LogConfig.ENVIRONMENT = environment

    level = getattr(logging, LogConfig.LOG_LEVEL, logging.INFO)

    if use_json:
        stdout_renderer = structlog.processors.JSONRenderer()
    else:
        stdout_renderer = structlog.dev.ConsoleRenderer(
            colors=False,
            exception_formatter=structlog.dev.plain_traceback,
        )

    handlers = [_handler(logging.StreamHandler(sys.stdout), level, stdout_renderer)]
    if log_file:
        handlers.append(_handler(logging.FileHandler(log_file), level, structlog.processors.JSONRenderer()))

    # Reconfiguring replaces handlers, never stacks them
    logging.root.handlers = handlers
    logging.root.setLevel(level)

    # Access lines come from LoggingMiddleware
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

    structlog.configure(
        processors=shared_processors() + [
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def get_logger(name: Optional[str] = None) -> structlog.stdlib.BoundLogger:
    """
    Get a configured logger instance.

    Args:
        name (Optional[str]): Name of the logger.

    Returns:
        structlog.stdlib.BoundLogger: Configured logger instance.
    """
    return structlog.get_logger(name)


class LoggingMiddleware(BaseHTTPMiddleware):
    """
    Access log per request with a propagated request ID.

    Client errors are logged at WARNING and server errors at ERROR. Lease,
    application and property ids from the matched route are attached to
    the completion line.
    """

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        token = request_id_var.set(request_id)

        logger = get_logger("api.access")
        started = datetime.now(timezone.utc)

        def elapsed_ms() -> float:
            return round((datetime.now(timezone.utc) - started).total_seconds() * 1000, 2)

        try:
            logger.debug("request_started", method=request.method, path=request.url.path)
            response = await call_next(request)
        except Exception as e:
            logger.error(
                "request_failed",
                method=request.method,
                path=request.url.path,
                duration_ms=elapsed_ms(),
                error=str(e),
                exc_info=True,
            )
            return JSONResponse(
                status_code=500,
                content={"error": "Internal server error", "request_id": request_id},
                headers={REQUEST_ID_HEADER: request_id},
            )
        else:
            ids = {
                key: value for key, value in request.path_params.items() if key in TRACKED_PATH_PARAMS
            }
            if response.status_code >= 500:
                log = logger.error
            elif response.status_code >= 400:
                log = logger.warning
            else:
                log = logger.info
            log(
                "request_completed",
                method=request.method,
                path=request.url.path,
                status_code=response.status_code,
                duration_ms=elapsed_ms(),
                client_host=request.client.host if request.client else None,
                **ids,
            )
            response.headers[REQUEST_ID_HEADER] = request_id
            return response
        finally:
            request_id_var.reset(token)


def setup_app_logging(
    app: FastAPI,
    log_level: str = "INFO",
    use_json: bool = True,
    log_file: Optional[str] = None,
    app_name: Optional[str] = None,
    environment: str = "development",
) -> None:
    """
    Setup logging for a FastAPI application and install the access log middleware.
    """
    setup_logging(
        log_level=log_level,
        use_json=use_json,
        log_file=log_file,
        app_name=app_name or app.title or LogConfig.APP_NAME,
        environment=environment,
    )
    app.add_middleware(LoggingMiddleware)
