"""
Request Logging

JSON log lines and an access-log middleware for the task API. Every line
carries the request id; access lines also record the query headers a client
sent (``X-Sort``, ``X-Fields``) and the output format the response was
encoded in.
"""

import json
import logging
import time
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.types import ASGIApp

from taskapi.services.export_service import MEDIA_TYPES

REQUEST_ID_HEADER = "X-Request-ID"

# Access-log attribute -> request header it is copied from
QUERY_HEADERS = {"sort": "X-Sort", "fields": "X-Fields"}

QUIET_PATHS = frozenset({"/health"})

# Record attributes copied into the JSON line when present
LOG_FIELDS = (
    "method",
    "path",
    "status_code",
    "duration_ms",
    "output_format",
    "sort",
    "fields",
    "error_code",
    "details",
)

request_id_var: ContextVar[str] = ContextVar("request_id", default="")

_FORMATS_BY_MEDIA_TYPE = {media_type: export_format.value for export_format, media_type in MEDIA_TYPES.items()}


def response_format(response: Response) -> str | None:
    """Name of the encoding a successful response body was served in."""
    if response.status_code >= 400:
        return None
    media_type = response.headers.get("content-type", "").split(";", 1)[0].strip().lower()
    return _FORMATS_BY_MEDIA_TYPE.get(media_type)


class RequestIdFilter(logging.Filter):
    """Stamp each record with the id of the request being served."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get()
        return True


class StructuredFormatter(logging.Formatter):
    """One JSON object per log line."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "request_id": getattr(record, "request_id", ""),
        }
        entry.update({key: getattr(record, key) for key in LOG_FIELDS if hasattr(record, key)})
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class StructuredLoggingMiddleware(BaseHTTPMiddleware):
    """
    Access log for the task API.

    Reuses the caller's ``X-Request-ID`` (or generates one), echoes it on the
    response and logs one line per request with its timing, the query
    headers that shaped the result and the format it was encoded in.
    """

    def __init__(self, app: ASGIApp, logger_name: str = "taskapi.access"):
        super().__init__(app)
        self.logger = logging.getLogger(logger_name)

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request_id_var.set(request_id)
        start_time = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception as e:
            self.log_access(request, 500, start_time, error=str(e))
            raise

        response.headers[REQUEST_ID_HEADER] = request_id
        self.log_access(request, response.status_code, start_time, output_format=response_format(response))
        return response

    def log_access(
        self,
        request: Request,
        status_code: int,
        start_time: float,
        output_format: str | None = None,
        error: str | None = None,
    ) -> None:
        if request.url.path in QUIET_PATHS:
            return

        duration_ms = (time.perf_counter() - start_time) * 1000
        extra = {
            "method": request.method,
            "path": request.url.path,
            "status_code": status_code,
            "duration_ms": round(duration_ms, 2),
        }
        for key, header in QUERY_HEADERS.items():
            value = request.headers.get(header)
            if value:
                extra[key] = value
        if output_format:
            extra["output_format"] = output_format

        message = f"{request.method} {request.url.path} - {status_code}"
        if output_format:
            message += f" [{output_format}]"
        message += f" ({duration_ms:.2f}ms)"
        if error:
            message += f" - Error: {error}"

        if status_code >= 500:
            level = logging.ERROR
        elif status_code >= 400:
            level = logging.WARNING
        else:
            level = logging.INFO
        self.logger.log(level, message, extra=extra)


def setup_structured_logging(log_level: str = "INFO", json_format: bool = True, log_file: str | None = None) -> None:
    """
    Configure the root logger for the application.

    Args:
        log_level: Level for the ``taskapi`` loggers
        json_format: Emit JSON lines instead of plain text
        log_file: Write to this file instead of stderr
    """
    level = getattr(logging, log_level.upper())
    handler = logging.FileHandler(log_file) if log_file else logging.StreamHandler()
    if json_format:
        handler.setFormatter(StructuredFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - [%(request_id)s] %(message)s"))
    handler.addFilter(RequestIdFilter())

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    logging.getLogger("taskapi").setLevel(level)
    for noisy in ("uvicorn.access", "sqlalchemy.engine"):
        logging.getLogger(noisy).setLevel(logging.WARNING)
