"""Logging setup and the per-request access log."""
from __future__ import annotations

import logging
import os
import secrets

from starlette.middleware.base import BaseHTTPMiddleware

from .config import Settings

REQUEST_ID_HEADER = "X-Request-ID"
REQUEST_LOGGER_NAME = "userapi.requests"

_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(settings: Settings) -> None:
    """Set root level/format and attach the request log file if configured."""
    logging.basicConfig(level=settings.log_level, format=_FORMAT)
    logging.getLogger().setLevel(settings.log_level)
    if settings.request_log:
        attach_request_log(settings.request_log)


def attach_request_log(path: str) -> logging.Handler:
    """Append request lines to ``path``; calling twice for one file is a no-op."""
    logger = logging.getLogger(REQUEST_LOGGER_NAME)
    target = os.path.abspath(path)
    for handler in logger.handlers:
        if isinstance(handler, logging.FileHandler) and handler.baseFilename == target:
            return handler
    handler = logging.FileHandler(target, mode="a", encoding="utf-8")
    handler.setFormatter(logging.Formatter("%(asctime)s %(message)s", "%Y/%m/%d %H:%M:%S"))
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)
    return handler


class RequestLogMiddleware(BaseHTTPMiddleware):
    """Tag every request with a random id and log ``<id> <METHOD> <url>``."""

    def __init__(self, app) -> None:
        super().__init__(app)
        self._log = logging.getLogger(REQUEST_LOGGER_NAME)

    async def dispatch(self, request, call_next):
        request_id = str(secrets.randbits(64))
        request.state.request_id = request_id
        self._log.info("%s %s %s", request_id, request.method, request.url)
        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response
