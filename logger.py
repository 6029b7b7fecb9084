import logging
import time

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from config import Config

handler = logging.StreamHandler()


def setup_logging(level: str = "INFO"):
    root = logging.getLogger()
    if Config.ENV == "test":
        # Tests stay quiet
        root.setLevel(logging.CRITICAL + 1)
        return root

    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    handler.setFormatter(logging.Formatter(Config.LOG_FORMAT))
    if handler not in root.handlers:
        root.addHandler(handler)

    # pymongo is chatty at INFO
    logging.getLogger("pymongo").setLevel(logging.WARNING)
    return root


class RequestLoggerMiddleware(BaseHTTPMiddleware):
    """Logs method, path and outcome of every request."""

    async def dispatch(self, request: Request, call_next):
        log = logging.getLogger("request")
        started = time.perf_counter()
        log.info("Method: %s Path: %s", request.method, request.url.path)
        response = await call_next(request)
        elapsed = (time.perf_counter() - started) * 1000
        log.info("%s %s -> %s (%.1f ms)", request.method, request.url.path, response.status_code, elapsed)
        return response
