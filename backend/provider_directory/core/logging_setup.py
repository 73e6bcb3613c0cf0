"""Logging setup and HTTP audit logging middleware."""
import logging
from time import time
from typing import Optional

from fastapi import FastAPI, Request

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def configure_logging(level: str = "INFO") -> None:
    root = logging.getLogger()
    root.setLevel(level.upper())
    # Reconfiguring (e.g. a second create_app in tests) must not stack handlers
    if any(getattr(handler, "_directory_handler", False) for handler in root.handlers):
        return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    handler._directory_handler = True
    root.addHandler(handler)


def add_audit_middleware(app: FastAPI) -> None:
    logger = logging.getLogger("provider_directory.audit")

    @app.middleware("http")
    async def audit_logger(request: Request, call_next):
        start = time()
        response = await call_next(request)
        duration_ms = (time() - start) * 1000
        client_ip: Optional[str] = request.client.host if request.client else None
        logger.info(
            "%s %s | status=%s | client=%s | duration=%.2fms",
            request.method,
            request.url.path,
            response.status_code,
            client_ip or "unknown",
            duration_ms,
        )
        return response
