"""Logging setup and HTTP request logging middleware."""
from __future__ import annotations

import logging
from time import time
from typing import Optional

from fastapi import FastAPI, Request

from booking_admission.core.config import Settings

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def configure_logging(settings: Settings) -> logging.Logger:
    logger = logging.getLogger("booking_admission")
    logger.setLevel(settings.log_level.upper())
    if logger.handlers:
        return logger

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    stream = logging.StreamHandler()
    stream.setFormatter(formatter)
    logger.addHandler(stream)

    if settings.log_file:
        handler = logging.FileHandler(settings.log_file)
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    return logger


def add_audit_middleware(app: FastAPI) -> None:
    logger = logging.getLogger("booking_admission.http")

    @app.middleware("http")
    async def audit_logger(request: Request, call_next):  # type: ignore[override]
        start = time()
        response = await call_next(request)
        duration_ms = (time() - start) * 1000
        client_ip: Optional[str] = None
        if request.client:
            client_ip = request.client.host
        logger.info(
            "%s %s | status=%s | client=%s | duration=%.2fms",
            request.method,
            request.url.path,
            response.status_code,
            client_ip or "unknown",
            duration_ms,
        )
        return response
