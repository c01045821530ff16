"""Logging for the catalog service.

Everything logs through the single ``rim_catalog`` logger as one-line
``KEY value key=value`` records (REQUEST, RESPONSE, DB, EXTERNAL, ERROR), so
store timings and failures can be grepped per table or operation.
"""

import logging
import sys
from typing import Any

LOGGER_NAME = "rim_catalog"


def setup_logging(level: str = "INFO") -> logging.Logger:
    """Set the catalog log level; the stdout handler is installed once."""
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    if logger.handlers:
        return logger

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(logging.DEBUG)

    formatter = logging.Formatter(
        "%(asctime)s - %(levelname)s - %(name)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)

    return logger


logger = setup_logging()


def log_request(method: str, path: str, **kwargs: Any) -> None:
    """REQUEST line, written before the handler runs."""
    extra = " ".join(f"{k}={v}" for k, v in kwargs.items())
    logger.info(f"REQUEST {method} {path} {extra}".strip())


def log_response(method: str, path: str, status: int, duration_ms: float) -> None:
    logger.info(
        f"RESPONSE {method} {path} status={status} duration_ms={duration_ms:.2f}"
    )


def log_error(message: str, exc: Exception | None = None, **kwargs: Any) -> None:
    """ERROR line; the traceback is attached when ``exc`` is given."""
    extra = " ".join(f"{k}={v}" for k, v in kwargs.items())
    if exc:
        logger.error(f"ERROR {message} {extra}".strip(), exc_info=exc)
    else:
        logger.error(f"ERROR {message} {extra}".strip())


def log_db_query(
    operation: str, table: str, duration_ms: float | None = None, **kwargs: Any
) -> None:
    """DB line at debug level, one per row store call."""
    duration = f"duration_ms={duration_ms:.2f}" if duration_ms else ""
    extra = " ".join(f"{k}={v}" for k, v in kwargs.items())
    logger.debug(f"DB {operation} table={table} {duration} {extra}".strip())


def log_external_call(
    service: str, operation: str, success: bool, duration_ms: float | None = None
) -> None:
    status = "success" if success else "failed"
    duration = f"duration_ms={duration_ms:.2f}" if duration_ms else ""
    logger.info(f"EXTERNAL {service} {operation} status={status} {duration}".strip())
