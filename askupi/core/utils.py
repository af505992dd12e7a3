"""Shared utility functions for the AskUPI project."""

import logging
import threading
import time
from datetime import UTC, datetime

import colorlog


def get_logger(name: str) -> logging.Logger:
    """Get a logger with a colorized format for the project.

    Area loggers (``askupi.<area>``) carry no handlers of their own and propagate to
    the top-level ``askupi`` logger, so handlers added there see every record.
    """
    logger = logging.getLogger(name)
    top = name.split(".", 1)[0]
    if top != name:
        get_logger(top)
        return logger
    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = colorlog.ColoredFormatter(
            "%(log_color)s%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
            log_colors={
                "DEBUG": "cyan",
                "INFO": "green",
                "WARNING": "yellow",
                "ERROR": "red",
                "CRITICAL": "bold_red",
            },
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    logger.propagate = False
    return logger


def utcnow_iso() -> str:
    """Get the current UTC time as an ISO8601 string."""
    return datetime.now(UTC).isoformat()


_id_lock = threading.Lock()
_last_id = 0


def new_id() -> str:
    """Return a time-based unique id (epoch milliseconds, strictly increasing per process)."""
    global _last_id
    with _id_lock:
        candidate = int(time.time() * 1000)
        if candidate <= _last_id:
            candidate = _last_id + 1
        _last_id = candidate
        return str(candidate)


def truncate(text: str, limit: int) -> str:
    """Cut text to at most ``limit`` characters."""
    return text if len(text) <= limit else text[:limit]


def format_inr(value: float) -> str:
    """Format a number with Indian digit grouping (12,34,567.5)."""
    negative = value < 0
    rounded = round(abs(value), 2)
    whole = int(rounded)
    fraction = f"{rounded - whole:.2f}"[1:].rstrip("0").rstrip(".")
    digits = str(whole)
    if len(digits) > 3:
        head, tail = digits[:-3], digits[-3:]
        groups = []
        while len(head) > 2:
            groups.insert(0, head[-2:])
            head = head[:-2]
        if head:
            groups.insert(0, head)
        digits = ",".join([*groups, tail])
    return f"{'-' if negative else ''}{digits}{fraction}"
