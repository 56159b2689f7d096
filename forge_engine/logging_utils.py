"""
EffectForge Logging v1.0

Copyright (c) 2025 Brent Lefebure / EhkoLabs
Licensed under AGPLv3 - See LICENSE in repository root

One log line per event, tagged with the current request id and any
generation context (session, effect, file, pipeline stage) passed via
`extra=`. Text output for the console, JSON for files and log shippers.
"""

import json
import logging
import re
import sys
import time
from contextvars import ContextVar
from datetime import datetime
from functools import wraps
from typing import Any, Dict, Optional
from uuid import uuid4


request_id_var: ContextVar[str] = ContextVar("request_id", default="")

# Record attributes copied into JSON output, in this order
CONTEXT_FIELDS = (
    "session_id", "effect_id", "file_id", "stage",
    "method", "path", "endpoint", "status_code", "duration_ms", "user_agent",
)

# Subset shown inline in text output
TEXT_FIELDS = ("session_id", "effect_id", "file_id", "stage", "status_code", "duration_ms")

# Libraries that log too much at INFO
QUIET_LOGGERS = {
    "werkzeug": logging.WARNING,
    "pypdf": logging.ERROR,
    "flask_limiter": logging.WARNING,
}


# =============================================================================
# FORMATTING
# =============================================================================

class StructuredFormatter(logging.Formatter):
    """
    Text or JSON log lines with request and generation context.

    Text:  [2025-01-01T00:00:00Z] [INFO    ] [1a2b3c4d] message (stage=analysis)
    JSON:  {"timestamp": ..., "level": ..., "message": ..., "request_id": ...}
    """

    def __init__(self, json_output: bool = False):
        super().__init__()
        self.json_output = json_output

    def _context(self, record: logging.LogRecord, fields) -> Dict[str, Any]:
        return {key: getattr(record, key) for key in fields if hasattr(record, key)}

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.utcnow().isoformat() + "Z"
        request_id = request_id_var.get()
        message = record.getMessage()

        if self.json_output:
            entry = {
                "timestamp": timestamp,
                "level": record.levelname,
                "logger": record.name,
                "message": message,
            }
            if request_id:
                entry["request_id"] = request_id
            entry.update(self._context(record, CONTEXT_FIELDS))
            if record.exc_info:
                entry["exception"] = self.formatException(record.exc_info)
            return json.dumps(entry, default=str)

        line = f"[{timestamp}] [{record.levelname:8}] "
        if request_id:
            line += f"[{request_id[:8]}] "
        line += message

        context = self._context(record, TEXT_FIELDS)
        if context:
            line += " (" + ", ".join(f"{k}={v}" for k, v in context.items()) + ")"
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


class SecretsSanitizer(logging.Filter):
    """Mask key-shaped tokens and `password=...` style assignments."""

    KEY_TOKEN = re.compile(r"\bsk-[A-Za-z0-9_\-]{16,}\b")
    ASSIGNMENT = re.compile(r"(?i)\b(api[_-]?key|token|secret|password)\s*[=:]\s*[^\s,;]+")

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        masked = self.KEY_TOKEN.sub("sk-***", message)
        masked = self.ASSIGNMENT.sub(lambda m: f"{m.group(1)}=***", masked)
        if masked != message:
            record.msg, record.args = masked, None
        return True


def setup_logging(level: str = "INFO", json_output: bool = False,
                  log_file: Optional[str] = None) -> logging.Logger:
    """
    Install console (and optional file) handlers on the root logger.

    The file handler always writes JSON. Calling again replaces the
    handlers rather than stacking them.
    """
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    root.handlers = []

    handlers = [(logging.StreamHandler(sys.stdout), json_output)]
    if log_file:
        handlers.append((logging.FileHandler(log_file), True))

    sanitizer = SecretsSanitizer()
    for handler, as_json in handlers:
        handler.setFormatter(StructuredFormatter(json_output=as_json))
        handler.addFilter(sanitizer)
        root.addHandler(handler)

    for name, quiet_level in QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(quiet_level)

    return root


# =============================================================================
# REQUEST CONTEXT
# =============================================================================

def set_request_id(request_id: Optional[str] = None) -> str:
    """Bind a request id (generated when missing) to the current context."""
    request_id = request_id or str(uuid4())
    request_id_var.set(request_id)
    return request_id


def get_request_id() -> str:
    return request_id_var.get()


def log_request(logger: logging.Logger):
    """
    Log start and completion (or failure) of a Flask view with its duration.

    Used on the endpoints that start generations or accept uploads,
    where per-request timing matters more than on read-only routes.
    """
    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            from flask import request

            context = {
                "method": request.method,
                "path": request.path,
                "endpoint": view.__name__,
                "user_agent": request.headers.get("User-Agent", "")[:100],
            }
            logger.info(f"{request.method} {request.path} started", extra=dict(context))
            start = time.time()
            try:
                result = view(*args, **kwargs)
            except Exception:
                context.update(status_code=500, duration_ms=round((time.time() - start) * 1000, 2))
                logger.exception(f"{request.method} {request.path} failed", extra=context)
                raise

            if isinstance(result, tuple) and len(result) > 1:
                status_code = result[1]
            else:
                status_code = getattr(result, "status_code", 200)
            context.update(status_code=status_code, duration_ms=round((time.time() - start) * 1000, 2))
            logger.info(f"{request.method} {request.path} -> {status_code}", extra=context)
            return result

        return wrapper
    return decorator


# =============================================================================
# STAGE TIMING
# =============================================================================

class Timer:
    """
    Time a pipeline stage and log the outcome.

    Usage:
        with Timer(logger, "optimization") as t:
            ...
        t.duration_ms
    """

    def __init__(self, logger: logging.Logger, operation: str, level: int = logging.DEBUG):
        self.logger = logger
        self.operation = operation
        self.level = level
        self.duration_ms: Optional[float] = None
        self._start = 0.0

    def __enter__(self):
        self._start = time.time()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.duration_ms = (time.time() - self._start) * 1000
        extra = {"stage": self.operation, "duration_ms": round(self.duration_ms, 2)}
        if exc_type is None:
            self.logger.log(self.level, f"Operation completed: {self.operation}", extra=extra)
        else:
            self.logger.error(f"Operation failed: {self.operation} ({exc_val})", extra=extra)
        return False


__all__ = [
    "setup_logging",
    "set_request_id",
    "get_request_id",
    "log_request",
    "Timer",
    "StructuredFormatter",
    "SecretsSanitizer",
    "request_id_var",
]
