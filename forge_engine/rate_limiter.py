"""
EffectForge - Rate Limiting v1.0

Copyright (c) 2025 Brent Lefebure / EhkoLabs
Licensed under AGPLv3 - See LICENSE in repository root

Three request tiers on top of Flask-Limiter:
- expensive: generation and code optimisation
- upload:    multipart file uploads
- health:    status endpoints polled by monitors

Every other route gets the default limit. Limits come from ForgeConfig;
FORGE_RATE_LIMIT_STORAGE selects a shared backend (e.g. redis://).
"""

import logging
import os
from datetime import datetime
from functools import wraps
from typing import Callable, Dict, Optional

from flask import Flask, request, jsonify
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

from .core.config import ForgeConfig
from .errors import RateLimitError

logger = logging.getLogger(__name__)


HEALTH_LIMIT = "120 per minute"
RATE_LIMIT_STORAGE = os.environ.get("FORGE_RATE_LIMIT_STORAGE", "memory://")
DEFAULT_RETRY_SECONDS = 60

_limiter: Optional[Limiter] = None
_limits: Dict[str, Optional[str]] = {"default": None, "expensive": None, "upload": None}


def get_rate_limit_key() -> str:
    """
    Bucket key for the current request.

    An explicit X-Rate-Limit-Key wins, then the client end of
    X-Forwarded-For, then the socket address.
    """
    explicit = request.headers.get("X-Rate-Limit-Key")
    if explicit:
        return f"user:{explicit}"

    forwarded = request.headers.get("X-Forwarded-For", "")
    client = forwarded.split(",")[0].strip()
    return client or get_remote_address()


def _retry_after(description) -> int:
    # Limiter descriptions look like "... retry after 30 seconds" when known
    _, marker, rest = str(description).partition("retry after ")
    value = rest.split(" ")[0] if marker else ""
    return int(value) if value.isdigit() else DEFAULT_RETRY_SECONDS


def _too_many_requests(e):
    error = RateLimitError(_retry_after(e.description))
    logger.warning(
        f"Rate limit hit by {get_rate_limit_key()} ({e.description})",
        extra={"path": request.path, "status_code": 429},
    )

    response = jsonify({
        "success": False,
        "timestamp": datetime.utcnow().isoformat() + "Z",
        "error": error.user_message,
        "data": {
            "error_type": "RateLimitError",
            "retry_after_seconds": error.retry_after,
        },
    })
    response.status_code = 429
    response.headers["Retry-After"] = str(error.retry_after)
    return response


def init_rate_limiter(app: Flask, config: Optional[ForgeConfig] = None) -> Optional[Limiter]:
    """
    Attach the limiter to `app`, or disable limiting.

    Call before any route is declared: the tier decorators bind to
    whichever limiter is active when they are applied.

    Returns:
        The Limiter, or None when FORGE_RATE_LIMIT_ENABLED is false
    """
    global _limiter

    config = config or ForgeConfig.load()
    _limits.update(
        default=config.rate_limit_default,
        expensive=config.rate_limit_expensive,
        upload=config.rate_limit_upload,
    )

    if not config.rate_limit_enabled:
        _limiter = None
        logger.info("Rate limiting disabled")
        return None

    _limiter = Limiter(
        key_func=get_rate_limit_key,
        app=app,
        default_limits=[config.rate_limit_default],
        storage_uri=RATE_LIMIT_STORAGE,
        strategy="fixed-window",
        headers_enabled=True,
    )
    app.register_error_handler(429, _too_many_requests)

    logger.info(
        f"Rate limiting on: default={config.rate_limit_default} "
        f"expensive={config.rate_limit_expensive} upload={config.rate_limit_upload}"
    )
    return _limiter


def get_limiter() -> Optional[Limiter]:
    return _limiter


# =============================================================================
# TIER DECORATORS
# =============================================================================

def _tier(limit: Callable[[], Optional[str]]) -> Callable:
    def decorator(view: Callable) -> Callable:
        @wraps(view)
        def wrapper(*args, **kwargs):
            return view(*args, **kwargs)

        if _limiter is None:
            return wrapper
        return _limiter.limit(limit())(wrapper)
    return decorator


rate_limit_expensive = _tier(lambda: _limits["expensive"])
rate_limit_expensive.__doc__ = "Generation and optimisation tier."

rate_limit_upload = _tier(lambda: _limits["upload"])
rate_limit_upload.__doc__ = "File upload tier."

rate_limit_health = _tier(lambda: HEALTH_LIMIT)
rate_limit_health.__doc__ = "Permissive tier for health and metrics polling."


def get_rate_limit_status() -> dict:
    """Active limiter settings, as reported by /api/info."""
    if _limiter is None:
        return {"enabled": False}
    return {"enabled": True, "storage": RATE_LIMIT_STORAGE, "limits": dict(_limits)}


__all__ = [
    "init_rate_limiter",
    "get_limiter",
    "rate_limit_expensive",
    "rate_limit_upload",
    "rate_limit_health",
    "get_rate_limit_key",
    "get_rate_limit_status",
    "HEALTH_LIMIT",
]
